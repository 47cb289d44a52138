from app.models.quote import Quote


async def test_stats_and_unmatched_bookings(client, make_user, make_booking, auth, session_factory):
    admin = await make_user("admin")
    shipper = await make_user("shipper")
    carrier = await make_user("carrier")
    escort = await make_user("escort")
    waiting = await make_booking(shipper, status="quoted", requires_escort=True)
    await make_booking(shipper, carrier_id=carrier.id, status="booked")
    async with session_factory() as session:
        session.add_all(
            [
                Quote(id="qc", booking_id=waiting.id, provider_id=carrier.id, amount=1000, status="pending"),
                Quote(id="qe", booking_id=waiting.id, provider_id=escort.id, amount=300, status="pending"),
            ]
        )
        await session.commit()

    response = await client.get("/api/admin/unmatched-bookings", headers=auth(admin))
    assert response.status_code == 200
    rows = response.json()["data"]
    assert [row["id"] for row in rows] == [waiting.id]
    assert rows[0]["carrier_quote_count"] == 1
    assert rows[0]["escort_quote_count"] == 1

    stats = (await client.get("/api/admin/stats", headers=auth(admin))).json()["data"]
    assert stats["bookings"] == 2
    assert stats["carriers"] == 1
    assert stats["pending_verifications"] == 2
    assert [b["id"] for b in stats["latest_unmatched"]] == [waiting.id]

    assert (await client.get("/api/admin/stats", headers=auth(shipper))).status_code == 403


async def test_admin_user_drilldown(client, make_user, make_booking, make_fleet, auth):
    admin = await make_user("admin")
    shipper = await make_user("shipper")
    carrier = await make_user("carrier")
    fleet = await make_fleet(carrier)
    booking = await make_booking(shipper)

    bookings = (await client.get(f"/api/admin/users/{shipper.id}/bookings", headers=auth(admin))).json()["data"]
    assert [b["id"] for b in bookings] == [booking.id]
    drivers = (await client.get(f"/api/admin/users/{carrier.id}/drivers", headers=auth(admin))).json()["data"]
    assert [d["id"] for d in drivers] == [fleet["driver_id"]]
    vehicles = (await client.get(f"/api/admin/users/{carrier.id}/vehicles", headers=auth(admin))).json()["data"]
    assert [v["id"] for v in vehicles] == [fleet["vehicle_id"]]
