import pytest
from sqlalchemy import select

from app.core.errors import ConflictError
from app.models.booking import Booking
from app.models.notification import Notification
from app.models.quote import Quote
from app.schemas.quote import QuoteCreate
from app.services import quote as quote_module
from app.services.quote import QuoteService


async def _submit(client, auth, provider, booking, fleet, amount=2500):
    body = {
        "bookingId": booking.id,
        "amount": amount,
        "vehicleId": fleet["vehicle_id"],
        "notes": "Can pick up Monday",
    }
    if fleet["driver_id"]:
        body["driverId"] = fleet["driver_id"]
    return await client.post("/api/quotes", json=body, headers=auth(provider))


async def _notification_types(session_factory, user_id):
    async with session_factory() as session:
        rows = await session.execute(select(Notification.type).where(Notification.user_id == user_id))
        return sorted(rows.scalars())


async def test_carrier_quote_moves_booking_to_quoted_and_notifies_admin(
    client, make_user, make_booking, make_fleet, auth, session_factory
):
    shipper = await make_user("shipper")
    admin = await make_user("admin")
    carrier = await make_user("carrier")
    fleet = await make_fleet(carrier)
    booking = await make_booking(shipper)

    response = await _submit(client, auth, carrier, booking, fleet)

    assert response.status_code == 201
    async with session_factory() as session:
        assert (await session.get(Booking, booking.id)).status == "quoted"
        quote = await session.get(Quote, response.json()["data"]["id"])
        assert quote.status == "pending"
        assert quote.driver_id == fleet["driver_id"]
    assert await _notification_types(session_factory, admin.id) == ["quote"]


async def test_second_quote_from_same_provider_is_rejected(client, make_user, make_booking, make_fleet, auth):
    shipper = await make_user("shipper")
    carrier = await make_user("carrier")
    fleet = await make_fleet(carrier)
    booking = await make_booking(shipper)

    assert (await _submit(client, auth, carrier, booking, fleet)).status_code == 201
    response = await _submit(client, auth, carrier, booking, fleet, amount=2000)
    assert response.status_code == 400
    assert response.json()["message"] == "You have already submitted a quote for this booking"


async def test_quote_validation(client, make_user, make_booking, make_fleet, auth):
    shipper = await make_user("shipper")
    carrier = await make_user("carrier")
    other = await make_user("carrier")
    fleet = await make_fleet(carrier)
    foreign = await make_fleet(other)
    booking = await make_booking(shipper)

    response = await _submit(client, auth, carrier, booking, fleet, amount=-5)
    assert response.status_code == 400

    borrowed = dict(fleet, driver_id=foreign["driver_id"])
    response = await _submit(client, auth, carrier, booking, borrowed)
    assert response.status_code == 400
    assert response.json()["message"] == "Selected driver does not belong to you"

    response = await client.post(
        "/api/quotes",
        json={"bookingId": booking.id, "amount": 100, "vehicleId": fleet["vehicle_id"], "notes": "x"},
        headers=auth(carrier),
    )
    assert response.status_code == 400

    response = await _submit(client, auth, shipper, booking, fleet)
    assert response.status_code == 403


async def test_escort_quote_requires_escort_booking(client, make_user, make_booking, make_fleet, auth):
    shipper = await make_user("shipper")
    escort = await make_user("escort")
    fleet = await make_fleet(escort)
    plain = await make_booking(shipper, requires_escort=False)
    escorted = await make_booking(shipper, requires_escort=True)

    response = await _submit(client, auth, escort, plain, fleet)
    assert response.status_code == 400
    assert response.json()["message"] == "This booking does not require an escort"

    assert (await _submit(client, auth, escort, escorted, fleet)).status_code == 201


async def test_available_bookings_exclude_quoted_and_filter_by_role(
    client, make_user, make_booking, make_fleet, auth
):
    shipper = await make_user("shipper")
    carrier = await make_user("carrier")
    escort = await make_user("escort")
    fleet = await make_fleet(carrier)
    plain = await make_booking(shipper)
    escorted = await make_booking(shipper, requires_escort=True)

    response = await client.get("/api/quotes/available", headers=auth(carrier))
    assert {b["id"] for b in response.json()["data"]} == {plain.id, escorted.id}

    response = await client.get("/api/quotes/available", headers=auth(escort))
    assert [b["id"] for b in response.json()["data"]] == [escorted.id]

    await _submit(client, auth, carrier, plain, fleet)
    response = await client.get("/api/quotes/available", headers=auth(carrier))
    assert [b["id"] for b in response.json()["data"]] == [escorted.id]

    response = await client.get("/api/quotes/available", headers=auth(shipper))
    assert response.status_code == 403


async def test_accepting_carrier_quote_books_and_rejects_competitors(
    client, make_user, make_booking, make_fleet, auth, session_factory
):
    shipper = await make_user("shipper")
    admin = await make_user("admin")
    winner = await make_user("carrier")
    loser = await make_user("carrier")
    escort = await make_user("escort")
    winner_fleet = await make_fleet(winner)
    loser_fleet = await make_fleet(loser)
    escort_fleet = await make_fleet(escort)
    booking = await make_booking(shipper, requires_escort=True)

    win_id = (await _submit(client, auth, winner, booking, winner_fleet, amount=3000)).json()["data"]["id"]
    lose_id = (await _submit(client, auth, loser, booking, loser_fleet, amount=2800)).json()["data"]["id"]
    escort_id = (await _submit(client, auth, escort, booking, escort_fleet, amount=600)).json()["data"]["id"]

    response = await client.put(f"/api/quotes/{win_id}/accept", headers=auth(admin))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["booking_status"] == "booked"
    assert data["rejected_quote_ids"] == [lose_id]

    async with session_factory() as session:
        booked = await session.get(Booking, booking.id)
        assert booked.carrier_id == winner.id
        assert booked.assigned_driver_id == winner_fleet["driver_id"]
        assert float(booked.agreed_price) == 3000.0
        assert (await session.get(Quote, win_id)).status == "accepted"
        assert (await session.get(Quote, lose_id)).status == "rejected"
        assert (await session.get(Quote, escort_id)).status == "pending"

    assert await _notification_types(session_factory, winner.id) == ["quote_accepted"]
    assert await _notification_types(session_factory, shipper.id) == ["booking_update"]
    assert await _notification_types(session_factory, loser.id) == []


async def test_second_carrier_acceptance_conflicts(client, make_user, make_booking, make_fleet, auth, session_factory):
    shipper = await make_user("shipper")
    admin = await make_user("admin")
    first = await make_user("carrier")
    second = await make_user("carrier")
    booking = await make_booking(shipper)
    first_id = (await _submit(client, auth, first, booking, await make_fleet(first))).json()["data"]["id"]
    second_id = (await _submit(client, auth, second, booking, await make_fleet(second))).json()["data"]["id"]

    assert (await client.put(f"/api/quotes/{first_id}/accept", headers=auth(admin))).status_code == 200
    response = await client.put(f"/api/quotes/{second_id}/accept", headers=auth(admin))
    assert response.status_code == 400

    async with session_factory() as session:
        assert (await session.get(Booking, booking.id)).carrier_id == first.id


def _accept_elsewhere_after_lock(monkeypatch, session_factory, quote_id, admin):
    """Commit a competing acceptance from another session once the booking row has been read."""
    real_lock = quote_module.lock_booking

    async def lock_then_accept_elsewhere(db, booking_id):
        booking = await real_lock(db, booking_id)
        monkeypatch.setattr(quote_module, "lock_booking", real_lock)
        async with session_factory() as other:
            await QuoteService(other).accept_quote(quote_id, admin)
        return booking

    monkeypatch.setattr(quote_module, "lock_booking", lock_then_accept_elsewhere)


async def test_concurrent_carrier_acceptance_loses_on_slot_write(
    client, db, make_user, make_booking, make_fleet, auth, session_factory, monkeypatch
):
    shipper = await make_user("shipper")
    admin = await make_user("admin")
    first = await make_user("carrier")
    second = await make_user("carrier")
    booking = await make_booking(shipper)
    first_id = (await _submit(client, auth, first, booking, await make_fleet(first))).json()["data"]["id"]
    second_id = (await _submit(client, auth, second, booking, await make_fleet(second))).json()["data"]["id"]
    _accept_elsewhere_after_lock(monkeypatch, session_factory, second_id, admin)

    with pytest.raises(ConflictError, match="Carrier already assigned"):
        await QuoteService(db).accept_quote(first_id, admin)

    async with session_factory() as session:
        row = await session.get(Booking, booking.id)
        assert row.carrier_id == second.id
        assert row.status == "booked"
        assert (await session.get(Quote, second_id)).status == "accepted"
        assert (await session.get(Quote, first_id)).status == "rejected"
    assert await _notification_types(session_factory, first.id) == []


async def test_concurrent_escort_acceptance_loses_on_slot_write(
    client, db, make_user, make_booking, make_fleet, auth, session_factory, monkeypatch
):
    shipper = await make_user("shipper")
    admin = await make_user("admin")
    first = await make_user("escort")
    second = await make_user("escort")
    booking = await make_booking(shipper, requires_escort=True)
    first_id = (await _submit(client, auth, first, booking, await make_fleet(first))).json()["data"]["id"]
    second_id = (await _submit(client, auth, second, booking, await make_fleet(second))).json()["data"]["id"]
    _accept_elsewhere_after_lock(monkeypatch, session_factory, second_id, admin)

    with pytest.raises(ConflictError, match="Escort already assigned"):
        await QuoteService(db).accept_quote(first_id, admin)

    async with session_factory() as session:
        row = await session.get(Booking, booking.id)
        assert row.escort_id == second.id
        assert row.carrier_id is None
        assert (await session.get(Quote, second_id)).status == "accepted"
        assert (await session.get(Quote, first_id)).status == "pending"


async def test_failed_submission_commit_leaves_no_quote(
    db, make_user, make_booking, make_fleet, session_factory, outbox, monkeypatch
):
    shipper = await make_user("shipper")
    carrier = await make_user("carrier")
    fleet = await make_fleet(carrier)
    booking = await make_booking(shipper)

    async def failing_commit():
        await db.flush()
        raise RuntimeError("connection lost")

    monkeypatch.setattr(db, "commit", failing_commit)
    payload = QuoteCreate(
        booking_id=booking.id,
        amount=1800,
        driver_id=fleet["driver_id"],
        vehicle_id=fleet["vehicle_id"],
        notes="Ready Tuesday",
    )

    with pytest.raises(RuntimeError):
        await QuoteService(db).submit_quote(carrier, payload)

    async with session_factory() as session:
        rows = await session.execute(select(Quote.id).where(Quote.booking_id == booking.id))
        assert rows.first() is None
        assert (await session.get(Booking, booking.id)).status == "pending_quote"
    assert outbox.qsize() == 0


async def test_accepting_escort_quote_keeps_booking_status(
    client, make_user, make_booking, make_fleet, auth, session_factory
):
    shipper = await make_user("shipper")
    admin = await make_user("admin")
    escort = await make_user("escort")
    booking = await make_booking(shipper, requires_escort=True)
    quote_id = (await _submit(client, auth, escort, booking, await make_fleet(escort))).json()["data"]["id"]

    response = await client.put(f"/api/quotes/{quote_id}/accept", headers=auth(admin))

    assert response.status_code == 200
    assert response.json()["message"].endswith("The escort has been assigned to this booking.")
    async with session_factory() as session:
        row = await session.get(Booking, booking.id)
        assert row.escort_id == escort.id
        assert row.carrier_id is None
        assert row.status == "quoted"


async def test_only_admin_accepts_quotes(client, make_user, make_booking, make_fleet, auth):
    shipper = await make_user("shipper")
    carrier = await make_user("carrier")
    booking = await make_booking(shipper)
    quote_id = (await _submit(client, auth, carrier, booking, await make_fleet(carrier))).json()["data"]["id"]

    for user in (shipper, carrier):
        response = await client.put(f"/api/quotes/{quote_id}/accept", headers=auth(user))
        assert response.status_code == 403

    response = await client.put("/api/quotes/missing/accept", headers=auth(await make_user("admin")))
    assert response.status_code == 404


async def test_assign_providers_fills_both_slots(
    client, make_user, make_booking, make_fleet, auth, session_factory
):
    shipper = await make_user("shipper")
    admin = await make_user("admin")
    carrier = await make_user("carrier")
    escort = await make_user("escort")
    rival_escort = await make_user("escort")
    booking = await make_booking(shipper, requires_escort=True)
    carrier_quote = (await _submit(client, auth, carrier, booking, await make_fleet(carrier))).json()["data"]["id"]
    escort_quote = (await _submit(client, auth, escort, booking, await make_fleet(escort))).json()["data"]["id"]
    rival_quote = (
        await _submit(client, auth, rival_escort, booking, await make_fleet(rival_escort))
    ).json()["data"]["id"]

    response = await client.post(
        "/api/admin/assign-providers",
        json={"bookingId": booking.id, "carrierQuoteId": carrier_quote, "escortQuoteId": escort_quote},
        headers=auth(admin),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["carrier_id"] == carrier.id
    assert data["escort_id"] == escort.id
    assert data["booking_status"] == "booked"
    assert data["rejected_quote_ids"] == [rival_quote]

    async with session_factory() as session:
        assert (await session.get(Quote, rival_quote)).status == "rejected"


async def test_assign_providers_requires_carrier_quote(client, make_user, make_booking, auth):
    shipper = await make_user("shipper")
    admin = await make_user("admin")
    booking = await make_booking(shipper)

    response = await client.post("/api/admin/assign-providers", json={"bookingId": booking.id}, headers=auth(admin))
    assert response.status_code == 400

    response = await client.post(
        "/api/admin/assign-providers",
        json={"bookingId": booking.id, "carrierQuoteId": "x"},
        headers=auth(shipper),
    )
    assert response.status_code == 403


async def test_booking_quotes_listed_cheapest_first_for_owner(
    client, make_user, make_booking, make_fleet, auth
):
    shipper = await make_user("shipper")
    outsider = await make_user("shipper")
    cheap = await make_user("carrier", name="Cheap Haul")
    pricey = await make_user("carrier", name="Pricey Haul")
    booking = await make_booking(shipper)
    await _submit(client, auth, pricey, booking, await make_fleet(pricey), amount=5000)
    await _submit(client, auth, cheap, booking, await make_fleet(cheap), amount=1500)

    response = await client.get(f"/api/quotes/booking/{booking.id}", headers=auth(shipper))
    names = [q["provider_name"] for q in response.json()["data"]]
    assert names == ["Cheap Haul", "Pricey Haul"]
    assert response.json()["data"][0]["driver_name"] == "Dana Driver"

    response = await client.get(f"/api/quotes/booking/{booking.id}", headers=auth(outsider))
    assert response.status_code == 403


async def test_my_quotes_and_won_jobs(client, make_user, make_booking, make_fleet, auth):
    shipper = await make_user("shipper")
    admin = await make_user("admin")
    carrier = await make_user("carrier")
    booking = await make_booking(shipper)
    quote_id = (await _submit(client, auth, carrier, booking, await make_fleet(carrier))).json()["data"]["id"]

    response = await client.get("/api/quotes/my-quotes", headers=auth(carrier))
    mine = response.json()["data"]
    assert [q["id"] for q in mine] == [quote_id]
    assert mine[0]["booking"]["id"] == booking.id

    assert (await client.get("/api/quotes/won-jobs", headers=auth(carrier))).json()["data"] == []
    await client.put(f"/api/quotes/{quote_id}/accept", headers=auth(admin))
    won = (await client.get("/api/quotes/won-jobs", headers=auth(carrier))).json()["data"]
    assert [b["id"] for b in won] == [booking.id]

    response = await client.get("/api/quotes/all-admin", headers=auth(admin))
    assert response.json()["data"][0]["shipper_name"] == "Shipper User"
    assert (await client.get("/api/quotes/all-admin", headers=auth(carrier))).status_code == 403
