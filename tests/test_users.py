from sqlalchemy import select

from app.core.security import verify_password
from app.models.driver import Driver
from app.models.user import User

PASSWORD = "correct-horse"


async def test_profile_save_marks_profile_completed(client, make_user, auth):
    carrier = await make_user("carrier")

    response = await client.post(
        "/api/users/profile",
        json={"company_name": "Big Rig LLC", "vehicle_types": ["lowboy", "rgn", "lowboy"], "fleet_size": 4},
        headers=auth(carrier),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["profile_completed"] is True
    assert data["profile"]["company_name"] == "Big Rig LLC"
    assert data["profile"]["vehicle_types"] == ["lowboy", "rgn"]

    response = await client.post("/api/users/profile", json={"company_name": "Bigger Rig"}, headers=auth(carrier))
    assert response.json()["data"]["profile"]["company_name"] == "Bigger Rig"


async def test_change_password(client, make_user, auth, session_factory):
    user = await make_user("shipper")

    response = await client.patch(
        "/api/users/password",
        json={"currentPassword": "wrong-password", "newPassword": "new-password-1"},
        headers=auth(user),
    )
    assert response.status_code == 401

    response = await client.patch(
        "/api/users/password", json={"currentPassword": PASSWORD, "newPassword": "short"}, headers=auth(user)
    )
    assert response.status_code == 400

    response = await client.patch(
        "/api/users/password",
        json={"currentPassword": PASSWORD, "newPassword": "new-password-1"},
        headers=auth(user),
    )
    assert response.status_code == 200
    async with session_factory() as session:
        stored = await session.get(User, user.id)
        assert verify_password("new-password-1", stored.hashed_password)


async def test_email_notification_preference_requires_boolean(client, make_user, auth, session_factory):
    user = await make_user("shipper")

    response = await client.patch("/api/users/notifications", json={"emailNotifications": "no"}, headers=auth(user))
    assert response.status_code == 400

    response = await client.patch("/api/users/notifications", json={"emailNotifications": False}, headers=auth(user))
    assert response.status_code == 200
    async with session_factory() as session:
        assert (await session.get(User, user.id)).email_notifications is False


async def test_admin_disables_user(client, make_user, auth):
    admin = await make_user("admin")
    carrier = await make_user("carrier")

    response = await client.patch(f"/api/users/{carrier.id}/status", json={"status": "disabled"}, headers=auth(admin))
    assert response.status_code == 200

    response = await client.get("/api/users/me", headers=auth(carrier))
    assert response.status_code == 403
    assert response.json()["message"] == "Your account has been disabled"

    response = await client.patch(f"/api/users/{admin.id}/status", json={"status": "disabled"}, headers=auth(carrier))
    assert response.status_code == 403


async def test_user_visibility_and_role_listing(client, make_user, auth):
    admin = await make_user("admin")
    shipper = await make_user("shipper")
    carrier = await make_user("carrier")
    other_shipper = await make_user("shipper")

    assert (await client.get(f"/api/users/{carrier.id}", headers=auth(shipper))).status_code == 200
    assert (await client.get(f"/api/users/{other_shipper.id}", headers=auth(shipper))).status_code == 403
    assert (await client.get(f"/api/users/{shipper.id}", headers=auth(carrier))).status_code == 403

    listed = (await client.get("/api/users/list/shipper", headers=auth(admin))).json()["data"]
    assert {u["id"] for u in listed} == {shipper.id, other_shipper.id}
    assert (await client.get("/api/users/list/pilot", headers=auth(admin))).status_code == 400
    assert (await client.get("/api/users/list/shipper", headers=auth(shipper))).status_code == 403


async def test_carrier_creates_and_deletes_driver_account(client, make_user, auth, session_factory):
    carrier = await make_user("carrier")
    escort = await make_user("escort")
    body = {"name": "Dee Driver", "email": "dee@example.com", "phone": "555-0101", "password": "drive-safe-1"}

    response = await client.post("/api/drivers", json=body, headers=auth(carrier))
    assert response.status_code == 201
    driver = response.json()["data"]
    assert driver["employer_id"] == carrier.id

    async with session_factory() as session:
        login = await session.get(User, driver["user_id"])
        assert login.role == "driver"

    assert (await client.post("/api/drivers", json=body, headers=auth(carrier))).status_code == 400
    assert (await client.post("/api/drivers", json=dict(body, email="e@example.com"), headers=auth(escort))).status_code == 403

    listed = (await client.get("/api/drivers", headers=auth(carrier))).json()["data"]
    assert [d["id"] for d in listed] == [driver["id"]]

    assert (await client.delete(f"/api/drivers/{driver['id']}", headers=auth(escort))).status_code == 404
    assert (await client.delete(f"/api/drivers/{driver['id']}", headers=auth(carrier))).status_code == 200

    async with session_factory() as session:
        assert await session.get(Driver, driver["id"]) is None
        rows = await session.execute(select(User).where(User.id == driver["user_id"]))
        assert rows.first() is None


async def test_vehicle_ownership(client, make_user, auth):
    carrier = await make_user("carrier")
    other = await make_user("escort")
    shipper = await make_user("shipper")

    response = await client.post("/api/vehicles", json={"name": "Lowboy 7", "type": "lowboy"}, headers=auth(carrier))
    assert response.status_code == 201
    vehicle = response.json()["data"]
    assert vehicle["status"] == "available"

    assert (await client.post("/api/vehicles", json={"name": "x", "type": "y"}, headers=auth(shipper))).status_code == 403

    update = {"name": "Lowboy 7b", "type": "lowboy", "status": "maintenance"}
    assert (await client.put(f"/api/vehicles/{vehicle['id']}", json=update, headers=auth(other))).status_code == 403
    response = await client.put(f"/api/vehicles/{vehicle['id']}", json=update, headers=auth(carrier))
    assert response.json()["data"]["status"] == "maintenance"

    listed = (await client.get(f"/api/vehicles/provider/{carrier.id}", headers=auth(shipper))).json()["data"]
    assert [v["name"] for v in listed] == ["Lowboy 7b"]

    assert (await client.delete("/api/vehicles/missing", headers=auth(carrier))).status_code == 404
    assert (await client.delete(f"/api/vehicles/{vehicle['id']}", headers=auth(carrier))).status_code == 200
