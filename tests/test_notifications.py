import httpx
from sqlalchemy import select

from app.models.notification import Notification, NotificationType
from app.services.email import EmailService
from app.services.notifications import NotificationDraft, NotificationService
from app.workers.email_worker import EmailJob, EmailWorker


async def test_notify_stages_email_until_commit(db, make_user, outbox):
    user = await make_user("carrier")
    service = NotificationService(db)

    await service.notify(user.id, NotificationType.QUOTE_ACCEPTED, "Quote Accepted", "You won the load")
    assert outbox.qsize() == 0

    await db.commit()
    jobs = outbox.drain()
    assert jobs == [EmailJob(to_email=user.email, title="Quote Accepted", message="You won the load")]


async def test_rollback_discards_notification_and_email(db, make_user, outbox, session_factory):
    user = await make_user("carrier")
    service = NotificationService(db)

    await service.notify(user.id, NotificationType.MESSAGE, "New Message", "hello")
    await db.rollback()

    assert outbox.qsize() == 0
    async with session_factory() as session:
        rows = await session.execute(select(Notification).where(Notification.user_id == user.id))
        assert rows.first() is None


async def test_opted_out_user_still_gets_notification_row(db, make_user, outbox, session_factory):
    user = await make_user("shipper", email_notifications=False)

    created = await NotificationService(db).deliver(
        [NotificationDraft(user.id, NotificationType.BOOKING_UPDATE, "Booking Update", "Booked")]
    )

    assert created == 1
    assert outbox.qsize() == 0
    async with session_factory() as session:
        row = (await session.execute(select(Notification).where(Notification.user_id == user.id))).scalar_one()
        assert row.is_read is False
        assert row.type == "booking_update"


async def test_deliver_to_admins_skips_disabled_admins(db, make_user, session_factory):
    active = await make_user("admin")
    await make_user("admin", status="disabled")

    created = await NotificationService(db).deliver_to_admins(NotificationType.BOOKING, "New Booking", "x")

    assert created == 1
    async with session_factory() as session:
        rows = await session.execute(select(Notification.user_id))
        assert list(rows.scalars()) == [active.id]


async def test_email_worker_reports_failed_send():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"status": "error", "message": "relay down"})

    service = EmailService(api_url="http://relay.test/send", transport=httpx.MockTransport(handler))
    worker = EmailWorker(email_service=service)

    assert await worker.process(EmailJob("a@example.com", "Title", "Body")) is False


async def test_notification_endpoints(client, make_user, auth, session_factory):
    user = await make_user("shipper")
    other = await make_user("carrier")
    async with session_factory() as session:
        service = NotificationService(session)
        first = await service.notify(user.id, NotificationType.BOOKING_UPDATE, "One", "first")
        second = await service.notify(user.id, NotificationType.MESSAGE, "Two", "second")
        foreign = await service.notify(other.id, NotificationType.MESSAGE, "Three", "third")
        await session.commit()

    response = await client.get("/api/notifications", headers=auth(user))
    data = response.json()["data"]
    assert {n["id"] for n in data["notifications"]} == {first.id, second.id}
    assert data["unread_count"] == 2

    assert (await client.patch(f"/api/notifications/{first.id}/read", headers=auth(user))).status_code == 200
    response = await client.get("/api/notifications/unread-count", headers=auth(user))
    assert response.json()["data"] == {"count": 1}

    assert (await client.patch(f"/api/notifications/{foreign.id}/read", headers=auth(user))).status_code == 404
    assert (await client.delete(f"/api/notifications/{foreign.id}", headers=auth(user))).status_code == 404

    assert (await client.patch("/api/notifications/mark-all-read", headers=auth(user))).status_code == 200
    response = await client.get("/api/notifications/unread-count", headers=auth(user))
    assert response.json()["data"] == {"count": 0}

    assert (await client.delete(f"/api/notifications/{second.id}", headers=auth(user))).status_code == 200
    response = await client.get("/api/notifications?limit=10&offset=0", headers=auth(user))
    assert [n["id"] for n in response.json()["data"]["notifications"]] == [first.id]

    assert (await client.get("/api/notifications?limit=0", headers=auth(user))).status_code == 400
