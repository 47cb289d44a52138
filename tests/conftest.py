import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.core.db import get_db
from app.core.security import create_access_token, hash_password
from app.main import app
from app.models.base import Base
from app.models.booking import Booking, BookingStatus
from app.models.driver import Driver
from app.models.user import User
from app.models.vehicle import Vehicle
from app.workers.email_worker import EmailOutbox, get_outbox, set_outbox

PASSWORD = "correct-horse"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def outbox():
    previous = get_outbox()
    fresh = set_outbox(EmailOutbox(maxsize=100))
    yield fresh
    set_outbox(previous)


@pytest.fixture
async def client(session_factory, outbox):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    async def _make_user(role: str, name: str | None = None, email_notifications: bool = True, **fields) -> User:
        async with session_factory() as session:
            user = User(
                id=str(uuid.uuid4()),
                email=f"{uuid.uuid4().hex[:10]}@example.com",
                hashed_password=PASSWORD_HASH,
                full_name=name or f"{role.title()} User",
                role=role,
                email_notifications=email_notifications,
                **fields,
            )
            session.add(user)
            await session.commit()
            return user

    return _make_user


@pytest.fixture
def make_fleet(session_factory):
    """Give a provider one vehicle and, for carriers, one driver."""

    async def _make_fleet(provider: User) -> dict:
        async with session_factory() as session:
            vehicle = Vehicle(id=str(uuid.uuid4()), owner_id=provider.id, name="Lowboy 1", type="lowboy")
            session.add(vehicle)
            driver = None
            if provider.role == "carrier":
                driver = Driver(
                    id=str(uuid.uuid4()),
                    employer_id=provider.id,
                    name="Dana Driver",
                    email=f"{uuid.uuid4().hex[:8]}@example.com",
                    phone="555-0100",
                )
                session.add(driver)
            await session.commit()
            return {"vehicle_id": vehicle.id, "driver_id": driver.id if driver else None}

    return _make_fleet


@pytest.fixture
def make_booking(session_factory):
    async def _make_booking(shipper: User, **fields) -> Booking:
        values = dict(
            id=str(uuid.uuid4()),
            shipper_id=shipper.id,
            pickup_address="1 Dock Rd",
            pickup_city="Houston",
            pickup_state="TX",
            delivery_address="9 Mill Ave",
            delivery_city="Tulsa",
            delivery_state="OK",
            cargo_type="Excavator",
            cargo_description="CAT 336",
            dimensions_length_ft=40.0,
            dimensions_width_ft=12.0,
            dimensions_height_ft=11.0,
            weight_lbs=80000.0,
            shipment_date="2026-11-01",
            status=BookingStatus.PENDING_QUOTE.value,
        )
        values.update(fields)
        async with session_factory() as session:
            booking = Booking(**values)
            session.add(booking)
            await session.commit()
            return booking

    return _make_booking


@pytest.fixture
def auth():
    def _auth(user: User) -> dict:
        token = create_access_token({"sub": user.id, "email": user.email, "role": user.role})
        return {"Authorization": f"Bearer {token}"}

    return _auth


@pytest.fixture
def booking_form() -> dict:
    return dict(BOOKING_FORM)


BOOKING_FORM = {
    "pickupAddress": "1 Dock Rd",
    "pickupCity": "Houston",
    "pickupState": "TX",
    "deliveryAddress": "9 Mill Ave",
    "deliveryCity": "Tulsa",
    "deliveryState": "OK",
    "cargoType": "Transformer",
    "cargoDescription": "Substation transformer",
    "length": "40",
    "width": "12",
    "height": "14",
    "weight": "12000",
    "shipmentDate": "2026-11-01",
    "requiresEscort": True,
}
