from __future__ import annotations

from typing import List

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.core.rbac import PROVIDER_ROLES, Role
from app.models.booking import Booking, OPEN_STATUSES
from app.models.driver import Driver
from app.models.profile import Profile
from app.models.quote import Quote
from app.models.user import User
from app.models.vehicle import Vehicle
from app.schemas.admin import AdminStats
from app.schemas.booking import BookingResponse, UnmatchedBookingResponse
from app.schemas.driver import DriverResponse
from app.schemas.vehicle import VehicleResponse
from app.services.booking import to_response


class AdminService:
    """Back-office reads. Callers are checked with ``require_admin`` in the router."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def _quote_count(self, role: Role):
        provider = aliased(User)
        return (
            select(func.count(Quote.id))
            .join(provider, Quote.provider_id == provider.id)
            .where(Quote.booking_id == Booking.id, provider.role == role.value)
            .correlate(Booking)
            .scalar_subquery()
        )

    def _unmatched_query(self):
        return (
            select(
                Booking,
                User.full_name,
                Profile.company_name,
                self._quote_count(Role.CARRIER).label("carrier_quote_count"),
                self._quote_count(Role.ESCORT).label("escort_quote_count"),
            )
            .join(User, Booking.shipper_id == User.id)
            .outerjoin(Profile, Profile.user_id == Booking.shipper_id)
            .where(Booking.status.in_(OPEN_STATUSES))
            .order_by(Booking.created_at.desc())
        )

    async def unmatched_bookings(self, limit: int | None = None) -> List[UnmatchedBookingResponse]:
        query = self._unmatched_query()
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return [
            UnmatchedBookingResponse(
                **to_response(booking, shipper_name=shipper_name, shipper_company=company).model_dump(),
                carrier_quote_count=carrier_count or 0,
                escort_quote_count=escort_count or 0,
            )
            for booking, shipper_name, company, carrier_count, escort_count in result.all()
        ]

    async def stats(self) -> AdminStats:
        users = await self.db.execute(
            select(
                func.count(case((User.role == Role.SHIPPER.value, 1))),
                func.count(case((User.role == Role.CARRIER.value, 1))),
                func.count(case((User.role == Role.ESCORT.value, 1))),
            )
        )
        shippers, carriers, escorts = users.one()

        bookings = await self.db.scalar(select(func.count(Booking.id)))
        pending = await self.db.scalar(
            select(func.count(User.id)).where(
                User.profile_completed.is_(False),
                User.role.in_([role.value for role in PROVIDER_ROLES]),
            )
        )

        return AdminStats(
            shippers=shippers or 0,
            carriers=carriers or 0,
            escorts=escorts or 0,
            bookings=bookings or 0,
            pending_verifications=pending or 0,
            latest_unmatched=await self.unmatched_bookings(limit=3),
        )

    async def user_bookings(self, user_id: str) -> List[BookingResponse]:
        shipper = aliased(User)
        carrier = aliased(User)
        escort = aliased(User)
        result = await self.db.execute(
            select(Booking, shipper.full_name, Profile.company_name, carrier.full_name, escort.full_name)
            .outerjoin(shipper, Booking.shipper_id == shipper.id)
            .outerjoin(Profile, Profile.user_id == Booking.shipper_id)
            .outerjoin(carrier, Booking.carrier_id == carrier.id)
            .outerjoin(escort, Booking.escort_id == escort.id)
            .where(or_(Booking.shipper_id == user_id, Booking.carrier_id == user_id, Booking.escort_id == user_id))
            .order_by(Booking.created_at.desc())
        )
        return [
            to_response(
                booking,
                shipper_name=shipper_name,
                shipper_company=company,
                carrier_name=carrier_name,
                escort_name=escort_name,
            )
            for booking, shipper_name, company, carrier_name, escort_name in result.all()
        ]

    async def user_drivers(self, user_id: str) -> List[DriverResponse]:
        result = await self.db.execute(
            select(Driver).where(Driver.employer_id == user_id).order_by(Driver.name.asc())
        )
        return [DriverResponse.model_validate(driver) for driver in result.scalars().all()]

    async def user_vehicles(self, user_id: str) -> List[VehicleResponse]:
        result = await self.db.execute(
            select(Vehicle).where(Vehicle.owner_id == user_id).order_by(Vehicle.created_at.desc())
        )
        return [VehicleResponse.model_validate(vehicle) for vehicle in result.scalars().all()]
