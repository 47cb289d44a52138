from __future__ import annotations

import logging
import math
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.core.rbac import (
    Role,
    can_accept_quote,
    can_assign_providers,
    can_submit_quote,
    can_view_booking_quotes,
)
from app.models.booking import Booking, BookingStatus, OPEN_STATUSES, TERMINAL_STATUSES
from app.models.driver import Driver
from app.models.notification import NotificationType
from app.models.quote import Quote, QuoteStatus
from app.models.user import User
from app.models.vehicle import Vehicle
from app.schemas.booking import BookingResponse
from app.schemas.common import CreatedResponse
from app.schemas.quote import (
    AdminQuoteResponse,
    AssignmentResult,
    MyQuoteResponse,
    QuoteAcceptResult,
    QuoteCreate,
    QuoteResponse,
)
from app.services.booking import to_response
from app.services.matching import (
    fill_carrier_slot,
    fill_escort_slot,
    lock_booking,
    mark_accepted,
    matching_state,
    reject_competitors,
)
from app.services.notifications import NotificationDraft, NotificationService

logger = logging.getLogger(__name__)

ESCORT_OPEN_STATUSES = OPEN_STATUSES + (BookingStatus.BOOKED.value,)


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class QuoteService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.notifications = NotificationService(db)

    # ------------------------------------------------------------------ #
    # Submission
    # ------------------------------------------------------------------ #

    async def submit_quote(self, provider: User, payload: QuoteCreate) -> CreatedResponse:
        can_submit_quote(provider.role).enforce()
        role = Role.parse(provider.role)

        if _blank(payload.booking_id) or payload.amount is None:
            raise ValidationError("Missing required fields")
        if not math.isfinite(payload.amount) or payload.amount <= 0:
            raise ValidationError("Quote amount must be a positive number")

        try:
            booking = await lock_booking(self.db, payload.booking_id)
            if not booking:
                raise NotFoundError("Booking not found")

            slots = matching_state(booking)
            driver_id: Optional[str] = None
            if role is Role.ESCORT:
                if not booking.requires_escort:
                    raise ConflictError("This booking does not require an escort")
                if not slots.accepts_escort_quotes:
                    raise ConflictError("Escort already assigned to this booking")
                if _blank(payload.vehicle_id) or _blank(payload.notes):
                    raise ValidationError("Missing required fields")
            else:
                if not slots.carrier_open:
                    raise ConflictError("Carrier already assigned to this booking")
                if not slots.accepts_carrier_quotes:
                    raise ConflictError("This booking is no longer accepting quotes")
                if _blank(payload.driver_id) or _blank(payload.vehicle_id) or _blank(payload.notes):
                    raise ValidationError("Missing required fields")
                driver_id = payload.driver_id
                await self._ensure_driver_owned(driver_id, provider.id)

            await self._ensure_vehicle_owned(payload.vehicle_id, provider.id)

            existing = await self.db.execute(
                select(Quote.id).where(Quote.booking_id == booking.id, Quote.provider_id == provider.id)
            )
            if existing.first() is not None:
                raise ConflictError("You have already submitted a quote for this booking")

            quote = Quote(
                id=str(uuid.uuid4()),
                booking_id=booking.id,
                provider_id=provider.id,
                amount=payload.amount,
                driver_id=driver_id,
                vehicle_id=payload.vehicle_id,
                notes=payload.notes.strip(),
                status=QuoteStatus.PENDING.value,
            )
            self.db.add(quote)

            if booking.status == BookingStatus.PENDING_QUOTE.value:
                booking.status = BookingStatus.QUOTED.value

            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("You have already submitted a quote for this booking")
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Quote submitted",
            extra={"quote_id": quote.id, "booking_id": booking.id, "provider_id": provider.id, "role": role.value},
        )

        await self.notifications.deliver_to_admins(
            NotificationType.QUOTE,
            "New Quote Submitted",
            f"{provider.full_name} ({role.value}) quoted ${payload.amount:,.2f} on a "
            f"{booking.cargo_type} booking from {booking.pickup_city} to {booking.delivery_city}",
            link="/dashboard/admin?section=quotes",
            metadata={"bookingId": booking.id, "quoteId": quote.id, "providerId": provider.id},
        )
        return CreatedResponse(id=quote.id)

    async def _ensure_driver_owned(self, driver_id: str, provider_id: str) -> None:
        result = await self.db.execute(
            select(Driver.id).where(Driver.id == driver_id, Driver.employer_id == provider_id)
        )
        if result.first() is None:
            raise ValidationError("Selected driver does not belong to you")

    async def _ensure_vehicle_owned(self, vehicle_id: str, provider_id: str) -> None:
        result = await self.db.execute(
            select(Vehicle.id).where(Vehicle.id == vehicle_id, Vehicle.owner_id == provider_id)
        )
        if result.first() is None:
            raise ValidationError("Selected vehicle does not belong to you")

    # ------------------------------------------------------------------ #
    # Matching
    # ------------------------------------------------------------------ #

    async def _load_quote(self, quote_id: str) -> tuple[Quote, Role]:
        result = await self.db.execute(
            select(Quote, User.role)
            .join(User, Quote.provider_id == User.id)
            .where(Quote.id == quote_id)
            .execution_options(populate_existing=True)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("Quote not found")
        quote, provider_role = row
        role = Role.parse(provider_role)
        if role is None or not role.is_provider:
            raise ConflictError("Quote provider is no longer a carrier or escort")
        return quote, role

    async def _accept(self, booking: Booking, quote: Quote, role: Role) -> List[str]:
        """Apply one acceptance inside the caller's transaction; returns rejected quote ids."""
        if quote.booking_id != booking.id:
            raise ValidationError("Quote does not belong to this booking")
        if quote.status != QuoteStatus.PENDING.value:
            raise ConflictError("Quote is no longer pending")

        if role is Role.ESCORT:
            if not booking.requires_escort:
                raise ConflictError("This booking does not require an escort")
            if booking.escort_id is not None:
                raise ConflictError("Escort already assigned to this booking")
            if booking.status in TERMINAL_STATUSES:
                raise ConflictError(f"Booking is already {booking.status}")
            await fill_escort_slot(self.db, booking, quote)
            await mark_accepted(self.db, quote)
            return []

        if booking.carrier_id is not None:
            raise ConflictError("This booking has already been awarded to a carrier")
        if booking.status in TERMINAL_STATUSES:
            raise ConflictError(f"Booking is already {booking.status}")
        await fill_carrier_slot(self.db, booking, quote)
        await mark_accepted(self.db, quote)
        return await reject_competitors(self.db, booking.id, quote, Role.CARRIER)

    async def accept_quote(self, quote_id: str, acting: User) -> QuoteAcceptResult:
        can_accept_quote(acting.role).enforce()

        try:
            quote, role = await self._load_quote(quote_id)
            booking = await lock_booking(self.db, quote.booking_id)
            if not booking:
                raise NotFoundError("Booking not found")
            rejected = await self._accept(booking, quote, role)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Quote accepted",
            extra={
                "quote_id": quote.id,
                "booking_id": booking.id,
                "provider_id": quote.provider_id,
                "role": role.value,
                "rejected": len(rejected),
                "by": acting.id,
            },
        )

        await self.notifications.deliver(self._acceptance_drafts(booking, [quote]))

        return QuoteAcceptResult(
            quote_id=quote.id,
            booking_id=booking.id,
            provider_id=quote.provider_id,
            provider_role=role.value,
            booking_status=booking.status,
            rejected_quote_ids=rejected,
        )

    async def assign_providers(
        self,
        booking_id: Optional[str],
        carrier_quote_id: Optional[str],
        escort_quote_id: Optional[str],
        acting: User,
    ) -> AssignmentResult:
        can_assign_providers(acting.role).enforce()
        if _blank(booking_id) or _blank(carrier_quote_id):
            raise ValidationError("Booking ID and Carrier Quote ID are required")

        try:
            booking = await lock_booking(self.db, booking_id)
            if not booking:
                raise NotFoundError("Booking not found")

            carrier_quote, carrier_role = await self._load_quote(carrier_quote_id)
            if carrier_role is not Role.CARRIER:
                raise ValidationError("Carrier quote must come from a carrier")

            escort_quote = None
            if not _blank(escort_quote_id):
                escort_quote, escort_role = await self._load_quote(escort_quote_id)
                if escort_role is not Role.ESCORT:
                    raise ValidationError("Escort quote must come from an escort")

            rejected = await self._accept(booking, carrier_quote, Role.CARRIER)
            if escort_quote is not None:
                await self._accept(booking, escort_quote, Role.ESCORT)
                rejected += await reject_competitors(self.db, booking.id, escort_quote, Role.ESCORT)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Providers assigned",
            extra={
                "booking_id": booking.id,
                "carrier_id": booking.carrier_id,
                "escort_id": booking.escort_id,
                "by": acting.id,
            },
        )

        accepted = [carrier_quote] + ([escort_quote] if escort_quote is not None else [])
        await self.notifications.deliver(self._acceptance_drafts(booking, accepted))

        return AssignmentResult(
            booking_id=booking.id,
            carrier_id=booking.carrier_id,
            escort_id=booking.escort_id,
            booking_status=booking.status,
            rejected_quote_ids=rejected,
        )

    def _acceptance_drafts(self, booking: Booking, accepted: List[Quote]) -> List[NotificationDraft]:
        route = f"{booking.pickup_city} to {booking.delivery_city}"
        drafts = [
            NotificationDraft(
                user_id=quote.provider_id,
                type=NotificationType.QUOTE_ACCEPTED,
                title="Quote Accepted",
                message=f"Your quote for the {booking.cargo_type} shipment from {route} has been accepted",
                link="/dashboard?section=jobs",
                metadata={"bookingId": booking.id, "quoteId": quote.id},
            )
            for quote in accepted
        ]
        drafts.append(
            NotificationDraft(
                user_id=booking.shipper_id,
                type=NotificationType.BOOKING_UPDATE,
                title="Provider Assigned",
                message=f"A provider has been assigned to your {booking.cargo_type} shipment from {route}",
                link="/dashboard?section=bookings",
                metadata={"bookingId": booking.id, "status": booking.status},
            )
        )
        return drafts

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def list_available(self, provider: User) -> List[BookingResponse]:
        role = Role.parse(provider.role)
        if role is None or not role.is_provider:
            raise ForbiddenError("Only carriers and escorts can view available bookings")

        quoted = select(Quote.booking_id).where(Quote.provider_id == provider.id)
        shipper = aliased(User)
        query = (
            select(Booking, shipper.full_name)
            .join(shipper, Booking.shipper_id == shipper.id)
            .where(Booking.id.not_in(quoted))
            .order_by(Booking.created_at.desc())
        )
        if role is Role.ESCORT:
            query = query.where(Booking.requires_escort.is_(True), Booking.escort_id.is_(None))
            query = query.where(Booking.status.in_(ESCORT_OPEN_STATUSES))
        else:
            query = query.where(Booking.carrier_id.is_(None), Booking.status.in_(OPEN_STATUSES))

        result = await self.db.execute(query)
        return [to_response(booking, shipper_name=name) for booking, name in result.all()]

    async def list_my_quotes(self, provider: User) -> List[MyQuoteResponse]:
        shipper = aliased(User)
        result = await self.db.execute(
            select(Quote, Booking, shipper.full_name)
            .join(Booking, Quote.booking_id == Booking.id)
            .join(shipper, Booking.shipper_id == shipper.id)
            .where(Quote.provider_id == provider.id)
            .order_by(Quote.created_at.desc())
        )
        return [
            MyQuoteResponse(
                **QuoteResponse.model_validate(quote).model_dump(),
                booking=to_response(booking, shipper_name=shipper_name),
            )
            for quote, booking, shipper_name in result.all()
        ]

    async def list_won_jobs(self, provider: User) -> List[BookingResponse]:
        role = Role.parse(provider.role)
        slot = Booking.escort_id if role is Role.ESCORT else Booking.carrier_id
        shipper = aliased(User)
        result = await self.db.execute(
            select(Booking, shipper.full_name)
            .join(shipper, Booking.shipper_id == shipper.id)
            .where(slot == provider.id)
            .order_by(Booking.updated_at.desc())
        )
        return [to_response(booking, shipper_name=name) for booking, name in result.all()]

    async def list_for_booking(self, booking_id: str, user: User) -> List[QuoteResponse]:
        booking = await self.db.get(Booking, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        can_view_booking_quotes(user.role, user.id, booking).enforce()

        result = await self.db.execute(
            select(Quote, User.full_name, User.role, Driver.name, Vehicle.name)
            .join(User, Quote.provider_id == User.id)
            .outerjoin(Driver, Quote.driver_id == Driver.id)
            .outerjoin(Vehicle, Quote.vehicle_id == Vehicle.id)
            .where(Quote.booking_id == booking_id)
            .order_by(Quote.amount.asc())
        )
        return [
            QuoteResponse.model_validate(quote).model_copy(
                update={
                    "provider_name": provider_name,
                    "provider_role": provider_role,
                    "driver_name": driver_name,
                    "vehicle_name": vehicle_name,
                }
            )
            for quote, provider_name, provider_role, driver_name, vehicle_name in result.all()
        ]

    async def list_all(self, acting: User) -> List[AdminQuoteResponse]:
        can_accept_quote(acting.role).enforce()

        provider = aliased(User)
        shipper = aliased(User)
        result = await self.db.execute(
            select(Quote, provider.full_name, provider.role, Booking, shipper.full_name)
            .join(provider, Quote.provider_id == provider.id)
            .join(Booking, Quote.booking_id == Booking.id)
            .join(shipper, Booking.shipper_id == shipper.id)
            .order_by(Quote.created_at.desc())
        )
        return [
            AdminQuoteResponse(
                **QuoteResponse.model_validate(quote).model_dump(exclude={"provider_name", "provider_role"}),
                provider_name=provider_name,
                provider_role=provider_role,
                shipper_name=shipper_name,
                cargo_type=booking.cargo_type,
                pickup_city=booking.pickup_city,
                pickup_state=booking.pickup_state,
                delivery_city=booking.delivery_city,
                delivery_state=booking.delivery_state,
                shipment_date=booking.shipment_date,
            )
            for quote, provider_name, provider_role, booking, shipper_name in result.all()
        ]
