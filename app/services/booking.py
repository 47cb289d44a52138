from __future__ import annotations

import logging
import math
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.core.errors import ConflictError, ForbiddenError, NotFoundError, NotFoundOrUnauthorized, ValidationError
from app.core.rbac import Role, can_create_booking, can_set_booking_status, can_view_booking
from app.models.booking import Booking, BookingStatus, TERMINAL_STATUSES
from app.models.driver import Driver
from app.models.notification import NotificationType
from app.models.profile import Profile
from app.models.quote import Quote, QuoteStatus
from app.models.review import Review
from app.models.user import User
from app.schemas.booking import BookingCreated, BookingFields, BookingResponse, BookingReview
from app.services.notifications import NotificationDraft, NotificationService

logger = logging.getLogger(__name__)

REQUIRED_TEXT_FIELDS = (
    "pickup_address",
    "pickup_city",
    "pickup_state",
    "delivery_address",
    "delivery_city",
    "delivery_state",
    "cargo_type",
    "cargo_description",
    "shipment_date",
)

# form field -> column
DIMENSION_FIELDS = {
    "length": "dimensions_length_ft",
    "width": "dimensions_width_ft",
    "height": "dimensions_height_ft",
    "weight": "weight_lbs",
}

SETTABLE_STATUSES = (
    BookingStatus.IN_TRANSIT.value,
    BookingStatus.DELIVERED.value,
    BookingStatus.COMPLETED.value,
    BookingStatus.CANCELLED.value,
    BookingStatus.BOOKED.value,
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_dimension(value: Any) -> Optional[float]:
    """Parse a numeric form value; returns None when it is not a positive finite number."""
    if isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def booking_columns_from_fields(fields: BookingFields) -> Dict[str, Any]:
    """Validate the booking form and map it onto Booking columns."""
    missing = [name for name in REQUIRED_TEXT_FIELDS if _is_blank(getattr(fields, name))]
    missing += [name for name in DIMENSION_FIELDS if _is_blank(getattr(fields, name))]
    if missing:
        raise ValidationError("Please provide all required fields")

    columns: Dict[str, Any] = {name: getattr(fields, name).strip() for name in REQUIRED_TEXT_FIELDS}
    for form_name, column in DIMENSION_FIELDS.items():
        number = parse_dimension(getattr(fields, form_name))
        if number is None:
            raise ValidationError(f"{form_name} must be a positive number")
        columns[column] = number

    columns["flexible_dates"] = bool(fields.flexible_dates)
    columns["requires_escort"] = bool(fields.requires_escort)
    columns["special_instructions"] = (fields.special_instructions or "").strip() or None
    return columns


def to_response(booking: Booking, **extra: Any) -> BookingResponse:
    response = BookingResponse.model_validate(booking)
    if extra:
        response = response.model_copy(update=extra)
    return response


class BookingService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.notifications = NotificationService(db)

    async def driver_id_for_user(self, user_id: str) -> Optional[str]:
        result = await self.db.execute(select(Driver.id).where(Driver.user_id == user_id))
        return result.scalar_one_or_none()

    async def _get(self, booking_id: str) -> Booking:
        booking = await self.db.get(Booking, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    async def _get_owned(self, booking_id: str, shipper_id: str) -> Booking:
        result = await self.db.execute(
            select(Booking).where(Booking.id == booking_id, Booking.shipper_id == shipper_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundOrUnauthorized("Booking not found or unauthorized")
        return booking

    async def quote_count(self, booking_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Quote).where(Quote.booking_id == booking_id)
        )
        return result.scalar() or 0

    async def create_booking(self, user: User, fields: BookingFields) -> BookingCreated:
        can_create_booking(user.role).enforce()
        columns = booking_columns_from_fields(fields)

        booking = Booking(
            id=str(uuid.uuid4()),
            shipper_id=user.id,
            status=BookingStatus.PENDING_QUOTE.value,
            **columns,
        )
        self.db.add(booking)
        await self.db.commit()
        logger.info("Booking created", extra={"booking_id": booking.id, "shipper_id": user.id})

        await self.notifications.deliver_to_admins(
            NotificationType.BOOKING,
            "New Booking Request",
            f"New {booking.cargo_type} booking from {booking.pickup_city}, {booking.pickup_state} "
            f"to {booking.delivery_city}, {booking.delivery_state}",
            link="/dashboard/admin?section=bookings",
            metadata={"bookingId": booking.id, "shipperId": user.id},
        )

        return BookingCreated(id=booking.id, shipper_id=user.id, status=booking.status)

    def _without_quotes(self):
        return ~exists().where(Quote.booking_id == Booking.id)

    async def update_booking(self, booking_id: str, shipper_id: str, fields: BookingFields) -> BookingResponse:
        """
        Edit a booking that nobody has quoted on yet.

        The booking row is locked before counting quotes, and the write itself
        only matches while no quote exists, so a quote committed between the
        count and the write makes the edit fail instead of slipping through.
        """
        columns = booking_columns_from_fields(fields)

        try:
            booking = await self._get_owned(booking_id, shipper_id)
            if await self.quote_count(booking_id) > 0:
                raise ConflictError("Cannot edit booking after quotes have been submitted")

            result = await self.db.execute(
                update(Booking)
                .where(Booking.id == booking_id, self._without_quotes())
                .values(**columns)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ConflictError("Cannot edit booking after quotes have been submitted")
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(booking)
        return to_response(booking)

    async def delete_booking(self, booking_id: str, shipper_id: str) -> None:
        try:
            await self._get_owned(booking_id, shipper_id)
            if await self.quote_count(booking_id) > 0:
                raise ConflictError("Cannot delete booking after quotes have been submitted")

            result = await self.db.execute(
                delete(Booking)
                .where(Booking.id == booking_id, self._without_quotes())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ConflictError("Cannot delete booking after quotes have been submitted")
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Booking deleted", extra={"booking_id": booking_id})

    async def get_booking(self, booking_id: str, user: User) -> BookingResponse:
        booking = await self._get(booking_id)
        driver_id = await self.driver_id_for_user(user.id) if user.role == Role.DRIVER.value else None
        can_view_booking(user.role, user.id, booking, driver_id).enforce()
        return to_response(booking)

    async def list_my_bookings(self, user: User) -> List[BookingResponse]:
        role = Role.parse(user.role)
        if role is Role.SHIPPER:
            return await self._list_for_shipper(user.id)
        if role is Role.ADMIN:
            return await self._list_all()
        if role is Role.CARRIER:
            return await self._list_assigned(Booking.carrier_id == user.id)
        if role is Role.ESCORT:
            return await self._list_assigned(Booking.escort_id == user.id)
        if role is Role.DRIVER:
            driver_id = await self.driver_id_for_user(user.id)
            if driver_id is None:
                return []
            return await self._list_assigned(Booking.assigned_driver_id == driver_id)
        raise ForbiddenError("Unauthorized role")

    async def _list_for_shipper(self, shipper_id: str) -> List[BookingResponse]:
        carrier = aliased(User)
        escort = aliased(User)
        result = await self.db.execute(
            select(Booking, carrier.full_name, escort.full_name, Review)
            .outerjoin(carrier, Booking.carrier_id == carrier.id)
            .outerjoin(escort, Booking.escort_id == escort.id)
            .outerjoin(Review, (Review.booking_id == Booking.id) & (Review.reviewer_id == shipper_id))
            .where(Booking.shipper_id == shipper_id)
            .order_by(Booking.created_at.desc())
        )
        return [
            to_response(
                booking,
                carrier_name=carrier_name,
                escort_name=escort_name,
                review=BookingReview.model_validate(review) if review else None,
            )
            for booking, carrier_name, escort_name, review in result.all()
        ]

    async def _list_assigned(self, condition) -> List[BookingResponse]:
        shipper = aliased(User)
        result = await self.db.execute(
            select(Booking, shipper.full_name)
            .join(shipper, Booking.shipper_id == shipper.id)
            .where(condition)
            .order_by(Booking.created_at.desc())
        )
        return [to_response(booking, shipper_name=name) for booking, name in result.all()]

    async def _list_all(self) -> List[BookingResponse]:
        shipper = aliased(User)
        carrier = aliased(User)
        escort = aliased(User)
        result = await self.db.execute(
            select(
                Booking,
                shipper.full_name,
                shipper.email,
                Profile.company_name,
                carrier.full_name,
                escort.full_name,
            )
            .join(shipper, Booking.shipper_id == shipper.id)
            .outerjoin(Profile, Profile.user_id == shipper.id)
            .outerjoin(carrier, Booking.carrier_id == carrier.id)
            .outerjoin(escort, Booking.escort_id == escort.id)
            .order_by(Booking.created_at.desc())
        )
        return [
            to_response(
                booking,
                shipper_name=shipper_name,
                shipper_email=shipper_email,
                shipper_company=company,
                carrier_name=carrier_name,
                escort_name=escort_name,
            )
            for booking, shipper_name, shipper_email, company, carrier_name, escort_name in result.all()
        ]

    async def set_status(self, booking_id: str, status: str, user: User) -> BookingResponse:
        if status not in SETTABLE_STATUSES:
            raise ValidationError("Invalid status")

        try:
            result = await self.db.execute(
                select(Booking).where(Booking.id == booking_id).with_for_update()
            )
            booking = result.scalar_one_or_none()
            if not booking:
                raise NotFoundError("Booking not found")

            driver_id = await self.driver_id_for_user(user.id) if user.role == Role.DRIVER.value else None
            can_set_booking_status(user.role, user.id, booking, driver_id).enforce()

            if booking.status in TERMINAL_STATUSES and booking.status != status:
                raise ConflictError(f"Booking is already {booking.status}")
            if status == BookingStatus.BOOKED.value and booking.carrier_id is None:
                raise ConflictError("A carrier must be assigned before the booking can be booked")

            previous = booking.status
            booking.status = status

            rejected = 0
            if status == BookingStatus.CANCELLED.value:
                rejected_result = await self.db.execute(
                    update(Quote)
                    .where(Quote.booking_id == booking_id, Quote.status == QuoteStatus.PENDING.value)
                    .values(status=QuoteStatus.REJECTED.value)
                    .execution_options(synchronize_session=False)
                )
                rejected = rejected_result.rowcount or 0

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(booking)
        logger.info(
            "Booking status changed",
            extra={"booking_id": booking_id, "from": previous, "to": status, "by": user.id, "rejected_quotes": rejected},
        )

        recipients = {booking.shipper_id, booking.carrier_id, booking.escort_id}
        if booking.assigned_driver_id:
            recipients.add(await self.db.scalar(select(Driver.user_id).where(Driver.id == booking.assigned_driver_id)))
        recipients -= {None, user.id}
        label = status.replace("_", " ")
        await self.notifications.deliver(
            NotificationDraft(
                user_id=recipient,
                type=NotificationType.BOOKING_UPDATE,
                title="Booking Status Updated",
                message=f"Your {booking.cargo_type} booking is now {label}",
                link="/dashboard?section=bookings",
                metadata={"bookingId": booking.id, "status": status},
            )
            for recipient in recipients
        )
        return to_response(booking)
