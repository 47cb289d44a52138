"""
Matching state of a booking and the guarded slot writes used to fill it.

A booking is ``OPEN`` until a provider quotes, ``QUOTED`` while quotes are
waiting, and ``MATCHED`` once a carrier fills the carrier slot. The escort slot
is tracked separately and never moves the booking status.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError
from app.core.rbac import Role
from app.models.booking import Booking, BookingStatus, OPEN_STATUSES, TERMINAL_STATUSES
from app.models.quote import Quote, QuoteStatus
from app.models.user import User


class MatchingState(str, enum.Enum):
    OPEN = "open"
    QUOTED = "quoted"
    MATCHED = "matched"
    CLOSED = "closed"


@dataclass(frozen=True)
class SlotState:
    matching: MatchingState
    carrier_open: bool
    escort_required: bool
    escort_open: bool

    @property
    def accepts_carrier_quotes(self) -> bool:
        return self.matching in (MatchingState.OPEN, MatchingState.QUOTED) and self.carrier_open

    @property
    def accepts_escort_quotes(self) -> bool:
        return self.escort_required and self.escort_open and self.matching is not MatchingState.CLOSED


def matching_state(booking: Booking) -> SlotState:
    if booking.status in TERMINAL_STATUSES:
        state = MatchingState.CLOSED
    elif booking.carrier_id is not None:
        state = MatchingState.MATCHED
    elif booking.status == BookingStatus.QUOTED.value:
        state = MatchingState.QUOTED
    elif booking.status in OPEN_STATUSES:
        state = MatchingState.OPEN
    else:
        state = MatchingState.CLOSED

    return SlotState(
        matching=state,
        carrier_open=booking.carrier_id is None,
        escort_required=bool(booking.requires_escort),
        escort_open=booking.escort_id is None,
    )


async def lock_booking(db: AsyncSession, booking_id: str) -> Optional[Booking]:
    """Load a booking with a row lock held until the transaction ends."""
    result = await db.execute(
        select(Booking)
        .where(Booking.id == booking_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def fill_carrier_slot(db: AsyncSession, booking: Booking, quote: Quote) -> None:
    """
    Bind the quote's carrier to the booking and mark it booked.

    The update only matches while the slot is still empty, so a racing
    acceptance that slipped past the row lock loses with ``ConflictError``.
    """
    result = await db.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.carrier_id.is_(None))
        .values(
            carrier_id=quote.provider_id,
            assigned_driver_id=quote.driver_id,
            agreed_price=quote.amount,
            status=BookingStatus.BOOKED.value,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError("Carrier already assigned to this booking")

    booking.carrier_id = quote.provider_id
    booking.assigned_driver_id = quote.driver_id
    booking.agreed_price = Decimal(quote.amount)
    booking.status = BookingStatus.BOOKED.value


async def fill_escort_slot(db: AsyncSession, booking: Booking, quote: Quote) -> None:
    result = await db.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.escort_id.is_(None))
        .values(escort_id=quote.provider_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError("Escort already assigned to this booking")

    booking.escort_id = quote.provider_id


async def mark_accepted(db: AsyncSession, quote: Quote) -> None:
    result = await db.execute(
        update(Quote)
        .where(Quote.id == quote.id, Quote.status == QuoteStatus.PENDING.value)
        .values(status=QuoteStatus.ACCEPTED.value)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError("Quote is no longer pending")
    quote.status = QuoteStatus.ACCEPTED.value


async def reject_competitors(db: AsyncSession, booking_id: str, accepted: Quote, role: Role) -> List[str]:
    """Reject every other pending quote on the booking from providers of ``role``."""
    result = await db.execute(
        select(Quote.id)
        .join(User, Quote.provider_id == User.id)
        .where(
            Quote.booking_id == booking_id,
            Quote.id != accepted.id,
            Quote.status == QuoteStatus.PENDING.value,
            User.role == role.value,
        )
    )
    competitor_ids = list(result.scalars().all())
    if competitor_ids:
        await db.execute(
            update(Quote)
            .where(Quote.id.in_(competitor_ids))
            .values(status=QuoteStatus.REJECTED.value)
            .execution_options(synchronize_session=False)
        )
    return competitor_ids
