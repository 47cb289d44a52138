from __future__ import annotations

import logging
import uuid
from typing import List

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.rbac import can_review_booking
from app.models.booking import Booking, REVIEWABLE_STATUSES
from app.models.notification import NotificationType
from app.models.profile import Profile
from app.models.review import Review
from app.models.user import User
from app.schemas.review import ProviderStats, ReviewCreate, ReviewResponse
from app.services.notifications import NotificationService

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.notifications = NotificationService(db)

    async def submit_review(self, reviewer: User, payload: ReviewCreate) -> ReviewResponse:
        if not payload.booking_id or not payload.subject_id or payload.rating is None:
            raise ValidationError("Missing required fields")
        if isinstance(payload.rating, bool) or not 1 <= payload.rating <= 5:
            raise ValidationError("Rating must be a whole number between 1 and 5")

        booking = await self.db.get(Booking, payload.booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        can_review_booking(reviewer.id, booking).enforce()
        if booking.status not in REVIEWABLE_STATUSES:
            raise ConflictError("Booking must be completed before reviewing")
        if payload.subject_id not in (booking.carrier_id, booking.escort_id):
            raise ValidationError("Reviews can only be left for the carrier or escort of this booking")

        existing = await self.db.execute(
            select(Review.id).where(Review.booking_id == booking.id, Review.reviewer_id == reviewer.id)
        )
        if existing.first() is not None:
            raise ConflictError("You have already reviewed this booking")

        try:
            review = Review(
                id=str(uuid.uuid4()),
                booking_id=booking.id,
                reviewer_id=reviewer.id,
                subject_id=payload.subject_id,
                rating=payload.rating,
                comment=payload.comment,
            )
            self.db.add(review)
            await self.db.flush()

            subject_role = await self.db.scalar(select(User.role).where(User.id == payload.subject_id))
            await self.notifications.notify(
                payload.subject_id,
                NotificationType.REVIEW,
                "New Review Received",
                f"You received a {payload.rating}-star review for {booking.cargo_type}",
                link=f"/dashboard/{subject_role or 'carrier'}?section=reviews",
                metadata={"reviewId": review.id, "bookingId": booking.id},
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("You have already reviewed this booking")
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Review submitted", extra={"review_id": review.id, "booking_id": booking.id})
        return ReviewResponse.model_validate(review)

    async def provider_reviews(self, provider_id: str) -> List[ReviewResponse]:
        result = await self.db.execute(
            select(Review, User.full_name, Profile.company_name)
            .join(User, Review.reviewer_id == User.id)
            .outerjoin(Profile, Profile.user_id == User.id)
            .where(Review.subject_id == provider_id)
            .order_by(Review.created_at.desc())
        )
        return [
            ReviewResponse.model_validate(review).model_copy(
                update={"reviewer_name": name, "reviewer_company": company}
            )
            for review, name, company in result.all()
        ]

    async def my_reviews(self, user_id: str) -> List[ReviewResponse]:
        result = await self.db.execute(
            select(Review, User.full_name, Profile.company_name, Booking.cargo_type)
            .join(User, Review.subject_id == User.id)
            .outerjoin(Profile, Profile.user_id == User.id)
            .join(Booking, Review.booking_id == Booking.id)
            .where(Review.reviewer_id == user_id)
            .order_by(Review.created_at.desc())
        )
        return [
            ReviewResponse.model_validate(review).model_copy(
                update={"subject_name": name, "subject_company": company, "cargo_type": cargo_type}
            )
            for review, name, company, cargo_type in result.all()
        ]

    async def provider_stats(self, provider_id: str) -> ProviderStats:
        result = await self.db.execute(
            select(func.count(Review.id), func.avg(Review.rating)).where(Review.subject_id == provider_id)
        )
        total, average = result.one()
        return ProviderStats(
            total_reviews=total or 0,
            average_rating=float(average) if total else None,
        )
