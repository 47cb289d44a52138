from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.schemas.common import CamelModel


class ReviewCreate(CamelModel):
    booking_id: Optional[str] = None
    subject_id: Optional[str] = None
    rating: Optional[int] = None
    comment: Optional[str] = None


class ReviewResponse(BaseModel):
    id: str
    booking_id: str
    reviewer_id: str
    subject_id: str
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

    reviewer_name: Optional[str] = None
    reviewer_company: Optional[str] = None
    subject_name: Optional[str] = None
    subject_company: Optional[str] = None
    cargo_type: Optional[str] = None

    model_config = {"from_attributes": True}


class ProviderStats(BaseModel):
    total_reviews: int
    # None when the provider has no reviews yet
    average_rating: Optional[float] = None
