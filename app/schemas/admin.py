from typing import List

from pydantic import BaseModel

from app.schemas.booking import BookingResponse


class AdminStats(BaseModel):
    shippers: int
    carriers: int
    escorts: int
    bookings: int
    pending_verifications: int
    latest_unmatched: List[BookingResponse]
