from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel

from app.schemas.common import CamelModel

Dimension = Union[float, str]


class BookingFields(CamelModel):
    """
    Booking form payload.

    Everything is optional at the schema level; ``BookingService`` reports
    missing or non-numeric fields as a single validation error, matching the
    form the frontend submits.
    """

    pickup_address: Optional[str] = None
    pickup_city: Optional[str] = None
    pickup_state: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_city: Optional[str] = None
    delivery_state: Optional[str] = None
    cargo_type: Optional[str] = None
    cargo_description: Optional[str] = None
    length: Optional[Dimension] = None
    width: Optional[Dimension] = None
    height: Optional[Dimension] = None
    weight: Optional[Dimension] = None
    shipment_date: Optional[str] = None
    flexible_dates: bool = False
    requires_escort: bool = False
    special_instructions: Optional[str] = None


class BookingStatusUpdate(BaseModel):
    status: str


class BookingCreated(BaseModel):
    id: str
    shipper_id: str
    status: str


class BookingReview(BaseModel):
    id: str
    rating: int
    comment: Optional[str] = None

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    id: str
    shipper_id: str
    pickup_address: str
    pickup_city: str
    pickup_state: str
    delivery_address: str
    delivery_city: str
    delivery_state: str
    cargo_type: str
    cargo_description: str
    dimensions_length_ft: float
    dimensions_width_ft: float
    dimensions_height_ft: float
    weight_lbs: float
    shipment_date: str
    flexible_dates: bool
    requires_escort: bool
    special_instructions: Optional[str] = None
    carrier_id: Optional[str] = None
    escort_id: Optional[str] = None
    assigned_driver_id: Optional[str] = None
    agreed_price: Optional[float] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Joined details, filled depending on who is asking
    shipper_name: Optional[str] = None
    shipper_email: Optional[str] = None
    shipper_company: Optional[str] = None
    carrier_name: Optional[str] = None
    escort_name: Optional[str] = None
    review: Optional[BookingReview] = None

    model_config = {"from_attributes": True}


class UnmatchedBookingResponse(BookingResponse):
    carrier_quote_count: int = 0
    escort_quote_count: int = 0
