from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.schemas.booking import BookingResponse
from app.schemas.common import CamelModel


class QuoteCreate(CamelModel):
    booking_id: Optional[str] = None
    amount: Optional[float] = None
    driver_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    notes: Optional[str] = None


class AssignProvidersRequest(CamelModel):
    booking_id: Optional[str] = None
    carrier_quote_id: Optional[str] = None
    escort_quote_id: Optional[str] = None


class QuoteResponse(BaseModel):
    id: str
    booking_id: str
    provider_id: str
    amount: float
    driver_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    notes: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    provider_name: Optional[str] = None
    provider_role: Optional[str] = None
    driver_name: Optional[str] = None
    vehicle_name: Optional[str] = None

    model_config = {"from_attributes": True}


class AdminQuoteResponse(QuoteResponse):
    shipper_name: Optional[str] = None
    cargo_type: Optional[str] = None
    pickup_city: Optional[str] = None
    pickup_state: Optional[str] = None
    delivery_city: Optional[str] = None
    delivery_state: Optional[str] = None
    shipment_date: Optional[str] = None


class MyQuoteResponse(QuoteResponse):
    booking: BookingResponse


class QuoteAcceptResult(BaseModel):
    quote_id: str
    booking_id: str
    provider_id: str
    provider_role: str
    booking_status: str
    rejected_quote_ids: list[str] = []


class AssignmentResult(BaseModel):
    booking_id: str
    carrier_id: str
    escort_id: Optional[str] = None
    booking_status: str
    rejected_quote_ids: list[str] = []
