from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.common import CamelModel


class VehicleCreate(CamelModel):
    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    plate_number: Optional[str] = None
    capacity: Optional[str] = None


class VehicleUpdate(VehicleCreate):
    status: Optional[str] = None


class VehicleResponse(BaseModel):
    id: str
    owner_id: str
    name: str
    type: str
    plate_number: Optional[str] = None
    capacity: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
