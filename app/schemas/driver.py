from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr

from app.schemas.common import CamelModel


class DriverCreate(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    license: Optional[str] = None
    license_expiry: Optional[date] = None
    password: Optional[str] = None


class DriverUpdate(CamelModel):
    name: str
    email: EmailStr
    phone: str
    license: Optional[str] = None
    license_expiry: Optional[date] = None
    status: Optional[str] = None


class DriverResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    employer_id: str
    name: str
    email: str
    phone: str
    license_number: Optional[str] = None
    license_expiry: Optional[date] = None
    status: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
