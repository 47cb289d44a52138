from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, StrictBool

from app.schemas.common import CamelModel


class ProfileUpdate(BaseModel):
    company_name: Optional[str] = None
    contact_person: Optional[str] = None
    contact_number: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    bio: Optional[str] = None
    mc_number: Optional[str] = None
    dot_number: Optional[str] = None
    fleet_size: Optional[int] = Field(default=None, ge=0)
    drivers_license_number: Optional[str] = None
    certification_number: Optional[str] = None
    years_experience: Optional[int] = Field(default=None, ge=0)
    vehicle_details: Optional[str] = None
    service_area: Optional[str] = None
    vehicle_types: List[str] = Field(default_factory=list)
    insurance_info: Dict[str, Any] = Field(default_factory=dict)


class ProfileResponse(ProfileUpdate):
    user_id: str

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: str
    role: str
    status: str
    profile_completed: bool
    email_verified: bool
    email_notifications: bool
    created_at: Optional[datetime] = None
    profile: Optional[ProfileResponse] = None

    model_config = {"from_attributes": True}


class UserListItem(BaseModel):
    id: str
    email: str
    full_name: str
    role: str
    status: str
    profile_completed: bool
    created_at: Optional[datetime] = None
    company_name: Optional[str] = None
    contact_number: Optional[str] = None


class UserStatusUpdate(BaseModel):
    status: Literal["active", "disabled"]


class PasswordChange(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class EmailNotificationPreference(CamelModel):
    email_notifications: StrictBool
