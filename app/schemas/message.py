from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.schemas.common import CamelModel


class ConversationRequest(CamelModel):
    participant_id: Optional[str] = None
    booking_id: Optional[str] = None


class MessageCreate(CamelModel):
    conversation_id: Optional[str] = None
    content: Optional[str] = None


class ConversationRef(BaseModel):
    id: str


class ConversationSummary(BaseModel):
    id: str
    booking_id: Optional[str] = None
    updated_at: Optional[datetime] = None
    other_user_id: str
    other_user_name: str
    other_user_role: str
    other_user_company: Optional[str] = None
    cargo_type: Optional[str] = None
    last_message: Optional[str] = None
    last_message_time: Optional[datetime] = None
    unread_count: int = 0


class MessageResponse(BaseModel):
    id: str
    conversation_id: str
    sender_id: str
    content: str
    is_read: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
