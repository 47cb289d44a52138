"""Pydantic schemas."""

from app.schemas.common import ApiResponse  # noqa: F401
from app.schemas.booking import BookingFields, BookingResponse  # noqa: F401
from app.schemas.quote import AssignProvidersRequest, QuoteCreate, QuoteResponse  # noqa: F401
from app.schemas.message import ConversationRequest, MessageCreate, MessageResponse  # noqa: F401
from app.schemas.notification import NotificationListResponse, NotificationResponse  # noqa: F401
from app.schemas.review import ProviderStats, ReviewCreate, ReviewResponse  # noqa: F401
