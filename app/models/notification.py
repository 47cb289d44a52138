import enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, JSON, String, Text, func

from app.models.base import Base


class NotificationType(str, enum.Enum):
    BOOKING = "booking"
    MESSAGE = "message"
    QUOTE = "quote"
    QUOTE_ACCEPTED = "quote_accepted"
    BOOKING_UPDATE = "booking_update"
    PAYMENT = "payment"
    REVIEW = "review"
    SYSTEM = "system"


class Notification(Base):
    """In-app notification for a single user. Only ``is_read`` changes after creation."""

    __table_args__ = (Index("ix_notification_user_read", "user_id", "is_read"),)

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String, nullable=True)
    metadata_json = Column("metadata", JSON, nullable=True)

    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)
