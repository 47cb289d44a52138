from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class Conversation(Base):
    id = Column(String, primary_key=True)
    booking_id = Column(String, ForeignKey("booking.id", ondelete="CASCADE"), nullable=True, index=True)

    # Sorted participant ids plus booking id (or "general"); one conversation per key
    participant_key = Column(String, nullable=False, unique=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    participants = relationship("ConversationParticipant", back_populates="conversation", cascade="all, delete-orphan")
    messages = relationship("Message", back_populates="conversation", cascade="all, delete-orphan")


class ConversationParticipant(Base):
    __tablename__ = "conversation_participant"

    conversation_id = Column(String, ForeignKey("conversation.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String, ForeignKey("user.id", ondelete="CASCADE"), primary_key=True, index=True)

    conversation = relationship("Conversation", back_populates="participants")
    user = relationship("User")


class Message(Base):
    id = Column(String, primary_key=True)
    conversation_id = Column(String, ForeignKey("conversation.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(String, ForeignKey("user.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    conversation = relationship("Conversation", back_populates="messages")
