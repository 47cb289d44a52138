from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.core.rbac import Role
from app.models.booking import Booking
from app.models.conversation import Conversation, ConversationParticipant, Message
from app.models.notification import NotificationType
from app.models.profile import Profile
from app.models.user import User
from app.schemas.message import ConversationRef, ConversationSummary, MessageResponse
from app.services.notifications import NotificationService

logger = logging.getLogger(__name__)

ADMIN_SENTINEL = "admin"


def participant_key(user_a: str, user_b: str, booking_id: Optional[str]) -> str:
    """Identity of a conversation: the unordered user pair plus the booking (or none)."""
    low, high = sorted((user_a, user_b))
    return f"{low}:{high}:{booking_id or 'general'}"


class MessagingService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.notifications = NotificationService(db)

    async def _resolve_participant(self, user_id: str, participant_id: Optional[str]) -> str:
        if not participant_id or not participant_id.strip():
            raise ValidationError("Missing participantId")

        if participant_id == ADMIN_SENTINEL:
            result = await self.db.execute(
                select(User.id).where(User.role == Role.ADMIN.value).order_by(User.created_at.asc()).limit(1)
            )
            admin_id = result.scalar_one_or_none()
            if admin_id is None:
                raise NotFoundError("No admin found to chat with")
            if admin_id == user_id:
                raise ValidationError('Admin cannot chat with themselves as "admin"')
            return admin_id

        if participant_id == user_id:
            raise ValidationError("Cannot start a conversation with yourself")
        if await self.db.get(User, participant_id) is None:
            raise NotFoundError("Participant not found")
        return participant_id

    async def _find(self, key: str) -> Optional[str]:
        result = await self.db.execute(select(Conversation.id).where(Conversation.participant_key == key))
        return result.scalar_one_or_none()

    async def get_or_create_conversation(
        self, user_id: str, participant_id: Optional[str], booking_id: Optional[str] = None
    ) -> ConversationRef:
        other_id = await self._resolve_participant(user_id, participant_id)
        booking_id = booking_id or None
        if booking_id and await self.db.get(Booking, booking_id) is None:
            raise NotFoundError("Booking not found")

        key = participant_key(user_id, other_id, booking_id)
        existing = await self._find(key)
        if existing:
            return ConversationRef(id=existing)

        conversation = Conversation(id=str(uuid.uuid4()), booking_id=booking_id, participant_key=key)
        conversation.participants = [
            ConversationParticipant(user_id=user_id),
            ConversationParticipant(user_id=other_id),
        ]
        self.db.add(conversation)
        try:
            await self.db.commit()
        except IntegrityError:
            # Created concurrently by the other participant
            await self.db.rollback()
            existing = await self._find(key)
            if existing is None:
                raise
            return ConversationRef(id=existing)

        logger.info("Conversation created", extra={"conversation_id": conversation.id, "booking_id": booking_id})
        return ConversationRef(id=conversation.id)

    async def _ensure_participant(self, conversation_id: str, user_id: str) -> None:
        result = await self.db.execute(
            select(ConversationParticipant.user_id).where(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.user_id == user_id,
            )
        )
        if result.first() is None:
            raise ForbiddenError("Unauthorized access to conversation")

    async def list_conversations(self, user_id: str) -> List[ConversationSummary]:
        me = aliased(ConversationParticipant)
        other = aliased(ConversationParticipant)

        last_message = (
            select(Message.content)
            .where(Message.conversation_id == Conversation.id)
            .order_by(Message.created_at.desc())
            .limit(1)
            .correlate(Conversation)
            .scalar_subquery()
        )
        last_message_time = (
            select(Message.created_at)
            .where(Message.conversation_id == Conversation.id)
            .order_by(Message.created_at.desc())
            .limit(1)
            .correlate(Conversation)
            .scalar_subquery()
        )
        unread = (
            select(func.count(Message.id))
            .where(
                Message.conversation_id == Conversation.id,
                Message.sender_id != user_id,
                Message.is_read.is_(False),
            )
            .correlate(Conversation)
            .scalar_subquery()
        )

        result = await self.db.execute(
            select(
                Conversation.id,
                Conversation.booking_id,
                Conversation.updated_at,
                User.id.label("other_user_id"),
                User.full_name,
                User.role,
                Profile.company_name,
                Booking.cargo_type,
                last_message.label("last_message"),
                last_message_time.label("last_message_time"),
                unread.label("unread_count"),
            )
            .join(me, and_(me.conversation_id == Conversation.id, me.user_id == user_id))
            .join(other, and_(other.conversation_id == Conversation.id, other.user_id != user_id))
            .join(User, other.user_id == User.id)
            .outerjoin(Profile, Profile.user_id == User.id)
            .outerjoin(Booking, Conversation.booking_id == Booking.id)
            .order_by(Conversation.updated_at.desc())
        )
        return [
            ConversationSummary(
                id=row.id,
                booking_id=row.booking_id,
                updated_at=row.updated_at,
                other_user_id=row.other_user_id,
                other_user_name=row.full_name,
                other_user_role=row.role,
                other_user_company=row.company_name,
                cargo_type=row.cargo_type,
                last_message=row.last_message,
                last_message_time=row.last_message_time,
                unread_count=row.unread_count or 0,
            )
            for row in result.all()
        ]

    async def send_message(self, conversation_id: Optional[str], sender: User, content: Optional[str]) -> MessageResponse:
        if not conversation_id or content is None or not content.strip():
            raise ValidationError("Missing conversationId or content")
        await self._ensure_participant(conversation_id, sender.id)

        try:
            message = Message(
                id=str(uuid.uuid4()),
                conversation_id=conversation_id,
                sender_id=sender.id,
                content=content,
                is_read=False,
            )
            self.db.add(message)
            await self.db.execute(
                update(Conversation)
                .where(Conversation.id == conversation_id)
                .values(updated_at=datetime.utcnow())
                .execution_options(synchronize_session=False)
            )

            recipients = await self.db.execute(
                select(User.id, User.role)
                .join(ConversationParticipant, ConversationParticipant.user_id == User.id)
                .where(
                    ConversationParticipant.conversation_id == conversation_id,
                    ConversationParticipant.user_id != sender.id,
                )
            )
            for recipient_id, recipient_role in recipients.all():
                await self.notifications.notify(
                    recipient_id,
                    NotificationType.MESSAGE,
                    "New Message",
                    f"New message from {sender.full_name}",
                    link=f"/dashboard/{recipient_role}?section=messages&conversationId={conversation_id}",
                    metadata={"conversationId": conversation_id, "messageId": message.id},
                )

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        return MessageResponse.model_validate(message)

    async def list_messages(self, conversation_id: str, user_id: str) -> List[MessageResponse]:
        await self._ensure_participant(conversation_id, user_id)

        result = await self.db.execute(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc())
        )
        messages = [MessageResponse.model_validate(message) for message in result.scalars().all()]

        await self.db.execute(
            update(Message)
            .where(
                Message.conversation_id == conversation_id,
                Message.sender_id != user_id,
                Message.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return messages
