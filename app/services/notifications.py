from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.core.rbac import Role
from app.models.notification import Notification, NotificationType
from app.models.user import User, UserStatus
from app.workers.email_worker import EmailJob, stage_email

logger = logging.getLogger(__name__)


@dataclass
class NotificationDraft:
    user_id: str
    type: NotificationType | str
    title: str
    message: str
    link: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class NotificationService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def notify(
        self,
        user_id: str,
        type: NotificationType | str,
        title: str,
        message: str,
        link: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        """
        Persist a notification inside the caller's transaction.

        If the recipient opted into email, an email job is staged on the
        session. It is queued for the email worker only once the caller
        commits, so an email problem can never fail or roll back the caller.
        """
        notification_type = NotificationType(type)
        notification = Notification(
            id=str(uuid.uuid4()),
            user_id=user_id,
            type=notification_type.value,
            title=title,
            message=message,
            link=link,
            metadata_json=metadata or {},
        )
        self.db.add(notification)
        await self.db.flush()

        result = await self.db.execute(
            select(User.email, User.email_notifications).where(User.id == user_id)
        )
        recipient = result.one_or_none()
        if recipient is not None and recipient.email_notifications:
            stage_email(self.db, EmailJob(to_email=recipient.email, title=title, message=message))

        return notification

    async def notify_draft(self, draft: NotificationDraft) -> Notification:
        return await self.notify(
            draft.user_id, draft.type, draft.title, draft.message, draft.link, draft.metadata
        )

    async def admin_ids(self) -> List[str]:
        result = await self.db.execute(
            select(User.id).where(User.role == Role.ADMIN.value, User.status == UserStatus.ACTIVE.value)
        )
        return list(result.scalars().all())

    async def deliver(self, drafts: Iterable[NotificationDraft]) -> int:
        """
        Persist notifications in their own transaction after a workflow committed.

        Failures are logged and rolled back; the workflow that triggered them
        has already succeeded and is not affected.
        """
        created = 0
        try:
            for draft in drafts:
                await self.notify_draft(draft)
                created += 1
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to record notifications after commit")
            return 0
        return created

    async def deliver_to_admins(
        self,
        type: NotificationType | str,
        title: str,
        message: str,
        link: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> int:
        try:
            admin_ids = await self.admin_ids()
        except SQLAlchemyError:
            logger.exception("Failed to look up admins for notification")
            return 0
        return await self.deliver(
            NotificationDraft(admin_id, type, title, message, link, dict(metadata or {}))
            for admin_id in admin_ids
        )

    async def list_notifications(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> Tuple[List[Notification], int]:
        if limit < 1 or offset < 0:
            raise ValidationError("Invalid pagination parameters")

        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .offset(offset)
            .limit(min(limit, 200))
        )
        notifications = list(result.scalars().all())
        return notifications, await self.unread_count(user_id)

    async def unread_count(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        )
        return result.scalar() or 0

    async def mark_as_read(self, user_id: str, notification_id: str) -> None:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .values(is_read=True)
        )
        await self.db.commit()
        if result.rowcount == 0:
            raise NotFoundError("Notification not found")

    async def mark_all_as_read(self, user_id: str) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def delete_notification(self, user_id: str, notification_id: str) -> None:
        result = await self.db.execute(
            delete(Notification).where(
                Notification.id == notification_id, Notification.user_id == user_id
            )
        )
        await self.db.commit()
        if result.rowcount == 0:
            raise NotFoundError("Notification not found")
