from __future__ import annotations

import logging
from typing import List

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import NotFoundError, Unauthenticated, ValidationError
from app.core.rbac import Role, can_view_user, require_admin
from app.core.security import hash_password, verify_password
from app.models.profile import Profile
from app.models.user import User
from app.schemas.user import PasswordChange, ProfileUpdate, UserListItem, UserResponse

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class UserService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _load(self, user_id: str) -> User:
        result = await self.db.execute(
            select(User)
            .options(selectinload(User.profile))
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundError("User not found")
        return user

    async def me(self, user_id: str) -> UserResponse:
        return UserResponse.model_validate(await self._load(user_id))

    async def save_profile(self, user_id: str, payload: ProfileUpdate) -> UserResponse:
        values = payload.model_dump()
        # Stored as a set, kept in submission order
        values["vehicle_types"] = list(dict.fromkeys(values["vehicle_types"]))

        profile = await self.db.get(Profile, user_id)
        if profile is None:
            profile = Profile(user_id=user_id, **values)
            self.db.add(profile)
        else:
            for field, value in values.items():
                setattr(profile, field, value)

        await self.db.execute(update(User).where(User.id == user_id).values(profile_completed=True))
        await self.db.commit()
        logger.info("Profile saved", extra={"user_id": user_id})
        return await self.me(user_id)

    async def list_by_role(self, acting: User, role: str) -> List[UserListItem]:
        require_admin(acting.role).enforce()
        if Role.parse(role) is None:
            raise ValidationError("Invalid role")

        result = await self.db.execute(
            select(User, Profile.company_name, Profile.contact_number)
            .outerjoin(Profile, Profile.user_id == User.id)
            .where(User.role == role)
            .order_by(User.created_at.desc())
        )
        return [
            UserListItem(
                id=user.id,
                email=user.email,
                full_name=user.full_name,
                role=user.role,
                status=user.status,
                profile_completed=user.profile_completed,
                created_at=user.created_at,
                company_name=company_name,
                contact_number=contact_number,
            )
            for user, company_name, contact_number in result.all()
        ]

    async def get_user(self, acting: User, user_id: str) -> UserResponse:
        target = await self._load(user_id)
        can_view_user(acting.role, acting.id, target.id, target.role).enforce()
        return UserResponse.model_validate(target)

    async def set_status(self, acting: User, user_id: str, status: str) -> None:
        require_admin(acting.role).enforce()
        if status not in ("active", "disabled"):
            raise ValidationError("Invalid status")

        result = await self.db.execute(update(User).where(User.id == user_id).values(status=status))
        await self.db.commit()
        if result.rowcount == 0:
            raise NotFoundError("User not found")
        logger.info("User status changed", extra={"user_id": user_id, "status": status, "by": acting.id})

    async def change_password(self, user: User, payload: PasswordChange) -> None:
        if not payload.current_password or not payload.new_password:
            raise ValidationError("Current and new password are required")
        if len(payload.new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError("New password must be at least 8 characters long")
        if not verify_password(payload.current_password, user.hashed_password):
            raise Unauthenticated("Current password is incorrect")

        user.hashed_password = hash_password(payload.new_password)
        await self.db.commit()
        logger.info("Password changed", extra={"user_id": user.id})

    async def set_email_notifications(self, user: User, enabled: bool) -> None:
        user.email_notifications = enabled
        await self.db.commit()
