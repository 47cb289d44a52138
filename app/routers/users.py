from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.db import get_db
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.user import (
    EmailNotificationPreference,
    PasswordChange,
    ProfileUpdate,
    UserListItem,
    UserResponse,
    UserStatusUpdate,
)
from app.services.user import UserService

router = APIRouter()


def _service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_me(
    current_user: User = Depends(deps.get_current_user),
    service: UserService = Depends(_service),
) -> ApiResponse[UserResponse]:
    return ApiResponse(data=await service.me(current_user.id))


@router.post("/profile", response_model=ApiResponse[UserResponse])
async def save_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(deps.get_current_user),
    service: UserService = Depends(_service),
) -> ApiResponse[UserResponse]:
    user = await service.save_profile(current_user.id, payload)
    return ApiResponse(message="Profile saved successfully", data=user)


@router.get("/list/{role}", response_model=ApiResponse[List[UserListItem]])
async def list_users_by_role(
    role: str,
    current_user: User = Depends(deps.get_current_user),
    service: UserService = Depends(_service),
) -> ApiResponse[List[UserListItem]]:
    return ApiResponse(data=await service.list_by_role(current_user, role))


@router.patch("/password", response_model=ApiResponse[None])
async def change_password(
    payload: PasswordChange,
    current_user: User = Depends(deps.get_current_user),
    service: UserService = Depends(_service),
) -> ApiResponse[None]:
    await service.change_password(current_user, payload)
    return ApiResponse(message="Password updated successfully")


@router.patch("/notifications", response_model=ApiResponse[None])
async def set_email_notifications(
    payload: EmailNotificationPreference,
    current_user: User = Depends(deps.get_current_user),
    service: UserService = Depends(_service),
) -> ApiResponse[None]:
    await service.set_email_notifications(current_user, payload.email_notifications)
    return ApiResponse(message="Notification preferences updated")


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user(
    user_id: str,
    current_user: User = Depends(deps.get_current_user),
    service: UserService = Depends(_service),
) -> ApiResponse[UserResponse]:
    return ApiResponse(data=await service.get_user(current_user, user_id))


@router.patch("/{user_id}/status", response_model=ApiResponse[None])
async def set_user_status(
    user_id: str,
    payload: UserStatusUpdate,
    current_user: User = Depends(deps.get_current_user),
    service: UserService = Depends(_service),
) -> ApiResponse[None]:
    await service.set_status(current_user, user_id, payload.status)
    return ApiResponse(message=f"User status updated to {payload.status}")
