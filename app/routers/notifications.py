from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.db import get_db
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.notification import NotificationListResponse, NotificationResponse, NotificationUnreadCount
from app.services.notifications import NotificationService

router = APIRouter()


def _service(db: AsyncSession = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


@router.get("", response_model=ApiResponse[NotificationListResponse])
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(deps.get_current_user),
    service: NotificationService = Depends(_service),
) -> ApiResponse[NotificationListResponse]:
    notifications, unread = await service.list_notifications(current_user.id, limit, offset)
    return ApiResponse(
        data=NotificationListResponse(
            notifications=[NotificationResponse.model_validate(item) for item in notifications],
            unread_count=unread,
        )
    )


@router.get("/unread-count", response_model=ApiResponse[NotificationUnreadCount])
async def get_unread_count(
    current_user: User = Depends(deps.get_current_user),
    service: NotificationService = Depends(_service),
) -> ApiResponse[NotificationUnreadCount]:
    return ApiResponse(data=NotificationUnreadCount(count=await service.unread_count(current_user.id)))


@router.patch("/mark-all-read", response_model=ApiResponse[None])
async def mark_all_read(
    current_user: User = Depends(deps.get_current_user),
    service: NotificationService = Depends(_service),
) -> ApiResponse[None]:
    await service.mark_all_as_read(current_user.id)
    return ApiResponse(message="All notifications marked as read")


@router.patch("/{notification_id}/read", response_model=ApiResponse[None])
async def mark_read(
    notification_id: str,
    current_user: User = Depends(deps.get_current_user),
    service: NotificationService = Depends(_service),
) -> ApiResponse[None]:
    await service.mark_as_read(current_user.id, notification_id)
    return ApiResponse(message="Notification marked as read")


@router.delete("/{notification_id}", response_model=ApiResponse[None])
async def delete_notification(
    notification_id: str,
    current_user: User = Depends(deps.get_current_user),
    service: NotificationService = Depends(_service),
) -> ApiResponse[None]:
    await service.delete_notification(current_user.id, notification_id)
    return ApiResponse(message="Notification deleted")
