from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.db import get_db
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.message import (
    ConversationRef,
    ConversationRequest,
    ConversationSummary,
    MessageCreate,
    MessageResponse,
)
from app.services.messaging import MessagingService

router = APIRouter()


def _service(db: AsyncSession = Depends(get_db)) -> MessagingService:
    return MessagingService(db)


@router.post("/conversation", response_model=ApiResponse[ConversationRef])
async def get_or_create_conversation(
    payload: ConversationRequest,
    current_user: User = Depends(deps.get_current_user),
    service: MessagingService = Depends(_service),
) -> ApiResponse[ConversationRef]:
    conversation = await service.get_or_create_conversation(
        current_user.id, payload.participant_id, payload.booking_id
    )
    return ApiResponse(data=conversation)


@router.get("/conversations", response_model=ApiResponse[List[ConversationSummary]])
async def list_conversations(
    current_user: User = Depends(deps.get_current_user),
    service: MessagingService = Depends(_service),
) -> ApiResponse[List[ConversationSummary]]:
    return ApiResponse(data=await service.list_conversations(current_user.id))


@router.get("/conversations/{conversation_id}", response_model=ApiResponse[List[MessageResponse]])
async def list_messages(
    conversation_id: str,
    current_user: User = Depends(deps.get_current_user),
    service: MessagingService = Depends(_service),
) -> ApiResponse[List[MessageResponse]]:
    return ApiResponse(data=await service.list_messages(conversation_id, current_user.id))


@router.post("", response_model=ApiResponse[MessageResponse])
async def send_message(
    payload: MessageCreate,
    current_user: User = Depends(deps.get_current_user),
    service: MessagingService = Depends(_service),
) -> ApiResponse[MessageResponse]:
    message = await service.send_message(payload.conversation_id, current_user, payload.content)
    return ApiResponse(data=message)
