from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.db import get_db
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.review import ProviderStats, ReviewCreate, ReviewResponse
from app.services.review import ReviewService

router = APIRouter()


def _service(db: AsyncSession = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


@router.post("", response_model=ApiResponse[ReviewResponse])
async def submit_review(
    payload: ReviewCreate,
    current_user: User = Depends(deps.get_current_user),
    service: ReviewService = Depends(_service),
) -> ApiResponse[ReviewResponse]:
    review = await service.submit_review(current_user, payload)
    return ApiResponse(message="Review submitted successfully", data=review)


@router.get("/provider/{provider_id}", response_model=ApiResponse[List[ReviewResponse]])
async def list_provider_reviews(
    provider_id: str,
    service: ReviewService = Depends(_service),
) -> ApiResponse[List[ReviewResponse]]:
    return ApiResponse(data=await service.provider_reviews(provider_id))


@router.get("/my-reviews", response_model=ApiResponse[List[ReviewResponse]])
async def list_my_reviews(
    current_user: User = Depends(deps.get_current_user),
    service: ReviewService = Depends(_service),
) -> ApiResponse[List[ReviewResponse]]:
    return ApiResponse(data=await service.my_reviews(current_user.id))


@router.get("/stats/{provider_id}", response_model=ApiResponse[ProviderStats])
async def get_provider_stats(
    provider_id: str,
    service: ReviewService = Depends(_service),
) -> ApiResponse[ProviderStats]:
    return ApiResponse(data=await service.provider_stats(provider_id))
