from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.db import get_db
from app.models.user import User
from app.schemas.booking import BookingResponse
from app.schemas.common import ApiResponse, CreatedResponse
from app.schemas.quote import AdminQuoteResponse, MyQuoteResponse, QuoteAcceptResult, QuoteCreate, QuoteResponse
from app.services.quote import QuoteService

router = APIRouter()


def _service(db: AsyncSession = Depends(get_db)) -> QuoteService:
    return QuoteService(db)


@router.get("/available", response_model=ApiResponse[List[BookingResponse]])
async def list_available_bookings(
    current_user: User = Depends(deps.get_current_user),
    service: QuoteService = Depends(_service),
) -> ApiResponse[List[BookingResponse]]:
    return ApiResponse(data=await service.list_available(current_user))


@router.get("/my-quotes", response_model=ApiResponse[List[MyQuoteResponse]])
async def list_my_quotes(
    current_user: User = Depends(deps.get_current_user),
    service: QuoteService = Depends(_service),
) -> ApiResponse[List[MyQuoteResponse]]:
    return ApiResponse(data=await service.list_my_quotes(current_user))


@router.get("/won-jobs", response_model=ApiResponse[List[BookingResponse]])
async def list_won_jobs(
    current_user: User = Depends(deps.get_current_user),
    service: QuoteService = Depends(_service),
) -> ApiResponse[List[BookingResponse]]:
    return ApiResponse(data=await service.list_won_jobs(current_user))


@router.get("/all-admin", response_model=ApiResponse[List[AdminQuoteResponse]])
async def list_all_quotes(
    current_user: User = Depends(deps.get_current_user),
    service: QuoteService = Depends(_service),
) -> ApiResponse[List[AdminQuoteResponse]]:
    return ApiResponse(data=await service.list_all(current_user))


@router.get("/booking/{booking_id}", response_model=ApiResponse[List[QuoteResponse]])
async def list_booking_quotes(
    booking_id: str,
    current_user: User = Depends(deps.get_current_user),
    service: QuoteService = Depends(_service),
) -> ApiResponse[List[QuoteResponse]]:
    return ApiResponse(data=await service.list_for_booking(booking_id, current_user))


@router.post("", response_model=ApiResponse[CreatedResponse], status_code=status.HTTP_201_CREATED)
async def submit_quote(
    payload: QuoteCreate,
    current_user: User = Depends(deps.get_current_user),
    service: QuoteService = Depends(_service),
) -> ApiResponse[CreatedResponse]:
    created = await service.submit_quote(current_user, payload)
    return ApiResponse(message="Quote submitted successfully", data=created)


@router.put("/{quote_id}/accept", response_model=ApiResponse[QuoteAcceptResult])
async def accept_quote(
    quote_id: str,
    current_user: User = Depends(deps.get_current_user),
    service: QuoteService = Depends(_service),
) -> ApiResponse[QuoteAcceptResult]:
    result = await service.accept_quote(quote_id, current_user)
    if result.provider_role == "escort":
        message = "Quote accepted successfully. The escort has been assigned to this booking."
    else:
        message = "Quote accepted successfully. The carrier has been assigned to this booking."
    return ApiResponse(message=message, data=result)
