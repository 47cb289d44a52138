from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.db import get_db
from app.models.user import User
from app.schemas.booking import BookingCreated, BookingFields, BookingResponse, BookingStatusUpdate
from app.schemas.common import ApiResponse
from app.services.booking import BookingService

router = APIRouter()


def _service(db: AsyncSession = Depends(get_db)) -> BookingService:
    return BookingService(db)


@router.post("", response_model=ApiResponse[BookingCreated], status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingFields,
    current_user: User = Depends(deps.get_current_user),
    service: BookingService = Depends(_service),
) -> ApiResponse[BookingCreated]:
    created = await service.create_booking(current_user, payload)
    return ApiResponse(message="Booking request created successfully", data=created)


@router.get("/my-bookings", response_model=ApiResponse[List[BookingResponse]])
async def list_my_bookings(
    current_user: User = Depends(deps.get_current_user),
    service: BookingService = Depends(_service),
) -> ApiResponse[List[BookingResponse]]:
    return ApiResponse(data=await service.list_my_bookings(current_user))


@router.get("/{booking_id}", response_model=ApiResponse[BookingResponse])
async def get_booking(
    booking_id: str,
    current_user: User = Depends(deps.get_current_user),
    service: BookingService = Depends(_service),
) -> ApiResponse[BookingResponse]:
    return ApiResponse(data=await service.get_booking(booking_id, current_user))


@router.put("/{booking_id}", response_model=ApiResponse[BookingResponse])
async def update_booking(
    booking_id: str,
    payload: BookingFields,
    current_user: User = Depends(deps.get_current_user),
    service: BookingService = Depends(_service),
) -> ApiResponse[BookingResponse]:
    booking = await service.update_booking(booking_id, current_user.id, payload)
    return ApiResponse(message="Booking updated successfully", data=booking)


@router.delete("/{booking_id}", response_model=ApiResponse[None])
async def delete_booking(
    booking_id: str,
    current_user: User = Depends(deps.get_current_user),
    service: BookingService = Depends(_service),
) -> ApiResponse[None]:
    await service.delete_booking(booking_id, current_user.id)
    return ApiResponse(message="Booking deleted successfully")


@router.patch("/{booking_id}/status", response_model=ApiResponse[BookingResponse])
async def set_booking_status(
    booking_id: str,
    payload: BookingStatusUpdate,
    current_user: User = Depends(deps.get_current_user),
    service: BookingService = Depends(_service),
) -> ApiResponse[BookingResponse]:
    booking = await service.set_status(booking_id, payload.status, current_user)
    return ApiResponse(message=f"Booking status updated to {payload.status}", data=booking)
