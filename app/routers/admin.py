from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.db import get_db
from app.models.user import User
from app.schemas.admin import AdminStats
from app.schemas.booking import BookingResponse, UnmatchedBookingResponse
from app.schemas.common import ApiResponse
from app.schemas.driver import DriverResponse
from app.schemas.quote import AssignmentResult, AssignProvidersRequest
from app.schemas.vehicle import VehicleResponse
from app.services.admin import AdminService
from app.services.quote import QuoteService

router = APIRouter()


def _service(db: AsyncSession = Depends(get_db)) -> AdminService:
    return AdminService(db)


@router.get("/stats", response_model=ApiResponse[AdminStats])
async def get_stats(
    _: User = Depends(deps.get_current_admin),
    service: AdminService = Depends(_service),
) -> ApiResponse[AdminStats]:
    return ApiResponse(data=await service.stats())


@router.get("/unmatched-bookings", response_model=ApiResponse[List[UnmatchedBookingResponse]])
async def list_unmatched_bookings(
    _: User = Depends(deps.get_current_admin),
    service: AdminService = Depends(_service),
) -> ApiResponse[List[UnmatchedBookingResponse]]:
    return ApiResponse(data=await service.unmatched_bookings())


@router.post("/assign-providers", response_model=ApiResponse[AssignmentResult])
async def assign_providers(
    payload: AssignProvidersRequest,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[AssignmentResult]:
    result = await QuoteService(db).assign_providers(
        payload.booking_id, payload.carrier_quote_id, payload.escort_quote_id, current_user
    )
    return ApiResponse(message="Providers assigned and booking confirmed", data=result)


@router.get("/users/{user_id}/bookings", response_model=ApiResponse[List[BookingResponse]])
async def list_user_bookings(
    user_id: str,
    _: User = Depends(deps.get_current_admin),
    service: AdminService = Depends(_service),
) -> ApiResponse[List[BookingResponse]]:
    return ApiResponse(data=await service.user_bookings(user_id))


@router.get("/users/{user_id}/drivers", response_model=ApiResponse[List[DriverResponse]])
async def list_user_drivers(
    user_id: str,
    _: User = Depends(deps.get_current_admin),
    service: AdminService = Depends(_service),
) -> ApiResponse[List[DriverResponse]]:
    return ApiResponse(data=await service.user_drivers(user_id))


@router.get("/users/{user_id}/vehicles", response_model=ApiResponse[List[VehicleResponse]])
async def list_user_vehicles(
    user_id: str,
    _: User = Depends(deps.get_current_admin),
    service: AdminService = Depends(_service),
) -> ApiResponse[List[VehicleResponse]]:
    return ApiResponse(data=await service.user_vehicles(user_id))
