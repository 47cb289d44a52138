from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.db import get_db
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.vehicle import VehicleCreate, VehicleResponse, VehicleUpdate
from app.services.vehicle import VehicleService

router = APIRouter()


def _service(db: AsyncSession = Depends(get_db)) -> VehicleService:
    return VehicleService(db)


@router.get("", response_model=ApiResponse[List[VehicleResponse]])
async def list_vehicles(
    current_user: User = Depends(deps.get_current_user),
    service: VehicleService = Depends(_service),
) -> ApiResponse[List[VehicleResponse]]:
    return ApiResponse(data=await service.list_for_provider(current_user.id))


@router.post("", response_model=ApiResponse[VehicleResponse], status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    payload: VehicleCreate,
    current_user: User = Depends(deps.get_current_user),
    service: VehicleService = Depends(_service),
) -> ApiResponse[VehicleResponse]:
    vehicle = await service.create_vehicle(current_user, payload)
    return ApiResponse(message="Vehicle added successfully", data=vehicle)


@router.put("/{vehicle_id}", response_model=ApiResponse[VehicleResponse])
async def update_vehicle(
    vehicle_id: str,
    payload: VehicleUpdate,
    current_user: User = Depends(deps.get_current_user),
    service: VehicleService = Depends(_service),
) -> ApiResponse[VehicleResponse]:
    vehicle = await service.update_vehicle(current_user, vehicle_id, payload)
    return ApiResponse(message="Vehicle updated successfully", data=vehicle)


@router.delete("/{vehicle_id}", response_model=ApiResponse[None])
async def delete_vehicle(
    vehicle_id: str,
    current_user: User = Depends(deps.get_current_user),
    service: VehicleService = Depends(_service),
) -> ApiResponse[None]:
    await service.delete_vehicle(current_user, vehicle_id)
    return ApiResponse(message="Vehicle deleted successfully")


@router.get("/provider/{provider_id}", response_model=ApiResponse[List[VehicleResponse]])
async def list_provider_vehicles(
    provider_id: str,
    _: User = Depends(deps.get_current_user),
    service: VehicleService = Depends(_service),
) -> ApiResponse[List[VehicleResponse]]:
    return ApiResponse(data=await service.list_for_provider(provider_id))
