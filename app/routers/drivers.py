from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.db import get_db
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.driver import DriverCreate, DriverResponse, DriverUpdate
from app.services.driver import DriverService

router = APIRouter()


def _service(db: AsyncSession = Depends(get_db)) -> DriverService:
    return DriverService(db)


@router.get("", response_model=ApiResponse[List[DriverResponse]])
async def list_drivers(
    current_user: User = Depends(deps.get_current_user),
    service: DriverService = Depends(_service),
) -> ApiResponse[List[DriverResponse]]:
    return ApiResponse(data=await service.list_drivers(current_user))


@router.post("", response_model=ApiResponse[DriverResponse], status_code=status.HTTP_201_CREATED)
async def create_driver(
    payload: DriverCreate,
    current_user: User = Depends(deps.get_current_user),
    service: DriverService = Depends(_service),
) -> ApiResponse[DriverResponse]:
    driver = await service.create_driver(current_user, payload)
    return ApiResponse(message="Driver added successfully", data=driver)


@router.put("/{driver_id}", response_model=ApiResponse[DriverResponse])
async def update_driver(
    driver_id: str,
    payload: DriverUpdate,
    current_user: User = Depends(deps.get_current_user),
    service: DriverService = Depends(_service),
) -> ApiResponse[DriverResponse]:
    driver = await service.update_driver(current_user, driver_id, payload)
    return ApiResponse(message="Driver updated successfully", data=driver)


@router.delete("/{driver_id}", response_model=ApiResponse[None])
async def delete_driver(
    driver_id: str,
    current_user: User = Depends(deps.get_current_user),
    service: DriverService = Depends(_service),
) -> ApiResponse[None]:
    await service.delete_driver(current_user, driver_id)
    return ApiResponse(message="Driver deleted successfully")


@router.get("/provider/{provider_id}", response_model=ApiResponse[List[DriverResponse]])
async def list_provider_drivers(
    provider_id: str,
    _: User = Depends(deps.get_current_user),
    service: DriverService = Depends(_service),
) -> ApiResponse[List[DriverResponse]]:
    return ApiResponse(data=await service.list_for_provider(provider_id))
