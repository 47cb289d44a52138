from __future__ import annotations

import logging
import uuid
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ForbiddenError, NotFoundError
from app.core.rbac import can_manage_vehicles
from app.models.vehicle import Vehicle
from app.models.user import User
from app.schemas.vehicle import VehicleCreate, VehicleResponse, VehicleUpdate

logger = logging.getLogger(__name__)


class VehicleService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_for_provider(self, provider_id: str) -> List[VehicleResponse]:
        result = await self.db.execute(
            select(Vehicle).where(Vehicle.owner_id == provider_id).order_by(Vehicle.created_at.desc())
        )
        return [VehicleResponse.model_validate(vehicle) for vehicle in result.scalars().all()]

    async def create_vehicle(self, owner: User, payload: VehicleCreate) -> VehicleResponse:
        can_manage_vehicles(owner.role).enforce()
        vehicle = Vehicle(
            id=str(uuid.uuid4()),
            owner_id=owner.id,
            name=payload.name,
            type=payload.type,
            plate_number=payload.plate_number,
            capacity=payload.capacity,
            status="available",
        )
        self.db.add(vehicle)
        await self.db.commit()
        return VehicleResponse.model_validate(vehicle)

    async def _get_owned(self, vehicle_id: str, owner_id: str, action: str) -> Vehicle:
        vehicle = await self.db.get(Vehicle, vehicle_id)
        if not vehicle:
            raise NotFoundError("Vehicle not found")
        if vehicle.owner_id != owner_id:
            raise ForbiddenError(f"Unauthorized to {action} this vehicle")
        return vehicle

    async def update_vehicle(self, owner: User, vehicle_id: str, payload: VehicleUpdate) -> VehicleResponse:
        vehicle = await self._get_owned(vehicle_id, owner.id, "update")
        vehicle.name = payload.name
        vehicle.type = payload.type
        vehicle.plate_number = payload.plate_number
        vehicle.capacity = payload.capacity
        vehicle.status = payload.status or vehicle.status
        await self.db.commit()
        await self.db.refresh(vehicle)
        return VehicleResponse.model_validate(vehicle)

    async def delete_vehicle(self, owner: User, vehicle_id: str) -> None:
        vehicle = await self._get_owned(vehicle_id, owner.id, "delete")
        await self.db.delete(vehicle)
        await self.db.commit()
        logger.info("Vehicle deleted", extra={"vehicle_id": vehicle_id})
