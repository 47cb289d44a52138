from __future__ import annotations

import logging
import uuid
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundOrUnauthorized, ValidationError
from app.core.rbac import Role, can_add_driver, can_manage_drivers
from app.core.security import hash_password
from app.models.driver import Driver
from app.models.user import User, UserStatus
from app.schemas.driver import DriverCreate, DriverResponse, DriverUpdate

logger = logging.getLogger(__name__)


class DriverService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_drivers(self, acting: User) -> List[DriverResponse]:
        can_manage_drivers(acting.role).enforce()
        return await self.list_for_provider(acting.id)

    async def list_for_provider(self, provider_id: str) -> List[DriverResponse]:
        result = await self.db.execute(
            select(Driver).where(Driver.employer_id == provider_id).order_by(Driver.name.asc())
        )
        return [DriverResponse.model_validate(driver) for driver in result.scalars().all()]

    async def _email_taken(self, email: str, exclude_user_id: str | None = None) -> bool:
        query = select(User.id).where(func.lower(User.email) == email.lower())
        if exclude_user_id:
            query = query.where(User.id != exclude_user_id)
        result = await self.db.execute(query)
        return result.first() is not None

    async def create_driver(self, acting: User, payload: DriverCreate) -> DriverResponse:
        """Create the driver's login account and driver record together."""
        can_add_driver(acting.role).enforce()
        if not payload.name or not payload.email or not payload.phone or not payload.password:
            raise ValidationError("Please provide all required fields")

        if await self._email_taken(payload.email):
            raise ConflictError("A user with this email already exists")

        try:
            user = User(
                id=str(uuid.uuid4()),
                email=payload.email,
                hashed_password=hash_password(payload.password),
                full_name=payload.name,
                role=Role.DRIVER.value,
                status=UserStatus.ACTIVE.value,
            )
            self.db.add(user)
            await self.db.flush()

            driver = Driver(
                id=str(uuid.uuid4()),
                user_id=user.id,
                employer_id=acting.id,
                name=payload.name,
                email=payload.email,
                phone=payload.phone,
                license_number=payload.license,
                license_expiry=payload.license_expiry,
                status="active",
            )
            self.db.add(driver)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("A user with this email already exists")
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Driver created", extra={"driver_id": driver.id, "employer_id": acting.id})
        return DriverResponse.model_validate(driver)

    async def _get_owned(self, driver_id: str, employer_id: str) -> Driver:
        result = await self.db.execute(
            select(Driver).where(Driver.id == driver_id, Driver.employer_id == employer_id)
        )
        driver = result.scalar_one_or_none()
        if not driver:
            raise NotFoundOrUnauthorized("Driver not found or unauthorized")
        return driver

    async def update_driver(self, acting: User, driver_id: str, payload: DriverUpdate) -> DriverResponse:
        driver = await self._get_owned(driver_id, acting.id)
        if await self._email_taken(payload.email, exclude_user_id=driver.user_id):
            raise ConflictError("A user with this email already exists")

        try:
            driver.name = payload.name
            driver.email = payload.email
            driver.phone = payload.phone
            driver.license_number = payload.license
            driver.license_expiry = payload.license_expiry
            driver.status = payload.status or driver.status

            if driver.user_id:
                user = await self.db.get(User, driver.user_id)
                if user is not None:
                    user.full_name = payload.name
                    user.email = payload.email

            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("A user with this email already exists")
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(driver)
        return DriverResponse.model_validate(driver)

    async def delete_driver(self, acting: User, driver_id: str) -> None:
        driver = await self._get_owned(driver_id, acting.id)
        user_id = driver.user_id

        try:
            await self.db.execute(delete(Driver).where(Driver.id == driver.id))
            if user_id:
                await self.db.execute(delete(User).where(User.id == user_id))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Driver deleted", extra={"driver_id": driver_id, "user_id": user_id})
