import enum

from sqlalchemy import Boolean, Column, DateTime, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    DISABLED = "disabled"


class User(Base):
    id = Column(String, primary_key=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    full_name = Column(String, nullable=False)

    # shipper, carrier, escort, driver, admin (see app.core.rbac.Role)
    role = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default=UserStatus.ACTIVE.value)
    profile_completed = Column(Boolean, nullable=False, default=False)

    # Email verification and credential reset
    email_verified = Column(Boolean, nullable=False, default=False)
    verification_token = Column(String, nullable=True)
    reset_token = Column(String, nullable=True)
    reset_token_expiry = Column(DateTime, nullable=True)

    email_notifications = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan")

    @property
    def is_active(self) -> bool:
        return self.status != UserStatus.DISABLED.value
