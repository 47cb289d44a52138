from sqlalchemy import Column, Date, DateTime, ForeignKey, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class Driver(Base):
    """A carrier's driver. Paired 1:1 with a driver-role User used for login."""

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("user.id", ondelete="CASCADE"), nullable=True, unique=True, index=True)
    employer_id = Column(String, ForeignKey("user.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    license_number = Column(String, nullable=True)
    license_expiry = Column(Date, nullable=True)
    status = Column(String, nullable=False, default="active")

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    user = relationship("User", foreign_keys=[user_id])
    employer = relationship("User", foreign_keys=[employer_id])
