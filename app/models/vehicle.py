from sqlalchemy import Column, DateTime, ForeignKey, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class Vehicle(Base):
    id = Column(String, primary_key=True)
    owner_id = Column(String, ForeignKey("user.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    plate_number = Column(String, nullable=True)
    capacity = Column(String, nullable=True)
    status = Column(String, nullable=False, default="available")

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    owner = relationship("User")
