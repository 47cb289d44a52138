import enum

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class QuoteStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Quote(Base):
    __table_args__ = (UniqueConstraint("booking_id", "provider_id", name="uq_quote_booking_provider"),)

    id = Column(String, primary_key=True)
    booking_id = Column(String, ForeignKey("booking.id", ondelete="CASCADE"), nullable=False, index=True)
    provider_id = Column(String, ForeignKey("user.id"), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    driver_id = Column(String, ForeignKey("driver.id", ondelete="SET NULL"), nullable=True)
    vehicle_id = Column(String, ForeignKey("vehicle.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=QuoteStatus.PENDING.value, index=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", back_populates="quotes")
    provider = relationship("User")
    driver = relationship("Driver")
    vehicle = relationship("Vehicle")
