import enum

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Numeric, String, Text, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class BookingStatus(str, enum.Enum):
    PENDING_QUOTE = "pending_quote"
    QUOTED = "quoted"
    BOOKED = "booked"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


OPEN_STATUSES = (BookingStatus.PENDING_QUOTE.value, BookingStatus.QUOTED.value)
TERMINAL_STATUSES = (BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value)
REVIEWABLE_STATUSES = (BookingStatus.COMPLETED.value, BookingStatus.DELIVERED.value)


class Booking(Base):
    id = Column(String, primary_key=True)
    shipper_id = Column(String, ForeignKey("user.id"), nullable=False, index=True)

    pickup_address = Column(String, nullable=False)
    pickup_city = Column(String, nullable=False)
    pickup_state = Column(String, nullable=False)
    delivery_address = Column(String, nullable=False)
    delivery_city = Column(String, nullable=False)
    delivery_state = Column(String, nullable=False)

    cargo_type = Column(String, nullable=False)
    cargo_description = Column(Text, nullable=False)
    dimensions_length_ft = Column(Float, nullable=False)
    dimensions_width_ft = Column(Float, nullable=False)
    dimensions_height_ft = Column(Float, nullable=False)
    weight_lbs = Column(Float, nullable=False)

    shipment_date = Column(String, nullable=False)
    flexible_dates = Column(Boolean, nullable=False, default=False)
    requires_escort = Column(Boolean, nullable=False, default=False)
    special_instructions = Column(Text, nullable=True)

    # Assignment slots, filled by quote acceptance
    carrier_id = Column(String, ForeignKey("user.id"), nullable=True, index=True)
    escort_id = Column(String, ForeignKey("user.id"), nullable=True, index=True)
    assigned_driver_id = Column(String, ForeignKey("driver.id", ondelete="SET NULL"), nullable=True, index=True)
    agreed_price = Column(Numeric(12, 2), nullable=True)

    status = Column(String, nullable=False, default=BookingStatus.PENDING_QUOTE.value, index=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    shipper = relationship("User", foreign_keys=[shipper_id])
    carrier = relationship("User", foreign_keys=[carrier_id])
    escort = relationship("User", foreign_keys=[escort_id])
    quotes = relationship("Quote", back_populates="booking", passive_deletes=True)
