from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class Profile(Base):
    """Company and capability details for a user, keyed by the user id."""

    user_id = Column(String, ForeignKey("user.id", ondelete="CASCADE"), primary_key=True)

    company_name = Column(String, nullable=True)
    contact_person = Column(String, nullable=True)
    contact_number = Column(String, nullable=True)
    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    zip_code = Column(String, nullable=True)
    bio = Column(Text, nullable=True)

    # Carrier specific
    mc_number = Column(String, nullable=True)
    dot_number = Column(String, nullable=True)
    fleet_size = Column(Integer, nullable=True)

    # Escort specific
    drivers_license_number = Column(String, nullable=True)
    certification_number = Column(String, nullable=True)
    years_experience = Column(Integer, nullable=True)
    vehicle_details = Column(Text, nullable=True)

    # Shared
    service_area = Column(String, nullable=True)
    vehicle_types = Column(JSON, nullable=True)  # list of distinct type names
    insurance_info = Column(JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="profile")
