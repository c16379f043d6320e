# bookwell/models/business.py
"""
Business Model
A tenant of the platform: its booking rules, weekly availability and services.
"""
from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    JSON,
    Integer,
    ForeignKey,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from bookwell.models.base import Base


class Business(Base):
    __tablename__ = "businesses"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    name = Column(String(200), nullable=True)
    business_type = Column(String(100), nullable=True)
    phone = Column(String(40), nullable=True)
    address = Column(String(200), nullable=True)

    # Public identifiers used by the booking page
    slug = Column(String(100), nullable=True, unique=True, index=True)
    public_id = Column(String(5), nullable=True, unique=True, index=True)

    # System configuration
    timezone = Column(String(50), default="UTC", nullable=False)
    currency = Column(String(8), default="USD", nullable=False)

    # Booking rules
    limit_customer_to_one_upcoming_appointment = Column(Boolean, default=False, nullable=False)
    prevent_same_service_same_day = Column(Boolean, default=False, nullable=False)

    # Onboarding
    onboarding_completed = Column(Boolean, default=False, nullable=False)
    onboarding_completed_at = Column(DateTime(timezone=True), nullable=True)

    # Technical fields
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    is_active = Column(Boolean, default=True, nullable=False)

    owner = relationship("User", back_populates="business")
    services = relationship(
        "Service",
        back_populates="business",
        order_by="Service.display_order",
        cascade="all, delete-orphan",
    )
    availability_days = relationship(
        "AvailabilityDay",
        back_populates="business",
        order_by="AvailabilityDay.day",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Business(id={self.id}, name={self.name})>"


class AvailabilityDay(Base):
    """Opening windows of one weekday"""
    __tablename__ = "availability_days"

    id = Column(Integer, primary_key=True, autoincrement=True)
    business_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day = Column(Integer, nullable=False)  # 0=Sunday, 6=Saturday
    enabled = Column(Boolean, default=False, nullable=False)
    windows = Column(JSON, default=list, nullable=False)  # [{"start": "09:00", "end": "17:00"}]

    business = relationship("Business", back_populates="availability_days")

    __table_args__ = (UniqueConstraint("business_id", "day", name="uq_availability_business_day"),)

    def __repr__(self):
        return f"<AvailabilityDay(business_id={self.business_id}, day={self.day})>"
