# ===== bookwell/models/appointment.py =====
from sqlalchemy import (
    Column,
    String,
    Integer,
    Text,
    DateTime,
    ForeignKey,
    Numeric,
    Index,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.sql import func
import enum
import uuid

from bookwell.models.base import Base


class AppointmentStatus(str, enum.Enum):
    BOOKED = "BOOKED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"
    CANCELED = "CANCELED"


class CancelledBy(str, enum.Enum):
    BUSINESS = "BUSINESS"
    CUSTOMER = "CUSTOMER"


class CreatedBy(str, enum.Enum):
    BUSINESS = "BUSINESS"
    CUSTOMER = "CUSTOMER"


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References
    business_id = Column(Uuid(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False)
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("customers.id"), nullable=True, index=True)
    service_id = Column(Uuid(as_uuid=True), nullable=False)

    # Service snapshot at booking time
    service_name = Column(String(80), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String(8), nullable=False)

    # Civil date/time in the business time zone
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM

    # Customer snapshot
    customer_full_name = Column(String(255), nullable=False)
    customer_phone = Column(String(32), nullable=True)
    customer_email = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    # Status tracking
    status = Column(String(16), nullable=False, default=AppointmentStatus.BOOKED.value)
    created_by = Column(String(16), nullable=False, default=CreatedBy.CUSTOMER.value)
    cancelled_by = Column(String(16), nullable=True)

    # Client supplied key for duplicate-submit protection
    idempotency_key = Column(String(128), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    rescheduled_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        # At most one BOOKED appointment per business slot start
        Index(
            "uq_appointments_booked_slot",
            "business_id",
            "date",
            "start_time",
            unique=True,
            postgresql_where=text("status = 'BOOKED'"),
            sqlite_where=text("status = 'BOOKED'"),
        ),
        Index("ix_appointments_business_date", "business_id", "date"),
        UniqueConstraint("business_id", "idempotency_key", name="uq_appointments_idempotency_key"),
    )

    def __repr__(self):
        return f"<Appointment(id={self.id}, date={self.date} {self.start_time}, status={self.status})>"

    @property
    def is_booked(self) -> bool:
        return self.status == AppointmentStatus.BOOKED.value
