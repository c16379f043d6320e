# bookwell/models/customer.py
"""Customer of a business, identified by email within that business"""
from sqlalchemy import Boolean, Column, String, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.sql import func
import enum
import uuid

from bookwell.models.base import Base


class CustomerStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    BLOCKED = "BLOCKED"


class CustomerAction(str, enum.Enum):
    BLOCK = "block"
    UNBLOCK = "unblock"
    HIDE = "hide"
    UNHIDE = "unhide"


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    full_name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    email = Column(String(255), nullable=False)
    status = Column(String(16), nullable=False, default=CustomerStatus.ACTIVE.value)
    # Hidden from the staff customer list until the customer books again
    is_hidden = Column(Boolean, nullable=False, default=False)

    # Email change awaiting OTP confirmation
    pending_email = Column(String(255), nullable=True)
    pending_email_requested_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    last_appointment_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (UniqueConstraint("business_id", "email", name="uq_customers_business_email"),)

    @property
    def is_blocked(self) -> bool:
        return self.status == CustomerStatus.BLOCKED.value

    def to_dict(self):
        return {
            "id": str(self.id),
            "fullName": self.full_name,
            "phone": self.phone,
            "email": self.email,
            "status": self.status,
            "isHidden": bool(self.is_hidden),
        }

    def __repr__(self):
        return f"<Customer {self.email} business={self.business_id}>"
