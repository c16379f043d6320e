# bookwell/models/__init__.py
from .base import Base
from .user import User
from .business import Business, AvailabilityDay
from .service import Service
from .customer import Customer, CustomerStatus
from .appointment import Appointment, AppointmentStatus, CancelledBy, CreatedBy
from .otp_code import OtpCode, OtpPurpose

__all__ = [
    "Base",
    "User",
    "Business",
    "AvailabilityDay",
    "Service",
    "Customer",
    "CustomerStatus",
    "Appointment",
    "AppointmentStatus",
    "CancelledBy",
    "CreatedBy",
    "OtpCode",
    "OtpPurpose",
]
