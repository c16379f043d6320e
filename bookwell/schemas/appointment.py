"""
Pydantic schemas for the staff calendar endpoints
"""
from pydantic import Field, field_validator
from typing import Optional
from uuid import UUID

from bookwell.models.appointment import AppointmentStatus
from bookwell.schemas.base import CamelModel

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# ============================================================================
# Request Schemas
# ============================================================================

class CreateAppointmentRequest(CamelModel):
    """Staff-created booking. Customer rules are not applied to these."""
    date: str = Field(..., pattern=DATE_PATTERN)
    service_id: UUID
    start_time: str = Field(..., pattern=TIME_PATTERN)
    customer_full_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: Optional[str] = Field(None, max_length=40)
    customer_email: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=2000)
    idempotency_key: Optional[str] = Field(None, max_length=128)

    model_config = {
        "json_schema_extra": {
            "example": {
                "date": "2026-11-02",
                "serviceId": "6c1d3f1e-0b55-4f57-9d59-0c9c3d1a2b7e",
                "startTime": "09:30",
                "customerFullName": "Dana Levi",
                "customerPhone": "+15551234567",
                "customerEmail": "dana@example.com",
                "notes": "First visit",
            }
        }
    }


class StatusUpdateRequest(CamelModel):
    status: AppointmentStatus
    confirm: bool = False
    notify_customer: bool = False


class CancelRequest(CamelModel):
    notify_customer: bool = False


class RescheduleRequest(CamelModel):
    date: str = Field(..., pattern=DATE_PATTERN)
    start_time: str = Field(..., pattern=TIME_PATTERN)
    notify_customer: bool = True


# ============================================================================
# Response Schemas
# ============================================================================

class EmailStatus(CamelModel):
    """Outcome of handing a notification to the mail queue"""
    sent: bool
    skipped: bool = False
    error: Optional[str] = None

    @field_validator("error")
    @classmethod
    def trim_error(cls, v):
        if v is not None and len(v) > 300:
            return v[:300]
        return v
