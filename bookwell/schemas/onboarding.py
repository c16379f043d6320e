"""
Pydantic schemas for business onboarding.
All fields are optional on PATCH - only send what you want to update.
"""
from pydantic import Field, field_validator, model_validator
from typing import Optional, List
from uuid import UUID

from bookwell.schemas.base import CamelModel
from bookwell.schemas.appointment import TIME_PATTERN

ALLOWED_BUSINESS_TYPES = {"salon", "barbershop", "fitness", "therapy", "consulting", "other"}
ALLOWED_CURRENCIES = {"NIS", "USD", "EUR", "GBP", "AUD", "CAD", "CHF"}


class WindowSchema(CamelModel):
    start: str = Field(..., pattern=TIME_PATTERN)
    end: str = Field(..., pattern=TIME_PATTERN)


class AvailabilityDaySchema(CamelModel):
    """One weekday; either a list of windows or a single start/end pair"""
    day: int = Field(..., ge=0, le=6, description="0=Sunday")
    enabled: bool = False
    windows: Optional[List[WindowSchema]] = None
    start: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end: Optional[str] = Field(None, pattern=TIME_PATTERN)

    def resolved_windows(self) -> List[dict]:
        if self.windows is not None:
            return [{"start": w.start, "end": w.end} for w in self.windows]
        if self.start and self.end:
            return [{"start": self.start, "end": self.end}]
        return []


class AvailabilitySchema(CamelModel):
    timezone: Optional[str] = Field(None, max_length=50)
    days: Optional[List[AvailabilityDaySchema]] = None

    @field_validator("days")
    @classmethod
    def unique_days(cls, v):
        if v is not None and len({d.day for d in v}) != len(v):
            raise ValueError("Each weekday may only appear once")
        return v


class ServiceSchema(CamelModel):
    id: Optional[UUID] = None
    name: str = Field(..., min_length=1, max_length=80)
    duration_minutes: int = Field(..., gt=0, le=24 * 60)
    price: float = Field(0, ge=0, le=1_000_000)
    is_active: bool = True


class BusinessDetailsSchema(CamelModel):
    name: Optional[str] = Field(None, max_length=120)
    phone: Optional[str] = Field(None, max_length=40)
    address: Optional[str] = Field(None, max_length=200)


class BookingRulesSchema(CamelModel):
    limit_customer_to_one_upcoming_appointment: Optional[bool] = None
    prevent_same_service_same_day: Optional[bool] = None


class OnboardingUpdateRequest(CamelModel):
    business_type: Optional[str] = Field(None, max_length=60)
    currency: Optional[str] = Field(None, max_length=8)
    business: Optional[BusinessDetailsSchema] = None
    availability: Optional[AvailabilitySchema] = None
    services: Optional[List[ServiceSchema]] = None
    booking_rules: Optional[BookingRulesSchema] = None

    @field_validator("business_type")
    @classmethod
    def validate_business_type(cls, v):
        if v is None:
            return v
        v = v.lower()
        if v not in ALLOWED_BUSINESS_TYPES:
            raise ValueError(f"Business type must be one of: {', '.join(sorted(ALLOWED_BUSINESS_TYPES))}")
        return v

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v):
        if v is None:
            return v
        v = v.upper()
        if v not in ALLOWED_CURRENCIES:
            raise ValueError("Invalid currency")
        return v

    @model_validator(mode="after")
    def services_not_empty(self):
        if self.services is not None and len(self.services) == 0:
            raise ValueError("Service is required")
        return self
