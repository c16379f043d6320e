"""
Pydantic schemas for the public booking page
"""
from pydantic import EmailStr, Field
from typing import Optional
from uuid import UUID

from bookwell.schemas.base import CamelModel
from bookwell.schemas.appointment import DATE_PATTERN, TIME_PATTERN

PUBLIC_ID_PATTERN = r"^\d{5}$"


class RequestOtpRequest(CamelModel):
    email: EmailStr
    business_public_id: Optional[str] = Field(None, pattern=PUBLIC_ID_PATTERN)


class VerifyBookingOtpRequest(CamelModel):
    email: EmailStr
    code: str = Field(..., min_length=1, max_length=12)
    business_public_id: Optional[str] = Field(None, pattern=PUBLIC_ID_PATTERN)


class LoginVerifyOtpRequest(CamelModel):
    email: EmailStr
    code: str = Field(..., min_length=1, max_length=12)
    business_public_id: str = Field(..., pattern=PUBLIC_ID_PATTERN)


class ConfirmBookingRequest(CamelModel):
    business_slug_or_id: str = Field(..., min_length=1, max_length=100)
    service_id: UUID
    date: str = Field(..., pattern=DATE_PATTERN)
    start_time: str = Field(..., pattern=TIME_PATTERN)
    customer_full_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = Field(..., min_length=1, max_length=40)
    notes: Optional[str] = Field(None, max_length=2000)
    booking_session_id: Optional[str] = None
    idempotency_key: Optional[str] = Field(None, max_length=128)


class PublicCancelRequest(CamelModel):
    """Either a cancel token, or an appointment id plus a booking session / login cookie"""
    cancel_token: Optional[str] = None
    appointment_id: Optional[UUID] = None
    booking_session_id: Optional[str] = None


class ProfileUpdateRequest(CamelModel):
    business_public_id: str = Field(..., pattern=PUBLIC_ID_PATTERN)
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=40)
    current_email: EmailStr
    new_email: Optional[EmailStr] = None


class ProfileVerifyEmailRequest(CamelModel):
    business_public_id: str = Field(..., pattern=PUBLIC_ID_PATTERN)
    current_email: EmailStr
    new_email: EmailStr
    code: str = Field(..., min_length=1, max_length=12)
