"""Staff sign-in schemas"""
from pydantic import EmailStr, Field
from typing import Optional

from bookwell.schemas.base import CamelModel


class SendOtpRequest(CamelModel):
    email: EmailStr


class VerifyOtpRequest(CamelModel):
    email: EmailStr
    code: str = Field(..., min_length=1, max_length=12)
    full_name: Optional[str] = Field(None, max_length=255)
