# ============================================================================
# FILE: bookwell/api/v1/public/booking.py
# Customer booking flow: verify email, book, cancel, manage profile
# ============================================================================
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from typing import Optional, Dict, Any

from bookwell.api.dependencies import get_customer_access_token, get_idempotency_key
from bookwell.config.database import get_db
from bookwell.config.settings import settings
from bookwell.schemas.booking import (
    RequestOtpRequest,
    VerifyBookingOtpRequest,
    LoginVerifyOtpRequest,
    ConfirmBookingRequest,
    PublicCancelRequest,
    ProfileUpdateRequest,
    ProfileVerifyEmailRequest,
    PUBLIC_ID_PATTERN,
)
from bookwell.services.booking.public_booking_service import PublicBookingService

router = APIRouter(prefix="/public/booking", tags=["public"])


def _set_access_cookie(response: Response, result: Dict[str, Any]) -> Dict[str, Any]:
    """Move the customer access token from the service result into the cookie"""
    token = result.pop("_accessToken", None)
    if token:
        response.set_cookie(
            key=settings.CUSTOMER_ACCESS_COOKIE_NAME,
            value=token,
            max_age=settings.CUSTOMER_ACCESS_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite="lax",
            path="/",
        )
    return result


# ============================================================================
# Email verification
# ============================================================================

@router.post("/request-otp")
def request_otp(body: RequestOtpRequest, db: Session = Depends(get_db)):
    return PublicBookingService.request_otp(db, body.email, body.business_public_id)


@router.post("/verify-otp")
def verify_otp(body: VerifyBookingOtpRequest, db: Session = Depends(get_db)):
    """Exchange a code for a short-lived booking session"""
    return PublicBookingService.verify_otp(db, body.email, body.code, body.business_public_id)


@router.post("/login/verify-otp")
def login_verify_otp(body: LoginVerifyOtpRequest, response: Response, db: Session = Depends(get_db)):
    result = PublicBookingService.login_verify_otp(db, body.email, body.code, body.business_public_id)
    return _set_access_cookie(response, result)


# ============================================================================
# Booking
# ============================================================================

@router.post("/confirm")
def confirm_booking(
        body: ConfirmBookingRequest,
        idempotency_key: Optional[str] = Depends(get_idempotency_key),
        access_token: Optional[str] = Depends(get_customer_access_token),
        db: Session = Depends(get_db)
):
    return PublicBookingService.confirm(db, body, access_token, idempotency_key)


@router.post("/cancel")
def cancel_booking(
        body: PublicCancelRequest,
        access_token: Optional[str] = Depends(get_customer_access_token),
        db: Session = Depends(get_db)
):
    return PublicBookingService.cancel(db, body, access_token)


# ============================================================================
# Signed-in customer
# ============================================================================

@router.get("/me")
def me(
        business_public_id: str = Query(..., alias="businessPublicId", pattern=PUBLIC_ID_PATTERN),
        scope: Optional[str] = Query(None, description="'future' for every upcoming appointment"),
        date: Optional[str] = Query(None),
        access_token: Optional[str] = Depends(get_customer_access_token),
        db: Session = Depends(get_db)
):
    return PublicBookingService.me(db, business_public_id, access_token, scope, date)


@router.post("/disconnect")
def disconnect(response: Response):
    response.delete_cookie(settings.CUSTOMER_ACCESS_COOKIE_NAME, path="/")
    return {"ok": True}


@router.post("/profile/update")
def profile_update(
        body: ProfileUpdateRequest,
        access_token: Optional[str] = Depends(get_customer_access_token),
        db: Session = Depends(get_db)
):
    return PublicBookingService.profile_update(db, body, access_token)


@router.post("/profile/verify-email")
def profile_verify_email(
        body: ProfileVerifyEmailRequest,
        response: Response,
        access_token: Optional[str] = Depends(get_customer_access_token),
        db: Session = Depends(get_db)
):
    result = PublicBookingService.profile_verify_email(db, body, access_token)
    return _set_access_cookie(response, result)
