# bookwell/api/v1/public/auth.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bookwell.config.database import get_db
from bookwell.schemas.auth import SendOtpRequest, VerifyOtpRequest
from bookwell.services.auth.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/send-otp")
def send_otp(body: SendOtpRequest, db: Session = Depends(get_db)):
    """Email a sign-in code to a staff member. Unknown emails get an account on verify."""
    return AuthService.send_staff_code(db, body.email)


@router.post("/verify-otp")
def verify_otp(body: VerifyOtpRequest, db: Session = Depends(get_db)):
    return AuthService.verify_staff_code(db, body.email, body.code, body.full_name)
