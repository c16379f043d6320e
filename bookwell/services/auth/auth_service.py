# ============================================================================
# FILE: bookwell/services/auth/auth_service.py
# Passwordless sign-in for staff, and the code dispatch shared with customers
# ============================================================================
from datetime import datetime, timezone
from typing import Optional, Dict, Any
import logging

from sqlalchemy.orm import Session

from bookwell.core.errors import DeliveryFailed, Unauthorized
from bookwell.models.otp_code import OtpPurpose
from bookwell.models.user import User
from bookwell.services.auth.otp_service import OtpService
from bookwell.services.auth.token_service import TokenService
from bookwell.services.business.business_service import BusinessService
from bookwell.services.notification.notification_service import NotificationService
from bookwell.utils.contact import normalize_email

logger = logging.getLogger(__name__)


class AuthService:

    @staticmethod
    def send_code(db: Session, email: str, purpose: OtpPurpose, key: Optional[str] = None):
        """
        Issue a code for (key, purpose) and queue it to the email address.
        The key defaults to the email itself.

        Raises:
            RateLimited: resend cooldown still running
            DeliveryFailed: the email could not be queued
        """
        email = normalize_email(email)
        key = key or email
        code = OtpService.issue(db, key, purpose.value)
        try:
            NotificationService.send_otp(email, code, purpose.value)
        except DeliveryFailed:
            OtpService.discard(db, key, purpose.value)
            raise

    @staticmethod
    def send_staff_code(db: Session, email: str) -> Dict[str, Any]:
        AuthService.send_code(db, email, OtpPurpose.STAFF_LOGIN)
        return {"ok": True}

    @staticmethod
    def verify_staff_code(db: Session, email: str, code: str, full_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Check the code, create the account and its business on first sign-in,
        and return a bearer token.
        """
        email = normalize_email(email)
        OtpService.verify(db, email, OtpPurpose.STAFF_LOGIN.value, code)

        user = db.query(User).filter(User.email == email).first()
        if user is None:
            user = User(email=email, full_name=(full_name or "").strip() or None)
            db.add(user)
            db.flush()
            logger.info(f"Created staff account {user.id} for {email}")
        elif not user.is_active:
            raise Unauthorized("Account is disabled")

        user.last_login_at = datetime.now(timezone.utc)
        business = BusinessService.get_or_create_for_user(db, user)
        db.commit()

        return {
            "ok": True,
            "accessToken": TokenService.create_access_token(user.id),
            "tokenType": "bearer",
            "user": {
                "id": str(user.id),
                "email": user.email,
                "fullName": user.full_name,
            },
            "onboardingCompleted": business.onboarding_completed,
        }
