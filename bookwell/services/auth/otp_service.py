# ============================================================================
# FILE: bookwell/services/auth/otp_service.py
# Issue and check emailed one-time codes
# ============================================================================
import hashlib
import hmac
import logging
import math
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from bookwell.config.settings import get_settings
from bookwell.core.errors import BookingError, ErrorCodes, RateLimited
from bookwell.models.otp_code import OtpCode

logger = logging.getLogger(__name__)


class OtpService:
    """
    One live code per (key, purpose). Codes are stored as HMAC-SHA256 digests,
    expire after OTP_TTL_MINUTES and allow OTP_MAX_ATTEMPTS wrong guesses.
    """

    @staticmethod
    def generate_code(length: Optional[int] = None) -> str:
        length = length or get_settings().OTP_LENGTH
        return "".join(str(secrets.randbelow(10)) for _ in range(length))

    @staticmethod
    def hash_code(code: str) -> str:
        secret = get_settings().OTP_SECRET.encode()
        return hmac.new(secret, code.encode(), hashlib.sha256).hexdigest()

    @staticmethod
    def issue(db: Session, key: str, purpose: str, now: Optional[datetime] = None) -> str:
        """
        Create or replace the code for (key, purpose) and return the plain code.

        Raises:
            RateLimited: a code was sent less than OTP_RESEND_COOLDOWN_SECONDS ago
        """
        settings = get_settings()
        now = now or datetime.now(timezone.utc)

        otp = db.query(OtpCode).filter(OtpCode.key == key, OtpCode.purpose == purpose).first()

        if otp is not None:
            elapsed = otp.seconds_since_sent(now)
            cooldown = settings.OTP_RESEND_COOLDOWN_SECONDS
            if elapsed < cooldown:
                retry_after = max(1, math.ceil(cooldown - elapsed))
                raise RateLimited(
                    f"Please wait {retry_after} seconds before requesting another code.",
                    retry_after=retry_after
                )

        code = OtpService.generate_code()
        code_hash = OtpService.hash_code(code)

        if otp is None:
            otp = OtpCode(
                key=key,
                purpose=purpose,
                code_hash=code_hash,
                attempts=0,
                sent_at=now,
                expires_at=now + timedelta(minutes=settings.OTP_TTL_MINUTES),
            )
            db.add(otp)
        else:
            otp.refresh(code_hash, settings.OTP_TTL_MINUTES, now)

        db.commit()
        logger.info(f"Issued {purpose} code for {key}")
        return code

    @staticmethod
    def discard(db: Session, key: str, purpose: str):
        """Forget a code, e.g. when it could not be delivered"""
        db.query(OtpCode).filter(OtpCode.key == key, OtpCode.purpose == purpose).delete()
        db.commit()

    @staticmethod
    def verify(
            db: Session,
            key: str,
            purpose: str,
            code: str,
            consume: bool = True,
            now: Optional[datetime] = None
    ):
        """
        Check a submitted code.

        Raises:
            BookingError CODE_EXPIRED (400): never requested, or past its expiry
            BookingError TOO_MANY_ATTEMPTS (429): attempt budget exhausted
            BookingError INVALID_CODE (401): wrong code, attempt counted
        """
        settings = get_settings()
        now = now or datetime.now(timezone.utc)
        code = (code or "").strip()

        otp = db.query(OtpCode).filter(OtpCode.key == key, OtpCode.purpose == purpose).first()
        if otp is None:
            raise BookingError("Code expired or not requested", code=ErrorCodes.CODE_EXPIRED, status_code=400)

        if otp.is_expired(now):
            db.delete(otp)
            db.commit()
            raise BookingError("Code expired", code=ErrorCodes.CODE_EXPIRED, status_code=400)

        if otp.attempts >= settings.OTP_MAX_ATTEMPTS:
            db.delete(otp)
            db.commit()
            raise BookingError("Too many attempts", code=ErrorCodes.TOO_MANY_ATTEMPTS, status_code=429)

        if not hmac.compare_digest(OtpService.hash_code(code), otp.code_hash):
            otp.attempts += 1
            db.commit()
            logger.info(f"Wrong {purpose} code for {key} (attempt {otp.attempts})")
            raise BookingError("Invalid code", code=ErrorCodes.INVALID_CODE, status_code=401)

        if consume:
            db.delete(otp)
            db.commit()
