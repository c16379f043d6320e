# ============================================================================
# FILE: bookwell/services/auth/token_service.py
# JWTs for staff sessions, customer sessions, booking sessions and cancel links
# ============================================================================
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import jwt, JWTError, ExpiredSignatureError

from bookwell.config.settings import get_settings
from bookwell.core.errors import Unauthorized, SessionExpired


class TokenType:
    ACCESS = "access"
    CUSTOMER_ACCESS = "customer_access"
    BOOKING_SESSION = "booking_session"
    CANCEL = "cancel"


class TokenService:

    @staticmethod
    def _encode(claims: Dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
        settings = get_settings()
        now = datetime.now(timezone.utc)
        to_encode = dict(claims)
        to_encode.update({
            "type": token_type,
            "iat": now,
            "exp": now + expires_delta,
        })
        return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    @staticmethod
    def decode(token: Optional[str], expected_type: str) -> Dict[str, Any]:
        """
        Verify signature, expiry and type of a token.

        Raises:
            SessionExpired: token is well-formed but expired
            Unauthorized: anything else wrong with it
        """
        if not token:
            raise Unauthorized("Missing token")

        settings = get_settings()
        try:
            payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        except ExpiredSignatureError:
            raise SessionExpired()
        except JWTError:
            raise Unauthorized("Invalid token")

        if payload.get("type") != expected_type or not payload.get("sub"):
            raise Unauthorized("Invalid token type")
        return payload

    # ---- staff ------------------------------------------------------------

    @staticmethod
    def create_access_token(user_id) -> str:
        minutes = get_settings().STAFF_ACCESS_TOKEN_EXPIRE_MINUTES
        return TokenService._encode({"sub": str(user_id)}, TokenType.ACCESS, timedelta(minutes=minutes))

    # ---- customers --------------------------------------------------------

    @staticmethod
    def create_customer_access_token(business_id, email: str) -> str:
        days = get_settings().CUSTOMER_ACCESS_TOKEN_EXPIRE_DAYS
        return TokenService._encode(
            {"sub": email, "bid": str(business_id)},
            TokenType.CUSTOMER_ACCESS,
            timedelta(days=days)
        )

    @staticmethod
    def create_booking_session(email: str) -> str:
        """Proof that the holder verified this email in the last few minutes"""
        minutes = get_settings().BOOKING_SESSION_EXPIRE_MINUTES
        return TokenService._encode({"sub": email}, TokenType.BOOKING_SESSION, timedelta(minutes=minutes))

    @staticmethod
    def create_cancel_token(appointment_id, email: Optional[str]) -> str:
        days = get_settings().CANCEL_TOKEN_EXPIRE_DAYS
        return TokenService._encode(
            {"sub": str(appointment_id), "email": email or ""},
            TokenType.CANCEL,
            timedelta(days=days)
        )
