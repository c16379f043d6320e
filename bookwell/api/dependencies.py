# ============================================================================
# FILE: bookwell/api/dependencies.py
# Authentication dependencies for staff and customers
# ============================================================================
from fastapi import Depends, Request, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from bookwell.config.database import get_db
from bookwell.config.settings import settings
from bookwell.core.errors import Unauthorized
from bookwell.models.business import Business
from bookwell.models.user import User
from bookwell.services.auth.token_service import TokenService, TokenType
from bookwell.services.business.business_service import BusinessService

# ============================================================================
# Security Schemes
# ============================================================================

jwt_security = HTTPBearer(
    scheme_name="JWT Bearer Token",
    description="Staff access token from /api/auth/verify-otp",
    auto_error=False
)


# ============================================================================
# Staff
# ============================================================================

def get_current_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(jwt_security),
        db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get the signed-in staff user from the Bearer token.

    Raises:
        SessionExpired: token expired
        Unauthorized: missing or invalid token, unknown or disabled user
    """
    if credentials is None:
        raise Unauthorized("Not authenticated")

    payload = TokenService.decode(credentials.credentials, TokenType.ACCESS)

    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise Unauthorized("Invalid user ID in token")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise Unauthorized("User not found or inactive")

    return user


def get_current_business(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
) -> Business:
    """The business owned by the signed-in staff user"""
    return BusinessService.get_for_user(db, current_user)


# ============================================================================
# Customers
# ============================================================================

def get_customer_access_token(request: Request) -> Optional[str]:
    """Customer sign-in cookie, if any; validated by the service that uses it"""
    return request.cookies.get(settings.CUSTOMER_ACCESS_COOKIE_NAME)


def get_idempotency_key(idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key")) -> Optional[str]:
    if idempotency_key is None:
        return None
    return idempotency_key.strip()[:128] or None
