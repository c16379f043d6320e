# bookwell/core/errors.py
"""
Application errors and their JSON rendering.

Every error leaves the API as {"ok": false, "error": <message>, "code": <CODE>, ...extra}.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorCodes:
    ACTIVE_APPOINTMENT_EXISTS = "ACTIVE_APPOINTMENT_EXISTS"
    SAME_SERVICE_SAME_DAY_EXISTS = "SAME_SERVICE_SAME_DAY_EXISTS"
    SLOT_NO_LONGER_AVAILABLE = "SLOT_NO_LONGER_AVAILABLE"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    INVALID_CODE = "INVALID_CODE"
    CODE_EXPIRED = "CODE_EXPIRED"
    TOO_MANY_ATTEMPTS = "TOO_MANY_ATTEMPTS"
    UNAUTHORIZED = "UNAUTHORIZED"
    BUSINESS_NOT_FOUND = "BUSINESS_NOT_FOUND"
    EMAIL_ALREADY_EXISTS = "EMAIL_ALREADY_EXISTS"
    CUSTOMER_BLOCKED = "CUSTOMER_BLOCKED"
    CONFIRMATION_REQUIRED = "CONFIRMATION_REQUIRED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    OTP_DELIVERY_FAILED = "OTP_DELIVERY_FAILED"


class BookingError(Exception):
    """Base class for errors that map onto an API error body"""

    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCodes.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        extra: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}
        self.headers = headers

    def to_dict(self) -> Dict[str, Any]:
        body = {"ok": False, "error": self.message, "code": self.code}
        body.update(self.extra)
        return body


class ValidationFailed(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCodes.VALIDATION_ERROR


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = ErrorCodes.NOT_FOUND


class BusinessNotFound(NotFoundError):
    code = ErrorCodes.BUSINESS_NOT_FOUND

    def __init__(self, message: str = "Business not found"):
        super().__init__(message)


class Unauthorized(BookingError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = ErrorCodes.UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized", code: Optional[str] = None):
        super().__init__(message, code=code)


class SessionExpired(Unauthorized):
    code = ErrorCodes.SESSION_EXPIRED

    def __init__(self, message: str = "Session expired"):
        super().__init__(message)


class ConflictError(BookingError):
    status_code = status.HTTP_409_CONFLICT


class BookingConflict(ConflictError):
    """
    A recoverable business-rule violation. Carries the customer's
    appointments that block the booking so the caller can offer to cancel them.
    """

    def __init__(self, code: str, message: str, existing_appointments: list, **extra):
        payload = {"existingAppointments": existing_appointments}
        if existing_appointments:
            payload["existingAppointment"] = existing_appointments[0]
        payload.update(extra)
        super().__init__(message, code=code, extra=payload)
        self.existing_appointments = existing_appointments


class SlotUnavailable(ConflictError):
    code = ErrorCodes.SLOT_NO_LONGER_AVAILABLE

    def __init__(self, message: str = "This time slot is no longer available"):
        super().__init__(message)


class ForbiddenError(BookingError):
    status_code = status.HTTP_403_FORBIDDEN


class CustomerBlocked(ForbiddenError):
    code = ErrorCodes.CUSTOMER_BLOCKED

    def __init__(self, message: str = "This customer cannot book with this business"):
        super().__init__(message)


class RateLimited(BookingError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = ErrorCodes.RATE_LIMITED

    def __init__(self, message: str, retry_after: int, code: Optional[str] = None):
        super().__init__(
            message,
            code=code,
            extra={"retryAfterSeconds": retry_after},
            headers={"Retry-After": str(retry_after)},
        )
        self.retry_after = retry_after


class DeliveryFailed(BookingError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = ErrorCodes.OTP_DELIVERY_FAILED


async def booking_error_handler(request: Request, exc: BookingError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.warning(f"Validation error for {request.url.path}: {errors}")
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"ok": False, "error": message, "code": ErrorCodes.VALIDATION_ERROR},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    codes = {
        401: ErrorCodes.UNAUTHORIZED,
        403: ErrorCodes.UNAUTHORIZED,
        404: ErrorCodes.NOT_FOUND,
        429: ErrorCodes.RATE_LIMITED,
    }
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": str(exc.detail), "code": codes.get(exc.status_code, "ERROR")},
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
