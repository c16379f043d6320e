# ===== bookwell/api/middleware/rate_limit_middleware.py =====
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
import time

from bookwell.core.errors import ErrorCodes

# Routes that send codes or check them; everything else is not throttled here
OTP_PATHS = (
    "/api/auth/send-otp",
    "/api/auth/verify-otp",
    "/api/public/booking/request-otp",
    "/api/public/booking/verify-otp",
    "/api/public/booking/login/verify-otp",
    "/api/public/booking/profile/update",
    "/api/public/booking/profile/verify-email",
)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-client sliding window limit on the OTP endpoints.

    State is per process. Per-code attempt limits and resend cooldowns are
    enforced in the database by OtpService; this only blunts bursts.
    """

    def __init__(self, app, requests_per_minute: int = 20, window_seconds: float = 60.0):
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.window_seconds = window_seconds
        self.request_times = {}
        self.last_prune = time.time()

    async def dispatch(self, request: Request, call_next):
        if request.method != "POST" or request.url.path not in OTP_PATHS:
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        key = f"{client}:{request.url.path}"
        current_time = time.time()
        if current_time - self.last_prune >= self.window_seconds:
            self.prune(current_time)

        recent = [
            t for t in self.request_times.get(key, [])
            if current_time - t < self.window_seconds
        ]

        if len(recent) >= self.requests_per_minute:
            retry_after = max(1, int(self.window_seconds - (current_time - recent[0])) + 1)
            self.request_times[key] = recent
            return JSONResponse(
                status_code=429,
                content={
                    "ok": False,
                    "error": "Too many requests. Please try again later.",
                    "code": ErrorCodes.RATE_LIMITED,
                    "retryAfterSeconds": retry_after,
                },
                headers={"Retry-After": str(retry_after)},
            )

        recent.append(current_time)
        self.request_times[key] = recent
        return await call_next(request)

    def prune(self, current_time: float):
        """Forget clients with no request inside the window"""
        stale = [
            key for key, times in self.request_times.items()
            if not times or current_time - times[-1] >= self.window_seconds
        ]
        for key in stale:
            del self.request_times[key]
        self.last_prune = current_time
