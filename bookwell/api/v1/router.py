"""
API router setup
Organized into: public (booking page, sign-in) and dashboard (JWT) routes
"""
from fastapi import APIRouter

from bookwell.api.v1.dashboard import appointments, customers, onboarding
from bookwell.api.v1.public import auth, booking, business

api_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (No authentication, or customer cookie / booking session)
# ============================================================================
api_router.include_router(
    auth.router,
    # No prefix needed - auth.router already has "/auth" prefix
    tags=["Authentication"]
)

api_router.include_router(business.router, tags=["Public"])
api_router.include_router(booking.router, tags=["Public"])

# ============================================================================
# DASHBOARD ROUTES (JWT authentication required)
# ============================================================================
api_router.include_router(onboarding.router, tags=["Dashboard"])
api_router.include_router(appointments.router, tags=["Dashboard"])
api_router.include_router(customers.router, tags=["Dashboard"])


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_router.get("/", tags=["Info"])
async def api_info():
    """Structure of the API by authentication type"""
    return {
        "version": "1.0",
        "authentication": {
            "public": "No authentication, or a customer booking session / access cookie",
            "dashboard": "JWT Bearer token required (staff login)",
        }
    }
