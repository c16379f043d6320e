"""
FastAPI application for the Bookwell booking backend
"""
import logging
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from contextlib import asynccontextmanager

from bookwell.config.settings import get_settings
from bookwell.core.errors import register_exception_handlers
from bookwell.core.middleware import correlation_id_middleware, request_logging_middleware
from bookwell.core.monitoring import health_router
from bookwell.api.v1.router import api_router
from bookwell.api.middleware.rate_limit_middleware import RateLimitMiddleware
from bookwell.utils.my_logging import setup_logging

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    setup_logging()
    logger.info("Bookwell API starting up")

    routes = sorted(
        (route.path, ",".join(sorted(route.methods)))
        for route in app.routes
        if isinstance(route, APIRoute)
    )
    for path, methods in routes:
        logger.debug(f"  {methods:12} {path}")
    logger.info(f"Total routes registered: {len(routes)}")

    yield

    logger.info("Bookwell API shutting down")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title="Bookwell API",
        description="Appointment booking for small businesses",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    register_exception_handlers(app)

    app.add_middleware(RateLimitMiddleware, requests_per_minute=settings.PUBLIC_OTP_REQUESTS_PER_MINUTE)

    # CORS; credentials on for the customer cookie
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "PUT"],
        allow_headers=["*"],
        expose_headers=["Retry-After", "X-Correlation-ID"],
    )

    app.middleware("http")(correlation_id_middleware)
    app.middleware("http")(request_logging_middleware)

    app.include_router(health_router, prefix="/health", tags=["monitoring"])
    app.include_router(api_router, prefix="/api")

    @app.get("/")
    async def root():
        return {
            "service": "Bookwell API",
            "version": "0.1.0",
            "status": "running",
            "endpoints": {
                "api": "/api/",
                "health": "/health",
                "docs": "/docs" if settings.DEBUG else "disabled"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "bookwell.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
