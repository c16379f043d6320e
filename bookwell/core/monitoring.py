"""Health checks"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from bookwell.config.database import get_db
from bookwell.config.redis import get_redis

logger = logging.getLogger(__name__)

health_router = APIRouter()


@health_router.get("/")
def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "bookwell-api"}


@health_router.get("/detailed")
def detailed_health_check(db: Session = Depends(get_db)):
    """Health check including the database and Redis"""
    checks = {
        "api": "healthy",
        "database": "unknown",
        "redis": "unknown",
        "overall": "unknown",
    }

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = f"unhealthy: {e}"

    try:
        get_redis().ping()
        checks["redis"] = "healthy"
    except Exception as e:
        logger.warning(f"Redis health check failed: {e}")
        checks["redis"] = f"unhealthy: {e}"

    if all(value == "healthy" for key, value in checks.items() if key != "overall"):
        checks["overall"] = "healthy"
    else:
        checks["overall"] = "degraded"

    return checks
