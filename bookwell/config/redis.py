# bookwell/config/redis.py
"""Redis configuration and connection setup"""
import redis
from typing import Optional

from bookwell.config.settings import get_settings

settings = get_settings()

# Redis connection pool
_redis_pool: Optional[redis.ConnectionPool] = None


def get_redis_pool() -> redis.ConnectionPool:
    """Get or create Redis connection pool"""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            retry_on_timeout=True,
            socket_connect_timeout=1,
            socket_timeout=1,
        )
    return _redis_pool


def get_redis() -> redis.Redis:
    """Get Redis client from pool"""
    return redis.Redis(connection_pool=get_redis_pool())


# Redis key patterns for different data types
class RedisKeys:
    """Redis key patterns for consistent naming"""

    # Availability read cache, one entry per (business, date, service)
    AVAILABILITY_SLOTS = "availability:{business_id}:{date}:{service_id}"
    AVAILABILITY_DATE_PATTERN = "availability:{business_id}:{date}:*"
    AVAILABILITY_BUSINESS_PATTERN = "availability:{business_id}:*"
