# ===== bookwell/services/availability/availability_cache.py =====
"""
Short-lived Redis cache for computed slot lists.

Only read paths use it. Admission always recomputes from the database.
A Redis failure is logged and treated as a cache miss.
"""
import json
import logging
from typing import List, Dict, Optional

import redis

from bookwell.config.redis import get_redis, RedisKeys
from bookwell.config.settings import get_settings

logger = logging.getLogger(__name__)


class AvailabilityCache:

    @staticmethod
    def _enabled() -> bool:
        return get_settings().AVAILABILITY_CACHE_ENABLED

    @staticmethod
    def get(business_id, date: str, service_id) -> Optional[List[Dict[str, str]]]:
        if not AvailabilityCache._enabled():
            return None
        key = RedisKeys.AVAILABILITY_SLOTS.format(business_id=business_id, date=date, service_id=service_id)
        try:
            raw = get_redis().get(key)
        except redis.RedisError as e:
            logger.warning(f"Availability cache read failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Discarding corrupt availability cache entry {key}")
            return None

    @staticmethod
    def set(business_id, date: str, service_id, slots: List[Dict[str, str]]):
        if not AvailabilityCache._enabled():
            return
        key = RedisKeys.AVAILABILITY_SLOTS.format(business_id=business_id, date=date, service_id=service_id)
        try:
            get_redis().setex(key, get_settings().AVAILABILITY_CACHE_TTL_SECONDS, json.dumps(slots))
        except redis.RedisError as e:
            logger.warning(f"Availability cache write failed for {key}: {e}")

    @staticmethod
    def invalidate(business_id, *dates: str):
        """Drop every cached service entry for the given business dates"""
        if not AvailabilityCache._enabled():
            return
        try:
            client = get_redis()
            for date in {d for d in dates if d}:
                pattern = RedisKeys.AVAILABILITY_DATE_PATTERN.format(business_id=business_id, date=date)
                keys = list(client.scan_iter(match=pattern, count=100))
                if keys:
                    client.delete(*keys)
        except redis.RedisError as e:
            logger.warning(f"Availability cache invalidation failed for business {business_id}: {e}")

    @staticmethod
    def invalidate_business(business_id):
        """Drop every cached entry of a business, e.g. after its schedule changed"""
        if not AvailabilityCache._enabled():
            return
        try:
            client = get_redis()
            pattern = RedisKeys.AVAILABILITY_BUSINESS_PATTERN.format(business_id=business_id)
            keys = list(client.scan_iter(match=pattern, count=100))
            if keys:
                client.delete(*keys)
        except redis.RedisError as e:
            logger.warning(f"Availability cache invalidation failed for business {business_id}: {e}")
