"""Redis connection and the cache used for provider lookups."""

import json
from typing import Any, cast

import redis
import structlog

from booking_api.config import settings

logger = structlog.get_logger()

# Shared client, created on first use
_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return the process-wide Redis client, creating it if needed."""
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password or None,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """Ping Redis; False when it cannot be reached."""
    try:
        return bool(get_redis_client().ping())
    except redis.RedisError:
        return False


def close_redis_connection() -> None:
    """Close and forget the shared client."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class CacheManager:
    """JSON cache over Redis.

    Every operation fails open: when Redis errors, reads miss and writes are
    skipped, so callers fall back to the database.
    """

    def __init__(self, redis_client: redis.Redis):
        """Initialize cache manager with Redis client."""
        self.redis = redis_client

    def get_json(self, key: str) -> Any | None:
        """Return the decoded value stored at ``key``, or None on a miss or error."""
        try:
            raw = cast(str | None, self.redis.get(key))
        except Exception as e:
            logger.warning("cache_read_failed", key=key, error=str(e))
            return None

        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("cache_entry_corrupt", key=key)
            return None

    def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Store ``value`` as JSON.

        Args:
            key: Cache key
            value: JSON-compatible value; UUIDs and dates are stored as strings
            ttl: Expiry in seconds, or None to keep it until evicted

        Returns:
            True if the value was written
        """
        try:
            payload = json.dumps(value, default=str)
            if ttl:
                self.redis.setex(key, ttl, payload)
            else:
                self.redis.set(key, payload)
            return True
        except Exception as e:
            logger.warning("cache_write_failed", key=key, error=str(e))
            return False

    def delete(self, *keys: str) -> bool:
        """Evict ``keys``; True if the eviction reached Redis."""
        if not keys:
            return True
        try:
            self.redis.delete(*keys)
            return True
        except Exception as e:
            logger.warning("cache_evict_failed", keys=list(keys), error=str(e))
            return False
