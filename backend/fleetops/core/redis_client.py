import logging
import uuid
from typing import Optional

import redis
from redis.exceptions import ConnectionError, TimeoutError

from fleetops.core.config import settings

logger = logging.getLogger(__name__)

# Redis client singleton, only created when REDIS_URL is configured
_redis_client: Optional[redis.Redis] = None


def get_redis() -> Optional[redis.Redis]:
    """Get Redis client singleton, or None when Redis is not configured."""
    global _redis_client
    if not settings.REDIS_URL:
        return None
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
            retry_on_timeout=True,
        )
    return _redis_client


def check_redis_health() -> dict:
    """Check Redis connectivity and return health status."""
    client = get_redis()
    if client is None:
        return {"status": "disabled", "connected": False}
    try:
        client.ping()
        return {"status": "healthy", "connected": True}
    except (ConnectionError, TimeoutError) as e:
        logger.error(f"Redis health check failed: {e}")
        return {
            "status": "unhealthy",
            "connected": False,
            "error": str(e),
        }


class RedisLock:
    """Cross-process mutex built on ``SET NX EX``.

    The TTL bounds how long a crashed holder can block others. Release only
    deletes the key if this instance still owns it.
    """

    def __init__(self, client: redis.Redis, name: str, ttl_seconds: int, prefix: str = "fleetops:lock"):
        self.client = client
        self.key = f"{prefix}:{name}"
        self.ttl_seconds = ttl_seconds
        self.token = uuid.uuid4().hex

    def acquire(self) -> bool:
        return bool(self.client.set(self.key, self.token, nx=True, ex=self.ttl_seconds))

    def release(self) -> None:
        try:
            if self.client.get(self.key) == self.token:
                self.client.delete(self.key)
        except (ConnectionError, TimeoutError) as e:
            # Key expires on its own after the TTL
            logger.warning(f"Could not release lock {self.key}: {e}")
