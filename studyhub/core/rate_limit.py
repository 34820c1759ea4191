"""
Fixed-window request limiter backed by Redis.

A Redis outage never blocks the caller: the limiter logs a warning and lets
the request through.
"""
import hashlib

from redis.asyncio import Redis
from redis.exceptions import RedisError

from studyhub.logging import get_logger

logger = get_logger(__name__)


def _window_key(prefix: str, email: str, ip: str) -> str:
    # hashed so raw addresses never land in Redis keys
    digest = hashlib.sha256(f"{email.strip().lower()}|{ip}".encode("utf-8")).hexdigest()
    return f"rl:{prefix}:{digest}"


async def allow(
    redis: Redis,
    prefix: str,
    email: str,
    ip: str,
    max_attempts: int,
    window_sec: int
) -> bool:
    """
    Count one attempt for (prefix, email, ip) and say whether it is allowed.

    The window starts with the first attempt and lasts ``window_sec``.
    """
    key = _window_key(prefix, email, ip)
    try:
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, window_sec)
    except (RedisError, OSError) as exc:
        logger.warning("Rate limiter unavailable, allowing request", prefix=prefix, error=str(exc))
        return True
    return count <= max_attempts
