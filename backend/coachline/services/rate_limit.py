"""
Per-IP request limiting on top of Redis.

Fixed window: one counter per (ip, window number), created by INCR and
given a TTL of one window on first use, so stale windows clean themselves up.
Like the route cache, the limiter is advisory: without Redis every request
is allowed.
"""

import time
from typing import Optional

import redis.asyncio as redis

from coachline.core.logging import get_logger

logger = get_logger(__name__)

KEY_PREFIX = "ratelimit:"


def window_key(ip: str, window_seconds: int, now: Optional[float] = None) -> str:
    window = int(now if now is not None else time.time()) // window_seconds
    return f"{KEY_PREFIX}{ip}:{window}"


async def check_and_increment(
    client: Optional[redis.Redis],
    ip: str,
    max_requests: int,
    window_seconds: int,
) -> tuple[bool, int]:
    """
    Count one request for `ip`.
    Returns (allowed, retry_after_seconds).
    """
    if client is None:
        return True, 0

    now = time.time()
    key = window_key(ip, window_seconds, now)
    try:
        count = await client.incr(key)
        if count == 1:
            await client.expire(key, window_seconds)
    except Exception as e:
        logger.error("rate_limit_error", ip=ip, error=str(e))
        return True, 0

    if count > max_requests:
        retry_after = window_seconds - int(now) % window_seconds
        return False, max(retry_after, 1)

    return True, 0
