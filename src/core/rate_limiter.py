# src/core/rate_limiter.py
import logging
from typing import Optional, Tuple

import redis.asyncio as redis

from src.app.config import settings

logger = logging.getLogger(__name__)

r: Optional[redis.Redis] = None


def init_rate_limiter(url: Optional[str]) -> Optional[redis.Redis]:
    """Create the shared Redis client. With no URL every check allows."""
    global r
    if not url:
        logger.warning("REDIS_URL not set, OTP rate limiting disabled")
        r = None
        return None
    r = redis.from_url(url, decode_responses=True)
    return r


async def close_rate_limiter() -> None:
    global r
    if r is not None:
        await r.aclose()
    r = None


# Helpers / keys
def otp_identifier(email: str, app_id: str) -> str:
    return f"{email.strip().lower()}:{app_id}"


def _send_key(identifier: str) -> str:
    return f"otp:send:{identifier}"


def _verify_key(identifier: str) -> str:
    return f"otp:verify:{identifier}"


def _lock_key(identifier: str) -> str:
    return f"otp:lock:{identifier}"


async def can_send_otp(identifier: str) -> Tuple[bool, Optional[int]]:
    """
    Check whether we can send an OTP to `identifier` (email:app).
    Returns (allowed, retry_after_seconds_or_None).
    """
    if r is None:
        return True, None

    # Locked identifiers are denied until the lock expires
    lock_ttl = await r.ttl(_lock_key(identifier))
    if lock_ttl and lock_ttl > 0:
        return False, lock_ttl

    key = _send_key(identifier)
    current = await r.incr(key)
    if current == 1:
        await r.expire(key, settings.OTP_SEND_WINDOW_SECS)

    if current > settings.OTP_SEND_LIMIT:
        ttl = await r.ttl(key)
        return False, ttl if ttl and ttl > 0 else settings.OTP_SEND_WINDOW_SECS
    return True, None


async def record_failed_verify(identifier: str) -> Tuple[bool, Optional[int]]:
    """
    Record a failed OTP verification attempt for identifier.
    Returns (locked_now_bool, lock_ttl_seconds_or_None)
    """
    if r is None:
        return False, None

    key = _verify_key(identifier)
    current = await r.incr(key)
    if current == 1:
        await r.expire(key, settings.OTP_VERIFY_LOCK_SECS)

    if current >= settings.OTP_VERIFY_ATTEMPTS:
        await r.set(_lock_key(identifier), "1", ex=settings.OTP_VERIFY_LOCK_SECS)
        await r.delete(key)
        logger.warning("OTP verification locked for %s", identifier)
        return True, settings.OTP_VERIFY_LOCK_SECS
    return False, None


async def clear_verify_attempts(identifier: str) -> None:
    """Call on successful verification to reset counters."""
    if r is None:
        return

    await r.delete(_verify_key(identifier))
    await r.delete(_lock_key(identifier))


async def verify_lock_ttl(identifier: str) -> Optional[int]:
    """Seconds left on a verification lock for identifier, or None when not locked."""
    if r is None:
        return None

    ttl = await r.ttl(_lock_key(identifier))
    if ttl and ttl > 0:
        return ttl
    return None
