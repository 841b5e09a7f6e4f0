from unittest.mock import AsyncMock

import pytest

from src.core import rate_limiter
from src.core.rate_limiter import (
    can_send_otp,
    clear_verify_attempts,
    otp_identifier,
    record_failed_verify,
    verify_lock_ttl,
)


@pytest.fixture
def redis_client(mocker):
    client = AsyncMock()
    client.ttl.return_value = -2
    mocker.patch.object(rate_limiter, "r", client)
    return client


def test_identifier_is_per_email_and_app():
    assert otp_identifier(" A@B.com ", "learn-ai") == "a@b.com:learn-ai"
    assert otp_identifier("a@b.com", "learn-ai") != otp_identifier("a@b.com", "learn-pr")


@pytest.mark.asyncio
async def test_without_redis_everything_is_allowed(mocker):
    mocker.patch.object(rate_limiter, "r", None)
    assert await can_send_otp("a@b.com:learn-ai") == (True, None)
    assert await record_failed_verify("a@b.com:learn-ai") == (False, None)
    assert await verify_lock_ttl("a@b.com:learn-ai") is None
    await clear_verify_attempts("a@b.com:learn-ai")


@pytest.mark.asyncio
async def test_send_within_limit(redis_client):
    redis_client.incr.return_value = 1
    assert await can_send_otp("a@b.com:learn-ai") == (True, None)
    redis_client.expire.assert_awaited_once()


@pytest.mark.asyncio
async def test_send_over_limit(redis_client):
    redis_client.incr.return_value = 6
    redis_client.ttl.side_effect = [-2, 120]
    allowed, retry_after = await can_send_otp("a@b.com:learn-ai")
    assert allowed is False
    assert retry_after == 120


@pytest.mark.asyncio
async def test_locked_identifier_is_denied(redis_client):
    redis_client.ttl.return_value = 300
    assert await can_send_otp("a@b.com:learn-ai") == (False, 300)
    redis_client.incr.assert_not_called()


@pytest.mark.asyncio
async def test_failed_verifies_lock(redis_client):
    redis_client.incr.return_value = 5
    locked, ttl = await record_failed_verify("a@b.com:learn-ai")
    assert locked is True
    assert ttl == rate_limiter.settings.OTP_VERIFY_LOCK_SECS
    redis_client.set.assert_awaited_once()


@pytest.mark.asyncio
async def test_clear_verify_attempts(redis_client):
    await clear_verify_attempts("a@b.com:learn-ai")
    assert redis_client.delete.await_count == 2


@pytest.mark.asyncio
async def test_verify_lock_ttl(redis_client):
    assert await verify_lock_ttl("a@b.com:learn-ai") is None
    redis_client.ttl.return_value = 900
    assert await verify_lock_ttl("a@b.com:learn-ai") == 900
