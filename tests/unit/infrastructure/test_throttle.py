import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from passreset.core.exceptions import StoreUnavailableError
from passreset.infrastructure.throttle import InMemoryThrottle, RedisThrottle

EMAIL = "alice@example.com"
WINDOW = timedelta(seconds=60)


class TestInMemoryThrottle:
    @pytest.fixture
    def throttle(self, clock):
        return InMemoryThrottle(window=WINDOW, clock=clock)

    @pytest.mark.asyncio
    async def test_first_acquire_passes_then_blocks(self, throttle):
        assert await throttle.acquire(EMAIL) is None
        assert await throttle.acquire(EMAIL) == 60

    @pytest.mark.asyncio
    async def test_remaining_counts_down_and_rounds_up(self, throttle, clock):
        await throttle.acquire(EMAIL)
        clock.advance(20.5)
        assert await throttle.is_disabled(EMAIL) == 40

    @pytest.mark.asyncio
    async def test_window_elapses(self, throttle, clock):
        await throttle.acquire(EMAIL)
        clock.advance(60)
        assert await throttle.is_disabled(EMAIL) is None
        assert await throttle.acquire(EMAIL) is None

    @pytest.mark.asyncio
    async def test_identities_are_independent(self, throttle):
        await throttle.acquire(EMAIL)
        assert await throttle.is_disabled("bob@example.com") is None

    @pytest.mark.asyncio
    async def test_mark_sent_restarts_window(self, throttle, clock):
        await throttle.mark_sent(EMAIL)
        clock.advance(50)
        await throttle.mark_sent(EMAIL)
        assert await throttle.is_disabled(EMAIL) == 60

    @pytest.mark.asyncio
    async def test_concurrent_acquires_let_one_through(self, throttle):
        results = await asyncio.gather(*(throttle.acquire(EMAIL) for _ in range(10)))
        assert results.count(None) == 1


class TestRedisThrottle:
    @pytest.fixture
    def throttle(self, redis_client):
        return RedisThrottle(redis_client, window=WINDOW, key_prefix="test")

    @pytest.mark.asyncio
    async def test_first_acquire_passes_then_blocks(self, throttle, redis_client):
        assert await throttle.acquire(EMAIL) is None
        remaining = await throttle.acquire(EMAIL)
        assert 0 < remaining <= 60
        assert 0 < await redis_client.pttl(f"test:throttle:{EMAIL}") <= 60_000

    @pytest.mark.asyncio
    async def test_is_disabled(self, throttle):
        assert await throttle.is_disabled(EMAIL) is None
        await throttle.mark_sent(EMAIL)
        assert 0 < await throttle.is_disabled(EMAIL) <= 60

    @pytest.mark.asyncio
    async def test_cooldown_gone_when_key_expires(self, throttle, redis_client):
        await throttle.acquire(EMAIL)
        await redis_client.delete(f"test:throttle:{EMAIL}")
        assert await throttle.acquire(EMAIL) is None

    @pytest.mark.asyncio
    async def test_concurrent_acquires_let_one_through(self, throttle):
        results = await asyncio.gather(*(throttle.acquire(EMAIL) for _ in range(10)))
        assert results.count(None) == 1

    @pytest.mark.asyncio
    async def test_redis_errors_become_store_unavailable(self, throttle, redis_client):
        redis_client.set = AsyncMock(side_effect=RedisConnectionError("connection refused"))
        with pytest.raises(StoreUnavailableError):
            await throttle.acquire(EMAIL)
