from __future__ import annotations

import pytest

from movecar.exceptions import RateLimitedError
from movecar.rate_limit import RateLimiter
from movecar.store import MemoryStore


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_fresh_user_may_proceed() -> None:
    limiter = RateLimiter(MemoryStore())

    assert await limiter.try_acquire("alice") is True
    # try_acquire never writes the lock.
    assert await limiter.try_acquire("alice") is True


@pytest.mark.asyncio
async def test_armed_lock_rejects_until_expiry() -> None:
    clock = _Clock()
    store = MemoryStore(clock=clock)
    limiter = RateLimiter(store, cooldown=60)

    await limiter.arm("alice")
    assert store.ttl_of("lock_alice") == pytest.approx(60)
    assert await limiter.try_acquire("alice") is False
    with pytest.raises(RateLimitedError) as exc_info:
        await limiter.ensure_available("Alice")
    assert exc_info.value.retry_after == 60.0

    clock.now += 60
    assert await limiter.try_acquire("alice") is True
    await limiter.ensure_available("alice")


@pytest.mark.asyncio
async def test_locks_are_per_user() -> None:
    limiter = RateLimiter(MemoryStore())

    await limiter.arm("alice")
    assert await limiter.is_locked("alice") is True
    assert await limiter.is_locked("bob") is False


def test_rejects_non_positive_cooldown() -> None:
    with pytest.raises(ValueError):
        RateLimiter(MemoryStore(), cooldown=0)
