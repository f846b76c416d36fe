"""Expiring key-value store contract and backends.

movecar keeps all shared state in a store where every key may carry a
time-to-live. Only ``get``/``put``/``delete`` are used: no transactions,
no compare-and-swap. Backends must raise
:class:`~movecar.exceptions.BackingStoreUnavailableError` when the store
cannot be reached.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any, Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from movecar.exceptions import BackingStoreUnavailableError

_logger = logging.getLogger(__name__)


class ExpiringStore(Protocol):
    """Structural store interface used by the session core.

    Tests pass in-memory doubles; production uses :class:`RedisStore`.
    """

    async def get(self, key: str) -> str | None:
        ...

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


class MemoryStore:
    """In-process store with lazy per-key expiry.

    Suitable for tests and single-process deployments. The clock is
    injectable so expiry can be exercised without sleeping.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float | None]] = {}

    def _live(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def get(self, key: str) -> str | None:
        return self._live(key)

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        if ttl is not None and ttl <= 0:
            raise ValueError("ttl must be positive")
        expires_at = None if ttl is None else self._clock() + ttl
        self._entries[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def ttl_of(self, key: str) -> float | None:
        """Seconds left before *key* expires (``None`` if absent or permanent)."""
        if self._live(key) is None:
            return None
        expires_at = self._entries[key][1]
        if expires_at is None:
            return None
        return expires_at - self._clock()

    def keys(self) -> list[str]:
        """Currently live keys, sorted."""
        return sorted(key for key in list(self._entries) if self._live(key) is not None)


class RedisStore:
    """Store backed by Redis ``GET``/``SETEX``/``DEL``."""

    def __init__(self, client: aioredis.Redis) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> RedisStore:
        kwargs.setdefault("decode_responses", True)
        return cls(aioredis.from_url(url, **kwargs))

    async def get(self, key: str) -> str | None:
        try:
            value = await self._redis.get(key)
        except (RedisError, OSError) as exc:
            raise BackingStoreUnavailableError(
                f"GET {key} failed: {exc}",
                operation="get",
                key=key,
            ) from exc
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        try:
            if ttl is None:
                await self._redis.set(key, value)
            else:
                await self._redis.setex(key, ttl, value)
        except (RedisError, OSError) as exc:
            raise BackingStoreUnavailableError(
                f"SET {key} failed: {exc}",
                operation="put",
                key=key,
            ) from exc
        _logger.debug("SET %s ttl=%s", key, ttl)

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(key)
        except (RedisError, OSError) as exc:
            raise BackingStoreUnavailableError(
                f"DEL {key} failed: {exc}",
                operation="delete",
                key=key,
            ) from exc

    async def close(self) -> None:
        await self._redis.aclose()
