"""Per-user notify cooldown.

One expiring ``lock_<user>`` key per user. Its presence rejects further
notify calls for that user from anyone until it expires. The lock is a
cooldown, not a mutex: it is never released explicitly.
"""

from __future__ import annotations

import logging

from movecar._keys import KeyRole, make_key
from movecar.exceptions import RateLimitedError
from movecar.store import ExpiringStore

_logger = logging.getLogger(__name__)

_LOCK_VALUE = "1"

DEFAULT_COOLDOWN_SECONDS = 60


class RateLimiter:
    def __init__(self, store: ExpiringStore, *, cooldown: int = DEFAULT_COOLDOWN_SECONDS) -> None:
        if cooldown <= 0:
            raise ValueError("cooldown must be positive")
        self._store = store
        self._cooldown = cooldown

    @property
    def cooldown(self) -> int:
        return self._cooldown

    async def is_locked(self, user_id: str | None) -> bool:
        return await self._store.get(make_key(KeyRole.LOCK, user_id)) is not None

    async def try_acquire(self, user_id: str | None) -> bool:
        """Return ``True`` when a notify may proceed. Does not write the lock."""
        return not await self.is_locked(user_id)

    async def ensure_available(self, user_id: str | None) -> None:
        """Raise :class:`RateLimitedError` while the user's cooldown is live."""
        if await self.is_locked(user_id):
            _logger.info("Notify rejected by cooldown user=%s", make_key(KeyRole.LOCK, user_id))
            raise RateLimitedError(
                "Too many requests, please retry in a minute",
                user_id=user_id or "",
                retry_after=float(self._cooldown),
            )

    async def arm(self, user_id: str | None) -> None:
        """Start the cooldown for *user_id*."""
        await self._store.put(make_key(KeyRole.LOCK, user_id), _LOCK_VALUE, self._cooldown)
