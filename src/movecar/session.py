"""Move-car session state machine.

One outstanding request per logical user is spread over independent
expiring keys::

    status_<user>     SessionRecord      session_ttl, owner_ttl once confirmed
    loc_<user>        Location           location_ttl (requester position)
    owner_loc_<user>  Location           owner_ttl (owner position)
    lock_<user>       cooldown marker    rate_limit_ttl

States are ``NONE -> WAITING -> CONFIRMED``; expiry returns any state to
``NONE`` and a new ``open()`` overwrites a confirmed session (last writer
wins).

The store offers no transactions. Two concurrent ``open()`` calls for the
same user may interleave so that one call's location ends up next to the
other call's status record, and both may pass the cooldown check if they
arrive within one store round-trip. This is accepted; nothing here tries to
simulate atomicity the store does not have.
"""

from __future__ import annotations

import logging
from typing import TypeVar

from pydantic import ValidationError

from movecar._keys import KeyRole, make_key, normalize_user
from movecar.config import MoveCarConfig
from movecar.models import Coordinates, Location, MoveCarBaseModel, SessionRecord, SessionSnapshot, SessionStatus
from movecar.rate_limit import RateLimiter
from movecar.store import ExpiringStore

_logger = logging.getLogger(__name__)

M = TypeVar("M", bound=MoveCarBaseModel)


def begin_waiting(session_id: str | None) -> SessionRecord:
    """Transition into ``WAITING`` from any state."""
    return SessionRecord(status=SessionStatus.WAITING, session_id=session_id)


def mark_confirmed(record: SessionRecord) -> SessionRecord:
    """Transition ``WAITING``/``CONFIRMED`` into ``CONFIRMED``, keeping the session id."""
    return record.model_copy(update={"status": SessionStatus.CONFIRMED})


class SessionStateMachine:
    """Advance and read move-car sessions stored in an :class:`ExpiringStore`."""

    def __init__(
        self,
        store: ExpiringStore,
        config: MoveCarConfig,
        *,
        limiter: RateLimiter | None = None,
    ) -> None:
        self._store = store
        self._config = config
        self._limiter = limiter or RateLimiter(store, cooldown=config.rate_limit_ttl)

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    # ------------------------------------------------------------------
    # Storage helpers
    # ------------------------------------------------------------------

    async def _load(self, key: str, model: type[M]) -> M | None:
        raw = await self._store.get(key)
        if raw is None:
            return None
        try:
            return model.model_validate_json(raw)
        except ValidationError:
            _logger.warning("Ignoring malformed %s under %s", model.__name__, key)
            return None

    async def _save(self, key: str, value: MoveCarBaseModel, ttl: int) -> None:
        await self._store.put(key, value.to_json(), ttl)

    def _locate(self, coords: Coordinates) -> Location:
        return Location.from_coordinates(coords, label=self._config.map_label)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def open(
        self,
        user_id: str | None,
        message: str | None = None,
        location: Coordinates | None = None,
        session_id: str | None = None,
    ) -> SessionSnapshot:
        """Open (or overwrite) the user's session in ``WAITING``.

        Store writes, in order: requester location, stale owner location
        removal, status record, cooldown lock. All complete before this
        returns; notification dispatch happens after, so a failing push
        channel can never skip the cooldown.

        Raises
        ------
        RateLimitedError
            The cooldown lock is live. Nothing is written.
        BackingStoreUnavailableError
            The store failed mid-way. Writes already issued stay.
        """
        user = normalize_user(user_id)
        await self._limiter.ensure_available(user)

        if location is not None:
            await self._save(make_key(KeyRole.LOCATION, user), self._locate(location), self._config.location_ttl)

        await self._store.delete(make_key(KeyRole.OWNER_LOCATION, user))
        await self._save(make_key(KeyRole.STATUS, user), begin_waiting(session_id), self._config.session_ttl)
        await self._limiter.arm(user)

        _logger.info(
            "Session opened user=%s with_location=%s message_len=%d",
            user,
            location is not None,
            len(message or ""),
        )
        return SessionSnapshot(status=SessionStatus.WAITING)

    async def confirm(self, user_id: str | None, location: Coordinates | None = None) -> bool:
        """Mark the user's session ``CONFIRMED``.

        Confirming a session that has already expired (or never existed)
        is a silent no-op and returns ``False``; no bare confirmed record
        is created. Confirmed state and owner location share ``owner_ttl``
        so they expire together.
        """
        user = normalize_user(user_id)
        record = await self._load(make_key(KeyRole.STATUS, user), SessionRecord)
        if record is None:
            _logger.info("Confirm ignored, no live session user=%s", user)
            return False

        if location is not None:
            await self._save(make_key(KeyRole.OWNER_LOCATION, user), self._locate(location), self._config.owner_ttl)
        await self._save(make_key(KeyRole.STATUS, user), mark_confirmed(record), self._config.owner_ttl)

        _logger.info("Session confirmed user=%s with_location=%s", user, location is not None)
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def read(self, user_id: str | None, session_id: str | None = None) -> SessionSnapshot:
        """Return the session as seen by the requester holding *session_id*.

        A stored session id that differs from the caller's yields ``NONE``
        so one requester can never observe another requester's session. A
        session opened without an id matches no poller at all.
        """
        user = normalize_user(user_id)
        record = await self._load(make_key(KeyRole.STATUS, user), SessionRecord)
        if record is None:
            return SessionSnapshot()
        if record.session_id is None or record.session_id != session_id:
            _logger.debug("Session id mismatch user=%s", user)
            return SessionSnapshot()

        owner_location = await self._load(make_key(KeyRole.OWNER_LOCATION, user), Location)
        return SessionSnapshot(status=record.status, owner_location=owner_location)

    async def get_requester_location(self, user_id: str | None) -> Location | None:
        return await self._load(make_key(KeyRole.LOCATION, user_id), Location)
