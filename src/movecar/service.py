"""High-level async facade wiring store, session core and push dispatch."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from movecar._keys import normalize_user
from movecar.config import SETTING_CAR_TITLE, SETTING_PHONE_NUMBER, MoveCarConfig, SettingResolver
from movecar.models import Coordinates, Location, SessionSnapshot
from movecar.notify import ChannelOutcome, NotificationDispatcher
from movecar.session import SessionStateMachine
from movecar.store import ExpiringStore

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotifyResult:
    snapshot: SessionSnapshot
    confirm_url: str
    outcomes: list[ChannelOutcome] = field(default_factory=list)


class MoveCarService:
    """Async facade for the four move-car operations.

    Usage::

        async with MoveCarService(config, store, EnvSettingResolver()) as service:
            await service.notify("alice", "You are blocking the gate")
    """

    def __init__(
        self,
        config: MoveCarConfig,
        store: ExpiringStore,
        resolver: SettingResolver,
        *,
        http_session: aiohttp.ClientSession | None = None,
        dispatcher: NotificationDispatcher | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._resolver = resolver
        self._sessions = SessionStateMachine(store, config)
        self._dispatcher = dispatcher or NotificationDispatcher(resolver, config, session=http_session)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MoveCarService:
        await self._dispatcher.__aenter__()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self._dispatcher.__aexit__(*exc)

    @property
    def config(self) -> MoveCarConfig:
        return self._config

    @property
    def sessions(self) -> SessionStateMachine:
        return self._sessions

    @property
    def dispatcher(self) -> NotificationDispatcher:
        return self._dispatcher

    # ------------------------------------------------------------------
    # URLs and display settings
    # ------------------------------------------------------------------

    def _base_url(self, origin: str) -> str:
        return self._config.base_url or origin.rstrip("/")

    def confirm_url(self, user_id: str | None, origin: str = "") -> str:
        """Link the owner opens from the push notification."""
        return f"{self._base_url(origin)}/owner-confirm?u={normalize_user(user_id)}"

    def qr_target_url(self, user_id: str | None, origin: str = "") -> str:
        """URL encoded in the printed QR code for *user_id*."""
        return f"{self._base_url(origin)}/?u={normalize_user(user_id)}"

    def car_title(self, user_id: str | None) -> str:
        return self._resolver.resolve(user_id, SETTING_CAR_TITLE) or self._config.default_car_title

    def phone_number(self, user_id: str | None) -> str | None:
        return self._resolver.resolve(user_id, SETTING_PHONE_NUMBER)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def notify(
        self,
        user_id: str | None,
        message: str | None = None,
        location: Coordinates | None = None,
        session_id: str | None = None,
        *,
        origin: str = "",
    ) -> NotifyResult:
        """Open the session, then notify the owner.

        Raises :class:`~movecar.exceptions.RateLimitedError` or
        :class:`~movecar.exceptions.BackingStoreUnavailableError` from the
        session step, and :class:`~movecar.exceptions.MoveCarError` before
        any write when the service was not entered with ``async with``.
        Push failures never raise once the session is stored.
        """
        self._dispatcher.ensure_ready(user_id)
        snapshot = await self._sessions.open(user_id, message, location, session_id)
        confirm_url = self.confirm_url(user_id, origin)
        outcomes = await self._dispatcher.fanout(user_id, message, confirm_url)
        return NotifyResult(snapshot=snapshot, confirm_url=confirm_url, outcomes=outcomes)

    async def confirm(self, user_id: str | None, location: Coordinates | None = None) -> bool:
        return await self._sessions.confirm(user_id, location)

    async def check_status(self, user_id: str | None, session_id: str | None = None) -> SessionSnapshot:
        return await self._sessions.read(user_id, session_id)

    async def get_location(self, user_id: str | None) -> Location | None:
        return await self._sessions.get_requester_location(user_id)
