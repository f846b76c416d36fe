"""Best-effort notification fan-out to push channels.

Channels are resolved per user from the injected
:class:`~movecar.config.SettingResolver`. All resolved channels are sent
concurrently; each one's failure is logged and recorded on its
:class:`ChannelOutcome` but never raised. There is no retry and no
delivery receipt.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import quote

import aiohttp

from movecar._keys import normalize_user
from movecar._redact import redact_for_log, redact_url
from movecar.config import (
    SETTING_BARK_URL,
    SETTING_CAR_TITLE,
    SETTING_PUSHPLUS_TOKEN,
    MoveCarConfig,
    SettingResolver,
)
from movecar.exceptions import ChannelDispatchError, MoveCarError
from movecar.models import NotificationEvent

_logger = logging.getLogger(__name__)

_BARK_GROUP_TITLE = "Move car request"


class NotificationChannel(Protocol):
    """Structural interface for a push channel."""

    @property
    def name(self) -> str:
        ...

    async def send(
        self,
        http: aiohttp.ClientSession,
        event: NotificationEvent,
        *,
        timeout: aiohttp.ClientTimeout,
    ) -> None:
        ...


async def _raise_for_status(resp: aiohttp.ClientResponse, channel: str) -> None:
    if resp.status >= 400:
        text = await resp.text()
        raise ChannelDispatchError(
            f"{channel} returned HTTP {resp.status}: {text[:200]}",
            channel=channel,
            status_code=resp.status,
        )


@dataclass(frozen=True)
class PushPlusChannel:
    """PushPlus (pushplus.plus) HTML message."""

    token: str
    endpoint: str

    @property
    def name(self) -> str:
        return "pushplus"

    def build_payload(self, event: NotificationEvent) -> dict[str, str]:
        return {
            "token": self.token,
            "title": event.title,
            "content": event.html_content,
            "template": "html",
        }

    async def send(
        self,
        http: aiohttp.ClientSession,
        event: NotificationEvent,
        *,
        timeout: aiohttp.ClientTimeout,
    ) -> None:
        payload = self.build_payload(event)
        _logger.debug("POST %s %s", self.endpoint, redact_for_log(payload))
        try:
            async with http.post(self.endpoint, json=payload, timeout=timeout) as resp:
                await _raise_for_status(resp, self.name)
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise ChannelDispatchError(f"{self.name} request failed: {exc!r}", channel=self.name) from exc


@dataclass(frozen=True)
class BarkChannel:
    """Bark (iOS) push via ``<bark_url>/<title>/<body>?url=<confirm url>``."""

    base_url: str

    @property
    def name(self) -> str:
        return "bark"

    def build_url(self, event: NotificationEvent) -> str:
        title = quote(_BARK_GROUP_TITLE, safe="")
        body = quote(event.body, safe="")
        target = quote(event.confirm_url, safe="")
        return f"{self.base_url.rstrip('/')}/{title}/{body}?url={target}"

    async def send(
        self,
        http: aiohttp.ClientSession,
        event: NotificationEvent,
        *,
        timeout: aiohttp.ClientTimeout,
    ) -> None:
        url = self.build_url(event)
        _logger.debug("GET %s", redact_url(url))
        try:
            async with http.get(url, timeout=timeout) as resp:
                await _raise_for_status(resp, self.name)
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise ChannelDispatchError(f"{self.name} request failed: {exc!r}", channel=self.name) from exc


@dataclass(frozen=True)
class ChannelOutcome:
    """Result of one channel send, kept for logging and tests."""

    channel: str
    ok: bool
    elapsed: float
    error: BaseException | None = None


class NotificationDispatcher:
    """Fan a notification out to every push channel configured for a user.

    Usage::

        async with NotificationDispatcher(resolver, config) as dispatcher:
            await dispatcher.fanout("alice", "blocking the gate", confirm_url)
    """

    def __init__(
        self,
        resolver: SettingResolver,
        config: MoveCarConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._resolver = resolver
        self._config = config
        self._external_session = session is not None
        self._http = session
        self._timeout = aiohttp.ClientTimeout(total=config.dispatch_timeout)

    async def __aenter__(self) -> NotificationDispatcher:
        if self._http is None:
            self._http = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http is not None:
            await self._http.close()
            self._http = None

    def _require_http(self) -> aiohttp.ClientSession:
        if self._http is None:
            raise MoveCarError("Dispatcher not started. Use 'async with NotificationDispatcher(...)'")
        return self._http

    def ensure_ready(self, user_id: str | None) -> None:
        """Raise :class:`MoveCarError` if :meth:`fanout` for *user_id* could not send."""
        if self.resolve_channels(user_id):
            self._require_http()

    def resolve_channels(self, user_id: str | None) -> list[NotificationChannel]:
        channels: list[NotificationChannel] = []
        token = self._resolver.resolve(user_id, SETTING_PUSHPLUS_TOKEN)
        if token:
            channels.append(PushPlusChannel(token=token, endpoint=self._config.pushplus_endpoint))
        bark_url = self._resolver.resolve(user_id, SETTING_BARK_URL)
        if bark_url:
            channels.append(BarkChannel(base_url=bark_url))
        return channels

    def build_event(self, user_id: str | None, message: str | None, confirm_url: str) -> NotificationEvent:
        return NotificationEvent(
            user_id=normalize_user(user_id),
            car_title=self._resolver.resolve(user_id, SETTING_CAR_TITLE) or self._config.default_car_title,
            message=message or self._config.default_message,
            confirm_url=confirm_url,
        )

    async def _send_one(
        self,
        http: aiohttp.ClientSession,
        channel: NotificationChannel,
        event: NotificationEvent,
    ) -> ChannelOutcome:
        started = time.monotonic()
        await channel.send(http, event, timeout=self._timeout)
        return ChannelOutcome(channel=channel.name, ok=True, elapsed=time.monotonic() - started)

    async def fanout(self, user_id: str | None, message: str | None, confirm_url: str) -> list[ChannelOutcome]:
        """Send to all channels concurrently and wait for every one to settle.

        Returns one outcome per channel; an empty list when the user has no
        channel configured.
        """
        channels = self.resolve_channels(user_id)
        if not channels:
            _logger.debug("No push channel configured user=%s", normalize_user(user_id))
            return []

        http = self._require_http()
        event = self.build_event(user_id, message, confirm_url)
        started = time.monotonic()
        results = await asyncio.gather(
            *(self._send_one(http, channel, event) for channel in channels),
            return_exceptions=True,
        )

        outcomes: list[ChannelOutcome] = []
        for channel, result in zip(channels, results, strict=True):
            if isinstance(result, BaseException):
                _logger.warning("Push channel %s failed user=%s: %s", channel.name, event.user_id, result)
                outcomes.append(
                    ChannelOutcome(
                        channel=channel.name,
                        ok=False,
                        elapsed=time.monotonic() - started,
                        error=result,
                    )
                )
            else:
                outcomes.append(result)

        sent = sum(1 for outcome in outcomes if outcome.ok)
        _logger.info("Notification fan-out user=%s: %d/%d channels ok", event.user_id, sent, len(outcomes))
        return outcomes
