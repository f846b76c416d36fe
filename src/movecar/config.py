"""Service configuration and per-user setting lookup for movecar."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any, Protocol

from movecar._keys import normalize_user
from movecar.exceptions import MoveCarConfigError

#: Per-user setting names understood by :class:`SettingResolver` implementations.
SETTING_PUSHPLUS_TOKEN = "PUSHPLUS_TOKEN"
SETTING_BARK_URL = "BARK_URL"
SETTING_CAR_TITLE = "CAR_TITLE"
SETTING_PHONE_NUMBER = "PHONE_NUMBER"

PUSHPLUS_ENDPOINT = "http://www.pushplus.plus/send"


def _env_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise MoveCarConfigError(f"{name} must be an integer, got {value!r}") from exc


def _env_float(value: str, name: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise MoveCarConfigError(f"{name} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class MoveCarConfig:
    """Service configuration.

    Parameters
    ----------
    location_ttl : int
        Seconds a requester location stays readable by the owner view.
    session_ttl : int
        Seconds a waiting session survives without confirmation.
    rate_limit_ttl : int
        Cooldown in seconds between two accepted notify calls for one user.
    owner_ttl : int
        Seconds a confirmed session and the owner location stay readable.
    external_url : str or None
        Public base URL used for confirm links. Falls back to the
        request origin when unset.
    dispatch_timeout : float
        Total timeout in seconds for a single push channel request.
    redis_url : str or None
        Redis connection URL; ``None`` selects the in-process store.
    default_car_title : str
        Display name used when no ``CAR_TITLE`` setting resolves.
    default_message : str
        Message forwarded to the owner when the requester left none.
    map_label : str
        Marker label embedded in generated map links.
    pushplus_endpoint : str
        PushPlus send API endpoint.
    """

    location_ttl: int = 3600
    session_ttl: int = 1800
    rate_limit_ttl: int = 60
    owner_ttl: int = 600
    external_url: str | None = None
    dispatch_timeout: float = 10.0
    redis_url: str | None = None
    default_car_title: str = "Car owner"
    default_message: str = "Someone is waiting next to your car"
    map_label: str = "Requester location"
    pushplus_endpoint: str = PUSHPLUS_ENDPOINT

    def __post_init__(self) -> None:
        for name in ("location_ttl", "session_ttl", "rate_limit_ttl", "owner_ttl"):
            if getattr(self, name) <= 0:
                raise MoveCarConfigError(f"{name} must be positive")
        if self.dispatch_timeout <= 0:
            raise MoveCarConfigError("dispatch_timeout must be positive")

    @property
    def base_url(self) -> str | None:
        """External URL without a trailing slash, or ``None``."""
        if not self.external_url:
            return None
        return self.external_url.rstrip("/")

    @classmethod
    def from_env(cls, **overrides: Any) -> MoveCarConfig:
        """Create configuration from ``MOVECAR_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        _ENV_INT_MAP = {
            "MOVECAR_LOCATION_TTL": "location_ttl",
            "MOVECAR_SESSION_TTL": "session_ttl",
            "MOVECAR_RATE_LIMIT_TTL": "rate_limit_ttl",
            "MOVECAR_OWNER_TTL": "owner_ttl",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_int(val, env_key)

        timeout_env = env.get("MOVECAR_DISPATCH_TIMEOUT")
        if timeout_env is not None and "dispatch_timeout" not in overrides:
            config_kwargs["dispatch_timeout"] = _env_float(timeout_env, "MOVECAR_DISPATCH_TIMEOUT")

        _ENV_STR_MAP = {
            # EXTERNAL_URL is the historical name used by existing deployments.
            "EXTERNAL_URL": "external_url",
            "MOVECAR_EXTERNAL_URL": "external_url",
            "MOVECAR_REDIS_URL": "redis_url",
            "MOVECAR_DEFAULT_CAR_TITLE": "default_car_title",
            "MOVECAR_DEFAULT_MESSAGE": "default_message",
            "MOVECAR_MAP_LABEL": "map_label",
            "MOVECAR_PUSHPLUS_ENDPOINT": "pushplus_endpoint",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        config_kwargs.update(overrides)
        return cls(**config_kwargs)


class SettingResolver(Protocol):
    """Per-user setting lookup injected into the dispatcher and HTTP layer."""

    def resolve(self, user_id: str | None, name: str) -> str | None:
        ...


class MappingSettingResolver:
    """Resolve settings from a mapping, preferring ``<NAME>_<USER>`` over ``<NAME>``.

    Empty values count as absent so a blank per-user override never masks
    the global default.
    """

    def __init__(self, settings: Mapping[str, str]) -> None:
        self._settings = settings

    def resolve(self, user_id: str | None, name: str) -> str | None:
        specific = f"{name}_{normalize_user(user_id).upper()}"
        for candidate in (specific, name):
            value = self._settings.get(candidate)
            if value:
                return value
        return None


class EnvSettingResolver(MappingSettingResolver):
    """Setting lookup backed by process environment variables.

    ``PUSHPLUS_TOKEN_ALICE`` serves user ``alice``; ``PUSHPLUS_TOKEN``
    serves everyone without an override.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        super().__init__(os.environ if environ is None else environ)
