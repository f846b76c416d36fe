"""Request body models for the HTTP surface."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from movecar.models._base import MoveCarBaseModel, safe_float
from movecar.models.location import Coordinates


def _optional_coordinates(value: Any) -> Any:
    """Treat ``null``/``{}``/a location without a latitude as "no location"."""
    if value is None:
        return None
    if isinstance(value, dict):
        lat = value.get("lat", value.get("latitude"))
        if safe_float(lat) is None:
            return None
    return value


def normalize_session_id(value: Any) -> str | None:
    """Requester token as stored and as compared when polling.

    Only ``None`` means "no token"; an empty string is a token like any other.
    """
    if value is None:
        return None
    return str(value).strip()


class NotifyRequest(MoveCarBaseModel):
    """Body of ``POST /api/notify``."""

    message: str | None = None
    location: Coordinates | None = None
    session_id: str | None = None

    @field_validator("location", mode="before")
    @classmethod
    def _drop_empty_location(cls, value: Any) -> Any:
        return _optional_coordinates(value)

    @field_validator("message", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("session_id", mode="before")
    @classmethod
    def _token(cls, value: Any) -> Any:
        return normalize_session_id(value)


class ConfirmRequest(MoveCarBaseModel):
    """Body of ``POST /api/owner-confirm``."""

    location: Coordinates | None = None

    @field_validator("location", mode="before")
    @classmethod
    def _drop_empty_location(cls, value: Any) -> Any:
        return _optional_coordinates(value)
