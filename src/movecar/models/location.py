"""Coordinate and stored location models."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator, model_validator

from movecar.geo import build_map_links
from movecar.models._base import MoveCarBaseModel, safe_float


class Coordinates(MoveCarBaseModel):
    """A raw WGS-84 position as reported by a browser.

    Parameters
    ----------
    lat : float
        Latitude in degrees, ``-90..90``.
    lng : float
        Longitude in degrees, ``-180..180``.
    """

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)

    @model_validator(mode="before")
    @classmethod
    def _accept_long_names(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        if "lat" not in merged and "latitude" in merged:
            merged["lat"] = merged["latitude"]
        if "lng" not in merged:
            for alt in ("longitude", "lon"):
                if alt in merged:
                    merged["lng"] = merged[alt]
                    break
        return merged

    @field_validator("lat", "lng", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> Any:
        parsed = safe_float(value)
        # Leave unparseable input in place so pydantic reports it.
        return value if parsed is None else parsed


class Location(Coordinates):
    """A coordinate with precomputed map links, as persisted in the store."""

    amap_url: str
    apple_url: str

    @classmethod
    def from_coordinates(cls, coords: Coordinates, *, label: str = "Location") -> Location:
        links = build_map_links(coords.lat, coords.lng, label=label)
        return cls(
            lat=coords.lat,
            lng=coords.lng,
            amap_url=links.amap_url,
            apple_url=links.apple_url,
        )
