"""WGS-84 to GCJ-02 coordinate correction and map link helpers.

Chinese map services (Amap and friends) expect coordinates in the
GCJ-02 system, a deterministic non-linear offset of raw GPS (WGS-84)
coordinates. The correction is only defined inside a rough bounding box
around mainland China; everywhere else coordinates pass through unchanged.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from urllib.parse import quote

# Krasovsky 1940 ellipsoid.
_SEMI_MAJOR_AXIS = 6378245.0
_ECCENTRICITY_SQ = 0.00669342162296594323

_MIN_LNG = 72.004
_MAX_LNG = 137.8347
_MIN_LAT = 0.8293
_MAX_LAT = 55.8271

_EARTH_RADIUS_M = 6_371_000

AMAP_MARKER_URL = "https://uri.amap.com/marker"
APPLE_MAPS_URL = "https://maps.apple.com/"


@dataclass(frozen=True)
class MapLinks:
    """Ready-to-open map links for one coordinate."""

    amap_url: str
    apple_url: str


def out_of_china(lat: float, lng: float) -> bool:
    """Return ``True`` outside the region where the correction applies."""
    return lng < _MIN_LNG or lng > _MAX_LNG or lat < _MIN_LAT or lat > _MAX_LAT


def _transform_lat(x: float, y: float) -> float:
    ret = -100.0 + 2.0 * x + 3.0 * y + 0.2 * y * y + 0.1 * x * y + 0.2 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * math.pi) + 20.0 * math.sin(2.0 * x * math.pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(y * math.pi) + 40.0 * math.sin(y / 3.0 * math.pi)) * 2.0 / 3.0
    ret += (160.0 * math.sin(y / 12.0 * math.pi) + 320 * math.sin(y * math.pi / 30.0)) * 2.0 / 3.0
    return ret


def _transform_lng(x: float, y: float) -> float:
    ret = 300.0 + x + 2.0 * y + 0.1 * x * x + 0.1 * x * y + 0.1 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * math.pi) + 20.0 * math.sin(2.0 * x * math.pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(x * math.pi) + 40.0 * math.sin(x / 3.0 * math.pi)) * 2.0 / 3.0
    ret += (150.0 * math.sin(x / 12.0 * math.pi) + 300.0 * math.sin(x / 30.0 * math.pi)) * 2.0 / 3.0
    return ret


def wgs84_to_gcj02(lat: float, lng: float) -> tuple[float, float]:
    """Convert a WGS-84 coordinate to GCJ-02.

    Returns ``(lat, lng)``. Inputs outside the correction region are
    returned unchanged.
    """
    if out_of_china(lat, lng):
        return lat, lng

    d_lat = _transform_lat(lng - 105.0, lat - 35.0)
    d_lng = _transform_lng(lng - 105.0, lat - 35.0)
    rad_lat = lat / 180.0 * math.pi
    magic = math.sin(rad_lat)
    magic = 1 - _ECCENTRICITY_SQ * magic * magic
    sqrt_magic = math.sqrt(magic)
    d_lat = (d_lat * 180.0) / ((_SEMI_MAJOR_AXIS * (1 - _ECCENTRICITY_SQ)) / (magic * sqrt_magic) * math.pi)
    d_lng = (d_lng * 180.0) / (_SEMI_MAJOR_AXIS / sqrt_magic * math.cos(rad_lat) * math.pi)
    return lat + d_lat, lng + d_lng


def build_map_links(lat: float, lng: float, *, label: str = "Location") -> MapLinks:
    """Build an Amap link (GCJ-02) and an Apple Maps link (raw WGS-84)."""
    gcj_lat, gcj_lng = wgs84_to_gcj02(lat, lng)
    name = quote(label, safe="")
    return MapLinks(
        amap_url=f"{AMAP_MARKER_URL}?position={gcj_lng},{gcj_lat}&name={name}",
        apple_url=f"{APPLE_MAPS_URL}?ll={lat},{lng}&q={name}",
    )


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters between two coordinates."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lng2 - lng1)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * _EARTH_RADIUS_M * math.asin(math.sqrt(h))
