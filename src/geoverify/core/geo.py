from __future__ import annotations
from dataclasses import dataclass
from math import atan2, cos, inf, isfinite, radians, sin, sqrt

"""
Spherical distance helpers.

Distances use the Haversine formula on a sphere with the mean Earth radius. This is
not WGS-84 ellipsoidal, but it is accurate enough for geofence radii up to tens of km.
"""

EARTH_RADIUS_M = 6_371_000.0


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in meters between two points.

    Non-finite coordinates yield `inf` (math.sin rejects infinities).
    """
    if not all(isfinite(v) for v in (a.lat, a.lon, b.lat, b.lon)):
        return inf
    phi1 = radians(a.lat)
    phi2 = radians(b.lat)
    d_phi = radians(b.lat - a.lat)
    d_lambda = radians(b.lon - a.lon)

    h = sin(d_phi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(d_lambda / 2) ** 2
    # Rounding can push h a few ULPs outside [0, 1]; sqrt(1 - h) would then fail.
    h = min(1.0, max(0.0, h))
    c = 2 * atan2(sqrt(h), sqrt(1 - h))
    return EARTH_RADIUS_M * c


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Flat-argument form of `haversine_m` (meters, >= 0)."""
    return haversine_m(GeoPoint(lat=lat1, lon=lon1), GeoPoint(lat=lat2, lon=lon2))
