"""
Boundary membership: is a reported position inside a location's geofence?

A location may carry a polygon ring, a circle (center + radius), both, or neither.
Decision order:
1. no boundary at all            -> outside
2. ring with >= 3 vertices       -> polygon containment (wins over any circle)
3. circle center + radius present -> haversine distance <= radius (inclusive)
4. otherwise                     -> outside

Nothing in this module raises or logs. Data that cannot be read degrades to
"outside": an unverifiable position is "not verified", not a fault.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping

from geoverify.core.geo import GeoPoint, haversine_m
from geoverify.core.polygon import MIN_RING_VERTICES, LngLat, coerce_ring, ring_contains

MembershipMethod = Literal["polygon", "circle", "none"]

# Record keys in the order they are tried: snake_case first, then the legacy camelCase.
_RING_KEYS = ("boundaries", "ring")
_CENTER_LAT_KEYS = ("center_lat", "centerLat")
_CENTER_LNG_KEYS = ("center_lng", "centerLng", "center_lon")
_RADIUS_KEYS = ("radius_meters", "radiusMeters", "radius_m")


@dataclass(frozen=True)
class Circle:
    center: GeoPoint
    radius_meters: float


@dataclass(frozen=True)
class LocationBoundary:
    """Geofence geometry of one location. Either part may be missing."""

    ring: tuple[LngLat | None, ...] | None = None
    circle: Circle | None = None

    @property
    def has_polygon(self) -> bool:
        return self.ring is not None and len(self.ring) >= MIN_RING_VERTICES


@dataclass(frozen=True)
class MembershipDecision:
    """The boolean decision plus which rule produced it."""

    inside: bool
    method: MembershipMethod
    distance_m: float | None = None


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _first(record: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return None


def _record_as_mapping(record: Any) -> Mapping[str, Any] | None:
    if isinstance(record, Mapping):
        return record
    # Pydantic models (Location, Zone, inline boundaries) expose model_dump().
    dump = getattr(record, "model_dump", None)
    if callable(dump):
        try:
            data = dump()
        except Exception:
            return None
        return data if isinstance(data, Mapping) else None
    return None


def boundary_from_record(record: Any) -> LocationBoundary | None:
    """Build a `LocationBoundary` from a location-like record.

    Accepts a `LocationBoundary` (returned as-is), a mapping with either
    `boundaries/center_lat/center_lng/radius_meters` or the legacy
    `boundaries/centerLat/centerLng/radiusMeters` keys, or a Pydantic model with the
    same fields. A ring that is not a sequence, or a circle missing a part, is
    treated as absent. A ring keeps its unreadable vertices so that the vertex
    count, not their quality, decides whether the polygon rule applies.
    """
    if record is None:
        return None
    if isinstance(record, LocationBoundary):
        return record
    data = _record_as_mapping(record)
    if data is None:
        return None

    vertices = coerce_ring(_first(data, _RING_KEYS))
    ring = tuple(vertices) if vertices is not None else None

    circle = None
    lat = _to_float(_first(data, _CENTER_LAT_KEYS))
    lng = _to_float(_first(data, _CENTER_LNG_KEYS))
    radius = _to_float(_first(data, _RADIUS_KEYS))
    if lat is not None and lng is not None and radius is not None:
        circle = Circle(center=GeoPoint(lat=lat, lon=lng), radius_meters=radius)

    return LocationBoundary(ring=ring, circle=circle)


def explain_membership(point: GeoPoint, boundary: Any) -> MembershipDecision:
    """Decide membership and report which rule decided it."""
    resolved = boundary_from_record(boundary)
    if resolved is None:
        return MembershipDecision(inside=False, method="none")

    if resolved.has_polygon:
        return MembershipDecision(inside=ring_contains(point, resolved.ring), method="polygon")

    if resolved.circle is not None:
        d = haversine_m(point, resolved.circle.center)
        return MembershipDecision(inside=d <= resolved.circle.radius_meters, method="circle", distance_m=d)

    return MembershipDecision(inside=False, method="none")


def is_within_boundary(point: GeoPoint, boundary: Any) -> bool:
    """True when `point` lies inside `boundary` (see module docstring for the rules)."""
    return explain_membership(point, boundary).inside


def is_within_location_boundary(user_lat: float, user_lng: float, boundary: Any) -> bool:
    """Flat-argument form of `is_within_boundary`."""
    lat = _to_float(user_lat)
    lng = _to_float(user_lng)
    if lat is None or lng is None:
        return False
    return is_within_boundary(GeoPoint(lat=lat, lon=lng), boundary)
