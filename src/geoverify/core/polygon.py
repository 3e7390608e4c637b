"""
Point-in-polygon containment on the (longitude, latitude) plane.

Rings are stored longitude-first, matching the boundary data imported from KML
(`[[lng, lat], ...]`). The test treats longitude as x and latitude as y, which is a
flat-Earth approximation: fine for site-sized polygons, wrong for polygons that are
very large or cross the antimeridian or a pole.
"""

from __future__ import annotations

from typing import Any, NamedTuple, Sequence

from geoverify.core.geo import GeoPoint

MIN_RING_VERTICES = 3


class LngLat(NamedTuple):
    """One ring vertex. Longitude first, like the stored boundary data."""

    lng: float
    lat: float


Ring = Sequence[LngLat]


def _read_vertex(item: Any) -> LngLat | None:
    try:
        if isinstance(item, dict):
            return LngLat(lng=float(item["lng"]), lat=float(item["lat"]))
        return LngLat(lng=float(item[0]), lat=float(item[1]))
    except (KeyError, IndexError, TypeError, ValueError):
        return None


def coerce_ring(raw: Any) -> list[LngLat | None] | None:
    """Read `raw` as a list of vertices, or None if it is not a sequence at all.

    Accepts `LngLat` values, `[lng, lat]` pairs and `{"lng": .., "lat": ..}` mappings.
    Extra items in a pair (e.g. altitude) are ignored. A vertex that cannot be read
    stays in place as None, so the vertex count still reflects the stored ring.
    """
    if raw is None or isinstance(raw, (str, bytes)):
        return None
    try:
        items = list(raw)
    except TypeError:
        return None
    return [_read_vertex(item) for item in items]


def ring_contains(point: GeoPoint, ring: Any) -> bool:
    """Even-odd ray casting test of `point` against `ring`.

    Rings with fewer than 3 vertices contain nothing. The ring is closed implicitly
    (the last vertex connects back to the first). Points exactly on an edge or vertex
    get whatever the floating-point comparisons produce; there is no special case.
    Edges touching an unreadable vertex never toggle the result.
    """
    vertices = coerce_ring(ring)
    if vertices is None or len(vertices) < MIN_RING_VERTICES:
        return False

    x = point.lon
    y = point.lat
    inside = False
    j = len(vertices) - 1
    for i in range(len(vertices)):
        a, b = vertices[i], vertices[j]
        j = i
        if a is None or b is None:
            continue
        xi, yi = a
        xj, yj = b
        # The first clause is False whenever yi == yj, so the division never sees zero.
        if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
            inside = not inside
    return inside


def point_in_polygon(point_lat: float, point_lng: float, ring: Any) -> bool:
    """Flat-argument form of `ring_contains`."""
    return ring_contains(GeoPoint(lat=point_lat, lon=point_lng), ring)
