from __future__ import annotations

from typing import Iterable

from geoverify.core.geo import GeoPoint
from geoverify.domain.models import Zone
from geoverify.geofence.membership import is_within_boundary


def zones_containing(point: GeoPoint, zones: Iterable[Zone]) -> list[Zone]:
    """Return the active zones whose circle contains `point`, in input order."""
    return [z for z in zones if z.is_active and is_within_boundary(point, z)]
