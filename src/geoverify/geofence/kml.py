"""
KML/KMZ boundary import.

Google Earth exports are turned into geofence records:
- a Placemark with a Polygon becomes a polygon feature. Its ring (outer boundary
  only) is stored as closed `[lng, lat]` pairs, and a covering circle (vertex
  centroid + farthest-vertex distance) is kept alongside it as a fallback.
- a Placemark with a Point becomes a circle of `point_radius_m`.

Each placemark yields at most one polygon feature, from its first Polygon, and one
point feature, from its first Point. Further polygons or points inside a
MultiGeometry are skipped, as are inner boundaries (holes) and other geometry types.
"""

from __future__ import annotations

import io
import logging
import math
import re
import zipfile
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Literal

from geoverify.core.geo import GeoPoint, haversine_m
from geoverify.domain.models import Location, Zone

logger = logging.getLogger(__name__)

DEFAULT_POINT_RADIUS_M = 100.0
DEFAULT_IMPORT_RADIUS_M = 500.0
CODE_MAX_LEN = 20


class KmlError(ValueError):
    """Raised when an upload is not a readable KML/KMZ document."""


@dataclass(frozen=True)
class KmlFeature:
    type: Literal["polygon", "point"]
    name: str
    description: str
    center_lat: float
    center_lng: float
    radius_meters: float
    boundaries: list[list[float]] | None = field(default=None)


def _local(tag: str) -> str:
    # "{http://www.opengis.net/kml/2.2}Placemark" -> "Placemark"
    return tag.rsplit("}", 1)[-1]


def _find(node: ET.Element, name: str) -> ET.Element | None:
    """First descendant with local tag `name` (document order), ignoring namespaces."""
    for el in node.iter():
        if el is not node and _local(el.tag) == name:
            return el
    return None


def _text(node: ET.Element | None) -> str:
    if node is None:
        return ""
    return "".join(node.itertext()).strip()


def parse_coordinates(text: str) -> list[tuple[float, float, float]]:
    """Parse a KML `<coordinates>` body into `(lng, lat, alt)` tuples.

    Tuples with fewer than two parts or non-numeric parts are dropped.
    """
    out: list[tuple[float, float, float]] = []
    for token in (text or "").split():
        parts = token.split(",")
        if len(parts) < 2:
            continue
        try:
            lng = float(parts[0])
            lat = float(parts[1])
            alt = float(parts[2]) if len(parts) > 2 and parts[2] else 0.0
        except ValueError:
            continue
        out.append((lng, lat, alt))
    return out


def polygon_center_and_radius(coords: list[tuple[float, float, float]]) -> tuple[float, float, float] | None:
    """Return `(center_lat, center_lng, radius_m)` of the circle covering `coords`.

    The center is the plain mean of the vertices, the radius the distance to the
    farthest vertex rounded up to a whole meter.
    """
    if not coords:
        return None
    center_lat = sum(c[1] for c in coords) / len(coords)
    center_lng = sum(c[0] for c in coords) / len(coords)
    center = GeoPoint(lat=center_lat, lon=center_lng)
    farthest = max(haversine_m(center, GeoPoint(lat=c[1], lon=c[0])) for c in coords)
    return center_lat, center_lng, float(math.ceil(farthest))


def _close_ring(ring: list[list[float]]) -> list[list[float]]:
    if ring and ring[0] != ring[-1]:
        return [*ring, list(ring[0])]
    return ring


def parse_kml(text: str, *, point_radius_m: float = DEFAULT_POINT_RADIUS_M) -> list[KmlFeature]:
    """Extract polygon and point features from a KML document."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise KmlError(f"Invalid XML/KML format: {exc}") from exc

    features: list[KmlFeature] = []
    placemarks = [el for el in root.iter() if _local(el.tag) == "Placemark"]
    for i, pm in enumerate(placemarks, start=1):
        name = _text(_find(pm, "name")) or f"Feature {i}"
        description = _text(_find(pm, "description"))

        polygon = _find(pm, "Polygon")
        outer = _find(polygon, "outerBoundaryIs") if polygon is not None else None
        ring_el = _find(outer, "LinearRing") if outer is not None else None
        coords_el = _find(ring_el, "coordinates") if ring_el is not None else None
        if coords_el is not None:
            coords = parse_coordinates(_text(coords_el))
            circle = polygon_center_and_radius(coords)
            if circle is not None:
                center_lat, center_lng, radius = circle
                features.append(
                    KmlFeature(
                        type="polygon",
                        name=name,
                        description=description,
                        center_lat=center_lat,
                        center_lng=center_lng,
                        radius_meters=radius,
                        boundaries=_close_ring([[c[0], c[1]] for c in coords]),
                    )
                )

        point = _find(pm, "Point")
        point_coords_el = _find(point, "coordinates") if point is not None else None
        if point_coords_el is not None:
            coords = parse_coordinates(_text(point_coords_el))
            if coords:
                features.append(
                    KmlFeature(
                        type="point",
                        name=name,
                        description=description,
                        center_lat=coords[0][1],
                        center_lng=coords[0][0],
                        radius_meters=float(point_radius_m),
                    )
                )

    logger.info("Parsed %s feature(s) from %s placemark(s)", len(features), len(placemarks))
    return features


def read_kml_bytes(data: bytes, filename: str) -> str:
    """Return the KML text of an uploaded `.kml` or `.kmz` file."""
    lower = filename.lower()
    if lower.endswith(".kmz"):
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as zf:
                entry = next((n for n in zf.namelist() if n.lower().endswith(".kml")), None)
                if entry is None:
                    raise KmlError("No KML file found inside KMZ archive")
                raw = zf.read(entry)
        except zipfile.BadZipFile as exc:
            raise KmlError(f"Invalid KMZ archive: {exc}") from exc
    elif lower.endswith(".kml"):
        raw = data
    else:
        raise KmlError("Invalid file type. Only KMZ and KML files are supported.")

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise KmlError("KML content is not valid UTF-8") from exc


def location_code(name: str, index: int) -> str:
    """Short upper-case code derived from a feature name, e.g. `MAIN-GATE`."""
    if not name:
        return f"LOC-{index}"
    return re.sub(r"\s+", "-", name[:CODE_MAX_LEN].upper())


def features_to_locations(
    features: list[KmlFeature],
    *,
    default_radius_m: float = DEFAULT_IMPORT_RADIUS_M,
    start_id: int = 1,
) -> list[Location]:
    """Build catalog locations from parsed features (ids are assigned sequentially)."""
    out: list[Location] = []
    for i, f in enumerate(features, start=1):
        out.append(
            Location(
                id=str(start_id + i - 1),
                name=f.name or f"Location {i}",
                code=location_code(f.name, i),
                description=f.description,
                center_lat=f.center_lat,
                center_lng=f.center_lng,
                radius_meters=f.radius_meters or default_radius_m,
                boundaries=f.boundaries,
            )
        )
    return out


def features_to_zones(
    features: list[KmlFeature],
    *,
    location_id: str,
    default_radius_m: float = DEFAULT_IMPORT_RADIUS_M,
    start_id: int = 1,
) -> list[Zone]:
    """Build circular zones of `location_id` from parsed features (polygons keep only their circle)."""
    if not location_id:
        raise ValueError("location_id is required when importing as zones")
    return [
        Zone(
            id=str(start_id + i - 1),
            location_id=location_id,
            name=f.name or f"Zone {i}",
            description=f.description,
            center_lat=f.center_lat,
            center_lng=f.center_lng,
            radius_meters=f.radius_meters or default_radius_m,
        )
        for i, f in enumerate(features, start=1)
    ]
