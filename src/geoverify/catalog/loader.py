"""
Location catalog loader.

The catalog is a local JSON file (default: `data/locations.json`) holding location
records with their geofence geometry, plus an optional zones file. Records are
validated one at a time into typed Pydantic models so the verification layer can
assume a consistent shape; a record that fails validation is logged and skipped.
This stands in for the location repository: it only reads and writes flat files
and caches nothing across processes.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Sequence, TypeVar

from pydantic import ValidationError

from geoverify.config.settings import Settings
from geoverify.core.env import resolve_project_path
from geoverify.domain.models import Location, Zone

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", Location, Zone)


def read_records(path: str | Path) -> list[Any]:
    """Read a catalog file as its raw JSON array, without validating the records."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ValueError(f"{resolved}: expected a JSON array of records")
    return payload


def _validate_records(payload: list[Any], model: type[RecordT], source: Path) -> list[RecordT]:
    # One bad record is logged and skipped; it must not hide the others.
    records: list[RecordT] = []
    for index, raw in enumerate(payload):
        try:
            records.append(model.model_validate(raw))
        except ValidationError as e:
            record_id = raw.get("id") if isinstance(raw, dict) else None
            logger.warning(
                "Skipping %s #%s (id=%s) in %s: %s validation error(s)",
                model.__name__,
                index,
                record_id,
                source,
                e.error_count(),
            )
    return records


def load_locations(path: str | Path) -> list[Location]:
    """Load a locations JSON file, skipping records that fail validation."""
    resolved = resolve_project_path(path)
    return _validate_records(read_records(resolved), Location, resolved)


def load_zones(path: str | Path) -> list[Zone]:
    """Load a zones JSON file, skipping records that fail validation."""
    resolved = resolve_project_path(path)
    return _validate_records(read_records(resolved), Zone, resolved)


def next_record_id(records: Iterable[Any]) -> int:
    """First numeric id after every numeric id in `records` (1 when there is none).

    Accepts models or raw record dicts; ids that are not plain digits are ignored.
    """
    numeric = []
    for r in records:
        record_id = r.get("id") if isinstance(r, dict) else getattr(r, "id", None)
        text = str(record_id)
        if text.isdigit():
            numeric.append(int(text))
    return max(numeric, default=0) + 1


def _write_json(path: str | Path, payload: list[Any]) -> Path:
    resolved = resolve_project_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    resolved.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    return resolved


def save_locations(path: str | Path, locations: Iterable[Location], *, keep: Sequence[Any] = ()) -> Path:
    """Write locations as a JSON array (snake_case keys) after the raw records in `keep`."""
    return _write_json(path, [*keep, *(loc.model_dump(mode="json") for loc in locations)])


def save_zones(path: str | Path, zones: Iterable[Zone], *, keep: Sequence[Any] = ()) -> Path:
    """Write zones as a JSON array (snake_case keys) after the raw records in `keep`."""
    return _write_json(path, [*keep, *(z.model_dump(mode="json") for z in zones)])


class LocationCatalog:
    """In-memory view of the locations (and zones) files, keyed by id."""

    def __init__(self, locations: list[Location], zones: list[Zone] | None = None):
        self._by_id: dict[str, Location] = {}
        for loc in locations:
            if loc.id in self._by_id:
                logger.warning("Duplicate location id %s in catalog; keeping the first record", loc.id)
                continue
            self._by_id[loc.id] = loc
        self._zones = list(zones or [])

    @classmethod
    def from_settings(cls, settings: Settings) -> "LocationCatalog":
        locations = load_locations(settings.catalog.locations_path)
        zones: list[Zone] = []
        zones_path = settings.catalog.zones_path
        if zones_path:
            resolved = resolve_project_path(zones_path)
            if resolved.is_file():
                zones = load_zones(resolved)
            else:
                logger.info("No zones file at %s; zone matching disabled", resolved)
        logger.info("Loaded %s location(s) and %s zone(s)", len(locations), len(zones))
        return cls(locations, zones)

    def get(self, location_id: str | int) -> Location | None:
        return self._by_id.get(str(location_id))

    def all(self) -> list[Location]:
        return list(self._by_id.values())

    def zones_for(self, location_id: str | int) -> list[Zone]:
        key = str(location_id)
        return [z for z in self._zones if z.location_id == key]

    def __len__(self) -> int:
        return len(self._by_id)
