"""
geoverify CLI entrypoint.

Quick local checks without running the API:
    geoverify distance 33.6844 73.0479 33.6850 73.0480
    geoverify verify --lat 33.6850 --lng 73.0480 --location-id 1
    geoverify import-kml sites.kmz --out data/locations.json   # appends; --replace overwrites
    geoverify locations
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

from geoverify.catalog.loader import (
    LocationCatalog,
    next_record_id,
    read_records,
    save_locations,
    save_zones,
)
from geoverify.config.settings import get_settings
from geoverify.core.env import resolve_project_path
from geoverify.core.geo import GeoPoint, distance_meters
from geoverify.core.logging import configure_logging
from geoverify.domain.models import BoundaryPayload
from geoverify.geofence.kml import features_to_locations, features_to_zones, parse_kml, read_kml_bytes
from geoverify.geofence.membership import explain_membership
from geoverify.geofence.zones import zones_containing

EXIT_INSIDE = 0
EXIT_OUTSIDE = 1
EXIT_ERROR = 2


def _cmd_distance(args: argparse.Namespace) -> int:
    d = distance_meters(args.lat1, args.lon1, args.lat2, args.lon2)
    print(f"{d:.3f}")
    return 0


def _cmd_verify(args: argparse.Namespace) -> int:
    """Handle the `verify` subcommand (exit code 0 = inside, 1 = outside)."""
    point = GeoPoint(lat=float(args.lat), lon=float(args.lng))

    zones: list = []
    location_id = None
    if args.location_id is not None:
        catalog = LocationCatalog.from_settings(get_settings())
        location = catalog.get(args.location_id)
        if location is None:
            print(f"Location {args.location_id!r} not found", file=sys.stderr)
            return EXIT_ERROR
        location_id = location.id
        boundary: Any = location
        zones = zones_containing(point, catalog.zones_for(location.id))
    else:
        payload = json.loads(Path(args.boundary_json).read_text(encoding="utf-8"))
        boundary = BoundaryPayload.model_validate(payload)

    decision = explain_membership(point, boundary)

    if args.json:
        out = {
            **asdict(decision),
            "location_id": location_id,
            "zones": [z.model_dump(mode="json") for z in zones],
        }
        print(json.dumps(out, ensure_ascii=False, indent=2))
    else:
        verdict = "inside" if decision.inside else "outside"
        extra = f" distance={decision.distance_m:.1f}m" if decision.distance_m is not None else ""
        print(f"{verdict} (method={decision.method}{extra})")
        for z in zones:
            print(f"  zone {z.id}: {z.name}")
    return EXIT_INSIDE if decision.inside else EXIT_OUTSIDE


def _cmd_import_kml(args: argparse.Namespace) -> int:
    cfg = get_settings().geofence.kml
    path = Path(args.file)
    text = read_kml_bytes(path.read_bytes(), path.name)
    features = parse_kml(text, point_radius_m=cfg.point_radius_m)
    if not features:
        print("No valid features (polygons or points) found in the KML/KMZ file", file=sys.stderr)
        return EXIT_ERROR

    out = resolve_project_path(args.out)
    # Existing records are kept verbatim, including any that would not validate.
    existing = read_records(out) if out.is_file() and not args.replace else []
    start_id = next_record_id(existing)
    if args.import_as == "zones":
        zones = features_to_zones(
            features,
            location_id=args.location_id,
            default_radius_m=cfg.default_radius_m,
            start_id=start_id,
        )
        written = save_zones(out, zones, keep=existing)
    else:
        locations = features_to_locations(features, default_radius_m=cfg.default_radius_m, start_id=start_id)
        written = save_locations(out, locations, keep=existing)

    print(f"Imported {len(features)} feature(s) as {args.import_as} -> {written} ({len(existing)} existing kept)")
    for f in features:
        print(f"  {f.type:<7} {f.name}  r={f.radius_meters:.0f}m")
    return 0


def _cmd_locations(_: argparse.Namespace) -> int:
    catalog = LocationCatalog.from_settings(get_settings())
    for loc in catalog.all():
        kind = "polygon" if loc.boundaries and len(loc.boundaries) >= 3 else "circle"
        print(f"{loc.id:>4}  {loc.code or '-':<20}  {kind:<7}  {loc.name}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the geoverify CLI."""
    parser = argparse.ArgumentParser(prog="geoverify")
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override app.log_level for this run",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    dist = sub.add_parser("distance", help="Great-circle distance in meters between two points.")
    dist.add_argument("lat1", type=float)
    dist.add_argument("lon1", type=float)
    dist.add_argument("lat2", type=float)
    dist.add_argument("lon2", type=float)
    dist.set_defaults(func=_cmd_distance)

    ver = sub.add_parser("verify", help="Check whether a point is inside a location's geofence.")
    ver.add_argument("--lat", required=True, type=float)
    ver.add_argument("--lng", required=True, type=float)
    target = ver.add_mutually_exclusive_group(required=True)
    target.add_argument("--location-id", type=str, default=None, help="Location id from the catalog")
    target.add_argument(
        "--boundary-json",
        type=str,
        default=None,
        help="JSON file with boundaries/center_lat/center_lng/radius_meters",
    )
    ver.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    ver.set_defaults(func=_cmd_verify)

    imp = sub.add_parser("import-kml", help="Convert a KML/KMZ export into a locations or zones JSON file.")
    imp.add_argument("file", type=str)
    imp.add_argument("--out", required=True, type=str)
    imp.add_argument("--as", dest="import_as", choices=["locations", "zones"], default="locations")
    imp.add_argument("--location-id", type=str, default=None, help="Parent location (required with --as zones)")
    imp.add_argument(
        "--replace",
        action="store_true",
        help="Overwrite --out instead of appending to the records already in it",
    )
    imp.set_defaults(func=_cmd_import_kml)

    loc = sub.add_parser("locations", help="List catalog locations.")
    loc.set_defaults(func=_cmd_locations)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m geoverify.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    func: Any = getattr(args, "func")
    try:
        return int(func(args))
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
