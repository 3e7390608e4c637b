from __future__ import annotations

import argparse
from pathlib import Path

from geoverify.catalog.loader import load_locations, load_zones
from geoverify.core.env import resolve_project_path
from geoverify.core.polygon import MIN_RING_VERTICES, coerce_ring


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Validate a geoverify locations/zones catalog (offline).")
    p.add_argument("--locations", type=str, default="data/locations.json")
    p.add_argument("--zones", type=str, default="data/zones.json")
    args = p.parse_args(argv)

    locations_path = resolve_project_path(args.locations)
    zones_path: Path = resolve_project_path(args.zones)

    locations = load_locations(locations_path)
    known = {loc.id for loc in locations}

    polygons = 0
    circles = 0
    degenerate_rings = []
    unusable = []
    open_rings = []
    bad_vertices = []

    for loc in locations:
        ring = coerce_ring(loc.boundaries) or []
        if any(v is None for v in ring):
            bad_vertices.append(loc.id)
        if ring and len(ring) < MIN_RING_VERTICES:
            degenerate_rings.append(loc.id)
        if len(ring) >= MIN_RING_VERTICES:
            polygons += 1
            if ring[0] != ring[-1]:
                open_rings.append(loc.id)
            continue
        if loc.center_lat is not None and loc.center_lng is not None and loc.radius_meters is not None:
            circles += 1
        else:
            unusable.append(loc.id)

    print("Locations:", locations_path)
    print("Location entries:", len(locations))
    print("Polygon geofences:", polygons)
    print("Circle-only geofences:", circles)
    if open_rings:
        print("Open rings (closed implicitly):", len(open_rings), "example:", ", ".join(open_rings[:8]))
    if degenerate_rings:
        print("Rings with < 3 vertices:", len(degenerate_rings), "example:", ", ".join(degenerate_rings[:8]))
    if bad_vertices:
        print("Rings with unreadable vertices:", len(bad_vertices), "example:", ", ".join(bad_vertices[:8]))
    if unusable:
        print("No usable geometry (always outside):", len(unusable), "example:", ", ".join(unusable[:8]))

    orphan_zones = []
    if zones_path.exists():
        zones = load_zones(zones_path)
        orphan_zones = [z.id for z in zones if z.location_id not in known]
        print("Zones:", zones_path)
        print("Zone entries:", len(zones))
        if orphan_zones:
            print("Zones with unknown location:", len(orphan_zones), "example:", ", ".join(orphan_zones[:8]))

    if unusable or orphan_zones:
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
