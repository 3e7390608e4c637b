"""
API routes.

Endpoints:
- GET  `/api/health`: liveness + app name.
- POST `/api/distance`: great-circle distance between two points.
- POST `/api/verify`: is a reported point inside a catalog location (or inline geometry)?
- GET  `/api/locations`, `/api/locations/{location_id}`: catalog lookups.
- POST `/api/kml/features`: parse a raw KML/KMZ upload into geofence features.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from functools import lru_cache

from fastapi import APIRouter, HTTPException, Query, Request

from geoverify.catalog.loader import LocationCatalog
from geoverify.config.settings import get_settings
from geoverify.core.geo import GeoPoint as CoreGeoPoint, haversine_m
from geoverify.domain.models import (
    DistanceRequest,
    DistanceResult,
    Location,
    VerificationRequest,
    VerificationResult,
)
from geoverify.geofence.kml import KmlError, parse_kml, read_kml_bytes
from geoverify.geofence.membership import explain_membership
from geoverify.geofence.zones import zones_containing

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def _catalog() -> LocationCatalog:
    return LocationCatalog.from_settings(get_settings())


def _load_catalog() -> LocationCatalog:
    try:
        return _catalog()
    except (OSError, ValueError) as e:
        logger.exception("Location catalog could not be loaded")
        raise HTTPException(
            status_code=500,
            detail={"code": "CATALOG_UNAVAILABLE", "message": str(e)},
        ) from e


def _not_found(location_id: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "LOCATION_NOT_FOUND", "message": f"Location {location_id!r} not found"},
    )


@router.get("/api/health")
def get_health() -> dict:
    return {"status": "ok", "name": get_settings().app.name}


@router.post("/api/distance", response_model=DistanceResult)
def post_distance(req: DistanceRequest) -> DistanceResult:
    """Return the Haversine distance in meters between `a` and `b`."""
    d = haversine_m(CoreGeoPoint(lat=req.a.lat, lon=req.a.lon), CoreGeoPoint(lat=req.b.lat, lon=req.b.lon))
    return DistanceResult(distance_m=d)


@router.post("/api/verify", response_model=VerificationResult)
def post_verify(req: VerificationRequest) -> VerificationResult:
    """Check a reported position against a catalog location or inline boundary.

    A catalog location wins over an inline boundary when both are sent.
    """
    point = CoreGeoPoint(lat=req.point.lat, lon=req.point.lon)

    if req.location_id is not None:
        catalog = _load_catalog()
        location = catalog.get(req.location_id)
        if location is None:
            raise _not_found(req.location_id)
        decision = explain_membership(point, location)
        zones = zones_containing(point, catalog.zones_for(location.id))
        logger.info(
            "Verified point against location=%s method=%s inside=%s", location.id, decision.method, decision.inside
        )
        return VerificationResult(
            inside=decision.inside,
            method=decision.method,
            distance_m=decision.distance_m,
            location_id=location.id,
            zones=zones,
        )

    if req.boundary is None:
        raise HTTPException(
            status_code=400,
            detail={"code": "VALIDATION_ERROR", "message": "either location_id or boundary is required"},
        )

    decision = explain_membership(point, req.boundary)
    return VerificationResult(inside=decision.inside, method=decision.method, distance_m=decision.distance_m)


@router.get("/api/locations", response_model=list[Location])
def get_locations() -> list[Location]:
    return _load_catalog().all()


@router.get("/api/locations/{location_id}", response_model=Location)
def get_location(location_id: str) -> Location:
    location = _load_catalog().get(location_id)
    if location is None:
        raise _not_found(location_id)
    return location


@router.post("/api/kml/features")
async def post_kml_features(request: Request, filename: str = Query(..., min_length=1)) -> dict:
    """Parse a raw `.kml`/`.kmz` request body (the file name decides the format)."""
    cfg = get_settings().geofence.kml
    body = await request.body()
    if not body:
        raise HTTPException(status_code=400, detail={"code": "VALIDATION_ERROR", "message": "No file uploaded"})
    if len(body) > cfg.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail={"code": "FILE_TOO_LARGE", "message": f"Upload exceeds {cfg.max_upload_bytes} bytes"},
        )
    try:
        features = parse_kml(read_kml_bytes(body, filename), point_radius_m=cfg.point_radius_m)
    except KmlError as e:
        raise HTTPException(status_code=400, detail={"code": "INVALID_KML", "message": str(e)}) from e
    if not features:
        raise HTTPException(
            status_code=400,
            detail={
                "code": "NO_FEATURES",
                "message": "No valid features (polygons or points) found in the KML/KMZ file",
            },
        )
    return {"features": [asdict(f) for f in features]}
