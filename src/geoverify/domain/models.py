"""
Domain models (Pydantic).

These types are the contract between layers:
- catalog records (`Location`, `Zone`)
- API/CLI inputs (`VerificationRequest`, `DistanceRequest`)
- verification output (`VerificationResult`)

Catalog records accept both snake_case keys and the legacy camelCase keys
(`centerLat`, `radiusMeters`, ...) found in older exports, and always dump snake_case.
Boundary rings are lists of `[lng, lat]` pairs (longitude first).
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator


def _either(name: str, legacy: str) -> AliasChoices:
    return AliasChoices(name, legacy)


class GeoPoint(BaseModel):
    """A geographic point in decimal degrees."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class BoundaryPayload(BaseModel):
    """Inline geofence geometry: a ring, a circle, both or neither.

    `boundaries` is kept as stored. Vertices that are not `[lng, lat]` pairs are
    not rejected here; the membership engine reads them as edges that never count.
    """

    boundaries: list[Any] | None = None
    center_lat: float | None = Field(default=None, validation_alias=_either("center_lat", "centerLat"))
    center_lng: float | None = Field(default=None, validation_alias=_either("center_lng", "centerLng"))
    radius_meters: float | None = Field(default=None, validation_alias=_either("radius_meters", "radiusMeters"))

    @field_validator("boundaries", mode="before")
    @classmethod
    def _decode_json_ring(cls, v: object) -> object:
        # SQL exports keep the ring as a JSON string column. Blank or unparsable
        # text, or JSON that is not a list, means there is no ring.
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except ValueError:
                return None
        if v is not None and not isinstance(v, (list, tuple)):
            return None
        return v


class Location(BoundaryPayload):
    """An authorized operating area (site, office, ...)."""

    id: str
    name: str
    code: str | None = None
    description: str = ""
    radius_meters: float | None = Field(default=100, validation_alias=_either("radius_meters", "radiusMeters"))
    is_office: bool = Field(default=False, validation_alias=_either("is_office", "isOffice"))

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: object) -> object:
        # Database exports use integer ids; lookups compare strings.
        return str(v) if isinstance(v, int) else v


class Zone(BaseModel):
    """A circular sub-area of a location."""

    id: str
    location_id: str = Field(..., validation_alias=_either("location_id", "locationId"))
    name: str
    description: str = ""
    center_lat: float = Field(..., validation_alias=_either("center_lat", "centerLat"))
    center_lng: float = Field(..., validation_alias=_either("center_lng", "centerLng"))
    radius_meters: float = Field(default=100, ge=0, validation_alias=_either("radius_meters", "radiusMeters"))
    is_active: bool = Field(default=True, validation_alias=_either("is_active", "isActive"))

    @field_validator("id", "location_id", mode="before")
    @classmethod
    def _ids_as_str(cls, v: object) -> object:
        return str(v) if isinstance(v, int) else v


class DistanceRequest(BaseModel):
    a: GeoPoint
    b: GeoPoint


class DistanceResult(BaseModel):
    distance_m: float = Field(..., ge=0)


class VerificationRequest(BaseModel):
    """A reported position plus either a catalog location id or inline geometry."""

    point: GeoPoint
    location_id: str | None = None
    boundary: BoundaryPayload | None = None

    @field_validator("location_id", mode="before")
    @classmethod
    def _id_as_str(cls, v: object) -> object:
        return str(v) if isinstance(v, int) else v


class VerificationResult(BaseModel):
    """Outcome of one membership check."""

    inside: bool
    method: Literal["polygon", "circle", "none"]
    distance_m: float | None = None
    location_id: str | None = None
    zones: list[Zone] = Field(default_factory=list)
