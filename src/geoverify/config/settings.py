# src/geoverify/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/geoverify/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `GEOVERIFY_CONFIG_PATH`
- environment variables (e.g., `GEOVERIFY_LOG_LEVEL`, `GEOVERIFY_CATALOG_PATH`)

Design rule:
- Tuning knobs (default radii, file locations) live in YAML, not in business logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any
from geoverify.core.env import load_dotenv_if_present

import yaml
from pydantic import BaseModel, Field


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `geoverify.config`."""
    text = resources.files("geoverify.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "geoverify"
    log_level: str = "INFO"


class CatalogSettings(BaseModel):
    locations_path: str = "data/locations.json"
    zones_path: str | None = "data/zones.json"


class KmlImportSettings(BaseModel):
    point_radius_m: float = Field(100, ge=0)
    default_radius_m: float = Field(500, ge=0)
    max_upload_bytes: int = Field(10 * 1024 * 1024, ge=1)


class GeofenceSettings(BaseModel):
    kml: KmlImportSettings = Field(default_factory=KmlImportSettings)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    geofence: GeofenceSettings = Field(default_factory=GeofenceSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("GEOVERIFY_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    locations_path = os.getenv("GEOVERIFY_CATALOG_PATH")
    if locations_path:
        data.setdefault("catalog", {})["locations_path"] = locations_path

    zones_path = os.getenv("GEOVERIFY_ZONES_PATH")
    if zones_path:
        data.setdefault("catalog", {})["zones_path"] = zones_path

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("GEOVERIFY_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
