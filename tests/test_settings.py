from __future__ import annotations

import pytest

from geoverify.config.settings import get_logging_config, get_settings


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    # get_settings() is cached; each test sees its own environment.
    for name in ["GEOVERIFY_CONFIG_PATH", "GEOVERIFY_LOG_LEVEL", "GEOVERIFY_CATALOG_PATH", "GEOVERIFY_ZONES_PATH"]:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_packaged_defaults():
    settings = get_settings()
    assert settings.app.name == "geoverify"
    assert settings.app.log_level == "INFO"
    assert settings.catalog.locations_path == "data/locations.json"
    assert settings.geofence.kml.point_radius_m == 100
    assert settings.geofence.kml.default_radius_m == 500


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("GEOVERIFY_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("GEOVERIFY_CATALOG_PATH", "/srv/geo/locations.json")
    monkeypatch.setenv("GEOVERIFY_ZONES_PATH", "/srv/geo/zones.json")
    settings = get_settings()
    assert settings.app.log_level == "DEBUG"
    assert settings.catalog.locations_path == "/srv/geo/locations.json"
    assert settings.catalog.zones_path == "/srv/geo/zones.json"


def test_external_config_file(monkeypatch, tmp_path):
    path = tmp_path / "geoverify.yaml"
    path.write_text("geofence:\n  kml:\n    point_radius_m: 250\n", encoding="utf-8")
    monkeypatch.setenv("GEOVERIFY_CONFIG_PATH", str(path))
    settings = get_settings()
    assert settings.geofence.kml.point_radius_m == 250
    assert settings.geofence.kml.default_radius_m == 500


def test_external_config_must_be_a_mapping(monkeypatch, tmp_path):
    path = tmp_path / "geoverify.yaml"
    path.write_text("- not\n- a mapping\n", encoding="utf-8")
    monkeypatch.setenv("GEOVERIFY_CONFIG_PATH", str(path))
    with pytest.raises(ValueError, match="expected a mapping"):
        get_settings()


def test_logging_config_is_packaged():
    config = get_logging_config()
    assert config["version"] == 1
    assert "console" in config["handlers"]


def test_logging_level_follows_settings_or_explicit_level(monkeypatch):
    from geoverify.core.logging import build_logging_config

    monkeypatch.setenv("GEOVERIFY_LOG_LEVEL", "warning")
    config = build_logging_config()
    assert config["root"]["level"] == "WARNING"
    assert config["handlers"]["console"]["level"] == "WARNING"
    # Per-logger levels from the YAML are left alone.
    assert config["loggers"]["uvicorn.access"]["level"] == "WARNING"

    assert build_logging_config("debug")["root"]["level"] == "DEBUG"
    # The cached packaged config is never mutated.
    assert get_logging_config()["root"]["level"] == "INFO"
