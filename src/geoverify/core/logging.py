"""
Logging setup from the packaged `logging.yaml`.

The level comes from `app.log_level` (or `GEOVERIFY_LOG_LEVEL`) unless the caller
passes one, as the CLI does for `--log-level`. Only the root logger and handlers
that declare a level are changed; per-logger entries such as `uvicorn.access` keep
the level set in the YAML.
"""

from __future__ import annotations

import logging.config
from typing import Any

from geoverify.config.settings import get_logging_config, get_settings


def build_logging_config(level: str | None = None) -> dict[str, Any]:
    """Return the `dictConfig` mapping with `level` applied (a fresh copy every call)."""
    config = dict(get_logging_config())
    level = (level or get_settings().app.log_level).upper()

    config["root"] = {**config.get("root", {}), "level": level}
    config["handlers"] = {
        name: ({**handler, "level": level} if "level" in handler else handler)
        for name, handler in config.get("handlers", {}).items()
    }
    return config


def configure_logging(level: str | None = None) -> None:
    logging.config.dictConfig(build_logging_config(level))
