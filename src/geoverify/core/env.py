"""
Project root and `.env` helpers.

Catalog paths in settings are relative (`data/locations.json`), so they are resolved
against a project root: `GEOVERIFY_PROJECT_ROOT` when set, otherwise the nearest
directory at or above the working directory holding a `.env` or a `data/locations.json`.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

ROOT_MARKERS = (".env", "data/locations.json")


@lru_cache
def get_project_root() -> Path:
    """Return the project root directory (cached)."""
    override = os.getenv("GEOVERIFY_PROJECT_ROOT")
    if override:
        return Path(override).expanduser().resolve()

    cwd = Path.cwd().resolve()
    for candidate in (cwd, *cwd.parents):
        if any((candidate / marker).is_file() for marker in ROOT_MARKERS):
            return candidate
    return cwd


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load `<project root>/.env` once; variables already set in the process win."""
    env_path = get_project_root() / ".env"
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def resolve_project_path(path: str | Path) -> Path:
    """Resolve a possibly-relative path against the project root."""
    p = Path(path).expanduser()
    if p.is_absolute():
        return p
    return (get_project_root() / p).resolve()
