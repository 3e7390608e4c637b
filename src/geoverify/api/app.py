# src/geoverify/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance and configures CORS.
Endpoints live in `geoverify.api.routes`; geofence logic lives in `geoverify.geofence`.

Run locally:
    uvicorn geoverify.api.app:app --reload
"""

from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from geoverify.core.logging import configure_logging

from .routes import router

configure_logging()

app = FastAPI(title="geoverify API", version="0.1.0")

# CORS (dev-friendly): allow local dashboards to call this API.
# Configure via env:
# - GEOVERIFY_CORS_ORIGINS="http://localhost:5173,http://127.0.0.1:5173"
# - GEOVERIFY_CORS_ALLOW_LOCAL=0 to disable the default localhost allowance
cors_origins = [s.strip() for s in os.getenv("GEOVERIFY_CORS_ORIGINS", "").split(",") if s.strip()]
cors_allow_local = os.getenv("GEOVERIFY_CORS_ALLOW_LOCAL", "1").strip().lower() in {"1", "true", "yes", "y"}
cors_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$" if cors_allow_local and not cors_origins else ""
if cors_origins or cors_origin_regex:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_origin_regex=cors_origin_regex or None,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(router)
