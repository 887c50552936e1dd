# src/geomatch/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance and mounts the routes.
Matching logic lives in `geomatch.matching.engine`; event loading in `geomatch.ingestion`.

Run with `geomatch serve` or `uvicorn geomatch.api.app:app --port 8080`.
"""

from __future__ import annotations

from fastapi import FastAPI

from geomatch.core.logging import configure_logging

from .routes import router


def create_app() -> FastAPI:
    configure_logging()
    application = FastAPI(title="GeoMatch API", version="0.1.0")
    application.include_router(router)
    return application


app = create_app()
