"""
API routes.

Endpoints:
- POST `/events`: attribute the loaded events to the posted points of interest.
- GET  `/health`: liveness plus whether events are loaded and which metric is active.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError
from starlette.concurrency import run_in_threadpool

from geomatch.config.settings import get_settings
from geomatch.core.geo import get_metric
from geomatch.domain.models import MatchResult, PointOfInterest
from geomatch.ingestion.csv_loader import CsvEventSource, CsvFormatError
from geomatch.ingestion.events import SourceUnavailableError
from geomatch.matching.engine import GeoMatcher

logger = logging.getLogger(__name__)

router = APIRouter()


class GeoMatchRequest(BaseModel):
    points_of_interest: list[PointOfInterest] = Field(default_factory=list)


class PoiStats(BaseModel):
    """Flat wire shape of a `MatchResult`."""

    name: str
    lat: float
    lon: float
    impressions: int
    clicks: int

    @classmethod
    def from_result(cls, result: MatchResult) -> "PoiStats":
        return cls(
            name=result.poi.name,
            lat=result.poi.lat,
            lon=result.poi.lon,
            impressions=result.impressions,
            clicks=result.clicks,
        )


@lru_cache
def _event_source() -> CsvEventSource:
    settings = get_settings()
    source = CsvEventSource(settings.events.csv_path)
    try:
        source.load()
    except CsvFormatError as e:
        # Not fatal: the API stays up and /events reports the source as unavailable.
        logger.error("Failed to load events from CSV file %s: %s", settings.events.csv_path, str(e))
    return source


@lru_cache
def _matcher() -> GeoMatcher:
    settings = get_settings()
    return GeoMatcher(_event_source(), get_metric(settings.matching.metric))


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=400, detail={"code": "VALIDATION_ERROR", "message": message})


@router.post("/events", response_model=list[PoiStats])
async def post_events(request: Request) -> list[PoiStats]:
    """Match the posted POIs against the current event set."""
    body = await request.body()
    try:
        payload: Any = json.loads(body)
        req = GeoMatchRequest.model_validate(payload)
    except (ValueError, ValidationError) as e:
        logger.warning("Unable to read body: %s", str(e))
        raise _bad_request("Request body must be a JSON object with 'points_of_interest'.") from e

    if not req.points_of_interest:
        raise _bad_request("'points_of_interest' must contain at least one point.")

    try:
        results = await run_in_threadpool(_matcher().match, req.points_of_interest)
    except SourceUnavailableError as e:
        raise HTTPException(
            status_code=500,
            detail={"code": "SOURCE_UNAVAILABLE", "message": str(e)},
        ) from e

    return [PoiStats.from_result(r) for r in results]


@router.get("/health")
def get_health() -> dict:
    settings = get_settings()
    return {
        "status": "ok",
        "events_loaded": _event_source().loaded,
        "metric": settings.matching.metric,
    }
