"""
Domain models (Pydantic).

These types are the contract between the matching engine and its callers:
- `PointOfInterest`: caller-supplied reference location
- `Event`: one impression/click pulled from an event source
- `MatchResult`: per-POI aggregated counts returned by the engine

POIs and events are frozen; identity for aggregation is the POI's position in
the caller's list, never its name.
"""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, ConfigDict, Field

EVENT_TYPE_IMPRESSION: Final = "imp"
EVENT_TYPE_CLICK: Final = "click"


class PointOfInterest(BaseModel):
    """A named reference location in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    name: str
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class Event(BaseModel):
    """A recorded impression or click at a coordinate.

    `type` is an open string; only `imp` and `click` are counted.
    """

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    type: str


class MatchResult(BaseModel):
    """One POI plus the events attributed to it."""

    poi: PointOfInterest
    impressions: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)
