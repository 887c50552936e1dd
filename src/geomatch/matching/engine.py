from __future__ import annotations

# Matching engine: attribute every event to its nearest POI and count
# impressions/clicks per POI.
#
# One call pulls events once, then does a full linear scan of the POIs for
# each event (O(events x POIs), no spatial index). The engine holds no mutable
# state, so one instance can serve concurrent callers as long as its event
# source supports concurrent reads.

import logging
import math
from typing import Callable, Sequence

from geomatch.core.geo import DistanceMetric, euclidean, haversine_km
from geomatch.domain.models import (
    EVENT_TYPE_CLICK,
    EVENT_TYPE_IMPRESSION,
    MatchResult,
    PointOfInterest,
)
from geomatch.ingestion.events import EventSource, SourceUnavailableError

logger = logging.getLogger(__name__)

SourceErrorObserver = Callable[[BaseException], None]


def log_source_error(exc: BaseException) -> None:
    """Default observer: report an event source failure through logging."""
    logger.error("Failed to get events from event source: %s", str(exc))


def find_closest_poi(
    lat: float,
    lon: float,
    pois: Sequence[PointOfInterest],
    metric: DistanceMetric,
) -> int:
    """Return the index of the POI nearest to (lat, lon), or -1 if `pois` is empty.

    Ties go to the earliest POI in `pois`: the running minimum is only replaced
    on a strictly smaller distance.
    """
    best_index = -1
    best_distance = math.inf
    for i, poi in enumerate(pois):
        d = metric(lat, lon, poi.lat, poi.lon)
        if d < best_distance:
            best_distance = d
            best_index = i
    return best_index


class GeoMatcher:
    """Nearest-POI matcher bound to one event source and one distance metric."""

    def __init__(
        self,
        source: EventSource,
        metric: DistanceMetric = haversine_km,
        *,
        on_source_error: SourceErrorObserver | None = None,
    ):
        self._source = source
        self._metric = metric
        self._on_source_error = on_source_error or log_source_error

    @classmethod
    def haversine(cls, source: EventSource, **kwargs) -> "GeoMatcher":
        return cls(source, haversine_km, **kwargs)

    @classmethod
    def euclidean(cls, source: EventSource, **kwargs) -> "GeoMatcher":
        return cls(source, euclidean, **kwargs)

    @property
    def metric(self) -> DistanceMetric:
        return self._metric

    def match(self, pois: Sequence[PointOfInterest]) -> list[MatchResult]:
        """Assign each event to its nearest POI and return per-POI counts.

        Returns one result per input POI, in input order, or `[]` when either
        `pois` or the event set is empty.

        Raises:
            SourceUnavailableError: If the event source fails. No partial
                results are produced.
        """
        try:
            events = self._source.get()
        except SourceUnavailableError as exc:
            self._on_source_error(exc)
            raise
        except Exception as exc:
            self._on_source_error(exc)
            raise SourceUnavailableError(str(exc)) from exc

        if not pois or not events:
            return []

        impressions = [0] * len(pois)
        clicks = [0] * len(pois)

        for event in events:
            idx = find_closest_poi(event.lat, event.lon, pois, self._metric)
            if idx < 0:
                continue
            if event.type == EVENT_TYPE_IMPRESSION:
                impressions[idx] += 1
            elif event.type == EVENT_TYPE_CLICK:
                clicks[idx] += 1

        return [
            MatchResult(poi=poi, impressions=impressions[i], clicks=clicks[i])
            for i, poi in enumerate(pois)
        ]
