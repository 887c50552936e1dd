from __future__ import annotations
from math import atan2, cos, radians, sin, sqrt
from typing import Protocol

"""
Distance metrics.

Both metrics share one call shape so the matching engine can take either one:
`metric(lat1, lon1, lat2, lon2) -> float`. Magnitudes are not comparable across
metrics (kilometers vs. degrees); only the ordering they induce matters for
nearest-POI selection.
"""

EARTH_RADIUS_KM = 6371.0


class DistanceMetric(Protocol):
    """Pure, symmetric distance between two lat/lon pairs in decimal degrees."""

    def __call__(self, lat1: float, lon1: float, lat2: float, lon2: float) -> float: ...


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute great-circle distance in kilometers between two points."""
    lat1_rad = radians(lat1)
    lon1_rad = radians(lon1)
    lat2_rad = radians(lat2)
    lon2_rad = radians(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = sin(dlat / 2) ** 2 + cos(lat1_rad) * cos(lat2_rad) * sin(dlon / 2) ** 2
    # Rounding can push `a` just past 1 for near-antipodal points.
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_KM * atan2(sqrt(a), sqrt(1 - a))


def euclidean(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Flat-plane distance treating lat/lon as Cartesian coordinates (degrees).

    Distorted over large spans and at high latitudes; fine for ranking points
    inside a small, localized cluster.
    """
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    return sqrt(dlat * dlat + dlon * dlon)


METRICS: dict[str, DistanceMetric] = {
    "haversine": haversine_km,
    "euclidean": euclidean,
}


def get_metric(name: str) -> DistanceMetric:
    """Resolve a metric by name (case-insensitive)."""
    key = str(name or "").strip().lower()
    try:
        return METRICS[key]
    except KeyError:
        known = ", ".join(sorted(METRICS))
        raise ValueError(f"Unknown distance metric '{name}'; expected one of: {known}.") from None
