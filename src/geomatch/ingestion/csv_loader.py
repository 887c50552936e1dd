"""
CSV event source.

Loads events once from a delimited file with a header row containing (in any
order) `lat`, `lon` and `event_type`, then serves them from memory. This is the
event source the API and CLI wire into the matching engine.

Example file:

    lat,lon,event_type
    48.8566,2.3522,imp
    48.8567,2.3523,click
"""

from __future__ import annotations

import csv
import logging
import threading
from pathlib import Path

from pydantic import ValidationError

from geomatch.core.env import resolve_project_path
from geomatch.domain.models import Event
from geomatch.ingestion.events import SourceUnavailableError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("lat", "lon", "event_type")


class CsvFormatError(ValueError):
    """The CSV file is missing, unreadable, or malformed."""


def parse_events_csv(path: str | Path) -> list[Event]:
    """Read and validate every event record in a CSV file.

    Line numbers in error messages are 1-based and count the header as line 1.

    Raises:
        CsvFormatError: On a missing or undecodable file, a header without the required
            columns, a record with the wrong number of fields, or a bad value.
    """
    resolved = resolve_project_path(path)
    try:
        handle = resolved.open("r", encoding="utf-8", newline="")
    except OSError as exc:
        raise CsvFormatError(f"Failed to open CSV file {resolved}: {exc}") from exc

    with handle:
        reader = csv.reader(handle)
        try:
            return _read_events(reader, resolved)
        except (UnicodeDecodeError, csv.Error) as exc:
            raise CsvFormatError(f"Unreadable CSV data in {resolved} near line {reader.line_num + 1}: {exc}") from exc


def _read_events(reader, resolved: Path) -> list[Event]:
    try:
        header = next(reader)
    except StopIteration:
        raise CsvFormatError(f"Failed to read CSV header from {resolved}: file is empty.") from None

    columns = [h.strip() for h in header]
    missing = [c for c in REQUIRED_COLUMNS if c not in columns]
    if missing:
        raise CsvFormatError(
            f"CSV header missing required fields: need {', '.join(REQUIRED_COLUMNS)} "
            f"(missing: {', '.join(missing)})."
        )
    lat_idx = columns.index("lat")
    lon_idx = columns.index("lon")
    type_idx = columns.index("event_type")

    events: list[Event] = []
    for record in reader:
        line = reader.line_num
        if not record:
            continue
        if len(record) != len(columns):
            raise CsvFormatError(
                f"Wrong number of fields at line {line}: expected {len(columns)}, got {len(record)}."
            )
        try:
            lat = float(record[lat_idx])
        except ValueError as exc:
            raise CsvFormatError(f"Invalid latitude at line {line}: {record[lat_idx]!r}") from exc
        try:
            lon = float(record[lon_idx])
        except ValueError as exc:
            raise CsvFormatError(f"Invalid longitude at line {line}: {record[lon_idx]!r}") from exc
        try:
            events.append(Event(lat=lat, lon=lon, type=record[type_idx]))
        except ValidationError as exc:
            raise CsvFormatError(f"Invalid event at line {line}: {exc.errors()[0]['msg']}") from exc

    return events


class CsvEventSource:
    """Event source backed by a CSV file, loaded explicitly via `load()`."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._events: list[Event] | None = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._events is not None

    def load(self) -> int:
        """(Re)load events from disk; returns the number of events loaded.

        On failure the previously loaded events (if any) are kept.
        """
        events = parse_events_csv(self.path)
        with self._lock:
            self._events = events
        logger.info("Loaded %d events from %s", len(events), self.path)
        return len(events)

    def get(self) -> list[Event]:
        with self._lock:
            events = self._events
        if events is None:
            raise SourceUnavailableError(f"Events from {self.path} are not loaded.")
        return list(events)
