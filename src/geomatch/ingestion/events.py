"""
Event source contract.

The matching engine only depends on `EventSource.get()`. Where the events come
from (a CSV file, a database, a remote API) and whether reading them blocks is
the source's concern. Retry policy also belongs to the source.
"""

from __future__ import annotations

from typing import Protocol

from geomatch.domain.models import Event


class SourceUnavailableError(RuntimeError):
    """The event source could not produce events."""


class EventSource(Protocol):
    """Read-side contract for anything that can yield the current event set."""

    def get(self) -> list[Event]:
        """Return the complete current event set.

        Raises:
            SourceUnavailableError: If the events cannot be produced.
        """
        ...


class StaticEventSource:
    """In-memory source serving a fixed list of events."""

    def __init__(self, events: list[Event] | None = None):
        self._events = list(events or [])

    def get(self) -> list[Event]:
        return list(self._events)
