"""Thread-safe in-memory analytics event log."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from threading import Lock

from .interface import EventRecorder
from .models import AnalyticsEvent

logger = logging.getLogger(__name__)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AnalyticsService(EventRecorder):
    """Append-only log of analytics events.

    Writers: the rate service (one event per live fetch), any other caller.
    Readers: the /api/rates/events endpoint, tests.

    Reads return snapshots; events are kept in the order they were recorded.
    """

    def __init__(self) -> None:
        self._events: list[AnalyticsEvent] = []
        self._lock = Lock()

    def record(self, name: str, tags: dict[str, str] | None = None) -> None:
        event = AnalyticsEvent(name=name, parameters=dict(tags or {}))
        with self._lock:
            self._events.append(event)
        logger.info("Tracked event: %s with parameters: %s", event.name, event.parameters)

    def get_all_events(self) -> list[AnalyticsEvent]:
        with self._lock:
            return list(self._events)

    def get_events(
        self,
        name: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[AnalyticsEvent]:
        """Filter by event name and an inclusive [start, end] date range.

        Events are stamped in UTC; naive bounds are taken to be UTC too.
        """
        start = _as_utc(start)
        end = _as_utc(end)
        events = self.get_all_events()
        if name is not None:
            events = [e for e in events if e.name == name]
        if start is not None:
            events = [e for e in events if e.date >= start]
        if end is not None:
            events = [e for e in events if e.date <= end]
        return events

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
