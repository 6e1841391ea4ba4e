#!/usr/bin/env python3
"""Analytics sinks for AnalyticsMiddleware."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from kwizkid.core.constants import AnalyticsEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackedEvent:
    event: AnalyticsEvent
    properties: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


class InMemoryAnalyticsTracker:
    """
    Keeps tracked events in memory and writes each one to the log.

    ``max_events`` bounds memory use; the oldest events are dropped first.
    """

    def __init__(self, max_events: int = 1000) -> None:
        self.max_events = max_events
        self._events: list[TrackedEvent] = []
        self._lock = threading.Lock()

    def track(self, event: AnalyticsEvent, properties: dict[str, Any] | None = None) -> None:
        tracked = TrackedEvent(event, dict(properties or {}))
        with self._lock:
            self._events.append(tracked)
            if len(self._events) > self.max_events:
                del self._events[: len(self._events) - self.max_events]
        logger.info("ANALYTICS: %s %s", event, tracked.properties)

    @property
    def events(self) -> tuple[TrackedEvent, ...]:
        with self._lock:
            return tuple(self._events)

    def count(self, event: AnalyticsEvent) -> int:
        return sum(1 for tracked in self.events if tracked.event == event)
