"""Event log — bounded, thread-safe store of site events.

Builds append one event per written file and servers one per rendered
document, so the log is a ring buffer: the newest ``max_events`` entries
are kept.  Queries filter on event type, time, and the URL or source
path an event refers to.

Thread Safety:
    Every method takes the same ``threading.Lock``; events are frozen,
    so results can be shared freely.

"""

import threading
from collections import Counter, deque
from typing import Any

from tabby.observability.events import SiteEvent


def _refers_to(event: SiteEvent, needle: str) -> bool:
    """True if *needle* occurs in the event's URL or source path."""
    for attr in ("url", "source"):
        value = getattr(event, attr, None)
        if value and needle in value:
            return True
    return False


class EventLog:
    """Ring buffer of site events.

    Args:
        max_events: Number of events kept; older ones are dropped.

    """

    __slots__ = ("_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[SiteEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def append(self, event: SiteEvent) -> None:
        with self._lock:
            self._events.append(event)

    def _snapshot(self) -> list[SiteEvent]:
        with self._lock:
            return list(self._events)

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        path: str | None = None,
        limit: int = 100,
    ) -> list[SiteEvent]:
        """Matching events, newest first.

        Args:
            event_type: Keep only instances of this class.
            since_ns: Keep only events stamped at or after this time.
            path: Keep only events whose ``url`` or ``source`` contains it.
            limit: Maximum number of events returned.

        """
        matches: list[SiteEvent] = []
        for event in reversed(self._snapshot()):
            if len(matches) == limit:
                break
            if event_type is not None and not isinstance(event, event_type):
                continue
            if event.timestamp_ns < since_ns:
                continue
            if path is not None and not _refers_to(event, path):
                continue
            matches.append(event)
        return matches

    def recent(self, n: int = 20) -> list[SiteEvent]:
        """The *n* newest events, oldest first."""
        return self._snapshot()[-n:]

    def clear(self) -> int:
        """Drop every event; returns how many there were."""
        with self._lock:
            count = len(self._events)
            self._events.clear()
        return count

    def total_ms(self, event_type: type) -> float:
        """Sum of ``duration_ms`` over the stored events of *event_type*."""
        return sum(
            getattr(e, "duration_ms", 0.0)
            for e in self._snapshot()
            if isinstance(e, event_type)
        )

    def stats(self) -> dict[str, Any]:
        """Counts of stored events, overall and per event class."""
        events = self._snapshot()
        return {
            "total": len(events),
            "max_events": self._max_events,
            "by_type": dict(Counter(type(e).__name__ for e in events)),
        }
