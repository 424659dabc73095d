"""
Redundancy tracking for distribution-bearing metrics.

Histograms, meters and timers only re-emit their derived statistics when
their cumulative count moved since the previous cycle. The tracker remembers
the last count seen per metric identity for the lifetime of one reporter.

Entries are never evicted: a metric removed from the registry leaves its last
count behind. That is bounded by registry cardinality, but names built from
unbounded request data would grow the map without limit.
"""

from __future__ import annotations

import threading

from .naming import MetricName


class RedundancyTracker:
    """Last-seen cumulative count per metric identity."""

    def __init__(self) -> None:
        self._last_counts: dict[MetricName, int] = {}
        self._lock = threading.Lock()

    def swap(self, identity: MetricName, count: int) -> int | None:
        """Store ``count`` and return the previous value (None on first sight)."""
        with self._lock:
            previous = self._last_counts.get(identity)
            self._last_counts[identity] = count
            return previous

    def should_report(self, identity: MetricName, count: int) -> bool:
        """Record ``count``; True when it differs from the last one or is new."""
        previous = self.swap(identity, count)
        return previous is None or previous != count

    def last_count(self, identity: MetricName) -> int | None:
        with self._lock:
            return self._last_counts.get(identity)

    def clear(self) -> None:
        with self._lock:
            self._last_counts.clear()

    def __len__(self) -> int:
        return len(self._last_counts)
