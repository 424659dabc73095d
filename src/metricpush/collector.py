"""
Snapshot collection: registry maps in, ordered batch of data points out.

One ``DataPointCollector`` lives for exactly one reporting cycle. It walks the
five metric maps and expands every metric into zero or more points:

- gauge      → one point, skipped when the reading is not a finite number
- counter    → one point with the raw count, every cycle
- histogram  → ``count`` always; snapshot statistics when the count moved
- meter      → ``total`` always; rate windows when the count moved
- timer      → ``count`` always; ``duration`` statistics and rate windows
               when the count moved
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping
from typing import Any

from .naming import MetricName
from .points import DataPoint
from .registry import Counting, GaugeLike, Metered, Sampling, Snapshot
from .tracker import RedundancyTracker
from .units import UnitConverter
from .values import GaugeValue

logger = logging.getLogger(__name__)

# (tag value, snapshot accessor) pairs reported as ``quantile=<tag value>``
QUANTILES: tuple[tuple[str, Callable[[Snapshot], float]], ...] = (
    ("0.5", lambda s: s.median),
    ("0.75", lambda s: s.p75),
    ("0.95", lambda s: s.p95),
    ("0.98", lambda s: s.p98),
    ("0.99", lambda s: s.p99),
    ("0.999", lambda s: s.p999),
)

# (window tag, rate accessor); the mean rate is deliberately not reported
RATE_WINDOWS: tuple[tuple[str, Callable[[Metered], float]], ...] = (
    ("1m", lambda m: m.one_minute_rate),
    ("5m", lambda m: m.five_minute_rate),
    ("15m", lambda m: m.fifteen_minute_rate),
)

COUNT_SUFFIX = "count"
TOTAL_SUFFIX = "total"
DURATION_SUFFIX = "duration"
RATE_SUFFIX = "rate"


class DataPointCollector:
    """
    Builds the batch for one reporting cycle.

    Example:
        collector = DataPointCollector(epoch, converter, tracker)
        collector.collect_all(gauges, counters, histograms, meters, timers)
        sink.put(collector.data_points)
    """

    def __init__(
        self,
        epoch: int,
        converter: UnitConverter,
        tracker: RedundancyTracker,
    ) -> None:
        self.epoch = epoch
        self.converter = converter
        self.tracker = tracker
        self.data_points: list[DataPoint] = []
        self.metrics_seen = 0

    def collect_all(
        self,
        gauges: Mapping[str, GaugeLike],
        counters: Mapping[str, Counting],
        histograms: Mapping[str, Any],
        meters: Mapping[str, Metered],
        timers: Mapping[str, Any],
    ) -> list[DataPoint]:
        """Walk every map in kind order and return the accumulated batch."""
        for name, gauge in gauges.items():
            self.collect_gauge(name, gauge)
        for name, counter in counters.items():
            self.collect_counter(name, counter)
        for name, histogram in histograms.items():
            self.collect_histogram(name, histogram)
        for name, meter in meters.items():
            self.collect_meter(name, meter)
        for name, timer in timers.items():
            self.collect_timer(name, timer)

        self.metrics_seen += (
            len(gauges) + len(counters) + len(histograms) + len(meters) + len(timers)
        )
        return self.data_points

    # =========================================================================
    # Per-kind rules
    # =========================================================================

    def collect_gauge(self, name: str, gauge: GaugeLike) -> None:
        root = self._decode(name)
        if root is None:
            return
        reading = GaugeValue.of(gauge.value)
        if not reading.reportable or reading.number is None:
            logger.debug("Skipping gauge %s: unreportable value", name)
            return
        self.add(root, reading.number)

    def collect_counter(self, name: str, counter: Counting) -> None:
        root = self._decode(name)
        if root is not None:
            self.add(root, counter.count)

    def collect_histogram(self, name: str, histogram: Any) -> None:
        root = self._decode(name)
        if root is not None and self._collect_counting(root, histogram, COUNT_SUFFIX):
            self._report_snapshot(root, histogram)

    def collect_meter(self, name: str, meter: Metered) -> None:
        root = self._decode(name)
        if root is not None and self._collect_counting(root, meter, TOTAL_SUFFIX):
            self._report_rates(root, meter)

    def collect_timer(self, name: str, timer: Any) -> None:
        root = self._decode(name)
        if root is not None and self._collect_counting(root, timer, COUNT_SUFFIX):
            self._report_snapshot(root.submetric(DURATION_SUFFIX), timer)
            self._report_rates(root, timer)

    def _decode(self, name: str) -> MetricName | None:
        try:
            return MetricName.decode(name)
        except ValueError as e:
            logger.warning("Skipping metric with malformed name: %s", e)
            return None

    def _collect_counting(self, root: MetricName, metric: Counting, suffix: str) -> bool:
        """Emit the always-present count point; True when statistics should follow."""
        count = metric.count
        self.add(root.submetric(suffix), count)
        return self.tracker.should_report(root, count)

    def _report_snapshot(self, base: MetricName, sampling: Sampling) -> None:
        snapshot = sampling.snapshot()
        convert = self.converter.convert_duration
        self.add(base.submetric("min"), convert(snapshot.min))
        self.add(base.submetric("max"), convert(snapshot.max))
        self.add(base.submetric("mean"), convert(snapshot.mean))
        self.add(base.submetric("stddev"), convert(snapshot.stddev))
        for quantile, accessor in QUANTILES:
            self.add(base.with_tags("quantile", quantile), convert(accessor(snapshot)))

    def _report_rates(self, root: MetricName, metered: Metered) -> None:
        rate = root.submetric(RATE_SUFFIX)
        convert = self.converter.convert_rate
        for window, accessor in RATE_WINDOWS:
            self.add(rate.with_tags("window", window), convert(accessor(metered)))

    # =========================================================================
    # Output
    # =========================================================================

    def add(self, name: MetricName, value: int | float) -> None:
        if isinstance(value, float) and not math.isfinite(value):
            logger.warning("Dropping non-finite value for %s", name)
            return
        point = DataPoint(name.name, self.epoch, value, name.tags)
        self.data_points.append(point)
        logger.debug("Collected %s", point)


def collect(
    epoch: int,
    converter: UnitConverter,
    tracker: RedundancyTracker,
    gauges: Mapping[str, GaugeLike] | None = None,
    counters: Mapping[str, Counting] | None = None,
    histograms: Mapping[str, Any] | None = None,
    meters: Mapping[str, Metered] | None = None,
    timers: Mapping[str, Any] | None = None,
) -> list[DataPoint]:
    """One-shot helper around ``DataPointCollector.collect_all``."""
    collector = DataPointCollector(epoch, converter, tracker)
    return collector.collect_all(
        gauges or {}, counters or {}, histograms or {}, meters or {}, timers or {}
    )
