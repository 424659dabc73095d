"""
Reporting driver.

Each cycle has two phases, timed and fault-isolated independently:

1. build: walk the registry and produce a batch (``DataPointCollector``)
2. send: hand the batch to the sink

A build failure is logged and ends the cycle without sending. A send failure
is logged and the batch is lost; nothing is retried or buffered. No exception
escapes a cycle, so the scheduler thread keeps running. The only state that
survives between cycles is the reporter's ``RedundancyTracker``.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from .collector import DataPointCollector
from .errors import ReporterStateError
from .points import DataPoint
from .registry import Counting, GaugeLike, Metered, MetricFilter, MetricRegistry
from .sinks import DataPointSink
from .tracker import RedundancyTracker
from .units import TimeUnit, UnitConverter

logger = logging.getLogger(__name__)

REPORTER_NAME = "metricpush-reporter"
BUILD_TIMER = "metricpush.reporter.report.build"
SEND_TIMER = "metricpush.reporter.report.send"
METRICS_SENT_COUNTER = "metricpush.reporter.metrics.sent.count"
POINTS_SENT_COUNTER = "metricpush.reporter.points.sent.count"
DEFAULT_PERIOD_SECONDS = 60.0


@dataclass
class CycleResult:
    """Outcome of one reporting cycle; ``data_points`` is None when build failed."""

    data_points: list[DataPoint] | None
    sent: bool = False

    @property
    def built(self) -> bool:
        return self.data_points is not None


class MetricsReporter:
    """
    Periodically converts a registry into data points and ships them.

    Example:
        reporter = MetricsReporter(registry, ConsoleSink())
        reporter.start()
        ...
        reporter.stop()
    """

    def __init__(
        self,
        registry: MetricRegistry,
        sink: DataPointSink,
        *,
        rate_unit: TimeUnit = TimeUnit.SECONDS,
        duration_unit: TimeUnit = TimeUnit.MILLISECONDS,
        metric_filter: MetricFilter | None = None,
        clock: Callable[[], float] = time.time,
        period: float = DEFAULT_PERIOD_SECONDS,
        report_on_stop: bool = True,
        name: str = REPORTER_NAME,
    ) -> None:
        """
        Initialize the reporter.

        Args:
            registry: Registry to report; also receives the reporter's own metrics
            sink: Destination for every batch, fixed for the reporter's lifetime
            rate_unit: Unit rates are expressed per
            duration_unit: Unit durations are expressed in
            metric_filter: Optional (name, metric) predicate applied to every kind
            clock: Wall clock in epoch seconds, used for point timestamps
            period: Seconds between cycles when ``start`` is called without one
            report_on_stop: Run one last cycle when the scheduler stops
            name: Scheduler thread name
        """
        self.registry = registry
        self.sink = sink
        self.converter = UnitConverter(rate_unit, duration_unit)
        self.metric_filter = metric_filter
        self.clock = clock
        self.period = period
        self.report_on_stop = report_on_stop
        self.name = name
        self.tracker = RedundancyTracker()

        self.build_timer = registry.timer(BUILD_TIMER)
        self.send_timer = registry.timer(SEND_TIMER)
        self.metrics_sent = registry.counter(METRICS_SENT_COUNTER)
        self.points_sent = registry.counter(POINTS_SENT_COUNTER)

        self._cycle_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def rate_unit(self) -> TimeUnit:
        return self.converter.rate_unit

    @property
    def duration_unit(self) -> TimeUnit:
        return self.converter.duration_unit

    # =========================================================================
    # Cycle
    # =========================================================================

    def report(self) -> CycleResult:
        """Run one cycle over the (filtered) registry."""
        try:
            f = self.metric_filter
            maps = (
                self.registry.gauges(f),
                self.registry.counters(f),
                self.registry.histograms(f),
                self.registry.meters(f),
                self.registry.timers(f),
            )
        except Exception:
            logger.exception("Error reading metric registry.")
            return CycleResult(None)
        return self.report_metrics(*maps)

    def report_metrics(
        self,
        gauges: Mapping[str, GaugeLike],
        counters: Mapping[str, Counting],
        histograms: Mapping[str, Any],
        meters: Mapping[str, Metered],
        timers: Mapping[str, Any],
    ) -> CycleResult:
        """Run one cycle over explicitly supplied metric maps."""
        with self._cycle_lock:
            data_points = self._build(gauges, counters, histograms, meters, timers)
            if data_points is None:
                return CycleResult(None)
            return CycleResult(data_points, sent=self._send(data_points))

    def _build(
        self,
        gauges: Mapping[str, GaugeLike],
        counters: Mapping[str, Counting],
        histograms: Mapping[str, Any],
        meters: Mapping[str, Metered],
        timers: Mapping[str, Any],
    ) -> list[DataPoint] | None:
        collector = DataPointCollector(int(self.clock()), self.converter, self.tracker)
        try:
            with self.build_timer.time():
                collector.collect_all(gauges, counters, histograms, meters, timers)
                self.metrics_sent.inc(collector.metrics_seen)
                self.points_sent.inc(len(collector.data_points))
        except Exception:
            logger.exception("Error building metrics.")
            return None
        return collector.data_points

    def _send(self, data_points: list[DataPoint]) -> bool:
        try:
            with self.send_timer.time():
                self.sink.put(data_points)
        except Exception:
            logger.exception("Error reporting metrics.")
            return False
        return True

    # =========================================================================
    # Scheduling
    # =========================================================================

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, period: float | None = None, initial_delay: float | None = None) -> None:
        """
        Report every ``period`` seconds on a daemon thread.

        ``period`` defaults to the reporter's configured period, and the first
        cycle runs after ``initial_delay`` (default: one period).

        Raises:
            ValueError: If period is not positive
            ReporterStateError: If the reporter is already started
        """
        if period is None:
            period = self.period
        if period <= 0:
            raise ValueError(f"Reporting period must be positive, got {period}")
        delay = period if initial_delay is None else max(0.0, initial_delay)
        with self._state_lock:
            if self._thread is not None:
                raise ReporterStateError(f"Reporter {self.name} is already started")
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run, args=(period, delay), name=self.name, daemon=True
            )
            self._thread.start()
        logger.info("Reporter %s started (period=%ss)", self.name, period)

    def _run(self, period: float, delay: float) -> None:
        if self._stop_event.wait(delay):
            return
        while True:
            started = time.monotonic()
            try:
                self.report()
            except Exception:
                logger.exception("Unexpected error in reporting cycle.")
            remaining = max(0.0, period - (time.monotonic() - started))
            if self._stop_event.wait(remaining):
                return

    def stop(self, timeout: float | None = None) -> None:
        """Stop the scheduler, run a final cycle if configured, and close the sink."""
        with self._state_lock:
            thread, self._thread = self._thread, None
        if thread is not None:
            self._stop_event.set()
            thread.join(timeout)
            if thread.is_alive():
                logger.warning(
                    "Reporter %s still busy after %ss; skipping final report", self.name, timeout
                )
            elif self.report_on_stop:
                self.report()
            logger.info("Reporter %s stopped", self.name)

        close = getattr(self.sink, "close", None)
        if callable(close):
            try:
                close()
            except Exception:
                logger.exception("Error closing sink.")

    def __enter__(self) -> MetricsReporter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
