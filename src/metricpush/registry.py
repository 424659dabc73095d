"""
In-process metric registry.

The reporter only reads metrics through small capability protocols
(``Counting``, ``Sampling``, ``Metered``, ``GaugeLike``); any object that
satisfies them can be reported. This module ships a thread-safe registry and
concrete metric kinds so applications have something to record into.

Internal units are fixed: timer durations are nanoseconds and meter rates are
events per second.

Example:
    registry = MetricRegistry()
    requests = registry.meter(tagged("http.requests", "method", "GET"))
    latency = registry.timer("http.latency")

    with latency.time():
        handle()
    requests.mark()
"""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

from .errors import MetricKindConflict
from .naming import MetricName
from .units import TimeUnit

Clock = Callable[[], int]
MetricFilter = Callable[[str, Any], bool]

DEFAULT_RESERVOIR_SIZE = 1028
TICK_INTERVAL_NS = 5 * 1_000_000_000


class MetricKind(StrEnum):
    """Tag identifying which reporting rules apply to a metric."""

    GAUGE = "gauge"
    COUNTER = "counter"
    HISTOGRAM = "histogram"
    METER = "meter"
    TIMER = "timer"


# =============================================================================
# Capability protocols
# =============================================================================


@runtime_checkable
class Counting(Protocol):
    """Anything with a cumulative count."""

    @property
    def count(self) -> int: ...


@runtime_checkable
class Sampling(Protocol):
    """Anything that can produce a statistical snapshot."""

    def snapshot(self) -> Snapshot: ...


@runtime_checkable
class Metered(Counting, Protocol):
    """Counting metric with exponentially weighted rate windows (events/second)."""

    @property
    def one_minute_rate(self) -> float: ...

    @property
    def five_minute_rate(self) -> float: ...

    @property
    def fifteen_minute_rate(self) -> float: ...

    @property
    def mean_rate(self) -> float: ...


@runtime_checkable
class GaugeLike(Protocol):
    """Anything exposing an instantaneous ``value``."""

    @property
    def value(self) -> Any: ...


# =============================================================================
# Snapshot
# =============================================================================


class Snapshot:
    """
    Immutable statistical view over a set of samples.

    Quantiles use linear interpolation between the two closest ranks.
    An empty snapshot reports zero for every statistic.
    """

    def __init__(self, values: Any = ()) -> None:
        self._values: tuple[float, ...] = tuple(sorted(values))

    @property
    def values(self) -> tuple[float, ...]:
        return self._values

    @property
    def size(self) -> int:
        return len(self._values)

    def get_value(self, quantile: float) -> float:
        """
        Value at ``quantile`` (0..1).

        Raises:
            ValueError: If quantile is outside [0, 1] or NaN
        """
        if math.isnan(quantile) or not 0.0 <= quantile <= 1.0:
            raise ValueError(f"{quantile} is not in [0..1]")
        n = len(self._values)
        if n == 0:
            return 0.0
        pos = quantile * (n + 1)
        index = int(pos)
        if index < 1:
            return self._values[0]
        if index >= n:
            return self._values[-1]
        lower = self._values[index - 1]
        upper = self._values[index]
        return lower + (pos - math.floor(pos)) * (upper - lower)

    @property
    def min(self) -> float:
        return self._values[0] if self._values else 0.0

    @property
    def max(self) -> float:
        return self._values[-1] if self._values else 0.0

    @property
    def mean(self) -> float:
        if not self._values:
            return 0.0
        return math.fsum(self._values) / len(self._values)

    @property
    def stddev(self) -> float:
        """Sample standard deviation (n - 1 denominator)."""
        n = len(self._values)
        if n <= 1:
            return 0.0
        mean = self.mean
        variance = math.fsum((v - mean) ** 2 for v in self._values) / (n - 1)
        return math.sqrt(variance)

    @property
    def median(self) -> float:
        return self.get_value(0.5)

    @property
    def p75(self) -> float:
        return self.get_value(0.75)

    @property
    def p95(self) -> float:
        return self.get_value(0.95)

    @property
    def p98(self) -> float:
        return self.get_value(0.98)

    @property
    def p99(self) -> float:
        return self.get_value(0.99)

    @property
    def p999(self) -> float:
        return self.get_value(0.999)


# =============================================================================
# Concrete metrics
# =============================================================================


class Counter:
    """Thread-safe cumulative counter."""

    kind = MetricKind.COUNTER

    def __init__(self) -> None:
        self._count = 0
        self._lock = threading.Lock()

    def inc(self, n: int = 1) -> None:
        with self._lock:
            self._count += n

    def dec(self, n: int = 1) -> None:
        with self._lock:
            self._count -= n

    @property
    def count(self) -> int:
        return self._count


class Gauge:
    """Wraps a callable; every ``value`` read invokes it."""

    kind = MetricKind.GAUGE

    def __init__(self, fn: Callable[[], Any]) -> None:
        self._fn = fn

    @property
    def value(self) -> Any:
        return self._fn()


class Histogram:
    """
    Sample distribution over a sliding window of the most recent values.

    ``count`` is the all-time number of updates; the snapshot covers only the
    last ``reservoir_size`` samples.
    """

    kind = MetricKind.HISTOGRAM

    def __init__(self, reservoir_size: int = DEFAULT_RESERVOIR_SIZE) -> None:
        self._samples: deque[float] = deque(maxlen=reservoir_size)
        self._count = 0
        self._lock = threading.Lock()

    def update(self, value: float) -> None:
        with self._lock:
            self._samples.append(value)
            self._count += 1

    @property
    def count(self) -> int:
        return self._count

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot(self._samples)


@dataclass
class EWMA:
    """
    Exponentially weighted moving average of an event rate.

    ``update`` accumulates events; ``tick`` folds them into the average and
    must be called every ``interval_seconds``.
    """

    alpha: float
    interval_seconds: float = TICK_INTERVAL_NS / 1_000_000_000
    _rate: float = 0.0
    _uncounted: int = 0
    _initialized: bool = False

    @classmethod
    def for_minutes(cls, minutes: int) -> EWMA:
        interval = TICK_INTERVAL_NS / 1_000_000_000
        return cls(alpha=1.0 - math.exp(-interval / 60.0 / minutes))

    def update(self, n: int) -> None:
        self._uncounted += n

    def tick(self) -> None:
        count, self._uncounted = self._uncounted, 0
        instant_rate = count / self.interval_seconds
        if self._initialized:
            self._rate += self.alpha * (instant_rate - self._rate)
        else:
            self._rate = instant_rate
            self._initialized = True

    @property
    def rate(self) -> float:
        """Events per second."""
        return self._rate


class Meter:
    """Marks events and tracks 1/5/15-minute moving rates plus the mean rate."""

    kind = MetricKind.METER

    def __init__(self, clock: Clock = time.monotonic_ns) -> None:
        self._clock = clock
        self._start = clock()
        self._last_tick = self._start
        self._count = 0
        self._m1 = EWMA.for_minutes(1)
        self._m5 = EWMA.for_minutes(5)
        self._m15 = EWMA.for_minutes(15)
        self._lock = threading.Lock()

    def mark(self, n: int = 1) -> None:
        with self._lock:
            self._tick_if_necessary()
            self._count += n
            self._m1.update(n)
            self._m5.update(n)
            self._m15.update(n)

    def _tick_if_necessary(self) -> None:
        """Catch up on missed ticks (must hold lock)."""
        now = self._clock()
        age = now - self._last_tick
        if age <= TICK_INTERVAL_NS:
            return
        self._last_tick = now - age % TICK_INTERVAL_NS
        for _ in range(age // TICK_INTERVAL_NS):
            self._m1.tick()
            self._m5.tick()
            self._m15.tick()

    def _rate(self, ewma: EWMA) -> float:
        with self._lock:
            self._tick_if_necessary()
            return ewma.rate

    @property
    def count(self) -> int:
        return self._count

    @property
    def one_minute_rate(self) -> float:
        return self._rate(self._m1)

    @property
    def five_minute_rate(self) -> float:
        return self._rate(self._m5)

    @property
    def fifteen_minute_rate(self) -> float:
        return self._rate(self._m15)

    @property
    def mean_rate(self) -> float:
        if self._count == 0:
            return 0.0
        elapsed_ns = self._clock() - self._start
        if elapsed_ns <= 0:
            return 0.0
        return self._count / (elapsed_ns / 1_000_000_000)


class Timer:
    """
    Histogram of durations (nanoseconds) plus a meter of call rate.

    Example:
        with timer.time():
            do_work()
    """

    kind = MetricKind.TIMER

    def __init__(
        self,
        reservoir_size: int = DEFAULT_RESERVOIR_SIZE,
        clock: Clock = time.monotonic_ns,
    ) -> None:
        self._clock = clock
        self._histogram = Histogram(reservoir_size)
        self._meter = Meter(clock)

    def update(self, duration: float, unit: TimeUnit = TimeUnit.NANOSECONDS) -> None:
        """Record one duration; negative durations are ignored."""
        if duration < 0:
            return
        self._histogram.update(int(unit.to_nanos(duration)))
        self._meter.mark()

    @contextmanager
    def time(self) -> Iterator[None]:
        """Time the enclosed block, including when it raises."""
        start = self._clock()
        try:
            yield
        finally:
            self.update(self._clock() - start)

    def time_call(self, fn: Callable[[], Any]) -> Any:
        with self.time():
            return fn()

    @property
    def count(self) -> int:
        return self._histogram.count

    def snapshot(self) -> Snapshot:
        return self._histogram.snapshot()

    @property
    def one_minute_rate(self) -> float:
        return self._meter.one_minute_rate

    @property
    def five_minute_rate(self) -> float:
        return self._meter.five_minute_rate

    @property
    def fifteen_minute_rate(self) -> float:
        return self._meter.fifteen_minute_rate

    @property
    def mean_rate(self) -> float:
        return self._meter.mean_rate


_FACTORIES: dict[MetricKind, Callable[[], Any]] = {
    MetricKind.COUNTER: Counter,
    MetricKind.HISTOGRAM: Histogram,
    MetricKind.METER: Meter,
    MetricKind.TIMER: Timer,
}


# =============================================================================
# Registry
# =============================================================================


@dataclass
class _Entry:
    kind: MetricKind
    metric: Any


@dataclass
class MetricRegistry:
    """
    Thread-safe name → metric map with get-or-create accessors.

    Per-kind views (``gauges()``, ``counters()``, ...) return new dicts
    sorted by name, which is the shape the reporter consumes.
    """

    _metrics: dict[str, _Entry] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def register(self, name: str, metric: Any, kind: MetricKind | None = None) -> Any:
        """
        Register an existing metric object.

        ``kind`` defaults to the object's ``kind`` attribute.

        Raises:
            MetricKindConflict: If ``name`` is already registered
            ValueError: If the kind cannot be determined or ``name`` is not a
                valid tag-encoded name
        """
        MetricName.decode(name)
        resolved = kind or getattr(metric, "kind", None)
        if resolved is None:
            raise ValueError(f"Cannot determine metric kind for {name!r}")
        with self._lock:
            if name in self._metrics:
                raise MetricKindConflict(f"A metric named {name!r} already exists")
            self._metrics[name] = _Entry(MetricKind(resolved), metric)
        return metric

    def remove(self, name: str) -> bool:
        with self._lock:
            return self._metrics.pop(name, None) is not None

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._metrics)

    def __len__(self) -> int:
        return len(self._metrics)

    def __contains__(self, name: object) -> bool:
        return name in self._metrics

    def _get_or_add(self, name: str, kind: MetricKind, factory: Callable[[], Any]) -> Any:
        with self._lock:
            entry = self._metrics.get(name)
            if entry is None:
                MetricName.decode(name)
                entry = _Entry(kind, factory())
                self._metrics[name] = entry
            elif entry.kind is not kind:
                raise MetricKindConflict(
                    f"{name!r} is already registered as a {entry.kind}, not a {kind}"
                )
            return entry.metric

    def counter(self, name: str) -> Counter:
        return self._get_or_add(name, MetricKind.COUNTER, _FACTORIES[MetricKind.COUNTER])

    def histogram(self, name: str) -> Histogram:
        return self._get_or_add(name, MetricKind.HISTOGRAM, _FACTORIES[MetricKind.HISTOGRAM])

    def meter(self, name: str) -> Meter:
        return self._get_or_add(name, MetricKind.METER, _FACTORIES[MetricKind.METER])

    def timer(self, name: str) -> Timer:
        return self._get_or_add(name, MetricKind.TIMER, _FACTORIES[MetricKind.TIMER])

    def gauge(self, name: str, fn: Callable[[], Any] | None = None) -> Gauge:
        """
        Get or create a gauge.

        Raises:
            ValueError: If the gauge does not exist and no ``fn`` is given
        """

        def factory() -> Gauge:
            if fn is None:
                raise ValueError(f"Gauge {name!r} does not exist and no supplier was given")
            return Gauge(fn)

        return self._get_or_add(name, MetricKind.GAUGE, factory)

    # =========================================================================
    # Views
    # =========================================================================

    def metrics_of(
        self, kind: MetricKind, metric_filter: MetricFilter | None = None
    ) -> dict[str, Any]:
        with self._lock:
            items = [(n, e.metric) for n, e in self._metrics.items() if e.kind is kind]
        return {
            name: metric
            for name, metric in sorted(items, key=lambda item: item[0])
            if metric_filter is None or metric_filter(name, metric)
        }

    def gauges(self, metric_filter: MetricFilter | None = None) -> dict[str, GaugeLike]:
        return self.metrics_of(MetricKind.GAUGE, metric_filter)

    def counters(self, metric_filter: MetricFilter | None = None) -> dict[str, Counting]:
        return self.metrics_of(MetricKind.COUNTER, metric_filter)

    def histograms(self, metric_filter: MetricFilter | None = None) -> dict[str, Any]:
        return self.metrics_of(MetricKind.HISTOGRAM, metric_filter)

    def meters(self, metric_filter: MetricFilter | None = None) -> dict[str, Metered]:
        return self.metrics_of(MetricKind.METER, metric_filter)

    def timers(self, metric_filter: MetricFilter | None = None) -> dict[str, Any]:
        return self.metrics_of(MetricKind.TIMER, metric_filter)


def prefix_filter(*prefixes: str) -> MetricFilter:
    """Build a filter that keeps names starting with any of ``prefixes``."""

    def _filter(name: str, metric: Any) -> bool:
        return name.startswith(prefixes)

    return _filter
