"""
Unit tests for the in-process metric registry.
"""

import pytest

from metricpush.errors import MetricKindConflict
from metricpush.registry import (
    TICK_INTERVAL_NS,
    Counter,
    Counting,
    Gauge,
    Histogram,
    Metered,
    Meter,
    MetricKind,
    MetricRegistry,
    Sampling,
    Snapshot,
    Timer,
    prefix_filter,
)
from metricpush.units import TimeUnit


class FakeClock:
    """Manually advanced nanosecond clock."""

    def __init__(self) -> None:
        self.now = 0

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1_000_000_000)


class TestSnapshot:
    """Statistics over samples."""

    def test_empty(self):
        snapshot = Snapshot()
        assert snapshot.min == 0.0
        assert snapshot.max == 0.0
        assert snapshot.mean == 0.0
        assert snapshot.stddev == 0.0
        assert snapshot.p99 == 0.0

    def test_single_sample(self):
        snapshot = Snapshot([7])
        assert snapshot.min == snapshot.max == snapshot.median == 7
        assert snapshot.stddev == 0.0

    def test_statistics(self):
        snapshot = Snapshot([5, 1, 4, 2, 3])
        assert snapshot.values == (1, 2, 3, 4, 5)
        assert snapshot.min == 1
        assert snapshot.max == 5
        assert snapshot.mean == 3
        assert snapshot.stddev == pytest.approx(1.5811, rel=1e-3)
        assert snapshot.median == 3

    def test_quantile_interpolation(self):
        snapshot = Snapshot(range(1, 101))
        assert snapshot.get_value(0.5) == pytest.approx(50.5)
        assert snapshot.p999 == 100
        assert snapshot.get_value(0.0) == 1

    def test_quantile_bounds(self):
        with pytest.raises(ValueError):
            Snapshot([1]).get_value(1.5)


class TestMetrics:
    """Concrete metric kinds."""

    def test_counter(self):
        counter = Counter()
        counter.inc()
        counter.inc(4)
        counter.dec(2)
        assert counter.count == 3
        assert isinstance(counter, Counting)

    def test_gauge_reads_fresh(self):
        values = iter([1, 2])
        gauge = Gauge(lambda: next(values))
        assert gauge.value == 1
        assert gauge.value == 2

    def test_histogram_sliding_window(self):
        histogram = Histogram(reservoir_size=3)
        for v in range(10):
            histogram.update(v)
        assert histogram.count == 10
        assert histogram.snapshot().values == (7, 8, 9)
        assert isinstance(histogram, Sampling)

    def test_meter_rates_after_tick(self):
        clock = FakeClock()
        meter = Meter(clock)
        meter.mark(10)
        assert meter.one_minute_rate == 0.0

        clock.advance(TICK_INTERVAL_NS / 1_000_000_000 + 0.001)
        assert meter.one_minute_rate == pytest.approx(2.0)
        assert meter.five_minute_rate == pytest.approx(2.0)
        assert meter.fifteen_minute_rate == pytest.approx(2.0)
        assert meter.count == 10
        assert isinstance(meter, Metered)

    def test_meter_rate_decays(self):
        clock = FakeClock()
        meter = Meter(clock)
        meter.mark(60)
        clock.advance(5.001)
        first = meter.one_minute_rate
        clock.advance(60)
        assert meter.one_minute_rate < first

    def test_meter_mean_rate(self):
        clock = FakeClock()
        meter = Meter(clock)
        meter.mark(10)
        clock.advance(5)
        assert meter.mean_rate == pytest.approx(2.0)

    def test_timer_records_nanoseconds(self):
        clock = FakeClock()
        timer = Timer(clock=clock)
        timer.update(2, TimeUnit.MILLISECONDS)
        with timer.time():
            clock.advance(0.5)
        assert timer.count == 2
        assert timer.snapshot().values == (2_000_000, 500_000_000)

    def test_timer_ignores_negative(self):
        timer = Timer()
        timer.update(-1)
        assert timer.count == 0

    def test_timer_records_on_exception(self):
        timer = Timer()
        with pytest.raises(RuntimeError), timer.time():
            raise RuntimeError("boom")
        assert timer.count == 1


class TestMetricRegistry:
    """Registration and views."""

    def test_get_or_create_returns_same(self):
        registry = MetricRegistry()
        assert registry.counter("a") is registry.counter("a")
        assert len(registry) == 1

    def test_kind_conflict(self):
        registry = MetricRegistry()
        registry.counter("a")
        with pytest.raises(MetricKindConflict):
            registry.timer("a")

    def test_register_duplicate(self):
        registry = MetricRegistry()
        registry.register("a", Counter())
        with pytest.raises(MetricKindConflict):
            registry.register("a", Counter())

    def test_register_foreign_with_kind(self):
        class External:
            count = 5

        registry = MetricRegistry()
        registry.register("ext", External(), MetricKind.COUNTER)
        assert list(registry.counters()) == ["ext"]

    def test_register_without_kind(self):
        with pytest.raises(ValueError):
            MetricRegistry().register("x", object())

    def test_gauge_requires_supplier(self):
        registry = MetricRegistry()
        with pytest.raises(ValueError):
            registry.gauge("g")
        gauge = registry.gauge("g", lambda: 1)
        assert registry.gauge("g") is gauge

    def test_views_sorted_and_filtered(self):
        registry = MetricRegistry()
        registry.counter("b.x")
        registry.counter("a.x")
        registry.counter("c.x")
        registry.meter("a.meter")

        assert list(registry.counters()) == ["a.x", "b.x", "c.x"]
        assert list(registry.counters(prefix_filter("a.", "c."))) == ["a.x", "c.x"]
        assert list(registry.meters()) == ["a.meter"]
        assert registry.histograms() == {}

    def test_remove(self):
        registry = MetricRegistry()
        registry.counter("a")
        assert registry.remove("a")
        assert not registry.remove("a")
        assert "a" not in registry

    @pytest.mark.parametrize("name", ["arr[0][env=prod]", "odd[name", "x[k=a]b]"])
    def test_malformed_names_rejected(self, name):
        registry = MetricRegistry()
        with pytest.raises(ValueError):
            registry.counter(name)
        with pytest.raises(ValueError):
            registry.register(name, Counter())
        assert len(registry) == 0
