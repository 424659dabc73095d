"""
metricpush: turn an in-process metric registry into tagged data points.

Each reporting cycle walks gauges, counters, histograms, meters and timers,
expands them into timestamped points (with tag-encoded names, unit
conversion and suppression of unchanged statistics) and hands the batch to
one sink: discard, text dump, local forwarder or HTTP put.
"""

from ._version import get_version
from .collector import DataPointCollector, collect
from .config import ReporterConfig, load_config
from .errors import (
    ConfigError,
    MetricKindConflict,
    MetricPushError,
    ReporterStateError,
    SinkError,
)
from .factory import build_reporter, build_sink
from .naming import MetricName, tagged
from .points import DataPoint, parse_text_line
from .registry import (
    Counter,
    Counting,
    Gauge,
    GaugeLike,
    Histogram,
    Metered,
    Meter,
    MetricFilter,
    MetricKind,
    MetricRegistry,
    Sampling,
    Snapshot,
    Timer,
    prefix_filter,
)
from .reporter import CycleResult, MetricsReporter
from .sanitize import (
    SanitizerKind,
    noop_sanitizer,
    opentsdb_sanitizer,
    prometheus_sanitizer,
)
from .sinks import (
    ConsoleSink,
    DataPointSink,
    ForwarderSink,
    NoOpSink,
    PutClient,
    ReportingMode,
    create_sink,
)
from .tracker import RedundancyTracker
from .units import TimeUnit, UnitConverter
from .values import GaugeValue, GaugeValueKind

__version__ = get_version()

__all__ = [
    "__version__",
    # Naming and values
    "MetricName",
    "tagged",
    "DataPoint",
    "parse_text_line",
    "GaugeValue",
    "GaugeValueKind",
    "TimeUnit",
    "UnitConverter",
    # Registry
    "Counter",
    "Counting",
    "Gauge",
    "GaugeLike",
    "Histogram",
    "Metered",
    "Meter",
    "MetricFilter",
    "MetricKind",
    "MetricRegistry",
    "Sampling",
    "Snapshot",
    "Timer",
    "prefix_filter",
    # Pipeline
    "DataPointCollector",
    "collect",
    "RedundancyTracker",
    "CycleResult",
    "MetricsReporter",
    # Sinks
    "ConsoleSink",
    "DataPointSink",
    "ForwarderSink",
    "NoOpSink",
    "PutClient",
    "ReportingMode",
    "create_sink",
    "SanitizerKind",
    "noop_sanitizer",
    "opentsdb_sanitizer",
    "prometheus_sanitizer",
    # Configuration
    "ReporterConfig",
    "load_config",
    "build_reporter",
    "build_sink",
    # Errors
    "ConfigError",
    "MetricKindConflict",
    "MetricPushError",
    "ReporterStateError",
    "SinkError",
]
