"""
Assemble a reporter from configuration.
"""

from __future__ import annotations

import logging

from .config import ReporterConfig
from .registry import MetricFilter, MetricRegistry
from .reporter import MetricsReporter
from .sinks import DataPointSink, create_sink

logger = logging.getLogger(__name__)


def build_sink(config: ReporterConfig) -> DataPointSink:
    """Create the single sink selected by ``config.mode``."""
    return create_sink(
        config.mode,
        global_tags=config.global_tags,
        sanitizer=config.sanitizer.function,
        api_key=config.api_key,
        api_url=config.api_url,
        forwarder_host=config.forwarder_host,
        forwarder_port=config.forwarder_port,
        timeout=config.timeout_seconds,
    )


def build_reporter(
    registry: MetricRegistry,
    config: ReporterConfig | None = None,
    metric_filter: MetricFilter | None = None,
) -> MetricsReporter:
    """
    Create a reporter for ``registry``.

    Raises:
        ConfigError: If the configured sink cannot be built
    """
    config = config or ReporterConfig()
    sink = build_sink(config)
    logger.info(
        "Building reporter (mode=%s, rate_unit=%s, duration_unit=%s, period=%ss)",
        config.mode,
        config.rate_unit,
        config.duration_unit,
        config.period_seconds,
    )
    return MetricsReporter(
        registry,
        sink,
        rate_unit=config.rate_unit,
        duration_unit=config.duration_unit,
        metric_filter=metric_filter,
        period=config.period_seconds,
    )
