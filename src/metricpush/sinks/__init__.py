"""
Output sinks.

Exactly one sink is chosen per reporter, at construction, from
``ReportingMode``; ``create_sink`` is the only place that maps modes to
implementations.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..errors import ConfigError
from ..sanitize import DEFAULT_SANITIZER, Sanitizer
from .base import DEFAULT_REPORTING_MODE, DataPointSink, NoOpSink, ReportingMode
from .console import ConsoleSink
from .forwarder import DEFAULT_FORWARDER_HOST, DEFAULT_FORWARDER_PORT, ForwarderSink
from .put_client import DEFAULT_API_URL, PutClient


def create_sink(
    mode: ReportingMode | str | None,
    *,
    global_tags: Mapping[str, str] | None = None,
    sanitizer: Sanitizer = DEFAULT_SANITIZER,
    api_key: str | None = None,
    api_url: str = DEFAULT_API_URL,
    forwarder_host: str = DEFAULT_FORWARDER_HOST,
    forwarder_port: int = DEFAULT_FORWARDER_PORT,
    timeout: float = 10.0,
) -> DataPointSink:
    """
    Build the sink for ``mode``.

    Raises:
        ConfigError: If API_PUT is selected without an api key
    """
    resolved = ReportingMode.parse(mode)
    if resolved is ReportingMode.NOOP:
        return NoOpSink()
    if resolved is ReportingMode.SYS_OUT:
        return ConsoleSink(global_tags, sanitizer)
    if resolved is ReportingMode.FORWARDER:
        return ForwarderSink(global_tags, sanitizer, forwarder_host, forwarder_port)
    if not api_key:
        raise ConfigError("An api key is required for the api_put reporting mode")
    return PutClient(api_key, api_url, global_tags, sanitizer, timeout)


__all__ = [
    "DEFAULT_REPORTING_MODE",
    "ConsoleSink",
    "DataPointSink",
    "ForwarderSink",
    "NoOpSink",
    "PutClient",
    "ReportingMode",
    "create_sink",
]
