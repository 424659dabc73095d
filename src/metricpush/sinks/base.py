"""
Sink contract and the closed set of reporting modes.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import StrEnum
from typing import Protocol, runtime_checkable

from ..points import DataPoint

logger = logging.getLogger(__name__)


class ReportingMode(StrEnum):
    """Where a reporter sends its batches."""

    NOOP = "noop"
    SYS_OUT = "sys_out"
    FORWARDER = "forwarder"
    API_PUT = "api_put"

    @classmethod
    def parse(cls, value: str | ReportingMode | None) -> ReportingMode:
        """Resolve a configured mode; unknown or missing values fall back to API_PUT."""
        if isinstance(value, ReportingMode):
            return value
        if value is None:
            return DEFAULT_REPORTING_MODE
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning(
                "Unknown reporting mode %r, falling back to %s", value, DEFAULT_REPORTING_MODE
            )
            return DEFAULT_REPORTING_MODE


DEFAULT_REPORTING_MODE = ReportingMode.API_PUT


@runtime_checkable
class DataPointSink(Protocol):
    """
    Accepts a finished batch.

    Implementations skip points they cannot render rather than raising, and
    raise ``SinkError`` (or any transport exception) when delivery fails.
    """

    def put(self, data_points: Sequence[DataPoint]) -> None: ...


class NoOpSink:
    """Accepts and drops every batch."""

    def put(self, data_points: Sequence[DataPoint]) -> None:
        pass

    def close(self) -> None:
        pass
