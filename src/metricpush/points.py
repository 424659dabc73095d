"""
Data points and their wire renderings.

A ``DataPoint`` is one (metric, timestamp, value, tags) observation. Sinks
render it either as an OpenTSDB-style text line or as a JSON object; both
merge the reporter's global tags underneath the point's own tags.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .sanitize import Sanitizer


@dataclass(frozen=True)
class DataPoint:
    """Immutable timestamped observation."""

    metric: str
    timestamp: int
    value: int | float
    tags: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.value, float) and not math.isfinite(self.value):
            raise ValueError(f"Non-finite value {self.value!r} for {self.metric}")
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))

    def __hash__(self) -> int:
        return hash((self.metric, self.timestamp, self.value, frozenset(self.tags.items())))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DataPoint):
            return NotImplemented
        return (
            self.metric == other.metric
            and self.timestamp == other.timestamp
            and self.value == other.value
            and dict(self.tags) == dict(other.tags)
        )

    def merged_tags(
        self,
        global_tags: Mapping[str, str] | None = None,
        sanitizer: Sanitizer | None = None,
    ) -> dict[str, str]:
        """Global tags overlaid by point tags, optionally sanitized, sorted by key."""
        tags = {**(global_tags or {}), **self.tags}
        if sanitizer is not None:
            tags = {sanitizer(k): sanitizer(v) for k, v in tags.items()}
        return dict(sorted(tags.items()))

    def to_text_line(
        self,
        global_tags: Mapping[str, str] | None = None,
        sanitizer: Sanitizer | None = None,
    ) -> str:
        """
        Render as ``<name> <timestamp> <value> k=v ...``.

        Example:
            req.latency.count 1700000000 5 env=prod host=a-1
        """
        name = sanitizer(self.metric) if sanitizer is not None else self.metric
        parts = [name, str(self.timestamp), format_value(self.value)]
        parts.extend(f"{k}={v}" for k, v in self.merged_tags(global_tags, sanitizer).items())
        return " ".join(parts)

    def to_json(
        self,
        global_tags: Mapping[str, str] | None = None,
        sanitizer: Sanitizer | None = None,
    ) -> dict[str, Any]:
        """Render as a put-API object."""
        return {
            "metric": sanitizer(self.metric) if sanitizer is not None else self.metric,
            "timestamp": self.timestamp,
            "value": self.value,
            "tags": self.merged_tags(global_tags, sanitizer),
        }


def format_value(value: int | float) -> str:
    """Integers print as-is, floats with ``repr`` precision."""
    if isinstance(value, int):
        return str(value)
    return repr(float(value))


def parse_text_line(line: str) -> DataPoint:
    """
    Parse a line produced by ``DataPoint.to_text_line``.

    Raises:
        ValueError: If the line has fewer than three fields
    """
    fields = line.split()
    if len(fields) < 3:
        raise ValueError(f"Not a data point line: {line!r}")
    name, timestamp, raw_value, *raw_tags = fields
    value: int | float = int(raw_value) if raw_value.lstrip("-").isdigit() else float(raw_value)
    tags = dict(tag.split("=", 1) for tag in raw_tags)
    return DataPoint(name, int(timestamp), value, tags)
