"""
Name sanitizers applied by sinks before points leave the process.

Each sanitizer maps an arbitrary string onto the character set a backend
accepts. They never raise.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from enum import StrEnum
from typing import Any

Sanitizer = Callable[[Any], str]

_PROMETHEUS_INVALID = re.compile(r"[^a-zA-Z0-9_]")
_OPENTSDB_INVALID = re.compile(r"[^\w\-./]")
_UNDERSCORES = re.compile(r"__+")


def prometheus_sanitizer(value: Any) -> str:
    """Keep ``[A-Za-z0-9_]``; everything else becomes ``_`` and runs collapse."""
    return _UNDERSCORES.sub("_", _PROMETHEUS_INVALID.sub("_", str(value)))


def opentsdb_sanitizer(value: Any) -> str:
    """Keep unicode letters, digits, ``-``, ``.``, ``/`` and ``_``."""
    return _UNDERSCORES.sub("_", _OPENTSDB_INVALID.sub("_", str(value)))


def noop_sanitizer(value: Any) -> str:
    return str(value)


class SanitizerKind(StrEnum):
    """Selectable sanitizer names for configuration."""

    PROMETHEUS = "prometheus"
    OPENTSDB = "opentsdb"
    NOOP = "noop"

    @property
    def function(self) -> Sanitizer:
        return _SANITIZERS[self]


_SANITIZERS: dict[SanitizerKind, Sanitizer] = {
    SanitizerKind.PROMETHEUS: prometheus_sanitizer,
    SanitizerKind.OPENTSDB: opentsdb_sanitizer,
    SanitizerKind.NOOP: noop_sanitizer,
}

DEFAULT_SANITIZER: Sanitizer = prometheus_sanitizer
