"""
Gauge value resolution.

Gauges are user callables and may return anything. Each raw reading is
resolved exactly once, where it enters the reporter, into a ``GaugeValue``
whose ``kind`` decides whether it becomes a data point.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from fractions import Fraction
from numbers import Integral, Real
from typing import Any

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class GaugeValueKind(StrEnum):
    """Closed set of shapes a gauge reading can take."""

    FLOAT = "float"
    INTEGER = "integer"
    DECIMAL = "decimal"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class GaugeValue:
    """A resolved gauge reading; ``number`` is None only for UNKNOWN."""

    kind: GaugeValueKind
    number: int | float | None = None

    @property
    def reportable(self) -> bool:
        return self.kind is not GaugeValueKind.UNKNOWN

    @classmethod
    def of(cls, raw: Any) -> GaugeValue:
        """
        Resolve a raw gauge reading.

        - bool and non-numeric objects are UNKNOWN
        - Decimal / Fraction are DECIMAL, carried as float
        - ints outside the signed 64-bit range become their float approximation
        - NaN and infinities are UNKNOWN
        """
        if raw is None or isinstance(raw, bool):
            return UNKNOWN
        if isinstance(raw, (Decimal, Fraction)):
            return cls._finite(GaugeValueKind.DECIMAL, raw)
        if isinstance(raw, Integral):
            number = int(raw)
            if _INT64_MIN <= number <= _INT64_MAX:
                return cls(GaugeValueKind.INTEGER, number)
            return cls._finite(GaugeValueKind.INTEGER, number)
        if isinstance(raw, Real):
            return cls._finite(GaugeValueKind.FLOAT, raw)
        return UNKNOWN

    @classmethod
    def _finite(cls, kind: GaugeValueKind, raw: Any) -> GaugeValue:
        try:
            number = float(raw)
        except (OverflowError, ValueError):
            return UNKNOWN
        if not math.isfinite(number):
            return UNKNOWN
        return cls(kind, number)


UNKNOWN = GaugeValue(GaugeValueKind.UNKNOWN)
