"""
Time units and rate/duration conversion.

Registry internals are fixed: durations are recorded in nanoseconds and rates
are events per second. The reporter rescales both to the configured units.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class TimeUnit(StrEnum):
    """Time scales used for rate and duration presentation."""

    NANOSECONDS = "nanoseconds"
    MICROSECONDS = "microseconds"
    MILLISECONDS = "milliseconds"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"

    @property
    def nanos(self) -> int:
        """Length of one unit in nanoseconds."""
        return _NANOS[self]

    @property
    def seconds(self) -> float:
        """Length of one unit in (possibly fractional) seconds."""
        return self.nanos / 1_000_000_000

    @property
    def singular(self) -> str:
        """Label for rates, e.g. ``events/second``."""
        return self.value[:-1]

    def to_nanos(self, amount: float) -> float:
        return amount * self.nanos

    @classmethod
    def parse(cls, value: str | TimeUnit) -> TimeUnit:
        """Accept enum values, their singular form and common abbreviations."""
        if isinstance(value, TimeUnit):
            return value
        text = str(value).strip().lower()
        text = _ALIASES.get(text, text)
        if not text.endswith("s"):
            text += "s"
        return cls(text)


_NANOS: dict[TimeUnit, int] = {
    TimeUnit.NANOSECONDS: 1,
    TimeUnit.MICROSECONDS: 1_000,
    TimeUnit.MILLISECONDS: 1_000_000,
    TimeUnit.SECONDS: 1_000_000_000,
    TimeUnit.MINUTES: 60 * 1_000_000_000,
    TimeUnit.HOURS: 3_600 * 1_000_000_000,
    TimeUnit.DAYS: 86_400 * 1_000_000_000,
}

_ALIASES = {
    "ns": "nanoseconds",
    "us": "microseconds",
    "ms": "milliseconds",
    "s": "seconds",
    "sec": "seconds",
    "m": "minutes",
    "min": "minutes",
    "h": "hours",
    "d": "days",
}


@dataclass(frozen=True)
class UnitConverter:
    """
    Rescales registry-native values.

    ``convert_rate`` turns events/second into events/``rate_unit``;
    ``convert_duration`` turns nanoseconds into ``duration_unit``.
    """

    rate_unit: TimeUnit = TimeUnit.SECONDS
    duration_unit: TimeUnit = TimeUnit.MILLISECONDS
    rate_factor: float = field(init=False)
    duration_factor: float = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "rate_factor", self.rate_unit.seconds)
        object.__setattr__(self, "duration_factor", 1.0 / self.duration_unit.nanos)

    def convert_rate(self, rate: float) -> float:
        return rate * self.rate_factor

    def convert_duration(self, duration: float) -> float:
        return duration * self.duration_factor
