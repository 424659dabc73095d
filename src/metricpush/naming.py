"""
Tag-encoded metric names.

A registry only knows flat string names, so dimensional tags ride inside the
name itself::

    http.requests[method=GET,status=200]

``MetricName.decode`` splits such a string into a base name and a tag
mapping; ``MetricName.encode`` (and ``str()``) is the inverse. Tags always
serialize sorted by key, so two names that differ only in tag insertion order
encode to the same string and compare equal.

The brackets, ``,`` and ``=`` are reserved, so identities that could not
survive an encode/decode round trip are rejected on construction:

- the base name may not contain ``[`` or ``]``
- tag keys must be non-empty and may not contain any reserved character
- tag values may contain ``=`` but no bracket or ``,``
- base names, keys and values may not carry surrounding whitespace
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

TAGS_OPEN = "["
TAGS_CLOSE = "]"
TAG_SEPARATOR = ","
TAG_ASSIGN = "="
PATH_SEPARATOR = "."

_BASE_RESERVED = frozenset(TAGS_OPEN + TAGS_CLOSE)
_VALUE_RESERVED = _BASE_RESERVED | {TAG_SEPARATOR}
_KEY_RESERVED = _VALUE_RESERVED | {TAG_ASSIGN}


def _check_part(what: str, text: str, reserved: frozenset[str]) -> None:
    if text != text.strip():
        raise ValueError(f"{what} {text!r} has surrounding whitespace")
    bad = sorted(reserved.intersection(text))
    if bad:
        raise ValueError(f"{what} {text!r} contains reserved characters {''.join(bad)!r}")


@dataclass(frozen=True)
class MetricName:
    """
    Immutable metric identity: base name plus an unordered tag set.

    Example:
        root = MetricName.decode("req.latency[host=a-1]")
        p99 = root.submetric("duration").with_tags("quantile", "0.99")
        str(p99)  # 'req.latency.duration[host=a-1,quantile=0.99]'
    """

    name: str
    tags: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        tags = {str(k): str(v) for k, v in self.tags.items()}
        _check_part("Metric name", self.name, _BASE_RESERVED)
        for key, value in tags.items():
            if not key:
                raise ValueError(f"Empty tag key in {self.name!r}")
            _check_part("Tag key", key, _KEY_RESERVED)
            _check_part("Tag value", value, _VALUE_RESERVED)
        object.__setattr__(self, "tags", MappingProxyType(tags))

    def __hash__(self) -> int:
        return hash((self.name, frozenset(self.tags.items())))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MetricName):
            return NotImplemented
        return self.name == other.name and dict(self.tags) == dict(other.tags)

    def __str__(self) -> str:
        return self.encode()

    def __repr__(self) -> str:
        return f"MetricName({self.encode()!r})"

    # =========================================================================
    # Codec
    # =========================================================================

    @classmethod
    def decode(cls, encoded: str) -> MetricName:
        """
        Parse a tag-encoded name.

        Names without a trailing ``[...]`` block are returned with no tags.

        Args:
            encoded: Registry name, e.g. ``"jvm.gc[gen=old]"``

        Returns:
            Decoded MetricName

        Raises:
            ValueError: If the string is not a well-formed tag-encoded name
        """
        start = encoded.find(TAGS_OPEN)
        if start < 0 or not encoded.endswith(TAGS_CLOSE):
            return cls(encoded.strip())

        base = encoded[:start].strip()
        tags: dict[str, str] = {}
        for entry in encoded[start + 1 : -1].split(TAG_SEPARATOR):
            if not entry.strip():
                continue
            key, _, value = entry.partition(TAG_ASSIGN)
            key = key.strip()
            if key:
                tags[key] = value.strip()
        return cls(base, tags)

    def encode(self) -> str:
        """Serialize to ``base[k=v,...]`` with tags sorted by key."""
        if not self.tags:
            return self.name
        body = TAG_SEPARATOR.join(f"{k}{TAG_ASSIGN}{v}" for k, v in sorted(self.tags.items()))
        return f"{self.name}{TAGS_OPEN}{body}{TAGS_CLOSE}"

    # =========================================================================
    # Derivation
    # =========================================================================

    def submetric(self, segment: str) -> MetricName:
        """Append a path segment; an empty segment returns ``self``."""
        if not segment:
            return self
        name = f"{self.name}{PATH_SEPARATOR}{segment}" if self.name else segment
        return MetricName(name, self.tags)

    def with_tags(self, *pairs: Any, **kwargs: str) -> MetricName:
        """
        Return a copy with additional tags.

        Accepts alternating key/value arguments, a single mapping, keyword
        arguments, or a mix of a mapping and keywords.

        Raises:
            ValueError: If key/value arguments are unbalanced, or a key or
                value could not survive an encode/decode round trip
        """
        tags = dict(self.tags)
        if len(pairs) == 1 and isinstance(pairs[0], Mapping):
            tags.update({str(k): str(v) for k, v in pairs[0].items()})
        elif pairs:
            if len(pairs) % 2:
                raise ValueError(f"Tags must be key/value pairs, got {len(pairs)} values")
            for key, value in zip(pairs[::2], pairs[1::2], strict=True):
                tags[str(key)] = str(value)
        tags.update({k: str(v) for k, v in kwargs.items()})
        return MetricName(self.name, tags)


def tagged(name: str, *pairs: Any, **kwargs: str) -> str:
    """Build an encoded registry name, e.g. ``tagged("http.requests", "status", 200)``."""
    return MetricName(name).with_tags(*pairs, **kwargs).encode()
