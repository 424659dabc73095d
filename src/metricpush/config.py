"""
Reporter configuration.

Configuration is loaded from the ``[reporter]`` table of ``metricpush.toml``
and then overridden from the environment:

- ``METRICPUSH_API_KEY``: access key for the put endpoint
- ``METRICPUSH_API_URL``: put endpoint URL
- ``METRICPUSH_MODE``: reporting mode
- ``METRICPUSH_GLOBAL_TAGS``: ``k=v,k2=v2``, merged over the file's tags

Example ``metricpush.toml``::

    [reporter]
    mode = "api_put"
    api_url = "https://tsdb.internal/api/put"
    rate_unit = "seconds"
    duration_unit = "milliseconds"
    period_seconds = 30

    [reporter.global_tags]
    env = "prod"
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError
from .sanitize import SanitizerKind
from .sinks import ReportingMode
from .sinks.forwarder import DEFAULT_FORWARDER_HOST, DEFAULT_FORWARDER_PORT
from .sinks.put_client import DEFAULT_API_URL
from .units import TimeUnit

DEFAULT_CONFIG_FILE = "metricpush.toml"
ENV_PREFIX = "METRICPUSH_"


def parse_tags(raw: str) -> dict[str, str]:
    """
    Parse ``k=v,k2=v2``.

    Raises:
        ConfigError: If an entry has no ``=`` or an empty key
    """
    tags: dict[str, str] = {}
    for entry in raw.split(","):
        if not entry.strip():
            continue
        key, sep, value = entry.partition("=")
        if not sep or not key.strip():
            raise ConfigError(f"Invalid tag {entry.strip()!r}, expected key=value")
        tags[key.strip()] = value.strip()
    return tags


class ReporterConfig(BaseModel):
    """Complete reporter configuration."""

    mode: ReportingMode = ReportingMode.API_PUT
    rate_unit: TimeUnit = TimeUnit.SECONDS
    duration_unit: TimeUnit = TimeUnit.MILLISECONDS
    global_tags: dict[str, str] = Field(default_factory=dict)
    sanitizer: SanitizerKind = SanitizerKind.PROMETHEUS

    api_url: str = DEFAULT_API_URL
    api_key: str | None = None
    timeout_seconds: float = Field(default=10.0, gt=0)

    forwarder_host: str = DEFAULT_FORWARDER_HOST
    forwarder_port: int = Field(default=DEFAULT_FORWARDER_PORT, ge=1, le=65535)

    period_seconds: float = Field(default=60.0, gt=0)

    @field_validator("mode", mode="before")
    @classmethod
    def validate_mode(cls, v: Any) -> ReportingMode:
        """Unknown modes fall back to api_put."""
        return ReportingMode.parse(v)

    @field_validator("rate_unit", "duration_unit", mode="before")
    @classmethod
    def validate_unit(cls, v: Any) -> TimeUnit:
        try:
            return TimeUnit.parse(v)
        except ValueError:
            raise ValueError(
                f"Invalid time unit {v!r}. Must be one of: {', '.join(TimeUnit)}"
            ) from None

    @field_validator("global_tags", mode="before")
    @classmethod
    def validate_tags(cls, v: Any) -> Any:
        if isinstance(v, str):
            return parse_tags(v)
        if isinstance(v, Mapping):
            return {str(k): str(val) for k, val in v.items()}
        return v

    def masked(self) -> dict[str, Any]:
        """Dump for display with the api key hidden."""
        data = self.model_dump(mode="json")
        if data.get("api_key"):
            data["api_key"] = data["api_key"][:4] + "****"
        return data


# =============================================================================
# Configuration Loading
# =============================================================================


def load_config(
    toml_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> ReporterConfig:
    """
    Load reporter configuration from TOML plus environment overrides.

    Args:
        toml_path: Path to the TOML file (defaults to ./metricpush.toml);
            a missing file means defaults
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated ReporterConfig

    Raises:
        ConfigError: If the file cannot be parsed or values are invalid
    """
    path = Path(toml_path) if toml_path is not None else Path(DEFAULT_CONFIG_FILE)
    env = os.environ if environ is None else environ

    data: dict[str, Any] = {}
    if path.exists():
        try:
            with open(path, "rb") as f:
                data = dict(tomllib.load(f).get("reporter", {}))
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e

    data.update(_env_overrides(env, data))

    try:
        return ReporterConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid reporter configuration: {e}") from e


def _env_overrides(env: Mapping[str, str], file_data: Mapping[str, Any]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for key in ("api_key", "api_url", "mode"):
        value = env.get(f"{ENV_PREFIX}{key.upper()}")
        if value:
            overrides[key] = value

    raw_tags = env.get(f"{ENV_PREFIX}GLOBAL_TAGS")
    if raw_tags:
        base = file_data.get("global_tags") or {}
        if isinstance(base, str):
            base = parse_tags(base)
        overrides["global_tags"] = {**base, **parse_tags(raw_tags)}
    return overrides
