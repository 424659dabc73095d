"""
Error types for metricpush configuration, registry and transport.
"""


class MetricPushError(Exception):
    """Base exception for all metricpush errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigError(MetricPushError):
    """
    Raised when reporter configuration is unusable.

    Examples:
    - Remote put mode without an access key
    - Unreadable TOML file
    - Malformed global tag string in the environment
    """

    pass


class SinkError(MetricPushError):
    """
    Raised by a sink when the transport rejects or fails to carry a batch.

    The reporting driver catches it; the batch is dropped.
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class MetricKindConflict(MetricPushError):
    """Raised when a name is already registered for a different metric kind."""

    pass


class ReporterStateError(MetricPushError):
    """Raised on an invalid reporter lifecycle transition (e.g. double start)."""

    pass
