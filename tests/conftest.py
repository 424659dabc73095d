"""Shared pytest fixtures for metricpush tests."""

import pytest

from metricpush.registry import MetricRegistry


@pytest.fixture
def registry() -> MetricRegistry:
    """Return an empty metric registry."""
    return MetricRegistry()
