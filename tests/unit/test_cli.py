"""Tests for CLI commands."""

import json
from importlib.metadata import PackageNotFoundError
from pathlib import Path

import pytest
from typer.testing import CliRunner

from metricpush import _version
from metricpush.cli import app, sample_registry
from metricpush.points import parse_text_line


@pytest.fixture
def cli_runner():
    """Return a CLI test runner."""
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "metricpush.toml"
    path.write_text(
        """
[reporter]
mode = "noop"
api_key = "abcdefgh"
sanitizer = "noop"

[reporter.global_tags]
env = "test"
"""
    )
    return path


def test_version(cli_runner: CliRunner):
    result = cli_runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.stdout.strip()


def test_config_masks_key(cli_runner: CliRunner, config_file: Path, monkeypatch):
    monkeypatch.delenv("METRICPUSH_API_KEY", raising=False)
    monkeypatch.delenv("METRICPUSH_MODE", raising=False)
    monkeypatch.delenv("METRICPUSH_GLOBAL_TAGS", raising=False)
    result = cli_runner.invoke(app, ["config", "--config", str(config_file)])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["api_key"] == "abcd****"
    assert data["mode"] == "noop"
    assert data["global_tags"] == {"env": "test"}


def test_config_invalid_file(cli_runner: CliRunner, tmp_path: Path):
    path = tmp_path / "metricpush.toml"
    path.write_text("[reporter]\nforwarder_port = 0\n")
    result = cli_runner.invoke(app, ["config", "--config", str(path)])
    assert result.exit_code == 1


def test_demo_dumps_points(cli_runner: CliRunner, config_file: Path, monkeypatch):
    monkeypatch.delenv("METRICPUSH_MODE", raising=False)
    result = cli_runner.invoke(
        app, ["demo", "--config", str(config_file), "--mode", "sys_out", "--cycles", "2"]
    )
    assert result.exit_code == 0

    lines = [line for line in result.stdout.splitlines() if line and not line.startswith("#")]
    points = [parse_text_line(line) for line in lines]
    assert all(p.tags["env"] == "test" for p in points)
    metrics = {p.metric for p in points}
    assert "demo.requests.total" in metrics
    assert "demo.latency.duration.p99" not in metrics
    assert "demo.latency.duration" in metrics


def test_demo_shows_unit_labels(cli_runner: CliRunner, tmp_path: Path, monkeypatch):
    monkeypatch.delenv("METRICPUSH_MODE", raising=False)
    monkeypatch.delenv("METRICPUSH_GLOBAL_TAGS", raising=False)
    path = tmp_path / "metricpush.toml"
    path.write_text('[reporter]\nrate_unit = "minutes"\nduration_unit = "s"\n')
    result = cli_runner.invoke(
        app, ["demo", "--config", str(path), "--mode", "noop", "--cycles", "1"]
    )
    assert result.exit_code == 0
    assert "# rates per minute, durations in seconds" in result.output


def test_sample_registry_has_every_kind():
    registry = sample_registry()
    assert registry.gauges()
    assert registry.counters()
    assert registry.histograms()
    assert registry.meters()
    assert registry.timers()


class TestVersion:
    """Version lookup."""

    def test_installed_metadata_wins(self, monkeypatch):
        monkeypatch.setattr(_version, "_metadata_version", lambda name: "9.9.9")
        assert _version.get_version() == "9.9.9"

    def test_checkout_fallback(self, monkeypatch):
        def missing(name):
            raise PackageNotFoundError(name)

        monkeypatch.setattr(_version, "_metadata_version", missing)
        assert _version.get_version() == "0.3.0"

    def test_foreign_or_broken_pyproject(self, tmp_path: Path):
        other = tmp_path / "other.toml"
        other.write_text('[project]\nname = "other"\nversion = "1.0"\n')
        broken = tmp_path / "broken.toml"
        broken.write_text("[project\n")
        assert _version._checkout_version(other) == "0.0.0"
        assert _version._checkout_version(broken) == "0.0.0"
        assert _version._checkout_version(tmp_path / "missing.toml") == "0.0.0"
