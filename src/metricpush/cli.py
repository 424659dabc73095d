"""
metricpush command line.

Commands:
- version: Print the installed version
- config: Show the resolved configuration (api key masked)
- demo: Run a few reporting cycles over a sample registry
"""

from __future__ import annotations

import json
import random
import time
from decimal import Decimal
from pathlib import Path

import typer

from ._version import get_version
from .config import ReporterConfig, load_config
from .errors import MetricPushError
from .factory import build_reporter
from .logging import setup_logging
from .naming import tagged
from .registry import MetricRegistry
from .units import TimeUnit

app = typer.Typer(help="Report in-process metrics as tagged data points", no_args_is_help=True)


@app.callback()
def main_callback(
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for metricpush"),
) -> None:
    """metricpush: periodic metric reporting."""
    setup_logging(log_level)


@app.command("version")
def version_command() -> None:
    """Print the metricpush version."""
    typer.echo(get_version())


@app.command("config")
def config_command(
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Path to metricpush.toml"),
) -> None:
    """Show the resolved reporter configuration."""
    try:
        config = load_config(config_path)
    except MetricPushError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    typer.echo(json.dumps(config.masked(), indent=2, sort_keys=True))


def sample_registry(seed: int = 7) -> MetricRegistry:
    """Registry with one metric of every kind, pre-populated with samples."""
    rng = random.Random(seed)
    registry = MetricRegistry()

    registry.gauge("demo.queue.depth", lambda: rng.randint(0, 50))
    registry.gauge("demo.ratio", lambda: Decimal("0.25"))
    registry.counter(tagged("demo.jobs", "state", "done")).inc(3)

    histogram = registry.histogram("demo.payload.bytes")
    meter = registry.meter(tagged("demo.requests", "method", "GET"))
    timer = registry.timer("demo.latency")
    for _ in range(20):
        histogram.update(rng.randint(100, 5000))
        meter.mark()
        timer.update(rng.uniform(1, 250), TimeUnit.MILLISECONDS)
    return registry


@app.command("demo")
def demo_command(
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Path to metricpush.toml"),
    mode: str = typer.Option("sys_out", "--mode", "-m", help="Reporting mode override"),
    cycles: int = typer.Option(2, "--cycles", "-n", min=1, help="Number of report cycles"),
    interval: float = typer.Option(0.0, "--interval", "-i", min=0.0, help="Seconds between cycles"),
) -> None:
    """
    Report a sample registry through the configured sink.

    The first cycle emits every statistic; later cycles only emit counts for
    histograms, meters and timers that did not change.
    """
    try:
        base = load_config(config_path)
        config = ReporterConfig.model_validate({**base.model_dump(), "mode": mode})
        reporter = build_reporter(sample_registry(), config)
    except MetricPushError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    typer.echo(
        f"# rates per {config.rate_unit.singular}, durations in {config.duration_unit}",
        err=True,
    )
    with reporter:
        for cycle in range(cycles):
            if cycle and interval:
                time.sleep(interval)
            result = reporter.report()
            points = len(result.data_points or [])
            typer.echo(f"# cycle {cycle + 1}: {points} points, sent={result.sent}", err=True)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
