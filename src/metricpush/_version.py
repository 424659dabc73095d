"""Installed version of metricpush."""

import tomllib
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _metadata_version
from pathlib import Path

DIST_NAME = "metricpush"
UNKNOWN_VERSION = "0.0.0"


def get_version() -> str:
    """
    Version from the installed distribution.

    Source checkouts that were never installed fall back to the
    ``[project]`` table of the repository's pyproject.toml.
    """
    try:
        return _metadata_version(DIST_NAME)
    except PackageNotFoundError:
        return _checkout_version(Path(__file__).resolve().parents[2] / "pyproject.toml")


def _checkout_version(pyproject: Path) -> str:
    try:
        with open(pyproject, "rb") as f:
            project = tomllib.load(f).get("project", {})
    except (OSError, tomllib.TOMLDecodeError):
        return UNKNOWN_VERSION
    if project.get("name") != DIST_NAME:
        return UNKNOWN_VERSION
    return str(project.get("version", UNKNOWN_VERSION))
