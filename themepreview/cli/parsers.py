"""CLI argument parsers and validators."""

from __future__ import annotations

from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import typer


def parse_fixture_path(value: str) -> Path:
    """Parse a fixture argument: an existing ``.json`` file."""
    path = Path(value)
    if path.suffix.lower() != ".json":
        raise typer.BadParameter(f"Fixture must be a .json file, got: {value!r}")
    if not path.is_file():
        raise typer.BadParameter(f"Fixture file not found: {value!r}")
    return path


def parse_directory(value: str, default: Path) -> Path:
    """Use ``value`` when given, otherwise the configured default."""
    return Path(value) if value else default


def parse_time_zone(value: str, default: str) -> str:
    """Validate a time zone id given on the command line."""
    if not value:
        return default
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise typer.BadParameter(f"Unknown time zone: {value!r}") from e
    return value
