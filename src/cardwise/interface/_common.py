"""Shared helpers for CLI commands: config resolution, argument parsing, error reporting."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

import typer
from pydantic import ValidationError

from cardwise.application.config import AppConfig, resolve_config
from cardwise.domain.errors import (
    CardwiseError,
    DeckSettingsError,
    DocumentError,
    InvalidEaseError,
    InvalidScheduleError,
)
from cardwise.domain.scheduling.models import Ease
from cardwise.infrastructure.loaders import parse_datetime

logger = logging.getLogger(__name__)

_EASE_NAMES = {ease.name.lower(): ease for ease in Ease}


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    """Resolve config with CLI overrides, exiting cleanly on invalid config."""
    try:
        return resolve_config(overrides)
    except ValidationError as e:
        typer.secho(f"Invalid configuration:\n{e}", fg="red", err=True)
        raise typer.Exit(2) from e


def config_from_context(ctx: typer.Context) -> AppConfig:
    obj = ctx.obj or {}
    return _resolve_with_overrides(timezone=obj.get("timezone"))


def parse_now(value: str | None, config: AppConfig) -> datetime:
    """--now option: ISO timestamp in the configured zone, or the current time."""
    if value is None:
        return config.now()
    return parse_datetime(value, config.tzinfo())


def parse_ease(value: str) -> Ease:
    """Accept again/hard/good/easy (any case) or 1-4."""
    key = value.strip().lower()
    if key in _EASE_NAMES:
        return _EASE_NAMES[key]
    try:
        return Ease(int(key))
    except ValueError as e:
        raise InvalidEaseError(
            f"ease must be one of again, hard, good, easy or 1-4, got {value!r}"
        ) from e


def humanize_error(error: Exception) -> str:
    """Turn an engine error into a message for the terminal."""
    if isinstance(error, DeckSettingsError):
        lines = ["Invalid deck settings:"]
        lines.extend(f"  - {violation}" for violation in error.violations)
        return "\n".join(lines)
    if isinstance(error, InvalidScheduleError):
        return f"Invalid schedule: {error}"
    if isinstance(error, InvalidEaseError):
        return f"Invalid response: {error}"
    if isinstance(error, DocumentError):
        return f"Input error: {error}"
    return str(error)


@contextmanager
def reported_errors() -> Iterator[None]:
    """Report engine errors in red and exit with status 1."""
    try:
        yield
    except CardwiseError as e:
        logger.debug("Command failed", exc_info=True)
        typer.secho(humanize_error(e), fg="red", err=True)
        raise typer.Exit(1) from e
