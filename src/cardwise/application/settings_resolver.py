"""
Deck settings resolution.

Merges a partial, possibly-absent per-deck settings object over defaults and
validates the result. Out-of-range values are rejected, never clamped: the
caller gets a DeckSettingsError listing every violated field.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from cardwise.domain.errors import DeckSettingsError, SettingsViolation
from cardwise.domain.settings import DeckSettings

logger = logging.getLogger(__name__)

RawSettings = Mapping[str, Any] | DeckSettings | None

_RANGE_ERRORS = {"greater_than", "greater_than_equal", "less_than", "less_than_equal"}


def default_deck_settings() -> DeckSettings:
    """Return the built-in defaults."""
    return DeckSettings()


def resolve_deck_settings(
    raw: RawSettings = None,
    defaults: DeckSettings | None = None,
) -> DeckSettings:
    """
    Resolve raw deck settings into a complete DeckSettings.

    Args:
        raw: Partial settings as stored per deck, an already-resolved
            DeckSettings (returned unchanged), or None.
        defaults: Values for absent fields. Built-in defaults if not set.

    Returns:
        The resolved settings.

    Raises:
        DeckSettingsError: If any field is out of range or ill-typed.
    """
    if isinstance(raw, DeckSettings):
        return raw

    base = defaults or default_deck_settings()
    if raw is None:
        return base

    if not isinstance(raw, Mapping):
        raise DeckSettingsError(
            [SettingsViolation("settings", f"must be a mapping, got {type(raw).__name__}")]
        )

    # JSON nulls mean "not set"
    overrides = {key: value for key, value in raw.items() if value is not None}
    if not overrides:
        return base

    merged = base.model_dump()
    merged.update(overrides)

    try:
        return DeckSettings.model_validate(merged)
    except ValidationError as e:
        violations = _violations_from(e)
        logger.debug("Rejected deck settings: %s", violations)
        raise DeckSettingsError(violations) from e


def validate_deck_settings(
    raw: RawSettings,
    defaults: DeckSettings | None = None,
) -> list[SettingsViolation]:
    """Return every violated field of raw settings (empty when valid)."""
    try:
        resolve_deck_settings(raw, defaults)
    except DeckSettingsError as e:
        return e.violations
    return []


def _violations_from(error: ValidationError) -> list[SettingsViolation]:
    """Collapse pydantic errors to one violation per field."""
    violations: dict[str, SettingsViolation] = {}

    for err in error.errors():
        loc = err.get("loc", ())
        field = str(loc[0]) if loc else "settings"
        if field in violations:
            continue
        violations[field] = SettingsViolation(field, _describe(field, loc, err))

    return list(violations.values())


def _describe(field: str, loc: tuple, err: dict[str, Any]) -> str:
    msg = err["msg"]
    low, high = _bounds(field)
    if err.get("type") in _RANGE_ERRORS and low is not None and high is not None:
        label = field.replace("_", " ")
        return f"{label} must be between {low} and {high}"

    if len(loc) > 1:
        return f"item {loc[1]}: {msg}"
    return msg


def _bounds(field: str) -> tuple[Any, Any]:
    """Read the inclusive ge/le bounds declared on a DeckSettings field."""
    info = DeckSettings.model_fields.get(field)
    if info is None:
        return None, None

    low = high = None
    for constraint in info.metadata:
        low = getattr(constraint, "ge", low)
        high = getattr(constraint, "le", high)
    return low, high
