"""
Document loaders for schedules, deck settings, card pools and review logs.

Reads YAML or JSON files into engine value types. Stored schedules are
checked against the engine's invariants here, before they reach the engine;
the engine itself never repairs a degenerate schedule.
"""

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Any

import yaml  # type: ignore

from cardwise.application.scheduler import create_initial_schedule
from cardwise.application.settings_resolver import resolve_deck_settings
from cardwise.domain.constants import DEFAULT_EASE_FACTOR, MIN_EASE_FACTOR
from cardwise.domain.errors import DocumentError, InvalidScheduleError
from cardwise.domain.scheduling.models import (
    CardSchedule,
    CardState,
    Ease,
    ReviewLogEntry,
    StudyCard,
)
from cardwise.domain.settings import DeckSettings

logger = logging.getLogger(__name__)

# camelCase spellings accepted for stored schedules
_SCHEDULE_ALIASES = {
    "easeFactor": "ease_factor",
    "learningStep": "learning_step",
}


# ---------- Raw documents ----------


def load_document(path: Path) -> Any:
    """Parse a YAML or JSON file. An empty file yields None."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentError(f"Cannot read {path}: {e}") from e

    try:
        if path.suffix.lower() == ".json":
            return json.loads(text) if text.strip() else None
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise DocumentError(f"Cannot parse {path}: {e}") from e


def parse_datetime(value: Any, tz: tzinfo | None = None) -> datetime:
    """
    Convert a document value into a datetime.

    Accepts datetimes (YAML timestamps), ISO-8601 strings (a trailing Z is
    UTC) and epoch seconds. Naive results are placed in `tz` when given.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, bool):
        raise DocumentError(f"Not a timestamp: {value!r}")
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise DocumentError(f"Not a timestamp: {value!r}") from e
    else:
        raise DocumentError(f"Not a timestamp: {value!r}")

    if parsed.tzinfo is None and tz is not None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


# ---------- Schedules ----------


def validate_schedule(schedule: CardSchedule) -> CardSchedule:
    """
    Reject schedules that break the engine's invariants.

    Raises:
        InvalidScheduleError: Naming the first broken invariant.
    """
    if not isinstance(schedule.state, CardState):
        raise InvalidScheduleError(f"unknown state: {schedule.state!r}")
    if schedule.interval < 0:
        raise InvalidScheduleError(f"interval must be >= 0, got {schedule.interval}")
    if schedule.state in (CardState.REVIEW, CardState.RELEARNING) and schedule.interval < 1:
        raise InvalidScheduleError(
            f"interval must be >= 1 in state {schedule.state.value}, got {schedule.interval}"
        )
    if schedule.ease_factor < MIN_EASE_FACTOR:
        raise InvalidScheduleError(
            f"ease_factor must be >= {MIN_EASE_FACTOR}, got {schedule.ease_factor}"
        )
    if schedule.repetitions < 0:
        raise InvalidScheduleError(f"repetitions must be >= 0, got {schedule.repetitions}")
    if schedule.learning_step < 0:
        raise InvalidScheduleError(f"learning_step must be >= 0, got {schedule.learning_step}")
    if schedule.lapses < 0:
        raise InvalidScheduleError(f"lapses must be >= 0, got {schedule.lapses}")
    return schedule


def schedule_from_mapping(
    data: Mapping[str, Any],
    now: datetime,
    tz: tzinfo | None = None,
) -> CardSchedule:
    """Build and validate a CardSchedule from a stored mapping; `due` defaults to `now`."""
    fields = {_SCHEDULE_ALIASES.get(key, key): value for key, value in data.items()}

    try:
        state = CardState(fields.get("state", CardState.NEW.value))
    except ValueError as e:
        raise InvalidScheduleError(f"unknown state: {fields.get('state')!r}") from e

    due_raw = fields.get("due")
    try:
        schedule = CardSchedule(
            due=parse_datetime(due_raw, tz) if due_raw is not None else now,
            interval=_whole_number(fields, "interval"),
            ease_factor=float(fields.get("ease_factor", DEFAULT_EASE_FACTOR)),
            repetitions=_whole_number(fields, "repetitions"),
            state=state,
            learning_step=_whole_number(fields, "learning_step"),
            lapses=_whole_number(fields, "lapses"),
        )
    except InvalidScheduleError:
        raise
    except (TypeError, ValueError) as e:
        raise InvalidScheduleError(f"malformed schedule: {e}") from e

    return validate_schedule(schedule)


def _whole_number(fields: Mapping[str, Any], name: str) -> int:
    """Read an integer schedule field, rejecting fractions instead of truncating."""
    value = fields.get(name, 0)
    if isinstance(value, bool):
        raise InvalidScheduleError(f"{name} must be a whole number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidScheduleError(f"{name} must be a whole number, got {value!r}") from e
    if not number.is_integer():
        raise InvalidScheduleError(f"{name} must be a whole number, got {value!r}")
    return int(number)


def load_schedule(path: Path, now: datetime, tz: tzinfo | None = None) -> CardSchedule:
    """Load a schedule file; an empty file means a never-studied card."""
    data = load_document(path)
    if data is None:
        return create_initial_schedule(now)
    if not isinstance(data, Mapping):
        raise DocumentError(f"{path}: expected a mapping of schedule fields")
    return schedule_from_mapping(data, now, tz)


# ---------- Settings ----------


def load_settings(path: Path, defaults: DeckSettings | None = None) -> DeckSettings:
    """Load and resolve a (partial) deck settings file."""
    return resolve_deck_settings(load_raw_settings(path), defaults)


def load_raw_settings(path: Path) -> Mapping[str, Any] | None:
    data = load_document(path)
    if data is not None and not isinstance(data, Mapping):
        raise DocumentError(f"{path}: expected a mapping of deck settings")
    return data


# ---------- Pools and logs ----------


def load_pool(path: Path, now: datetime, tz: tzinfo | None = None) -> list[StudyCard]:
    """
    Load candidate cards.

    Expected shape::

        cards:
          - id: c1
            created_at: 2024-01-01T09:00:00
            suspended: false
            schedule: {state: review, interval: 3, due: ...}
    """
    data = load_document(path)
    if data is None:
        return []

    cards_raw = data.get("cards", []) if isinstance(data, Mapping) else data
    if not isinstance(cards_raw, list):
        raise DocumentError(f"{path}: 'cards' must be a list")

    cards: list[StudyCard] = []
    for index, item in enumerate(cards_raw):
        if not isinstance(item, Mapping) or "id" not in item:
            raise DocumentError(f"{path}: card #{index} needs an 'id'")

        schedule_raw = item.get("schedule")
        if schedule_raw is not None and not isinstance(schedule_raw, Mapping):
            raise DocumentError(f"{path}: card {item['id']} has a malformed schedule")

        created_raw = item.get("created_at")
        cards.append(
            StudyCard(
                card_id=str(item["id"]),
                schedule=schedule_from_mapping(schedule_raw, now, tz) if schedule_raw else None,
                created_at=parse_datetime(created_raw, tz) if created_raw is not None else None,
                suspended=bool(item.get("suspended", False)),
            )
        )

    logger.debug("Loaded %d cards from %s", len(cards), path)
    return cards


def load_review_log(path: Path, tz: tzinfo | None = None) -> list[ReviewLogEntry]:
    """Load review-log entries (`entries:` list, or a bare list)."""
    data = load_document(path)
    if data is None:
        return []

    entries_raw = data.get("entries", []) if isinstance(data, Mapping) else data
    if not isinstance(entries_raw, list):
        raise DocumentError(f"{path}: 'entries' must be a list")

    entries: list[ReviewLogEntry] = []
    for index, item in enumerate(entries_raw):
        if not isinstance(item, Mapping):
            raise DocumentError(f"{path}: entry #{index} is not a mapping")
        try:
            entries.append(
                ReviewLogEntry(
                    learner_id=_optional_str(item.get("learner_id")),
                    card_id=_optional_str(item.get("card_id")),
                    ease=Ease(int(item["ease"])),
                    interval=int(item["interval"]),
                    last_interval=int(item["last_interval"]),
                    reviewed_at=parse_datetime(item["reviewed_at"], tz),
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DocumentError(f"{path}: entry #{index} is malformed: {e}") from e

    return entries


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)
