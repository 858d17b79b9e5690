"""
SM-2 schedule state machine.

Given a card's current schedule and a graded response, computes the next
schedule. Every function here is pure: schedules are frozen values and the
clock is an explicit input.

States:
    new / learning  -> walk the learning-step table, graduate into review
    relearning      -> walk the relearning-step table, graduate back into review
    review          -> grow the interval by the updated ease factor, or lapse
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from cardwise.application.settings_resolver import RawSettings, resolve_deck_settings
from cardwise.application.utils.rounding import round_half_up
from cardwise.domain.constants import (
    DAYS_PER_MONTH,
    DAYS_PER_YEAR,
    DEFAULT_DAY_RESET_HOUR,
    MIN_EASE_FACTOR,
    MINUTES_PER_DAY,
    MINUTES_PER_HOUR,
)
from cardwise.domain.errors import InvalidEaseError
from cardwise.domain.scheduling.models import CardSchedule, CardState, Ease
from cardwise.domain.settings import DeckSettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Clock helpers
# ---------------------------------------------------------------------------


def add_minutes(moment: datetime, minutes: float) -> datetime:
    """Add an absolute duration, independent of wall-clock shifts."""
    if moment.tzinfo is None:
        return moment + timedelta(minutes=minutes)
    utc = moment.astimezone(timezone.utc) + timedelta(minutes=minutes)
    return utc.astimezone(moment.tzinfo)


def add_days(moment: datetime, days: int) -> datetime:
    """Add whole calendar days, keeping the local time of day."""
    # Aware arithmetic in Python operates on wall time, so DST changes do not
    # shift the time of day.
    return moment + timedelta(days=days)


def study_day_start(moment: datetime, reset_hour: int = DEFAULT_DAY_RESET_HOUR) -> datetime:
    """
    Return the start of the logical study day containing `moment`.

    Times before `reset_hour` belong to the previous day.
    """
    start = moment.replace(hour=reset_hour, minute=0, second=0, microsecond=0)
    if moment.hour < reset_hour:
        start -= timedelta(days=1)
    return start


def is_due(schedule: CardSchedule, now: datetime) -> bool:
    return schedule.due <= now


def create_initial_schedule(now: datetime | None = None) -> CardSchedule:
    """Default schedule for a card that has never been graded."""
    if now is None:
        now = datetime.now(timezone.utc)
    return CardSchedule(due=now)


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def coerce_ease(ease: Ease | int) -> Ease:
    """Validate a grading response; anything but the integers 1-4 is a caller bug."""
    if isinstance(ease, bool) or not isinstance(ease, int):
        raise InvalidEaseError(f"ease must be 1-4 (Again, Hard, Good, Easy), got {ease!r}")
    try:
        return Ease(ease)
    except ValueError as e:
        raise InvalidEaseError(
            f"ease must be 1-4 (Again, Hard, Good, Easy), got {ease!r}"
        ) from e


def calculate_next_review(
    schedule: CardSchedule,
    ease: Ease | int,
    now: datetime | None = None,
    settings: RawSettings = None,
) -> CardSchedule:
    """
    Compute the schedule that follows grading `schedule` with `ease`.

    Args:
        schedule: Current schedule (never mutated).
        ease: Graded response.
        now: Clock reading; defaults to the current UTC time.
        settings: Resolved DeckSettings, or raw settings to resolve.

    Returns:
        The next schedule.

    Raises:
        InvalidEaseError: If `ease` is not one of the four responses.
    """
    ease = coerce_ease(ease)
    if now is None:
        now = datetime.now(timezone.utc)
    resolved = resolve_deck_settings(settings)

    if schedule.state == CardState.REVIEW:
        updated = _review_transition(schedule, ease, now, resolved)
    elif schedule.state == CardState.RELEARNING:
        updated = _learning_transition(schedule, ease, now, resolved.relearning_steps, resolved)
    else:
        updated = _learning_transition(schedule, ease, now, resolved.learning_steps, resolved)

    logger.debug(
        "%s/%s -> %s (interval %d -> %d)",
        schedule.state.value,
        ease.name,
        updated.state.value,
        schedule.interval,
        updated.interval,
    )
    return updated


def _learning_transition(
    schedule: CardSchedule,
    ease: Ease,
    now: datetime,
    steps: tuple[float, ...],
    settings: DeckSettings,
) -> CardSchedule:
    phase = CardState.RELEARNING if schedule.state == CardState.RELEARNING else CardState.LEARNING

    if ease == Ease.AGAIN:
        return replace(schedule, state=phase, learning_step=0, due=add_minutes(now, steps[0]))

    if ease == Ease.EASY:
        return _graduate(schedule, now, settings.easy_interval, settings)

    # Hard repeats the current step, Good advances
    next_step = schedule.learning_step if ease == Ease.HARD else schedule.learning_step + 1
    if next_step >= len(steps):
        return _graduate(schedule, now, settings.graduating_interval, settings)

    return replace(
        schedule,
        state=phase,
        learning_step=next_step,
        due=add_minutes(now, steps[next_step]),
    )


def _graduate(
    schedule: CardSchedule,
    now: datetime,
    interval: int,
    settings: DeckSettings,
) -> CardSchedule:
    # The halved lapse interval is discarded.
    interval = min(interval, settings.max_interval)
    return replace(
        schedule,
        state=CardState.REVIEW,
        interval=interval,
        due=add_days(now, interval),
        repetitions=1,
        learning_step=0,
    )


def _review_transition(
    schedule: CardSchedule,
    ease: Ease,
    now: datetime,
    settings: DeckSettings,
) -> CardSchedule:
    ease_factor = update_ease_factor(schedule.ease_factor, ease)

    if ease == Ease.AGAIN:
        lapse_interval = max(
            settings.lapse_min_interval,
            round_half_up(schedule.interval * settings.lapse_new_interval),
        )
        return replace(
            schedule,
            state=CardState.RELEARNING,
            learning_step=0,
            ease_factor=ease_factor,
            interval=lapse_interval,
            lapses=schedule.lapses + 1,
            due=add_minutes(now, settings.relearning_steps[0]),
        )

    interval = next_review_interval(schedule.interval, ease_factor, ease, settings)
    return replace(
        schedule,
        ease_factor=ease_factor,
        interval=interval,
        due=add_days(now, interval),
        repetitions=schedule.repetitions + 1,
    )


def update_ease_factor(ease_factor: float, ease: Ease) -> float:
    """
    SM-2 ease update, with the 1-4 response scale mapped onto SM-2's 2-5.

    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored at 1.3.
    """
    q = int(ease) + 1
    updated = ease_factor + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    return max(MIN_EASE_FACTOR, updated)


def next_review_interval(
    interval: int,
    ease_factor: float,
    ease: Ease,
    settings: DeckSettings,
) -> int:
    """Interval for a passing review; `ease_factor` is the already-updated one."""
    if ease == Ease.HARD:
        multiplier = settings.hard_interval_modifier
    elif ease == Ease.GOOD:
        multiplier = ease_factor
    elif ease == Ease.EASY:
        multiplier = ease_factor * settings.easy_bonus
    else:
        raise InvalidEaseError(f"no review interval for {ease!r}")

    raw = interval * multiplier * settings.interval_modifier
    return max(1, min(settings.max_interval, round_half_up(raw)))


# ---------------------------------------------------------------------------
# Preview
# ---------------------------------------------------------------------------


def preview_intervals(
    schedule: CardSchedule,
    now: datetime | None = None,
    settings: RawSettings = None,
) -> dict[Ease, str]:
    """
    Format "comes back in X" hints for all four responses.

    The input schedule is left untouched.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    resolved = resolve_deck_settings(settings)

    return {
        ease: format_interval(calculate_next_review(schedule, ease, now, resolved).due, now)
        for ease in Ease
    }


def format_interval(due: datetime, now: datetime) -> str:
    """Render the delay between `now` and `due` in the coarsest fitting unit."""
    seconds = (due - now).total_seconds()
    minutes = round_half_up(seconds / 60)
    days = round_half_up(seconds / 86400)

    if minutes < MINUTES_PER_HOUR:
        return f"{minutes}m"
    if minutes < MINUTES_PER_DAY:
        return f"{round_half_up(minutes / MINUTES_PER_HOUR)}h"
    if days < DAYS_PER_MONTH:
        return f"{days}d"
    if days < DAYS_PER_YEAR:
        return f"{round_half_up(days / DAYS_PER_MONTH)}mo"
    return f"{round_half_up(days / DAYS_PER_YEAR)}y"
