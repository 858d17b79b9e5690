"""
Session planning helpers.

Partition candidate cards into the two pools the queue builder takes, and
derive today's consumption counters from review-log entries. Both are pure;
the study-day boundary comes from study_day_start.
"""

from collections.abc import Iterable
from datetime import datetime

from cardwise.application.scheduler import study_day_start
from cardwise.domain.constants import DEFAULT_DAY_RESET_HOUR
from cardwise.domain.scheduling.models import CardState, ReviewLogEntry, StudyCard


def partition_candidates(
    cards: Iterable[StudyCard],
    now: datetime,
) -> tuple[list[StudyCard], list[StudyCard]]:
    """
    Split cards into (due, new) pools, preserving input order.

    Suspended cards are left out. Cards in learning phases that are not yet
    due are in neither pool.
    """
    due: list[StudyCard] = []
    new: list[StudyCard] = []

    for card in cards:
        if card.suspended:
            continue
        if card.schedule is None or card.schedule.state == CardState.NEW:
            new.append(card)
        elif card.schedule.due <= now:
            due.append(card)

    return due, new


def count_new_cards_today(
    entries: Iterable[ReviewLogEntry],
    now: datetime,
    reset_hour: int = DEFAULT_DAY_RESET_HOUR,
) -> int:
    """
    Count cards introduced since the study day began.

    A pre-graduation review has last_interval == 0; repeated learning steps of
    the same card count once.
    """
    start = study_day_start(now, reset_hour)
    seen: set[str] = set()
    count = 0

    for e in entries:
        if e.reviewed_at < start or e.last_interval != 0:
            continue
        if e.card_id is not None:
            if e.card_id in seen:
                continue
            seen.add(e.card_id)
        count += 1

    return count


def count_reviews_today(
    entries: Iterable[ReviewLogEntry],
    now: datetime,
    reset_hour: int = DEFAULT_DAY_RESET_HOUR,
) -> int:
    """Count reviews of already-graduated cards since the study day began."""
    start = study_day_start(now, reset_hour)
    return sum(1 for e in entries if e.reviewed_at >= start and e.last_interval > 0)
