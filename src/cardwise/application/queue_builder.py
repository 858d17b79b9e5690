"""
Queue builder for study sessions.

Builds ordered study queues by:
1. Sorting due cards per the deck's review_sort
2. Capping due cards at the remaining daily review budget
3. Ordering and capping new cards at the remaining daily new-card budget
4. Combining both pools per new_review_mix
"""

import itertools
import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from cardwise.application.settings_resolver import RawSettings, resolve_deck_settings
from cardwise.application.utils.rounding import round_half_up

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class QueueBuildResult(Generic[T]):
    """Result of queue building operation."""

    queue: list[T]  # Ordered cards, ready for presentation
    due_count: int  # Due cards kept after the review cap
    new_count: int  # New cards kept after the new-card cap
    dropped_due: int  # Due cards cut by max_reviews_per_day
    dropped_new: int  # New cards cut by new_cards_per_day


def build_study_queue(
    due_cards: Sequence[T],
    new_cards: Sequence[T],
    settings: RawSettings = None,
    new_cards_today: int = 0,
    reviews_today: int = 0,
    rng: random.Random | None = None,
) -> list[T]:
    """Return the ordered study sequence; see plan_study_queue."""
    return plan_study_queue(
        due_cards,
        new_cards,
        settings,
        new_cards_today=new_cards_today,
        reviews_today=reviews_today,
        rng=rng,
    ).queue


def plan_study_queue(
    due_cards: Sequence[T],
    new_cards: Sequence[T],
    settings: RawSettings = None,
    new_cards_today: int = 0,
    reviews_today: int = 0,
    rng: random.Random | None = None,
) -> QueueBuildResult[T]:
    """
    Build the study queue for one session.

    Args:
        due_cards: Cards due for review. Each must expose `schedule.due`; all
            due datetimes must be timezone-aware (or all naive), since they are
            compared with each other when sorting.
        new_cards: Never-studied cards in creation order, suspended ones excluded.
        settings: Resolved DeckSettings, or raw settings to resolve.
        new_cards_today: New cards already introduced in this study day.
        reviews_today: Reviews already done in this study day.
        rng: Source of randomness for shuffles (default: a fresh Random).

    Returns:
        QueueBuildResult with the ordered queue and cap diagnostics.
    """
    resolved = resolve_deck_settings(settings)
    rng = rng if rng is not None else random.Random()

    # 1. Sort due pool
    sorted_due = _sort_due(list(due_cards), resolved.review_sort, rng)

    # 2. Cap due pool (0 = unlimited)
    if resolved.max_reviews_per_day > 0:
        remaining_reviews = max(0, resolved.max_reviews_per_day - reviews_today)
        sorted_due = sorted_due[:remaining_reviews]

    # 3. Order and cap new pool
    sorted_new = list(new_cards)
    if resolved.new_card_order == "random":
        rng.shuffle(sorted_new)
    remaining_new = max(0, resolved.new_cards_per_day - new_cards_today)
    sorted_new = sorted_new[:remaining_new]

    # 4. Combine
    if resolved.new_review_mix == "new_first":
        queue = sorted_new + sorted_due
    elif resolved.new_review_mix == "mix":
        queue = interleave(sorted_due, sorted_new)
    else:
        queue = sorted_due + sorted_new

    logger.debug(
        "Queue: %d due + %d new (%s, %s)",
        len(sorted_due),
        len(sorted_new),
        resolved.review_sort,
        resolved.new_review_mix,
    )

    return QueueBuildResult(
        queue=queue,
        due_count=len(sorted_due),
        new_count=len(sorted_new),
        dropped_due=len(due_cards) - len(sorted_due),
        dropped_new=len(new_cards) - len(sorted_new),
    )


def interleave(due: list[T], new: list[T]) -> list[T]:
    """
    Spread new cards evenly through the due cards.

    At position i of T total, a new card is emitted while fewer than
    round((i + 1) * |new| / T) have been emitted so far.
    """
    total = len(due) + len(new)
    if total == 0:
        return []

    result: list[T] = []
    new_idx = 0
    due_idx = 0

    for i in range(total):
        expected_new = round_half_up((i + 1) * len(new) / total)
        if new_idx < expected_new and new_idx < len(new):
            result.append(new[new_idx])
            new_idx += 1
        elif due_idx < len(due):
            result.append(due[due_idx])
            due_idx += 1
        else:
            result.append(new[new_idx])
            new_idx += 1

    return result


def _sort_due(cards: list[T], policy: str, rng: random.Random) -> list[T]:
    if policy == "random":
        rng.shuffle(cards)
        return cards

    if policy == "due_date_random":
        # Group by calendar day of due date, shuffle within each day
        by_day = sorted(cards, key=lambda c: _due(c).date())
        result: list[T] = []
        for _, group in itertools.groupby(by_day, key=lambda c: _due(c).date()):
            day_cards = list(group)
            rng.shuffle(day_cards)
            result.extend(day_cards)
        return result

    return sorted(cards, key=_due)


def _due(card: Any):
    return card.schedule.due
