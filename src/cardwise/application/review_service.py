"""
Review Service: application layer orchestrator.

Coordinates one grading event: resolve deck settings, run the schedule state
machine, evaluate the leech detector and draft the review-log entry the
caller appends. Nothing is persisted here.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from cardwise.application.leech import detect_leech
from cardwise.application.scheduler import (
    calculate_next_review,
    coerce_ease,
    create_initial_schedule,
    preview_intervals,
)
from cardwise.application.settings_resolver import RawSettings, resolve_deck_settings
from cardwise.domain.scheduling.models import CardSchedule, Ease, LeechSignal, ReviewLogEntry
from cardwise.domain.settings import DeckSettings

logger = logging.getLogger(__name__)

SUSPENDED_STATE = "suspended"


@dataclass(frozen=True)
class GradeResult:
    """Outcome of grading one card."""

    previous: CardSchedule
    schedule: CardSchedule
    leech: LeechSignal | None
    log_entry: ReviewLogEntry

    @property
    def is_leech(self) -> bool:
        return self.leech is not None

    @property
    def final_state(self) -> str:
        """State the caller should persist, accounting for a suspend action."""
        if self.leech is not None and self.leech.action == "suspend":
            return SUSPENDED_STATE
        return self.schedule.state.value


class ReviewService:
    """
    Application service for grading cards.

    Holds the engine-wide deck-settings defaults so that per-deck raw settings
    only need to carry what differs.
    """

    def __init__(self, defaults: DeckSettings | None = None):
        """
        Args:
            defaults: Values for fields a deck does not set; built-in defaults if not provided.
        """
        self._defaults = defaults

    def resolve(self, raw: RawSettings) -> DeckSettings:
        return resolve_deck_settings(raw, self._defaults)

    def grade(
        self,
        schedule: CardSchedule | None,
        ease: Ease | int,
        now: datetime | None = None,
        settings: RawSettings = None,
        learner_id: str | None = None,
        card_id: str | None = None,
    ) -> GradeResult:
        """
        Grade a card.

        Args:
            schedule: Current schedule, or None for a card never graded before.
            ease: Graded response.
            now: Clock reading; defaults to the current UTC time.
            settings: The deck's raw or resolved settings.
            learner_id: Recorded on the log entry.
            card_id: Recorded on the log entry.

        Returns:
            GradeResult with the new schedule, an optional leech signal and the
            log entry to append.
        """
        ease = coerce_ease(ease)
        if now is None:
            now = datetime.now(timezone.utc)
        resolved = self.resolve(settings)
        previous = schedule if schedule is not None else create_initial_schedule(now)

        updated = calculate_next_review(previous, ease, now, resolved)
        leech = detect_leech(previous, updated, resolved)
        if leech is not None:
            logger.info(
                "Card %s became a leech after %d lapses (action: %s)",
                card_id or "?",
                leech.lapses,
                leech.action,
            )

        log_entry = ReviewLogEntry(
            learner_id=learner_id,
            card_id=card_id,
            ease=ease,
            interval=updated.interval,
            last_interval=previous.interval,
            reviewed_at=now,
        )
        return GradeResult(previous=previous, schedule=updated, leech=leech, log_entry=log_entry)

    def preview(
        self,
        schedule: CardSchedule | None,
        now: datetime | None = None,
        settings: RawSettings = None,
    ) -> dict[Ease, str]:
        """Interval hints for all four responses, for a possibly-new card."""
        if now is None:
            now = datetime.now(timezone.utc)
        current = schedule if schedule is not None else create_initial_schedule(now)
        return preview_intervals(current, now, self.resolve(settings))


def grade_card(
    schedule: CardSchedule | None,
    ease: Ease | int,
    now: datetime | None = None,
    settings: RawSettings = None,
    learner_id: str | None = None,
    card_id: str | None = None,
) -> GradeResult:
    """Grade a card against the built-in defaults."""
    return ReviewService().grade(
        schedule, ease, now=now, settings=settings, learner_id=learner_id, card_id=card_id
    )
