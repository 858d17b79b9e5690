"""
Domain models for card scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

from cardwise.domain.constants import DEFAULT_EASE_FACTOR


class Ease(IntEnum):
    """Learner's self-graded recall quality."""

    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


class CardState(str, Enum):
    """Scheduling phase of a card."""

    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"


@dataclass(frozen=True)
class CardSchedule:
    """
    Scheduling state of one card for one learner.

    Attributes:
        due: Instant at/after which the card is eligible for review.
        interval: Last computed review interval in days (0 until graduation).
        ease_factor: SM-2 multiplicative difficulty factor, floored at 1.3.
        repetitions: Successful graduations into/through the review state.
        state: Current scheduling phase.
        learning_step: Index into the active step table (learning/relearning only).
        lapses: Times the card regressed from review via Again.
    """

    due: datetime
    interval: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    repetitions: int = 0
    state: CardState = CardState.NEW
    learning_step: int = 0
    lapses: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "due": self.due.isoformat(),
            "interval": self.interval,
            "ease_factor": self.ease_factor,
            "repetitions": self.repetitions,
            "state": self.state.value,
            "learning_step": self.learning_step,
            "lapses": self.lapses,
        }


@dataclass(frozen=True)
class ReviewLogEntry:
    """
    A single grading event, appended by the caller after every review.

    Attributes:
        learner_id: The learner who graded the card.
        card_id: The graded card.
        ease: Response chosen.
        interval: Interval after this review (days).
        last_interval: Interval before this review (0 for a first review).
        reviewed_at: When the grading happened.
    """

    learner_id: str | None
    card_id: str | None
    ease: Ease
    interval: int
    last_interval: int
    reviewed_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "learner_id": self.learner_id,
            "card_id": self.card_id,
            "ease": int(self.ease),
            "interval": self.interval,
            "last_interval": self.last_interval,
            "reviewed_at": self.reviewed_at.isoformat(),
        }


@dataclass(frozen=True)
class LeechSignal:
    """Raised-flag result of the leech detector; the caller applies the action."""

    lapses: int
    threshold: int
    action: str


@dataclass
class StudyCard:
    """
    A candidate card for a study session.

    A card without a schedule has never been studied.
    """

    card_id: str
    schedule: CardSchedule | None = None
    created_at: datetime | None = None
    suspended: bool = False
