"""
Resolved deck settings.

A DeckSettings instance is complete and immutable: every scheduling and
queue-building call reads its policy knobs from one of these.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from cardwise.domain.constants import (
    DEFAULT_EASY_BONUS,
    DEFAULT_EASY_INTERVAL,
    DEFAULT_GRADUATING_INTERVAL,
    DEFAULT_HARD_INTERVAL_MODIFIER,
    DEFAULT_INTERVAL_MODIFIER,
    DEFAULT_LAPSE_MIN_INTERVAL,
    DEFAULT_LAPSE_NEW_INTERVAL,
    DEFAULT_LEARNING_STEPS,
    DEFAULT_LEECH_THRESHOLD,
    DEFAULT_MAX_INTERVAL,
    DEFAULT_MAX_REVIEWS_PER_DAY,
    DEFAULT_NEW_CARDS_PER_DAY,
    DEFAULT_RELEARNING_STEPS,
    MAX_INTERVAL_DAYS,
    MAX_LEECH_THRESHOLD,
    MAX_NEW_CARDS_PER_DAY,
    MAX_REVIEWS_PER_DAY_LIMIT,
    MAX_STEP_MINUTES,
    MIN_NEW_CARDS_PER_DAY,
)

ReviewSort = Literal["due_date", "random", "due_date_random"]
NewCardOrder = Literal["sequential", "random"]
NewReviewMix = Literal["review_first", "new_first", "mix"]
LeechAction = Literal["suspend", "tag"]

StepMinutes = Annotated[float, Field(gt=0, le=MAX_STEP_MINUTES, strict=True)]


class DeckSettings(BaseModel):
    """
    Fully-populated per-deck scheduling policy.

    Numeric fields are strict: strings and booleans are rejected rather than
    coerced, and integer fields do not accept floats.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Daily limits
    new_cards_per_day: int = Field(
        default=DEFAULT_NEW_CARDS_PER_DAY,
        ge=MIN_NEW_CARDS_PER_DAY,
        le=MAX_NEW_CARDS_PER_DAY,
        strict=True,
    )
    max_reviews_per_day: int = Field(  # 0 = unlimited
        default=DEFAULT_MAX_REVIEWS_PER_DAY, ge=0, le=MAX_REVIEWS_PER_DAY_LIMIT, strict=True
    )

    # Ordering
    review_sort: ReviewSort = "due_date"
    new_card_order: NewCardOrder = "sequential"
    new_review_mix: NewReviewMix = "review_first"

    # Learning / relearning
    learning_steps: tuple[StepMinutes, ...] = Field(default=DEFAULT_LEARNING_STEPS, min_length=1)
    relearning_steps: tuple[StepMinutes, ...] = Field(
        default=DEFAULT_RELEARNING_STEPS, min_length=1
    )
    graduating_interval: int = Field(
        default=DEFAULT_GRADUATING_INTERVAL, ge=1, le=MAX_INTERVAL_DAYS, strict=True
    )
    easy_interval: int = Field(
        default=DEFAULT_EASY_INTERVAL, ge=1, le=MAX_INTERVAL_DAYS, strict=True
    )

    # Review multipliers
    easy_bonus: float = Field(default=DEFAULT_EASY_BONUS, ge=1.0, le=5.0, strict=True)
    hard_interval_modifier: float = Field(
        default=DEFAULT_HARD_INTERVAL_MODIFIER, ge=0.5, le=3.0, strict=True
    )
    interval_modifier: float = Field(
        default=DEFAULT_INTERVAL_MODIFIER, ge=0.1, le=5.0, strict=True
    )
    max_interval: int = Field(
        default=DEFAULT_MAX_INTERVAL, ge=1, le=MAX_INTERVAL_DAYS, strict=True
    )

    # Lapses
    lapse_new_interval: float = Field(
        default=DEFAULT_LAPSE_NEW_INTERVAL, ge=0.0, le=1.0, strict=True
    )
    lapse_min_interval: int = Field(
        default=DEFAULT_LAPSE_MIN_INTERVAL, ge=1, le=MAX_INTERVAL_DAYS, strict=True
    )
    leech_threshold: int = Field(  # 0 disables leech detection
        default=DEFAULT_LEECH_THRESHOLD, ge=0, le=MAX_LEECH_THRESHOLD, strict=True
    )
    leech_action: LeechAction = "tag"
