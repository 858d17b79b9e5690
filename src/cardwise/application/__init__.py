# Application Package
from .leech import check_leech, detect_leech
from .queue_builder import QueueBuildResult, build_study_queue, plan_study_queue
from .review_service import GradeResult, ReviewService, grade_card
from .scheduler import (
    calculate_next_review,
    create_initial_schedule,
    format_interval,
    is_due,
    preview_intervals,
    study_day_start,
)
from .session_planner import count_new_cards_today, count_reviews_today, partition_candidates
from .settings_resolver import default_deck_settings, resolve_deck_settings, validate_deck_settings

__all__ = [
    "check_leech",
    "detect_leech",
    "QueueBuildResult",
    "build_study_queue",
    "plan_study_queue",
    "GradeResult",
    "ReviewService",
    "grade_card",
    "calculate_next_review",
    "create_initial_schedule",
    "format_interval",
    "is_due",
    "preview_intervals",
    "study_day_start",
    "count_new_cards_today",
    "count_reviews_today",
    "partition_candidates",
    "default_deck_settings",
    "resolve_deck_settings",
    "validate_deck_settings",
]
