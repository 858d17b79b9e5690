# Domain Package
from .errors import (
    CardwiseError,
    DeckSettingsError,
    DocumentError,
    InvalidEaseError,
    InvalidScheduleError,
    SettingsViolation,
)
from .scheduling import CardSchedule, CardState, Ease, LeechSignal, ReviewLogEntry, StudyCard
from .settings import DeckSettings

__all__ = [
    "CardwiseError",
    "DeckSettingsError",
    "DocumentError",
    "InvalidEaseError",
    "InvalidScheduleError",
    "SettingsViolation",
    "CardSchedule",
    "CardState",
    "Ease",
    "LeechSignal",
    "ReviewLogEntry",
    "StudyCard",
    "DeckSettings",
]
