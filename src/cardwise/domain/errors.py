"""
Exception hierarchy for cardwise.

The engine is pure arithmetic over validated inputs, so the taxonomy is narrow:
bad responses and degenerate schedules are caller bugs, bad settings are
surfaced to the end user with every violated field listed.
"""

from dataclasses import dataclass


class CardwiseError(Exception):
    """Base class for all cardwise errors."""


class InvalidEaseError(CardwiseError, ValueError):
    """Raised when a grading response is not one of Again, Hard, Good, Easy."""


class InvalidScheduleError(CardwiseError, ValueError):
    """Raised when a stored schedule breaks the invariants the engine relies on."""


class DocumentError(CardwiseError):
    """Raised when an input document cannot be read or has the wrong shape."""


@dataclass(frozen=True)
class SettingsViolation:
    """A single invalid deck-settings field."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class DeckSettingsError(CardwiseError, ValueError):
    """
    Raised when raw deck settings fail validation.

    Attributes:
        violations: Every violated field, in declaration order.
    """

    def __init__(self, violations: list[SettingsViolation]):
        self.violations = list(violations)
        fields = ", ".join(v.field for v in self.violations)
        super().__init__(f"Invalid deck settings ({fields})")
