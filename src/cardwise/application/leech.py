"""
Leech detection.

A leech is a card that keeps lapsing out of review. The detector only
signals; suspending the card or tagging its note is left to the caller.
"""

import logging

from cardwise.application.settings_resolver import RawSettings, resolve_deck_settings
from cardwise.domain.scheduling.models import CardSchedule, CardState, LeechSignal

logger = logging.getLogger(__name__)


def check_leech(schedule: CardSchedule, settings: RawSettings = None) -> bool:
    """
    Return True if the card's lapse count makes it a leech right now.

    Fires on the lapse that reaches the threshold, then again every
    threshold // 2 lapses (at least every lapse). A threshold of 0 disables
    detection.
    """
    threshold = resolve_deck_settings(settings).leech_threshold
    if threshold <= 0 or schedule.lapses < threshold:
        return False

    return (schedule.lapses - threshold) % max(1, threshold // 2) == 0


def detect_leech(
    previous: CardSchedule,
    updated: CardSchedule,
    settings: RawSettings = None,
) -> LeechSignal | None:
    """
    Evaluate one grading event for leech status.

    Only a lapse (Again on a review card) is considered; any other
    transition returns None.
    """
    if previous.state != CardState.REVIEW or updated.lapses <= previous.lapses:
        return None

    resolved = resolve_deck_settings(settings)
    if not check_leech(updated, resolved):
        return None

    logger.debug("Leech at %d lapses (threshold %d)", updated.lapses, resolved.leech_threshold)
    return LeechSignal(
        lapses=updated.lapses,
        threshold=resolved.leech_threshold,
        action=resolved.leech_action,
    )
