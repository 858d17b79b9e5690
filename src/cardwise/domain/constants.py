"""Centralized constants for cardwise.

All magic numbers and scheduling defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Ease factor (SM-2) ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3

# ---------- Learning phase ----------
DEFAULT_LEARNING_STEPS = (1.0, 10.0)  # minutes
DEFAULT_RELEARNING_STEPS = (10.0,)  # minutes
MAX_STEP_MINUTES = 10080  # one week

# ---------- Review intervals (days) ----------
DEFAULT_GRADUATING_INTERVAL = 1
DEFAULT_EASY_INTERVAL = 4
DEFAULT_MAX_INTERVAL = 36500
MAX_INTERVAL_DAYS = 36500

# ---------- Interval multipliers ----------
DEFAULT_EASY_BONUS = 1.3
DEFAULT_HARD_INTERVAL_MODIFIER = 1.2
DEFAULT_INTERVAL_MODIFIER = 1.0

# ---------- Lapses ----------
DEFAULT_LAPSE_NEW_INTERVAL = 0.5
DEFAULT_LAPSE_MIN_INTERVAL = 1
DEFAULT_LEECH_THRESHOLD = 8
MAX_LEECH_THRESHOLD = 99

# ---------- Daily limits ----------
DEFAULT_NEW_CARDS_PER_DAY = 20
MIN_NEW_CARDS_PER_DAY = 1
MAX_NEW_CARDS_PER_DAY = 100
DEFAULT_MAX_REVIEWS_PER_DAY = 200
MAX_REVIEWS_PER_DAY_LIMIT = 9999

# ---------- Study day ----------
DEFAULT_DAY_RESET_HOUR = 4

# ---------- Preview buckets ----------
MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 60 * 24
DAYS_PER_MONTH = 30
DAYS_PER_YEAR = 365
