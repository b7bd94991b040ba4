"""Centralized constants for keyrecall.

Scheduling defaults live here so the policy, config and tests all import
from a single source of truth.
"""

# ---------- Item defaults ----------
INITIAL_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3

# ---------- Ease adjustments ----------
AGAIN_EASE_PENALTY = 0.20
HARD_EASE_PENALTY = 0.15
EASY_EASE_BONUS = 0.15
EASE_PRECISION = 4  # decimal places kept after each adjustment

# ---------- Intervals (days) ----------
RELEARN_INTERVAL_DAYS = 1
HARD_INTERVAL_FACTOR = 1.2
EASY_INTERVAL_FACTOR = 1.3
FIRST_GOOD_INTERVAL_DAYS = 1
FIRST_EASY_INTERVAL_DAYS = 2

# ---------- Sessions ----------
DEFAULT_MAX_ITEMS = 10

# ---------- Statistics ----------
MASTERY_REPETITIONS = 5

# ---------- History ----------
DEFAULT_HISTORY_LIMIT = 100

# ---------- Persistence ----------
STATE_FORMAT_VERSION = 1
