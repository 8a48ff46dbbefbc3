"""Centralized constants for the mnemo scheduler.

All magic numbers and defaults live here so every layer
imports from a single source of truth.
"""

# ---------- SM-2 ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
LAPSE_INTERVAL_DAYS = 1
GRADUATING_REPETITIONS = 2
MAX_INTERVAL_DAYS = 36500  # 100 years

# ---------- Due Queue ----------
# Lower value surfaces first.
STATE_PRIORITY = {"new": 0, "learning": 1, "relearning": 2, "review": 3}
DEFAULT_DUE_LIMIT = 20

# ---------- Retention ----------
HOURS_PER_DAY = 24
MIN_STABILITY_HOURS = 1.0
CURVE_SEGMENTS = 50  # 51 sample points
DEFAULT_CURVE_DAYS = 30

# ---------- Stats ----------
RECENT_REVIEW_WINDOW = 20
DEFAULT_UPCOMING_DAYS = 7
DEFAULT_HEATMAP_DAYS = 12 * 7
DEFAULT_SUCCESS_RATE_DAYS = 30

# ---------- Export ----------
EXPORT_FORMAT_VERSION = 1
