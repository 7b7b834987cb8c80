"""Centralized constants for the Cadence scheduling engine.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Learning phase ----------
DEFAULT_LEARNING_STEPS = (1, 10)  # minutes

# ---------- Graduation ----------
DEFAULT_GRADUATING_INTERVAL = 1  # days
DEFAULT_EASY_INTERVAL = 4  # days

# ---------- Review multipliers ----------
DEFAULT_AGAIN_MULTIPLIER = 0.0
DEFAULT_HARD_MULTIPLIER = 1.2
DEFAULT_EASY_MULTIPLIER = 1.3

# ---------- Ease factor ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MAX_EASE_FACTOR = 2.5
EASE_DELTA_AGAIN = -0.2
EASE_DELTA_HARD = -0.15
EASE_DELTA_GOOD = 0.0
EASE_DELTA_EASY = 0.15

# ---------- Review grading ----------
CORRECT_QUALITY_THRESHOLD = 3
MIN_QUALITY = 0
MAX_QUALITY = 5

# ---------- Categorization / stats ----------
UPCOMING_WINDOW_DAYS = 1
DAILY_BREAKDOWN_DAYS = 30
SECONDS_PER_MINUTE = 60

# ---------- Review types ----------
REVIEW_TYPES = ("scheduled", "extra_practice", "cramming")
