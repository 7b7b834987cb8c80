"""
Domain models for study statistics.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class StudyStats:
    """
    Summary metrics derived from cards and their review history.

    Attributes:
        accuracy: Percentage of correct reviews, rounded (0 with no reviews).
        average_ease_factor: Mean ease factor rounded to 2 decimal places.
        average_response_time: Mean of the per-card average response times
            (seconds, cards never timed excluded), 2 decimal places.
        streak_current / streak_best: Maxima of the per-card streak fields.
        time_spent_today / time_spent_total: Minutes, rounded.
    """

    total_cards: int
    cards_due: int
    cards_learning: int
    cards_graduated: int
    total_reviews: int
    accuracy: int
    average_ease_factor: float
    average_response_time: float
    streak_current: int
    streak_best: int
    time_spent_today: int
    time_spent_total: int


@dataclass(frozen=True)
class DailyReviewSummary:
    """Review counts for one calendar day."""

    day: date
    total: int
    correct: int
    accuracy: float  # 0-100, 0 when no reviews that day
