"""
Domain models for review scheduling.

These are pure data structures with no I/O or external dependencies.
Invariants that do not depend on a SchedulingConfig are enforced at
construction; config-dependent ones are checked by the scheduler.
"""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import IntEnum

from cadence.domain import constants as c
from cadence.domain.errors import ConfigurationError, InvalidReviewError


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


class ReviewQuality(IntEnum):
    """
    Recall rating supplied after seeing the answer.

    0-1 mean failed, 2-3 recalled with difficulty/success, 4-5 recalled easily.
    """

    AGAIN = 0
    FORGOT = 1
    HARD = 2
    GOOD = 3
    EASY = 4
    PERFECT = 5

    @property
    def is_failure(self) -> bool:
        return self <= ReviewQuality.FORGOT

    @property
    def is_correct(self) -> bool:
        return self >= c.CORRECT_QUALITY_THRESHOLD


def parse_quality(value: object) -> ReviewQuality:
    """
    Convert raw user input into a ReviewQuality.

    Accepts ints (and integral floats or numeric strings). Anything outside
    0..5 is rejected rather than clamped.
    """
    if isinstance(value, ReviewQuality):
        return value
    if isinstance(value, bool):
        raise InvalidReviewError(f"Quality must be an integer 0-5, got {value!r}")

    number: int
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        number = int(value.strip())
    else:
        raise InvalidReviewError(f"Quality must be an integer 0-5, got {value!r}")

    if not c.MIN_QUALITY <= number <= c.MAX_QUALITY:
        raise InvalidReviewError(f"Quality must be between 0 and 5, got {number}")
    return ReviewQuality(number)


@dataclass(frozen=True)
class EaseFactorChange:
    """Per-bucket delta applied to the ease factor of a graduated card."""

    again: float = c.EASE_DELTA_AGAIN
    hard: float = c.EASE_DELTA_HARD
    good: float = c.EASE_DELTA_GOOD
    easy: float = c.EASE_DELTA_EASY

    def for_quality(self, quality: ReviewQuality) -> float:
        if quality <= ReviewQuality.FORGOT:
            return self.again
        if quality == ReviewQuality.HARD:
            return self.hard
        if quality == ReviewQuality.GOOD:
            return self.good
        return self.easy


@dataclass(frozen=True)
class SchedulingConfig:
    """
    Immutable scheduling parameters.

    Attributes:
        learning_steps: Learning sub-step durations in minutes.
        graduating_interval: Days assigned on graduation with a normal rating.
        easy_interval: Days assigned on graduation with an easy rating.
        again_multiplier: Kept for storage compatibility; lapses restart learning.
        hard_multiplier: Interval multiplier for "hard" reviews.
        easy_multiplier: Extra interval multiplier for "easy" reviews.
        min_ease_factor / max_ease_factor: Inclusive ease factor bounds.
        ease_factor_change: Ease deltas per quality bucket.
        default_ease_factor: Ease factor of a freshly created card.
    """

    learning_steps: tuple[int, ...] = c.DEFAULT_LEARNING_STEPS
    graduating_interval: int = c.DEFAULT_GRADUATING_INTERVAL
    easy_interval: int = c.DEFAULT_EASY_INTERVAL
    again_multiplier: float = c.DEFAULT_AGAIN_MULTIPLIER
    hard_multiplier: float = c.DEFAULT_HARD_MULTIPLIER
    easy_multiplier: float = c.DEFAULT_EASY_MULTIPLIER
    min_ease_factor: float = c.MIN_EASE_FACTOR
    max_ease_factor: float = c.MAX_EASE_FACTOR
    ease_factor_change: EaseFactorChange = field(default_factory=EaseFactorChange)
    default_ease_factor: float = c.DEFAULT_EASE_FACTOR

    def __post_init__(self) -> None:
        # Accept any sequence but store a tuple so the config stays hashable.
        object.__setattr__(self, "learning_steps", tuple(self.learning_steps))

        if not self.learning_steps:
            raise ConfigurationError("learning_steps must contain at least one step")
        if any(int(step) != step or step <= 0 for step in self.learning_steps):
            raise ConfigurationError(
                f"learning_steps must be positive whole minutes, got {self.learning_steps}"
            )
        if self.graduating_interval < 1 or self.easy_interval < 1:
            raise ConfigurationError("graduation intervals must be at least 1 day")
        for name in ("again_multiplier", "hard_multiplier", "easy_multiplier"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be non-negative")
        if self.min_ease_factor > self.max_ease_factor:
            raise ConfigurationError(
                f"min_ease_factor ({self.min_ease_factor}) exceeds "
                f"max_ease_factor ({self.max_ease_factor})"
            )
        if not self.min_ease_factor <= self.default_ease_factor <= self.max_ease_factor:
            raise ConfigurationError(
                "default_ease_factor must lie within the ease factor bounds"
            )

    def clamp_ease(self, value: float) -> float:
        return max(self.min_ease_factor, min(self.max_ease_factor, value))


DEFAULT_SCHEDULING_CONFIG = SchedulingConfig()


def _require_aware(name: str, value: datetime | None) -> None:
    if value is None:
        return
    if not isinstance(value, datetime):
        raise InvalidReviewError(f"{name} must be a datetime, got {type(value).__name__}")
    if value.tzinfo is None:
        raise InvalidReviewError(f"{name} must be timezone-aware")


@dataclass(frozen=True)
class CardSchedulingState:
    """
    Scheduling state of one flashcard.

    Replaced wholesale after every review, never partially mutated.
    While learning, `interval` is the current learning-step duration in
    minutes; once graduated it is a number of days.
    """

    ease_factor: float
    interval: int
    repetitions: int
    is_learning: bool
    learning_step: int
    next_review_date: datetime
    last_review_date: datetime | None = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.ease_factor) or self.ease_factor <= 0:
            raise InvalidReviewError(f"ease_factor must be positive, got {self.ease_factor}")
        if self.interval < 1:
            raise InvalidReviewError(f"interval must be at least 1, got {self.interval}")
        if self.repetitions < 0:
            raise InvalidReviewError(f"repetitions must be non-negative, got {self.repetitions}")
        if self.learning_step < 0:
            raise InvalidReviewError(
                f"learning_step must be non-negative, got {self.learning_step}"
            )
        _require_aware("next_review_date", self.next_review_date)
        _require_aware("last_review_date", self.last_review_date)

    def is_due(self, now: datetime) -> bool:
        return self.next_review_date <= now


def initialize_card_state(
    now: datetime, config: SchedulingConfig = DEFAULT_SCHEDULING_CONFIG
) -> CardSchedulingState:
    """Fresh state for a newly created card: learning, step 0, due immediately."""
    return CardSchedulingState(
        ease_factor=config.default_ease_factor,
        interval=1,
        repetitions=0,
        is_learning=True,
        learning_step=0,
        next_review_date=now,
    )


@dataclass(frozen=True)
class Card:
    """
    A flashcard as seen by the engine.

    The scheduling state plus per-card performance bookkeeping maintained by
    the study session service. `version` increments on every persisted
    review and guards against lost updates.
    """

    card_id: str
    state: CardSchedulingState
    front: str = ""
    back: str = ""
    total_reviews: int = 0
    correct_reviews: int = 0
    streak_count: int = 0
    max_streak: int = 0
    average_response_time: float | None = None
    version: int = 0

    @property
    def next_review_date(self) -> datetime:
        return self.state.next_review_date

    @property
    def is_learning(self) -> bool:
        return self.state.is_learning

    @property
    def ease_factor(self) -> float:
        return self.state.ease_factor

    @property
    def accuracy(self) -> int | None:
        """Percentage of this card's reviews answered correctly, None before the first."""
        if self.total_reviews == 0:
            return None
        return round_half_up(self.correct_reviews / self.total_reviews * 100)

    def replace(self, **changes) -> "Card":
        return replace(self, **changes)


@dataclass(frozen=True)
class ReviewEvent:
    """
    One submitted review. Append-only; kept for analytics, never replayed.

    Attributes:
        card_id: The card that was reviewed.
        quality: Rating given (0-5).
        was_correct: quality >= 3.
        created_at: When the review happened (timezone-aware).
        response_time: Seconds taken to answer, if measured.
        ease_factor_before / interval_before: State before the transition.
        ease_factor_after / interval_after: State after the transition.
        review_type: scheduled, extra_practice or cramming.
        session_id: Optional study session grouping.
    """

    card_id: str
    quality: ReviewQuality
    was_correct: bool
    created_at: datetime
    response_time: float | None
    ease_factor_before: float
    interval_before: int
    ease_factor_after: float
    interval_after: int
    review_type: str = "scheduled"
    session_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "quality", parse_quality(self.quality))
        _require_aware("created_at", self.created_at)
        if self.response_time is not None and self.response_time < 0:
            raise InvalidReviewError("response_time must be non-negative")
        if self.review_type not in c.REVIEW_TYPES:
            raise InvalidReviewError(
                f"review_type must be one of {', '.join(c.REVIEW_TYPES)}, "
                f"got {self.review_type!r}"
            )
