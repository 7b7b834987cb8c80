"""
Review scheduler: the per-card review state machine.

Given a card's current scheduling state and a quality rating, computes the
next state. Pure computation; time is passed in, never read from a clock.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from cadence.domain.errors import InvalidReviewError
from cadence.domain.scheduling.models import (
    DEFAULT_SCHEDULING_CONFIG,
    CardSchedulingState,
    ReviewQuality,
    SchedulingConfig,
    parse_quality,
    round_half_up,
)

logger = logging.getLogger(__name__)

# A lapsed card re-enters learning at this step, skipping the first one.
LAPSE_LEARNING_STEP = 1


@dataclass(frozen=True)
class ReviewOutcome:
    """Result of a single transition."""

    state: CardSchedulingState
    graduated_from_learning: bool = False
    lapsed: bool = False


def validate_state(state: CardSchedulingState, config: SchedulingConfig) -> None:
    """
    Check the config-dependent invariants of a state.

    Raises:
        InvalidReviewError: If the state cannot have been produced under `config`.
    """
    if not config.min_ease_factor <= state.ease_factor <= config.max_ease_factor:
        raise InvalidReviewError(
            f"ease_factor {state.ease_factor} outside "
            f"[{config.min_ease_factor}, {config.max_ease_factor}]"
        )
    if state.is_learning and state.learning_step >= len(config.learning_steps):
        raise InvalidReviewError(
            f"learning_step {state.learning_step} out of range for "
            f"{len(config.learning_steps)} learning steps"
        )


def compute_next_state(
    current_state: CardSchedulingState,
    quality: ReviewQuality | int,
    config: SchedulingConfig = DEFAULT_SCHEDULING_CONFIG,
    *,
    now: datetime,
) -> ReviewOutcome:
    """
    Compute the post-review scheduling state.

    Args:
        current_state: Freshly read state of the card.
        quality: Rating 0-5.
        config: Scheduling parameters.
        now: Time of the review (timezone-aware).

    Raises:
        InvalidReviewError: Quality outside 0-5 or malformed state.
    """
    quality = parse_quality(quality)
    validate_state(current_state, config)
    if now.tzinfo is None:
        raise InvalidReviewError("now must be timezone-aware")

    if current_state.is_learning:
        return _learning_transition(current_state, quality, config, now)
    return _review_transition(current_state, quality, config, now)


def _learning_transition(
    state: CardSchedulingState,
    quality: ReviewQuality,
    config: SchedulingConfig,
    now: datetime,
) -> ReviewOutcome:
    steps = config.learning_steps

    # Learning never touches the ease factor.
    if quality.is_failure:
        return ReviewOutcome(
            state=CardSchedulingState(
                ease_factor=state.ease_factor,
                interval=steps[0],
                repetitions=0,
                is_learning=True,
                learning_step=0,
                next_review_date=now + timedelta(minutes=steps[0]),
                last_review_date=now,
            )
        )

    next_step = state.learning_step + 1

    if next_step < len(steps):
        return ReviewOutcome(
            state=CardSchedulingState(
                ease_factor=state.ease_factor,
                interval=steps[next_step],
                repetitions=state.repetitions,
                is_learning=True,
                learning_step=next_step,
                next_review_date=now + timedelta(minutes=steps[next_step]),
                last_review_date=now,
            )
        )

    interval = (
        config.easy_interval if quality >= ReviewQuality.EASY else config.graduating_interval
    )
    logger.debug(f"Card graduated with interval {interval}d (quality={int(quality)})")
    return ReviewOutcome(
        state=CardSchedulingState(
            ease_factor=state.ease_factor,
            interval=interval,
            repetitions=1,
            is_learning=False,
            learning_step=0,
            next_review_date=now + timedelta(days=interval),
            last_review_date=now,
        ),
        graduated_from_learning=True,
    )


def _review_transition(
    state: CardSchedulingState,
    quality: ReviewQuality,
    config: SchedulingConfig,
    now: datetime,
) -> ReviewOutcome:
    ease = config.clamp_ease(
        state.ease_factor + config.ease_factor_change.for_quality(quality)
    )

    if quality.is_failure:
        interval = config.learning_steps[0]
        # Keep the step inside the configured range for single-step configs.
        step = min(LAPSE_LEARNING_STEP, len(config.learning_steps) - 1)
        logger.debug(f"Card lapsed: ease {state.ease_factor} -> {ease}")
        return ReviewOutcome(
            state=CardSchedulingState(
                ease_factor=ease,
                interval=interval,
                repetitions=0,
                is_learning=True,
                learning_step=step,
                next_review_date=now + timedelta(minutes=interval),
                last_review_date=now,
            ),
            lapsed=True,
        )

    if quality == ReviewQuality.HARD:
        raw = state.interval * config.hard_multiplier
    elif quality == ReviewQuality.GOOD:
        raw = state.interval * ease
    else:
        raw = state.interval * ease * config.easy_multiplier

    interval = max(1, round_half_up(raw))
    return ReviewOutcome(
        state=CardSchedulingState(
            ease_factor=ease,
            interval=interval,
            repetitions=state.repetitions + 1,
            is_learning=False,
            learning_step=0,
            next_review_date=now + timedelta(days=interval),
            last_review_date=now,
        )
    )


class ReviewScheduler:
    """
    Applies the state machine under a fixed configuration.

    Stateless apart from the immutable config.
    """

    def __init__(self, config: SchedulingConfig | None = None):
        self.config = config or DEFAULT_SCHEDULING_CONFIG

    def next_state(
        self, current_state: CardSchedulingState, quality: ReviewQuality | int, now: datetime
    ) -> ReviewOutcome:
        return compute_next_state(current_state, quality, self.config, now=now)
