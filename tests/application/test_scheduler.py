"""Tests for the review state machine."""

import itertools
from datetime import timedelta

import pytest

from cadence.application.scheduler import (
    ReviewScheduler,
    compute_next_state,
    round_half_up,
    validate_state,
)
from cadence.domain.errors import InvalidReviewError
from cadence.domain.scheduling.models import (
    ReviewQuality,
    SchedulingConfig,
    initialize_card_state,
)


class TestLearningPhase:
    def test_new_card_good_advances_one_step(self, now, config):
        state = initialize_card_state(now, config)

        outcome = compute_next_state(state, 3, config, now=now)

        assert outcome.state.learning_step == 1
        assert outcome.state.is_learning is True
        assert outcome.state.interval == 10
        assert outcome.state.next_review_date == now + timedelta(minutes=10)
        assert outcome.graduated_from_learning is False

    def test_second_easy_review_graduates_with_easy_interval(self, now, config):
        state = initialize_card_state(now, config)
        first = compute_next_state(state, 3, config, now=now).state

        outcome = compute_next_state(first, 4, config, now=now)

        assert outcome.graduated_from_learning is True
        assert outcome.state.is_learning is False
        assert outcome.state.interval == 4
        assert outcome.state.repetitions == 1
        assert outcome.state.learning_step == 0
        assert outcome.state.next_review_date == now + timedelta(days=4)

    def test_graduating_with_good_uses_graduating_interval(self, now, config, make_state):
        state = make_state(learning_step=1, interval=10)

        outcome = compute_next_state(state, ReviewQuality.GOOD, config, now=now)

        assert outcome.state.interval == 1
        assert outcome.state.next_review_date == now + timedelta(days=1)

    @pytest.mark.parametrize("quality", [0, 1])
    def test_failure_resets_to_first_step(self, now, config, make_state, quality):
        state = make_state(learning_step=1, interval=10, ease_factor=2.1)

        outcome = compute_next_state(state, quality, config, now=now)

        assert outcome.state.learning_step == 0
        assert outcome.state.repetitions == 0
        assert outcome.state.interval == 1
        assert outcome.state.is_learning is True
        assert outcome.state.next_review_date == now + timedelta(minutes=1)
        assert outcome.state.ease_factor == 2.1

    def test_learning_never_changes_ease(self, now, config, make_state):
        state = make_state(ease_factor=1.9)
        for quality in (2, 0, 5):
            state = compute_next_state(state, quality, config, now=now).state
            if not state.is_learning:
                break
            assert state.ease_factor == 1.9

    def test_monotonic_advance_until_graduation(self, now):
        config = SchedulingConfig(learning_steps=(1, 5, 10, 30))
        state = initialize_card_state(now, config)

        for expected_step in range(1, len(config.learning_steps)):
            state = compute_next_state(state, 2, config, now=now).state
            assert state.is_learning
            assert state.learning_step == expected_step

        state = compute_next_state(state, 2, config, now=now).state
        assert not state.is_learning

    def test_records_last_review_date(self, now, config):
        state = initialize_card_state(now, config)
        later = now + timedelta(hours=1)

        outcome = compute_next_state(state, 3, config, now=later)

        assert outcome.state.last_review_date == later


class TestReviewPhase:
    def test_good_multiplies_by_ease(self, now, config, make_state):
        state = make_state(is_learning=False, ease_factor=2.5, interval=4, repetitions=1)

        outcome = compute_next_state(state, 3, config, now=now)

        assert outcome.state.ease_factor == 2.5
        assert outcome.state.interval == 10
        assert outcome.state.repetitions == 2
        assert outcome.state.next_review_date == now + timedelta(days=10)

    def test_again_lapses_into_learning_step_one(self, now, config, make_state):
        # Lapsed cards re-enter at step 1, not 0. Pinned for compatibility.
        state = make_state(is_learning=False, ease_factor=2.5, interval=4, repetitions=2)

        outcome = compute_next_state(state, 0, config, now=now)

        assert outcome.lapsed is True
        assert outcome.state.is_learning is True
        assert outcome.state.learning_step == 1
        assert outcome.state.repetitions == 0
        assert outcome.state.interval == 1
        assert outcome.state.next_review_date == now + timedelta(minutes=1)
        assert outcome.state.ease_factor == pytest.approx(2.3)

    def test_lapse_with_single_learning_step_stays_in_range(self, now, make_state):
        config = SchedulingConfig(learning_steps=(5,))
        state = make_state(is_learning=False, interval=3, repetitions=1)

        outcome = compute_next_state(state, 1, config, now=now)

        assert outcome.state.learning_step == 0
        validate_state(outcome.state, config)

    def test_hard_uses_hard_multiplier_and_lowers_ease(self, now, config, make_state):
        state = make_state(is_learning=False, ease_factor=2.5, interval=10, repetitions=3)

        outcome = compute_next_state(state, 2, config, now=now)

        assert outcome.state.interval == 12
        assert outcome.state.ease_factor == pytest.approx(2.35)
        assert outcome.state.repetitions == 4

    def test_hard_interval_floor_is_one_day(self, now, make_state):
        config = SchedulingConfig(hard_multiplier=0.1)
        state = make_state(is_learning=False, interval=1, repetitions=1)

        outcome = compute_next_state(state, 2, config, now=now)

        assert outcome.state.interval == 1

    @pytest.mark.parametrize("quality", [4, 5])
    def test_easy_applies_easy_multiplier(self, now, config, make_state, quality):
        state = make_state(is_learning=False, ease_factor=2.0, interval=4, repetitions=1)

        outcome = compute_next_state(state, quality, config, now=now)

        # ease 2.0 + 0.15 = 2.15; 4 * 2.15 * 1.3 = 11.18
        assert outcome.state.ease_factor == pytest.approx(2.15)
        assert outcome.state.interval == 11

    def test_easy_ease_is_capped_at_max(self, now, config, make_state):
        state = make_state(is_learning=False, ease_factor=2.5, interval=4, repetitions=1)

        outcome = compute_next_state(state, 5, config, now=now)

        assert outcome.state.ease_factor == 2.5
        assert outcome.state.interval == 13  # round(4 * 2.5 * 1.3)

    def test_repeated_again_floors_ease(self, now, config, make_state):
        state = make_state(is_learning=False, ease_factor=1.4, interval=5, repetitions=1)

        outcome = compute_next_state(state, 0, config, now=now)

        assert outcome.state.ease_factor == 1.3

    def test_rounding_is_half_up(self, now, make_state):
        config = SchedulingConfig(hard_multiplier=1.25)
        state = make_state(is_learning=False, interval=2, repetitions=1)

        # 2 * 1.25 = 2.5 rounds to 3, where round() would give 2
        outcome = compute_next_state(state, 2, config, now=now)

        assert outcome.state.interval == 3


class TestInvariants:
    def test_ease_bounds_and_interval_hold_for_all_sequences(self, now, config):
        for sequence in itertools.product(range(6), repeat=5):
            state = initialize_card_state(now, config)
            at = now
            for quality in sequence:
                state = compute_next_state(state, quality, config, now=at).state
                at = state.next_review_date
                assert config.min_ease_factor <= state.ease_factor <= config.max_ease_factor
                if not state.is_learning:
                    assert state.interval >= 1
                else:
                    assert 0 <= state.learning_step < len(config.learning_steps)

    def test_lapse_always_resets_repetitions(self, now, config, make_state):
        for interval, ease in [(1, 1.3), (30, 2.0), (365, 2.5)]:
            state = make_state(
                is_learning=False, interval=interval, ease_factor=ease, repetitions=9
            )
            for quality in (0, 1):
                result = compute_next_state(state, quality, config, now=now).state
                assert result.is_learning is True
                assert result.repetitions == 0


class TestValidation:
    @pytest.mark.parametrize("quality", [-1, 6, 2.5, "three", None, True])
    def test_rejects_invalid_quality(self, now, config, quality):
        state = initialize_card_state(now, config)
        with pytest.raises(InvalidReviewError):
            compute_next_state(state, quality, config, now=now)

    def test_rejects_learning_step_out_of_range(self, now, config, make_state):
        state = make_state(learning_step=2)
        with pytest.raises(InvalidReviewError, match="learning_step"):
            compute_next_state(state, 3, config, now=now)

    def test_rejects_ease_outside_bounds(self, now, config, make_state):
        state = make_state(is_learning=False, ease_factor=3.0, interval=4)
        with pytest.raises(InvalidReviewError, match="ease_factor"):
            compute_next_state(state, 3, config, now=now)

    def test_rejects_naive_now(self, now, config):
        state = initialize_card_state(now, config)
        with pytest.raises(InvalidReviewError):
            compute_next_state(state, 3, config, now=now.replace(tzinfo=None))


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(10.49) == 10


def test_review_scheduler_uses_its_config(now, make_state):
    scheduler = ReviewScheduler(SchedulingConfig(easy_interval=7))
    state = make_state(learning_step=1, interval=10)

    outcome = scheduler.next_state(state, 5, now)

    assert outcome.state.interval == 7
