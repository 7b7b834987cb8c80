from datetime import datetime, timedelta, timezone

import pytest

from cadence.domain.scheduling.models import (
    DEFAULT_SCHEDULING_CONFIG,
    Card,
    CardSchedulingState,
)

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def config():
    return DEFAULT_SCHEDULING_CONFIG


@pytest.fixture
def make_state():
    """Factory for CardSchedulingState with sensible defaults."""

    def _make(
        *,
        ease_factor: float = 2.5,
        interval: int = 1,
        repetitions: int = 0,
        is_learning: bool = True,
        learning_step: int = 0,
        next_review_date: datetime = NOW,
    ) -> CardSchedulingState:
        return CardSchedulingState(
            ease_factor=ease_factor,
            interval=interval,
            repetitions=repetitions,
            is_learning=is_learning,
            learning_step=learning_step,
            next_review_date=next_review_date,
        )

    return _make


@pytest.fixture
def make_card(make_state):
    """Factory for a Card due `due_in` from NOW."""

    def _make(
        card_id: str,
        due_in: timedelta = timedelta(0),
        *,
        is_learning: bool = True,
        ease_factor: float = 2.5,
        **kwargs,
    ) -> Card:
        state = make_state(
            is_learning=is_learning,
            ease_factor=ease_factor,
            interval=1 if is_learning else 4,
            repetitions=0 if is_learning else 1,
            next_review_date=NOW + due_in,
        )
        return Card(card_id=card_id, state=state, **kwargs)

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/logs
    monkeypatch.setenv("HOME", str(home))
    return home
