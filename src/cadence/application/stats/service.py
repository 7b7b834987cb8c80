"""
Study Session Service — Application layer orchestrator.

Coordinates reading cards from the repository, running the scheduler,
and persisting the new state together with its review event.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

from cadence.application.categorizer import CategorizedCards, categorize, get_due_cards
from cadence.application.scheduler import ReviewScheduler
from cadence.domain.errors import CardNotFoundError
from cadence.domain.scheduling.models import (
    Card,
    ReviewEvent,
    ReviewQuality,
    SchedulingConfig,
    initialize_card_state,
    parse_quality,
)
from cadence.domain.stats.models import DailyReviewSummary, StudyStats
from cadence.domain.stats.ports import CardRepository

from .metrics_calculator import StudyStatsAggregator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewSubmission:
    """Result of submitting a review: the stored card and its event."""

    card: Card
    event: ReviewEvent
    graduated_from_learning: bool


class StudySessionService:
    """
    Application service for studying cards.

    Follows Dependency Inversion: depends on the CardRepository abstraction,
    not concrete adapter implementations. Each review is one
    read-compute-write unit guarded by the card's version.
    """

    def __init__(
        self,
        repository: CardRepository,
        config: SchedulingConfig | None = None,
        aggregator: StudyStatsAggregator | None = None,
    ):
        """
        Args:
            repository: The repository (port) for cards and reviews.
            config: Scheduling parameters; defaults if not provided.
            aggregator: Optional custom aggregator; uses default if not provided.
        """
        self._repo = repository
        self._scheduler = ReviewScheduler(config)
        self._stats = aggregator or StudyStatsAggregator(self._scheduler.config)

    @property
    def config(self) -> SchedulingConfig:
        return self._scheduler.config

    async def add_card(
        self, front: str, back: str, now: datetime, card_id: str | None = None
    ) -> Card:
        """Create a card with a fresh learning state, due immediately."""
        card = Card(
            card_id=card_id or uuid.uuid4().hex[:12],
            state=initialize_card_state(now, self.config),
            front=front,
            back=back,
        )
        stored = await self._repo.add_card(card)
        logger.info(f"Added card {stored.card_id}")
        return stored

    async def submit_review(
        self,
        card_id: str,
        quality: ReviewQuality | int,
        now: datetime,
        response_time: float | None = None,
        review_type: str = "scheduled",
        session_id: str | None = None,
    ) -> ReviewSubmission:
        """
        Apply a review to a card and persist the outcome.

        Raises:
            InvalidReviewError: Quality or card state is invalid.
            CardNotFoundError: No card with this ID.
            PersistenceConflictError: The card changed concurrently; retry.
        """
        quality = parse_quality(quality)

        card = await self._repo.get_card(card_id)
        if card is None:
            raise CardNotFoundError(card_id)

        outcome = self._scheduler.next_state(card.state, quality, now)
        was_correct = quality.is_correct

        total_reviews = card.total_reviews + 1
        streak = card.streak_count + 1 if was_correct else 0
        average_response_time = card.average_response_time
        if response_time is not None:
            average_response_time = (
                (card.average_response_time or 0.0) * (total_reviews - 1) + response_time
            ) / total_reviews

        updated = card.replace(
            state=outcome.state,
            total_reviews=total_reviews,
            correct_reviews=card.correct_reviews + (1 if was_correct else 0),
            streak_count=streak,
            max_streak=max(card.max_streak, streak),
            average_response_time=average_response_time,
        )
        event = ReviewEvent(
            card_id=card.card_id,
            quality=quality,
            was_correct=was_correct,
            created_at=now,
            response_time=response_time,
            ease_factor_before=card.state.ease_factor,
            interval_before=card.state.interval,
            ease_factor_after=outcome.state.ease_factor,
            interval_after=outcome.state.interval,
            review_type=review_type,
            session_id=session_id,
        )

        stored = await self._repo.save_review(updated, card.version, event)

        if outcome.graduated_from_learning:
            logger.info(f"Card {card_id} graduated from learning phase")
        elif outcome.lapsed:
            logger.info(f"Card {card_id} lapsed back into learning")

        return ReviewSubmission(
            card=stored,
            event=event,
            graduated_from_learning=outcome.graduated_from_learning,
        )

    async def due_overview(self, now: datetime) -> CategorizedCards:
        cards = await self._repo.list_cards()
        return categorize(cards, now)

    async def due_cards(self, now: datetime) -> list[Card]:
        cards = await self._repo.list_cards()
        return get_due_cards(cards, now)

    async def study_stats(self, now: datetime | None = None) -> StudyStats:
        cards = await self._repo.list_cards()
        reviews = await self._repo.list_reviews()
        return self._stats.compute_stats(cards, reviews, now)

    async def daily_breakdown(self, now: datetime, days: int = 30) -> list[DailyReviewSummary]:
        reviews = await self._repo.list_reviews()
        return self._stats.daily_breakdown(reviews, now, days)
