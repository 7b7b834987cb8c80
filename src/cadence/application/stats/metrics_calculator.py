"""
Study statistics aggregator.

Derives dashboard metrics from cards and their review history.
This is a pure computation module with no I/O.
"""

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from cadence.domain.constants import DAILY_BREAKDOWN_DAYS, SECONDS_PER_MINUTE
from cadence.domain.errors import InvalidReviewError
from cadence.domain.scheduling.models import (
    DEFAULT_SCHEDULING_CONFIG,
    Card,
    ReviewEvent,
    SchedulingConfig,
    round_half_up,
)
from cadence.domain.stats.models import DailyReviewSummary, StudyStats


class StudyStatsAggregator:
    """
    Computes summary metrics from raw cards and review events.

    Stateless and side-effect free. Streaks are trusted from per-card
    bookkeeping rather than recomputed from history.
    """

    def __init__(self, config: SchedulingConfig | None = None):
        self.config = config or DEFAULT_SCHEDULING_CONFIG

    def compute_stats(
        self,
        cards: Sequence[Card],
        reviews: Sequence[ReviewEvent],
        now: datetime | None = None,
    ) -> StudyStats:
        """
        Reduce cards and reviews into a StudyStats snapshot.

        Args:
            cards: All cards in scope.
            reviews: Review events in scope.
            now: Reference time; defaults to the current UTC time.
        """
        now = now or datetime.now(timezone.utc)
        self._require_aware(now)

        total_reviews = len(reviews)
        correct_reviews = sum(1 for r in reviews if r.was_correct)
        today_reviews = [r for r in reviews if self._same_day(r.created_at, now)]

        return StudyStats(
            total_cards=len(cards),
            cards_due=sum(1 for card in cards if card.next_review_date <= now),
            cards_learning=sum(1 for card in cards if card.is_learning),
            cards_graduated=sum(1 for card in cards if not card.is_learning),
            total_reviews=total_reviews,
            accuracy=self._compute_accuracy(correct_reviews, total_reviews),
            average_ease_factor=self._compute_average_ease(cards),
            average_response_time=self._compute_average_response_time(cards),
            streak_current=max((card.streak_count for card in cards), default=0),
            streak_best=max((card.max_streak for card in cards), default=0),
            time_spent_today=self._minutes_spent(today_reviews),
            time_spent_total=self._minutes_spent(reviews),
        )

    def daily_breakdown(
        self,
        reviews: Sequence[ReviewEvent],
        now: datetime,
        days: int = DAILY_BREAKDOWN_DAYS,
    ) -> list[DailyReviewSummary]:
        """
        Per-day review totals for the last `days` days, oldest first.

        Days are calendar days in the timezone of `now`.
        """
        self._require_aware(now)
        today = now.date()
        buckets: dict = {today - timedelta(days=offset): [0, 0] for offset in range(days)}

        for review in reviews:
            day = review.created_at.astimezone(now.tzinfo).date()
            if day in buckets:
                buckets[day][0] += 1
                if review.was_correct:
                    buckets[day][1] += 1

        summaries = []
        for day in sorted(buckets):
            total, correct = buckets[day]
            summaries.append(
                DailyReviewSummary(
                    day=day,
                    total=total,
                    correct=correct,
                    accuracy=(correct / total) * 100 if total else 0.0,
                )
            )
        return summaries

    def _compute_accuracy(self, correct: int, total: int) -> int:
        if total == 0:
            return 0
        return round_half_up(correct / total * 100)

    def _compute_average_ease(self, cards: Sequence[Card]) -> float:
        if not cards:
            return self.config.default_ease_factor
        mean = sum(card.ease_factor for card in cards) / len(cards)
        return self._round_2dp(mean)

    def _compute_average_response_time(self, cards: Sequence[Card]) -> float:
        timed = [card.average_response_time for card in cards if card.average_response_time]
        if not timed:
            return 0.0
        return self._round_2dp(sum(timed) / len(timed))

    def _minutes_spent(self, reviews: Sequence[ReviewEvent]) -> int:
        seconds = sum(r.response_time or 0.0 for r in reviews)
        return round_half_up(seconds / SECONDS_PER_MINUTE)

    @staticmethod
    def _round_2dp(value: float) -> float:
        return round_half_up(value * 100) / 100

    @staticmethod
    def _require_aware(now: datetime) -> None:
        if now.tzinfo is None:
            raise InvalidReviewError("now must be timezone-aware")

    @staticmethod
    def _same_day(moment: datetime, now: datetime) -> bool:
        return moment.astimezone(now.tzinfo).date() == now.date()


def compute_stats(
    cards: Sequence[Card],
    reviews: Sequence[ReviewEvent],
    now: datetime | None = None,
    config: SchedulingConfig = DEFAULT_SCHEDULING_CONFIG,
) -> StudyStats:
    """Functional shortcut for StudyStatsAggregator(config).compute_stats()."""
    return StudyStatsAggregator(config).compute_stats(cards, reviews, now)
