"""
Due-card categorizer.

Buckets cards by review urgency. Pure computation with no I/O.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from cadence.domain.constants import UPCOMING_WINDOW_DAYS
from cadence.domain.errors import InvalidReviewError
from cadence.domain.scheduling.models import Card


@dataclass
class CategorizedCards:
    """
    Partition of a card collection by urgency.

    Every input card lands in exactly one bucket, in input order.
    """

    due_now: list[Card] = field(default_factory=list)  # graduated, due
    learning: list[Card] = field(default_factory=list)  # learning, due
    upcoming: list[Card] = field(default_factory=list)  # due within a day
    future: list[Card] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.due_now) + len(self.learning) + len(self.upcoming) + len(self.future)

    def counts(self) -> dict[str, int]:
        return {
            "due_now": len(self.due_now),
            "learning": len(self.learning),
            "upcoming": len(self.upcoming),
            "future": len(self.future),
        }


def categorize(cards: Sequence[Card], now: datetime) -> CategorizedCards:
    """
    Split cards into due_now / learning / upcoming / future.

    - next_review_date <= now: learning if the card is learning, else due_now
    - now < next_review_date <= now + 1 day: upcoming
    - otherwise: future
    """
    _require_aware_now(now)
    result = CategorizedCards()
    horizon = now + timedelta(days=UPCOMING_WINDOW_DAYS)

    for card in cards:
        due_date = card.next_review_date
        if due_date <= now:
            if card.is_learning:
                result.learning.append(card)
            else:
                result.due_now.append(card)
        elif due_date <= horizon:
            result.upcoming.append(card)
        else:
            result.future.append(card)

    return result


def get_due_cards(cards: Sequence[Card], now: datetime) -> list[Card]:
    """Cards whose review time has arrived, regardless of phase."""
    _require_aware_now(now)
    return [card for card in cards if card.next_review_date <= now]


def _require_aware_now(now: datetime) -> None:
    # Card dates are always timezone-aware.
    if now.tzinfo is None:
        raise InvalidReviewError("now must be timezone-aware")
