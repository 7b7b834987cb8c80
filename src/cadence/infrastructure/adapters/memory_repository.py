"""
In-Memory Card Repository — Infrastructure adapter backed by dictionaries.

Implements CardRepository for tests and the HTTP server's default store.
"""

import asyncio
import logging

from cadence.domain.errors import CardNotFoundError, PersistenceConflictError
from cadence.domain.scheduling.models import Card, ReviewEvent
from cadence.domain.stats.ports import CardRepository

logger = logging.getLogger(__name__)


class InMemoryCardRepository(CardRepository):
    """
    Keeps cards and reviews in process memory.

    The compare-and-swap in save_review runs under an asyncio lock.
    """

    def __init__(self, cards: list[Card] | None = None):
        self._cards: dict[str, Card] = {card.card_id: card for card in cards or []}
        self._reviews: list[ReviewEvent] = []
        self._lock = asyncio.Lock()

    async def get_card(self, card_id: str) -> Card | None:
        return self._cards.get(card_id)

    async def list_cards(self) -> list[Card]:
        return list(self._cards.values())

    async def add_card(self, card: Card) -> Card:
        async with self._lock:
            if card.card_id in self._cards:
                raise ValueError(f"Card already exists: {card.card_id}")
            self._cards[card.card_id] = card
        return card

    async def list_reviews(self, card_id: str | None = None) -> list[ReviewEvent]:
        if card_id is None:
            return list(self._reviews)
        return [r for r in self._reviews if r.card_id == card_id]

    async def save_review(
        self, card: Card, expected_version: int, event: ReviewEvent
    ) -> Card:
        async with self._lock:
            current = self._cards.get(card.card_id)
            if current is None:
                raise CardNotFoundError(card.card_id)
            if current.version != expected_version:
                logger.warning(f"Version conflict on card {card.card_id}")
                raise PersistenceConflictError(
                    card.card_id, expected_version, current.version
                )

            stored = card.replace(version=expected_version + 1)
            self._cards[card.card_id] = stored
            self._reviews.append(event)
            return stored
