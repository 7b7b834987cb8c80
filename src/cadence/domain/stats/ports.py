"""
Ports (interfaces) for card persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from cadence.domain.scheduling.models import Card, ReviewEvent


class CardRepository(ABC):
    """
    Port for storing cards and their review history.

    Implementations:
        - InMemoryCardRepository: Process-local dictionaries.
        - YamlDeckRepository: A single YAML deck file on disk.
    """

    @abstractmethod
    async def get_card(self, card_id: str) -> Card | None:
        """
        Fetch a single card.

        Returns:
            The card, or None if no card has this ID.
        """
        pass

    @abstractmethod
    async def list_cards(self) -> list[Card]:
        """Return all cards in insertion order."""
        pass

    @abstractmethod
    async def add_card(self, card: Card) -> Card:
        """
        Store a new card.

        Raises:
            ValueError: If a card with the same ID already exists.
        """
        pass

    @abstractmethod
    async def list_reviews(self, card_id: str | None = None) -> list[ReviewEvent]:
        """
        Return review events, oldest first.

        Args:
            card_id: Restrict to one card's history if given.
        """
        pass

    @abstractmethod
    async def save_review(
        self, card: Card, expected_version: int, event: ReviewEvent
    ) -> Card:
        """
        Atomically replace a card and append its review event.

        The write only happens if the stored card still has `expected_version`.
        The stored card gets `expected_version + 1`.

        Raises:
            CardNotFoundError: The card no longer exists.
            PersistenceConflictError: The card was modified since it was read.

        Returns:
            The card as stored, with its new version.
        """
        pass
