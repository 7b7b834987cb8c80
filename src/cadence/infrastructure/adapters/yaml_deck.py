"""
YAML Deck Repository — Infrastructure adapter for a deck file on disk.

Implements CardRepository on top of a single YAML document:

    cards:
      - card_id: ...
        state: {...}
    reviews:
      - card_id: ...
"""

import asyncio
import fcntl
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import yaml  # type: ignore

from cadence.domain.errors import CardNotFoundError, PersistenceConflictError
from cadence.domain.scheduling.models import Card, ReviewEvent
from cadence.domain.stats.ports import CardRepository

from .serialization import card_from_dict, card_to_dict, review_from_dict, review_to_dict

logger = logging.getLogger(__name__)


class YamlDeckRepository(CardRepository):
    """
    Stores a whole deck (cards + review history) in one YAML file.

    Every write takes an exclusive lock on a sidecar `<deck>.lock` file,
    re-reads the deck, checks the card version, and replaces the file
    atomically before releasing the lock, so writers in other processes
    (or other instances) cannot overwrite each other. A missing file is
    treated as an empty deck.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.lock_path = self.path.with_name(f"{self.path.name}.lock")
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, list[dict[str, Any]]]:
        if not self.path.exists():
            return {"cards": [], "reviews": []}

        with self.path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise yaml.YAMLError(f"Deck file {self.path} must contain a mapping")
        return {
            "cards": list(data.get("cards") or []),
            "reviews": list(data.get("reviews") or []),
        }

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """Hold the deck's cross-process write lock."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.lock_path.open("a") as handle:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)

    def _dump(self, data: dict[str, list[dict[str, Any]]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    # ------------------------------------------------------------------
    # CardRepository
    # ------------------------------------------------------------------

    async def get_card(self, card_id: str) -> Card | None:
        for raw in self._load()["cards"]:
            if str(raw.get("card_id")) == card_id:
                return card_from_dict(raw)
        return None

    async def list_cards(self) -> list[Card]:
        return [card_from_dict(raw) for raw in self._load()["cards"]]

    async def add_card(self, card: Card) -> Card:
        async with self._lock:
            with self._exclusive():
                data = self._load()
                if any(str(raw.get("card_id")) == card.card_id for raw in data["cards"]):
                    raise ValueError(f"Card already exists: {card.card_id}")
                data["cards"].append(card_to_dict(card))
                self._dump(data)
        logger.debug(f"Stored card {card.card_id} in {self.path}")
        return card

    async def list_reviews(self, card_id: str | None = None) -> list[ReviewEvent]:
        reviews = [review_from_dict(raw) for raw in self._load()["reviews"]]
        if card_id is None:
            return reviews
        return [r for r in reviews if r.card_id == card_id]

    async def save_review(
        self, card: Card, expected_version: int, event: ReviewEvent
    ) -> Card:
        async with self._lock:
            with self._exclusive():
                data = self._load()

                for index, raw in enumerate(data["cards"]):
                    if str(raw.get("card_id")) == card.card_id:
                        break
                else:
                    raise CardNotFoundError(card.card_id)

                actual_version = int(data["cards"][index].get("version", 0) or 0)
                if actual_version != expected_version:
                    logger.warning(f"Version conflict on card {card.card_id} in {self.path}")
                    raise PersistenceConflictError(
                        card.card_id, expected_version, actual_version
                    )

                stored = card.replace(version=expected_version + 1)
                data["cards"][index] = card_to_dict(stored)
                data["reviews"].append(review_to_dict(event))
                self._dump(data)
        return stored
