"""In-memory CardRepository, used for embedding and tests."""

import copy

from mnemo.domain.models import Card
from mnemo.domain.ports import CardRepository


class InMemoryCardRepository(CardRepository):
    """Keeps a private deep copy, so callers cannot alias the saved state."""

    def __init__(self, cards: dict[str, Card] | None = None):
        self._cards: dict[str, Card] = copy.deepcopy(cards or {})
        self.save_count = 0

    def load(self) -> dict[str, Card]:
        return copy.deepcopy(self._cards)

    def save(self, cards: dict[str, Card]) -> None:
        self._cards = copy.deepcopy(cards)
        self.save_count += 1
