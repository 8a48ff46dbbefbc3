"""Keyed collection of cards, created lazily on first encounter."""

import copy
import logging
from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime
from typing import Any

from mnemo.domain.errors import CardNotFoundError
from mnemo.domain.models import Card

logger = logging.getLogger(__name__)


class CardStore:
    """
    Map of item id to Card.

    Each instance is independent; there is no module-level store.
    """

    def __init__(self, cards: Mapping[str, Card] | None = None):
        self._cards: dict[str, Card] = dict(cards or {})

    def __len__(self) -> int:
        return len(self._cards)

    def __contains__(self, card_id: object) -> bool:
        return card_id in self._cards

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards.values())

    def get_or_create(
        self,
        item_id: str,
        now: datetime,
        metadata: Mapping[str, Any] | None = None,
    ) -> tuple[Card, bool]:
        """
        Return the card for *item_id*, creating it with default parameters if unseen.

        Args:
            item_id: Stable identifier of the learning item.
            now: Creation time; a new card is due immediately.
            metadata: Optional item description with ``question`` and ``type`` keys.

        Returns:
            (card, created) where created is True only on first encounter.
        """
        card = self._cards.get(item_id)
        if card is not None:
            return card, False

        meta = metadata or {}
        card = Card.new(
            item_id,
            now,
            question_text=str(meta.get("question") or ""),
            question_type=str(meta.get("type") or "unknown"),
        )
        self._cards[item_id] = card
        logger.debug(f"Created card {item_id}")
        return card, True

    def get(self, card_id: str) -> Card:
        try:
            return self._cards[card_id]
        except KeyError:
            raise CardNotFoundError(card_id) from None

    def remove(self, card_id: str) -> Card:
        try:
            return self._cards.pop(card_id)
        except KeyError:
            raise CardNotFoundError(card_id) from None

    def cards(self) -> list[Card]:
        return list(self._cards.values())

    def as_dict(self) -> dict[str, Card]:
        """Return a shallow copy of the id -> Card mapping."""
        return dict(self._cards)

    def snapshot(self, card_ids: Iterable[str] | None = None) -> dict[str, Card]:
        """Return a deep copy of the store, or of just *card_ids*, for rollback."""
        if card_ids is None:
            return copy.deepcopy(self._cards)
        return {
            card_id: copy.deepcopy(self._cards[card_id])
            for card_id in card_ids
            if card_id in self._cards
        }

    def replace_all(self, cards: Mapping[str, Card]) -> None:
        self._cards = dict(cards)

    def clear(self) -> None:
        self._cards.clear()
