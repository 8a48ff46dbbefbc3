"""
Spaced Repetition Engine: Application layer orchestrator.

Owns one CardStore and coordinates the SM-2 scheduler, the due queue, the
retention model, and the persistence port. Every mutating operation runs as
a scoped transaction: the in-memory store and its durable copy either both
change or neither does.
"""

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any

from mnemo.domain.constants import DEFAULT_CURVE_DAYS, DEFAULT_UPCOMING_DAYS
from mnemo.domain.errors import CardNotFoundError
from mnemo.domain.models import Card
from mnemo.domain.ports import CardRepository, Clock
from mnemo.domain.stats.models import SrsStats
from mnemo.infrastructure.adapters.memory_repository import InMemoryCardRepository
from mnemo.infrastructure.clock import SystemClock
from mnemo.infrastructure.serialization import dump_store, load_store

from .card_store import CardStore
from .queue_builder import group_upcoming_reviews, select_due_cards
from .scheduler import apply_review, commit, validate_quality
from .stats import MetricsCalculator, RetentionCurve, StatsService

logger = logging.getLogger(__name__)


class SpacedRepetitionEngine:
    """
    Library entry point for the quiz, flashcard and dashboard layers.

    Follows Dependency Inversion: depends on the CardRepository and Clock
    abstractions, not concrete adapters.
    """

    def __init__(
        self,
        repository: CardRepository | None = None,
        clock: Clock | None = None,
        calculator: MetricsCalculator | None = None,
    ):
        """
        Args:
            repository: Persistence port; an in-memory one is used if not provided.
            clock: Time source; wall-clock UTC if not provided.
            calculator: Optional custom retention model.
        """
        self._repo = repository or InMemoryCardRepository()
        self._clock = clock or SystemClock()
        self._calc = calculator or MetricsCalculator()
        self._store = CardStore(self._repo.load())
        self._stats = StatsService(self._store.cards, self._calc)
        logger.debug(f"Engine ready with {len(self._store)} cards")

    @property
    def store(self) -> CardStore:
        return self._store

    @property
    def clock(self) -> Clock:
        return self._clock

    def now(self) -> datetime:
        return self._clock.now()

    @contextmanager
    def _transaction(self, *card_ids: str) -> Iterator[None]:
        """
        Persist on success; on any error restore the store and re-raise.

        With *card_ids*, only those cards are copied for rollback, so the body
        may add or remove them but must not change any other card in place.
        Without them the whole store is copied.
        """
        originals = self._store.as_dict()
        backup = self._store.snapshot(card_ids or None)
        try:
            yield
            self._repo.save(self._store.as_dict())
        except BaseException:
            # Restore in place so Card objects already handed out stay valid.
            for card_id, saved in backup.items():
                commit(originals[card_id], saved)
            self._store.replace_all(originals)
            raise

    # ------------------------------------------------------------------
    # Card store
    # ------------------------------------------------------------------

    def get_or_create_card(
        self, item_id: str, metadata: Mapping[str, Any] | None = None
    ) -> Card:
        """
        Return the card for *item_id*, creating a fresh due-now card on first encounter.

        Idempotent: later calls return the same Card object unchanged.
        """
        if item_id in self._store:
            return self._store.get(item_id)

        with self._transaction(item_id):
            card, _ = self._store.get_or_create(item_id, self.now(), metadata)
        logger.info(f"New card {item_id} ({card.question_type})")
        return card

    def get_card(self, item_id: str) -> Card:
        return self._store.get(item_id)

    def remove_card(self, item_id: str) -> Card:
        """Delete a card when its item is removed. Raises CardNotFoundError if absent."""
        if item_id not in self._store:
            raise CardNotFoundError(item_id)
        with self._transaction(item_id):
            card = self._store.remove(item_id)
        logger.info(f"Removed card {item_id}")
        return card

    def reset(self) -> None:
        """Delete every card."""
        with self._transaction():
            self._store.clear()
        logger.info("Store reset")

    # ------------------------------------------------------------------
    # Scheduler
    # ------------------------------------------------------------------

    def review_card(self, card: Card | str, quality: int) -> Card:
        """
        Apply an SM-2 review and persist it.

        Args:
            card: The card, or its id. It must already exist in this store.
            quality: 0 (blackout) to 5 (perfect recall); >= 3 is a pass.

        Returns:
            The same Card object, updated.

        Raises:
            InvalidQualityError: If quality is not an integer in 0..5.
            CardNotFoundError: If the card was never created in this store.
        """
        quality = validate_quality(quality)
        card_id = card if isinstance(card, str) else card.id
        target = self._store.get(card_id)

        with self._transaction(card_id):
            commit(target, apply_review(target, quality, self.now()))

        logger.info(
            f"Reviewed {card_id}: quality={quality} state={target.state.value} "
            f"interval={target.interval}d ease={target.ease_factor:.2f}"
        )
        return target

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_due_cards(self, limit: int | None = None) -> list[Card]:
        return select_due_cards(self._store, self.now(), limit)

    def get_upcoming_reviews(self, days: int = DEFAULT_UPCOMING_DAYS) -> dict[date, list[Card]]:
        return group_upcoming_reviews(self._store, self.now(), days)

    def predict_retention(self, card: Card, hours_from_now: float = 0.0) -> float:
        return self._calc.predict_retention(card, self.now(), hours_from_now)

    def get_retention_curve(self, card: Card, days: float = DEFAULT_CURVE_DAYS) -> RetentionCurve:
        return self._calc.retention_curve(card, self.now(), days)

    def get_stats(self) -> SrsStats:
        return self._stats.get_stats(self.now())

    @property
    def stats(self) -> StatsService:
        return self._stats

    # ------------------------------------------------------------------
    # Backup / restore
    # ------------------------------------------------------------------

    def export_data(self) -> str:
        """Serialize the whole store to a JSON blob."""
        blob = dump_store(self._store.as_dict(), exported_at=self.now())
        logger.info(f"Exported {len(self._store)} cards")
        return blob

    def import_data(self, blob: str | bytes) -> int:
        """
        Replace the whole store with the cards in *blob*.

        Returns:
            Number of cards imported.

        Raises:
            ImportDataError: If the blob is malformed; the current store is left untouched.
        """
        cards = load_store(blob)
        with self._transaction():
            self._store.replace_all(cards)
        logger.info(f"Imported {len(cards)} cards")
        return len(cards)
