"""
Stats Service: read-only aggregation over the card store.

Coordinates the retention model and review history into dashboard figures.
"""

from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta

from mnemo.domain.constants import (
    DEFAULT_HEATMAP_DAYS,
    DEFAULT_SUCCESS_RATE_DAYS,
    RECENT_REVIEW_WINDOW,
)
from mnemo.domain.models import Card, ReviewRecord, ensure_utc
from mnemo.domain.stats.models import DayCount, DaySuccess, SrsStats

from .metrics_calculator import MetricsCalculator


def recent_reviews(
    cards: Iterable[Card],
    window: int = RECENT_REVIEW_WINDOW,
) -> list[ReviewRecord]:
    """
    Pool every card's history and return the *window* most recent records.

    Ordering is date descending; equal dates fall back to card id ascending,
    then to the later position in that card's history first.
    """
    tagged: list[tuple[datetime, str, int, ReviewRecord]] = []
    for card in cards:
        for position, record in enumerate(card.review_history):
            tagged.append((record.date, card.id, position, record))

    # Two stable passes give (date desc, id asc, position desc).
    tagged.sort(key=lambda t: (t[1], -t[2]))
    tagged.sort(key=lambda t: t[0], reverse=True)
    return [t[3] for t in tagged[:window]]


class StatsService:
    """
    Application service for dashboard statistics.

    Depends on a card provider callable rather than a concrete store so it
    always sees the current set of cards.
    """

    def __init__(
        self,
        cards: Callable[[], Iterable[Card]],
        calculator: MetricsCalculator | None = None,
    ):
        """
        Args:
            cards: Returns the cards to aggregate over.
            calculator: Optional custom calculator; uses default if not provided.
        """
        self._cards = cards
        self._calc = calculator or MetricsCalculator()

    def get_stats(self, now: datetime) -> SrsStats:
        """Compute every dashboard figure in a single pass over the cards."""
        now = ensure_utc(now)
        tomorrow = now + timedelta(hours=24)
        cards = list(self._cards())

        stats = SrsStats(total_cards=len(cards))
        if not cards:
            return stats

        retention_sum = 0.0
        for card in cards:
            if card.next_review_date <= now:
                stats.due_today += 1
            elif card.next_review_date <= tomorrow:
                stats.due_tomorrow += 1
            retention_sum += self._calc.predict_retention(card, now)
            stats.cards_by_state[card.state.value] += 1
            stats.total_reviews += len(card.review_history)

        stats.average_retention = retention_sum / len(cards)

        recent = recent_reviews(cards)
        if recent:
            stats.recent_accuracy = sum(1 for r in recent if r.passed) / len(recent)

        return stats

    def most_recently_reviewed(self) -> Card | None:
        """The card with the latest review, or None if nothing was reviewed yet."""
        reviewed = [c for c in self._cards() if c.last_review_date is not None]
        if not reviewed:
            return None
        return max(reviewed, key=lambda c: (c.last_review_date, c.id))

    def review_heatmap(self, now: datetime, days: int = DEFAULT_HEATMAP_DAYS) -> list[DayCount]:
        """
        Review counts per calendar day (UTC), oldest first, ending today.

        Days without reviews are present with a count of 0.
        """
        counts: dict[date, int] = {}
        for day, record in self._records_in_window(now, days):
            counts[day] = counts.get(day, 0) + 1
        return [DayCount(day=d, count=counts.get(d, 0)) for d in _day_range(now, days)]

    def success_rate_by_day(
        self, now: datetime, days: int = DEFAULT_SUCCESS_RATE_DAYS
    ) -> list[DaySuccess]:
        """Per-day totals and pass rate, oldest first, ending today."""
        totals: dict[date, list[int]] = {}
        for day, record in self._records_in_window(now, days):
            bucket = totals.setdefault(day, [0, 0])
            bucket[0] += 1
            if record.passed:
                bucket[1] += 1

        result = []
        for d in _day_range(now, days):
            total, passed = totals.get(d, (0, 0))
            result.append(
                DaySuccess(
                    day=d,
                    total=total,
                    passed=passed,
                    rate=(passed / total) if total else None,
                )
            )
        return result

    def _records_in_window(self, now: datetime, days: int):
        if days <= 0:
            raise ValueError(f"days must be a positive integer, got {days}")
        today = ensure_utc(now).date()
        first = today - timedelta(days=days - 1)
        for card in self._cards():
            for record in card.review_history:
                day = record.date.date()
                if first <= day <= today:
                    yield day, record


def _day_range(now: datetime, days: int) -> list[date]:
    today = ensure_utc(now).date()
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
