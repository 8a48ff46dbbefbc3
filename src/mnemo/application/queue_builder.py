"""
Queue builder for review sessions.

Selects due cards and orders them so fragile material surfaces before
well-consolidated review material:
1. State priority: new < learning < relearning < review
2. Oldest due date first within a state
3. Card id as the final, stable tiebreak
"""

from collections.abc import Iterable
from datetime import date, datetime, timedelta

from mnemo.domain.constants import STATE_PRIORITY
from mnemo.domain.models import Card, ensure_utc

_UNKNOWN_PRIORITY = 99


def due_sort_key(card: Card) -> tuple[int, datetime, str]:
    return (
        STATE_PRIORITY.get(card.state.value, _UNKNOWN_PRIORITY),
        card.next_review_date,
        card.id,
    )


def select_due_cards(
    cards: Iterable[Card],
    now: datetime,
    limit: int | None = None,
) -> list[Card]:
    """
    Return the cards due at *now*, in review priority order.

    Args:
        cards: Cards to consider. They are only read.
        now: Reference time; a card is due when next_review_date <= now.
        limit: Maximum number of cards to return, applied after sorting.

    Returns:
        Ordered list of due cards.

    Raises:
        ValueError: If limit is given and is not positive.
    """
    if limit is not None and limit <= 0:
        raise ValueError(f"limit must be a positive integer, got {limit}")

    now = ensure_utc(now)
    due = sorted((c for c in cards if c.next_review_date <= now), key=due_sort_key)
    if limit is not None:
        due = due[:limit]
    return due


def group_upcoming_reviews(
    cards: Iterable[Card],
    now: datetime,
    days: int,
) -> dict[date, list[Card]]:
    """
    Group cards falling due between *now* and *now + days* by calendar date (UTC).

    Keys are in ascending date order; cards within a day are ordered by due time.
    """
    if days < 0:
        raise ValueError(f"days must not be negative, got {days}")

    now = ensure_utc(now)
    end = now + timedelta(days=days)
    window = sorted(
        (c for c in cards if now <= c.next_review_date <= end),
        key=lambda c: (c.next_review_date, c.id),
    )

    upcoming: dict[date, list[Card]] = {}
    for card in window:
        upcoming.setdefault(card.next_review_date.date(), []).append(card)
    return upcoming
