"""
Domain models for scheduler statistics.

These are read-only derived views; nothing here mutates a card.
"""

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class RetentionPoint:
    """One sample of a card's forgetting curve."""

    hours_from_review: float
    days_from_review: float
    retention: float


@dataclass
class SrsStats:
    """
    Aggregate statistics over the whole card store.

    Attributes:
        total_cards: Number of cards in the store.
        due_today: Cards due now.
        due_tomorrow: Cards falling due within the next 24 hours.
        average_retention: Mean predicted retention (0.0-1.0), 0.0 when empty.
        cards_by_state: Count per learning phase; every phase is present.
        total_reviews: Lifetime number of review records.
        recent_accuracy: Pass rate (0.0-1.0) over the most recent reviews.
    """

    total_cards: int = 0
    due_today: int = 0
    due_tomorrow: int = 0
    average_retention: float = 0.0
    cards_by_state: dict[str, int] = field(
        default_factory=lambda: {"new": 0, "learning": 0, "review": 0, "relearning": 0}
    )
    total_reviews: int = 0
    recent_accuracy: float = 0.0


@dataclass(frozen=True)
class DayCount:
    """Number of reviews recorded on a calendar day (UTC)."""

    day: date
    count: int


@dataclass(frozen=True)
class DaySuccess:
    """Review outcomes for a calendar day; rate is None when nothing was reviewed."""

    day: date
    total: int
    passed: int
    rate: float | None
