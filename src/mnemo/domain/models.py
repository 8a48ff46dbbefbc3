"""
Domain models for the spaced-repetition engine.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .constants import DEFAULT_EASE_FACTOR, PASSING_QUALITY


class CardState(str, Enum):
    """Learning phase of a card. Cards cycle indefinitely; there is no terminal state."""

    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"


def ensure_utc(value: datetime) -> datetime:
    """Normalise *value* to a timezone-aware UTC datetime (naive means UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class ReviewRecord:
    """
    Snapshot of a card taken immediately before a review was applied.

    Attributes:
        date: When the review happened.
        quality: Rating given (0-5).
        interval: Interval in days before the update.
        ease_factor: Ease factor before the update.
        state: Learning phase before the update.
    """

    date: datetime
    quality: int
    interval: int
    ease_factor: float
    state: CardState

    @property
    def passed(self) -> bool:
        return self.quality >= PASSING_QUALITY


@dataclass
class Card:
    """
    Scheduling state for a single learning item.

    Build fresh cards through :meth:`Card.new` so every default is applied
    in one place.
    """

    id: str
    next_review_date: datetime
    created_at: datetime
    question_text: str = ""
    question_type: str = "unknown"
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 0  # days
    repetitions: int = 0  # consecutive passes since the last lapse
    last_review_date: datetime | None = None
    review_history: list[ReviewRecord] = field(default_factory=list)
    state: CardState = CardState.NEW
    lapses: int = 0

    def __post_init__(self) -> None:
        self.state = CardState(self.state)
        self.next_review_date = ensure_utc(self.next_review_date)
        self.created_at = ensure_utc(self.created_at)
        if self.last_review_date is not None:
            self.last_review_date = ensure_utc(self.last_review_date)

    @classmethod
    def new(
        cls,
        card_id: str,
        now: datetime,
        question_text: str = "",
        question_type: str = "unknown",
    ) -> "Card":
        """Create a never-reviewed card that is due immediately."""
        now = ensure_utc(now)
        return cls(
            id=card_id,
            next_review_date=now,
            created_at=now,
            question_text=question_text,
            question_type=question_type,
        )

    @property
    def is_new(self) -> bool:
        return self.last_review_date is None

    def is_due(self, now: datetime) -> bool:
        return self.next_review_date <= ensure_utc(now)
