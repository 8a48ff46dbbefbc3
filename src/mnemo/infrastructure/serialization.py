"""
Export format for the card store.

Pydantic models validate every record on the way in, so a malformed blob is
rejected as a whole before any Card is built.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)

from mnemo.domain.constants import (
    EXPORT_FORMAT_VERSION,
    MAX_QUALITY,
    MIN_EASE_FACTOR,
    MIN_QUALITY,
)
from mnemo.domain.errors import ImportDataError
from mnemo.domain.models import Card, CardState, ReviewRecord, ensure_utc

logger = logging.getLogger(__name__)


def _format_datetime(value: datetime) -> str:
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


class _Record(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("*", mode="after")
    @classmethod
    def _normalise_datetimes(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return ensure_utc(v)
        return v


class ReviewRecordModel(_Record):
    date: datetime
    quality: int = Field(ge=MIN_QUALITY, le=MAX_QUALITY, strict=True)
    interval: int = Field(ge=0, strict=True)
    ease_factor: float = Field(alias="easeFactor", ge=MIN_EASE_FACTOR)
    state: CardState

    @field_serializer("date")
    def _dump_date(self, v: datetime) -> str:
        return _format_datetime(v)

    @classmethod
    def from_domain(cls, record: ReviewRecord) -> "ReviewRecordModel":
        return cls(
            date=record.date,
            quality=record.quality,
            interval=record.interval,
            ease_factor=record.ease_factor,
            state=record.state,
        )

    def to_domain(self) -> ReviewRecord:
        return ReviewRecord(
            date=self.date,
            quality=self.quality,
            interval=self.interval,
            ease_factor=self.ease_factor,
            state=self.state,
        )


class CardRecord(_Record):
    id: str = Field(min_length=1)
    question_text: str = Field(default="", alias="questionText")
    question_type: str = Field(default="unknown", alias="questionType")
    ease_factor: float = Field(alias="easeFactor", ge=MIN_EASE_FACTOR)
    interval: int = Field(ge=0, strict=True)
    repetitions: int = Field(ge=0, strict=True)
    next_review_date: datetime = Field(alias="nextReviewDate")
    last_review_date: datetime | None = Field(default=None, alias="lastReviewDate")
    review_history: list[ReviewRecordModel] = Field(
        default_factory=list, alias="reviewHistory"
    )
    state: CardState
    lapses: int = Field(ge=0, strict=True)
    created_at: datetime = Field(alias="createdAt")

    @model_validator(mode="after")
    def _check_invariants(self) -> "CardRecord":
        if self.repetitions >= 1 and self.interval < 1:
            raise ValueError("interval must be at least 1 once repetitions >= 1")
        if self.state != CardState.NEW and self.last_review_date is None:
            raise ValueError(f"state {self.state.value!r} requires lastReviewDate")
        return self

    @field_serializer("next_review_date", "created_at")
    def _dump_required_date(self, v: datetime) -> str:
        return _format_datetime(v)

    @field_serializer("last_review_date")
    def _dump_optional_date(self, v: datetime | None) -> str | None:
        return _format_datetime(v) if v is not None else None

    @classmethod
    def from_domain(cls, card: Card) -> "CardRecord":
        return cls(
            id=card.id,
            question_text=card.question_text,
            question_type=card.question_type,
            ease_factor=card.ease_factor,
            interval=card.interval,
            repetitions=card.repetitions,
            next_review_date=card.next_review_date,
            last_review_date=card.last_review_date,
            review_history=[ReviewRecordModel.from_domain(r) for r in card.review_history],
            state=card.state,
            lapses=card.lapses,
            created_at=card.created_at,
        )

    def to_domain(self) -> Card:
        return Card(
            id=self.id,
            question_text=self.question_text,
            question_type=self.question_type,
            ease_factor=self.ease_factor,
            interval=self.interval,
            repetitions=self.repetitions,
            next_review_date=self.next_review_date,
            last_review_date=self.last_review_date,
            review_history=[r.to_domain() for r in self.review_history],
            state=self.state,
            lapses=self.lapses,
            created_at=self.created_at,
        )


class StoreSnapshot(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    version: int = EXPORT_FORMAT_VERSION
    exported_at: datetime | None = Field(default=None, alias="exportedAt")
    cards: dict[str, CardRecord]

    @field_validator("version")
    @classmethod
    def _supported_version(cls, v: int) -> int:
        if v != EXPORT_FORMAT_VERSION:
            raise ValueError(f"unsupported export version {v}")
        return v

    @model_validator(mode="after")
    def _keys_match_ids(self) -> "StoreSnapshot":
        for key, card in self.cards.items():
            if key != card.id:
                raise ValueError(f"card stored under {key!r} has id {card.id!r}")
        return self

    @field_serializer("exported_at")
    def _dump_exported_at(self, v: datetime | None) -> str | None:
        return _format_datetime(v) if v is not None else None


def dump_store(cards: dict[str, Card], exported_at: datetime | None = None) -> str:
    """Serialize *cards* to the JSON export format."""
    snapshot = StoreSnapshot(
        exported_at=exported_at or datetime.now(timezone.utc),
        cards={card_id: CardRecord.from_domain(card) for card_id, card in cards.items()},
    )
    return snapshot.model_dump_json(by_alias=True, indent=2)


def load_store(blob: str | bytes) -> dict[str, Card]:
    """
    Parse and validate an export blob.

    Raises:
        ImportDataError: If the blob is not valid JSON or any record is invalid.
            Nothing is returned in that case, so callers never see a partial store.
    """
    if not isinstance(blob, (str, bytes, bytearray)):
        raise ImportDataError(f"Store data must be a JSON string, got {type(blob).__name__}")
    try:
        snapshot = StoreSnapshot.model_validate_json(blob)
    except ValidationError as e:
        logger.debug(f"Rejected store blob: {e}")
        raise ImportDataError(f"Malformed store data: {e.error_count()} error(s)\n{e}") from e
    return {card_id: record.to_domain() for card_id, record in snapshot.cards.items()}
