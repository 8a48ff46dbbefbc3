import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import date
from typing import Annotated, Any

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from mnemo.application.config import resolve_config
from mnemo.application.engine import SpacedRepetitionEngine
from mnemo.application.factory import build_engine
from mnemo.consts import VERSION
from mnemo.domain.constants import (
    DEFAULT_CURVE_DAYS,
    DEFAULT_SUCCESS_RATE_DAYS,
    DEFAULT_UPCOMING_DAYS,
)
from mnemo.domain.errors import (
    CardNotFoundError,
    ImportDataError,
    InvalidQualityError,
    MnemoError,
)
from mnemo.interface._common import card_to_dict, to_jsonable

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("mnemo.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"mnemo server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("mnemo server shutting down...")


app = FastAPI(
    title="mnemo server",
    description="HTTP API for the mnemo spaced repetition engine.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


_engine: SpacedRepetitionEngine | None = None


async def get_engine() -> SpacedRepetitionEngine:
    """Engine backed by the configured store, built on first use."""
    global _engine
    if _engine is None:
        _engine = build_engine(resolve_config())
    return _engine


EngineDep = Annotated[SpacedRepetitionEngine, Depends(get_engine)]


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR: list[tuple[type[MnemoError], int]] = [
    (InvalidQualityError, 422),
    (CardNotFoundError, 404),
    (ImportDataError, 400),
]


@app.exception_handler(MnemoError)
async def mnemo_error_handler(request: Request, exc: MnemoError) -> JSONResponse:
    status = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    if status == 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status, content={"detail": str(exc)})


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class CreateCardRequest(BaseModel):
    id: str = Field(min_length=1)
    question: str = ""
    type: str = "unknown"


class ReviewRequest(BaseModel):
    quality: Any


class RetentionResponse(BaseModel):
    id: str
    hours_from_now: float
    retention: float


class RetentionPointResponse(BaseModel):
    hours_from_review: float
    days_from_review: float
    retention: float


class StatsResponse(BaseModel):
    total_cards: int
    due_today: int
    due_tomorrow: int
    average_retention: float
    cards_by_state: dict[str, int]
    total_reviews: int
    recent_accuracy: float


class ImportResponse(BaseModel):
    imported: int


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.post("/cards")
async def create_card(req: CreateCardRequest, engine: EngineDep):
    """Get or create the card for an item."""
    card = engine.get_or_create_card(req.id, {"question": req.question, "type": req.type})
    return card_to_dict(card)


@app.get("/cards/{card_id}")
async def get_card(card_id: str, engine: EngineDep):
    return card_to_dict(engine.get_card(card_id))


@app.delete("/cards/{card_id}")
async def delete_card(card_id: str, engine: EngineDep):
    engine.remove_card(card_id)
    return {"removed": card_id}


@app.post("/cards/{card_id}/review")
async def review_card(card_id: str, req: ReviewRequest, engine: EngineDep):
    card = engine.review_card(card_id, req.quality)
    return card_to_dict(card)


@app.get("/cards/{card_id}/retention", response_model=RetentionResponse)
async def card_retention(
    card_id: str,
    engine: EngineDep,
    hours: Annotated[float, Query()] = 0.0,
):
    card = engine.get_card(card_id)
    return RetentionResponse(
        id=card.id, hours_from_now=hours, retention=engine.predict_retention(card, hours)
    )


@app.get("/cards/{card_id}/curve", response_model=list[RetentionPointResponse])
async def card_curve(
    card_id: str,
    engine: EngineDep,
    days: Annotated[float, Query(ge=0)] = DEFAULT_CURVE_DAYS,
):
    card = engine.get_card(card_id)
    return [
        RetentionPointResponse(
            hours_from_review=p.hours_from_review,
            days_from_review=p.days_from_review,
            retention=p.retention,
        )
        for p in engine.get_retention_curve(card, days)
    ]


@app.get("/due")
async def due_cards(
    engine: EngineDep,
    limit: Annotated[int | None, Query(gt=0)] = None,
):
    return [card_to_dict(c) for c in engine.get_due_cards(limit)]


@app.get("/upcoming")
async def upcoming_reviews(
    engine: EngineDep,
    days: Annotated[int, Query(ge=0)] = DEFAULT_UPCOMING_DAYS,
):
    grouped: dict[date, list] = engine.get_upcoming_reviews(days)
    return {day.isoformat(): [c.id for c in cards] for day, cards in grouped.items()}


@app.get("/stats", response_model=StatsResponse)
async def get_stats(engine: EngineDep):
    s = engine.get_stats()
    return StatsResponse(
        total_cards=s.total_cards,
        due_today=s.due_today,
        due_tomorrow=s.due_tomorrow,
        average_retention=s.average_retention,
        cards_by_state=s.cards_by_state,
        total_reviews=s.total_reviews,
        recent_accuracy=s.recent_accuracy,
    )


@app.get("/activity")
async def activity(
    engine: EngineDep,
    days: Annotated[int, Query(gt=0)] = DEFAULT_SUCCESS_RATE_DAYS,
):
    """Per-day review counts and pass rates, oldest first."""
    now = engine.now()
    return {
        "heatmap": to_jsonable(engine.stats.review_heatmap(now, days)),
        "success_rate": to_jsonable(engine.stats.success_rate_by_day(now, days)),
    }


@app.get("/export")
async def export_store(engine: EngineDep):
    return JSONResponse(content=json.loads(engine.export_data()))


@app.post("/import", response_model=ImportResponse)
async def import_store(engine: EngineDep, payload: Annotated[Any, Body()]):
    count = engine.import_data(json.dumps(payload))
    return ImportResponse(imported=count)

