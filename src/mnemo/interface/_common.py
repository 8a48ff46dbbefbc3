"""Shared helpers for the CLI and HTTP surfaces."""

import dataclasses
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any

import typer

from mnemo.application.config import AppConfig, resolve_config
from mnemo.application.engine import SpacedRepetitionEngine
from mnemo.application.factory import build_engine
from mnemo.domain.errors import MnemoError
from mnemo.domain.models import Card
from mnemo.infrastructure.clock import FixedClock
from mnemo.infrastructure.serialization import CardRecord


def engine_from_context(ctx: typer.Context) -> tuple[SpacedRepetitionEngine, AppConfig]:
    """Build the engine for this invocation from the global options."""
    obj = ctx.ensure_object(dict)
    config = resolve_config({"store_path": obj.get("store_path")})
    now: datetime | None = obj.get("now")
    clock = FixedClock(now) if now is not None else None
    with handle_errors():
        engine = build_engine(config, clock=clock)
    return engine, config


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn library errors into a red message and exit code 1."""
    try:
        yield
    except MnemoError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


def card_to_dict(card: Card) -> dict[str, Any]:
    return CardRecord.from_domain(card).model_dump(mode="json", by_alias=True)


def to_jsonable(value: Any) -> Any:
    """Convert dataclasses, dates and paths into JSON-friendly values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {str(to_jsonable(k)): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    return value
