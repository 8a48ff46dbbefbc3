"""mnemo CLI: card management, review, queries and backup."""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer

from mnemo.application.config import resolve_config
from mnemo.application.id_service import generate_card_id
from mnemo.application.quality import quality_from_answer
from mnemo.interface._common import (
    card_to_dict,
    engine_from_context,
    handle_errors,
    to_jsonable,
)

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mnemo: SM-2 spaced repetition from the command line.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage mnemo configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

NOW_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    store: Annotated[
        Path | None,
        typer.Option("--store", help="Store file. Defaults to 'store_path' in config."),
    ] = None,
    now: Annotated[
        datetime | None,
        typer.Option("--now", formats=NOW_FORMATS, help="Pretend the current time (UTC) is this."),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for mnemo."""
    ctx.ensure_object(dict)
    ctx.obj["store_path"] = store
    ctx.obj["now"] = now

    if verbose >= 2:
        level = "DEBUG"
    elif verbose == 1:
        level = "INFO"
    else:
        level = resolve_config().log_level
    logging.getLogger().setLevel(level)


# ---------------------------------------------------------------------------
# Card store
# ---------------------------------------------------------------------------


@app.command()
def add(
    ctx: typer.Context,
    item_id: Annotated[
        str | None, typer.Argument(help="Item id. A new ULID-based id is generated if omitted.")
    ] = None,
    question: Annotated[str, typer.Option(help="Question text.")] = "",
    type_: Annotated[str, typer.Option("--type", help="Question type.")] = "unknown",
):
    """Create a card for an item (no-op if it already exists)."""
    engine, _ = engine_from_context(ctx)
    card_id = item_id or generate_card_id()
    existed = card_id in engine.store
    with handle_errors():
        card = engine.get_or_create_card(card_id, {"question": question, "type": type_})

    if existed:
        typer.secho(f"Card {card.id} already exists ({card.state.value}).", fg="yellow")
    else:
        typer.secho(f"Created {card.id}", fg="green")


@app.command()
def show(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item id.")],
):
    """Print a card as JSON."""
    engine, _ = engine_from_context(ctx)
    with handle_errors():
        card = engine.get_card(item_id)
    typer.echo(json.dumps(card_to_dict(card), indent=2))


@app.command()
def remove(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item id.")],
):
    """Delete a card whose item no longer exists."""
    engine, _ = engine_from_context(ctx)
    with handle_errors():
        engine.remove_card(item_id)
    typer.secho(f"Removed {item_id}", fg="green")


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


@app.command()
def review(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item id.")],
    quality: Annotated[
        int, typer.Argument(help="0 = blackout ... 5 = perfect recall. 3 or more is a pass.")
    ],
):
    """Record a review with an explicit SM-2 quality."""
    engine, _ = engine_from_context(ctx)
    with handle_errors():
        card = engine.review_card(item_id, quality)
    typer.echo(
        f"{card.id}: {card.state.value}, next in {card.interval}d "
        f"({card.next_review_date.isoformat()}), ease {card.ease_factor:.2f}"
    )


@app.command()
def answer(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item id.")],
    correct: Annotated[
        bool, typer.Option("--correct/--wrong", help="Whether the answer was right.")
    ],
    confidence: Annotated[
        str | None, typer.Option(help="high, medium, low or guess.")
    ] = None,
):
    """Record a graded quiz answer; quality is derived from correctness and confidence."""
    engine, _ = engine_from_context(ctx)
    quality = quality_from_answer(correct, confidence)
    with handle_errors():
        card = engine.review_card(item_id, quality)
    typer.echo(f"{card.id}: quality {quality}, next in {card.interval}d ({card.state.value})")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@app.command()
def due(
    ctx: typer.Context,
    limit: Annotated[
        int | None, typer.Option(help="Maximum cards. Defaults to 'due_limit' in config.")
    ] = None,
    show_all: Annotated[bool, typer.Option("--all", help="Ignore the limit.")] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List cards due now, most fragile first."""
    engine, config = engine_from_context(ctx)
    effective = None if show_all else (config.due_limit if limit is None else limit)
    try:
        cards = engine.get_due_cards(effective)
    except ValueError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(2) from e

    if json_output:
        typer.echo(json.dumps([card_to_dict(c) for c in cards], indent=2))
        return

    if not cards:
        typer.secho("Nothing due.", fg="green")
        return
    for card in cards:
        recall = engine.predict_retention(card)
        typer.echo(
            f"{card.id}  [{card.state.value}]  retention {recall:.0%}  {card.question_text}"
        )


@app.command()
def retention(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item id.")],
    hours: Annotated[float, typer.Option(help="Hours from now.")] = 0.0,
):
    """Predict recall probability for a card."""
    engine, _ = engine_from_context(ctx)
    with handle_errors():
        card = engine.get_card(item_id)
    typer.echo(f"{engine.predict_retention(card, hours):.4f}")


@app.command()
def curve(
    ctx: typer.Context,
    item_id: Annotated[
        str | None, typer.Argument(help="Item id. Defaults to the last reviewed card.")
    ] = None,
    days: Annotated[int | None, typer.Option(help="Days to project. Defaults to config.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show a card's forgetting curve."""
    engine, config = engine_from_context(ctx)
    with handle_errors():
        card = engine.get_card(item_id) if item_id else engine.stats.most_recently_reviewed()
    if card is None:
        typer.secho("Complete some reviews to see retention predictions.", fg="yellow")
        raise typer.Exit(1)

    points = list(engine.get_retention_curve(card, days or config.curve_days))
    if json_output:
        typer.echo(json.dumps(to_jsonable(points), indent=2))
        return
    typer.echo(f"Forgetting curve for {card.id}")
    for point in points[::5]:
        bar = "#" * round(point.retention * 40)
        typer.echo(f"  day {point.days_from_review:5.1f}  {point.retention:6.1%}  {bar}")


@app.command()
def upcoming(
    ctx: typer.Context,
    days: Annotated[
        int | None, typer.Option(help="Days to look ahead. Defaults to config.")
    ] = None,
):
    """Cards falling due in the next few days, grouped by date."""
    engine, config = engine_from_context(ctx)
    grouped = engine.get_upcoming_reviews(config.upcoming_days if days is None else days)
    if not grouped:
        typer.echo("No upcoming reviews.")
        return
    for day, cards in grouped.items():
        typer.echo(f"{day.isoformat()}: {len(cards)} ({', '.join(c.id for c in cards)})")


@app.command()
def stats(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Dashboard statistics."""
    engine, _ = engine_from_context(ctx)
    result = engine.get_stats()
    if json_output:
        typer.echo(json.dumps(to_jsonable(result), indent=2))
        return

    typer.echo(f"Cards: {result.total_cards}  Reviews: {result.total_reviews}")
    typer.echo(f"Due today: {result.due_today}  Due tomorrow: {result.due_tomorrow}")
    typer.echo(f"Average retention: {result.average_retention:.0%}")
    typer.echo(f"Recent accuracy: {result.recent_accuracy:.0%}")
    typer.echo(
        "  ".join(f"{state}: {count}" for state, count in result.cards_by_state.items())
    )


@app.command()
def activity(
    ctx: typer.Context,
    days: Annotated[int, typer.Option(help="Days to include, ending today.")] = 30,
    heatmap: Annotated[
        bool, typer.Option("--heatmap", help="Only count reviews per day.")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Reviews and pass rate per day."""
    engine, _ = engine_from_context(ctx)
    try:
        if heatmap:
            rows = engine.stats.review_heatmap(engine.now(), days)
        else:
            rows = engine.stats.success_rate_by_day(engine.now(), days)
    except ValueError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(2) from e

    if json_output:
        typer.echo(json.dumps(to_jsonable(rows), indent=2))
        return
    if heatmap:
        for row in rows:
            typer.echo(f"{row.day.isoformat()}  {row.count:3d}  {'#' * row.count}")
        return
    for row in rows:
        rate = "-" if row.rate is None else f"{row.rate:.0%}"
        typer.echo(f"{row.day.isoformat()}  {row.total:3d} reviews  {rate}")


# ---------------------------------------------------------------------------
# Backup
# ---------------------------------------------------------------------------


@app.command("export")
def export_cmd(
    ctx: typer.Context,
    output: Annotated[
        Path | None, typer.Argument(help="File to write. Prints to stdout if omitted.")
    ] = None,
):
    """Export the whole store as JSON."""
    engine, _ = engine_from_context(ctx)
    blob = engine.export_data()
    if output is None:
        typer.echo(blob)
        return
    output.write_text(blob, encoding="utf-8")
    typer.secho(f"Exported {len(engine.store)} cards to {output}", fg="green")


@app.command("import")
def import_cmd(
    ctx: typer.Context,
    source: Annotated[Path, typer.Argument(help="Backup file produced by 'mnemo export'.")],
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Replace existing cards without asking.")
    ] = False,
):
    """Replace the whole store with a backup."""
    engine, _ = engine_from_context(ctx)
    if len(engine.store) and not force:
        typer.confirm(
            f"This replaces all {len(engine.store)} existing cards. Continue?", abort=True
        )
    with handle_errors():
        count = engine.import_data(source.read_text(encoding="utf-8"))
    typer.secho(f"Imported {count} cards.", fg="green")


@app.command()
def reset(
    ctx: typer.Context,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Bypass confirmation.")
    ] = False,
):
    """Delete all spaced repetition data."""
    engine, _ = engine_from_context(ctx)
    if not force:
        typer.confirm("This will delete all spaced repetition data. Are you sure?", abort=True)
    with handle_errors():
        engine.reset()
    typer.secho("Store reset.", fg="green")


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8777,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("mnemo.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
