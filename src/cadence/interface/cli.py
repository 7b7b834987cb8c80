"""Cadence CLI — study commands operating on a YAML deck file."""

import asyncio
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any

import typer

from cadence.application.config import AppConfig, resolve_config
from cadence.application.factory import build_study_service
from cadence.domain.errors import (
    CardNotFoundError,
    ConfigurationError,
    InvalidReviewError,
    PersistenceConflictError,
)
from cadence.domain.scheduling.models import Card
from cadence.infrastructure.adapters.serialization import card_view

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cadence: spaced-repetition flashcard scheduler.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage cadence configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

DeckOption = Annotated[
    Path | None, typer.Option("--deck", "-d", help="Deck file. Defaults to 'deck_path' in config.")
]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _resolve(ctx: typer.Context, **overrides: Any) -> AppConfig:
    verbose = (ctx.obj or {}).get("verbose_bonus", 1)
    config = resolve_config({**overrides, "verbose": verbose})
    if config.verbose >= 2:
        logging.getLogger("cadence").setLevel(logging.DEBUG)
    return config


def _service(config: AppConfig):
    try:
        return build_study_service(config)
    except ConfigurationError as e:
        typer.secho(f"Configuration error: {e}", fg="red", err=True)
        raise typer.Exit(2) from None


def _describe(card: Card) -> str:
    state = card.state
    phase = f"learning step {state.learning_step}" if state.is_learning else "review"
    unit = "min" if state.is_learning else "d"
    return (
        f"{card.card_id}  [{phase}]  interval={state.interval}{unit}  "
        f"ease={state.ease_factor:.2f}  next={state.next_review_date.isoformat()}"
    )


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
):
    """Global settings for cadence."""
    ctx.ensure_object(dict)
    ctx.obj["verbose_bonus"] = verbose


# ---------------------------------------------------------------------------
# Study commands
# ---------------------------------------------------------------------------


@app.command()
def add(
    ctx: typer.Context,
    front: Annotated[str, typer.Argument(help="Question side of the card.")],
    back: Annotated[str, typer.Argument(help="Answer side of the card.")],
    card_id: Annotated[str | None, typer.Option("--id", help="Explicit card ID.")] = None,
    deck: DeckOption = None,
):
    """[bold green]Add[/bold green] a new card, due immediately."""
    service = _service(_resolve(ctx, deck_path=deck))
    try:
        card = asyncio.run(service.add_card(front, back, _now(), card_id=card_id))
    except ValueError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1) from None
    typer.echo(card.card_id)


@app.command()
def review(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to review.")],
    quality: Annotated[int, typer.Argument(help="Recall quality 0-5.")],
    response_time: Annotated[
        float | None, typer.Option("--response-time", "-t", help="Seconds taken to answer.")
    ] = None,
    review_type: Annotated[
        str, typer.Option(help="scheduled, extra_practice or cramming.")
    ] = "scheduled",
    deck: DeckOption = None,
):
    """Record a review and reschedule the card."""
    service = _service(_resolve(ctx, deck_path=deck))
    try:
        result = asyncio.run(
            service.submit_review(
                card_id,
                quality,
                _now(),
                response_time=response_time,
                review_type=review_type,
            )
        )
    except InvalidReviewError as e:
        typer.secho(f"Invalid review: {e}", fg="red", err=True)
        raise typer.Exit(2) from None
    except CardNotFoundError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1) from None
    except PersistenceConflictError as e:
        typer.secho(f"{e}. Try again.", fg="yellow", err=True)
        raise typer.Exit(1) from None

    typer.echo(_describe(result.card))
    if result.graduated_from_learning:
        typer.secho("Card graduated from learning phase!", fg="green")


@app.command()
def due(
    ctx: typer.Context,
    deck: DeckOption = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show cards grouped by urgency."""
    service = _service(_resolve(ctx, deck_path=deck))
    buckets = asyncio.run(service.due_overview(_now()))

    groups = {
        "due_now": buckets.due_now,
        "learning": buckets.learning,
        "upcoming": buckets.upcoming,
        "future": buckets.future,
    }

    if json_output:
        typer.echo(
            json.dumps(
                {name: [card_view(card) for card in cards] for name, cards in groups.items()},
                indent=2,
            )
        )
        return

    for name, cards in groups.items():
        typer.secho(f"{name.replace('_', ' ').title()}: {len(cards)}", bold=True)
        for card in cards:
            typer.echo(f"  {_describe(card)}")


@app.command()
def stats(
    ctx: typer.Context,
    deck: DeckOption = None,
    days: Annotated[int, typer.Option(help="Days of daily breakdown to show.")] = 0,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show study statistics."""
    service = _service(_resolve(ctx, deck_path=deck))
    now = _now()
    summary = asyncio.run(service.study_stats(now))
    daily = asyncio.run(service.daily_breakdown(now, days)) if days > 0 else []

    if json_output:
        payload: dict[str, Any] = asdict(summary)
        if daily:
            payload["daily"] = [
                {**asdict(d), "day": d.day.isoformat()} for d in daily
            ]
        typer.echo(json.dumps(payload, indent=2))
        return

    typer.echo(
        f"Cards: {summary.total_cards}  Due: {summary.cards_due}  "
        f"Learning: {summary.cards_learning}  Graduated: {summary.cards_graduated}"
    )
    typer.echo(f"Reviews: {summary.total_reviews}  Accuracy: {summary.accuracy}%")
    typer.echo(
        f"Average ease: {summary.average_ease_factor:.2f}  "
        f"Average response: {summary.average_response_time:.2f}s"
    )
    typer.echo(f"Streak: {summary.streak_current} (best {summary.streak_best})")
    typer.echo(
        f"Time spent: {summary.time_spent_today} min today, {summary.time_spent_total} min total"
    )
    for d in daily:
        typer.echo(f"  {d.day.isoformat()}  {d.correct}/{d.total}")


@app.command()
def serve(
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API server."""
    import uvicorn

    config = resolve_config({"port": port, "host": host})
    uvicorn.run("cadence.server:app", host=config.host, port=config.port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
