"""keyrecall CLI: root commands and the config subgroup."""

import json
import logging
import sys
import time
from pathlib import Path
from typing import Annotated

import typer

from keyrecall.domain.review.errors import InvalidId, InvalidRating
from keyrecall.domain.review.models import Rating, ReviewResult, SessionConfig
from keyrecall.infrastructure.catalog import CatalogError, load_catalog
from keyrecall.interface._common import _build_service, _resolve_with_overrides

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="keyrecall: Spaced-repetition reviews for keyboard shortcuts.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage keyrecall configuration.")
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

_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}

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
    ] = 0,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Only log warnings.")] = False,
    data_file: Annotated[
        Path | None, typer.Option(help="Review state file. Defaults to config.")
    ] = None,
    storage: Annotated[
        str | None, typer.Option(help="Storage backend: json, memory.")
    ] = None,
):
    """Global settings for keyrecall."""
    ctx.ensure_object(dict)
    level = 0 if quiet else 1 + verbose
    logging.getLogger().setLevel(_LOG_LEVELS.get(level, logging.DEBUG))
    ctx.obj["overrides"] = {"data_file": data_file, "storage": storage}


def _service_from_ctx(ctx: typer.Context, **extra):
    overrides = dict((ctx.obj or {}).get("overrides", {}))
    overrides.update(extra)
    config = _resolve_with_overrides(**overrides)
    return config, _build_service(config)


def _format_item_line(item) -> str:
    return (
        f"{item.id:<32} due {item.due_at:%Y-%m-%d %H:%M}  "
        f"ease {item.ease_factor:.2f}  interval {item.interval_days}d  "
        f"reps {item.repetition_count}"
    )


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def init(
    ctx: typer.Context,
    catalog: Annotated[
        Path | None,
        typer.Argument(help="YAML/JSON shortcut catalog. Defaults to 'catalog_file' in config."),
    ] = None,
):
    """[bold green]Track[/bold green] every shortcut in a catalog (existing progress is kept)."""
    config, service = _service_from_ctx(ctx, catalog_file=catalog)
    if config.catalog_file is None:
        typer.secho("No catalog given and no 'catalog_file' configured.", fg="red", err=True)
        raise typer.Exit(2)

    try:
        ids = load_catalog(config.catalog_file)
        added = service.initialize_system(ids)
    except (CatalogError, InvalidId) as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1) from e

    typer.echo(f"Added {len(added)} shortcuts ({len(service.store)} tracked).")


@app.command()
def due(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List shortcuts that are due for review."""
    _, service = _service_from_ctx(ctx)
    items = service.due_items()

    if json_output:
        typer.echo(json.dumps([item.to_dict() for item in items], indent=2))
        return

    if not items:
        typer.secho("Nothing to review.", fg="green")
        return
    for item in items:
        typer.echo(_format_item_line(item))


@app.command()
def session(
    ctx: typer.Context,
    max_items: Annotated[
        int | None, typer.Option("--max-items", "-n", min=0, help="Session size (0 = no cap).")
    ] = None,
    focus_difficult: Annotated[
        bool, typer.Option("--focus-difficult", help="Prefer low-ease shortcuts.")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Preview the next review session without recording anything."""
    config, service = _service_from_ctx(ctx)
    built = service.create_review_session(
        SessionConfig(
            max_items=max_items if max_items is not None else config.default_max_items,
            focus_on_difficult=focus_difficult,
        )
    )

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "id": built.id,
                    "created_at": built.created_at.isoformat(),
                    "items": list(built.items),
                },
                indent=2,
            )
        )
        return

    if built.is_empty:
        typer.secho("Nothing to review.", fg="green")
        return
    typer.echo(f"Session {built.id}: {len(built)} shortcuts")
    for sid in built.items:
        typer.echo(f"  {sid}")


@app.command()
def review(
    ctx: typer.Context,
    max_items: Annotated[
        int | None, typer.Option("--max-items", "-n", min=0, help="Session size (0 = no cap).")
    ] = None,
    focus_difficult: Annotated[
        bool, typer.Option("--focus-difficult", help="Prefer low-ease shortcuts.")
    ] = False,
):
    """[bold green]Review[/bold green] due shortcuts interactively.

    Rate each shortcut with again, hard, good or easy. Enter 'q' to stop;
    shortcuts you did not rate stay due.
    """
    config, service = _service_from_ctx(ctx)
    built = service.create_review_session(
        SessionConfig(
            max_items=max_items if max_items is not None else config.default_max_items,
            focus_on_difficult=focus_difficult,
        )
    )
    if built.is_empty:
        typer.secho("Nothing to review.", fg="green")
        return

    results: list[ReviewResult] = []
    for index, sid in enumerate(built.items, start=1):
        started = time.monotonic()
        rating = _prompt_rating(f"[{index}/{len(built)}] {sid}")
        if rating is None:
            break
        elapsed_ms = int((time.monotonic() - started) * 1000)
        results.append(ReviewResult(sid, rating, elapsed_ms))

    outcome = service.complete_review_session(built, results)
    stats = outcome.statistics
    typer.secho(f"Reviewed {outcome.updated_count} shortcuts.", fg="green")
    for failure in outcome.failures:
        typer.secho(f"  {failure.shortcut_id}: {failure.reason}", fg="yellow")
    typer.echo(
        f"Due: {stats.due_shortcuts}/{stats.total_shortcuts}  "
        f"Mastery: {stats.mastery_level:.0f}%"
    )


def _prompt_rating(label: str) -> Rating | None:
    while True:
        token = typer.prompt(f"{label} (again/hard/good/easy, q to stop)").strip().lower()
        if token in ("q", "quit"):
            return None
        try:
            return Rating.parse(token)
        except InvalidRating as e:
            typer.secho(str(e), fg="yellow")


@app.command()
def stats(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show review statistics."""
    _, service = _service_from_ctx(ctx)
    summary = service.get_statistics()

    if json_output:
        typer.echo(json.dumps(summary.to_dict(), indent=2))
        return

    typer.echo(f"Tracked shortcuts: {summary.total_shortcuts}")
    typer.echo(f"Due now:           {summary.due_shortcuts}")
    typer.echo(f"Average ease:      {summary.average_ease_factor:.2f}")
    typer.echo(f"Mastery:           {summary.mastery_level:.1f}%")


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8787,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API for review front-ends."""
    import uvicorn

    uvicorn.run("keyrecall.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _resolve_with_overrides(**(ctx.obj or {}).get("overrides", {}))
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
