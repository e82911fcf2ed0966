"""hafiz CLI — memorization status, review queue and scheduling commands."""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Literal, TypeVar

import typer

from hafiz.application.config import AppConfig, resolve_config
from hafiz.application.factory import build_service
from hafiz.application.service import MemorizationService
from hafiz.domain.errors import HafizError
from hafiz.domain.models import MemorizationStatus, UnitId

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="hafiz: spaced-repetition scheduling for verse memorization.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage hafiz configuration.")
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

_LOG_LEVELS = {0: logging.ERROR, 1: logging.WARNING, 2: logging.INFO}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _config(ctx: typer.Context) -> AppConfig:
    return resolve_config(ctx.obj.get("overrides") if ctx.obj else None)


def _run(ctx: typer.Context, action: Callable[[MemorizationService], Awaitable[T]]) -> T:
    """Build the service from config, run ``action`` and map domain errors to exit 1."""
    service = build_service(_config(ctx))

    async def runner() -> T:
        await service.initialize()
        return await action(service)

    try:
        return asyncio.run(runner())
    except HafizError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1)


def _unit(text: str) -> UnitId:
    try:
        return UnitId.parse(text)
    except HafizError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1)


def _format_time(value) -> str:
    return value.isoformat(timespec="seconds") if value else "never"


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
    backend: Annotated[
        str | None, typer.Option(help="Storage backend: json, sqlite, memory.")
    ] = None,
    data_dir: Annotated[
        Path | None, typer.Option(help="Directory holding the progress data.")
    ] = None,
):
    """Global settings for hafiz."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {"backend": backend, "data_dir": data_dir}
    logging.getLogger("hafiz").setLevel(_LOG_LEVELS.get(verbose, logging.DEBUG))


# ---------------------------------------------------------------------------
# Progress commands
# ---------------------------------------------------------------------------


@app.command()
def status(
    ctx: typer.Context,
    unit: Annotated[str, typer.Argument(help="Verse as SURAH:AYAH, e.g. 2:255.")],
):
    """Show the memorization status of a verse."""
    unit_id = _unit(unit)
    progress = _run(ctx, lambda svc: svc.get_progress(unit_id))
    typer.echo(
        f"{unit_id}  {progress.status.value}"
        f"  last reviewed: {_format_time(progress.last_reviewed)}"
    )


@app.command("set")
def set_status(
    ctx: typer.Context,
    unit: Annotated[str, typer.Argument(help="Verse as SURAH:AYAH.")],
    new_status: Annotated[
        str,
        typer.Argument(
            metavar="STATUS",
            help="One of: " + ", ".join(s.value for s in MemorizationStatus),
        ),
    ],
):
    """Set the memorization status of a verse."""
    unit_id = _unit(unit)
    progress = _run(ctx, lambda svc: svc.update_status(unit_id, new_status))
    typer.secho(f"{unit_id} -> {progress.status.value}", fg="green")


@app.command()
def due(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List verses waiting for review, least recently reviewed first."""
    entries = _run(ctx, lambda svc: svc.get_due_units())

    if json_output:
        typer.echo(
            json.dumps(
                [{"unit": str(e.unit_id), **e.progress.to_dict()} for e in entries], indent=2
            )
        )
        return

    if not entries:
        typer.secho("Nothing to review.", fg="green")
        return
    typer.echo(f"Due for review: {len(entries)}")
    for entry in entries:
        typer.echo(
            f"  {entry.unit_id}  {entry.progress.status.value}"
            f"  last reviewed: {_format_time(entry.progress.last_reviewed)}"
        )


@app.command()
def mastered(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List mastered verses."""
    entries = _run(ctx, lambda svc: svc.get_mastered_units())

    if json_output:
        typer.echo(
            json.dumps([{"unit": str(u), **p.to_dict()} for u, p in entries], indent=2)
        )
        return

    typer.echo(f"Mastered: {len(entries)}")
    for unit_id, _ in entries:
        typer.echo(f"  {unit_id}")


@app.command()
def review(
    ctx: typer.Context,
    unit: Annotated[str, typer.Argument(help="Verse as SURAH:AYAH.")],
    quality: Annotated[
        float, typer.Argument(help="Recall quality 0-5 (0 = blackout, 5 = perfect).")
    ],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Record a review and reschedule the verse."""
    unit_id = _unit(unit)
    outcome = _run(ctx, lambda svc: svc.record_review(unit_id, quality))

    if json_output:
        typer.echo(json.dumps(outcome.to_dict(), indent=2))
        return

    color = "green" if outcome.success else "yellow"
    typer.secho(
        f"{unit_id} -> {outcome.progress.status.value}"
        f"  next review in {outcome.card.interval}d ({outcome.card.due})",
        fg=color,
    )


@app.command()
def stats(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show counts per memorization status."""
    result = _run(ctx, lambda svc: svc.get_stats())

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    typer.echo(
        f"Total: {result.total}  Learning: {result.learning}"
        f"  Reviewing: {result.reviewing}  Mastered: {result.mastered}"
    )


@app.command()
def clear(
    ctx: typer.Context,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Bypass confirmation.")
    ] = False,
):
    """Erase all memorization progress."""
    if not force and not typer.confirm("Erase all memorization progress?"):
        raise typer.Exit(1)
    _run(ctx, lambda svc: svc.clear_all())
    typer.secho("All memorization progress cleared.", fg="green")


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8778,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("hafiz.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    fmt: Annotated[Literal["json", "text"], typer.Option("--format")] = "json",
):
    """Display final resolved configuration."""
    config = _config(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    if fmt == "json":
        typer.echo(json.dumps(d, indent=2))
    else:
        for key, value in d.items():
            typer.echo(f"{key} = {value}")
