"""CLI Entry Point - Operator commands for the proficiency engine.

Commands:
    init-db      Create database tables
    seed FILE    Load practice items from a JSON file
    levels       Show a learner's levels
    progress     Show a learner's activity and streaks
    inventory    Show active item counts per bucket
    serve        Run the HTTP API
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from proficiency.modules.prompts.interface import PracticeItem
from proficiency.shared.datetime_utils import iso_to_datetime
from proficiency.shared.exceptions import ProficiencyException
from proficiency.shared.models import CEFRLevel

app = typer.Typer(
    name="proficiency",
    help="Adaptive proficiency engine - levels, practice prompts and streaks",
    no_args_is_help=True,
)
console = Console()


def run_async(coro):
    """Run a coroutine on a fresh event loop, closing database engines after."""
    from proficiency.shared.database import close_db

    async def _runner():
        try:
            return await coro
        finally:
            await close_db()

    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(_runner())
    finally:
        loop.close()


def _parse_user_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise typer.BadParameter(f"'{value}' is not a valid UUID")


def _get_service():
    from proficiency.shared.service_registry import get_progression_service

    return get_progression_service()


def _warn_if_in_memory() -> None:
    from proficiency.shared.feature_flags import is_database_persistence_enabled

    if not is_database_persistence_enabled():
        console.print(
            "[yellow]Database persistence is disabled (FF_USE_DATABASE_PERSISTENCE); "
            "data will not outlive this command.[/yellow]"
        )


# =============================================================================
# Database
# =============================================================================

@app.command("init-db")
def init_db_command() -> None:
    """Create all database tables."""
    from proficiency.shared.config import get_settings
    from proficiency.shared.database import init_db

    settings = get_settings()
    try:
        run_async(init_db())
    except Exception as e:
        console.print(f"[red]Error:[/red] could not initialize database: {e}")
        raise typer.Exit(1)

    console.print(f"[green]Database initialized[/green] ({settings.database_url.split('@')[-1]})")


def load_seed_items(path: Path) -> list[PracticeItem]:
    """Read practice items from a JSON file.

    The file holds either a list of items or ``{"items": [...]}``. Each item
    needs ``skill_area``, ``question_type`` and ``content``; ``cefr_level``,
    ``expires_at`` and ``metadata`` are optional. Items without a
    ``cefr_level`` go to the static bank.
    """
    raw: Any = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        raw = raw.get("items", [])
    if not isinstance(raw, list):
        raise ValueError("seed file must contain a list of items")

    items = []
    for index, entry in enumerate(raw):
        try:
            cefr = entry.get("cefr_level")
            expires = entry.get("expires_at")
            items.append(
                PracticeItem(
                    skill_area=entry["skill_area"],
                    question_type=entry["question_type"],
                    content=entry["content"],
                    cefr_level=CEFRLevel(cefr) if cefr else None,
                    expires_at=iso_to_datetime(expires) if expires else None,
                    metadata=entry.get("metadata", {}),
                )
            )
        except (KeyError, ValueError, AttributeError) as e:
            raise ValueError(f"item {index}: {e}") from e
    return items


@app.command("seed")
def seed(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file of practice items"),
) -> None:
    """Load practice items into the pool."""
    _warn_if_in_memory()
    try:
        items = load_seed_items(file)
    except ValueError as e:
        console.print(f"[red]Invalid seed file:[/red] {e}")
        raise typer.Exit(1)

    service = _get_service()

    async def _seed() -> int:
        for item in items:
            await service.add_item(item)
        return len(items)

    try:
        count = run_async(_seed())
    except ProficiencyException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    console.print(f"[green]Seeded {count} practice items[/green] from {file.name}")


# =============================================================================
# Reports
# =============================================================================

@app.command("levels")
def levels(
    user_id: str = typer.Argument(..., help="Learner UUID"),
) -> None:
    """Show a learner's level per skill area and question type."""
    uid = _parse_user_id(user_id)
    service = _get_service()

    try:
        overview = run_async(service.get_skill_overview(uid))
    except ProficiencyException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    table = Table(title=f"Levels for {uid}")
    table.add_column("Skill area", style="cyan")
    table.add_column("Question type")
    table.add_column("Level", justify="right")
    table.add_column("Attempts", justify="right")
    table.add_column("Streak", justify="right")

    for entry in overview:
        table.add_row(entry.skill_area, "[bold]overall[/bold]", f"[bold]{entry.display}[/bold]", "", "")
        for level in sorted(entry.levels, key=lambda lvl: lvl.question_type):
            table.add_row(
                "",
                level.question_type,
                f"{level.cefr_level.value} ({level.numeric_level:.2f})",
                str(level.attempts_at_level),
                str(level.correct_streak),
            )

    console.print(table)


@app.command("progress")
def progress(
    user_id: str = typer.Argument(..., help="Learner UUID"),
    weeks: Optional[int] = typer.Option(None, "--weeks", "-w", help="Window length in weeks"),
    tz: Optional[str] = typer.Option(None, "--tz", help="IANA timezone, e.g. Europe/Berlin"),
) -> None:
    """Show a learner's activity window and streaks."""
    uid = _parse_user_id(user_id)
    service = _get_service()

    try:
        summary = run_async(service.get_progress_summary(uid, window_weeks=weeks, timezone=tz))
    except ProficiencyException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold]Daily streak:[/bold] {summary.current_streak_days} (best {summary.best_streak_days})\n"
        f"[bold]Weekly streak:[/bold] {summary.current_streak_weeks} (best {summary.best_streak_weeks})\n"
        f"[bold]Total sessions:[/bold] {summary.total_attempts}",
        title=f"Progress ({summary.timezone}, {summary.window_weeks} weeks)",
        border_style="cyan",
    ))

    table = Table(title="Activity")
    table.add_column("Week of", style="dim")
    for name in ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"):
        table.add_column(name, justify="right")

    for start in range(0, len(summary.days), 7):
        week = summary.days[start:start + 7]
        cells = [str(day.count) if day.count else "[dim]·[/dim]" for day in week]
        table.add_row(week[0].date.isoformat(), *cells)

    console.print(table)


@app.command("inventory")
def inventory() -> None:
    """Show active practice item counts."""
    service = _get_service()
    counts = run_async(service.get_prompt_inventory())

    if not counts:
        console.print("[dim]No active practice items.[/dim]")
        return

    table = Table(title="Practice item inventory")
    table.add_column("Skill area", style="cyan")
    table.add_column("Question type")
    table.add_column("Band")
    table.add_column("Items", justify="right")

    for entry in counts:
        table.add_row(entry.skill_area, entry.question_type, entry.cefr_level, str(entry.count))

    console.print(table)
    console.print(f"Total: {sum(entry.count for entry in counts)} items")


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: API_HOST)"),
    port: Optional[int] = typer.Option(None, "--port", help="Port (default: API_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    from proficiency.shared.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "proficiency.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Adaptive proficiency engine."""
    import logging

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


if __name__ == "__main__":
    app()
