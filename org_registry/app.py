"""Typer CLI entrypoint for org-registry."""

from __future__ import annotations

import json
import sys
import time
from dataclasses import dataclass
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository
from .infra import SQLiteManager
from .logging_conf import configure_logging, current_log_dir, tail_log
from .orchestrator import IngestionOutcome, Orchestrator
from .records import OrganizationPage
from .scheduler import APSchedulerAdapter
from .ui import BatchProgress

app = typer.Typer(
    help="org-registry command line tool",
    no_args_is_help=True,
    rich_markup_mode=None,
)
ingest_app = typer.Typer(
    name="ingest",
    help="Registry ingestion commands",
    no_args_is_help=True,
    rich_markup_mode=None,
)
org_app = typer.Typer(
    name="org",
    help="Browse and manage stored organizations",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Log inspection commands",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    orchestrator: Orchestrator
    scheduler: APSchedulerAdapter
    storage: SQLiteManager


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    configure_logging(verbose=verbose, log_dir=repository.locator.logs_dir)
    storage = SQLiteManager()
    orchestrator = Orchestrator(config_repository=repository, storage=storage)
    return AppState(
        repository=repository,
        orchestrator=orchestrator,
        scheduler=APSchedulerAdapter(),
        storage=storage,
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _progress_default_enabled() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


def _render_outcome(outcome: IngestionOutcome) -> Table:
    title = "Ingestion result" if outcome.success else "Ingestion failed"
    table = Table(title=title, box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green" if outcome.success else "red", justify="right")
    table.add_row("Message", outcome.message)
    if outcome.error_kind:
        table.add_row("Error kind", outcome.error_kind)
    summary = outcome.summary
    if summary is not None:
        table.add_row("Status", summary.status.value)
        table.add_row("Parsed", str(summary.parsed))
        table.add_row("Batches", str(summary.batches))
        table.add_row("Duplicates", str(summary.duplicates))
        table.add_row("Truncated", str(summary.truncated))
        table.add_row("Added", str(summary.added))
        table.add_row("Store size", f"{summary.store_size_before} → {summary.store_size_after}")
        if summary.cleanup_errors:
            table.add_row("Cleanup errors", ", ".join(summary.cleanup_errors))
    return table


def _render_page(page: OrganizationPage, search: Optional[str]) -> Table:
    caption = f"page {page.page}/{page.total_pages} · {page.total_records} records"
    title = f"Organizations matching '{search}'" if search else "Organizations"
    table = Table(title=title, caption=caption, box=box.SIMPLE_HEAD)
    table.add_column("ID", style="dim", justify="right")
    table.add_column("EIN", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold", overflow="fold")
    table.add_column("City")
    table.add_column("State")
    table.add_column("Country")
    table.add_column("Status", style="magenta")
    for item in page.items:
        table.add_row(
            str(item.id), item.ein, item.name, item.city, item.state, item.country, item.status
        )
    return table


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    ctx.obj = build_state(verbose)


@ingest_app.command("run", help="Download the registry archive and load it into the store.")
def ingest_run(
    ctx: typer.Context,
    quiet: bool = typer.Option(False, "--quiet", help="Print a one-line result only."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    state = _get_state(ctx)
    progress_flag = (
        _progress_default_enabled()
        and not (quiet or as_json)
        and state.orchestrator.global_config.enable_progress_bar
    )
    progress = BatchProgress(enabled=progress_flag, console=console) if progress_flag else None
    outcome = state.orchestrator.trigger_ingestion(progress=progress)
    if as_json:
        typer.echo(json.dumps(outcome.to_dict(), ensure_ascii=False))
    elif quiet:
        added = outcome.summary.added if outcome.summary else 0
        console.print(f"{outcome.message} (added {added})", style=None if outcome.success else "red")
    else:
        console.print(_render_outcome(outcome))
    if not outcome.success:
        raise typer.Exit(code=1)


@ingest_app.command("schedule", help="Re-run ingestion on the configured schedule until interrupted.")
def ingest_schedule(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    schedule = state.orchestrator.global_config.ingestion.schedule
    state.scheduler.schedule_ingestion(schedule, state.orchestrator.trigger_ingestion)
    state.scheduler.start()
    console.print(f"Ingestion scheduled ({schedule.type.value}: {schedule.value}). Ctrl+C to stop.")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        console.print("Stopping scheduler.", style="yellow")
    finally:
        state.scheduler.shutdown()


@org_app.command("list", help="List stored organizations sorted by name.")
def org_list(
    ctx: typer.Context,
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Substring of EIN or name."),
    page: int = typer.Option(1, "--page", min=1, help="1-based page number."),
    page_size: int = typer.Option(10, "--page-size", min=1, help="Items per page."),
    as_json: bool = typer.Option(False, "--json", help="Print the page as JSON."),
) -> None:
    state = _get_state(ctx)
    result = state.orchestrator.list_organizations(search=search, page=page, page_size=page_size)
    if as_json:
        typer.echo(json.dumps(result.to_dict(), ensure_ascii=False))
        return
    if not result.total_records:
        if search:
            console.print(f"No organizations match '{search}'.", style="yellow")
        else:
            console.print(
                "No organizations stored. Run `org-registry ingest run` first.", style="yellow"
            )
        return
    console.print(_render_page(result, search))


@org_app.command("show", help="Show one organization by EIN.")
def org_show(ctx: typer.Context, ein: str = typer.Argument(..., help="Organization EIN.")) -> None:
    state = _get_state(ctx)
    organization = state.orchestrator.get_organization(ein)
    if organization is None:
        console.print(f"No organization with EIN `{ein}`.", style="red")
        raise typer.Exit(code=1)
    table = Table(box=box.MINIMAL, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in organization.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)


@org_app.command("purge", help="Delete every stored organization.")
def org_purge(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt."),
) -> None:
    state = _get_state(ctx)
    if not yes and not typer.confirm("Delete all stored organizations?", default=False):
        console.print("Purge cancelled.", style="yellow")
        raise typer.Exit(code=0)
    removed = state.orchestrator.delete_all()
    console.print(f"Removed {removed} organizations.", style="green")


@log_app.command("tail", help="Show the last lines of the application log.")
def log_tail(
    ctx: typer.Context,
    lines: int = typer.Option(50, "--lines", "-n", min=1, help="Number of lines to show."),
    errors: bool = typer.Option(False, "--errors", help="Read the error log instead."),
) -> None:
    _get_state(ctx)
    path = current_log_dir() / ("error.log" if errors else "registry.log")
    content = tail_log(path, lines)
    if not content:
        console.print(f"Log is empty: {path}", style="dim")
        return
    for line in content:
        typer.echo(line.rstrip("\n"))


app.add_typer(ingest_app, name="ingest")
app.add_typer(org_app, name="org")
app.add_typer(log_app, name="log")


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
