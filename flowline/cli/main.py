"""CLI entry point.

Provides the main CLI application with commands for:
- scheduler: Run the periodic rule and SLA jobs
- cron: Preview cron schedules
- sla: Run one SLA breach pass
- rules / approvals: Sub-command groups
"""

import asyncio
from datetime import UTC, datetime
from typing import Annotated
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import typer
from rich.panel import Panel
from rich.table import Table

from flowline.cli.commands.approvals import app as approvals_app
from flowline.cli.commands.rules import app as rules_app
from flowline.cli.utils import console
from flowline.exceptions import FlowlineError

app = typer.Typer(
    name="flowline",
    help="Workflow automation and approval engine",
    add_completion=False,
    no_args_is_help=True,
)

app.add_typer(rules_app, name="rules")
app.add_typer(approvals_app, name="approvals")

cron_app = typer.Typer(
    name="cron",
    help="Cron expression tools",
    no_args_is_help=True,
)
app.add_typer(cron_app, name="cron")


@app.callback()
def main(
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR"),
    ] = None,
) -> None:
    """Flowline command line."""
    from flowline.logging_config import configure_logging

    configure_logging(log_level.upper() if log_level else None)


@app.command()
def scheduler() -> None:
    """Run the scheduler until interrupted."""
    from flowline.settings import get_settings

    settings = get_settings()
    console.print(
        Panel(
            f"[bold green]Starting Flowline scheduler[/bold green]\n"
            f"Rules every: {settings.scheduled_rules_interval_seconds}s\n"
            f"SLA check every: {settings.sla_check_interval_minutes}m\n"
            f"Timezone: {settings.scheduler_timezone}",
            title="Flowline",
            border_style="green",
        )
    )
    try:
        asyncio.run(_run_scheduler())
    except KeyboardInterrupt:
        console.print("\n[dim]Scheduler stopped.[/dim]")


async def _run_scheduler() -> None:
    from flowline.scheduler.service import SchedulerService
    from flowline.storage import close_db, init_db

    await init_db()
    service = SchedulerService()
    await service.start()
    try:
        await asyncio.Event().wait()
    finally:
        await service.stop()
        await close_db()


@app.command("sla")
def sla_check() -> None:
    """Run one SLA breach pass."""
    from flowline.scheduler.sla import check_sla_breaches

    count = asyncio.run(check_sla_breaches())
    console.print(f"SLA breaches alerted: {count}")


@cron_app.command("next")
def cron_next(
    expression: Annotated[str, typer.Argument(help="5-field cron expression")],
    count: Annotated[int, typer.Option("--count", "-n", help="How many runs to show")] = 5,
    tz: Annotated[
        str | None,
        typer.Option("--tz", help="Timezone (defaults to the scheduler timezone)"),
    ] = None,
    after: Annotated[
        str | None,
        typer.Option("--after", help="ISO start time (defaults to now)"),
    ] = None,
) -> None:
    """Print the next run times of a cron expression."""
    from flowline.scheduler.cron import next_cron_run
    from flowline.settings import get_settings

    zone_name = tz or get_settings().scheduler_timezone
    try:
        zone = ZoneInfo(zone_name)
        start = datetime.fromisoformat(after) if after else datetime.now(UTC)
        if start.tzinfo is None:
            start = start.replace(tzinfo=zone)
        runs = []
        cursor = start
        for _ in range(count):
            cursor = next_cron_run(expression, cursor, tz=zone)
            runs.append(cursor)
    except (FlowlineError, ValueError, ZoneInfoNotFoundError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    table = Table(title=f"{expression} ({zone_name})", show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Run at")
    for i, run in enumerate(runs, start=1):
        table.add_row(str(i), run.strftime("%Y-%m-%d %H:%M %a"))
    console.print(table)


if __name__ == "__main__":
    app()
