"""Scheduled rule commands."""

import asyncio
from typing import Annotated

import typer
from rich.table import Table

from flowline.cli.utils import colored, console, fmt_dt

app = typer.Typer(
    name="rules",
    help="Inspect and run scheduled workflow rules",
    no_args_is_help=True,
)


@app.command("init")
def rules_init() -> None:
    """Compute the first run time for rules that have none."""
    from flowline.scheduler.rules import initialize_scheduled_rules

    count = asyncio.run(initialize_scheduled_rules())
    console.print(f"[green]Initialized {count} rule(s).[/green]")


@app.command("run")
def rules_run() -> None:
    """Process every due rule once."""
    from flowline.scheduler.rules import process_scheduled_rules

    count = asyncio.run(process_scheduled_rules())
    console.print(f"[green]Executed {count} rule(s).[/green]")


@app.command("list")
def rules_list() -> None:
    """List rules that run on a cron schedule."""
    asyncio.run(_list_rules())


async def _list_rules() -> None:
    from flowline.dal.workflow_rules import WorkflowRuleRepository
    from flowline.storage import get_session

    async with get_session() as session:
        rules = await WorkflowRuleRepository(session).list_scheduled()

    if not rules:
        console.print("[dim]No scheduled rules found.[/dim]")
        return

    table = Table(title=f"Scheduled Rules ({len(rules)})", show_header=True)
    table.add_column("ID", style="cyan", max_width=12)
    table.add_column("Name", max_width=30)
    table.add_column("Workflow")
    table.add_column("Cron")
    table.add_column("Next Run")
    table.add_column("Active")

    for rule in rules:
        workflow = rule.workflow
        table.add_row(
            rule.id[:12],
            rule.name[:30],
            f"{workflow.name} ({workflow.entity_type})" if workflow else "-",
            rule.cron_expression or "-",
            fmt_dt(rule.next_run_at),
            "yes" if rule.is_active and (workflow is None or workflow.is_active) else "no",
        )

    console.print(table)


@app.command("history")
def rules_history(
    rule_id: Annotated[str, typer.Argument(help="Rule ID")],
    limit: Annotated[int, typer.Option("--limit", "-l", help="Maximum entries")] = 20,
) -> None:
    """Show recent executions of a rule."""
    asyncio.run(_rule_history(rule_id, limit))


async def _rule_history(rule_id: str, limit: int) -> None:
    from flowline.dal.workflow_rules import ExecutionLogRepository
    from flowline.storage import get_session

    async with get_session() as session:
        entries = await ExecutionLogRepository(session).list_for_rule(rule_id, limit=limit)

    if not entries:
        console.print(f"[dim]No executions recorded for rule {rule_id}.[/dim]")
        return

    table = Table(title=f"Executions of {rule_id[:12]}", show_header=True)
    table.add_column("When")
    table.add_column("Result")
    table.add_column("Actions")
    table.add_column("Error", max_width=50)

    for entry in entries:
        actions = ", ".join(f"{a['type']}:{a['status']}" for a in entry.actions_run)
        table.add_row(
            fmt_dt(entry.executed_at),
            colored("success" if entry.success else "failed"),
            actions or "-",
            entry.error or "",
        )

    console.print(table)
