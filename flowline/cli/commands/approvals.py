"""Approval chain commands."""

import asyncio
from decimal import Decimal
from typing import Annotated

import typer
from rich.panel import Panel
from rich.table import Table

from flowline.cli.utils import colored, console, fmt_dt
from flowline.exceptions import FlowlineError

app = typer.Typer(
    name="approvals",
    help="Inspect and decide document approvals",
    no_args_is_help=True,
)


@app.command("chain")
def approvals_chain(
    document_type: Annotated[str, typer.Argument(help="Document type, e.g. mirv")],
    amount: Annotated[str, typer.Argument(help="Document amount")],
) -> None:
    """Show the approval levels an amount requires."""
    asyncio.run(_show_chain(document_type, Decimal(amount)))


async def _show_chain(document_type: str, amount: Decimal) -> None:
    from flowline.approvals.service import get_approval_chain

    chain = await get_approval_chain(document_type, amount)
    if not chain:
        console.print(f"[yellow]No approval configured for {document_type} at {amount}.[/yellow]")
        return

    table = Table(title=f"Approval chain: {document_type} @ {amount}", show_header=True)
    table.add_column("Level", justify="right")
    table.add_column("Role")
    table.add_column("SLA (h)", justify="right")
    for level in chain:
        table.add_row(str(level.level), level.approver_role, str(level.sla_hours))
    console.print(table)


@app.command("steps")
def approvals_steps(
    document_type: Annotated[str, typer.Argument(help="Document type")],
    document_id: Annotated[str, typer.Argument(help="Document ID")],
) -> None:
    """Show a document's approval steps."""
    asyncio.run(_show_steps(document_type, document_id))


async def _show_steps(document_type: str, document_id: str) -> None:
    from flowline.approvals.service import get_approval_steps

    steps = await get_approval_steps(document_type, document_id)
    if not steps:
        console.print("[dim]No approval steps found.[/dim]")
        return

    table = Table(title=f"{document_type} {document_id}", show_header=True)
    table.add_column("Level", justify="right")
    table.add_column("Role")
    table.add_column("Status")
    table.add_column("Approver")
    table.add_column("Decided")
    table.add_column("Notes", max_width=40)
    for step in steps:
        table.add_row(
            str(step.level),
            step.approver_role,
            colored(step.status),
            step.approver.full_name if step.approver else "-",
            fmt_dt(step.decided_at),
            step.notes or "",
        )
    console.print(table)


@app.command("pending")
def approvals_pending(
    user_id: Annotated[str, typer.Argument(help="Employee ID")],
) -> None:
    """List approvals waiting on a user."""
    asyncio.run(_show_pending(user_id))


async def _show_pending(user_id: str) -> None:
    from flowline.approvals.service import get_pending_approvals_for_user

    steps = await get_pending_approvals_for_user(user_id)
    if not steps:
        console.print("[dim]Nothing awaiting approval.[/dim]")
        return

    table = Table(title=f"Pending approvals ({len(steps)})", show_header=True)
    table.add_column("Document")
    table.add_column("ID", style="cyan")
    table.add_column("Level", justify="right")
    table.add_column("Role")
    for step in steps:
        table.add_row(step.document_type, step.document_id, str(step.level), step.approver_role)
    console.print(table)


@app.command("submit")
def approvals_submit(
    document_type: Annotated[str, typer.Argument(help="Document type")],
    document_id: Annotated[str, typer.Argument(help="Document ID")],
    amount: Annotated[str, typer.Argument(help="Document amount")],
    submitted_by: Annotated[str, typer.Option("--by", help="Submitting employee ID")],
) -> None:
    """Submit a document for approval."""
    from flowline.approvals.service import submit_for_approval

    try:
        required = asyncio.run(
            submit_for_approval(document_type, document_id, Decimal(amount), submitted_by)
        )
    except FlowlineError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    console.print(
        Panel(
            f"[bold]{document_type} {document_id}[/bold] is pending approval.\n"
            f"Highest level required: {required.level} ({required.approver_role})",
            title="Submitted",
            border_style="green",
        )
    )


@app.command("decide")
def approvals_decide(
    document_type: Annotated[str, typer.Argument(help="Document type")],
    document_id: Annotated[str, typer.Argument(help="Document ID")],
    action: Annotated[str, typer.Argument(help="approve or reject")],
    processed_by: Annotated[str, typer.Option("--by", help="Deciding employee ID")],
    comments: Annotated[str | None, typer.Option("--comments", "-c", help="Notes")] = None,
) -> None:
    """Approve or reject a document's current step."""
    from flowline.approvals.service import process_approval

    try:
        outcome = asyncio.run(
            process_approval(document_type, document_id, action, processed_by, comments)
        )
    except FlowlineError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    message = f"Level {outcome.decided_level} decided; document is {colored(outcome.document_status)}"
    if outcome.next_level is not None:
        message += f"\nAwaiting level {outcome.next_level} ({outcome.next_role})"
    console.print(message)
