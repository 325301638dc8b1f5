"""Shared CLI helpers."""

from rich.console import Console

console = Console()

STATUS_COLORS = {
    "pending": "yellow",
    "approved": "green",
    "rejected": "red",
    "skipped": "dim",
    "success": "green",
    "failed": "red",
}


def colored(status: str) -> str:
    color = STATUS_COLORS.get(status, "white")
    return f"[{color}]{status}[/{color}]"


def fmt_dt(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M %Z").strip() if value else "-"
