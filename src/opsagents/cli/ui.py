"""Shared Rich console and output helpers for the CLI."""

import questionary
from rich.console import Console
from rich.table import Table

from opsagents.core.deployments.aws_ecs.models import CleanupReport

console = Console()

QUESTIONARY_STYLE = questionary.Style(
    [
        ("qmark", "fg:#4f9dd9 bold"),
        ("question", "bold"),
        ("answer", "fg:#f5a623 bold"),
        ("instruction", "fg:#8a8a8a"),
    ]
)


def report_progress(message: str) -> None:
    """Print one progress line from a deployment workflow."""
    if message.lower().startswith("warning"):
        console.print(f"[yellow]{message}[/yellow]")
        return
    console.print(f"[dim]>[/dim] {message}")


def confirm(message: str, default: bool = False) -> bool:
    """Ask a yes/no question.

    Args:
        message: Question to show.
        default: Answer used when the user just presses enter.

    Returns:
        True when the user confirmed. Interrupting the prompt counts as no.
    """
    answer = questionary.confirm(message, default=default, style=QUESTIONARY_STYLE).ask()
    return bool(answer)


def cleanup_table(report: CleanupReport) -> Table:
    """Build a table of clean-up step outcomes.

    Args:
        report: Clean-up report to render.

    Returns:
        A Rich table with one row per step.
    """
    table = Table(title=f"Clean-up of {report.service_name}")
    table.add_column("Step", style="bold")
    table.add_column("Result")
    table.add_column("Details", overflow="fold")
    for outcome in report.outcomes:
        if outcome.succeeded:
            table.add_row(outcome.step, "[green]done[/green]", "")
        else:
            table.add_row(outcome.step, "[red]failed[/red]", outcome.error or "")
    return table
