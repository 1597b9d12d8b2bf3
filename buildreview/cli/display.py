"""Display components for CLI using Rich."""

from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from buildreview.models.issue import Issue, IssueKind

console = Console()

KIND_STYLES = {
    IssueKind.ERROR: "bold red",
    IssueKind.STATIC_ANALYSIS: "magenta",
    IssueKind.WARNING: "yellow",
}


def show_error(title: str, message: str) -> None:
    """Display an error message."""
    console.print()
    console.print(
        Panel(
            f"[bold red]{escape(message)}[/]",
            title=f"[bold]{escape(title)}[/]",
            border_style="red",
        )
    )


def show_success(title: str, message: str) -> None:
    """Display a success message."""
    console.print()
    console.print(
        Panel(
            f"[bold green]{escape(message)}[/]",
            title=f"[bold]{escape(title)}[/]",
            border_style="green",
        )
    )


def show_issues_table(issues: Sequence[Issue]) -> None:
    """Display issues grouped in a table."""
    if not issues:
        return
    table = Table(title="[bold]Issues[/]")
    table.add_column("Kind")
    table.add_column("Location", style="cyan")
    table.add_column("Description")

    for issue in issues:
        location = str(issue.file_path or "")
        if issue.line is not None:
            location += f":{issue.line}"
        table.add_row(
            f"[{KIND_STYLES[issue.kind]}]{issue.kind.value}[/]",
            escape(location),
            escape(issue.description),
        )
    console.print()
    console.print(table)


def show_artifacts(artifacts: Sequence[Path]) -> None:
    """Display the artifacts of a run."""
    if not artifacts:
        return
    console.print()
    console.print("[bold]Artifacts:[/]")
    for artifact in artifacts:
        console.print(f"  [cyan]{escape(str(artifact))}[/]")
