"""
Confirmation prompts for destructive or unusual operations
"""

from typing import Any, Callable, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from clock import duration
from entry import TimeEntry

console = Console()


class ApprovalRequest:
    """Represents a request for user confirmation"""
    def __init__(self, action: str, description: str, data: Any = None, preview_func: Optional[Callable] = None):
        self.action = action
        self.description = description
        self.data = data
        self.preview_func = preview_func


def display_entries_preview(entries: List[TimeEntry]) -> None:
    """Display the entries an operation will touch"""
    if not entries:
        console.print("[yellow]No entries affected[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Start", style="green")
    table.add_column("End", style="green")
    table.add_column("Duration", style="yellow")

    for entry in entries:
        table.add_row(str(entry.id), entry.date, entry.start, entry.end or "open", duration(entry.start, entry.end))

    console.print(table)


def _show_preview(request: ApprovalRequest) -> None:
    try:
        request.preview_func(request.data)
    except Exception as e:
        console.print(f"[red]Error displaying preview: {e}[/red]")


def request_approval(request: ApprovalRequest) -> bool:
    """
    Ask the user to confirm an operation.

    Returns:
        True if the user approved, False if denied.
    """
    console.print()
    console.print(
        Panel(
            f"Action: [bold cyan]{request.action}[/bold cyan]\n{request.description}",
            border_style="yellow",
            title="[bold yellow]Please confirm[/bold yellow]",
            title_align="left",
        )
    )

    has_preview = request.preview_func is not None and request.data
    if has_preview:
        _show_preview(request)

    while True:
        console.print("  [green]y[/green] / [green]yes[/green] - proceed")
        console.print("  [red]n[/red] / [red]no[/red] - cancel")
        console.print("  [yellow]s[/yellow] / [yellow]show[/yellow] - show affected entries again")

        response = input("Your decision: ").strip().lower()

        if response in ["y", "yes"]:
            return True

        elif response in ["n", "no", ""]:
            console.print("[red]✗ Cancelled[/red]")
            return False

        elif response in ["s", "show"]:
            if has_preview:
                _show_preview(request)
            else:
                console.print("[yellow]No preview available[/yellow]")

        else:
            console.print("[red]Invalid option. Please enter y/yes, n/no, or s/show[/red]")
