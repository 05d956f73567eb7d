#!/usr/bin/env python3
"""
Work interval logger CLI

Records start/end times per day under ~/.worklog (or WORKLOG_STATE_DIR). Intervals
that run past midnight are stored as two linked entries and edited or deleted as
one interval.
"""

import os
from pathlib import Path
from typing import List, Optional

import click
from dotenv import load_dotenv
from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.key_binding import KeyBindings
from rich.console import Console
from rich.table import Table
from rich.text import Text

from approval import ApprovalRequest, display_entries_preview, request_approval
from clock import STEP_MINUTES, duration, rounded_now, today
from edit_session import EditMode, EditSession
from entry import TimeEntry
from entry_store import EntryStore, EntryValidationError
from storage import EntryRepository, JsonFileStore
from timeline_projector import SECOND_HALF_DATE_OFFSET_DAYS, DayGroup, project_timeline

load_dotenv()

console = Console()
DEFAULT_STATE_DIR = Path.home() / ".worklog"
CANCEL_TRIGGER = "__CANCEL__"
OPEN_END_LABEL = "⏳ open"
HOUR_MARKS = range(0, 24, 3)
DEFAULT_TIMELINE_WIDTH = 48


def _int_setting(name: str, default: int, minimum: Optional[int] = None) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        console.print(f"[yellow]Ignoring {name}={raw!r}: not a whole number, using {default}.[/yellow]")
        return default
    if minimum is not None and value < minimum:
        console.print(f"[yellow]Ignoring {name}={raw!r}: must be at least {minimum}, using {default}.[/yellow]")
        return default
    return value


def _offset_days() -> int:
    return _int_setting("WORKLOG_SECOND_HALF_OFFSET_DAYS", SECOND_HALF_DATE_OFFSET_DAYS)


def _timeline_width() -> int:
    return _int_setting("WORKLOG_TIMELINE_WIDTH", DEFAULT_TIMELINE_WIDTH, minimum=1)


def _open_store(state_dir: Path) -> EntryStore:
    repository = EntryRepository(JsonFileStore(state_dir))
    return EntryStore(repository, second_half_offset_days=_offset_days())


def _report_save(store: EntryStore) -> None:
    if store.last_save is not None and not store.last_save.ok:
        console.print("[yellow]Warning: changes are kept for this run but could not be written to disk.[/yellow]")


def _print_entries(entries: List[TimeEntry], store: EntryStore) -> None:
    for entry in entries:
        end = entry.end or OPEN_END_LABEL
        console.print(
            f"  [dim]#{entry.id}[/dim] {store.adjusted_date(entry)} "
            f"[green]{entry.start}[/green] - [green]{end}[/green] ({duration(entry.start, entry.end)})"
        )
    if len(entries) == 2 and store.pair_for(entries[0].id) is not None:
        console.print("[dim]Interval crosses midnight; stored as two linked entries.[/dim]")


def _interactive_edit(session: EditSession) -> Optional[str]:
    """Step the pending value with +/-; returns None when cancelled."""
    bindings = KeyBindings()

    @bindings.add("+")
    def _later(event):
        session.step(STEP_MINUTES)
        event.app.invalidate()

    @bindings.add("-")
    def _earlier(event):
        session.step(-STEP_MINUTES)
        event.app.invalidate()

    @bindings.add("escape", eager=True)
    def _cancel(event):
        event.app.exit(result=CANCEL_TRIGGER)

    label = "Start" if session.mode is EditMode.START else "End"

    def _toolbar():
        return HTML(
            f"<style fg='ansigray'>{label}: </style><b>{session.value}</b> | "
            f"<style fg='ansigray'>+/- = {STEP_MINUTES} min • Enter = save • Esc = cancel • or type HH:MM</style>"
        )

    prompt_session = PromptSession()
    try:
        user_input = prompt_session.prompt(
            HTML("<ansigray>> </ansigray>"),
            key_bindings=bindings,
            bottom_toolbar=_toolbar,
        )
    except (KeyboardInterrupt, EOFError):
        return None

    if user_input == CANCEL_TRIGGER:
        return None
    if user_input.strip():
        session.set_value(user_input)
    return session.value


@click.group()
@click.option(
    "--state-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="WORKLOG_STATE_DIR",
    default=DEFAULT_STATE_DIR,
    show_default=True,
    help="Directory holding the entry and split files.",
)
@click.pass_context
def cli(ctx: click.Context, state_dir: Path) -> None:
    """Log work intervals across days."""
    ctx.obj = _open_store(state_dir)


@cli.command()
@click.option("--date", "day", default=None, help="Day to log under (YYYY-MM-DD). Defaults to today.")
@click.option("--at", "at", default=None, help="Start time HH:MM. Defaults to now, rounded to 5 minutes.")
@click.option("--yes", is_flag=True, help="Do not ask when another entry is still open.")
@click.pass_obj
def start(store: EntryStore, day: Optional[str], at: Optional[str], yes: bool) -> None:
    """Open a new entry."""
    if store.has_open_entry and not yes:
        request = ApprovalRequest(
            action="Start another entry",
            description="There is already an unfinished entry. Start a new one anyway?",
            data=store.open_entries(),
            preview_func=display_entries_preview,
        )
        if not request_approval(request):
            return

    try:
        entry = store.open_new(day or today(), at or rounded_now())
    except EntryValidationError as err:
        raise click.ClickException(str(err))
    console.print(f"[green]✓ Started[/green] #{entry.id} at {entry.start} on {entry.date}")
    _report_save(store)


@cli.command()
@click.option("--at", "at", default=None, help="End time HH:MM. Defaults to now, rounded to 5 minutes.")
@click.pass_obj
def end(store: EntryStore, at: Optional[str]) -> None:
    """Close the open entry."""
    open_entry = store.find_open_entry()
    if open_entry is None:
        console.print("[yellow]No open entry.[/yellow]")
        return

    try:
        entries = store.close_open(open_entry.id, at or rounded_now())
    except EntryValidationError as err:
        raise click.ClickException(str(err))
    console.print("[green]✓ Closed[/green]")
    _print_entries(entries, store)
    _report_save(store)


@cli.command()
@click.argument("entry_id", type=int)
@click.argument("field", type=click.Choice([EditMode.START.value, EditMode.END.value]))
@click.option("--value", default=None, help="New time HH:MM. Without it, edit interactively.")
@click.pass_obj
def edit(store: EntryStore, entry_id: int, field: str, value: Optional[str]) -> None:
    """Change the start or end time of an entry."""
    if store.get(entry_id) is None:
        console.print(f"[yellow]No entry with id {entry_id}.[/yellow]")
        return

    session = EditSession(store)
    session.begin(entry_id, EditMode(field))
    if value is not None:
        session.set_value(value)
    elif _interactive_edit(session) is None:
        session.cancel()
        console.print("Edit cancelled.")
        return

    try:
        entries = session.save()
    except EntryValidationError as err:
        raise click.ClickException(str(err))
    console.print("[green]✓ Updated[/green]")
    _print_entries(entries, store)
    _report_save(store)


@cli.command()
@click.argument("entry_id", type=int)
@click.option("--yes", is_flag=True, help="Delete without asking.")
@click.pass_obj
def delete(store: EntryStore, entry_id: int, yes: bool) -> None:
    """Delete an entry, together with its other half if it was split."""
    pair = store.pair_for(entry_id)
    affected_ids = pair.member_ids if pair is not None else (entry_id,)
    affected = [entry for entry in store.entries if entry.id in affected_ids]
    if not affected and pair is None:
        console.print(f"[yellow]No entry with id {entry_id}.[/yellow]")
        return

    if not yes:
        description = "Delete this entry?"
        if pair is not None:
            description = "This interval crosses midnight. Both linked entries will be deleted."
        request = ApprovalRequest(
            action="Delete entry",
            description=description,
            data=affected,
            preview_func=display_entries_preview,
        )
        if not request_approval(request):
            return

    removed = store.delete_entry(entry_id)
    console.print(f"[green]✓ Deleted {len(removed)} entr{'y' if len(removed) == 1 else 'ies'}[/green]")
    _report_save(store)


@cli.command()
@click.argument("day")
@click.argument("start_time", default="12:00")
@click.argument("end_time", default="12:00")
@click.pass_obj
def add(store: EntryStore, day: str, start_time: str, end_time: str) -> None:
    """Backfill a closed entry for DAY."""
    try:
        entries = store.add_fixed_entry(day, start_time, end_time)
    except EntryValidationError as err:
        raise click.ClickException(str(err))
    console.print("[green]✓ Added[/green]")
    _print_entries(entries, store)
    _report_save(store)


def _day_groups(store: EntryStore) -> List[DayGroup]:
    return project_timeline(store.entries, store.split_index, offset_days=store.second_half_offset_days)


@cli.command("list")
@click.pass_obj
def list_entries(store: EntryStore) -> None:
    """Show entries grouped by day."""
    groups = _day_groups(store)
    if not groups:
        console.print("[yellow]No entries yet.[/yellow]")
        return

    for group in groups:
        table = Table(
            show_header=True,
            header_style="bold magenta",
            title=f"{group.weekday} {group.date}  {group.completed}/{len(group.entries)}  {group.total}",
            title_justify="left",
        )
        table.add_column("ID", style="dim")
        table.add_column("Start", style="green")
        table.add_column("End", style="green")
        table.add_column("Duration", style="yellow")
        table.add_column("Split", style="blue")

        for entry in group.entries:
            pair = store.pair_for(entry.id)
            split_label = ""
            if pair is not None:
                split_label = "1/2" if pair.first_id == entry.id else "2/2"
            table.add_row(
                str(entry.id),
                entry.start,
                entry.end or OPEN_END_LABEL,
                duration(entry.start, entry.end),
                split_label,
            )
        console.print(table)


def _hour_scale(width: int) -> Text:
    scale = [" "] * (width + 2)
    for hour in HOUR_MARKS:
        label = str(hour)
        position = int(round(hour / 24 * width))
        for offset, char in enumerate(label):
            if position + offset < len(scale):
                scale[position + offset] = char
    return Text("".join(scale).rstrip(), style="dim")


def render_bars(group: DayGroup, width: int) -> Text:
    cells = [("·", "dim")] * width
    for bar in group.bars:
        left, span = bar.scaled(width)
        first_cell = min(width - 1, int(round(left)))
        last_cell = min(width, first_cell + max(1, int(round(span))))
        mark = ("▒", "yellow") if bar.is_open else ("█", "green")
        cells[first_cell:last_cell] = [mark] * (last_cell - first_cell)

    line = Text()
    for char, style in cells:
        line.append(char, style=style)
    return line


@cli.command()
@click.option("--width", type=int, default=None, help="Timeline width in characters.")
@click.pass_obj
def timeline(store: EntryStore, width: Optional[int]) -> None:
    """Draw a day timeline per date."""
    width = width or _timeline_width()
    groups = _day_groups(store)
    if not groups:
        console.print("[yellow]No entries yet.[/yellow]")
        return

    console.print(Text(" " * 15) + _hour_scale(width))
    for group in groups:
        label = Text(f"{group.weekday} {group.date}  ", style="cyan")
        console.print(label + render_bars(group, width) + Text(f"  {group.total}", style="yellow"))


if __name__ == "__main__":
    cli()
