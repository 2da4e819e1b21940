"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional, Tuple

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..adapters.memory_store import InMemoryStore
from ..adapters.rest_store import RestStoreClient
from ..config import AppConfig, load_config
from ..domain.exceptions import When2JamError
from ..domain.models import DateRange
from ..services.jam_session import JamSession

app = typer.Typer(
    name="when2jam",
    help="Paint when you are free and see when the group is free",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use the local JSON store instead of the hosted backend.")]
UserOption = Annotated[Optional[str], typer.Option("--user", "-u", help="Your name")]
FreeOption = Annotated[Optional[List[str]], typer.Option("--free", "-f", help="Drag over slots: 'A-B' from slot A to slot B, or a single slot 'A'. Repeatable.")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    when2jam - group availability heat-maps.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _build_store(config: AppConfig, mock: bool):
    if mock:
        console.print(f"[yellow]⚠  MOCK MODE: using {config.store.mock_data_file}[/yellow]\n")
        return InMemoryStore(data_file=config.store.mock_data_file)
    return RestStoreClient.from_config(config.store, timezone=config.timezone)


def _parse_drags(specs: List[str]) -> List[Tuple[int, int]]:
    """Parse '--free' values into (start, stop) slot pairs."""
    drags = []
    for spec in specs:
        start_str, _, stop_str = spec.partition("-")
        try:
            start = int(start_str)
            stop = int(stop_str) if stop_str else start
        except ValueError:
            raise typer.BadParameter(f"Invalid slot range '{spec}', expected 'A-B' or 'A'")
        drags.append((start, stop))
    return drags


def _parse_date(value: str, tz: str):
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Could not parse date '{value}': {e}[/red]")
        raise typer.Exit(1)


def _fail(e: Exception):
    console.print(f"[bold red]Error:[/bold red] {e}")
    raise typer.Exit(1)


def _apply_drags(session: JamSession, drags: List[Tuple[int, int]]) -> None:
    for start, stop in drags:
        mode = session.my_grid.drag(start, stop)
        verb = "filled" if mode else "cleared"
        console.print(f"  {verb} slots {min(start, stop)}-{max(start, stop)}")


def _heat_style(level: float) -> str:
    if level <= 0:
        return "dim"
    if level <= 0.25:
        return "on grey30"
    if level <= 0.5:
        return "on grey50"
    if level <= 0.75:
        return "black on grey70"
    return "bold black on white"


def _render_heatmap(session: JamSession, show_indexes: bool = False) -> Table:
    """Build a day-by-time table shaded by how many people are free."""
    calculator = session.calculator
    grid = calculator.grid
    date_range = calculator.date_range
    heatmap = session.heatmap
    total = session.valid_response_count
    mine = session.my_grid.snapshot() if session.user_name.strip() else None

    table = Table(
        title=f"{session.event_name} ({total} response{'s' if total != 1 else ''})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("", justify="right", style="bold")
    for day_index in range(date_range.days_inclusive()):
        day = date_range.date_at(day_index)
        table.add_column(day.format("ddd M/D", locale="en"), justify="center")

    for time_index in range(grid.slots_per_day):
        cells = [grid.row_label(time_index)]
        for day_index in range(date_range.days_inclusive()):
            index = grid.slot_index(day_index, time_index)
            count = heatmap[index]
            text = str(index) if show_indexes else (str(count) if count else "·")
            style = _heat_style(count / max(total, 1))
            if mine is not None and mine[index]:
                style = "bold black on green"
            cells.append(Text(text, style=style))
        table.add_row(*cells)

    return table


@app.command()
def create(
    name: Annotated[str, typer.Argument(help="Event name. Blank uses the configured default.")] = "",
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD). Defaults to today.")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD).")] = None,
    user: UserOption = None,
    free: FreeOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Create an event and save your availability for it.

    Examples:

        when2jam create "Band practice" --start 2024-11-25 --end 2024-11-27 --user alice --free 0-5

        when2jam create --mock --user bob --free 4 --free 10-12
    """
    try:
        config = load_config(config_file)
        store = _build_store(config, mock)
        tz = config.timezone

        session = JamSession(store, config, user_name=user or "")
        session.new_draft(pendulum.today(tz).date(), name=name)

        if start or end:
            start_date = _parse_date(start, tz) if start else session.selector.start
            end_date = (
                _parse_date(end, tz) if end
                else start_date.add(days=config.default_span_days - 1)
            )
            session.set_range(DateRange(start=start_date, end=end_date))

        if not session.user_name.strip():
            session.user_name = typer.prompt("→ Your name")

        console.print(f"[bold]Dates:[/bold] {session.date_range}")
        _apply_drags(session, _parse_drags(free or []))

        event = asyncio.run(session.save())

        console.print(Panel.fit(
            f"[bold green]✓ Event created![/bold green]\n\n"
            f"[bold]Name:[/bold] {event.name}\n"
            f"[bold]ID:[/bold] {event.id}\n"
            f"[bold]Link:[/bold] {session.share_link()}",
            title="when2jam"
        ))

    except (FileNotFoundError, ValueError, When2JamError) as e:
        _fail(e)


@app.command()
def paint(
    event_id: Annotated[str, typer.Argument(help="Event ID")],
    user: UserOption = None,
    free: FreeOption = None,
    fresh: Annotated[bool, typer.Option("--fresh", help="Start from a blank grid instead of your saved availability.")] = False,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Paint slots of an existing event and save them as your availability.

    Each --free drag takes its mode from its first slot: a busy first slot
    fills the whole drag, a free one clears it.
    """
    try:
        config = load_config(config_file)
        store = _build_store(config, mock)

        session = JamSession(store, config, user_name=user or "")
        if not session.user_name.strip():
            session.user_name = typer.prompt("→ Your name")

        async def run():
            await session.load_event(event_id)
            if not fresh and session.load_saved_availability():
                console.print("[dim]Continuing from your saved availability.[/dim]")
            _apply_drags(session, _parse_drags(free or []))
            await session.save()

        asyncio.run(run())
        console.print(f"[green]✓ Saved![/green] {session.valid_response_count} response(s) so far.")

    except (FileNotFoundError, ValueError, When2JamError) as e:
        _fail(e)


@app.command()
def show(
    event_id: Annotated[str, typer.Argument(help="Event ID")],
    user: UserOption = None,
    indexes: Annotated[bool, typer.Option("--indexes", help="Print slot indexes instead of counts.")] = False,
    top: Annotated[int, typer.Option("--top", help="Number of best slots to list.")] = 3,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show the group heat-map of an event.
    """
    try:
        config = load_config(config_file)
        store = _build_store(config, mock)

        session = JamSession(store, config, user_name=user or "")
        asyncio.run(session.load_event(event_id))
        if session.user_name.strip():
            session.load_saved_availability()

        console.print()
        console.print(_render_heatmap(session, show_indexes=indexes))

        best = session.calculator.best_slots(session.responses, limit=top)
        if best:
            console.print("\n[bold cyan]Best slots:[/bold cyan]")
            for index, count in best:
                details = session.details(index)
                console.print(
                    f"  [{index}] {details.label.format_display()}: "
                    f"{count}/{session.valid_response_count} ({', '.join(details.free)})"
                )
        else:
            console.print("\n[yellow]⚠ Nobody has marked any slot free yet.[/yellow]")
        console.print(f"\n[dim]{session.share_link()}[/dim]\n")

    except (FileNotFoundError, ValueError, When2JamError) as e:
        _fail(e)


@app.command()
def who(
    event_id: Annotated[str, typer.Argument(help="Event ID")],
    index: Annotated[int, typer.Argument(help="Slot index")],
    user: UserOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List who is free in one slot.
    """
    try:
        config = load_config(config_file)
        store = _build_store(config, mock)

        session = JamSession(store, config, user_name=user or "")
        asyncio.run(session.load_event(event_id))
        if session.user_name.strip():
            session.load_saved_availability()

        details = session.details(index)
        console.print(f"[bold green]{details.label.format_display()}[/bold green]")
        if details.free:
            for name in details.free:
                console.print(f"  {name}")
        else:
            console.print("  [dim italic]No one available[/dim italic]")

    except (FileNotFoundError, ValueError, When2JamError) as e:
        _fail(e)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]when2jam[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
