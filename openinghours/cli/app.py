"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import OpeningHoursConfig, get_default_config_path
from ..domain.exceptions import OpeningHoursError
from ..domain.opening_hours import OpeningHours

app = typer.Typer(
    name="openinghours",
    help="Query weekly opening hours with exceptions and closing periods",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./opening_hours.yaml")]
AtOption = Annotated[Optional[str], typer.Option("--at", help="Instant to query (ISO 8601). Defaults to now.")]
MaxDaysOption = Annotated[Optional[int], typer.Option("--max-days", help="Give up after searching this many days.")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    Opening hours command line tool.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _load_opening_hours(config_file: Optional[Path]) -> OpeningHours:
    """Load the engine from the config file, exiting with an error message on failure."""
    config_path = config_file or get_default_config_path()
    try:
        return OpeningHoursConfig.load_from_yaml(config_path).to_opening_hours()
    except (FileNotFoundError, ValueError, OpeningHoursError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


def _resolve_instant(opening_hours: OpeningHours, at: Optional[str]) -> DateTime:
    """Parse --at in the schedule's timezone, or take the current time."""
    tz = opening_hours.timezone
    if not at:
        return pendulum.now(tz) if tz else pendulum.now()

    try:
        return pendulum.parse(at, tz=tz or "UTC")
    except ValueError as e:
        console.print(f"[red]Could not parse instant '{at}': {escape(str(e))}[/red]")
        raise typer.Exit(1)


@app.command()
def is_open(config_file: ConfigOption = None, at: AtOption = None):
    """
    Tell whether the schedule is open at an instant.
    """
    opening_hours = _load_opening_hours(config_file)
    moment = _resolve_instant(opening_hours, at)

    if opening_hours.is_open_at(moment):
        console.print(f"[bold green]✓ Open[/bold green] at {moment.format('YYYY-MM-DD HH:mm')}")
    else:
        console.print(f"[bold yellow]✗ Closed[/bold yellow] at {moment.format('YYYY-MM-DD HH:mm')}")


def _print_next(opening_hours: OpeningHours, moment: DateTime, opening: bool, max_days: Optional[int]) -> None:
    search = opening_hours.next_open if opening else opening_hours.next_close
    label = "Opens" if opening else "Closes"

    try:
        found = search(moment, max_days=max_days)
    except OpeningHoursError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"[bold]{label}[/bold] {found.format('dddd, YYYY-MM-DD HH:mm')}")


@app.command()
def next_open(config_file: ConfigOption = None, at: AtOption = None, max_days: MaxDaysOption = 366):
    """
    Show when the schedule opens next.
    """
    opening_hours = _load_opening_hours(config_file)
    _print_next(opening_hours, _resolve_instant(opening_hours, at), opening=True, max_days=max_days)


@app.command()
def next_close(config_file: ConfigOption = None, at: AtOption = None, max_days: MaxDaysOption = 366):
    """
    Show when the schedule closes next.
    """
    opening_hours = _load_opening_hours(config_file)
    _print_next(opening_hours, _resolve_instant(opening_hours, at), opening=False, max_days=max_days)


@app.command()
def week(config_file: ConfigOption = None, at: AtOption = None):
    """
    Show the effective opening hours of the week containing an instant.
    """
    opening_hours = _load_opening_hours(config_file)
    moment = _resolve_instant(opening_hours, at)
    monday = moment.start_of("week")

    table = Table(
        title="Opening hours",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Day", style="bold yellow")
    table.add_column("Date", style="dim")
    table.add_column("Hours")

    for offset, (day, hours) in enumerate(opening_hours.for_week(moment).items()):
        table.add_row(
            day.display_name,
            monday.add(days=offset).format("YYYY-MM-DD"),
            ", ".join(str(time_range) for time_range in hours) or "closed"
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def regular(config_file: ConfigOption = None):
    """
    Show the regular weekly hours, grouping days with identical schedules.
    """
    opening_hours = _load_opening_hours(config_file)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Days", style="bold yellow")
    table.add_column("Hours")

    for group in opening_hours.for_week_combined().values():
        days = ", ".join(day.display_name for day in group["days"])
        table.add_row(days, str(group["opening_hours"]).replace(",", ", ") or "closed")

    console.print(table)


@app.command()
def structured_data(config_file: ConfigOption = None):
    """
    Print the schedule as schema.org OpeningHoursSpecification JSON.
    """
    opening_hours = _load_opening_hours(config_file)
    console.print_json(data=opening_hours.as_structured_data())


@app.command()
def validate(config_file: ConfigOption = None):
    """
    Check that the configuration builds.
    """
    config_path = config_file or get_default_config_path()
    try:
        opening_hours = OpeningHoursConfig.load_from_yaml(config_path).to_opening_hours()
    except (FileNotFoundError, ValueError, OpeningHoursError) as e:
        console.print(f"[bold red]✗ Invalid configuration:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    closed = ", ".join(day.display_name for day in opening_hours.regular_closing_days()) or "none"
    console.print(f"[green]✓ Configuration is valid[/green] (regular closing days: {closed})")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]openinghours[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
