"""
Main CLI application using Typer.

Runs the availability engine against a YAML fixture file, which is handy for
checking a tenant's configuration without a database.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.memory_repository import InMemoryBookingRepository
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import BookableError
from ..services.availability import AvailabilityService, Clock
from ..services.available_dates import AvailableDatesScanner

app = typer.Typer(
    name="bookable",
    help="Inspect bookable slots and dates from a booking fixture file",
    add_completion=False
)

console = Console()

DataOption = Annotated[Optional[Path], typer.Option("--data", "-f", help="Path to the YAML fixture file")]
ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./bookable.yaml")]
NowOption = Annotated[Optional[str], typer.Option("--now", help="Pretend the current instant is this ISO 8601 timestamp")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
):
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_repository(data_file: Optional[Path], config_file: Optional[Path]) -> InMemoryBookingRepository:
    """Resolve config and fixture paths and load the repository."""
    config_path = config_file or get_default_config_path()
    if config_file is not None or config_path.exists():
        config = AppConfig.load_from_yaml(config_path)
    else:
        config = AppConfig()

    fixture_path = data_file or config.data_file
    if fixture_path is None:
        raise ValueError("No fixture file given. Use --data or set data_file in the config.")

    return InMemoryBookingRepository.from_yaml(fixture_path, defaults=config.reservation)


def _build_clock(now: Optional[str]) -> Clock:
    if now is None:
        return pendulum.now

    fixed = pendulum.parse(now)
    if not isinstance(fixed, pendulum.DateTime):
        raise ValueError(f"--now must be a full timestamp, got {now!r}")
    return lambda: fixed


@app.command()
def slots(
    tenant: Annotated[int, typer.Option("--tenant", "-t", help="Tenant id")],
    service: Annotated[int, typer.Option("--service", "-s", help="Service id")],
    day: Annotated[str, typer.Option("--date", "-d", help="Date (YYYY-MM-DD)")],
    staff: Annotated[Optional[int], typer.Option("--staff", help="Staff id. Omit to combine all eligible staff.")] = None,
    data_file: DataOption = None,
    config_file: ConfigOption = None,
    now: NowOption = None,
):
    """
    Show the slots of one day.

    Examples:

        bookable slots -f demo.yaml -t 1 -s 10 -d 2024-11-25
        bookable slots -f demo.yaml -t 1 -s 10 -d 2024-11-25 --staff 3
    """
    try:
        repository = _load_repository(data_file, config_file)
        availability = AvailabilityService(repository, clock=_build_clock(now))
        day_slots = asyncio.run(availability.compute_day_slots(tenant, service, staff, day))
    except (BookableError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not day_slots:
        console.print("[yellow]⚠ No slots on this date.[/yellow]")
        return

    table = Table(title=f"Slots on {day}", show_header=True, header_style="bold cyan")
    table.add_column("Time", style="bold")
    table.add_column("Available")
    table.add_column("Staff", style="dim")

    for slot in day_slots:
        table.add_row(
            slot.time,
            "[green]yes[/green]" if slot.available else "[red]no[/red]",
            str(slot.staff_id) if slot.staff_id is not None else "",
        )

    console.print(table)


@app.command()
def dates(
    tenant: Annotated[int, typer.Option("--tenant", "-t", help="Tenant id")],
    service: Annotated[int, typer.Option("--service", "-s", help="Service id")],
    month: Annotated[int, typer.Option("--month", "-m", help="Month (1-12)")],
    year: Annotated[int, typer.Option("--year", "-y", help="Year")],
    staff: Annotated[Optional[int], typer.Option("--staff", help="Staff id. Omit to consider all eligible staff.")] = None,
    data_file: DataOption = None,
    config_file: ConfigOption = None,
    now: NowOption = None,
):
    """
    List the dates of a month that have at least one bookable slot.
    """
    try:
        repository = _load_repository(data_file, config_file)
        scanner = AvailableDatesScanner(repository, clock=_build_clock(now))
        available = asyncio.run(scanner.compute_available_dates(tenant, service, staff, month, year))
    except (BookableError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not available:
        console.print("[yellow]⚠ No bookable dates in this month.[/yellow]")
        return

    console.print(f"[bold green]✓ {len(available)} bookable date(s):[/bold green]")
    for available_date in available:
        console.print(f"  {available_date}")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]bookable[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
