"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import pendulum
import typer
from rich.console import Console
from rich.table import Table

from ..adapters.json_booking_store import JsonBookingStore
from ..adapters.memory_store import InMemoryBookingStore
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import OfferingNotFoundError, SlotEngineError, SlotNoLongerAvailableError
from ..domain.localizer import format_booking_time
from ..domain.models import Offering
from ..domain.slot_generator import SlotGenerator
from ..domain.timezones import get_timezone, parse_date
from ..services.availability_service import AvailabilityService, select_offering

app = typer.Typer(
    name="coachslots",
    help="Compute bookable coaching slots from a coach schedule",
    add_completion=False
)

console = Console()

WEEKDAY_NAMES = {
    0: "Sonntag",
    1: "Montag",
    2: "Dienstag",
    3: "Mittwoch",
    4: "Donnerstag",
    5: "Freitag",
    6: "Samstag",
}

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to coach config file. Defaults to ./coach.yaml"),
]
BookingsOption = Annotated[
    Optional[Path],
    typer.Option("--bookings", "-b", help="JSON export of the coach's bookings"),
]
OfferingOption = Annotated[
    Optional[str],
    typer.Option("--offering", "-o", help="Offering id. Defaults to the first active offering"),
]
ViewerTzOption = Annotated[
    Optional[str],
    typer.Option("--viewer-tz", help="IANA timezone of the student. Defaults to the coach timezone"),
]
NowOption = Annotated[
    Optional[str],
    typer.Option("--now", help="Reference instant (ISO 8601). Defaults to the current time"),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
):
    """
    Coach availability and slot resolution.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    return AppConfig.load_from_yaml(config_file or get_default_config_path())


def _build_service(config: AppConfig, bookings_file: Optional[Path]) -> AvailabilityService:
    store = JsonBookingStore(bookings_file) if bookings_file else InMemoryBookingStore()
    generator = SlotGenerator(granularity_minutes=config.defaults.granularity_minutes)
    return AvailabilityService(booking_store=store, slot_generator=generator)


def _pick_offering(config: AppConfig, offering_id: Optional[str]) -> Optional[Offering]:
    # Profiles without offerings fall back to the configured defaults.
    fallback = None if config.offerings else config.defaults.default_offering()
    return select_offering(config.domain_offerings(), offering_id, fallback=fallback)


def _parse_now(now: Optional[str]):
    if now is None:
        return pendulum.now("UTC")
    parsed = pendulum.parse(now, tz="UTC")
    if not isinstance(parsed, pendulum.DateTime):
        raise ValueError(f"--now must be a date-time, got {now!r}")
    return parsed


def _fail(error: Exception) -> NoReturn:
    console.print(f"[bold red]Fehler:[/bold red] {error}")
    raise typer.Exit(1)


@app.command()
def slots(
    day: Annotated[str, typer.Option("--date", "-d", help="Date in the coach calendar (YYYY-MM-DD)")],
    config_file: ConfigOption = None,
    bookings_file: BookingsOption = None,
    offering_id: OfferingOption = None,
    viewer_tz: ViewerTzOption = None,
    now: NowOption = None,
):
    """
    List bookable slots for one date.

    Examples:

        coachslots slots --date 2024-11-26

        coachslots slots --date 2024-11-26 --viewer-tz America/New_York -b bookings.json
    """
    try:
        config = _load_config(config_file)
        schedule = config.to_schedule()
        viewer_timezone = viewer_tz or schedule.timezone
        get_timezone(viewer_timezone)
        offering = _pick_offering(config, offering_id)
        service = _build_service(config, bookings_file)

        found = asyncio.run(
            service.available_slots(
                schedule=schedule,
                day=parse_date(day),
                offering=offering,
                viewer_timezone=viewer_timezone,
                now=_parse_now(now),
            )
        )
    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        _fail(e)

    console.print()
    console.print(f"[bold cyan]🗓️  Verfügbare Termine am {day}[/bold cyan]")
    if offering is not None:
        console.print(f"   Dauer: {offering.duration_minutes} Min. | Puffer: {offering.buffer_minutes} Min.\n")

    if not found:
        console.print(
            "[yellow]⚠ Keine verfügbaren Zeitslots für dieses Datum.[/yellow]\n"
            "Bitte ein anderes Datum wählen."
        )
        console.print()
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column(f"Coach ({schedule.timezone})", style="bold yellow")
    table.add_column(f"Teilnehmer ({viewer_timezone})")
    table.add_column("Datum (Teilnehmer)", style="dim")

    for slot in found:
        table.add_row(slot.coach_time, slot.viewer.time, slot.viewer.date)

    console.print(table)
    console.print()


@app.command()
def week(
    config_file: ConfigOption = None,
    viewer_tz: ViewerTzOption = None,
    day: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Any date in the week to preview (YYYY-MM-DD)"),
    ] = None,
):
    """
    Show the weekly schedule as seen from another timezone.
    """
    try:
        config = _load_config(config_file)
        schedule = config.to_schedule()
        viewer_timezone = viewer_tz or schedule.timezone
        reference = parse_date(day) if day else pendulum.today(schedule.timezone).date()
        service = _build_service(config, None)

        rules = service.preview_week(
            schedule=schedule,
            viewer_timezone=viewer_timezone,
            reference_date=reference,
        )
    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        _fail(e)

    table = Table(
        title=f"Wochenplan in {viewer_timezone}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Tag", style="bold yellow")
    table.add_column("Von")
    table.add_column("Bis")

    for rule in sorted(rules, key=lambda r: r.day_of_week):
        if rule.is_available:
            table.add_row(WEEKDAY_NAMES.get(rule.day_of_week, "?"), rule.start_time, rule.end_time)
        else:
            table.add_row(WEEKDAY_NAMES.get(rule.day_of_week, "?"), "[dim]-[/dim]", "[dim]-[/dim]")

    console.print()
    console.print(table)
    console.print()


@app.command()
def book(
    day: Annotated[str, typer.Option("--date", "-d", help="Date in the student calendar (YYYY-MM-DD)")],
    time: Annotated[str, typer.Option("--time", "-t", help="Selected start time (HH:mm), student-local")],
    config_file: ConfigOption = None,
    bookings_file: BookingsOption = None,
    offering_id: OfferingOption = None,
    viewer_tz: ViewerTzOption = None,
    now: NowOption = None,
):
    """
    Validate a student's selection and print the UTC interval to store.
    """
    try:
        config = _load_config(config_file)
        schedule = config.to_schedule()
        viewer_timezone = viewer_tz or schedule.timezone
        offering = _pick_offering(config, offering_id)
        if offering is None:
            raise OfferingNotFoundError("No active offering configured")
        service = _build_service(config, bookings_file)

        request = asyncio.run(
            service.prepare_booking(
                schedule=schedule,
                viewer_date=parse_date(day),
                viewer_slot=time,
                viewer_timezone=viewer_timezone,
                offering=offering,
                now=_parse_now(now),
            )
        )
    except SlotNoLongerAvailableError as e:
        console.print(f"[bold red]✗ Termin nicht verfügbar:[/bold red] {e}")
        raise typer.Exit(1)
    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        _fail(e)

    console.print()
    console.print("[bold green]✓ Termin verfügbar[/bold green]\n")
    console.print(f"   scheduledStart: {request.scheduled_start.to_iso8601_string()}")
    console.print(f"   scheduledEnd:   {request.scheduled_end.to_iso8601_string()}")
    console.print(f"   Coach:          {format_booking_time(request.scheduled_start, schedule.timezone)}")
    console.print(f"   Teilnehmer:     {format_booking_time(request.scheduled_start, viewer_timezone)}")
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]coachslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
