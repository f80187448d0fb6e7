"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.job_store import JsonJobStore
from ..config import AppConfig, load_config
from ..domain.exceptions import SchedulingError
from ..domain.formatting import format_conflict_message, format_duration
from ..domain.models import AlternativeSuggestion, AvailabilitySlot, WorkingHoursPolicy
from ..services.scheduler import ScheduleService

app = typer.Typer(
    name="handyschedule",
    help="Check handyman bookings for conflicts and find free dates",
    add_completion=False
)

console = Console()

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load(config_file: Optional[Path], verbose: bool) -> AppConfig:
    config = load_config(config_file)
    _setup_logging("DEBUG" if verbose else config.log_level)
    return config


def _build_service(config: AppConfig) -> ScheduleService:
    store = JsonJobStore(config.data_file, timezone=config.timezone)
    return ScheduleService(
        store,
        timezone=config.timezone,
        store_timeout=config.defaults.store_timeout_seconds,
        default_policy=config.defaults.working_hours_policy(),
    )


def _parse_datetime(value: str, tz: str) -> DateTime:
    """Parse an ISO 8601 date or date-time in the configured timezone."""
    try:
        parsed = pendulum.parse(value, tz=tz)
    except ValueError as e:
        raise typer.BadParameter(f"Could not parse date '{value}': {e}")

    if not isinstance(parsed, DateTime):
        raise typer.BadParameter(f"Expected a date or date-time, got '{value}'")

    return parsed


def _fail(error: Exception) -> None:
    if isinstance(error, SchedulingError) and error.handyman_id:
        console.print(
            f"[bold red]Error:[/bold red] {error} "
            f"[dim](handyman {error.handyman_id}, {error.operation})[/dim]"
        )
    else:
        console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


def _print_suggestions(suggestions: List[AlternativeSuggestion]) -> None:
    if not suggestions:
        console.print("[yellow]⚠ No alternative dates found.[/yellow]")
        return

    table = Table(title="Alternative dates", show_header=True, header_style="bold cyan")
    table.add_column("Date", style="bold yellow")
    table.add_column("Label")
    table.add_column("Weekday", style="dim")

    for suggestion in suggestions:
        table.add_row(
            suggestion.date.format("YYYY-MM-DD HH:mm"),
            suggestion.label,
            suggestion.day_of_week,
        )

    console.print(table)


def _print_slots(title: str, slots: List[AvailabilitySlot], show_date: bool) -> None:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    if show_date:
        table.add_column("Date", style="bold yellow")
    table.add_column("Hours")
    table.add_column("Status")
    table.add_column("Jobs", justify="right")

    for slot in slots:
        status = "[green]free[/green]" if slot.available else "[red]busy[/red]"
        row = [slot.label(), status, str(slot.conflict_count)]
        if show_date:
            row.insert(0, slot.date.format("ddd YYYY-MM-DD", locale="en"))
        table.add_row(*row)

    console.print(table)


@app.command()
def check(
    handyman: Annotated[str, typer.Argument(help="Handyman id")],
    start: Annotated[str, typer.Option("--start", "-s", help="Desired start (YYYY-MM-DDTHH:mm)")],
    duration: Annotated[Optional[float], typer.Option("--duration", "-d", help="Job duration in hours")] = None,
    exclude: Annotated[Optional[str], typer.Option("--exclude", help="Job id to ignore, e.g. the booking being edited")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Check a booking for conflicts and suggest alternatives when it clashes.
    """
    try:
        config = _load(config_file, verbose)
        service = _build_service(config)
        desired = _parse_datetime(start, config.timezone)
        hours = duration if duration is not None else config.defaults.job_duration_hours

        result = asyncio.run(
            service.validate_booking(handyman, desired, hours, exclude_job_id=exclude)
        )
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print()
    if result.valid:
        console.print(
            f"[bold green]✓ {handyman} is free on {desired.format('YYYY-MM-DD HH:mm')} "
            f"for {format_duration(hours)}.[/bold green]"
        )
        console.print()
        return

    console.print(f"[bold red]✗ {format_conflict_message(result.conflicts)}[/bold red]\n")
    for job in result.conflicts:
        window = job.window()
        console.print(f"  • {job.title} [dim]({job.id}, {job.status})[/dim] {window}")
    console.print()
    _print_suggestions(result.suggestions)
    console.print()


@app.command()
def availability(
    handyman: Annotated[str, typer.Argument(help="Handyman id")],
    start: Annotated[Optional[str], typer.Option("--start", help="First day (YYYY-MM-DD). Defaults to today")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Last day (YYYY-MM-DD). Defaults to start + 7 days")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Show day-by-day availability. Days off are not listed.
    """
    try:
        config = _load(config_file, verbose)
        service = _build_service(config)
        range_start = _parse_datetime(start, config.timezone) if start else service.now().start_of("day")
        range_end = _parse_datetime(end, config.timezone) if end else range_start.add(days=7)

        slots = asyncio.run(service.get_availability(handyman, range_start, range_end))
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print()
    _print_slots(f"Availability for {handyman}", slots, show_date=True)
    console.print()


@app.command()
def slots(
    handyman: Annotated[str, typer.Argument(help="Handyman id")],
    date: Annotated[str, typer.Option("--date", help="Day to inspect (YYYY-MM-DD)")],
    slot_hours: Annotated[Optional[float], typer.Option("--slot-hours", help="Slot length in hours")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Split one working day into fixed slots and mark the busy ones.
    """
    try:
        config = _load(config_file, verbose)
        service = _build_service(config)
        day = _parse_datetime(date, config.timezone)
        hours = slot_hours if slot_hours is not None else config.defaults.slot_duration_hours

        day_slots = asyncio.run(service.get_available_time_slots(handyman, day, slot_hours=hours))
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print()
    if not day_slots:
        console.print(f"[yellow]{day.format('dddd YYYY-MM-DD', locale='en')} is a day off.[/yellow]\n")
        return

    _print_slots(f"{handyman} on {day.format('dddd YYYY-MM-DD', locale='en')}", day_slots, show_date=False)
    console.print()


@app.command()
def suggest(
    handyman: Annotated[str, typer.Argument(help="Handyman id")],
    start: Annotated[str, typer.Option("--start", "-s", help="Desired start (YYYY-MM-DDTHH:mm)")],
    duration: Annotated[Optional[float], typer.Option("--duration", "-d", help="Job duration in hours")] = None,
    days: Annotated[Optional[int], typer.Option("--days", help="Days to search in each direction")] = None,
    max_results: Annotated[Optional[int], typer.Option("--max", help="Maximum number of suggestions")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Suggest conflict-free dates around a desired start.
    """
    try:
        config = _load(config_file, verbose)
        service = _build_service(config)
        desired = _parse_datetime(start, config.timezone)

        suggestions = asyncio.run(
            service.suggest_alternatives(
                handyman,
                desired,
                duration if duration is not None else config.defaults.job_duration_hours,
                max_days=days if days is not None else config.defaults.suggestion_days,
                max_results=max_results if max_results is not None else config.defaults.max_suggestions,
            )
        )
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print()
    _print_suggestions(suggestions)
    console.print()


@app.command()
def stats(
    handyman: Annotated[str, typer.Argument(help="Handyman id")],
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Show job counts and booked hours for the coming weeks.
    """
    try:
        config = _load(config_file, verbose)
        service = _build_service(config)
        result = asyncio.run(service.get_schedule_stats(handyman))
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print()
    console.print(Panel.fit(
        f"[bold]Projects this week:[/bold] {result.projects_this_week} "
        f"({format_duration(result.hours_this_week) if result.hours_this_week else 'no hours'})\n"
        f"[bold]Projects next week:[/bold] {result.projects_next_week} "
        f"({format_duration(result.hours_next_week) if result.hours_next_week else 'no hours'})\n"
        f"[bold]Projects next 30 days:[/bold] {result.projects_next_month}\n"
        f"[bold]Average duration:[/bold] "
        f"{format_duration(result.average_project_duration) if result.average_project_duration else '-'}",
        title=f"Schedule for {handyman}"
    ))
    console.print()


@app.command()
def hours(
    handyman: Annotated[str, typer.Argument(help="Handyman id")],
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Show a handyman's working hours.
    """
    try:
        config = _load(config_file, verbose)
        service = _build_service(config)
        policy = asyncio.run(service.get_working_hours(handyman))
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _fail(e)

    days_off = ", ".join(WEEKDAY_NAMES[day] for day in sorted(policy.days_off)) or "none"
    console.print(
        f"\n[bold cyan]{handyman}[/bold cyan] works "
        f"{policy.start_hour:02d}:00 - {policy.end_hour:02d}:00, days off: {days_off}\n"
    )


@app.command()
def set_hours(
    handyman: Annotated[str, typer.Argument(help="Handyman id")],
    start_hour: Annotated[Optional[int], typer.Option("--start-hour", help="First working hour (0-23)")] = None,
    end_hour: Annotated[Optional[int], typer.Option("--end-hour", help="Hour work ends (0-23)")] = None,
    day_off: Annotated[Optional[List[int]], typer.Option("--day-off", help="Day off, 0=Sunday. Repeatable.")] = None,
    no_days_off: Annotated[bool, typer.Option("--no-days-off", help="Work every day of the week")] = False,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Update a handyman's working hours and days off.

    Options that are left out fall back to the configured defaults.
    """
    if no_days_off and day_off:
        raise typer.BadParameter("--day-off cannot be combined with --no-days-off")

    try:
        config = _load(config_file, verbose)
        service = _build_service(config)
        defaults = config.defaults
        if no_days_off:
            days_off = []
        else:
            days_off = day_off if day_off is not None else defaults.days_off
        policy = WorkingHoursPolicy(
            start_hour=start_hour if start_hour is not None else defaults.start_hour,
            end_hour=end_hour if end_hour is not None else defaults.end_hour,
            days_off=frozenset(days_off),
        )
        asyncio.run(service.update_working_hours(handyman, policy))
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(f"\n[green]✓ Working hours for {handyman} updated.[/green]\n")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]handyschedule[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
