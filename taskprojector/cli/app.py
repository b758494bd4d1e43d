"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Annotated

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.holiday_client import HolidayClient
from ..adapters.ical_client import ICalClient
from ..adapters.mock_calendar_client import MockCalendarClient
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import (
    CalculationFailedError,
    InvalidEstimateError,
    ScheduleConfigurationError,
)
from ..services.estimation import EstimationRequest, EstimationService

app = typer.Typer(
    name="taskprojector",
    help="Estimate when a task will be finished given your work schedule",
    add_completion=False
)

console = Console()


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    if config_file is None and not config_path.exists():
        # Run with the default schedule when no config file exists
        return AppConfig()
    return AppConfig.load_from_yaml(config_path)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _parse_start(start_option: Optional[str], tz: str):
    """Parse ``YYYY-MM-DD`` or ``YYYY-MM-DD HH:mm``; defaults to now."""
    if not start_option:
        return pendulum.now(tz)

    for fmt in ("YYYY-MM-DD HH:mm", "YYYY-MM-DD"):
        try:
            return pendulum.from_format(start_option, fmt, tz=tz)
        except ValueError:
            continue

    console.print(f"[red]Error: fecha de inicio inválida '{start_option}' (YYYY-MM-DD [HH:mm])[/red]")
    raise typer.Exit(1)


@app.command()
def estimate(
    hours: Annotated[float, typer.Argument(help="Horas estimadas de trabajo")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    start: Annotated[Optional[str], typer.Option("--start", "-s", help="Inicio (YYYY-MM-DD o 'YYYY-MM-DD HH:mm')")] = None,
    exclude_holidays: Annotated[bool, typer.Option("--holidays/--no-holidays", help="Excluir feriados")] = True,
    exclude_meetings: Annotated[bool, typer.Option("--meetings/--no-meetings", help="Descontar reuniones del calendario")] = False,
    holiday_dates: Annotated[Optional[List[str]], typer.Option("--holiday", help="Excluir solo este feriado (YYYY-MM-DD); repetible")] = None,
    meeting_ids: Annotated[Optional[List[str]], typer.Option("--meeting", help="Excluir solo esta reunión (UID); repetible")] = None,
    mock: Annotated[bool, typer.Option("--mock", help="Usar reuniones de prueba en lugar del calendario iCal.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Mostrar logs de depuración")] = False,
):
    """
    Estimate the end date of a task.

    Examples:

        taskprojector estimate 16

        taskprojector estimate 24 --start "2025-06-02 08:30" --meetings --mock

        taskprojector estimate 40 --holiday 2025-05-24 --no-meetings
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        tz = config.timezone
        schedule = config.get_work_schedule()
        start_date = _parse_start(start, tz)

        if mock:
            calendar_client = MockCalendarClient(timezone=tz)
            console.print("[yellow]⚠  MODO MOCK: usando reuniones de prueba[/yellow]\n")
        else:
            calendar_client = ICalClient(
                config.calendar.ical_url,
                timeout=config.calendar.timeout_seconds,
                timezone=tz,
            )

        holiday_client = HolidayClient(
            api_key=config.holidays.api_key,
            country=config.holidays.country,
            timeout=config.holidays.timeout_seconds,
        )
        # Cover the following year too in case the estimate crosses New Year
        holidays = holiday_client.fetch_holidays_for_range(start_date, start_date.add(years=1))

        request = EstimationRequest(
            estimated_hours=hours,
            start_date=start_date,
            fetch_events=calendar_client.fetch_events,
            exclude_holidays=exclude_holidays,
            exclude_meetings=exclude_meetings,
            holidays=holidays,
            excluded_holiday_dates=holiday_dates or [],
            excluded_meeting_ids=meeting_ids or [],
        )

        service = EstimationService(schedule)
        result = asyncio.run(service.calculate_task(request))

    except InvalidEstimateError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(2)

    except ScheduleConfigurationError as e:
        console.print(f"[bold red]Error de configuración:[/bold red] {e}")
        raise typer.Exit(1)

    except CalculationFailedError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    lines = [
        f"[bold]Inicio:[/bold] {result.start_date.format('DD/MM/YYYY HH:mm')}",
        f"[bold green]Fin estimado:[/bold green] {result.format_display()}",
        f"[bold]Días laborables:[/bold] {result.working_days}",
        f"[bold]Horas de trabajo:[/bold] {result.actual_working_hours:g}",
    ]
    if result.holidays_excluded:
        names = ", ".join(f"{h.name} ({h.date})" for h in result.holidays_excluded)
        lines.append(f"[bold]Feriados excluidos:[/bold] {names}")
    if result.meetings_excluded:
        total = sum(m.duration_minutes() for m in result.meetings_excluded)
        lines.append(
            f"[bold]Reuniones descontadas:[/bold] {len(result.meetings_excluded)} ({total} min)"
        )

    console.print(Panel.fit("\n".join(lines), title="📅 Estimación"))


@app.command()
def holidays(
    year: Annotated[Optional[int], typer.Option("--year", "-y", help="Año (por defecto el actual)")] = None,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file")] = None,
):
    """
    List the holidays used for exclusion.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    target_year = year or pendulum.now(config.timezone).year
    client = HolidayClient(
        api_key=config.holidays.api_key,
        country=config.holidays.country,
        timeout=config.holidays.timeout_seconds,
    )

    table = Table(
        title=f"Feriados {target_year} ({config.holidays.country})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Fecha", style="bold yellow")
    table.add_column("Nombre")
    table.add_column("Tipo", style="dim")

    for holiday in sorted(client.fetch_holidays(target_year), key=lambda h: h.date):
        table.add_row(holiday.date, holiday.name, holiday.type)

    console.print()
    console.print(table)
    console.print()


@app.command()
def schedule(
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file")] = None,
):
    """
    Show the configured work schedule and its daily capacity.
    """
    try:
        config = _load_config(config_file)
        work_schedule = config.get_work_schedule()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    day_names = ["Lun", "Mar", "Mié", "Jue", "Vie", "Sáb", "Dom"]
    windows = ", ".join(
        f"{start.strftime('%H:%M')}-{end.strftime('%H:%M')}" for start, end in work_schedule.windows()
    )
    days = " ".join(day_names[day] for day in sorted(work_schedule.work_days)) or "-"
    daily_hours = work_schedule.daily_working_minutes() / 60

    console.print(Panel.fit(
        f"[bold]Días:[/bold] {days}\n"
        f"[bold]Horario:[/bold] {windows}\n"
        f"[bold]Horas diarias:[/bold] {daily_hours:.1f}\n"
        f"[bold]Zona horaria:[/bold] {work_schedule.timezone}",
        title="Horario de trabajo"
    ))


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]taskprojector[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
