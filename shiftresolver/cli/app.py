"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional, Tuple

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.dataset_loader import load_dataset
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import ShiftResolverError
from ..services.schedule_service import ShiftScheduleService

app = typer.Typer(
    name="shiftresolver",
    help="Resolve shift allocations into absolute intervals and query them",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./shiftresolver.yaml")]
DatasetOption = Annotated[Optional[Path], typer.Option("--dataset", "-d", help="Path to a shifts/allocations YAML file. Overrides the config.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Log index activity at debug level.")]


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load the explicit config file, or the default one if it exists."""
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _build_service(
    config_file: Optional[Path],
    dataset_file: Optional[Path],
    verbose: bool
) -> Tuple[AppConfig, ShiftScheduleService]:
    """
    Load configuration and dataset and build the schedule service.

    Raises:
        typer.Exit: If configuration or data cannot be loaded
    """
    try:
        config = _load_config(config_file)
        _configure_logging("DEBUG" if verbose else config.log_level)

        dataset_path = dataset_file or config.dataset_path
        if dataset_path is None:
            console.print("[bold red]Error:[/bold red] No dataset given. Use --dataset or set dataset_path in the config.")
            raise typer.Exit(1)

        dataset = load_dataset(dataset_path)
        service = ShiftScheduleService.from_records(
            dataset.shifts,
            dataset.allocations,
            timezone=config.timezone,
        )
    except (FileNotFoundError, ShiftResolverError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    return config, service


def _parse_instant(value: str, tz: str, label: str) -> DateTime:
    try:
        return pendulum.parse(value, tz=tz)
    except ValueError as e:
        console.print(f"[red]Cannot parse {label} {value!r}: {e}[/red]")
        raise typer.Exit(1)


def _print_allocations(service: ShiftScheduleService, allocation_ids, title: str) -> None:
    if not allocation_ids:
        console.print(f"[yellow]⚠ {title}: none[/yellow]")
        return

    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Allocation", style="bold yellow")
    table.add_column("Interval")
    table.add_column("Assignees", style="dim")

    intervals = sorted(
        (service.index.get(allocation_id) for allocation_id in allocation_ids),
        key=lambda interval: interval.start_at,
    )
    assignees = service.assignees_for(allocation_ids)

    for interval in intervals:
        table.add_row(
            str(interval.allocation_id),
            str(interval),
            ", ".join(sorted(str(a) for a in assignees[interval.allocation_id])),
        )

    console.print(table)


@app.command()
def intervals(
    config_file: ConfigOption = None,
    dataset: DatasetOption = None,
    verbose: VerboseOption = False,
):
    """
    List every resolved interval ordered by start.
    """
    _, service = _build_service(config_file, dataset, verbose)

    resolved = service.intervals()
    if not resolved:
        console.print("[yellow]No allocations in the dataset.[/yellow]")
        return

    table = Table(title="Resolved intervals", show_header=True, header_style="bold cyan")
    table.add_column("Allocation", style="bold yellow")
    table.add_column("Shift")
    table.add_column("Start")
    table.add_column("Finish")
    table.add_column("Minutes", justify="right")

    for interval in resolved:
        allocation = service.allocations.get(interval.allocation_id)
        table.add_row(
            str(interval.allocation_id),
            str(allocation.shift_id),
            interval.start_at.format("YYYY-MM-DD HH:mm"),
            interval.finish_at.format("YYYY-MM-DD HH:mm"),
            str(interval.duration_minutes()),
        )

    console.print(table)


@app.command()
def active(
    at: Annotated[str, typer.Option("--at", help="Instant to check (ISO 8601, e.g. 2016-01-02T01:00)")],
    config_file: ConfigOption = None,
    dataset: DatasetOption = None,
    verbose: VerboseOption = False,
):
    """
    Show allocations active at an instant.

    Examples:

        shiftresolver active --at 2016-01-02T01:00 --dataset schedule.yaml
    """
    config, service = _build_service(config_file, dataset, verbose)
    instant = _parse_instant(at, config.timezone, "instant")

    _print_allocations(service, service.active_at(instant), f"Active at {instant.format('YYYY-MM-DD HH:mm')}")


@app.command()
def overlapping(
    start: Annotated[str, typer.Option("--start", help="Window start (ISO 8601)")],
    end: Annotated[str, typer.Option("--end", help="Window end, exclusive (ISO 8601)")],
    config_file: ConfigOption = None,
    dataset: DatasetOption = None,
    verbose: VerboseOption = False,
):
    """
    Show allocations overlapping the window [start, end).

    Examples:

        shiftresolver overlapping --start 2016-01-01T23:00 --end 2016-01-02T02:00 -d schedule.yaml
    """
    config, service = _build_service(config_file, dataset, verbose)
    window_start = _parse_instant(start, config.timezone, "start")
    window_end = _parse_instant(end, config.timezone, "end")

    try:
        found = service.overlapping(window_start, window_end)
    except ShiftResolverError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    title = f"Overlapping {window_start.format('YYYY-MM-DD HH:mm')} - {window_end.format('YYYY-MM-DD HH:mm')}"
    _print_allocations(service, found, title)


@app.command()
def verify(
    config_file: ConfigOption = None,
    dataset: DatasetOption = None,
    verbose: VerboseOption = False,
):
    """
    Re-derive every interval and report entries that drifted.
    """
    _, service = _build_service(config_file, dataset, verbose)

    drifted = service.verify()
    if drifted:
        console.print(f"[bold red]✗ {len(drifted)} interval(s) out of date:[/bold red] {', '.join(map(str, drifted))}")
        raise typer.Exit(1)

    console.print(f"[green]✓ All {len(service.index)} interval(s) match their shifts.[/green]")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]shiftresolver[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
