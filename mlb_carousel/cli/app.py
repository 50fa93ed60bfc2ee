"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import time
from datetime import date, datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from mlb_carousel import __version__
from mlb_carousel.api.client import MlbClient
from mlb_carousel.core.session import CarouselSession
from mlb_carousel.exceptions import ConfigurationError, MlbCarouselError
from mlb_carousel.models.config import CarouselConfig
from mlb_carousel.models.state import Done, Error
from mlb_carousel.storage.config_manager import ConfigManager
from mlb_carousel.storage.thumbnail_store import ThumbnailStore

from .carousel_view import CarouselView
from .formatters import (
    format_failure_with_suggestions,
    print_config,
    print_summary_panel,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("mlb_carousel")

app = typer.Typer(
    name="mlb-carousel",
    help=(
        "Fetch a day's MLB schedule and download the recap thumbnail of every"
        " game concurrently."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "mlb-carousel"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def parse_date(value: str | None) -> date:
    """Parses a YYYY-MM-DD argument; None means today."""
    if value is None:
        return date.today()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise typer.BadParameter(f"'{value}' is not a date in YYYY-MM-DD form.") from e


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
):
    """MLB Carousel CLI"""
    if version:
        console.print(f"[bold]mlb-carousel[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("mlb_carousel").setLevel(log_level)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing config file without asking."
    ),
):
    """Write a configuration file with default settings."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    ConfigManager(CONFIG_FILE).save_config()
    console.print(f"[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")


@app.command(name="show-config")
def show_config():
    """Display the resolved configuration."""
    config = ConfigManager(CONFIG_FILE).load_config()
    print_config(CONFIG_FILE, config)


@app.command(name="fetch")
def fetch_command(
    day: str | None = typer.Argument(
        None, help="Schedule date as YYYY-MM-DD. Defaults to today."
    ),
    thumbnail_dir: str | None = typer.Option(
        None,
        "-d",
        "--thumbnail-dir",
        help="Directory the thumbnails are written to.",
    ),
    resolution: str | None = typer.Option(
        None,
        "-r",
        "--resolution",
        help="Image cut to download, e.g. 684x385.",
    ),
    timeout: float | None = typer.Option(
        None,
        "-t",
        "--timeout",
        help="Per-request timeout in seconds (no timeout by default).",
    ),
    browse: bool = typer.Option(
        False,
        "-b",
        "--browse",
        help="After each run, move to the next or previous day interactively.",
    ),
):
    """Fetch the schedule for a date and download every game's thumbnail."""
    schedule_date = parse_date(day)
    cli_options = {
        key: value
        for key, value in {
            "thumbnail_dir": thumbnail_dir,
            "canonical_resolution": resolution,
            "request_timeout": timeout,
        }.items()
        if value is not None
    }
    config = ConfigManager(CONFIG_FILE).load_config(cli_options)

    final_state = asyncio.run(_fetch_async(config, schedule_date, browse=browse))

    if isinstance(final_state, Error):
        raise typer.Exit(code=1)


async def _fetch_async(
    config: CarouselConfig, schedule_date: date, browse: bool = False
):
    store = ThumbnailStore(config.thumbnail_dir, extension=config.image_extension)

    async with MlbClient(
        config.schedule_url, config.sport_id, timeout=config.request_timeout
    ) as client:
        session = CarouselSession(
            client, store, resolution=config.canonical_resolution
        )
        session.start(schedule_date)

        while True:
            start_time = time.monotonic()
            async with CarouselView(console, session.state, session.date.isoformat()):
                final_state = await session.wait()
            _report(final_state, session.date, time.monotonic() - start_time)

            if not browse or not session.is_complete:
                break
            choice = await asyncio.to_thread(
                typer.prompt, "[n]ext day, [p]revious day or [q]uit", default="q"
            )
            choice = choice.strip().lower()[:1]
            if choice == "n":
                session.next_day()
            elif choice == "p":
                session.previous_day()
            else:
                break

    return final_state


def _report(final_state, day: date, duration_s: float) -> None:
    if isinstance(final_state, Done):
        print_summary_panel(final_state, day.isoformat(), duration_s)
    elif isinstance(final_state, Error):
        console.print(
            format_failure_with_suggestions(
                final_state.kind, final_state.reason, {"date": day.isoformat()}
            )
        )


@app.command()
def diagnose():
    """Diagnose common configuration and connectivity issues."""
    console.print("\n[bold cyan]Running diagnostics...[/bold cyan]\n")
    issues_found = False

    if CONFIG_FILE.is_file():
        console.print(f"[green]✓[/] Config file exists at: [dim]{CONFIG_FILE}[/dim]")
    else:
        console.print(
            "[yellow]○ No config file found; defaults are used.[/] "
            "Run [cyan]mlb-carousel init[/cyan] to create one."
        )

    try:
        config = ConfigManager(CONFIG_FILE).load_config()
        console.print("[green]✓[/] Configuration is valid.")
    except ConfigurationError as e:
        console.print(f"[red]✗ Configuration validation failed: {e}[/red]")
        raise typer.Exit(code=1) from e

    console.print("\n[dim]Testing connectivity to the MLB stats API...[/dim]")

    async def test_connection() -> bool:
        async with MlbClient(
            config.schedule_url, config.sport_id, timeout=config.request_timeout or 10
        ) as client:
            try:
                await client.get_schedule_today()
            except MlbCarouselError as e:
                console.print(f"[red]✗ Connection test failed: {e}[/red]")
                return False
        console.print("[green]✓[/] Successfully fetched today's schedule.")
        return True

    if not asyncio.run(test_connection()):
        issues_found = True

    console.print()
    if not issues_found:
        console.print(
            "[bold green]✓ All checks passed! Your setup looks good.[/bold green]\n"
        )
    else:
        console.print(
            "[bold red]✗ Some issues were found. "
            "Please review the messages above.[/bold red]\n"
        )
        raise typer.Exit(code=1)
