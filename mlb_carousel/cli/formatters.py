"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any, Mapping, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from mlb_carousel.models.config import CarouselConfig
from mlb_carousel.models.outcome import FetchOutcome
from mlb_carousel.models.schedule import ScheduleItem
from mlb_carousel.models.state import Done


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    return format_failure_with_suggestions(type(error).__name__, str(error), context)


def format_failure_with_suggestions(
    error_type: str, error_msg: str, context: dict | None = None
) -> Panel:
    """
    Builds the error panel from a failure kind and its message.

    Used for failures that reach the console as an `Error` state rather than
    as a raised exception; `error_type` is the `Error.kind` of that state.
    """

    suggestions_map = {
        "ScheduleFetchError": [
            "• Check your internet connection.",
            "• The MLB stats API might be temporarily unavailable.",
            "• Run `mlb-carousel diagnose` to test connectivity.",
        ],
        "MissingMetadataError": [
            "• No games were scheduled on this date.",
            "• Try a date inside the regular season, e.g. 2018-06-10.",
        ],
        "ConfigurationError": [
            "• Review the values in your configuration file.",
            "• Run `mlb-carousel init --force` to write a fresh default config.",
        ],
        "ThumbnailWriteError": [
            "• Check that the thumbnail directory is writable.",
            "• Use --thumbnail-dir to choose another location.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type or 'Error'}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def format_outcome(outcome: FetchOutcome | None) -> str:
    if outcome is None:
        return "[dim]… downloading[/dim]"
    if outcome.ok:
        return f"[green]✓ {escape(str(outcome.path))}[/green]"
    return f"[red]✗ {escape(outcome.reason)}[/red]"


def build_results_table(
    items: Sequence[ScheduleItem], results: Mapping[int, FetchOutcome]
) -> Table:
    """One row per game: headline, subhead and the thumbnail status."""
    table = Table(box=box.SIMPLE_HEAVY, expand=True)
    table.add_column("#", style="dim", justify="right", width=3)
    table.add_column("Game", style="cyan", no_wrap=True)
    table.add_column("Headline", style="bold")
    table.add_column("Subhead", style="dim")
    table.add_column("Thumbnail")

    for index, item in enumerate(items):
        table.add_row(
            str(index + 1),
            str(item.id),
            escape(item.headline),
            escape(item.subhead),
            format_outcome(results.get(index)),
        )
    return table


def build_recaps(items: Sequence[ScheduleItem]) -> Table:
    """The headline and blurb of each game, as shown under the carousel."""
    recaps = Table.grid(padding=(0, 1))
    recaps.add_column(style="cyan", no_wrap=True)
    recaps.add_column()
    for item in items:
        text = Text(item.headline, style="bold")
        if item.blurb:
            text.append(f"\n{item.blurb}", style="italic")
        recaps.add_row(str(item.id), text)
    return recaps


def print_summary_panel(state: Done, day: str, duration_s: float):
    """Displays the final results of a run."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=14)
    stats_table.add_column(style="white", justify="left")
    stats_table.add_row("Games:", f"[bold]{len(state.items)}[/bold]")
    stats_table.add_row("✓ Saved:", f"[bold green]{state.succeeded}[/bold green]")
    if state.failed:
        stats_table.add_row("✗ Failed:", f"[bold red]{state.failed}[/bold red]")
    stats_table.add_row("Time Elapsed:", f"[blue]{duration_s:.1f}s[/blue]")

    console.print()
    if state.items:
        console.print(build_results_table(state.items, state.results))
        console.print(build_recaps(state.items))
    console.print(
        Panel(
            stats_table,
            title=f"⚾ [bold]Thumbnails for {day}[/bold]",
            border_style="green" if not state.failed else "yellow",
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()


def print_config(config_path: Path, config: CarouselConfig):
    """Displays the resolved configuration."""
    console = Console()
    config_data: dict[str, Any] = config.model_dump(exclude={"config_path"})
    content = ""
    for key, value in config_data.items():
        content += f"{key} = {'' if value is None else value}\n"

    source = config_path if config_path.is_file() else f"{config_path} (defaults)"
    console.print(
        Panel(
            escape(content.strip()),
            title=f"Configuration ([dim]{escape(str(source))}[/dim])",
            border_style="cyan",
        )
    )
