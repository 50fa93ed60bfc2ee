"""
Rich Live display that follows the network state of the current run.

The view only ever reads the state handle; each refresh renders a fresh
snapshot, so it never blocks on the orchestrator.
"""

import asyncio
from datetime import datetime

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.spinner import Spinner
from rich.text import Text

from mlb_carousel.models.state import (
    Done,
    Error,
    FetchingImages,
    FetchingJson,
    NetworkStateHandle,
)

from .formatters import build_results_table


class CarouselView:
    """Renders `FetchingJson`, `FetchingImages`, `Done` and `Error` snapshots."""

    def __init__(self, console: Console, state: NetworkStateHandle, day: str):
        self.console = console
        self.state = state
        self.day = day
        self._live: Live | None = None
        self._started = datetime.now()
        self._spinner = Spinner("dots", style="cyan")

    def _generate_header(self, status: str, style: str) -> Text:
        elapsed = (datetime.now() - self._started).total_seconds()
        header_text = Text()
        header_text.append("⚾ MLB Carousel ", style="bold cyan")
        header_text.append("│ ", style="dim")
        header_text.append(self.day, style="yellow")
        header_text.append(" │ ", style="dim")
        header_text.append(status, style=style)
        header_text.append(f" │ {elapsed:.1f}s", style="dim")
        return header_text

    def render(self) -> RenderableType:
        snapshot = self.state.snapshot()

        if isinstance(snapshot, FetchingJson):
            self._spinner.update(text=Text("Fetching schedule...", style="dim"))
            body: RenderableType = Group(
                self._generate_header("loading", "cyan"), self._spinner
            )
            return Panel(body, border_style="cyan")

        if isinstance(snapshot, FetchingImages):
            bar = ProgressBar(
                total=max(snapshot.total, 1), completed=snapshot.completed, width=40
            )
            body = Group(
                self._generate_header(
                    f"thumbnails {snapshot.completed}/{snapshot.total}", "magenta"
                ),
                bar,
                build_results_table(snapshot.items, snapshot.partial_results),
            )
            return Panel(body, border_style="blue")

        if isinstance(snapshot, Done):
            body = Group(
                self._generate_header(
                    f"done, {snapshot.succeeded}/{len(snapshot.items)} saved", "green"
                ),
            )
            return Panel(body, border_style="green")

        if isinstance(snapshot, Error):
            body = Group(
                self._generate_header("failed", "bold red"),
                Text(snapshot.reason, style="red"),
            )
            return Panel(body, border_style="red")

        return Panel(Text(f"Unknown state: {snapshot!r}", style="red"))

    async def __aenter__(self):
        self._started = datetime.now()
        self._live = Live(
            console=self.console,
            get_renderable=self.render,
            refresh_per_second=12,
            transient=True,
        )
        self._live.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._live:
            await asyncio.sleep(0.2)
            self._live.stop()
