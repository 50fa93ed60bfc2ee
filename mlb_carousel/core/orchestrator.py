"""
The main orchestrator for a fetch run: schedule, extraction, thumbnail fan-out.
"""

import asyncio
import logging
from datetime import date

from rich.markup import escape

from mlb_carousel.exceptions import (
    ImageFetchError,
    MissingMetadataError,
    ScheduleFetchError,
    StateTransitionError,
    ThumbnailWriteError,
)
from mlb_carousel.models.config import CANONICAL_RESOLUTION, DEFAULT_THUMBNAIL_DIR
from mlb_carousel.models.outcome import URL_NOT_FOUND, FetchOutcome
from mlb_carousel.models.schedule import ScheduleItem
from mlb_carousel.models.state import NetworkState, NetworkStateHandle
from mlb_carousel.storage.thumbnail_store import ThumbnailStore

from .extractor import extract_items

log = logging.getLogger(__name__)


class ImageFetchOrchestrator:
    """
    Drives one run from `FetchingJson` to `Done` or `Error`.

    `client` needs two coroutines: `get_schedule_via_date(date)` returning the
    schedule document, and `fetch_bytes(url)` returning image bytes. They
    signal failure with `ScheduleFetchError` and `ImageFetchError`.
    """

    def __init__(
        self,
        client,
        store: ThumbnailStore,
        state: NetworkStateHandle,
        resolution: str = CANONICAL_RESOLUTION,
    ):
        self.client = client
        self.store = store
        self.state = state
        self.resolution = resolution

    async def run(self, day: date, generation: int | None = None) -> NetworkState:
        """
        Runs the whole pipeline for `day` and returns the resulting state snapshot.

        Args:
            day: The schedule date to fetch.
            generation: The generation to write under. Defaults to the handle's
                current generation, i.e. the caller has already reset it.
        """
        if generation is None:
            generation = self.state.generation

        try:
            self.store.ensure_directory()
        except ThumbnailWriteError as e:
            log.error(f"[red]✗ {escape(str(e))}[/red]")
            return self._fail(generation, e)

        try:
            document = await self.client.get_schedule_via_date(day)
        except ScheduleFetchError as e:
            log.error(f"[red]✗ Schedule fetch failed: {escape(str(e))}[/red]")
            return self._fail(generation, e)

        try:
            items = extract_items(document)
        except MissingMetadataError as e:
            log.error(f"[red]✗ No schedule data for {day.isoformat()}.[/red]")
            return self._fail(generation, e)
        except Exception as e:
            log.error(
                f"[red]✗ Malformed schedule for {day.isoformat()}: "
                f"{escape(str(e))}[/red]",
                exc_info=log.getEffectiveLevel() == logging.DEBUG,
            )
            return self._fail(generation, e)

        log.info(
            f"Found {len(items)} games with recaps on {day.isoformat()}; "
            "fetching thumbnails..."
        )

        try:
            if not self.state.begin_images(generation, items):
                log.debug(f"Run {generation} was superseded before fan-out.")
                return self.state.snapshot()

            if items:
                await asyncio.gather(
                    *(
                        self._fetch_item(generation, index, item)
                        for index, item in enumerate(items)
                    )
                )

            self.state.finish(generation)
        except StateTransitionError as e:
            log.error(f"[red]✗ Run {generation} hit an invalid state: {e}[/red]")
            self._fail(generation, e)
        except Exception as e:
            log.error(
                f"[red]✗ Run {generation} failed unexpectedly: {escape(str(e))}[/red]",
                exc_info=log.getEffectiveLevel() == logging.DEBUG,
            )
            self._fail(generation, e)

        return self.state.snapshot()

    def _fail(self, generation: int, error: Exception) -> NetworkState:
        self.state.fail(
            generation, str(error) or type(error).__name__, kind=type(error).__name__
        )
        return self.state.snapshot()

    async def _fetch_item(
        self, generation: int, index: int, item: ScheduleItem
    ) -> None:
        """Produces and records the outcome for one item, whatever happens."""
        outcome = await self._download_thumbnail(item)
        if outcome.ok:
            log.debug(f"  [green]✓ Game {item.id}: {outcome.path}[/green]")
        else:
            log.warning(
                f"  [yellow]⚠ Game {item.id}: {escape(outcome.reason)}[/yellow]"
            )
        self.state.record_outcome(generation, index, outcome)

    async def _download_thumbnail(self, item: ScheduleItem) -> FetchOutcome:
        url = item.photo_url(self.resolution)
        if url is None:
            return FetchOutcome.failure(URL_NOT_FOUND)

        try:
            data = await self.client.fetch_bytes(url)
            path = await self.store.write(item.id, data)
        except (ImageFetchError, ThumbnailWriteError) as e:
            return FetchOutcome.failure(str(e))
        except Exception as e:
            log.debug(f"Unexpected error for game {item.id}", exc_info=True)
            return FetchOutcome.failure(str(e) or type(e).__name__)
        return FetchOutcome.success(path)


async def run(
    day: date,
    client,
    state: NetworkStateHandle,
    store: ThumbnailStore | None = None,
    generation: int | None = None,
    resolution: str = CANONICAL_RESOLUTION,
) -> NetworkState:
    """
    Entry point for a single run against a shared state handle.

    The caller resets `state` before invoking this for a new date and must not
    start a second run on the same handle without resetting it first.
    """
    orchestrator = ImageFetchOrchestrator(
        client,
        store or ThumbnailStore(DEFAULT_THUMBNAIL_DIR),
        state,
        resolution=resolution,
    )
    return await orchestrator.run(day, generation=generation)
