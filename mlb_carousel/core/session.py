"""
Consumer-side controller that starts runs and moves between dates.
"""

import asyncio
import logging
from datetime import date, timedelta

from mlb_carousel.models.config import CANONICAL_RESOLUTION
from mlb_carousel.models.state import NetworkStateHandle
from mlb_carousel.storage.thumbnail_store import ThumbnailStore

from .orchestrator import ImageFetchOrchestrator

log = logging.getLogger(__name__)


class CarouselSession:
    """
    Owns the shared state handle and the task of the run currently shown.

    Starting a run for a new date resets the handle first, which bumps its
    generation. The previous run's task is not cancelled; its remaining
    writes carry the old generation and are dropped by the handle.
    """

    def __init__(
        self,
        client,
        store: ThumbnailStore,
        state: NetworkStateHandle | None = None,
        resolution: str = CANONICAL_RESOLUTION,
    ):
        self.state = state or NetworkStateHandle()
        self._orchestrator = ImageFetchOrchestrator(
            client, store, self.state, resolution=resolution
        )
        self.date: date | None = None
        self._task: asyncio.Task | None = None

    @property
    def is_complete(self) -> bool:
        return self.state.snapshot().is_terminal

    def start(self, day: date) -> asyncio.Task:
        """Resets the state and schedules a run for `day` on the running loop."""
        if self._task is not None and not self._task.done():
            log.debug(
                f"Superseding run for {self.date} while it is still in flight."
            )
        generation = self.state.reset()
        self.date = day
        self._task = asyncio.create_task(
            self._orchestrator.run(day, generation=generation)
        )
        return self._task

    def next_day(self) -> asyncio.Task:
        return self.start(self._require_date() + timedelta(days=1))

    def previous_day(self) -> asyncio.Task:
        return self.start(self._require_date() - timedelta(days=1))

    async def wait(self):
        """Waits for the current run and returns its final state snapshot."""
        if self._task is None:
            raise RuntimeError("No run has been started.")
        return await self._task

    def _require_date(self) -> date:
        if self.date is None:
            raise RuntimeError("No run has been started.")
        return self.date
