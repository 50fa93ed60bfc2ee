"""
Async client for the MLB stats schedule endpoint and the image CDN behind it.
"""

import asyncio
import logging
import time
from datetime import date
from typing import Any, Dict, Optional

import aiohttp

from mlb_carousel.exceptions import ImageFetchError, ScheduleFetchError
from mlb_carousel.models.config import DEFAULT_SCHEDULE_URL

log = logging.getLogger(__name__)

HYDRATE_ARGS = "game(content(editorial(recap))),decisions"
DATE_FORMAT = "%Y-%m-%d"


class MlbClient:
    """
    Async client for the MLB stats API (v1).

    One `aiohttp.ClientSession` is shared by the schedule request and every
    thumbnail download of a run. No request is retried.
    """

    def __init__(
        self,
        schedule_url: str = DEFAULT_SCHEDULE_URL,
        sport_id: int = 1,
        timeout: Optional[float] = None,
    ):
        """
        Initializes the API client.

        Args:
            schedule_url: The schedule endpoint to query.
            sport_id: MLB sport identifier; 1 is Major League Baseball.
            timeout: Total per-request timeout in seconds, or None for no limit.
        """
        self.schedule_url = schedule_url
        self.sport_id = sport_id
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _initialize_session(self) -> aiohttp.ClientSession:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Accept-Encoding": "gzip, deflate"},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "MlbClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _schedule_params(self, day: date) -> Dict[str, str]:
        return {
            "hydrate": HYDRATE_ARGS,
            "date": day.strftime(DATE_FORMAT),
            "sportId": str(self.sport_id),
        }

    async def get_schedule_via_date(self, day: date) -> Dict[str, Any]:
        """
        Fetches the schedule document for a single date.

        Raises:
            ScheduleFetchError: On a transport error, non-2xx status or bad JSON.
        """
        session = await self._initialize_session()
        params = self._schedule_params(day)
        start_time = time.monotonic()
        try:
            async with session.get(self.schedule_url, params=params) as r:
                r.raise_for_status()
                document = await r.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.debug(f"Schedule request for {params['date']} failed: {e}")
            raise ScheduleFetchError(
                f"Could not fetch schedule for {params['date']}: {e}"
            ) from e

        duration_ms = (time.monotonic() - start_time) * 1000
        log.debug(f"Fetched schedule for {params['date']} in {duration_ms:.0f} ms")

        if not isinstance(document, dict):
            raise ScheduleFetchError(
                f"Schedule response for {params['date']} is not a JSON object."
            )
        return document

    async def get_schedule_today(self) -> Dict[str, Any]:
        return await self.get_schedule_via_date(date.today())

    async def fetch_bytes(self, url: str) -> bytes:
        """
        Downloads raw image bytes with a plain GET.

        Raises:
            ImageFetchError: On a transport error or non-2xx status.
        """
        session = await self._initialize_session()
        try:
            async with session.get(url, allow_redirects=True) as r:
                r.raise_for_status()
                return await r.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.debug(f"Image download from {url} failed: {e}")
            raise ImageFetchError(str(e) or type(e).__name__) from e
