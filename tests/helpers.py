from __future__ import annotations

import asyncio
from datetime import date
from typing import Any

from mlb_carousel.exceptions import ImageFetchError, ScheduleFetchError

THUMB_URL = "https://img.mlbstatic.com/{game_pk}/684x385.jpg"


def make_game(
    game_pk: int,
    recap: bool = True,
    cuts: Any = None,
    headline: str | None = None,
) -> dict:
    game: dict = {"gamePk": game_pk, "gameDate": "2018-06-10T17:35:00Z"}
    if not recap:
        game["content"] = {"editorial": {}}
        return game
    if cuts is None:
        cuts = {"684x385": {"src": THUMB_URL.format(game_pk=game_pk)}}
    game["content"] = {
        "editorial": {
            "recap": {
                "mlb": {
                    "headline": headline or f"Headline {game_pk}",
                    "subhead": f"Subhead {game_pk}",
                    "blurb": f"Blurb {game_pk}",
                    "image": {"cuts": cuts},
                }
            }
        }
    }
    return game


def make_schedule(*games: dict) -> dict:
    return {"dates": [{"date": "2018-06-10", "games": list(games)}]}


class FakeClient:
    """Stands in for MlbClient; counts calls and can delay, hold or fail requests."""

    def __init__(
        self,
        schedules: dict[date, dict] | dict | None = None,
        schedule_error: Exception | None = None,
        failing_urls: set[str] | None = None,
        delays: dict[str, float] | None = None,
        gate: asyncio.Event | None = None,
        schedule_gate: asyncio.Event | None = None,
    ) -> None:
        self._schedules = schedules if schedules is not None else make_schedule()
        self._schedule_error = schedule_error
        self._failing_urls = failing_urls or set()
        self._delays = delays or {}
        self._gate = gate
        self._schedule_gate = schedule_gate
        self.schedule_calls: list[date] = []
        self.image_calls: list[str] = []

    async def get_schedule_via_date(self, day: date) -> dict:
        self.schedule_calls.append(day)
        if self._schedule_gate is not None:
            await self._schedule_gate.wait()
        if self._schedule_error is not None:
            raise self._schedule_error
        if "dates" in self._schedules:
            return self._schedules
        if day not in self._schedules:
            raise ScheduleFetchError(f"no schedule for {day}")
        return self._schedules[day]

    async def fetch_bytes(self, url: str) -> bytes:
        self.image_calls.append(url)
        if self._gate is not None:
            await self._gate.wait()
        if url in self._delays:
            await asyncio.sleep(self._delays[url])
        if url in self._failing_urls:
            raise ImageFetchError(f"404, message='Not Found', url='{url}'")
        return f"png:{url}".encode()
