from __future__ import annotations

import asyncio
import random
from datetime import date
from pathlib import Path

import pytest

from mlb_carousel.core.orchestrator import ImageFetchOrchestrator, run
from mlb_carousel.exceptions import ScheduleFetchError, ThumbnailWriteError
from mlb_carousel.models import (
    Done,
    Error,
    FetchingImages,
    FetchingJson,
    FetchOutcome,
    NetworkStateHandle,
)
from mlb_carousel.storage.thumbnail_store import ThumbnailStore
from tests.helpers import THUMB_URL, FakeClient, make_game, make_schedule

DAY = date(2018, 6, 10)


def _record(handle: NetworkStateHandle) -> list:
    seen: list = []
    handle.subscribe(seen.append)
    return seen


@pytest.mark.asyncio
async def test_end_to_end_partial_success(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    document = make_schedule(
        make_game(100),
        make_game(101, cuts={"1280x720": {"src": "https://img/101-big.jpg"}}),
        make_game(102, recap=False),
    )
    client = FakeClient(document)
    handle = NetworkStateHandle()
    handle.reset()

    final = await run(DAY, client, handle, ThumbnailStore("thumbnails"))

    assert isinstance(final, Done)
    assert [item.id for item in final.items] == [100, 101]
    assert final == Done(
        final.items,
        {
            0: FetchOutcome.success(Path("thumbnails/100.png")),
            1: FetchOutcome.failure("URL not found"),
        },
    )
    assert handle.snapshot() == final
    assert (tmp_path / "thumbnails" / "100.png").read_bytes() == (
        f"png:{THUMB_URL.format(game_pk=100)}".encode()
    )
    assert client.schedule_calls == [DAY]


@pytest.mark.asyncio
async def test_missing_canonical_url_makes_no_network_call(tmp_path) -> None:
    document = make_schedule(
        make_game(1, cuts={"320x180": {"src": "https://img/1-small.jpg"}}),
        make_game(2, cuts={}),
    )
    client = FakeClient(document)
    handle = NetworkStateHandle()

    final = await run(DAY, client, handle, ThumbnailStore(tmp_path))

    assert client.image_calls == []
    assert final.results == {
        0: FetchOutcome.failure("URL not found"),
        1: FetchOutcome.failure("URL not found"),
    }


@pytest.mark.asyncio
async def test_schedule_failure_is_fatal(tmp_path) -> None:
    client = FakeClient(schedule_error=ScheduleFetchError("503 Service Unavailable"))
    handle = NetworkStateHandle()
    seen = _record(handle)

    final = await run(DAY, client, handle, ThumbnailStore(tmp_path))

    assert final == Error("503 Service Unavailable")
    assert not any(isinstance(state, FetchingImages) for state in seen)


@pytest.mark.asyncio
async def test_zero_date_buckets_is_missing_metadata(tmp_path) -> None:
    client = FakeClient({"dates": []})
    handle = NetworkStateHandle()
    seen = _record(handle)

    final = await run(DAY, client, handle, ThumbnailStore(tmp_path))

    assert final == Error("missing metadata")
    assert seen == [Error("missing metadata")]


@pytest.mark.asyncio
async def test_zero_items_finish_without_suspending(tmp_path) -> None:
    client = FakeClient(make_schedule(make_game(9, recap=False)))
    handle = NetworkStateHandle()
    events: list = []
    handle.subscribe(events.append)

    async def ticker() -> None:
        while True:
            events.append("tick")
            await asyncio.sleep(0)

    ticking = asyncio.create_task(ticker())
    try:
        final = await run(DAY, client, handle, ThumbnailStore(tmp_path))
    finally:
        ticking.cancel()

    assert final == Done((), {})
    images_at = events.index(FetchingImages((), {}))
    assert events[images_at + 1] == Done((), {})
    assert client.image_calls == []


@pytest.mark.asyncio
async def test_download_failures_stay_per_item(tmp_path) -> None:
    failing = THUMB_URL.format(game_pk=2)
    client = FakeClient(
        make_schedule(make_game(1), make_game(2), make_game(3)),
        failing_urls={failing},
    )
    handle = NetworkStateHandle()

    final = await run(DAY, client, handle, ThumbnailStore(tmp_path))

    assert isinstance(final, Done)
    assert final.results[0] == FetchOutcome.success(tmp_path / "1.png")
    assert not final.results[1].ok
    assert "404" in final.results[1].reason
    assert final.results[2] == FetchOutcome.success(tmp_path / "3.png")
    assert (final.succeeded, final.failed) == (2, 1)


class _ReadOnlyStore(ThumbnailStore):
    async def write(self, item_id: int, data: bytes) -> Path:
        raise ThumbnailWriteError(f"Could not write '{self.path_for(item_id)}': disk full")


@pytest.mark.asyncio
async def test_persistence_failure_is_recorded(tmp_path) -> None:
    client = FakeClient(make_schedule(make_game(1)))
    handle = NetworkStateHandle()

    final = await run(DAY, client, handle, _ReadOnlyStore(tmp_path))

    assert isinstance(final, Done)
    assert final.results[0].reason.endswith("disk full")


@pytest.mark.asyncio
async def test_unusable_thumbnail_directory_is_fatal(tmp_path) -> None:
    blocker = tmp_path / "thumbnails"
    blocker.write_text("")
    client = FakeClient(make_schedule(make_game(1)))
    handle = NetworkStateHandle()

    final = await run(DAY, client, handle, ThumbnailStore(blocker))

    assert isinstance(final, Error)
    assert client.schedule_calls == []


@pytest.mark.asyncio
async def test_randomized_completion_order_records_every_index(tmp_path) -> None:
    rng = random.Random(20180610)
    games = [make_game(500 + n) for n in range(10)]
    delays = {THUMB_URL.format(game_pk=500 + n): rng.uniform(0, 0.05) for n in range(10)}
    client = FakeClient(make_schedule(*games), delays=delays)
    handle = NetworkStateHandle()
    seen = _record(handle)

    final = await run(DAY, client, handle, ThumbnailStore(tmp_path))

    assert isinstance(final, Done)
    assert sorted(final.results) == list(range(10))
    assert all(outcome.ok for outcome in final.results.values())

    progress = [state.completed for state in seen if isinstance(state, FetchingImages)]
    assert progress == list(range(11))
    assert isinstance(seen[-1], Done)
    assert sum(isinstance(state, Done) for state in seen) == 1


@pytest.mark.asyncio
async def test_partial_results_grow_monotonically(tmp_path) -> None:
    client = FakeClient(
        make_schedule(make_game(1), make_game(2), make_game(3, cuts={})),
        delays={THUMB_URL.format(game_pk=1): 0.02},
    )
    handle = NetworkStateHandle()
    seen = _record(handle)

    await run(DAY, client, handle, ThumbnailStore(tmp_path))

    previous: dict = {}
    for state in seen:
        if isinstance(state, FetchingImages):
            assert len(state.partial_results) >= len(previous)
            assert all(state.partial_results[k] == v for k, v in previous.items())
            previous = dict(state.partial_results)


@pytest.mark.asyncio
async def test_two_clean_runs_persist_the_same_ids(tmp_path) -> None:
    document = make_schedule(make_game(1), make_game(2, cuts={}), make_game(3))
    store = ThumbnailStore(tmp_path)
    handle = NetworkStateHandle()

    handle.reset()
    first = await run(DAY, FakeClient(document), handle, store)
    handle.reset()
    second = await run(DAY, FakeClient(document), handle, store)

    def saved(state: Done) -> set:
        return {outcome.path for outcome in state.results.values() if outcome.ok}

    assert saved(first) == saved(second) == {tmp_path / "1.png", tmp_path / "3.png"}
    assert set(first.results) == set(second.results)


@pytest.mark.asyncio
async def test_duplicate_outcome_surfaces_as_error(tmp_path) -> None:
    client = FakeClient(make_schedule(make_game(1)))
    handle = NetworkStateHandle()
    generation = handle.reset()

    def interfere(state) -> None:
        if isinstance(state, FetchingImages) and not state.partial_results:
            handle.record_outcome(generation, 0, FetchOutcome.failure("injected"))

    handle.subscribe(interfere)
    orchestrator = ImageFetchOrchestrator(client, ThumbnailStore(tmp_path), handle)

    final = await orchestrator.run(DAY)

    assert final == Error("Outcome for index 0 was already recorded.")


@pytest.mark.asyncio
async def test_superseded_run_cannot_touch_new_state(tmp_path) -> None:
    gate = asyncio.Event()
    old_client = FakeClient(make_schedule(make_game(1), make_game(2)), gate=gate)
    new_client = FakeClient(make_schedule(make_game(3)))
    handle = NetworkStateHandle()
    store = ThumbnailStore(tmp_path)

    old_generation = handle.reset()
    old_run = asyncio.create_task(run(DAY, old_client, handle, store))
    while not isinstance(handle.snapshot(), FetchingImages):
        await asyncio.sleep(0)

    handle.reset()
    assert handle.snapshot() == FetchingJson()
    new_final = await run(date(2018, 6, 11), new_client, handle, store)

    gate.set()
    await old_run

    assert not handle.is_current(old_generation)
    assert [item.id for item in new_final.items] == [3]
    assert handle.snapshot() == new_final
    assert new_final.results == {0: FetchOutcome.success(tmp_path / "3.png")}


@pytest.mark.asyncio
async def test_run_superseded_during_schedule_fetch_touches_nothing(tmp_path) -> None:
    schedule_gate = asyncio.Event()
    client = FakeClient(
        make_schedule(make_game(1), make_game(2)), schedule_gate=schedule_gate
    )
    handle = NetworkStateHandle()

    old_generation = handle.reset()
    old_run = asyncio.create_task(run(DAY, client, handle, ThumbnailStore(tmp_path)))
    while not client.schedule_calls:
        await asyncio.sleep(0)

    new_generation = handle.reset()
    seen = _record(handle)
    schedule_gate.set()
    await old_run

    assert client.image_calls == []
    assert seen == []
    assert handle.snapshot() == FetchingJson()
    assert handle.generation == new_generation != old_generation
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_malformed_game_pk_is_skipped(tmp_path) -> None:
    unscheduled = make_game(2)
    unscheduled["gamePk"] = "TBD"
    client = FakeClient(make_schedule(make_game(1), unscheduled))
    handle = NetworkStateHandle()

    final = await run(DAY, client, handle, ThumbnailStore(tmp_path))

    assert isinstance(final, Done)
    assert [item.id for item in final.items] == [1]
    assert final.results == {0: FetchOutcome.success(tmp_path / "1.png")}


@pytest.mark.asyncio
async def test_malformed_date_bucket_ends_in_error(tmp_path) -> None:
    client = FakeClient({"dates": ["not-an-object"]})
    handle = NetworkStateHandle()

    final = await run(DAY, client, handle, ThumbnailStore(tmp_path))

    assert isinstance(final, Error)
    assert final.kind == "AttributeError"
    assert handle.snapshot().is_terminal
    assert client.image_calls == []


class _TimeoutClient(FakeClient):
    def __init__(self, *args, timeout_url: str, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._timeout_url = timeout_url

    async def fetch_bytes(self, url: str) -> bytes:
        if url == self._timeout_url:
            self.image_calls.append(url)
            raise asyncio.TimeoutError()
        return await super().fetch_bytes(url)


@pytest.mark.asyncio
async def test_unexpected_download_error_is_a_per_item_failure(tmp_path) -> None:
    client = _TimeoutClient(
        make_schedule(make_game(1), make_game(2)),
        timeout_url=THUMB_URL.format(game_pk=1),
    )
    handle = NetworkStateHandle()

    final = await run(DAY, client, handle, ThumbnailStore(tmp_path))

    assert final.is_terminal
    assert isinstance(final, Done)
    assert final.results[0] == FetchOutcome.failure("TimeoutError")
    assert final.results[1] == FetchOutcome.success(tmp_path / "2.png")
