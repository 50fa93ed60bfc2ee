"""
The shared, observable network state read by the UI and written by a fetch run.

The state is one of four variants. `NetworkStateHandle` owns the current
variant behind a lock and hands out immutable snapshots, so a reader never
sees a variant tag paired with a half-updated payload. Every write carries the
generation of the run that issued it; writes from a superseded run are dropped.
"""

import logging
import threading
from collections import deque
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Union

from mlb_carousel.exceptions import DuplicateOutcomeError, StateTransitionError

from .outcome import FetchOutcome
from .schedule import ScheduleItem

log = logging.getLogger(__name__)

UNEXPECTED_TRANSITION = "unexpected state transition"


@dataclass(frozen=True)
class FetchingJson:
    """Initial variant: the schedule has not been retrieved yet."""

    is_terminal = False


@dataclass(frozen=True)
class FetchingImages:
    """Schedule retrieved; outcomes arrive one index at a time."""

    items: tuple[ScheduleItem, ...]
    partial_results: Mapping[int, FetchOutcome] = field(
        default_factory=lambda: MappingProxyType({})
    )

    is_terminal = False

    @property
    def completed(self) -> int:
        return len(self.partial_results)

    @property
    def total(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class Error:
    """Terminal variant: the run failed irrecoverably."""

    reason: str
    kind: str = field(default="", compare=False)

    is_terminal = True


@dataclass(frozen=True)
class Done:
    """Terminal variant: every item has an outcome."""

    items: tuple[ScheduleItem, ...]
    results: Mapping[int, FetchOutcome]

    is_terminal = True

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.results.values() if outcome.ok)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded


NetworkState = Union[FetchingJson, FetchingImages, Error, Done]

StateListener = Callable[[NetworkState], None]


class NetworkStateHandle:
    """
    Mutex-guarded cell holding the current `NetworkState`.

    The lock is a `threading.Lock` so a UI thread may read alongside coroutines
    on the event loop. No method awaits, so the lock is never held across a
    suspension point. Listeners are called after the lock is released and
    must not raise. They see every change exactly once and in the order the
    changes were made, including changes made by another listener or by a
    reset from another thread.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state: NetworkState = FetchingJson()
        self._generation = 0
        self._listeners: list[StateListener] = []
        self._pending: deque[NetworkState] = deque()
        self._delivery_lock = threading.RLock()
        self._delivering = False

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def snapshot(self) -> NetworkState:
        with self._lock:
            return self._state

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Registers a change listener and returns a callable that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def reset(self) -> int:
        """
        Forces the state back to `FetchingJson` and starts a new generation.

        Anything still running under an older generation can no longer write.

        Returns:
            The generation the next run must write under.
        """
        with self._lock:
            self._generation += 1
            self._state = FetchingJson()
            self._pending.append(self._state)
            generation = self._generation
        log.debug(f"Network state reset to generation {generation}.")
        self._deliver()
        return generation

    def begin_images(self, generation: int, items: Sequence[ScheduleItem]) -> bool:
        """
        Moves `FetchingJson` to `FetchingImages(items, {})`.

        Raises:
            StateTransitionError: If the current generation is not in `FetchingJson`.
        """
        with self._lock:
            if generation != self._generation:
                log.debug(f"Dropping image phase start from stale run {generation}.")
                return False
            if not isinstance(self._state, FetchingJson):
                raise StateTransitionError(
                    f"Cannot start fetching images from {type(self._state).__name__}."
                )
            new_state = FetchingImages(tuple(items))
            self._state = new_state
            self._pending.append(new_state)
        self._deliver()
        return True

    def record_outcome(
        self, generation: int, index: int, outcome: FetchOutcome
    ) -> bool:
        """
        Adds the outcome for item `index` to `partial_results`.

        A write from a superseded generation, or one arriving after the state
        has left `FetchingImages`, is dropped and logged.

        Raises:
            StateTransitionError: If `index` is outside the item range.
            DuplicateOutcomeError: If `index` already has an outcome.
        """
        with self._lock:
            if generation != self._generation:
                log.debug(
                    f"Dropping outcome for index {index} from stale run {generation}."
                )
                return False
            state = self._state
            if not isinstance(state, FetchingImages):
                log.warning(
                    f"Outcome for index {index} arrived while state is "
                    f"{type(state).__name__}; ignoring."
                )
                return False
            if not 0 <= index < len(state.items):
                raise StateTransitionError(
                    f"Outcome index {index} is outside 0..{len(state.items) - 1}."
                )
            if index in state.partial_results:
                raise DuplicateOutcomeError(
                    f"Outcome for index {index} was already recorded."
                )
            results = dict(state.partial_results)
            results[index] = outcome
            new_state = FetchingImages(state.items, MappingProxyType(results))
            self._state = new_state
            self._pending.append(new_state)
        self._deliver()
        return True

    def finish(self, generation: int) -> bool:
        """
        Performs the terminal transition after fan-in.

        `FetchingImages` with every index filled becomes `Done`; any other
        variant for the current generation becomes `Error`.
        """
        with self._lock:
            if generation != self._generation:
                log.debug(f"Dropping terminal transition from stale run {generation}.")
                return False
            state = self._state
            if (
                isinstance(state, FetchingImages)
                and state.completed == state.total
            ):
                new_state: NetworkState = Done(state.items, state.partial_results)
            else:
                if isinstance(state, FetchingImages):
                    log.error(
                        f"Fan-in finished with {state.completed}/{state.total} "
                        "outcomes recorded."
                    )
                else:
                    log.error(
                        f"Fan-in finished while state is {type(state).__name__}."
                    )
                new_state = Error(UNEXPECTED_TRANSITION)
            self._state = new_state
            self._pending.append(new_state)
        self._deliver()
        return isinstance(new_state, Done)

    def fail(self, generation: int, reason: str, kind: str = "") -> bool:
        """
        Moves a non-terminal state of the current generation to `Error(reason)`.

        `kind` names the failure, usually the exception class, so a consumer
        can tell a network failure from missing data without parsing `reason`.
        """
        with self._lock:
            if generation != self._generation:
                log.debug(f"Dropping failure from stale run {generation}: {reason}")
                return False
            if self._state.is_terminal:
                log.warning(
                    f"Run already reached {type(self._state).__name__}; "
                    f"ignoring failure: {reason}"
                )
                return False
            new_state = Error(reason, kind)
            self._state = new_state
            self._pending.append(new_state)
        self._deliver()
        return True

    def _deliver(self) -> None:
        # Only one caller drains at a time. A write made from inside a listener
        # just queues its state; the drain already running delivers it next.
        with self._delivery_lock:
            if self._delivering:
                return
            self._delivering = True
            try:
                while True:
                    with self._lock:
                        if not self._pending:
                            return
                        state = self._pending.popleft()
                        listeners = list(self._listeners)
                    for listener in listeners:
                        listener(state)
            finally:
                self._delivering = False
