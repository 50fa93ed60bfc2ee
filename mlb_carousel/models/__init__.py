"""
Data Models Layer.

This package contains the records and the shared state machine that flow
through a fetch run, plus the validated application configuration.
"""

from .config import CarouselConfig
from .outcome import FetchOutcome
from .schedule import ScheduleItem
from .state import (
    Done,
    Error,
    FetchingImages,
    FetchingJson,
    NetworkState,
    NetworkStateHandle,
)

__all__ = [
    "CarouselConfig",
    "Done",
    "Error",
    "FetchOutcome",
    "FetchingImages",
    "FetchingJson",
    "NetworkState",
    "NetworkStateHandle",
    "ScheduleItem",
]
