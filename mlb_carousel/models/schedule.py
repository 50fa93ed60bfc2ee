"""
Immutable record describing one game extracted from a schedule document.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class ScheduleItem:
    """A game with recap content, ready to have its thumbnail fetched."""

    id: int
    date: str
    headline: str = ""
    subhead: str = ""
    blurb: str = ""
    photos: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Callers keep no handle on the mapping the item exposes.
        object.__setattr__(self, "photos", MappingProxyType(dict(self.photos)))

    def photo_url(self, resolution: str) -> str | None:
        return self.photos.get(resolution)
