"""
Core application engine for orchestrating a fetch run.

The `ImageFetchOrchestrator` drives the network state from the schedule request
to the terminal transition; `CarouselSession` is the consumer-side controller
that starts and supersedes runs as the viewed date changes.
"""

from .extractor import extract_items
from .orchestrator import ImageFetchOrchestrator, run
from .session import CarouselSession

__all__ = ["CarouselSession", "ImageFetchOrchestrator", "extract_items", "run"]
