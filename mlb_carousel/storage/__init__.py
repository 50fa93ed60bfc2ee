"""
Storage Layer.

This package handles all data persistence: the configuration file and the
thumbnail directory.
"""

from .config_manager import ConfigManager
from .thumbnail_store import ThumbnailStore

__all__ = ["ConfigManager", "ThumbnailStore"]
