"""
Writes downloaded thumbnail bytes to disk, one file per game id.
"""

import logging
from pathlib import Path

import aiofiles

from mlb_carousel.exceptions import ThumbnailWriteError

log = logging.getLogger(__name__)


class ThumbnailStore:
    """
    Persists thumbnails under a single directory as `<id><extension>`.

    Ids are unique within a run, so concurrent writers always target distinct
    paths and need no coordination.
    """

    def __init__(self, directory: Path | str, extension: str = ".png"):
        self.directory = Path(directory)
        self.extension = extension

    def ensure_directory(self) -> None:
        """Creates the thumbnail directory if it does not already exist."""
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ThumbnailWriteError(
                f"Could not create thumbnail directory '{self.directory}': {e}"
            ) from e

    def path_for(self, item_id: int) -> Path:
        return self.directory / f"{item_id}{self.extension}"

    async def write(self, item_id: int, data: bytes) -> Path:
        """
        Writes `data` for `item_id` and returns the file path.

        Raises:
            ThumbnailWriteError: If the file cannot be written.
        """
        path = self.path_for(item_id)
        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
        except OSError as e:
            raise ThumbnailWriteError(f"Could not write '{path}': {e}") from e
        log.debug(f"Saved thumbnail for game {item_id} ({len(data)} bytes) to {path}")
        return path
