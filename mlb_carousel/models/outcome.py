"""
Per-item result of a thumbnail fetch: a written file or a failure reason.
"""

from dataclasses import dataclass
from pathlib import Path

URL_NOT_FOUND = "URL not found"


@dataclass(frozen=True)
class FetchOutcome:
    """Exactly one of `path` and `reason` is set."""

    path: Path | None = None
    reason: str | None = None

    def __post_init__(self):
        if (self.path is None) == (self.reason is None):
            raise ValueError("FetchOutcome needs either a path or a failure reason.")

    @classmethod
    def success(cls, path: Path | str) -> "FetchOutcome":
        return cls(path=Path(path))

    @classmethod
    def failure(cls, reason: str) -> "FetchOutcome":
        return cls(reason=reason)

    @property
    def ok(self) -> bool:
        return self.path is not None

    def __str__(self) -> str:
        return f"success({self.path})" if self.ok else f"failure({self.reason})"
