"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class MlbCarouselError(Exception):
    """Base exception for all application-specific errors."""


class ScheduleFetchError(MlbCarouselError):
    """Raised when the schedule document cannot be retrieved or decoded."""


class MissingMetadataError(MlbCarouselError):
    """Raised when a schedule document contains no date buckets."""

    def __init__(self, message: str = "missing metadata"):
        super().__init__(message)


class ImageFetchError(MlbCarouselError):
    """Raised when a thumbnail download fails or returns a non-2xx status."""


class ThumbnailWriteError(MlbCarouselError):
    """Raised when downloaded thumbnail bytes cannot be written to disk."""


class StateTransitionError(MlbCarouselError):
    """Raised when the network state is found in a variant a transition does not allow."""


class DuplicateOutcomeError(StateTransitionError):
    """
    Raised when an outcome is recorded twice for the same item index within a run.
    """


class ConfigurationError(MlbCarouselError):
    """Raised for issues related to configuration loading or validation."""
