"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

import re

from pydantic import BaseModel, Field, field_validator

DEFAULT_SCHEDULE_URL = "http://statsapi.mlb.com/api/v1/schedule"
DEFAULT_THUMBNAIL_DIR = "./assets/thumbnails"
CANONICAL_RESOLUTION = "684x385"


class CarouselConfig(BaseModel):
    """A validated configuration model for the application."""

    # Schedule API
    schedule_url: str = DEFAULT_SCHEDULE_URL
    sport_id: int = 1
    request_timeout: float | None = None

    # Thumbnail Settings
    thumbnail_dir: str = DEFAULT_THUMBNAIL_DIR
    canonical_resolution: str = CANONICAL_RESOLUTION
    image_extension: str = ".png"

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("schedule_url")
    @classmethod
    def validate_schedule_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("Schedule URL must start with http:// or https://.")
        return v

    @field_validator("sport_id")
    @classmethod
    def validate_sport_id(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Sport ID must be a positive integer.")
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        """A timeout of zero or less is treated as an error, None disables it."""
        if v is not None and v <= 0:
            raise ValueError("Request timeout must be greater than zero.")
        return v

    @field_validator("thumbnail_dir")
    @classmethod
    def validate_thumbnail_dir(cls, v: str) -> str:
        if not v:
            raise ValueError("Thumbnail directory cannot be empty.")
        return v

    @field_validator("canonical_resolution")
    @classmethod
    def validate_resolution(cls, v: str) -> str:
        if not re.fullmatch(r"\d+x\d+", v):
            raise ValueError(
                f"Resolution must look like WIDTHxHEIGHT (e.g. 684x385), got: {v}"
            )
        return v

    @field_validator("image_extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if not v.startswith(".") or len(v) < 2 or "/" in v or "\\" in v:
            raise ValueError("Image extension must look like '.png'.")
        return v

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path"}
        return {key for key in cls.model_fields if key not in internal_fields}
