"""
Manages loading, validation, and saving of the INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from mlb_carousel.exceptions import ConfigurationError
from mlb_carousel.models.config import CarouselConfig

log = logging.getLogger(__name__)


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser()

    def load_config(self, cli_options: dict[str, Any] | None = None) -> CarouselConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        A missing file is not an error; the model defaults are used instead.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated CarouselConfig object.

        Raises:
            ConfigurationError: If the config file is invalid or validation fails.
        """
        config_from_file: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path)
            except configparser.Error as e:
                raise ConfigurationError(f"Error parsing configuration file: {e}") from e
            config_from_file = self._get_config_as_dict()
        else:
            log.debug(
                f"No configuration file at '{self.config_file_path}', using defaults."
            )

        if cli_options:
            config_from_file.update(cli_options)

        try:
            config_dir = self.config_file_path.parent
            return CarouselConfig(**config_from_file, config_path=str(config_dir))
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_config(self, settings: dict[str, Any] | None = None) -> None:
        """
        Writes a complete configuration file, filling gaps with model defaults.

        Args:
            settings: A dictionary of settings to save.
        """
        settings = settings or {}
        try:
            values = CarouselConfig(**settings)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

        config = configparser.ConfigParser()
        config["DEFAULT"] = {}
        for key in sorted(CarouselConfig.get_ini_keys()):
            value = getattr(values, key)
            # An empty value reads back as "no timeout"
            config["DEFAULT"][key] = "" if value is None else str(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        values: dict[str, Any] = {}
        for key in ("schedule_url", "thumbnail_dir", "canonical_resolution", "image_extension"):
            if key in section:
                values[key] = section.get(key)
        try:
            if "sport_id" in section:
                values["sport_id"] = section.getint("sport_id")
            if "request_timeout" in section:
                raw_timeout = section.get("request_timeout").strip()
                values["request_timeout"] = float(raw_timeout) if raw_timeout else None
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric value in configuration: {e}") from e
        return values
