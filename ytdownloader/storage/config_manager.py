"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import SecretStr, ValidationError

from ytdownloader.exceptions import ConfigurationError
from ytdownloader.models.config import AppConfig

log = logging.getLogger(__name__)

# Environment variables that override the credentials stored in the file
ENV_OVERRIDES = {
    "email": "YTDOWNLOADER_EMAIL",
    "password": "YTDOWNLOADER_PASSWORD",
}

_BOOL_KEYS = {"check_updates", "headless"}
_INT_KEYS = {"max_redirects"}
_FLOAT_KEYS = {"navigation_timeout", "element_timeout", "banner_timeout", "settle_delay"}
_LIST_KEYS = {"installer_suffixes"}


def _format_value(value: Any) -> str:
    if isinstance(value, SecretStr):
        value = value.get_secret_value()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(map(str, value))
    # configparser uses % for interpolation, so we must escape it
    return str(value).replace("%", "%%")


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser()

    def load_config(self, cli_options: dict[str, Any] | None = None) -> AppConfig:
        """
        Loads configuration from the INI file and the environment, applies CLI
        overrides, and validates it. A missing file means all defaults.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated AppConfig object.

        Raises:
            ConfigurationError: If the config file is unreadable or validation fails.
        """
        config_values: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(f"Error parsing configuration file: {e}") from e

            if self._migrate_if_needed():
                log.info(
                    "[yellow]Configuration file was updated with new default values."
                    "[/yellow]"
                )
            config_values = self._get_config_as_dict()
        else:
            log.debug(f"No configuration file at '{self.config_file_path}', using defaults.")

        for key, env_var in ENV_OVERRIDES.items():
            if value := os.environ.get(env_var):
                config_values[key] = value

        if cli_options:
            config_values.update(cli_options)

        try:
            return AppConfig(**config_values, config_path=str(self.config_file_path.parent))
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any]) -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: A dictionary of settings to save.
        """
        config = configparser.ConfigParser()
        config["DEFAULT"] = {}

        defaults = AppConfig()
        for key in sorted(AppConfig.get_ini_keys()):
            value = settings.get(key, getattr(defaults, key, None))
            if value is not None:
                config["DEFAULT"][key] = _format_value(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the keys present in the 'DEFAULT' section into a dictionary."""
        section = self._parser["DEFAULT"]
        values: dict[str, Any] = {}
        try:
            for key in AppConfig.get_ini_keys():
                if key not in section:
                    continue
                if key in _BOOL_KEYS:
                    values[key] = section.getboolean(key)
                elif key in _INT_KEYS:
                    values[key] = section.getint(key)
                elif key in _FLOAT_KEYS:
                    values[key] = section.getfloat(key)
                elif key in _LIST_KEYS:
                    values[key] = [s.strip() for s in section.get(key).split(",") if s.strip()]
                else:
                    values[key] = section.get(key)
        except ValueError as e:
            raise ConfigurationError(f"Invalid value in configuration file: {e}") from e
        return values

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = AppConfig()
        config_section = self._parser["DEFAULT"]
        needs_saving = False

        for key in sorted(AppConfig.get_ini_keys()):
            if key not in config_section:
                config_section[key] = _format_value(getattr(defaults, key))
                needs_saving = True
                log.debug(f"Migrating config: added missing key '{key}'.")

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
