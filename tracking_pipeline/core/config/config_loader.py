"""
Configuration Loader
Loads, validates and saves YAML configuration files
"""

import os
from contextlib import suppress
from pathlib import Path
from typing import Any, Dict
import yaml

from ..analysis.range_filter import ChartRange
from .app_config import AppConfig


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


class ConfigLoader:
    """
    Loads and validates configuration from YAML files.

    Responsibilities:
    - Read YAML configuration file
    - Validate all fields
    - Validate types and value ranges
    - Return validated AppConfig instance
    - Write an AppConfig back (e.g. after the API key changes)
    """

    def __init__(self, config_path: Path):
        """
        Initialize ConfigLoader with path to config file.

        Args:
            config_path: Path to YAML configuration file
        """
        self._config_path = Path(config_path)

    @property
    def config_path(self) -> Path:
        return self._config_path

    def exists(self) -> bool:
        return self._config_path.exists()

    def load(self) -> AppConfig:
        """
        Load and validate configuration from YAML file.

        Returns:
            AppConfig: Validated configuration object

        Raises:
            ConfigValidationError: If configuration is invalid
            FileNotFoundError: If config file doesn't exist
        """
        config_data = self._load_yaml()

        api_key = self._validate_api_key(config_data)
        storage_root = self._validate_storage_config(config_data)
        display = self._validate_display_config(config_data)

        return AppConfig(
            api_key=api_key,
            storage_root=storage_root,
            display_range=display["range"],
            tick_count=display["tick_count"]
        )

    def save(self, config: AppConfig) -> None:
        """Write the configuration atomically, replacing the existing file."""
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._config_path.with_suffix(self._config_path.suffix + ".tmp")
        try:
            with open(tmp, 'w', encoding='utf-8') as f:
                yaml.safe_dump(config.to_dict(), f, sort_keys=False, allow_unicode=True)
            os.replace(tmp, self._config_path)
        except Exception:
            with suppress(FileNotFoundError):
                tmp.unlink()
            raise

    def _load_yaml(self) -> Dict[str, Any]:
        """Load YAML file and return parsed data."""
        if not self._config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self._config_path}"
            )

        try:
            with open(self._config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)

            if data is None:
                raise ConfigValidationError("Configuration file is empty")

            if not isinstance(data, dict):
                raise ConfigValidationError(
                    "Configuration must be a YAML mapping/dictionary"
                )

            return data

        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Invalid YAML syntax: {e}")

    def _validate_api_key(self, config: Dict[str, Any]) -> str:
        """Validate api_key field (optional until the first fetch)."""
        api_key = config.get("api_key")

        if api_key is None:
            return ""

        if not isinstance(api_key, str):
            raise ConfigValidationError(
                f"Field 'api_key' must be a string, got {type(api_key).__name__}"
            )

        return api_key.strip()

    def _validate_storage_config(self, config: Dict[str, Any]) -> str:
        """Validate storage section."""
        default_root = "./storage"

        if "storage" not in config:
            return default_root

        storage = config["storage"]
        if not isinstance(storage, dict):
            return default_root

        root = storage.get("root", default_root)
        if not isinstance(root, str):
            raise ConfigValidationError(f"storage.root must be string, got {type(root).__name__}")
        if not root.strip():
            raise ConfigValidationError("storage.root cannot be empty")

        return root.strip()

    def _validate_display_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Validate display section (default range and axis ticks)."""
        defaults = {
            "range": ChartRange.ALL,
            "tick_count": 7
        }

        if "display" not in config:
            return defaults

        display = config["display"]
        if not isinstance(display, dict):
            return defaults

        range_value = display.get("range", defaults["range"].value)
        tick_count = display.get("tick_count", defaults["tick_count"])

        try:
            chart_range = ChartRange(range_value)
        except ValueError:
            choices = ", ".join(r.value for r in ChartRange)
            raise ConfigValidationError(
                f"display.range must be one of: {choices}, got {range_value!r}"
            )

        if not isinstance(tick_count, int) or isinstance(tick_count, bool) or tick_count < 2:
            raise ConfigValidationError(
                f"display.tick_count must be an integer >= 2, got {tick_count!r}"
            )

        return {
            "range": chart_range,
            "tick_count": tick_count
        }
