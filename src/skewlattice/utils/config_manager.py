"""
SkewLattice - Configuration Manager

This module provides centralized JSON-based configuration management for
the persisted display clamp bounds and the peak search radius.
"""

import copy
import json
import os
from enum import Enum
from typing import Any, Final

from skewlattice.config import CONFIG_FILE_PATH, DEFAULT_PEAK_RADIUS
from skewlattice.utils.exceptions import ConfigurationError
from skewlattice.utils.logger import logger

# Default configuration values
DEFAULT_CONFIG: Final[dict[str, Any]] = {
    "version": 1,
    # Clamp bounds are stored per display role as display.<role>.lower/upper;
    # absent bounds mean "full data range".
    "display": {},
    "peaks": {
        "radius": DEFAULT_PEAK_RADIUS,
    },
}


def _role_key(role: "str | Enum") -> str:
    return role.value if isinstance(role, Enum) else str(role)


class ConfigManager:
    """Manages persisted settings in JSON format.

    Values are addressed by dot-separated key paths such as
    ``"peaks.radius"`` or ``"display.corrected_spectrum.lower"``.
    """

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize the configuration manager.

        Args:
            config_path: Optional path to the configuration file.
                        Defaults to CONFIG_FILE_PATH.
        """
        self.config_path = config_path or CONFIG_FILE_PATH
        self._config: dict[str, Any] = {}

        os.makedirs(os.path.dirname(self.config_path), exist_ok=True)

        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file or create default."""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, encoding="utf-8") as f:
                    self._config = json.load(f)
                logger.info("Configuration loaded from JSON")
                self._upgrade_config()
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Error loading config: {e}")
                self._config = self._get_default_config()
        else:
            self._config = self._get_default_config()
            self.save()

    def _get_default_config(self) -> dict[str, Any]:
        """Get a deep copy of the default configuration."""
        return copy.deepcopy(DEFAULT_CONFIG)

    def _upgrade_config(self) -> None:
        """Upgrade configuration to latest version if needed."""
        current_version = self._config.get("version", 0)

        if current_version < DEFAULT_CONFIG["version"]:
            self._merge_defaults(self._config, DEFAULT_CONFIG)
            self._config["version"] = DEFAULT_CONFIG["version"]
            logger.info(f"Configuration upgraded to version {DEFAULT_CONFIG['version']}")

    def _merge_defaults(self, config: dict, defaults: dict) -> None:
        """Merge default values into config for missing keys."""
        for key, value in defaults.items():
            if key not in config:
                config[key] = copy.deepcopy(value)
            elif isinstance(value, dict) and isinstance(config.get(key), dict):
                self._merge_defaults(config[key], value)

    def save(self) -> bool:
        """Save configuration to file.

        Returns:
            True if save was successful, False otherwise.
        """
        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=2, ensure_ascii=False)
            logger.debug("Configuration saved to JSON")
            return True
        except OSError as e:
            logger.error(f"Error saving config: {e}")
            return False

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get a configuration value by dot-separated path.

        Args:
            key_path: Dot-separated path to the config value (e.g., "peaks.radius")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self._config

        for key in key_path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any, save_immediately: bool = True) -> None:
        """Set a configuration value by dot-separated path.

        Args:
            key_path: Dot-separated path to the config value
            value: Value to set
            save_immediately: Whether to save to file immediately
        """
        keys = key_path.split(".")
        config = self._config

        for key in keys[:-1]:
            if not isinstance(config.get(key), dict):
                config[key] = {}
            config = config[key]

        config[keys[-1]] = value

        if save_immediately:
            self.save()

    def _get_number(self, key_path: str) -> float | None:
        value = self.get(key_path)
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigurationError(key_path, f"expected a number, got {value!r}")
        return float(value)

    def get_clamp_bounds(self, role: "str | Enum") -> tuple[float | None, float | None]:
        """Return the stored (lower, upper) display bounds for a role.

        Either bound is None when it has never been stored.
        """
        key = _role_key(role)
        return (
            self._get_number(f"display.{key}.lower"),
            self._get_number(f"display.{key}.upper"),
        )

    def set_clamp_bounds(
        self,
        role: "str | Enum",
        lower: float | None = None,
        upper: float | None = None,
        save_immediately: bool = True,
    ) -> None:
        """Store display bounds for a role; a None bound keeps its stored value."""
        key = _role_key(role)
        if lower is not None:
            self.set(f"display.{key}.lower", float(lower), save_immediately=False)
        if upper is not None:
            self.set(f"display.{key}.upper", float(upper), save_immediately=False)
        if save_immediately:
            self.save()

    def get_peak_radius(self) -> int:
        """Return the peak search radius in pixels (always >= 1)."""
        radius = self._get_number("peaks.radius")
        if radius is None or radius < 1:
            return DEFAULT_PEAK_RADIUS
        return int(radius)

    def set_peak_radius(self, radius: int, save_immediately: bool = True) -> None:
        if radius < 1:
            raise ConfigurationError("peaks.radius", f"radius must be >= 1, got {radius}")
        self.set("peaks.radius", int(radius), save_immediately=save_immediately)


# Singleton instance for global access
_config_manager: ConfigManager | None = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance.

    Returns:
        The singleton ConfigManager instance
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
