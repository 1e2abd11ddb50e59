# sqlcsv/config.py
"""
Configuration management for sqlcsv.
Supports YAML configuration files whose ``settings`` section overrides the
package defaults.
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional, List

from .defaults import settings
from .exceptions import ConfigurationError

try:
    import yaml
except ImportError:
    raise ImportError("PyYAML is required. Install with: pip install PyYAML")

logger = logging.getLogger(__name__)

_config_manager: Optional['ConfigManager'] = None


def _config_candidates() -> List[Path]:
    return [
        Path("sqlcsv.yml"),
        Path("sqlcsv.yaml"),
        Path.home() / ".config" / "sqlcsv.yml",
        Path.home() / ".config" / "sqlcsv.yaml"
    ]


class ConfigManager:
    """
    Manage sqlcsv configuration from YAML files.

    Configuration File Structure
    ----------------------------
    ::

        # sqlcsv.yml
        settings:
          default_timezone: America/Chicago
          null_string_csv: ''
          time_format: '%Y-%m-%dT%H:%M:%S%z'
          encoding: utf-8
          csv_delimiter: ','
          logging:
            directory: ./logs
            level: DEBUG

    Configuration Locations
    -----------------------
    ConfigManager searches for configuration files in this order:

    1. File specified in config_file parameter
    2. ``./sqlcsv.yml`` (current directory)
    3. ``./sqlcsv.yaml`` (current directory)
    4. ``~/.config/sqlcsv.yml`` (user config directory)
    5. ``~/.config/sqlcsv.yaml`` (user config directory)

    Unlike an explicit path, finding no file in the default locations is not
    an error: the package defaults are used as-is.

    Attributes
    ----------
    config_file : Path or None
        Path to the loaded configuration file
    config : dict
        Parsed configuration dictionary
    """

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize config manager and load configuration.

        Raises
        ------
        FileNotFoundError
            If config_file is given and does not exist
        ConfigurationError
            If the file is not valid YAML or has the wrong structure
        """
        self.config_file = self._find_config_file(config_file)
        self.config = self._load_config()
        self._apply_settings()

    def _find_config_file(self, config_file: Optional[str]) -> Optional[Path]:
        """Find the configuration file."""
        if config_file:
            path = Path(config_file)
            if not path.exists():
                raise FileNotFoundError(f"Config file not found: {config_file}")
            return path

        for candidate in _config_candidates():
            if candidate.exists():
                return candidate

        logger.debug("No sqlcsv config file found, using defaults")
        return None

    def _load_config(self) -> Dict[str, Any]:
        """Load and validate configuration file."""
        if self.config_file is None:
            return {}
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load config file {self.config_file}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigurationError(f"Invalid config file {self.config_file}.")
        if 'settings' in config and not isinstance(config['settings'], dict):
            raise ConfigurationError(
                f"Invalid config file {self.config_file}: 'settings' must be a dictionary")

        logger.info(f"Loaded config from {self.config_file}")
        return config

    def _apply_settings(self) -> None:
        """Merge the settings section into the package defaults."""
        for key, value in self.config.get('settings', {}).items():
            if isinstance(value, dict) and isinstance(settings.get(key), dict):
                settings[key].update(value)
            else:
                settings[key] = value

    def get_setting(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value from the package settings.

        The loaded file has already been merged into the package defaults, so
        values changed at runtime are seen here too.

        Args:
            key: Setting key (supports dot notation like 'logging.level')
            default: Default value if key not found

        Returns:
            Setting value or default

        Example:
            level = config.get_setting('logging.level', 'INFO')
            tz = config.get_setting('default_timezone', 'UTC')
        """
        value = settings
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value


def _get_manager(config_file: Optional[str] = None) -> ConfigManager:
    global _config_manager

    if config_file:
        return ConfigManager(config_file)
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def set_config_file(config_file: str) -> None:
    """Set the configuration file to use globally."""
    global _config_manager
    _config_manager = ConfigManager(config_file)


def get_setting(key: str, default: Any = None, config_file: Optional[str] = None) -> Any:
    """
    Get a setting value from configuration.

    Args:
        key: Setting key (supports dot notation like 'logging.level')
        default: Default value if key not found
        config_file: Optional path to config file

    Returns:
        Setting value or default

    Example:
        tz = get_setting('default_timezone', 'UTC')
        log_dir = get_setting('logging.directory', './logs')
    """
    return _get_manager(config_file).get_setting(key, default)
