"""
Configuration management for Conimex.

This module handles loading and accessing configuration values from config.yaml.
It provides a centralized way to manage import settings without changing code.
"""

import yaml
from pathlib import Path
from typing import Any, Dict, List
import logging


class ConfigManager:
    """
    Manages configuration loading and access for Conimex.
    """

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file, layered over the defaults."""
        self._config = self._get_default_config()

        if not self.config_path.exists():
            logging.warning(f"Configuration file not found: {self.config_path}; using defaults")
            return

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logging.error(f"Failed to load configuration: {e}")
            return

        if not isinstance(loaded, dict):
            logging.error(f"Configuration in {self.config_path} is not a mapping; using defaults")
            return

        self._merge(self._config, loaded)
        logging.info(f"Configuration loaded from {self.config_path}")

    @staticmethod
    def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                ConfigManager._merge(base[key], value)
            else:
                base[key] = value

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values as fallback."""
        return {
            "database": {
                "filename": "conimex.db"
            },
            "schema": {
                "contenttypes": "config/contenttypes.yaml",
                "taxonomy": "config/taxonomy.yaml"
            },
            "locales": {
                "available": []
            },
            "import": {
                "clear_interval": 3,
                "skip_users": False
            },
            "users": {
                "default_locale": "en",
                "default_backend_theme": "default"
            },
            "paths": {
                "log_file": "conimex.log"
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        }

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key_path: Dot-separated path to the configuration value (e.g., "import.clear_interval")
            default: Default value if key is not found

        Returns:
            The configuration value

        Examples:
            config.get("database.filename")  # Returns "conimex.db"
            config.get("locales.available")  # Returns []
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get an entire configuration section.

        Args:
            section: Name of the configuration section

        Returns:
            Dictionary containing the section configuration
        """
        return self._config.get(section, {})

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    # Convenience properties for commonly used values

    @property
    def database_filename(self) -> str:
        """Get database filename."""
        return self.get("database.filename", "conimex.db")

    @property
    def contenttypes_path(self) -> str:
        return self.get("schema.contenttypes", "config/contenttypes.yaml")

    @property
    def taxonomy_path(self) -> str:
        return self.get("schema.taxonomy", "config/taxonomy.yaml")

    @property
    def available_locales(self) -> List[str]:
        """Get the locales translations are imported for."""
        locales = self.get("locales.available", []) or []
        if isinstance(locales, str):
            locales = [locales]
        return [str(locale) for locale in locales]

    @property
    def clear_interval(self) -> int:
        """Get how many records are imported between unit-of-work clears."""
        return int(self.get("import.clear_interval", 3))

    @property
    def skip_users(self) -> bool:
        return bool(self.get("import.skip_users", False))

    @property
    def default_user_locale(self) -> str:
        return self.get("users.default_locale", "en")

    @property
    def default_backend_theme(self) -> str:
        return self.get("users.default_backend_theme", "default")

    @property
    def log_filename(self) -> str:
        """Get log file name."""
        return self.get("paths.log_file", "conimex.log")
