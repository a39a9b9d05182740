"""
Configuration Module for the payment-guide processing system.

Settings live in ``settings.yaml`` next to this module. Debtor data,
the PS2 ordering account and execution dates are supplied here (or on
the command line) and never hard-coded in the encoders.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml


class ConfigurationManager:
    """
    Centralized configuration for the payment-guide pipeline.

    Loads ``settings.yaml`` once (singleton) and exposes values through
    dot-notation lookups. Command-line flags are applied on top with
    :meth:`set`.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("ocr.tesseract.lang")
        'por'
        >>> config.get("sepa.debtor.iban", "")
        ''
    """

    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_path: Optional path to a YAML file. Defaults to
                        config/settings.yaml.
        """
        if self._initialized:
            return

        if config_path is None:
            self.config_path = Path(__file__).parent / "settings.yaml"
        else:
            self.config_path = Path(config_path)

        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """
        Load configuration from the YAML file.

        Raises:
            FileNotFoundError: If the configuration file doesn't exist.
            yaml.YAMLError: If the configuration file is invalid.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}"
            )

        with open(self.config_path, 'r', encoding='utf-8') as f:
            self._config = yaml.safe_load(f) or {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key (e.g., "sepa.debtor.name").
            default: Value returned when the key is missing or null.

        Returns:
            Configuration value or default.
        """
        value = self._config

        try:
            for k in key.split('.'):
                value = value[k]
        except (KeyError, TypeError):
            return default

        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        """
        Override a configuration value at runtime.

        Intermediate sections are created as needed.

        Args:
            key: Configuration key in dot notation.
            value: New value.
        """
        keys = key.split('.')
        section = self._config
        for k in keys[:-1]:
            if not isinstance(section.get(k), dict):
                section[k] = {}
            section = section[k]
        section[keys[-1]] = value

    @classmethod
    def reset(cls) -> None:
        """
        Reset the singleton instance.
        Used by tests and by the CLI when ``--config`` is given.
        """
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """
    Convenience function to get configuration values.

    Args:
        key: Configuration key in dot notation.
        default: Default value if key doesn't exist.

    Returns:
        Configuration value or default.
    """
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config']
