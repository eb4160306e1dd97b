# chatthreads/config/manager.py
"""
Configuration manager - handles loading, saving, validation, and access.
Supports a JSON config file, environment overrides and runtime updates.
"""

import json
import os
from pathlib import Path
from typing import Dict, Any, Optional
from threading import Lock

from chatthreads.config.schema import StorageSettings, LoggingSettings
from chatthreads.utils.logger import configure_logging, setup_logger

logger = setup_logger(__name__)


# Environment variable -> (category, field)
ENV_OVERRIDES = {
    "CHATTHREADS_REDIS_URL": ("storage", "redis_url"),
    "CHATTHREADS_REDIS_HOST": ("storage", "redis_host"),
    "CHATTHREADS_REDIS_PORT": ("storage", "redis_port"),
    "CHATTHREADS_REDIS_DB": ("storage", "redis_db"),
    "CHATTHREADS_REDIS_PASSWORD": ("storage", "redis_password"),
    "CHATTHREADS_KEY_VERSION": ("storage", "key_version"),
    "CHATTHREADS_STRICT_MESSAGES": ("storage", "strict_message_decoding"),
    "LOG_LEVEL": ("logging", "log_level"),
}


class ConfigurationManager:
    """
    Centralized configuration manager.
    - Loads from file or uses defaults
    - Applies environment overrides
    - Coerces updates to the field's type
    - Thread-safe access
    """

    _instance = None
    _lock = Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._config_file: Optional[Path] = None
        self._settings: Dict[str, Any] = {}
        self._lock = Lock()

        self._init_defaults()
        self._initialized = True

    def _init_defaults(self):
        """Initialize all settings with default values."""
        self._settings = {
            'storage': StorageSettings(),
            'logging': LoggingSettings(),
        }

    def initialize(self, config_file: Optional[str] = None, environ: Optional[Dict[str, str]] = None):
        """
        Initialize configuration from file, then from environment.

        Args:
            config_file: Path to JSON config file
            environ: Environment mapping (defaults to os.environ)
        """
        with self._lock:
            if config_file:
                self._config_file = Path(config_file)
                if self._config_file.exists():
                    self._load_from_file()

        self._apply_env_overrides(os.environ if environ is None else environ)
        self._apply_logging()

    def reset(self):
        """Restore defaults in place so module-level accessors stay valid."""
        with self._lock:
            self._config_file = None
            for key, defaults in (('storage', StorageSettings()), ('logging', LoggingSettings())):
                for field, value in defaults.to_dict().items():
                    setattr(self._settings[key], field, value)
        self._apply_logging()

    def _apply_logging(self):
        configure_logging(self.logging.log_level, self.logging.log_format)

    def _load_from_file(self):
        """Load configuration from JSON file."""
        try:
            with open(self._config_file, 'r', encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load config file {self._config_file}: {e}, using defaults")
            return

        for key, settings_obj in self._settings.items():
            for field, value in data.get(key, {}).items():
                if not hasattr(settings_obj, field):
                    continue
                try:
                    setattr(settings_obj, field, self._coerce(getattr(settings_obj, field), value))
                except (TypeError, ValueError):
                    logger.warning(f"Ignoring invalid value for {key}.{field}: {value!r}")

        logger.info(f"Configuration loaded from {self._config_file}")

    def _apply_env_overrides(self, environ):
        for env_name, (category, field) in ENV_OVERRIDES.items():
            if env_name in environ:
                self.set(category, field, environ[env_name])

    def save(self, config_file: Optional[str] = None) -> str:
        """Save current configuration to file."""
        file_path = Path(config_file) if config_file else self._config_file
        if not file_path:
            file_path = Path.cwd() / "config.json"

        with self._lock:
            data = {key: settings_obj.to_dict() for key, settings_obj in self._settings.items()}

            with open(file_path, 'w', encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)

            self._config_file = file_path

        return str(file_path)

    # =========================================================================
    # Getters for each settings group
    # =========================================================================

    @property
    def storage(self) -> StorageSettings:
        return self._settings['storage']

    @property
    def logging(self) -> LoggingSettings:
        return self._settings['logging']

    # =========================================================================
    # Dynamic access and updates
    # =========================================================================

    def get(self, category: str, field: str) -> Any:
        """Get a specific configuration value."""
        with self._lock:
            settings = self._settings.get(category)
            if settings and hasattr(settings, field):
                return getattr(settings, field)
            return None

    def get_section(self, category: str) -> Optional[Dict[str, Any]]:
        """Get an entire configuration section as dictionary."""
        with self._lock:
            settings = self._settings.get(category)
            if settings:
                return settings.to_dict()
            return None

    def set(self, category: str, field: str, value: Any) -> bool:
        """
        Set a configuration value.

        Returns:
            True if successful, False if the field is unknown or the
            value cannot be converted to the field's type.
        """
        with self._lock:
            settings = self._settings.get(category)
            if not settings or not hasattr(settings, field):
                return False

            try:
                coerced = self._coerce(getattr(settings, field), value)
            except (TypeError, ValueError):
                return False

            setattr(settings, field, coerced)

        if category == 'logging':
            self._apply_logging()
        return True

    def get_all_values(self) -> Dict[str, Dict[str, Any]]:
        """Get all current configuration values."""
        with self._lock:
            return {key: settings_obj.to_dict() for key, settings_obj in self._settings.items()}

    @staticmethod
    def _coerce(current: Any, value: Any) -> Any:
        """Convert value to the type of the current setting."""
        if current is None or value is None:
            return value
        if isinstance(current, bool):
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "on")
            return bool(value)
        if isinstance(current, int):
            return int(value)
        if isinstance(current, float):
            return float(value)
        if isinstance(current, str):
            return str(value)
        return value


# Global instance
config_manager = ConfigurationManager()
