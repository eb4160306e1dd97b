# chatthreads/config/__init__.py
"""
Centralized configuration system.

Usage:
    from chatthreads.config import config, STORAGE

    # Access settings
    key_version = STORAGE.key_version

    # Update settings
    config.set('storage', 'default_page_size', 50)
"""

import os

from chatthreads.config.schema import StorageSettings, LoggingSettings
from chatthreads.config.manager import config_manager

# Initialize configuration
config_manager.initialize(config_file=os.getenv("CHATTHREADS_CONFIG", "config.json"))

# Convenient accessors
config = config_manager

# Direct access to settings groups
STORAGE = config_manager.storage
LOGGING = config_manager.logging


def get_config():
    """Return the global configuration manager."""
    return config_manager


__all__ = [
    "config",
    "config_manager",
    "get_config",
    "STORAGE",
    "LOGGING",
    "StorageSettings",
    "LoggingSettings",
]
