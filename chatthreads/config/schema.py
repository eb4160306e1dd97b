# chatthreads/config/schema.py
"""
Configuration schema definitions.
All configurable values are defined here with types and defaults.
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any


# =============================================================================
# Storage Configuration
# =============================================================================

@dataclass
class StorageSettings:
    """Redis store settings."""
    redis_url: Optional[str] = None  # Takes precedence over host/port/db
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = None
    socket_timeout: float = 2.0
    socket_connect_timeout: float = 2.0
    key_version: str = "v2"
    share_path_prefix: str = "/share/"
    default_page_size: int = 20
    strict_message_decoding: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# Logging Configuration
# =============================================================================

@dataclass
class LoggingSettings:
    """Logger level and format."""
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
