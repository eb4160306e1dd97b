# chatthreads/utils/__init__.py
"""
Utility modules.
"""

from chatthreads.utils.logger import configure_logging, setup_logger

__all__ = [
    "configure_logging",
    "setup_logger",
]
