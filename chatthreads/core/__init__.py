# chatthreads/core/__init__.py
"""
Core application components.
"""

from chatthreads.core.exceptions import (
    ChatThreadsException,
    ChatNotFoundException,
    StoreException,
    StoreUnavailableException,
    SerializationException,
    UnauthorizedException,
    ConstraintViolationException
)

__all__ = [
    "ChatThreadsException",
    "ChatNotFoundException",
    "StoreException",
    "StoreUnavailableException",
    "SerializationException",
    "UnauthorizedException",
    "ConstraintViolationException",
]
