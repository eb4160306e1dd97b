# chatthreads/__init__.py
"""
Threaded chat storage on Redis.

Persists chats as hashes and keeps per-user recency indexes, root indexes
and per-chat children indexes in sorted sets.
"""

__version__ = "1.0.0"

from chatthreads.config import config, STORAGE
from chatthreads.core import (
    ChatThreadsException,
    ChatNotFoundException,
    StoreException,
    StoreUnavailableException,
)
from chatthreads.chat import Chat, ChatPage, ChatService, chat_service

__all__ = [
    "__version__",

    # Config
    "config", "STORAGE",

    # Core
    "ChatThreadsException", "ChatNotFoundException",
    "StoreException", "StoreUnavailableException",

    # Chat
    "Chat", "ChatPage", "ChatService", "chat_service",
]
