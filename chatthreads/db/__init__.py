# chatthreads/db/__init__.py
from .keys import ChatKeyBuilder
from .pipeline import ChatPipeline, store_errors
from .storage import RedisStore, get_store

__all__ = [
    "ChatKeyBuilder",
    "ChatPipeline",
    "store_errors",
    "RedisStore",
    "get_store",
]
