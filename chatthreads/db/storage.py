# chatthreads/db/storage.py
"""
Redis store client.

Owns the pooled redis-py connection used by every chat operation, plus the
key builder and health/statistics helpers.
"""

from typing import Optional, Dict, Any

import redis

from chatthreads.config import config_manager
from chatthreads.config.schema import StorageSettings
from chatthreads.core.exceptions import StoreException
from chatthreads.db.keys import ChatKeyBuilder
from chatthreads.db.pipeline import ChatPipeline, store_errors
from chatthreads.utils.logger import setup_logger

logger = setup_logger(__name__)


class RedisStore:
    """
    Thin wrapper over a redis-py client.

    The client is created lazily from ``StorageSettings`` so constructing a
    store never touches the network; pass ``client`` to inject one (tests
    use fakeredis).
    """

    def __init__(self, client: Optional[redis.Redis] = None, settings: Optional[StorageSettings] = None):
        self.settings = settings or config_manager.storage
        self.keys = ChatKeyBuilder(self.settings.key_version)
        self._client = client

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = self._init_redis()
        return self._client

    def _init_redis(self) -> redis.Redis:
        """Create the pooled client from settings."""
        options = dict(
            decode_responses=True,
            socket_connect_timeout=self.settings.socket_connect_timeout,
            socket_timeout=self.settings.socket_timeout,
        )
        if self.settings.redis_url:
            client = redis.Redis.from_url(self.settings.redis_url, **options)
            logger.info("Redis client configured from URL")
        else:
            client = redis.Redis(
                host=self.settings.redis_host,
                port=self.settings.redis_port,
                db=self.settings.redis_db,
                password=self.settings.redis_password,
                **options
            )
            logger.info(f"Redis client configured for {self.settings.redis_host}:{self.settings.redis_port}")
        return client

    def pipeline(self) -> ChatPipeline:
        return ChatPipeline(self.client)

    def ping(self) -> bool:
        """Round-trip check; False when the store is unreachable."""
        try:
            with store_errors("PING"):
                return bool(self.client.ping())
        except StoreException as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    # =========================================================================
    # Statistics (for monitoring)
    # =========================================================================

    def get_store_stats(self) -> Dict[str, Any]:
        """Get Redis server statistics."""
        try:
            with store_errors("INFO"):
                info = self.client.info()
                total_keys = self.client.dbsize()
        except StoreException as e:
            return {"available": False, "error": str(e)}

        return {
            "available": True,
            "connected_clients": info.get("connected_clients", 0),
            "used_memory_human": info.get("used_memory_human", "unknown"),
            "keyspace_hits": info.get("keyspace_hits", 0),
            "keyspace_misses": info.get("keyspace_misses", 0),
            "hit_rate": self._calculate_hit_rate(info),
            "total_keys": total_keys,
        }

    @staticmethod
    def _calculate_hit_rate(info: Dict) -> str:
        """Calculate keyspace hit rate percentage."""
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        total = hits + misses
        if total == 0:
            return "N/A"
        return f"{(hits / total) * 100:.1f}%"


_store: Optional[RedisStore] = None


def get_store() -> RedisStore:
    """Return the process-wide store, creating it on first use."""
    global _store
    if _store is None:
        _store = RedisStore()
    return _store
