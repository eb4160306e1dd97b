# chatthreads/db/pipeline.py
"""
Batched command submission.

One logical operation (record write, index updates, parent counter) is
queued on a non-transactional Redis pipeline and sent in a single round
trip. Commands run in order and each is atomic on its own, but there is no
cross-command atomicity and nothing is rolled back if a later command fails.
"""

from contextlib import contextmanager
from typing import Any, Dict, List

import redis

from chatthreads.core.exceptions import StoreException, StoreUnavailableException
from chatthreads.utils.logger import setup_logger

logger = setup_logger(__name__)


@contextmanager
def store_errors(action: str):
    """Translate redis-py errors into store exceptions."""
    try:
        yield
    except (redis.ConnectionError, redis.TimeoutError) as e:
        raise StoreUnavailableException(e) from e
    except redis.RedisError as e:
        raise StoreException(f"{action} failed: {e}", e) from e


class ChatPipeline:
    """Queues store commands and submits them as one batch."""

    def __init__(self, client: redis.Redis):
        self._pipe = client.pipeline(transaction=False)
        self._commands: List[str] = []

    def __len__(self) -> int:
        return len(self._commands)

    @property
    def commands(self) -> List[str]:
        return list(self._commands)

    def _queue(self, description: str):
        self._commands.append(description)
        return self

    def hset(self, key: str, mapping: Dict[str, Any]) -> "ChatPipeline":
        self._pipe.hset(key, mapping=mapping)
        return self._queue(f"HSET {key}")

    def hsetnx(self, key: str, field: str, value: Any) -> "ChatPipeline":
        self._pipe.hsetnx(key, field, value)
        return self._queue(f"HSETNX {key} {field}")

    def hgetall(self, key: str) -> "ChatPipeline":
        self._pipe.hgetall(key)
        return self._queue(f"HGETALL {key}")

    def hincrby(self, key: str, field: str, amount: int) -> "ChatPipeline":
        self._pipe.hincrby(key, field, amount)
        return self._queue(f"HINCRBY {key} {field} {amount}")

    def delete(self, *keys: str) -> "ChatPipeline":
        self._pipe.delete(*keys)
        return self._queue(f"DEL {' '.join(keys)}")

    def zadd(self, key: str, score: float, member: str) -> "ChatPipeline":
        self._pipe.zadd(key, {member: score})
        return self._queue(f"ZADD {key} {member}")

    def zrem(self, key: str, member: str) -> "ChatPipeline":
        self._pipe.zrem(key, member)
        return self._queue(f"ZREM {key} {member}")

    def execute(self) -> List[Any]:
        """
        Submit the batch.

        Returns the per-command results in submission order. Raises on the
        first failed command; commands before it may already be applied.
        """
        if not self._commands:
            return []

        with store_errors(f"pipeline of {len(self._commands)} commands"):
            results = self._pipe.execute(raise_on_error=True)

        logger.debug(f"Pipeline executed: {len(self._commands)} commands")
        self._commands = []
        return results
