# chatthreads/chat/indexes.py
"""
Recency indexes and parent propagation.

Every chat appears in its owner's all-chats sorted set and, depending on
whether it has a parent, in the owner's roots set or in the parent's
children set. Scores are ``lastActivityAt`` in epoch milliseconds.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from chatthreads.chat.schemas import Chat, utcnow
from chatthreads.chat.storage import ChatRepository
from chatthreads.chat.threading import format_timestamp, to_score
from chatthreads.db.pipeline import ChatPipeline, store_errors
from chatthreads.db.storage import RedisStore
from chatthreads.utils.logger import setup_logger

logger = setup_logger(__name__)


class ChatIndexes:
    """Maintains and queries the three index families."""

    def __init__(self, store: RedisStore):
        self.store = store
        self.keys = store.keys

    # =========================================================================
    # Maintenance
    # =========================================================================

    def on_save(self, pipeline: ChatPipeline, chat: Chat) -> None:
        chat_key = self.keys.chat(chat.id)
        score = to_score(chat.last_activity_at)

        pipeline.zadd(self.keys.user_chats(chat.user_id), score, chat_key)
        if chat.is_root:
            pipeline.zadd(self.keys.user_roots(chat.user_id), score, chat_key)
        else:
            pipeline.zadd(self.keys.children(chat.parent_id), score, chat_key)

    def on_delete(self, pipeline: ChatPipeline, chat: Chat) -> None:
        chat_key = self.keys.chat(chat.id)

        pipeline.zrem(self.keys.user_chats(chat.user_id), chat_key)
        if chat.is_root:
            pipeline.zrem(self.keys.user_roots(chat.user_id), chat_key)
        else:
            pipeline.zrem(self.keys.children(chat.parent_id), chat_key)
        pipeline.delete(self.keys.children(chat.id))

    # =========================================================================
    # Queries
    # =========================================================================

    def page(self, user_id: str, limit: int, offset: int) -> Tuple[List[str], Optional[int]]:
        """
        Newest-first slice of a user's chats by rank.

        ``next_offset`` is None once fewer than ``limit`` keys come back.
        A full final page still yields a next offset; the following call
        returns an empty page.
        """
        chat_keys = self._reverse_range(self.keys.user_chats(user_id), offset, offset + limit - 1)
        next_offset = offset + limit if len(chat_keys) == limit else None
        return chat_keys, next_offset

    def all_keys(self, user_id: str) -> List[str]:
        return self._reverse_range(self.keys.user_chats(user_id))

    def root_keys(self, user_id: str) -> List[str]:
        return self._reverse_range(self.keys.user_roots(user_id))

    def children_keys(self, chat_id: str) -> List[str]:
        return self._reverse_range(self.keys.children(chat_id))

    def is_child_member(self, parent_id: str, chat_id: str) -> bool:
        with store_errors("ZSCORE"):
            score = self.store.client.zscore(self.keys.children(parent_id), self.keys.chat(chat_id))
        return score is not None

    def children_cardinality(self, chat_id: str) -> int:
        with store_errors("ZCARD"):
            return int(self.store.client.zcard(self.keys.children(chat_id)))

    def _reverse_range(self, key: str, start: int = 0, end: int = -1) -> List[str]:
        with store_errors("ZREVRANGE"):
            return list(self.store.client.zrevrange(key, start, end))


class ParentPropagation:
    """
    Keeps a parent's counter and recency in step with its children.

    Single hop only: grandparents are not refreshed.
    """

    def __init__(self, repository: ChatRepository, indexes: ChatIndexes):
        self.repository = repository
        self.indexes = indexes
        self.keys = indexes.keys

    def on_save(self, pipeline: ChatPipeline, chat: Chat) -> None:
        """
        Queue the parent updates for a saved child.

        The counter is incremented only when the child is not yet in the
        parent's children index. The membership check runs before the batch
        is submitted, so two concurrent first saves may both count.
        """
        if chat.is_root:
            return

        parent = self.repository.get(chat.parent_id)
        if parent is None:
            logger.debug(f"Parent {chat.parent_id} of chat {chat.id} not found, skipping propagation")
            return

        parent_key = self.keys.chat(parent.id)
        score = to_score(chat.last_activity_at)
        owner = parent.user_id or chat.user_id

        if not self.indexes.is_child_member(parent.id, chat.id):
            pipeline.hincrby(parent_key, "childrenCount", 1)
        pipeline.hset(parent_key, {"lastActivityAt": format_timestamp(chat.last_activity_at)})

        pipeline.zadd(self.keys.user_chats(owner), score, parent_key)
        if parent.is_root:
            pipeline.zadd(self.keys.user_roots(owner), score, parent_key)

    def on_delete(self, pipeline: ChatPipeline, chat: Chat, now: Optional[datetime] = None) -> None:
        if chat.is_root:
            return

        # HINCRBY on a missing hash would create a stub record
        if not self.repository.exists(chat.parent_id):
            logger.debug(f"Parent {chat.parent_id} of chat {chat.id} already gone")
            return

        parent_key = self.keys.chat(chat.parent_id)
        pipeline.hincrby(parent_key, "childrenCount", -1)
        pipeline.hset(parent_key, {"updatedAt": format_timestamp(now or utcnow())})
