import json
from typing import Any, Dict, Iterable, List, Optional

from chatthreads.chat.schemas import Chat
from chatthreads.chat.threading import normalize_chat, format_timestamp
from chatthreads.core.exceptions import SerializationException
from chatthreads.db.pipeline import ChatPipeline, store_errors
from chatthreads.db.storage import RedisStore
from chatthreads.utils.logger import setup_logger

logger = setup_logger(__name__)


class ChatRepository:
    """
    Reads and writes single chat records stored as Redis hashes.

    Writes are queued on a ``ChatPipeline`` so they travel in the same batch
    as the index updates of the enclosing operation.
    """

    def __init__(self, store: RedisStore):
        self.store = store
        self.keys = store.keys

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, chat_id: str) -> Optional[Chat]:
        with store_errors("HGETALL"):
            raw = self.store.client.hgetall(self.keys.chat(chat_id))
        return self._load(raw, chat_id)

    def get_many(self, chat_keys: Iterable[str]) -> List[Chat]:
        """Fetch several records in one round trip, keeping input order."""
        chat_keys = list(chat_keys)
        if not chat_keys:
            return []

        pipeline = self.store.pipeline()
        for chat_key in chat_keys:
            pipeline.hgetall(chat_key)
        results = pipeline.execute()

        chats = []
        for chat_key, raw in zip(chat_keys, results):
            chat = self._load(raw, self.keys.chat_id_from_key(chat_key))
            if chat is not None:
                chats.append(chat)
        return chats

    def get_shared(self, chat_id: str) -> Optional[Chat]:
        """Return the chat only if it has been made public."""
        chat = self.get(chat_id)
        if chat is None or not chat.share_path:
            return None
        return chat

    def exists(self, chat_id: str) -> bool:
        with store_errors("EXISTS"):
            return bool(self.store.client.exists(self.keys.chat(chat_id)))

    # =========================================================================
    # Writes
    # =========================================================================

    def upsert(self, pipeline: ChatPipeline, chat: Chat) -> None:
        """
        Queue the record write.

        ``childrenCount`` is only initialized here; afterwards it is owned by
        the parent counter updates, so re-saving a stale copy of a parent
        does not reset it.
        """
        record = self.serialize(chat)
        children_count = record.pop("childrenCount")
        pipeline.hset(self.keys.chat(chat.id), record)
        pipeline.hsetnx(self.keys.chat(chat.id), "childrenCount", children_count)

    def delete(self, pipeline: ChatPipeline, chat_id: str) -> None:
        pipeline.delete(self.keys.chat(chat_id))

    def set_share_path(self, chat_id: str, share_path: str) -> None:
        with store_errors("HSET"):
            self.store.client.hset(self.keys.chat(chat_id), "sharePath", share_path)

    # =========================================================================
    # Serialization
    # =========================================================================

    @staticmethod
    def serialize(chat: Chat) -> Dict[str, str]:
        """Flatten a chat into string hash fields."""
        record = {
            "id": chat.id,
            "title": chat.title,
            "path": chat.path,
            "userId": chat.user_id,
            "messages": json.dumps(chat.messages, default=str),
            # Empty string, never "null", for a root
            "parentId": chat.parent_id or "",
            "rootId": chat.root_id or chat.id,
            "depth": str(chat.depth),
            "childrenCount": str(chat.children_count),
            "createdAt": format_timestamp(chat.created_at),
            "updatedAt": format_timestamp(chat.updated_at),
            "lastActivityAt": format_timestamp(chat.last_activity_at),
        }
        if chat.share_path:
            record["sharePath"] = chat.share_path

        for key, value in (chat.model_extra or {}).items():
            if value is None:
                continue
            record[key] = value if isinstance(value, str) else json.dumps(value, default=str)

        return record

    def _load(self, raw: Optional[Dict[str, Any]], chat_id: str) -> Optional[Chat]:
        if not raw:
            return None

        data = dict(raw)
        data.setdefault("id", chat_id)
        data["messages"] = self._decode_messages(data.get("messages"), chat_id)
        return normalize_chat(data)

    def _decode_messages(self, blob: Any, chat_id: str) -> List[Any]:
        """
        Decode the messages blob.

        A corrupt blob reads as an empty conversation (logged) unless
        ``strict_message_decoding`` is enabled, in which case it raises.
        """
        if blob is None or blob == "":
            return []
        if isinstance(blob, list):
            return blob

        try:
            messages = json.loads(blob)
            if not isinstance(messages, list):
                raise ValueError(f"expected a list, got {type(messages).__name__}")
        except (TypeError, ValueError) as e:
            if self.store.settings.strict_message_decoding:
                raise SerializationException(f"messages of chat '{chat_id}': {e}", chat_id) from e
            logger.warning(f"Unreadable messages for chat {chat_id}, returning empty list: {e}")
            return []

        return messages
