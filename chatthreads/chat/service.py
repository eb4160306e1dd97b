from typing import Any, List, Mapping, Optional, Union

from chatthreads.chat.indexes import ChatIndexes, ParentPropagation
from chatthreads.chat.schemas import Chat, ChatLookup, ChatOperationResult, ChatPage, LookupStatus
from chatthreads.chat.storage import ChatRepository
from chatthreads.chat.threading import normalize_chat
from chatthreads.core.exceptions import (
    ChatThreadsException,
    ChatNotFoundException,
    ConstraintViolationException,
    StoreException,
    UnauthorizedException,
)
from chatthreads.db.storage import RedisStore, get_store
from chatthreads.utils.logger import setup_logger

logger = setup_logger(__name__)


class ChatService:
    """
    High-level chat operations.
    Bridge between callers (API handlers, streaming) and the store.

    Reads never raise store failures: they log and come back empty.
    ``save_chat`` and ``share_chat`` propagate them. Deletes report
    failures as a ``ChatOperationResult``.
    """

    def __init__(self, store: Optional[RedisStore] = None):
        self.store = store or get_store()
        self.repository = ChatRepository(self.store)
        self.indexes = ChatIndexes(self.store)
        self.propagation = ParentPropagation(self.repository, self.indexes)

    # =========================================================================
    # Reads
    # =========================================================================

    def find_chat(self, chat_id: str) -> ChatLookup:
        try:
            chat = self.repository.get(chat_id)
        except StoreException as e:
            logger.error(f"Error loading chat {chat_id}: {e}")
            return ChatLookup(status=LookupStatus.STORE_UNAVAILABLE, error=str(e))

        if chat is None:
            return ChatLookup(status=LookupStatus.NOT_FOUND)
        return ChatLookup(status=LookupStatus.FOUND, chat=chat)

    def get_chat(self, chat_id: str, user_id: str) -> Optional[Chat]:
        """Load a chat visible to ``user_id``: owned by them, or shared."""
        chat = self.find_chat(chat_id).chat
        if chat is None:
            return None

        if chat.user_id and chat.user_id != user_id and not chat.share_path:
            logger.warning(f"User {user_id} requested private chat {chat_id} of another user")
            return None
        return chat

    def get_shared_chat(self, chat_id: str) -> Optional[Chat]:
        try:
            return self.repository.get_shared(chat_id)
        except StoreException as e:
            logger.error(f"Error loading shared chat {chat_id}: {e}")
            return None

    def get_chats(self, user_id: str) -> List[Chat]:
        """All chats of a user, newest activity first."""
        if not user_id:
            return []

        try:
            return self.repository.get_many(self.indexes.all_keys(user_id))
        except StoreException as e:
            logger.error(f"Error fetching chats of user {user_id}: {e}")
            return []

    def get_chats_page(self, user_id: str, limit: Optional[int] = None, offset: int = 0) -> ChatPage:
        if limit is None:
            limit = self.store.settings.default_page_size
        if limit < 1 or offset < 0:
            raise ValueError(f"invalid page window limit={limit} offset={offset}")

        try:
            chat_keys, next_offset = self.indexes.page(user_id, limit, offset)
            if not chat_keys:
                return ChatPage(chats=[], next_offset=None)
            chats = self.repository.get_many(chat_keys)
        except StoreException as e:
            logger.error(f"Error fetching chat page of user {user_id}: {e}")
            return ChatPage(chats=[], next_offset=None)

        return ChatPage(chats=chats, next_offset=next_offset)

    def get_root_chats(self, user_id: str) -> List[Chat]:
        try:
            return self.repository.get_many(self.indexes.root_keys(user_id))
        except StoreException as e:
            logger.error(f"Error fetching root chats of user {user_id}: {e}")
            return []

    def get_child_chats(self, chat_id: str) -> List[Chat]:
        try:
            return self.repository.get_many(self.indexes.children_keys(chat_id))
        except StoreException as e:
            logger.error(f"Error fetching children of chat {chat_id}: {e}")
            return []

    def get_thread(self, chat_id: str) -> List[Chat]:
        """The whole thread containing ``chat_id``: root first, then breadth-first."""
        try:
            chat = self.repository.get(chat_id)
            if chat is None:
                return []
            root = self.repository.get(chat.root_id) if chat.root_id != chat.id else chat
            root = root or chat
            return [root] + self._collect_descendants(root)
        except StoreException as e:
            logger.error(f"Error fetching thread of chat {chat_id}: {e}")
            return []

    # =========================================================================
    # Writes
    # =========================================================================

    def save_chat(self, chat: Union[Chat, Mapping[str, Any]], user_id: str) -> List[Any]:
        """
        Persist a chat with its index entries and parent updates in one batch.

        Returns the per-command pipeline results. Store failures propagate.
        """
        if not user_id:
            raise ValueError("user_id is required")

        chat = normalize_chat(chat)
        if chat.user_id and chat.user_id != user_id:
            raise UnauthorizedException(chat.id, user_id)
        if not chat.user_id:
            chat = chat.model_copy(update={"user_id": user_id})
        if chat.parent_id == chat.id:
            raise ConstraintViolationException(f"chat '{chat.id}' cannot be its own parent")

        # A chat keeps the owner and position in the tree it was first saved with
        stored = self.repository.get(chat.id)
        if stored is not None:
            if stored.user_id and stored.user_id != user_id:
                raise UnauthorizedException(chat.id, user_id)
            if stored.parent_id != chat.parent_id:
                raise ConstraintViolationException(
                    f"chat '{chat.id}' cannot move from parent {stored.parent_id!r} to {chat.parent_id!r}"
                )

        pipeline = self.store.pipeline()
        self.repository.upsert(pipeline, chat)
        self.indexes.on_save(pipeline, chat)
        self.propagation.on_save(pipeline, chat)
        results = pipeline.execute()

        logger.info(f"Chat saved: {chat.id} for user {user_id} ({len(results)} commands)")
        return results

    def share_chat(self, chat_id: str, user_id: str) -> Optional[Chat]:
        """Make a chat public. Only the owner may share it."""
        chat = self.repository.get(chat_id)
        if chat is None or chat.user_id != user_id:
            return None

        share_path = f"{self.store.settings.share_path_prefix}{chat_id}"
        self.repository.set_share_path(chat_id, share_path)
        logger.info(f"Chat shared: {chat_id} at {share_path}")
        return chat.model_copy(update={"share_path": share_path})

    def delete_chat(self, chat_id: str, user_id: str) -> ChatOperationResult:
        """
        Delete a chat and its whole subtree of replies.

        Only the deleted chat's own parent is decremented; descendants go
        away with their children indexes.
        """
        try:
            chat = self._load_owned(chat_id, user_id)
            doomed = [chat] + self._collect_descendants(chat)

            pipeline = self.store.pipeline()
            for target in doomed:
                self.repository.delete(pipeline, target.id)
                self.indexes.on_delete(pipeline, target)
            self.propagation.on_delete(pipeline, chat)
            pipeline.execute()
        except ChatNotFoundException:
            logger.warning(f"Attempted to delete non-existent chat: {chat_id}")
            return ChatOperationResult(error="Chat not found")
        except UnauthorizedException as e:
            logger.warning(str(e))
            return ChatOperationResult(error="Unauthorized")
        except ChatThreadsException as e:
            logger.error(f"Error deleting chat {chat_id}: {e}")
            return ChatOperationResult(error="Failed to delete chat")

        logger.info(f"Chat deleted: {chat_id} ({len(doomed) - 1} replies removed)")
        return ChatOperationResult()

    def clear_chats(self, user_id: str) -> ChatOperationResult:
        """
        Delete every chat the user owns.

        Replies of other users below those chats are deleted with them, as
        ``delete_chat`` does for a subtree.
        """
        try:
            chat_keys = self.indexes.all_keys(user_id)
            if not chat_keys:
                return ChatOperationResult(error="No chats to clear")

            chats = self.repository.get_many(chat_keys)
            cleared = {self.keys.chat_id_from_key(chat_key) for chat_key in chat_keys}
            replies = self._collect_descendants(*chats)
            removed = cleared | {reply.id for reply in replies}

            pipeline = self.store.pipeline()
            for chat_key in chat_keys:
                pipeline.delete(chat_key, self.keys.children(self.keys.chat_id_from_key(chat_key)))
            for reply in replies:
                self.repository.delete(pipeline, reply.id)
                self.indexes.on_delete(pipeline, reply)

            # Replies to surviving chats of other users leave their parents consistent
            for chat in chats:
                if chat.parent_id is not None and chat.parent_id not in removed:
                    pipeline.zrem(self.keys.children(chat.parent_id), self.keys.chat(chat.id))
                    self.propagation.on_delete(pipeline, chat)

            pipeline.delete(self.keys.user_chats(user_id), self.keys.user_roots(user_id))
            pipeline.execute()
        except ChatThreadsException as e:
            logger.error(f"Error clearing chats of user {user_id}: {e}")
            return ChatOperationResult(error="Failed to clear chats")

        logger.info(f"Cleared {len(chat_keys)} chats of user {user_id} ({len(replies)} replies of other users removed)")
        return ChatOperationResult()

    # =========================================================================
    # Helpers
    # =========================================================================

    @property
    def keys(self):
        return self.store.keys

    def _load_owned(self, chat_id: str, user_id: str) -> Chat:
        chat = self.repository.get(chat_id)
        if chat is None:
            raise ChatNotFoundException(chat_id)
        if chat.user_id and chat.user_id != user_id:
            raise UnauthorizedException(chat_id, user_id)
        return chat

    def _collect_descendants(self, *chats: Chat) -> List[Chat]:
        """Breadth-first walk of the children indexes below ``chats``, excluding them."""
        descendants: List[Chat] = []
        seen = {chat.id for chat in chats}
        frontier = [chat.id for chat in chats]

        while frontier:
            child_keys = [key for parent_id in frontier for key in self.indexes.children_keys(parent_id)]
            frontier = []
            for child in self.repository.get_many(child_keys):
                if child.id in seen:
                    continue
                seen.add(child.id)
                descendants.append(child)
                frontier.append(child.id)

        return descendants


# Global instance for easy import
chat_service = ChatService()
