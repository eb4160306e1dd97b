# tests/unit/test_storage.py
"""
Unit tests for the store client, pipeline builder and chat repository.
"""

import json
import pytest

from chatthreads.chat.storage import ChatRepository
from chatthreads.config.schema import StorageSettings
from chatthreads.core.exceptions import (
    SerializationException,
    StoreException,
    StoreUnavailableException,
)
from chatthreads.db.keys import ChatKeyBuilder
from chatthreads.db.storage import RedisStore


class TestChatKeyBuilder:
    """Tests for key naming."""

    def test_versioned_user_keys(self):
        keys = ChatKeyBuilder("v2")

        assert keys.user_chats("u1") == "user:v2:chat:u1"
        assert keys.user_roots("u1") == "user:v2:chat:u1:roots"

    def test_chat_keys(self):
        assert ChatKeyBuilder.chat("abc") == "chat:abc"
        assert ChatKeyBuilder.children("abc") == "chat:abc:children"
        assert ChatKeyBuilder.chat_id_from_key("chat:abc") == "abc"


class TestRedisStore:
    """Tests for the store client wrapper."""

    def test_client_from_url_is_lazy(self):
        store = RedisStore(settings=StorageSettings(redis_url="redis://localhost:6390/1"))

        assert store.client.connection_pool.connection_kwargs["db"] == 1

    def test_ping(self, store):
        assert store.ping() is True

    def test_ping_when_disconnected(self, store, disconnect):
        disconnect()
        assert store.ping() is False

    def test_stats_when_disconnected(self, store, disconnect):
        disconnect()
        stats = store.get_store_stats()

        assert stats["available"] is False
        assert "error" in stats

    def test_key_version_from_settings(self, redis_client):
        store = RedisStore(client=redis_client, settings=StorageSettings(key_version="v3"))
        assert store.keys.user_chats("u1") == "user:v3:chat:u1"


class TestChatPipeline:
    """Tests for batched submission."""

    def test_empty_pipeline(self, store):
        assert store.pipeline().execute() == []

    def test_results_in_submission_order(self, store, redis_client):
        pipeline = store.pipeline()
        pipeline.zadd("idx", 5, "m1").hincrby("h", "n", 2).zrem("idx", "missing")

        assert len(pipeline) == 3
        assert pipeline.execute() == [1, 2, 0]
        assert redis_client.zscore("idx", "m1") == 5.0

    def test_command_error_raises_store_exception(self, store, redis_client):
        redis_client.hset("chat:p", "childrenCount", "abc")
        pipeline = store.pipeline()
        pipeline.zadd("idx", 1, "m").hincrby("chat:p", "childrenCount", 1)

        with pytest.raises(StoreException) as exc_info:
            pipeline.execute()

        assert not isinstance(exc_info.value, StoreUnavailableException)
        # No rollback: the command before the failure stays applied
        assert redis_client.zscore("idx", "m") == 1.0

    def test_connection_error_raises_unavailable(self, store, disconnect):
        pipeline = store.pipeline()
        pipeline.zadd("idx", 1, "m")
        disconnect()

        with pytest.raises(StoreUnavailableException):
            pipeline.execute()


class TestChatRepository:
    """Tests for single record reads and writes."""

    @pytest.fixture
    def repository(self, store):
        return ChatRepository(store)

    def test_upsert_and_get(self, repository, store, make_chat):
        chat = make_chat("a")
        pipeline = store.pipeline()
        repository.upsert(pipeline, chat)
        pipeline.execute()

        assert repository.get("a") == chat

    def test_serialized_root_has_empty_parent(self, make_chat):
        record = ChatRepository.serialize(make_chat("a"))

        assert record["parentId"] == ""
        assert record["rootId"] == "a"
        assert record["depth"] == "0"
        assert record["lastActivityAt"] == "2024-05-01T12:00:00.000Z"
        assert json.loads(record["messages"]) == [{"role": "user", "content": "hello from a"}]
        assert "sharePath" not in record

    def test_children_count_not_overwritten(self, repository, store, redis_client, make_chat):
        redis_client.hset("chat:a", "childrenCount", "4")
        pipeline = store.pipeline()
        repository.upsert(pipeline, make_chat("a"))
        pipeline.execute()

        assert repository.get("a").children_count == 4

    def test_get_missing(self, repository):
        assert repository.get("nope") is None

    def test_legacy_hash_is_normalized(self, repository, redis_client):
        redis_client.hset("chat:old", mapping={
            "id": "old",
            "title": "Before threads",
            "userId": "u1",
            "createdAt": "2024-01-01T00:00:00.000Z",
            "messages": "[]",
            "parentId": "null",
        })

        chat = repository.get("old")

        assert chat.parent_id is None
        assert chat.root_id == "old"
        assert chat.children_count == 0
        assert chat.last_activity_at == chat.created_at

    def test_corrupt_messages_read_as_empty(self, repository, redis_client):
        redis_client.hset("chat:x", mapping={"id": "x", "userId": "u1", "messages": "{not json"})
        assert repository.get("x").messages == []

    def test_corrupt_messages_strict(self, redis_client):
        store = RedisStore(client=redis_client, settings=StorageSettings(strict_message_decoding=True))
        redis_client.hset("chat:x", mapping={"id": "x", "userId": "u1", "messages": "{not json"})

        with pytest.raises(SerializationException):
            ChatRepository(store).get("x")

    def test_get_many_keeps_order_and_skips_missing(self, repository, store, make_chat):
        pipeline = store.pipeline()
        for chat_id in ("a", "b"):
            repository.upsert(pipeline, make_chat(chat_id))
        pipeline.execute()

        chats = repository.get_many(["chat:b", "chat:gone", "chat:a"])

        assert [c.id for c in chats] == ["b", "a"]

    def test_get_shared_requires_share_path(self, repository, store, make_chat):
        pipeline = store.pipeline()
        repository.upsert(pipeline, make_chat("a"))
        pipeline.execute()

        assert repository.get_shared("a") is None
        repository.set_share_path("a", "/share/a")
        assert repository.get_shared("a").share_path == "/share/a"

    def test_get_when_disconnected(self, repository, disconnect):
        disconnect()
        with pytest.raises(StoreUnavailableException):
            repository.get("a")
