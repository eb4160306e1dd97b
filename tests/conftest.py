# tests/conftest.py
"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import fakeredis

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def redis_server():
    """Isolated in-process Redis server."""
    return fakeredis.FakeServer()


@pytest.fixture
def redis_client(redis_server):
    return fakeredis.FakeRedis(server=redis_server, decode_responses=True)


@pytest.fixture
def storage_settings():
    from chatthreads.config.schema import StorageSettings
    return StorageSettings()


@pytest.fixture
def store(redis_client, storage_settings):
    from chatthreads.db.storage import RedisStore
    return RedisStore(client=redis_client, settings=storage_settings)


@pytest.fixture
def chat_service(store):
    from chatthreads.chat.service import ChatService
    return ChatService(store=store)


@pytest.fixture
def disconnect(redis_server):
    """Call to make every further store command fail with a connection error."""
    def _disconnect():
        redis_server.connected = False
    return _disconnect


# =============================================================================
# Chat Fixtures
# =============================================================================

@pytest.fixture
def make_chat():
    """Build a chat whose timestamps are ``minute`` minutes after a fixed base."""
    from chatthreads.chat.schemas import Chat

    def _make_chat(chat_id, user_id="u1", parent_id=None, minute=0, depth=None, root_id=None, **kwargs):
        at = BASE_TIME + timedelta(minutes=minute)
        return Chat(
            id=chat_id,
            title=kwargs.pop("title", f"Chat {chat_id}"),
            path=f"/search/{chat_id}",
            user_id=user_id,
            messages=kwargs.pop("messages", [{"role": "user", "content": f"hello from {chat_id}"}]),
            parent_id=parent_id,
            root_id=root_id or (chat_id if parent_id is None else parent_id),
            depth=depth if depth is not None else (0 if parent_id is None else 1),
            created_at=at,
            updated_at=at,
            last_activity_at=at,
            **kwargs
        )

    return _make_chat
