# tests/unit/test_threading.py
"""
Unit tests for the threading normalizer.
"""

import pytest
from datetime import datetime, timezone

from chatthreads.chat.schemas import Chat
from chatthreads.chat.threading import (
    normalize_chat,
    parse_parent_id,
    to_timestamp,
    format_timestamp,
    to_score,
    to_count,
)
from chatthreads.core.exceptions import SerializationException

NOW = datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)

RAW_RECORDS = [
    {"id": "a"},
    {"id": "a", "parentId": None},
    {"id": "a", "parentId": ""},
    {"id": "a", "parentId": "null"},
    {"id": "b", "parentId": "a", "rootId": "a", "depth": "1", "childrenCount": "2"},
    {"id": "c", "parentId": "b", "depth": "nan", "childrenCount": "-4"},
    {"id": "d", "createdAt": "2024-01-01T00:00:00.000Z", "messages": [{"role": "user", "content": "hi"}]},
    {"id": "e", "lastActivityAt": "1714564800000", "model": "gpt-4o"},
    {"id": "f", "createdAt": datetime(2024, 1, 1), "sharePath": "/share/f", "userId": "u1"},
]


class TestParentId:
    """Tests for parent reference coercion."""

    @pytest.mark.parametrize("value", [None, "", "null"])
    def test_sentinels_mean_no_parent(self, value):
        assert parse_parent_id(value) is None

    def test_real_id_is_kept(self):
        assert parse_parent_id("abc") == "abc"

    @pytest.mark.parametrize("raw", [
        {"id": "x"},
        {"id": "x", "parentId": None},
        {"id": "x", "parentId": ""},
        {"id": "x", "parentId": "null"},
    ])
    def test_all_spellings_normalize_to_root(self, raw):
        chat = normalize_chat(raw, now=NOW)

        assert chat.parent_id is None
        assert chat.root_id == "x"
        assert chat.depth == 0


class TestNormalizeChat:
    """Tests for normalize_chat."""

    @pytest.mark.parametrize("raw", RAW_RECORDS)
    def test_idempotent(self, raw):
        once = normalize_chat(raw, now=NOW)
        twice = normalize_chat(once)

        assert twice == once

    def test_defaults_for_legacy_record(self):
        chat = normalize_chat({"id": "old", "title": "Legacy"}, now=NOW)

        assert chat.children_count == 0
        assert chat.messages == []
        assert chat.share_path is None
        assert chat.created_at == datetime(2024, 5, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)
        assert chat.updated_at == chat.created_at
        assert chat.last_activity_at == chat.created_at

    def test_timestamps_fall_back_to_created_at(self):
        chat = normalize_chat({"id": "x", "createdAt": "2024-01-01T08:30:00.000Z"}, now=NOW)

        expected = datetime(2024, 1, 1, 8, 30, tzinfo=timezone.utc)
        assert chat.created_at == expected
        assert chat.updated_at == expected
        assert chat.last_activity_at == expected

    def test_unparseable_timestamp_falls_back(self):
        chat = normalize_chat({"id": "x", "lastActivityAt": "yesterday"}, now=NOW)
        assert chat.last_activity_at == chat.created_at

    @pytest.mark.parametrize("value", ["1e20", 1e16, "-1e16"])
    def test_out_of_range_timestamp_falls_back(self, value):
        chat = normalize_chat({"id": "x", "createdAt": "2024-01-01T00:00:00.000Z", "lastActivityAt": value})
        assert chat.last_activity_at == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_child_keeps_threading_fields(self):
        chat = normalize_chat(
            {"id": "b", "parentId": "a", "rootId": "a", "depth": "1", "childrenCount": "3"},
            now=NOW
        )

        assert chat.parent_id == "a"
        assert chat.root_id == "a"
        assert chat.depth == 1
        assert chat.children_count == 3

    def test_child_without_root_defaults_to_own_id(self):
        chat = normalize_chat({"id": "b", "parentId": "a"}, now=NOW)
        assert chat.root_id == "b"

    def test_root_fields_are_forced(self):
        chat = normalize_chat({"id": "r", "rootId": "elsewhere", "depth": "4"}, now=NOW)

        assert chat.root_id == "r"
        assert chat.depth == 0

    def test_non_list_messages_become_empty(self):
        chat = normalize_chat({"id": "x", "messages": "not decoded"}, now=NOW)
        assert chat.messages == []

    def test_snake_case_keys_accepted(self):
        chat = normalize_chat({"id": "x", "user_id": "u1", "parent_id": "p", "children_count": 2}, now=NOW)

        assert chat.user_id == "u1"
        assert chat.parent_id == "p"
        assert chat.children_count == 2

    def test_extra_fields_preserved(self):
        chat = normalize_chat({"id": "x", "model": "gpt-4o"}, now=NOW)

        assert chat.model_extra["model"] == "gpt-4o"
        assert chat.model_dump(by_alias=True)["model"] == "gpt-4o"

    def test_accepts_chat_instance(self):
        chat = Chat(id="x", user_id="u1", created_at=NOW, updated_at=NOW, last_activity_at=NOW)
        normalized = normalize_chat(chat)

        assert normalized.user_id == "u1"
        assert normalized.last_activity_at.microsecond == 123000

    def test_missing_id_raises(self):
        with pytest.raises(SerializationException):
            normalize_chat({"title": "no id"})


class TestConversions:
    """Tests for timestamp and counter helpers."""

    def test_epoch_millis_string(self):
        assert to_timestamp("1714564800000") == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_naive_datetime_is_utc(self):
        assert to_timestamp(datetime(2024, 5, 1, 12, 0)) == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [
        None, "", "garbage", float("inf"), True,
        "1e20", "99999999999999999", 1e16, "-1e16", "0001-01-01T00:00:00+01:00",
    ])
    def test_unusable_timestamps(self, value):
        assert to_timestamp(value) is None

    def test_format_is_canonical(self):
        dt = datetime(2024, 5, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)

        assert format_timestamp(dt) == "2024-05-01T12:00:00.123Z"
        assert to_timestamp(format_timestamp(dt)) == dt

    def test_score_is_epoch_millis(self):
        assert to_score(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)) == 1714564800000

    @pytest.mark.parametrize("value,expected", [
        ("3", 3),
        (2.9, 2),
        ("-1", 0),
        ("nan", 0),
        ("inf", 0),
        ("abc", 0),
        (None, 0),
    ])
    def test_to_count(self, value, expected):
        assert to_count(value) == expected
