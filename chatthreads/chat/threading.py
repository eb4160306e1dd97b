# chatthreads/chat/threading.py
"""
Threading normalizer.

Turns a raw, possibly legacy or partially-typed chat record into a fully
typed ``Chat``. Records written before threading support have no
``parentId``/``rootId``/``depth``/``childrenCount`` fields, older writers
stored ``"null"`` or ``""`` for a missing parent, and everything read back
from a Redis hash is a string.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

from pydantic.alias_generators import to_camel

from chatthreads.chat.schemas import Chat, utcnow
from chatthreads.core.exceptions import SerializationException

# Spellings of "no parent" found in stored records
PARENT_SENTINELS = ("", "null")


def parse_parent_id(value: Any) -> Optional[str]:
    """Coerce the stored parent reference to ``None`` or a real id."""
    if value is None:
        return None
    value = str(value)
    if value in PARENT_SENTINELS:
        return None
    return value


def _truncate_ms(dt: datetime) -> datetime:
    return dt.replace(microsecond=dt.microsecond // 1000 * 1000)


def to_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a stored timestamp.

    Accepts datetimes (naive ones are taken as UTC), ISO 8601 strings with
    or without a ``Z`` suffix, and epoch milliseconds as numbers or numeric
    strings. Returns ``None`` for anything unusable.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            dt = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            millis = float(text)
        except ValueError:
            try:
                dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                return None
        else:
            return to_timestamp(millis)
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    # Offsets near datetime.min/max cannot be shifted to UTC
    try:
        return _truncate_ms(dt.astimezone(timezone.utc))
    except OverflowError:
        return None


def format_timestamp(dt: datetime) -> str:
    """Canonical wire form: ``2024-05-01T12:00:00.000Z``."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def to_score(dt: datetime) -> int:
    """Sorted-set score for a timestamp (epoch milliseconds)."""
    return int(round(dt.timestamp() * 1000))


def to_count(value: Any) -> int:
    """Parse a non-negative integer, falling back to 0."""
    if isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, int(number))


def _pick(data: Mapping[str, Any], alias: str, name: str) -> Any:
    value = data.get(alias)
    if value is None:
        value = data.get(name)
    return value


def normalize_chat(raw: Union[Chat, Mapping[str, Any]], now: Optional[datetime] = None) -> Chat:
    """
    Build a consistent ``Chat`` from a raw record.

    Idempotent: normalizing an already normalized chat returns an equal chat.
    """
    data: Dict[str, Any] = raw.model_dump(by_alias=True) if isinstance(raw, Chat) else dict(raw)

    chat_id = data.get("id")
    if chat_id is None or chat_id == "":
        raise SerializationException("record has no id")
    chat_id = str(chat_id)

    known = set()
    for name, field in Chat.model_fields.items():
        known.add(name)
        known.add(field.alias or to_camel(name))
    extras = {key: value for key, value in data.items() if key not in known}

    now = now or utcnow()
    created_at = to_timestamp(_pick(data, "createdAt", "created_at")) or _truncate_ms(now)
    updated_at = to_timestamp(_pick(data, "updatedAt", "updated_at")) or created_at
    last_activity_at = to_timestamp(_pick(data, "lastActivityAt", "last_activity_at")) or created_at

    parent_id = parse_parent_id(_pick(data, "parentId", "parent_id"))
    root_id = _pick(data, "rootId", "root_id")
    depth = to_count(data.get("depth"))
    if parent_id is None:
        root_id = chat_id
        depth = 0

    messages = data.get("messages")
    share_path = _pick(data, "sharePath", "share_path")

    return Chat(
        id=chat_id,
        title=str(data.get("title") or ""),
        path=str(data.get("path") or ""),
        share_path=str(share_path) if share_path else None,
        user_id=str(_pick(data, "userId", "user_id") or ""),
        messages=messages if isinstance(messages, list) else [],
        parent_id=parent_id,
        root_id=str(root_id) if root_id else chat_id,
        depth=depth,
        children_count=to_count(_pick(data, "childrenCount", "children_count")),
        created_at=created_at,
        updated_at=updated_at,
        last_activity_at=last_activity_at,
        **extras
    )
