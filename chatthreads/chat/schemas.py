from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Dict, Optional, Any
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Chat(BaseModel):
    """
    A persisted conversation, either a thread root or a reply to another chat.

    Stored hash fields use the camelCase aliases (``parentId``,
    ``childrenCount``, ...). Unknown fields are kept as extras.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    title: str = ""
    path: str = ""
    share_path: Optional[str] = None
    user_id: str = ""
    messages: List[Any] = Field(default_factory=list)

    # Threading
    parent_id: Optional[str] = None
    root_id: str = ""
    depth: int = 0
    children_count: int = 0

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    last_activity_at: datetime = Field(default_factory=utcnow)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


class ChatPage(BaseModel):
    """One page of a user's chats, newest first."""
    chats: List[Chat] = Field(default_factory=list)
    next_offset: Optional[int] = None


class ChatOperationResult(BaseModel):
    """Outcome of a delete/clear; an empty result means success."""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    STORE_UNAVAILABLE = "store_unavailable"


class ChatLookup(BaseModel):
    """Typed read result separating a genuine absence from a store failure."""
    status: LookupStatus
    chat: Optional[Chat] = None
    error: Optional[str] = None
