# chatthreads/chat/__init__.py
"""
Threaded chat persistence.
"""

from chatthreads.chat.schemas import Chat, ChatPage, ChatOperationResult, ChatLookup, LookupStatus
from chatthreads.chat.threading import normalize_chat, parse_parent_id
from chatthreads.chat.service import ChatService, chat_service

get_chat = chat_service.get_chat
get_shared_chat = chat_service.get_shared_chat
get_chats = chat_service.get_chats
get_chats_page = chat_service.get_chats_page
get_root_chats = chat_service.get_root_chats
get_child_chats = chat_service.get_child_chats
get_thread = chat_service.get_thread
find_chat = chat_service.find_chat
save_chat = chat_service.save_chat
delete_chat = chat_service.delete_chat
clear_chats = chat_service.clear_chats
share_chat = chat_service.share_chat

__all__ = [
    "Chat",
    "ChatPage",
    "ChatOperationResult",
    "ChatLookup",
    "LookupStatus",
    "ChatService",
    "chat_service",
    "normalize_chat",
    "parse_parent_id",
    "get_chat",
    "get_shared_chat",
    "get_chats",
    "get_chats_page",
    "get_root_chats",
    "get_child_chats",
    "get_thread",
    "find_chat",
    "save_chat",
    "delete_chat",
    "clear_chats",
    "share_chat",
]
