# chatthreads/db/keys.py
"""Redis key naming for chat records and their ordering indexes."""

CHAT_PREFIX = "chat:"


class ChatKeyBuilder:
    """Centralized key construction for consistency."""

    def __init__(self, version: str = "v2"):
        self.version = version

    @staticmethod
    def chat(chat_id: str) -> str:
        return f"{CHAT_PREFIX}{chat_id}"

    @staticmethod
    def children(chat_id: str) -> str:
        return f"{CHAT_PREFIX}{chat_id}:children"

    def user_chats(self, user_id: str) -> str:
        return f"user:{self.version}:chat:{user_id}"

    def user_roots(self, user_id: str) -> str:
        return f"user:{self.version}:chat:{user_id}:roots"

    @staticmethod
    def chat_id_from_key(chat_key: str) -> str:
        if chat_key.startswith(CHAT_PREFIX):
            return chat_key[len(CHAT_PREFIX):]
        return chat_key
