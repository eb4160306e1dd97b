# chatthreads/core/exceptions.py
"""
Application exceptions.
"""


class ChatThreadsException(Exception):
    """Base exception for the chat thread store."""
    pass


class ChatNotFoundException(ChatThreadsException):
    """Raised when a chat record is absent or not visible to the caller."""
    def __init__(self, chat_id: str):
        self.chat_id = chat_id
        super().__init__(f"Chat with ID '{chat_id}' not found")


class StoreException(ChatThreadsException):
    """Raised when the store rejects a command or batch."""
    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Store error: {message}")


class StoreUnavailableException(StoreException):
    """Raised when the store cannot be reached (connection or timeout)."""
    def __init__(self, original_error: Exception = None):
        super().__init__(f"store unavailable ({original_error})", original_error)


class SerializationException(ChatThreadsException):
    """Raised when a stored record cannot be decoded."""
    def __init__(self, message: str, chat_id: str = None):
        self.chat_id = chat_id
        super().__init__(f"Serialization failed: {message}")


class UnauthorizedException(ChatThreadsException):
    """Raised when a caller acts on a chat owned by someone else."""
    def __init__(self, chat_id: str, user_id: str):
        self.chat_id = chat_id
        self.user_id = user_id
        super().__init__(f"User '{user_id}' is not the owner of chat '{chat_id}'")


class ConstraintViolationException(ChatThreadsException):
    """Raised when an operation would break a record invariant."""
    def __init__(self, message: str):
        super().__init__(f"Constraint violation: {message}")
