"""
Exception hierarchy for LearnContext.
"""


class LearnContextError(Exception):
    """Base exception for all LearnContext errors."""
    pass


class StorageError(LearnContextError):
    """Raised when the key-value store cannot be read or written."""
    pass


class SessionError(LearnContextError):
    """Raised when a chat session operation fails."""
    pass


class TransportError(LearnContextError):
    """Raised when the chat-completion transport fails."""
    pass
