"""Exceptions for chat_handoff.

Every failure the core distinguishes has its own type so callers and tests
can tell them apart without reading log output.
"""

__all__ = [
    "ChatHandoffError",
    "ValidationError",
    "PersistenceError",
    "TransportError",
    "CompletionProviderError",
    "CompletionTimeoutError",
    "ConfigurationError",
]


class ChatHandoffError(Exception):
    """Base class for all chat_handoff errors."""


class ValidationError(ChatHandoffError):
    """Raised for malformed input, such as empty message text or an unknown role.

    Raised before anything is written.
    """


class PersistenceError(ChatHandoffError):
    """Raised when the store is unavailable, a constraint fails, or a row is missing."""


class TransportError(ChatHandoffError):
    """Raised when the chat platform rejects or fails an outbound send."""

    def __init__(self, chat_id: int, reason: str):
        self.chat_id = chat_id
        self.reason = reason
        super().__init__(f"Failed to send message to chat {chat_id}: {reason}")


class CompletionProviderError(ChatHandoffError):
    """Raised when the completion provider fails or returns an unusable response."""


class CompletionTimeoutError(CompletionProviderError):
    """Raised when the completion provider does not answer within the timeout."""


class ConfigurationError(ChatHandoffError):
    """Raised when a required credential is missing."""
