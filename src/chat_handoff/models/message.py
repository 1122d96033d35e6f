"""Message models for chat_handoff.

These models represent transcript entries. Messages are append-only:
never edited, never deleted.
"""

from enum import StrEnum

from pydantic import BaseModel, Field

__all__ = [
    "SenderRole",
    "MessageDTO",
]


class SenderRole(StrEnum):
    """Who authored a transcript message."""

    USER = "user"
    BOT = "bot"
    ADMIN = "admin"


class MessageDTO(BaseModel, frozen=True):
    """Single transcript message.

    Attributes:
        message_id: Deterministic message ID (hash-based)
        conversation_id: Owning conversation ID
        role: Sender role
        text: Message text, never empty
        created_on: Creation timestamp in epoch nanoseconds; the only ordering key
        schema_version: Schema version for forward compatibility
    """

    message_id: str = Field(description="Hash-based message ID")
    conversation_id: str = Field(description="Owning conversation ID")
    role: SenderRole
    text: str = Field(min_length=1)
    created_on: int = Field(description="Epoch nanoseconds")
    schema_version: int = Field(default=1)
