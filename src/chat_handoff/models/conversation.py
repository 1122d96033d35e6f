"""Conversation models for chat_handoff.

A conversation is the state of one external chat: its identity, its
mode flag and its activity timestamps.
"""

from enum import StrEnum

from pydantic import BaseModel, Field

__all__ = [
    "ConversationMode",
    "ConversationDTO",
    "ConversationSummaryDTO",
]


class ConversationMode(StrEnum):
    """Whether automated replies are enabled for a conversation."""

    AUTO = "auto"
    HANDED_OFF = "handed_off"


class ConversationDTO(BaseModel, frozen=True):
    """Public Conversation data transfer object.

    Exactly one conversation exists per external chat identifier.

    Attributes:
        id: Deterministic conversation ID (SHA256 of the external chat ID)
        external_chat_id: Chat identifier assigned by the chat platform
        username: Sender username, best effort
        first_name: Sender first name, best effort
        is_auto_active: True while the bot answers automatically
        created_on: Creation timestamp in epoch seconds
        updated_on: Last activity timestamp in epoch seconds
        schema_version: Schema version for forward compatibility
    """

    id: str = Field(description="SHA256 hash of the external chat ID")
    external_chat_id: int = Field(description="Chat platform identifier")
    username: str = ""
    first_name: str = ""
    is_auto_active: bool = True
    created_on: int = Field(description="Epoch seconds")
    updated_on: int = Field(description="Epoch seconds")
    schema_version: int = Field(default=1)

    @property
    def mode(self) -> ConversationMode:
        """Current dispatch mode derived from the auto flag."""
        return ConversationMode.AUTO if self.is_auto_active else ConversationMode.HANDED_OFF

    @property
    def display_name(self) -> str:
        """Best available human-readable name for dashboards and logs."""
        if self.username:
            return f"@{self.username}"
        return self.first_name or str(self.external_chat_id)


class ConversationSummaryDTO(BaseModel, frozen=True):
    """Conversation with its latest message, for operator listings."""

    conversation: ConversationDTO
    last_message: str = ""
    last_message_on: int | None = Field(default=None, description="Epoch nanoseconds")
