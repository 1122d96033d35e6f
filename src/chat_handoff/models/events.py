"""Inbound chat event model for chat_handoff.

This frozen model is the contract between a transport and the dispatcher.
"""

from pydantic import BaseModel, Field

__all__ = [
    "InboundEvent",
]


class InboundEvent(BaseModel, frozen=True):
    """One inbound text message from the chat platform.

    Attributes:
        chat_id: Stable chat identifier assigned by the platform
        username: Sender username, may be empty
        first_name: Sender first name, may be empty
        text: Raw message text
        command: Parsed command name without the leading slash, if any
    """

    chat_id: int
    username: str = ""
    first_name: str = ""
    text: str
    command: str | None = Field(default=None, description="e.g. 'start' for /start")

    @property
    def is_command(self) -> bool:
        """Check if the message was a bot command."""
        return self.command is not None
