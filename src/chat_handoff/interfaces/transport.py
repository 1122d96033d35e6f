"""Transport interface for chat_handoff.

This module defines the Protocol for sending messages to the chat platform.
"""

from typing import Protocol, runtime_checkable

__all__ = [
    "TransportInterface",
]


@runtime_checkable
class TransportInterface(Protocol):
    """Contract for outbound chat delivery.

    A single attempt is made per send; failures are reported, not retried.
    """

    async def send(self, chat_id: int, text: str) -> None:
        """Send a text message to a chat.

        Args:
            chat_id: Platform chat identifier
            text: Message text

        Raises:
            TransportError: If the platform rejects or fails the send
        """
        ...
