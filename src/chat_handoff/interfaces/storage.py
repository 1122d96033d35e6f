"""Storage interface for chat_handoff.

This module defines the Protocol for the durable store behind the
conversation registry, the message log and the knowledge document.
"""

from typing import ClassVar, Protocol, runtime_checkable

from chat_handoff.models.conversation import ConversationDTO, ConversationSummaryDTO
from chat_handoff.models.knowledge import KnowledgeDTO
from chat_handoff.models.message import MessageDTO, SenderRole

__all__ = [
    "StorageInterface",
]


@runtime_checkable
class StorageInterface(Protocol):
    """Contract for persistent storage operations.

    All methods raise PersistenceError when the store fails.
    """

    config_class: ClassVar[type | None] = None

    # Conversation registry
    async def upsert_conversation(
        self,
        external_chat_id: int,
        username: str = "",
        first_name: str = "",
    ) -> ConversationDTO:
        """Return the conversation for a chat, creating it if needed.

        New conversations start with is_auto_active=True. Existing ones are
        returned unchanged. Concurrent calls never create duplicates.

        Args:
            external_chat_id: Chat identifier assigned by the platform
            username: Sender username (stored on creation only)
            first_name: Sender first name (stored on creation only)

        Returns:
            The single ConversationDTO for this chat
        """
        ...

    async def get_conversation(self, conversation_id: str) -> ConversationDTO | None:
        """Get a conversation by ID.

        Args:
            conversation_id: Conversation ID to retrieve

        Returns:
            ConversationDTO if found, None otherwise
        """
        ...

    async def list_conversations(self) -> list[ConversationSummaryDTO]:
        """List all conversations with their latest message.

        Returns:
            Summaries ordered by most recent activity first
        """
        ...

    async def set_auto_active(self, conversation_id: str, active: bool) -> ConversationDTO:
        """Set the auto-reply flag of a conversation.

        Args:
            conversation_id: Conversation to update
            active: New flag value

        Returns:
            The updated ConversationDTO

        Raises:
            PersistenceError: If the conversation does not exist
        """
        ...

    # Message log
    async def append_message(
        self,
        conversation_id: str,
        role: SenderRole | str,
        text: str,
    ) -> MessageDTO:
        """Append a message and refresh the conversation's last activity.

        Both writes succeed or the operation reports PersistenceError and
        neither is considered applied.

        Args:
            conversation_id: Owning conversation ID
            role: Sender role; must be one of SenderRole
            text: Non-empty message text

        Returns:
            The appended MessageDTO

        Raises:
            ValidationError: If text is empty or role is unknown
            PersistenceError: If the conversation does not exist or a write fails
        """
        ...

    async def recent_messages(self, conversation_id: str, limit: int) -> list[MessageDTO]:
        """Get the most recent messages of a conversation.

        Args:
            conversation_id: Conversation ID to query
            limit: Maximum number of messages

        Returns:
            At most `limit` messages in ascending creation order (may be empty)
        """
        ...

    async def get_messages(self, conversation_id: str) -> list[MessageDTO]:
        """Get the full transcript of a conversation.

        Args:
            conversation_id: Conversation ID to query

        Returns:
            All messages in ascending creation order
        """
        ...

    # Knowledge document
    async def get_knowledge(self) -> str:
        """Get the current knowledge document.

        Returns:
            Content of the latest version, or "" if none exists
        """
        ...

    async def save_knowledge(self, content: str) -> KnowledgeDTO:
        """Append a new knowledge document version.

        Args:
            content: Full document text

        Returns:
            The newly created version
        """
        ...
