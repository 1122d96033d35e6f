"""Mode controller for chat_handoff.

Switches conversations between automatic replies and operator handling.
"""

from chat_handoff.exceptions import PersistenceError
from chat_handoff.interfaces.storage import StorageInterface
from chat_handoff.logging import get_logger
from chat_handoff.models.conversation import ConversationDTO
from chat_handoff.services.locks import ConversationLocks

__all__ = [
    "ModeController",
]

logger = get_logger(__name__)


class ModeController:
    """Service owning the auto-reply flag of conversations.

    The flag is only ever changed here, on operator request. Writes take the
    conversation's lock, so a mode change never lands in the middle of a
    dispatch for the same conversation.

    Example:
        controller = ModeController(storage, locks)
        await controller.take_over(conversation_id)
    """

    def __init__(
        self,
        storage: StorageInterface,
        locks: ConversationLocks | None = None,
    ):
        """Initialize service with dependencies.

        Args:
            storage: Storage interface for persistence
            locks: Shared per-conversation locks
        """
        self._storage = storage
        self._locks = locks or ConversationLocks()

    async def set_auto(self, conversation_id: str, active: bool) -> ConversationDTO:
        """Enable or disable automatic replies.

        Setting the current value again is harmless.

        Args:
            conversation_id: Conversation to update
            active: True for AUTO, False for HANDED_OFF

        Returns:
            The updated conversation

        Raises:
            PersistenceError: If the conversation does not exist or storage fails
        """
        async with self._locks.hold(conversation_id):
            conversation = await self._storage.set_auto_active(conversation_id, active)

        logger.info(
            "conversation_mode_changed",
            conversation_id=conversation_id,
            mode=conversation.mode.value,
        )
        return conversation

    async def take_over(self, conversation_id: str) -> ConversationDTO:
        """Hand the conversation to an operator; the bot stops replying."""
        return await self.set_auto(conversation_id, False)

    async def release(self, conversation_id: str) -> ConversationDTO:
        """Give the conversation back to the bot."""
        return await self.set_auto(conversation_id, True)

    async def is_auto(self, conversation_id: str) -> bool:
        """Read the current auto-reply flag.

        Raises:
            PersistenceError: If the conversation does not exist or storage fails
        """
        conversation = await self._storage.get_conversation(conversation_id)
        if conversation is None:
            raise PersistenceError(f"Conversation {conversation_id} does not exist")
        return conversation.is_auto_active
