"""Conversation dispatcher for chat_handoff.

This module decides, for every inbound message, whether and how the bot
answers, and records everything in the transcript.
"""

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum

from chat_handoff.exceptions import (
    ChatHandoffError,
    PersistenceError,
    TransportError,
    ValidationError,
)
from chat_handoff.interfaces.storage import StorageInterface
from chat_handoff.interfaces.transport import TransportInterface
from chat_handoff.logging import get_logger
from chat_handoff.models.conversation import ConversationDTO
from chat_handoff.models.events import InboundEvent
from chat_handoff.models.message import MessageDTO, SenderRole
from chat_handoff.services import greeting_filter
from chat_handoff.services.context_assembler import ContextAssembler, ReplySource
from chat_handoff.services.locks import ConversationLocks
from chat_handoff.utils.hashing import generate_conversation_id

__all__ = [
    "ONBOARDING_COMMANDS",
    "ONBOARDING_REPLY",
    "ConversationDispatcher",
    "DispatchOutcome",
    "DispatchResult",
]

logger = get_logger(__name__)

ONBOARDING_COMMANDS = frozenset({"start", "help"})
ONBOARDING_REPLY = "Halo! Saya siap membantu Anda. Silakan tanyakan apa saja!"


class DispatchOutcome(StrEnum):
    """How an inbound message was handled."""

    ONBOARDING = "onboarding"  # /start or /help answered
    HANDED_OFF = "handed_off"  # operator mode, bot stayed silent
    GREETING = "greeting"  # canned greeting reply
    REPLIED = "replied"  # completion (or its fallback) sent
    FAILED = "failed"  # aborted before a reply was attempted


@dataclass
class DispatchResult:
    """Result of dispatching one inbound message.

    Errors are collected rather than raised so the transport loop keeps
    running; tests inspect them by type.
    """

    outcome: DispatchOutcome
    conversation: ConversationDTO | None = None
    reply: str | None = None
    reply_source: ReplySource | None = None
    delivered: bool = False
    errors: list[Exception] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class ConversationDispatcher:
    """Orchestrates inbound messages for all conversations.

    Per message, in order: register the conversation, log the user
    message, answer onboarding commands, stay silent in operator mode,
    otherwise answer with the greeting shortcut or the context assembler.
    The whole sequence holds the conversation's lock, so the transcript
    order seen by the assembler is the order of handling.

    Example:
        dispatcher = ConversationDispatcher(storage, assembler, transport)
        result = await dispatcher.dispatch(event)
    """

    def __init__(
        self,
        storage: StorageInterface,
        assembler: ContextAssembler,
        transport: TransportInterface,
        locks: ConversationLocks | None = None,
    ):
        """Initialize dispatcher with dependencies.

        Args:
            storage: Storage interface for registry, log and knowledge
            assembler: Context assembler for generated replies
            transport: Outbound chat delivery
            locks: Per-conversation locks shared with the mode controller
        """
        self._storage = storage
        self._assembler = assembler
        self._transport = transport
        self._locks = locks or ConversationLocks()
        self._in_flight: set[asyncio.Task[DispatchResult]] = set()

    @property
    def in_flight(self) -> int:
        """Number of dispatches currently running."""
        return len(self._in_flight)

    async def dispatch(self, event: InboundEvent) -> DispatchResult:
        """Handle one inbound message.

        The work runs in its own task shielded from cancellation, so a
        shutdown never interrupts a reply between send and append. Never
        raises; failures are reported in DispatchResult.errors.

        Args:
            event: Inbound chat message

        Returns:
            DispatchResult describing what happened
        """
        task = asyncio.ensure_future(self._dispatch_locked(event))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return await asyncio.shield(task)

    async def drain(self, timeout: float | None = None) -> int:
        """Wait for in-flight dispatches to finish.

        Args:
            timeout: Maximum seconds to wait; None waits indefinitely

        Returns:
            Number of dispatches still running when the wait ended
        """
        pending = set(self._in_flight)
        if not pending:
            return 0
        logger.info("draining_dispatches", in_flight=len(pending))
        _, still_pending = await asyncio.wait(pending, timeout=timeout)
        if still_pending:
            logger.warning("dispatches_not_drained", remaining=len(still_pending))
        return len(still_pending)

    async def send_as_admin(self, chat_id: int, text: str, conversation_id: str) -> MessageDTO:
        """Send an operator message, independent of the conversation's mode.

        The message is sent first and appended with role admin only once
        the platform accepted it.

        Args:
            chat_id: Platform chat identifier
            text: Operator message text
            conversation_id: Conversation the chat belongs to

        Returns:
            The appended admin message

        Raises:
            ValidationError: If text is empty
            TransportError: If the send fails (nothing is appended)
            PersistenceError: If the send succeeded but the append failed
        """
        if not text:
            raise ValidationError("Message text must not be empty")

        async with self._locks.hold(conversation_id):
            await self._transport.send(chat_id, text)
            message = await self._storage.append_message(conversation_id, SenderRole.ADMIN, text)

        logger.info(
            "admin_message_sent",
            conversation_id=conversation_id,
            chat_id=chat_id,
        )
        return message

    async def _dispatch_locked(self, event: InboundEvent) -> DispatchResult:
        conversation_id = generate_conversation_id(event.chat_id)
        async with self._locks.hold(conversation_id):
            try:
                return await self._dispatch(event)
            except Exception as e:
                logger.exception(
                    "dispatch_crashed",
                    chat_id=event.chat_id,
                    error=str(e),
                )
                return DispatchResult(DispatchOutcome.FAILED, errors=[e])

    async def _dispatch(self, event: InboundEvent) -> DispatchResult:
        try:
            conversation = await self._storage.upsert_conversation(
                event.chat_id,
                event.username,
                event.first_name,
            )
        except PersistenceError as e:
            logger.error("conversation_upsert_failed", chat_id=event.chat_id, error=str(e))
            return DispatchResult(DispatchOutcome.FAILED, errors=[e])

        try:
            await self._storage.append_message(conversation.id, SenderRole.USER, event.text)
        except (ValidationError, PersistenceError) as e:
            logger.error(
                "user_message_append_failed",
                conversation_id=conversation.id,
                error=str(e),
            )
            return DispatchResult(DispatchOutcome.FAILED, conversation, errors=[e])

        if event.command in ONBOARDING_COMMANDS:
            result = DispatchResult(
                DispatchOutcome.ONBOARDING,
                conversation,
                reply=ONBOARDING_REPLY,
                reply_source=ReplySource.ONBOARDING,
            )
            return await self._deliver(event.chat_id, conversation, result)

        if not conversation.is_auto_active:
            logger.info(
                "auto_reply_skipped",
                conversation_id=conversation.id,
                chat_id=event.chat_id,
                mode=conversation.mode.value,
            )
            return DispatchResult(DispatchOutcome.HANDED_OFF, conversation)

        knowledge = await self._load_knowledge()

        if greeting_filter.matches(event.text):
            result = DispatchResult(
                DispatchOutcome.GREETING,
                conversation,
                reply=greeting_filter.GREETING_REPLY,
                reply_source=ReplySource.GREETING,
            )
        else:
            reply = await self._assembler.build_reply(event.text, knowledge, conversation.id)
            result = DispatchResult(
                DispatchOutcome.REPLIED,
                conversation,
                reply=reply.text,
                reply_source=reply.source,
            )
            if reply.error is not None:
                result.errors.append(reply.error)

        return await self._deliver(event.chat_id, conversation, result)

    async def _deliver(
        self,
        chat_id: int,
        conversation: ConversationDTO,
        result: DispatchResult,
    ) -> DispatchResult:
        """Send the reply, then record it as a bot message.

        A failed send is not retried; the reply is still recorded so the
        transcript shows what the bot answered.
        """
        assert result.reply is not None

        try:
            await self._transport.send(chat_id, result.reply)
            result.delivered = True
        except TransportError as e:
            logger.error("reply_send_failed", conversation_id=conversation.id, error=str(e))
            result.errors.append(e)

        try:
            await self._storage.append_message(conversation.id, SenderRole.BOT, result.reply)
        except ChatHandoffError as e:
            logger.error("reply_append_failed", conversation_id=conversation.id, error=str(e))
            result.errors.append(e)

        logger.info(
            "reply_dispatched",
            conversation_id=conversation.id,
            outcome=result.outcome.value,
            source=result.reply_source.value if result.reply_source else None,
            delivered=result.delivered,
        )
        return result

    async def _load_knowledge(self) -> str:
        """Read the current knowledge document; a failed read yields an empty one."""
        try:
            return await self._storage.get_knowledge()
        except PersistenceError as e:
            logger.warning("knowledge_unavailable", error=str(e))
            return ""
