"""ChatHandoff orchestrator for chat relay and operator takeover.

This module provides the main entry point for the chat_handoff package,
wiring storage, completion provider and transport into the dispatcher and
exposing the operator operations a dashboard calls.
"""

import asyncio
from typing import Any

from chat_handoff.config import ChatHandoffConfig
from chat_handoff.interfaces.completion import CompletionProviderInterface
from chat_handoff.interfaces.storage import StorageInterface
from chat_handoff.interfaces.transport import TransportInterface
from chat_handoff.logging import get_logger
from chat_handoff.models.conversation import ConversationDTO, ConversationSummaryDTO
from chat_handoff.models.events import InboundEvent
from chat_handoff.models.knowledge import KnowledgeDTO
from chat_handoff.models.message import MessageDTO
from chat_handoff.services.context_assembler import ContextAssembler
from chat_handoff.services.dispatcher import ConversationDispatcher, DispatchResult
from chat_handoff.services.locks import ConversationLocks
from chat_handoff.services.mode_controller import ModeController

__all__ = ["ChatHandoff"]

logger = get_logger(__name__)


class ChatHandoff:
    """Main orchestrator for a chat_handoff deployment.

    Accepts implementation classes. Config is loaded from .env automatically.
    For custom implementations, set config_class = None and pass a custom config dict.

    Example:
        async with ChatHandoff(
            storage_class=MongoStorageRepository,
            llm_class=OpenAIProvider,
            transport_class=TelegramTransport,
        ) as handoff:
            await handoff.take_over(conversation_id)
            await handoff.send_as_admin(chat_id, "Halo kak, saya admin.", conversation_id)
    """

    def __init__(
        self,
        storage_class: type[StorageInterface],
        llm_class: type[CompletionProviderInterface],
        transport_class: type[TransportInterface],
        *,
        config: ChatHandoffConfig | None = None,
        storage_custom_config: dict[str, Any] | None = None,
        llm_custom_config: dict[str, Any] | None = None,
        transport_custom_config: dict[str, Any] | None = None,
    ) -> None:
        """Initialize ChatHandoff with implementation classes.

        Args:
            storage_class: Storage implementation class
            llm_class: Completion provider implementation class
            transport_class: Transport implementation class
            config: Application config (loaded from .env when omitted)
            storage_custom_config: Custom config dict if storage_class.config_class is None
            llm_custom_config: Custom config dict if llm_class.config_class is None
            transport_custom_config: Custom config dict if transport_class.config_class is None
        """
        self._config = config or ChatHandoffConfig()

        self._storage_class = storage_class
        self._llm_class = llm_class
        self._transport_class = transport_class

        self._storage_custom_config = storage_custom_config
        self._llm_custom_config = llm_custom_config
        self._transport_custom_config = transport_custom_config

        # Instances (created on connect)
        self._storage: StorageInterface | None = None
        self._llm: CompletionProviderInterface | None = None
        self._transport: TransportInterface | None = None

        # Services (wired on connect)
        self._locks = ConversationLocks()
        self._mode_controller: ModeController | None = None
        self._assembler: ContextAssembler | None = None
        self._dispatcher: ConversationDispatcher | None = None

        self._connected = False

    async def _instantiate_class(
        self,
        cls: type,
        settings: Any,
        custom_config: dict[str, Any] | None,
    ) -> Any:
        """Instantiate an implementation class.

        If cls.config_class is set, pass it the matching settings group.
        If cls.config_class is None, use custom_config dict.
        """
        config_class = getattr(cls, "config_class", None)

        if config_class is None:
            if custom_config is None:
                raise ValueError(
                    f"{cls.__name__} has config_class=None but no custom_config provided"
                )
            return await cls.from_dict(custom_config)
        return await cls.from_config(settings)

    async def _connect(self) -> None:
        """Initialize connections and services."""
        if self._connected:
            return

        try:
            self._storage = await self._instantiate_class(
                self._storage_class, self._config.mongo, self._storage_custom_config
            )
            self._llm = await self._instantiate_class(
                self._llm_class, self._config.llm, self._llm_custom_config
            )
            self._transport = await self._instantiate_class(
                self._transport_class, self._config.telegram, self._transport_custom_config
            )
        except Exception:
            await self._close_instances()
            raise

        # Wire services
        self._mode_controller = ModeController(self._storage, self._locks)
        self._assembler = ContextAssembler(
            self._storage,
            self._llm,
            history_limit=self._config.history_limit,
        )
        self._dispatcher = ConversationDispatcher(
            self._storage,
            self._assembler,
            self._transport,
            self._locks,
        )
        if hasattr(self._transport, "attach"):
            self._transport.attach(self._dispatcher)

        self._connected = True
        logger.info("chat_handoff_connected", history_limit=self._config.history_limit)

    async def _disconnect(self) -> None:
        """Drain in-flight dispatches, then close all connections."""
        if self._transport and hasattr(self._transport, "stop_receiving"):
            await self._transport.stop_receiving()
        if self._dispatcher:
            await self._dispatcher.drain(self._config.shutdown_grace_seconds)

        await self._close_instances()

        self._connected = False
        logger.info("chat_handoff_disconnected")

    async def _close_instances(self) -> None:
        """Close whichever of transport, provider and storage were created."""
        if self._transport and hasattr(self._transport, "close"):
            await self._transport.close()
        if self._llm and hasattr(self._llm, "close"):
            await self._llm.close()
        if self._storage and hasattr(self._storage, "close"):
            await self._storage.close()
        self._transport = None
        self._llm = None
        self._storage = None

    async def __aenter__(self) -> "ChatHandoff":
        """Async context manager entry - connects automatically."""
        await self._connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit - drains and disconnects automatically."""
        await self._disconnect()

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise RuntimeError(
                "ChatHandoff not connected. Use 'async with ChatHandoff(...) as handoff:'"
            )

    @property
    def dispatcher(self) -> ConversationDispatcher:
        self._ensure_connected()
        assert self._dispatcher is not None
        return self._dispatcher

    # === RUNTIME ===

    async def serve(self, stop: asyncio.Event) -> None:
        """Receive messages from the transport until `stop` is set.

        Args:
            stop: Event signalling shutdown
        """
        self._ensure_connected()
        if not hasattr(self._transport, "start"):
            raise RuntimeError(f"{type(self._transport).__name__} cannot receive messages")

        await self._transport.start()
        logger.info("chat_handoff_serving")
        await stop.wait()
        logger.info("chat_handoff_stopping")

    async def dispatch(self, event: InboundEvent) -> DispatchResult:
        """Handle one inbound message (transports call this)."""
        return await self.dispatcher.dispatch(event)

    # === OPERATOR ACTIONS ===

    async def send_as_admin(self, chat_id: int, text: str, conversation_id: str) -> MessageDTO:
        """Send an operator message to a chat, whatever its mode."""
        return await self.dispatcher.send_as_admin(chat_id, text, conversation_id)

    async def set_auto(self, conversation_id: str, active: bool) -> ConversationDTO:
        """Enable or disable automatic replies for a conversation."""
        self._ensure_connected()
        assert self._mode_controller is not None
        return await self._mode_controller.set_auto(conversation_id, active)

    async def take_over(self, conversation_id: str) -> ConversationDTO:
        """Hand a conversation to the operator."""
        return await self.set_auto(conversation_id, False)

    async def release(self, conversation_id: str) -> ConversationDTO:
        """Give a conversation back to the bot."""
        return await self.set_auto(conversation_id, True)

    # === RETRIEVAL METHODS ===

    async def list_conversations(self) -> list[ConversationSummaryDTO]:
        """Get all conversations, most recently active first."""
        self._ensure_connected()
        assert self._storage is not None
        return await self._storage.list_conversations()

    async def get_conversation(self, conversation_id: str) -> ConversationDTO | None:
        """Get a conversation by ID."""
        self._ensure_connected()
        assert self._storage is not None
        return await self._storage.get_conversation(conversation_id)

    async def get_messages(self, conversation_id: str) -> list[MessageDTO]:
        """Get the full transcript of a conversation."""
        self._ensure_connected()
        assert self._storage is not None
        return await self._storage.get_messages(conversation_id)

    # === KNOWLEDGE DOCUMENT ===

    async def get_knowledge(self) -> str:
        """Get the current knowledge document."""
        self._ensure_connected()
        assert self._storage is not None
        return await self._storage.get_knowledge()

    async def save_knowledge(self, content: str) -> KnowledgeDTO:
        """Store a new version of the knowledge document."""
        self._ensure_connected()
        assert self._storage is not None
        return await self._storage.save_knowledge(content)
