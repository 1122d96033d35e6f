"""Telegram transport for chat_handoff.

This module connects python-telegram-bot to the dispatcher: inbound text
messages become InboundEvents, outbound replies go through Bot.send_message.
"""

from typing import TYPE_CHECKING, Any, Self

from telegram import Message, MessageEntity, Update
from telegram.error import TelegramError
from telegram.ext import Application, ContextTypes, MessageHandler, filters

from chat_handoff.config import TelegramSettings
from chat_handoff.exceptions import ConfigurationError, TransportError
from chat_handoff.interfaces.transport import TransportInterface
from chat_handoff.logging import get_logger
from chat_handoff.models.events import InboundEvent

if TYPE_CHECKING:
    from chat_handoff.services.dispatcher import ConversationDispatcher

__all__ = [
    "TelegramTransport",
    "event_from_message",
]

logger = get_logger(__name__)


def event_from_message(message: Message | None) -> InboundEvent | None:
    """Convert a Telegram message to an InboundEvent.

    Only text messages are handled. A command is recognised when the text
    starts with a bot_command entity; "/start@my_bot" yields "start".

    Args:
        message: Incoming Telegram message

    Returns:
        InboundEvent, or None for messages without text
    """
    if message is None or not message.text:
        return None

    command = None
    entities = message.entities or ()
    if entities and entities[0].type == MessageEntity.BOT_COMMAND and entities[0].offset == 0:
        command = message.parse_entity(entities[0])[1:].split("@", 1)[0]

    sender = message.from_user
    return InboundEvent(
        chat_id=message.chat_id,
        username=(sender.username or "") if sender else "",
        first_name=(sender.first_name or "") if sender else "",
        text=message.text,
        command=command,
    )


class TelegramTransport(TransportInterface):
    """Telegram implementation of the transport interface.

    Updates are processed concurrently, one task per update; ordering
    within a conversation is the dispatcher's job.
    """

    config_class = TelegramSettings

    def __init__(self, settings: TelegramSettings) -> None:
        """Initialize the Telegram application.

        Args:
            settings: Telegram settings

        Raises:
            ConfigurationError: If no bot token is configured
        """
        token = settings.bot_token.get_secret_value() if settings.bot_token else None
        if not token:
            raise ConfigurationError("Telegram bot token is not configured")

        self._application = Application.builder().token(token).concurrent_updates(True).build()
        self._bot = self._application.bot
        self._dispatcher: ConversationDispatcher | None = None
        self._running = False

    @classmethod
    async def from_config(cls, config: TelegramSettings) -> Self:
        """Factory method for ChatHandoff instantiation."""
        return cls(config)

    @classmethod
    async def from_dict(cls, config: dict[str, Any]) -> Self:
        """Factory method for custom config dict."""
        settings = TelegramSettings(**config)
        return cls(settings)

    async def close(self) -> None:
        """Stop polling if still running."""
        await self.stop()

    async def send(self, chat_id: int, text: str) -> None:
        """Send a text message with a single attempt."""
        try:
            await self._bot.send_message(chat_id=chat_id, text=text)
        except TelegramError as e:
            raise TransportError(chat_id, str(e)) from e

    def attach(self, dispatcher: "ConversationDispatcher") -> None:
        """Route new text messages, commands included, to the dispatcher.

        Edited messages and channel posts are not handled.
        """
        self._dispatcher = dispatcher
        self._application.add_handler(
            MessageHandler(filters.TEXT & filters.UpdateType.MESSAGE, self._on_message)
        )

    async def start(self) -> None:
        """Start long polling."""
        if self._dispatcher is None:
            raise RuntimeError("TelegramTransport has no dispatcher. Call attach() first.")
        await self._application.initialize()
        await self._application.start()
        await self._application.updater.start_polling()
        self._running = True
        logger.info("telegram_polling_started", bot_username=self._bot.username)

    async def stop_receiving(self) -> None:
        """Stop fetching updates; sends keep working until stop()."""
        if self._application.updater.running:
            await self._application.updater.stop()

    async def stop(self) -> None:
        """Stop fetching updates and shut the application down."""
        if not self._running:
            return
        self._running = False
        await self.stop_receiving()
        await self._application.stop()
        await self._application.shutdown()
        logger.info("telegram_polling_stopped")

    async def _on_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        event = event_from_message(update.effective_message)
        if event is None or self._dispatcher is None:
            return
        await self._dispatcher.dispatch(event)
