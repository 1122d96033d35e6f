"""Telegram infrastructure for chat_handoff."""

from chat_handoff.infra.telegram.transport import TelegramTransport, event_from_message

__all__ = ["TelegramTransport", "event_from_message"]
