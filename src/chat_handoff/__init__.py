"""chat_handoff - Customer-service chat relay with AI replies and operator takeover.

This package provides tools for:
- Receiving Telegram messages and keeping an ordered, durable transcript
- Answering automatically from a knowledge document via a completion API
- Letting an operator take over a conversation and reply in person

Example usage:
    from chat_handoff import (
        ChatHandoff,
        MongoStorageRepository,
        OpenAIProvider,
        TelegramTransport,
    )

    async with ChatHandoff(
        storage_class=MongoStorageRepository,
        llm_class=OpenAIProvider,
        transport_class=TelegramTransport,
    ) as handoff:
        await handoff.save_knowledge("Harga kentang Rp5ribu perbungkus.")
        await handoff.serve(stop_event)
"""

__version__ = "0.1.0"

from chat_handoff.exceptions import (
    ChatHandoffError,
    CompletionProviderError,
    ConfigurationError,
    PersistenceError,
    TransportError,
    ValidationError,
)

# Implementations
from chat_handoff.infra.llm.anthropic_provider import AnthropicProvider
from chat_handoff.infra.llm.openai_provider import OpenAIProvider
from chat_handoff.infra.mongo.repositories import MongoStorageRepository
from chat_handoff.infra.telegram.transport import TelegramTransport

# Interfaces
from chat_handoff.interfaces.completion import CompletionProviderInterface
from chat_handoff.interfaces.storage import StorageInterface
from chat_handoff.interfaces.transport import TransportInterface

# Orchestrator
from chat_handoff.orchestrator import ChatHandoff
from chat_handoff.services.dispatcher import DispatchOutcome, DispatchResult

__all__ = [  # noqa: RUF022
    # Orchestrator
    "ChatHandoff",
    "DispatchOutcome",
    "DispatchResult",
    # Implementations
    "MongoStorageRepository",
    "OpenAIProvider",
    "AnthropicProvider",
    "TelegramTransport",
    # Interfaces
    "CompletionProviderInterface",
    "StorageInterface",
    "TransportInterface",
    # Errors
    "ChatHandoffError",
    "CompletionProviderError",
    "ConfigurationError",
    "PersistenceError",
    "TransportError",
    "ValidationError",
]
