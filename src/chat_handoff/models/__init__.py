"""Public DTO models for chat_handoff.

This module exports all public data transfer objects.
"""

from chat_handoff.models.completion import CompletionRole, CompletionTurn
from chat_handoff.models.conversation import (
    ConversationDTO,
    ConversationMode,
    ConversationSummaryDTO,
)
from chat_handoff.models.events import InboundEvent
from chat_handoff.models.knowledge import KnowledgeDTO
from chat_handoff.models.message import MessageDTO, SenderRole

__all__ = [
    "CompletionRole",
    "CompletionTurn",
    "ConversationDTO",
    "ConversationMode",
    "ConversationSummaryDTO",
    "InboundEvent",
    "KnowledgeDTO",
    "MessageDTO",
    "SenderRole",
]
