"""Service layer for chat_handoff.

This module exports the main service entry points.
"""

from chat_handoff.services.context_assembler import (
    APOLOGY_REPLY,
    NOT_CONFIGURED_REPLY,
    ContextAssembler,
    ReplyResult,
    ReplySource,
)
from chat_handoff.services.dispatcher import (
    ONBOARDING_REPLY,
    ConversationDispatcher,
    DispatchOutcome,
    DispatchResult,
)
from chat_handoff.services.greeting_filter import GREETING_REPLY
from chat_handoff.services.locks import ConversationLocks
from chat_handoff.services.mode_controller import ModeController

__all__ = [
    "APOLOGY_REPLY",
    "GREETING_REPLY",
    "NOT_CONFIGURED_REPLY",
    "ONBOARDING_REPLY",
    "ContextAssembler",
    "ConversationDispatcher",
    "ConversationLocks",
    "DispatchOutcome",
    "DispatchResult",
    "ModeController",
    "ReplyResult",
    "ReplySource",
]
