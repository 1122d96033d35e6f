"""Interface contracts for chat_handoff.

This module exports all Protocol-based interfaces for dependency injection.
"""

from chat_handoff.interfaces.completion import CompletionProviderInterface
from chat_handoff.interfaces.storage import StorageInterface
from chat_handoff.interfaces.transport import TransportInterface

__all__ = [
    "CompletionProviderInterface",
    "StorageInterface",
    "TransportInterface",
]
