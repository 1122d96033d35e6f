"""Utility functions for chat_handoff.

This module contains internal utility functions.
"""

from chat_handoff.utils.hashing import (
    generate_conversation_id,
    generate_message_id,
    hash_text,
)

__all__ = [
    "generate_conversation_id",
    "generate_message_id",
    "hash_text",
]
