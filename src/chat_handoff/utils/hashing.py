"""Hashing utilities for chat_handoff.

This module provides deterministic hash functions for generating
stable identifiers for conversations and messages.
"""

import hashlib

__all__ = [
    "generate_conversation_id",
    "generate_message_id",
    "hash_text",
]


def hash_text(text: str) -> str:
    """Generate SHA256 hash of text.

    Args:
        text: Input text to hash

    Returns:
        Hexadecimal SHA256 hash string
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def generate_conversation_id(external_chat_id: int) -> str:
    """Generate deterministic conversation ID.

    The conversation ID depends only on the external chat identifier, so the
    same chat always maps to the same conversation, and the ID is known
    before the conversation row exists.

    Args:
        external_chat_id: Chat identifier assigned by the chat platform

    Returns:
        Hexadecimal SHA256 hash string
    """
    return hash_text(f"conversation|{external_chat_id}")


def generate_message_id(
    conversation_id: str,
    role: str,
    text: str,
    created_on: int,
) -> str:
    """Generate deterministic message ID.

    Args:
        conversation_id: Parent conversation ID
        role: Sender role value
        text: Message text
        created_on: Message timestamp (epoch nanoseconds)

    Returns:
        Hexadecimal SHA256 hash string
    """
    return hash_text(f"message|{conversation_id}|{role}|{created_on}|{text}")
