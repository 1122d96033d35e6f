"""Greeting shortcut filter for chat_handoff.

Short greetings get a canned reply instead of a completion request.
"""

__all__ = [
    "GREETING_REPLY",
    "GREETING_TOKENS",
    "MAX_GREETING_LENGTH",
    "matches",
]

GREETING_TOKENS = frozenset({"halo", "hai", "hi", "hello", "hey", "selamat"})

# Raw length of the untrimmed text must stay below this
MAX_GREETING_LENGTH = 20

GREETING_REPLY = "Apa yang bisa saya bantu, kak?"


def matches(text: str) -> bool:
    """Check if a message is a short greeting.

    Matching is substring containment on the lowercased text, so
    "Hai kak!" matches and so does "this" (it contains "hi").

    Args:
        text: Raw inbound message text

    Returns:
        True if the text contains a greeting token and is shorter
        than MAX_GREETING_LENGTH characters
    """
    if len(text) >= MAX_GREETING_LENGTH:
        return False
    lowered = text.lower()
    return any(token in lowered for token in GREETING_TOKENS)
