"""Completion request models for chat_handoff."""

from typing import Literal

from pydantic import BaseModel

__all__ = [
    "CompletionRole",
    "CompletionTurn",
]

CompletionRole = Literal["system", "user", "assistant"]


class CompletionTurn(BaseModel, frozen=True):
    """One turn of a completion prompt."""

    role: CompletionRole
    content: str
