"""Knowledge document models for chat_handoff."""

from pydantic import BaseModel, Field

__all__ = [
    "KnowledgeDTO",
]


class KnowledgeDTO(BaseModel, frozen=True):
    """One version of the knowledge document.

    Every save creates a new version; only the highest version is current.

    Attributes:
        version: 1-based, strictly increasing version number
        content: Full document text
        created_on: Version creation timestamp in epoch seconds
    """

    version: int = Field(ge=1)
    content: str
    created_on: int = Field(description="Epoch seconds")
