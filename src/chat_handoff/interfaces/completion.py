"""Completion provider interface for chat_handoff.

This module defines the Protocol for language-model completion services.
"""

from typing import Protocol, runtime_checkable

from chat_handoff.models.completion import CompletionTurn

__all__ = [
    "CompletionProviderInterface",
]


@runtime_checkable
class CompletionProviderInterface(Protocol):
    """Contract for completion providers.

    Implementations turn an ordered list of prompt turns into reply text.
    """

    async def complete(self, turns: list[CompletionTurn]) -> str:
        """Generate a reply for the prompt.

        Args:
            turns: System, history and current turns in order

        Returns:
            Reply text of the first choice

        Raises:
            ConfigurationError: If the provider has no credentials
            CompletionProviderError: On timeout, error status, malformed
                or empty response
        """
        ...
