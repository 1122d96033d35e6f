"""Anthropic completion provider for chat_handoff.

This module provides the Anthropic implementation of the completion interface.
Anthropic takes the system prompt as a separate parameter, so system turns
are lifted out of the message list.
"""

from typing import Any, Self

import anthropic
from anthropic import AsyncAnthropic

from chat_handoff.config import LLMSettings
from chat_handoff.exceptions import (
    CompletionProviderError,
    CompletionTimeoutError,
    ConfigurationError,
)
from chat_handoff.interfaces.completion import CompletionProviderInterface
from chat_handoff.logging import get_logger
from chat_handoff.models.completion import CompletionTurn

__all__ = [
    "AnthropicProvider",
]

logger = get_logger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"


class AnthropicProvider(CompletionProviderInterface):
    """Anthropic implementation of the completion interface."""

    config_class = LLMSettings

    def __init__(self, settings: LLMSettings) -> None:
        """Initialize Anthropic provider.

        Args:
            settings: LLM configuration settings
        """
        self._settings = settings
        self._model = settings.model or DEFAULT_MODEL
        api_key = settings.api_key.get_secret_value() if settings.api_key else None

        self._client: AsyncAnthropic | None = None
        if api_key:
            self._client = AsyncAnthropic(
                api_key=api_key,
                base_url=settings.base_url,
                timeout=settings.timeout_seconds,
                max_retries=0,
            )
        else:
            logger.warning("completion_provider_not_configured", provider="anthropic")

    @classmethod
    async def from_config(cls, config: LLMSettings) -> Self:
        """Factory method for ChatHandoff instantiation."""
        return cls(config)

    @classmethod
    async def from_dict(cls, config: dict[str, Any]) -> Self:
        """Factory method for custom config dict."""
        settings = LLMSettings(**config)
        return cls(settings)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.close()

    async def complete(self, turns: list[CompletionTurn]) -> str:
        if self._client is None:
            raise ConfigurationError("Anthropic API key is not configured")

        system_prompt = "\n\n".join(t.content for t in turns if t.role == "system")
        messages = [t.model_dump() for t in turns if t.role != "system"]

        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._settings.max_tokens,
                system=system_prompt,
                messages=messages,
            )
        except anthropic.APITimeoutError as e:
            raise CompletionTimeoutError(
                f"Completion request timed out after {self._settings.timeout_seconds}s"
            ) from e
        except anthropic.APIStatusError as e:
            raise CompletionProviderError(
                f"Completion API error (status {e.status_code}): {e.message}"
            ) from e
        except anthropic.APIError as e:
            raise CompletionProviderError(f"Completion request failed: {e}") from e
        except ValueError as e:
            raise CompletionProviderError(f"Completion response was not valid JSON: {e}") from e

        try:
            text = "".join(
                block.text for block in response.content if getattr(block, "type", None) == "text"
            )
        except (AttributeError, TypeError) as e:
            raise CompletionProviderError(f"Malformed completion response: {e}") from e
        if not text:
            raise CompletionProviderError("Completion response contained no text")
        return text
