"""OpenAI completion provider for chat_handoff.

This module provides the OpenAI implementation of the completion interface.
Any OpenAI-compatible endpoint works through LLMSettings.base_url.
"""

from typing import Any, Self

import openai
from openai import AsyncOpenAI

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
    "OpenAIProvider",
]

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-3.5-turbo"


def mask_key(key: str) -> str:
    """Mask an API key for logging, keeping the first and last four characters."""
    if len(key) <= 8:
        return "****"
    return f"{key[:4]}****{key[-4:]}"


class OpenAIProvider(CompletionProviderInterface):
    """OpenAI implementation of the completion interface.

    Each request is a single attempt bounded by LLMSettings.timeout_seconds.
    Without an API key no client is created and every call raises
    ConfigurationError.
    """

    config_class = LLMSettings

    def __init__(self, settings: LLMSettings) -> None:
        """Initialize OpenAI provider.

        Args:
            settings: LLM configuration settings
        """
        self._settings = settings
        self._model = settings.model or DEFAULT_MODEL
        self._base_url = (settings.base_url or DEFAULT_BASE_URL).rstrip("/")
        api_key = settings.api_key.get_secret_value() if settings.api_key else None

        self._client: AsyncOpenAI | None = None
        if api_key:
            self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=self._base_url,
                timeout=settings.timeout_seconds,
                max_retries=0,
            )
            logger.info(
                "completion_provider_ready",
                provider="openai",
                base_url=self._base_url,
                model=self._model,
                api_key=mask_key(api_key),
            )
        else:
            logger.warning("completion_provider_not_configured", provider="openai")

    @classmethod
    async def from_config(cls, config: LLMSettings) -> Self:
        """Factory method for ChatHandoff instantiation.

        Args:
            config: LLM settings

        Returns:
            OpenAIProvider instance
        """
        return cls(config)

    @classmethod
    async def from_dict(cls, config: dict[str, Any]) -> Self:
        """Factory method for custom config dict.

        Args:
            config: Dictionary with LLM settings

        Returns:
            OpenAIProvider instance
        """
        settings = LLMSettings(**config)
        return cls(settings)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.close()

    async def complete(self, turns: list[CompletionTurn]) -> str:
        """Send the turns to the chat completions endpoint and return the first choice."""
        if self._client is None:
            raise ConfigurationError("OpenAI API key is not configured")

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[turn.model_dump() for turn in turns],
            )
        except openai.APITimeoutError as e:
            raise CompletionTimeoutError(
                f"Completion request timed out after {self._settings.timeout_seconds}s"
            ) from e
        except openai.APIStatusError as e:
            raise CompletionProviderError(
                f"Completion API error (status {e.status_code}): {e.message}"
            ) from e
        except openai.APIError as e:
            raise CompletionProviderError(f"Completion request failed: {e}") from e
        except ValueError as e:
            # 200 response whose body is not JSON
            raise CompletionProviderError(f"Completion response was not valid JSON: {e}") from e

        content = self._first_choice_content(response)

        logger.debug(
            "completion_received",
            model=self._model,
            turns=len(turns),
            reply_length=len(content),
        )
        return content

    @staticmethod
    def _first_choice_content(response: Any) -> str:
        """Extract the first choice's text from a possibly malformed response.

        The SDK builds response objects without validation, so a payload
        missing `message` or with a non-list `choices` only fails on access.
        """
        try:
            choices = response.choices
            if not isinstance(choices, list) or not choices:
                raise CompletionProviderError("Completion response contained no choices")
            content = choices[0].message.content
        except (AttributeError, TypeError, IndexError, KeyError) as e:
            raise CompletionProviderError(f"Malformed completion response: {e}") from e

        if not isinstance(content, str) or not content:
            raise CompletionProviderError("Completion response had no message content")
        return content
