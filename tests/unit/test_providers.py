"""Unit tests for the completion providers (HTTP clients mocked)."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import openai
import pytest

from chat_handoff.config import LLMSettings
from chat_handoff.exceptions import (
    CompletionProviderError,
    CompletionTimeoutError,
    ConfigurationError,
)
from chat_handoff.infra.llm import PROVIDERS
from chat_handoff.infra.llm.anthropic_provider import AnthropicProvider
from chat_handoff.infra.llm.openai_provider import DEFAULT_MODEL, OpenAIProvider, mask_key
from chat_handoff.models.completion import CompletionTurn

TURNS = [
    CompletionTurn(role="system", content="Kamu adalah asisten."),
    CompletionTurn(role="user", content="Harga kentang?"),
    CompletionTurn(role="assistant", content="Rp5ribu, kak."),
    CompletionTurn(role="user", content="Kalau 20 bungkus?"),
]

REQUEST = httpx.Request("POST", "https://api.example.test/v1/chat/completions")


def _settings(**overrides) -> LLMSettings:
    values = {"api_key": "sk-test-1234567890", "timeout_seconds": 5.0}
    values.update(overrides)
    return LLMSettings(**values)


def _openai_response(*contents: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=c)) for c in contents]
    )


@pytest.fixture
def openai_provider() -> OpenAIProvider:
    provider = OpenAIProvider(_settings())
    provider._client = MagicMock()
    provider._client.chat.completions.create = AsyncMock(return_value=_openai_response("Rp80ribu, kak."))
    return provider


@pytest.fixture
def anthropic_provider() -> AnthropicProvider:
    provider = AnthropicProvider(_settings(provider="anthropic"))
    provider._client = MagicMock()
    provider._client.messages.create = AsyncMock(
        return_value=SimpleNamespace(content=[SimpleNamespace(type="text", text="Rp80ribu, kak.")])
    )
    return provider


class TestOpenAIProvider:
    """Tests for OpenAIProvider."""

    @pytest.mark.asyncio
    async def test_complete_returns_first_choice(self, openai_provider: OpenAIProvider) -> None:
        reply = await openai_provider.complete(TURNS)

        assert reply == "Rp80ribu, kak."
        kwargs = openai_provider._client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == DEFAULT_MODEL
        assert kwargs["messages"][0] == {"role": "system", "content": "Kamu adalah asisten."}
        assert [m["role"] for m in kwargs["messages"]] == ["system", "user", "assistant", "user"]

    @pytest.mark.asyncio
    async def test_configured_model(self) -> None:
        provider = OpenAIProvider(_settings(model="gpt-4o-mini"))
        provider._client = MagicMock()
        provider._client.chat.completions.create = AsyncMock(return_value=_openai_response("ok"))

        await provider.complete(TURNS)

        assert provider._client.chat.completions.create.await_args.kwargs["model"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_empty_choices(self, openai_provider: OpenAIProvider) -> None:
        openai_provider._client.chat.completions.create.return_value = _openai_response()

        with pytest.raises(CompletionProviderError):
            await openai_provider.complete(TURNS)

    @pytest.mark.asyncio
    async def test_missing_content(self, openai_provider: OpenAIProvider) -> None:
        openai_provider._client.chat.completions.create.return_value = _openai_response(None)

        with pytest.raises(CompletionProviderError):
            await openai_provider.complete(TURNS)

    @pytest.mark.asyncio
    async def test_timeout(self, openai_provider: OpenAIProvider) -> None:
        openai_provider._client.chat.completions.create.side_effect = openai.APITimeoutError(
            request=REQUEST
        )

        with pytest.raises(CompletionTimeoutError):
            await openai_provider.complete(TURNS)

    @pytest.mark.asyncio
    async def test_status_error(self, openai_provider: OpenAIProvider) -> None:
        openai_provider._client.chat.completions.create.side_effect = openai.APIStatusError(
            "server error",
            response=httpx.Response(500, request=REQUEST),
            body=None,
        )

        with pytest.raises(CompletionProviderError) as exc_info:
            await openai_provider.complete(TURNS)
        assert not isinstance(exc_info.value, CompletionTimeoutError)
        assert "500" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_without_key_raises_configuration_error(self, monkeypatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("CHAT_HANDOFF_LLM_API_KEY", raising=False)
        provider = OpenAIProvider(LLMSettings(_env_file=None))

        with pytest.raises(ConfigurationError):
            await provider.complete(TURNS)

    def test_mask_key(self) -> None:
        assert mask_key("sk-test-1234567890") == "sk-t****7890"
        assert mask_key("short") == "****"


class TestAnthropicProvider:
    """Tests for AnthropicProvider."""

    @pytest.mark.asyncio
    async def test_system_turns_lifted_out(self, anthropic_provider: AnthropicProvider) -> None:
        reply = await anthropic_provider.complete(TURNS)

        assert reply == "Rp80ribu, kak."
        kwargs = anthropic_provider._client.messages.create.await_args.kwargs
        assert kwargs["system"] == "Kamu adalah asisten."
        assert [m["role"] for m in kwargs["messages"]] == ["user", "assistant", "user"]
        assert kwargs["max_tokens"] == 1024

    @pytest.mark.asyncio
    async def test_empty_text(self, anthropic_provider: AnthropicProvider) -> None:
        anthropic_provider._client.messages.create.return_value = SimpleNamespace(content=[])

        with pytest.raises(CompletionProviderError):
            await anthropic_provider.complete(TURNS)

    @pytest.mark.asyncio
    async def test_timeout(self, anthropic_provider: AnthropicProvider) -> None:
        anthropic_provider._client.messages.create.side_effect = anthropic.APITimeoutError(
            request=REQUEST
        )

        with pytest.raises(CompletionTimeoutError):
            await anthropic_provider.complete(TURNS)

    @pytest.mark.asyncio
    async def test_without_key_raises_configuration_error(self, monkeypatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("CHAT_HANDOFF_LLM_API_KEY", raising=False)
        provider = AnthropicProvider(LLMSettings(_env_file=None, provider="anthropic"))

        with pytest.raises(ConfigurationError):
            await provider.complete(TURNS)


def test_provider_registry() -> None:
    assert PROVIDERS["openai"] is OpenAIProvider
    assert PROVIDERS["anthropic"] is AnthropicProvider


def _openai_over_http(handler) -> OpenAIProvider:
    provider = OpenAIProvider(_settings(base_url="https://api.example.test/v1"))
    provider._client = openai.AsyncOpenAI(
        api_key="sk-test-1234567890",
        base_url="https://api.example.test/v1",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return provider


class TestOpenAIMalformedResponses:
    """Malformed 200 responses from the completion API."""

    @pytest.mark.asyncio
    async def test_choice_without_message(self) -> None:
        provider = _openai_over_http(
            lambda request: httpx.Response(200, json={"choices": [{"index": 0}]})
        )

        with pytest.raises(CompletionProviderError):
            await provider.complete(TURNS)
        await provider.close()

    @pytest.mark.asyncio
    async def test_choices_not_a_list(self) -> None:
        provider = _openai_over_http(lambda request: httpx.Response(200, json={"choices": "oops"}))

        with pytest.raises(CompletionProviderError):
            await provider.complete(TURNS)
        await provider.close()

    @pytest.mark.asyncio
    async def test_body_not_json(self) -> None:
        provider = _openai_over_http(
            lambda request: httpx.Response(
                200,
                content=b"not json",
                headers={"content-type": "application/json"},
            )
        )

        with pytest.raises(CompletionProviderError):
            await provider.complete(TURNS)
        await provider.close()

    @pytest.mark.asyncio
    async def test_well_formed_body(self) -> None:
        body = {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": DEFAULT_MODEL,
            "choices": [
                {
                    "index": 0,
                    "finish_reason": "stop",
                    "message": {"role": "assistant", "content": "Rp80ribu, kak."},
                }
            ],
        }
        provider = _openai_over_http(lambda request: httpx.Response(200, json=body))

        assert await provider.complete(TURNS) == "Rp80ribu, kak."
        await provider.close()


class TestAnthropicMalformedResponses:
    """Malformed message payloads from the Anthropic API."""

    @pytest.mark.asyncio
    async def test_content_none(self, anthropic_provider: AnthropicProvider) -> None:
        anthropic_provider._client.messages.create.return_value = SimpleNamespace(content=None)

        with pytest.raises(CompletionProviderError):
            await anthropic_provider.complete(TURNS)

    @pytest.mark.asyncio
    async def test_text_block_without_text(self, anthropic_provider: AnthropicProvider) -> None:
        anthropic_provider._client.messages.create.return_value = SimpleNamespace(
            content=[SimpleNamespace(type="text")]
        )

        with pytest.raises(CompletionProviderError):
            await anthropic_provider.complete(TURNS)
