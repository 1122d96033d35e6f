"""Completion provider implementations for chat_handoff."""

from chat_handoff.infra.llm.anthropic_provider import AnthropicProvider
from chat_handoff.infra.llm.openai_provider import OpenAIProvider

__all__ = ["OpenAIProvider", "AnthropicProvider", "PROVIDERS"]

# LLMSettings.provider value -> implementation class
PROVIDERS = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}
