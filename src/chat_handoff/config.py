"""Configuration management for chat_handoff.

This module provides typed configuration classes using pydantic-settings.
Configuration is loaded from environment variables with optional .env file support.
The well-known variable names (OPENAI_API_KEY, TELEGRAM_BOT_TOKEN, ...) are
accepted next to the prefixed ones.
"""

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "MongoSettings",
    "LLMSettings",
    "TelegramSettings",
    "ChatHandoffConfig",
]


class MongoSettings(BaseSettings):
    """MongoDB connection settings."""

    model_config = SettingsConfigDict(
        env_prefix="CHAT_HANDOFF_MONGO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    uri: SecretStr = SecretStr("mongodb://localhost:27017")
    database: str = "chat_handoff"
    collection_prefix: str = ""


class LLMSettings(BaseSettings):
    """Completion provider settings.

    A missing api_key is not a startup error: every non-greeting query
    answers with the "not configured" reply instead.
    """

    model_config = SettingsConfigDict(
        env_prefix="CHAT_HANDOFF_LLM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    provider: str = "openai"  # "openai" or "anthropic"
    api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("CHAT_HANDOFF_LLM_API_KEY", "OPENAI_API_KEY"),
    )
    # None means the provider's public API root
    base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("CHAT_HANDOFF_LLM_BASE_URL", "OPENAI_API_BASE"),
    )
    # None means the provider's default chat model
    model: str | None = Field(
        default=None,
        validation_alias=AliasChoices("CHAT_HANDOFF_LLM_MODEL", "OPENAI_MODEL"),
    )
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_tokens: int = 1024


class TelegramSettings(BaseSettings):
    """Telegram bot settings."""

    model_config = SettingsConfigDict(
        env_prefix="CHAT_HANDOFF_TELEGRAM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    bot_token: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "CHAT_HANDOFF_TELEGRAM_BOT_TOKEN",
            "TELEGRAM_BOT_TOKEN",
            "TELE_BOT_TOKEN",
        ),
    )


class ChatHandoffConfig(BaseSettings):
    """Main configuration aggregating all settings.

    Example usage:
        config = ChatHandoffConfig()
        mongo_uri = config.mongo.uri.get_secret_value()
    """

    model_config = SettingsConfigDict(
        env_prefix="CHAT_HANDOFF_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Component settings (nested)
    mongo: MongoSettings = Field(default_factory=MongoSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)

    # Number of most recent transcript messages fed to the completion provider
    history_limit: int = Field(
        default=10,
        gt=0,
        validation_alias=AliasChoices(
            "CHAT_HANDOFF_HISTORY_LIMIT",
            "CONVERSATION_HISTORY_LIMIT",
        ),
    )

    # How long shutdown waits for in-flight dispatches
    shutdown_grace_seconds: float = 10.0

    @property
    def llm_configured(self) -> bool:
        """Check if a non-empty completion API key is present."""
        return bool(self.llm.api_key and self.llm.api_key.get_secret_value())
