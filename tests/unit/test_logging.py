"""Unit tests for chat_handoff logging processors."""

import pytest
import structlog

from chat_handoff.infra.llm.openai_provider import mask_key
from chat_handoff.logging import configure_logging, get_logger, redact_secrets


class TestRedactSecrets:
    """Tests for the redact_secrets processor."""

    @pytest.mark.parametrize("key", ["api_key", "token", "bot_token", "authorization", "password"])
    def test_credential_values_redacted(self, key: str) -> None:
        event = redact_secrets(None, "info", {"event": "provider_ready", key: "sk-live-abcdef123456"})

        assert event[key] == "[redacted]"
        assert event["event"] == "provider_ready"

    def test_masked_value_kept(self) -> None:
        masked = mask_key("sk-test-1234567890")

        event = redact_secrets(None, "info", {"event": "provider_ready", "api_key": masked})

        assert event["api_key"] == "sk-t****7890"

    def test_other_fields_and_none_untouched(self) -> None:
        event = redact_secrets(
            None,
            "info",
            {"event": "message_sent", "chat_id": 424242, "token": None, "text": "Halo kak"},
        )

        assert event == {"event": "message_sent", "chat_id": 424242, "token": None, "text": "Halo kak"}

    def test_non_string_secret_redacted(self) -> None:
        event = redact_secrets(None, "info", {"event": "x", "password": 123456})

        assert event["password"] == "[redacted]"


class TestConfiguredLogger:
    """Tests for the configured processor chain."""

    def test_chain_redacts_before_rendering(self) -> None:
        configure_logging(json_output=True, add_timestamp=False)

        processors = structlog.get_config()["processors"]
        assert redact_secrets in processors
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        configure_logging()

    def test_get_logger_is_bound(self) -> None:
        logger = get_logger("chat_handoff.tests")

        assert hasattr(logger, "info")
