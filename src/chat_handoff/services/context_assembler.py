"""AI context assembler for chat_handoff.

This module builds the completion prompt for a conversation from the
knowledge document and the recent transcript, and turns provider failures
into fixed fallback replies.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import assert_never

from chat_handoff.exceptions import (
    CompletionProviderError,
    CompletionTimeoutError,
    ConfigurationError,
    PersistenceError,
)
from chat_handoff.interfaces.completion import CompletionProviderInterface
from chat_handoff.interfaces.storage import StorageInterface
from chat_handoff.logging import get_logger
from chat_handoff.models.completion import CompletionRole, CompletionTurn
from chat_handoff.models.message import MessageDTO, SenderRole

__all__ = [
    "APOLOGY_REPLY",
    "DEFAULT_HISTORY_LIMIT",
    "NOT_CONFIGURED_REPLY",
    "SYSTEM_PROMPT_TEMPLATE",
    "ContextAssembler",
    "ReplyResult",
    "ReplySource",
    "completion_role",
]

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 10

APOLOGY_REPLY = "Maaf, saya sedang mengalami kendala. Bisa ulangi pertanyaannya?"
NOT_CONFIGURED_REPLY = "Maaf, sistem AI belum dikonfigurasi. Silakan hubungi admin."

SYSTEM_PROMPT_TEMPLATE = """Kamu adalah asisten customer service yang ramah dan membantu.
Jawab pertanyaan customer berdasarkan knowledge base berikut:

{knowledge}

Instruksi:
- Jawab dengan bahasa Indonesia yang sopan dan ramah
- Gunakan sapaan "kak" untuk customer
- PENTING: Perhatikan riwayat percakapan dengan baik. Jika customer bertanya tentang pesanan mereka sebelumnya, lihat di riwayat chat apa yang mereka pesan
- Jika pertanyaan tidak bisa dijawab dari knowledge base, beritahu dengan sopan bahwa kamu tidak memiliki informasi tersebut
- Jawab singkat dan jelas
- Jangan mengarang informasi yang tidak ada di knowledge base atau riwayat percakapan"""


class ReplySource(StrEnum):
    """Where a reply text came from."""

    ONBOARDING = "onboarding"
    GREETING = "greeting"
    COMPLETION = "completion"
    FALLBACK = "fallback"
    NOT_CONFIGURED = "not_configured"


@dataclass(frozen=True)
class ReplyResult:
    """Reply text plus how it was produced.

    Attributes:
        text: Text to send to the user
        source: COMPLETION, FALLBACK or NOT_CONFIGURED
        error: The provider error that forced a fallback, if any
    """

    text: str
    source: ReplySource
    error: Exception | None = None

    @property
    def degraded(self) -> bool:
        """Check if the reply is a fixed fallback instead of generated text."""
        return self.source is not ReplySource.COMPLETION


def completion_role(role: SenderRole) -> CompletionRole:
    """Map a transcript role to the two-role completion schema.

    Operator messages are presented as assistant turns so the model keeps
    speaking with one voice.
    """
    match role:
        case SenderRole.USER:
            return "user"
        case SenderRole.BOT | SenderRole.ADMIN:
            return "assistant"
        case _:
            assert_never(role)


class ContextAssembler:
    """Builds bounded prompts and queries the completion provider.

    Example:
        assembler = ContextAssembler(storage, provider, history_limit=10)
        result = await assembler.build_reply(text, knowledge, conversation_id)
    """

    def __init__(
        self,
        storage: StorageInterface,
        provider: CompletionProviderInterface,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        """Initialize assembler with dependencies.

        Args:
            storage: Storage interface for transcript reads
            provider: Completion provider
            history_limit: Maximum number of transcript messages to fetch
        """
        if history_limit <= 0:
            raise ValueError("history_limit must be positive")
        self._storage = storage
        self._provider = provider
        self._history_limit = history_limit

    @property
    def history_limit(self) -> int:
        return self._history_limit

    async def build_reply(
        self,
        query: str,
        knowledge: str,
        conversation_id: str,
    ) -> ReplyResult:
        """Generate a reply for the current user message.

        Never raises for provider problems: a missing credential yields
        NOT_CONFIGURED_REPLY and any other provider failure yields
        APOLOGY_REPLY.

        Args:
            query: Current user message text (already appended to the log)
            knowledge: Current knowledge document
            conversation_id: Conversation the query belongs to

        Returns:
            ReplyResult with the text to send
        """
        history = await self._load_history(conversation_id)
        turns = self.build_turns(query, knowledge, history)

        try:
            text = await self._call_provider(turns)
        except ConfigurationError as e:
            logger.error(
                "completion_not_configured",
                conversation_id=conversation_id,
                error=str(e),
            )
            return ReplyResult(NOT_CONFIGURED_REPLY, ReplySource.NOT_CONFIGURED, e)
        except CompletionProviderError as e:
            logger.error(
                "completion_failed",
                conversation_id=conversation_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return ReplyResult(APOLOGY_REPLY, ReplySource.FALLBACK, e)

        logger.info(
            "completion_succeeded",
            conversation_id=conversation_id,
            history_turns=len(turns) - 2,
            reply_length=len(text),
        )
        return ReplyResult(text, ReplySource.COMPLETION)

    def build_turns(
        self,
        query: str,
        knowledge: str,
        history: list[MessageDTO],
    ) -> list[CompletionTurn]:
        """Build the prompt: system block, prior history, then the query.

        If the newest history message is the user's `query` itself (it was
        appended just before this call), it is dropped so it appears only
        once, as the final turn.

        Args:
            query: Current user message text
            knowledge: Knowledge document embedded in the system block
            history: Recent messages in ascending order

        Returns:
            Ordered completion turns
        """
        prior = list(history)
        if prior and prior[-1].role is SenderRole.USER and prior[-1].text == query:
            prior.pop()

        turns = [
            CompletionTurn(
                role="system",
                content=SYSTEM_PROMPT_TEMPLATE.format(knowledge=knowledge),
            )
        ]
        turns.extend(
            CompletionTurn(role=completion_role(message.role), content=message.text)
            for message in prior
        )
        turns.append(CompletionTurn(role="user", content=query))
        return turns

    async def _call_provider(self, turns: list[CompletionTurn]) -> str:
        """Query the provider, reporting every failure as a provider error.

        Providers outside this package may raise builtins (TimeoutError,
        malformed-payload errors) or return something other than text.
        """
        try:
            text = await self._provider.complete(turns)
        except (ConfigurationError, CompletionProviderError):
            raise
        except TimeoutError as e:
            raise CompletionTimeoutError(f"Completion request timed out: {e}") from e
        except Exception as e:
            raise CompletionProviderError(
                f"Completion provider failed: {type(e).__name__}: {e}"
            ) from e

        if not isinstance(text, str) or not text:
            raise CompletionProviderError("Completion provider returned no text")
        return text

    async def _load_history(self, conversation_id: str) -> list[MessageDTO]:
        """Fetch recent messages; a failed read degrades to no history."""
        try:
            return await self._storage.recent_messages(conversation_id, self._history_limit)
        except PersistenceError as e:
            logger.warning(
                "history_unavailable",
                conversation_id=conversation_id,
                error=str(e),
            )
            return []
