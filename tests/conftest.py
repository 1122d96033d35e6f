"""Shared test fixtures for chat_handoff.

This module provides pytest fixtures used across all tests.
"""

from unittest.mock import AsyncMock

import pytest
from mocks.mock_mongo import MockMongoClient

from chat_handoff.infra.mongo.repositories import MongoStorageRepository
from chat_handoff.models.conversation import ConversationDTO
from chat_handoff.models.events import InboundEvent
from chat_handoff.models.message import MessageDTO, SenderRole
from chat_handoff.services.context_assembler import ContextAssembler
from chat_handoff.services.dispatcher import ConversationDispatcher
from chat_handoff.services.locks import ConversationLocks
from chat_handoff.services.mode_controller import ModeController
from chat_handoff.utils.hashing import generate_conversation_id

SAMPLE_KNOWLEDGE = """Harga kentang Rp5ribu perbungkus.
Pesan diatas 10 harga 4rb."""


# Mock fixtures
@pytest.fixture
def mongo_client() -> MockMongoClient:
    """Create in-memory MongoDB client."""
    return MockMongoClient()


@pytest.fixture
def repository(mongo_client: MockMongoClient) -> MongoStorageRepository:
    """Create repository over the in-memory client."""
    return MongoStorageRepository(mongo_client)  # type: ignore[arg-type]


@pytest.fixture
def mock_storage() -> AsyncMock:
    """Create mock storage interface."""
    storage = AsyncMock()
    storage.get_conversation.return_value = None
    storage.recent_messages.return_value = []
    storage.get_messages.return_value = []
    storage.list_conversations.return_value = []
    storage.get_knowledge.return_value = SAMPLE_KNOWLEDGE
    return storage


@pytest.fixture
def mock_provider() -> AsyncMock:
    """Create mock completion provider."""
    provider = AsyncMock()
    provider.complete.return_value = "Harga kentang Rp5ribu perbungkus, kak."
    return provider


@pytest.fixture
def mock_transport() -> AsyncMock:
    """Create mock transport."""
    transport = AsyncMock()
    transport.send.return_value = None
    return transport


@pytest.fixture
def locks() -> ConversationLocks:
    return ConversationLocks()


@pytest.fixture
def assembler(
    repository: MongoStorageRepository,
    mock_provider: AsyncMock,
) -> ContextAssembler:
    return ContextAssembler(repository, mock_provider, history_limit=10)


@pytest.fixture
def dispatcher(
    repository: MongoStorageRepository,
    assembler: ContextAssembler,
    mock_transport: AsyncMock,
    locks: ConversationLocks,
) -> ConversationDispatcher:
    """Dispatcher over the in-memory repository with mock provider and transport."""
    return ConversationDispatcher(repository, assembler, mock_transport, locks)


@pytest.fixture
def mode_controller(
    repository: MongoStorageRepository,
    locks: ConversationLocks,
) -> ModeController:
    return ModeController(repository, locks)


# Sample data fixtures
@pytest.fixture
def sample_event() -> InboundEvent:
    """Create sample non-command InboundEvent."""
    return InboundEvent(
        chat_id=424242,
        username="budi",
        first_name="Budi",
        text="Berapa harga kentang per bungkus?",
    )


@pytest.fixture
def start_event() -> InboundEvent:
    """Create sample /start command event."""
    return InboundEvent(
        chat_id=424242,
        username="budi",
        first_name="Budi",
        text="/start",
        command="start",
    )


@pytest.fixture
def sample_conversation_dto() -> ConversationDTO:
    """Create sample ConversationDTO."""
    return ConversationDTO(
        id=generate_conversation_id(424242),
        external_chat_id=424242,
        username="budi",
        first_name="Budi",
        created_on=1704067200,
        updated_on=1704067200,
    )


@pytest.fixture
def sample_history(sample_conversation_dto: ConversationDTO) -> list[MessageDTO]:
    """Create a short transcript in ascending order."""
    conversation_id = sample_conversation_dto.id
    rows = [
        (SenderRole.USER, "Saya mau pesan 20 bungkus"),
        (SenderRole.BOT, "Baik kak, 20 bungkus jadi Rp80ribu."),
        (SenderRole.ADMIN, "Pesanan kakak sudah kami catat."),
        (SenderRole.USER, "Pesanan saya kemarin berapa?"),
    ]
    return [
        MessageDTO(
            message_id=f"msg-{i}",
            conversation_id=conversation_id,
            role=role,
            text=text,
            created_on=1704067200_000000000 + i,
        )
        for i, (role, text) in enumerate(rows)
    ]
