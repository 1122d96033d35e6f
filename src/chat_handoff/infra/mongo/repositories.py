"""MongoDB repositories for chat_handoff.

This module provides the repository implementation for MongoDB storage.
"""

import time
from typing import Any, Self

from pymongo.errors import DuplicateKeyError, PyMongoError

from chat_handoff.config import MongoSettings
from chat_handoff.exceptions import PersistenceError, ValidationError
from chat_handoff.infra.mongo.client import MongoClient
from chat_handoff.interfaces.storage import StorageInterface
from chat_handoff.logging import get_logger
from chat_handoff.models.conversation import ConversationDTO, ConversationSummaryDTO
from chat_handoff.models.knowledge import KnowledgeDTO
from chat_handoff.models.message import MessageDTO, SenderRole
from chat_handoff.utils.hashing import generate_conversation_id, generate_message_id

__all__ = [
    "MongoStorageRepository",
]

logger = get_logger(__name__)

# Older transcripts stored bot replies under the completion API's role name.
_LEGACY_ROLES = {"assistant": SenderRole.BOT}


class MongoStorageRepository(StorageInterface):
    """MongoDB implementation of StorageInterface.

    Provides the conversation registry, the append-only message log
    and the versioned knowledge document.
    """

    config_class = MongoSettings

    def __init__(self, client: MongoClient) -> None:
        """Initialize repository with MongoDB client.

        Args:
            client: Connected MongoClient instance
        """
        self._client = client
        self._owns_client = False
        self._last_created_on = 0

    @classmethod
    async def from_config(cls, config: MongoSettings) -> Self:
        """Factory method for ChatHandoff instantiation.

        Creates a MongoClient, connects, creates indexes, and returns repository.

        Args:
            config: MongoDB settings

        Returns:
            Connected MongoStorageRepository instance
        """
        client = MongoClient(config)
        await client.connect()
        await client.create_indexes()

        instance = cls(client)
        instance._owns_client = True
        return instance

    @classmethod
    async def from_dict(cls, config: dict[str, Any]) -> Self:
        """Factory method for custom config dict.

        Args:
            config: Dictionary with MongoDB settings

        Returns:
            Connected MongoStorageRepository instance
        """
        settings = MongoSettings(**config)
        return await cls.from_config(settings)

    async def close(self) -> None:
        """Close owned resources."""
        if self._owns_client and self._client:
            await self._client.disconnect()

    # Conversation registry
    async def upsert_conversation(
        self,
        external_chat_id: int,
        username: str = "",
        first_name: str = "",
    ) -> ConversationDTO:
        """Return the conversation for a chat, creating it on first contact."""
        now = int(time.time())
        conversation_id = generate_conversation_id(external_chat_id)
        query = {"external_chat_id": external_chat_id}
        defaults = {
            "id": conversation_id,
            "external_chat_id": external_chat_id,
            "username": username or "",
            "first_name": first_name or "",
            "is_auto_active": True,
            "created_on": now,
            "updated_on": now,
            "schema_version": 1,
        }

        try:
            try:
                result = await self._client.conversations.update_one(
                    query,
                    {"$setOnInsert": defaults},
                    upsert=True,
                )
            except DuplicateKeyError:
                # A concurrent upsert inserted the row first; read it below
                result = None
            doc = await self._client.conversations.find_one(query)
        except PyMongoError as e:
            raise PersistenceError(
                f"Failed to upsert conversation for chat {external_chat_id}: {e}"
            ) from e

        if doc is None:
            raise PersistenceError(f"Conversation for chat {external_chat_id} vanished after upsert")

        if result is not None and result.upserted_id is not None:
            logger.info(
                "conversation_created",
                conversation_id=conversation_id,
                external_chat_id=external_chat_id,
            )
        return self._doc_to_conversation(doc)

    async def get_conversation(self, conversation_id: str) -> ConversationDTO | None:
        """Get a conversation by ID."""
        try:
            doc = await self._client.conversations.find_one({"id": conversation_id})
        except PyMongoError as e:
            raise PersistenceError(f"Failed to read conversation {conversation_id}: {e}") from e
        return self._doc_to_conversation(doc) if doc else None

    async def list_conversations(self) -> list[ConversationSummaryDTO]:
        """List conversations with their latest message, most recent first."""
        try:
            cursor = self._client.conversations.find({}).sort("updated_on", -1)
            conversations = [self._doc_to_conversation(doc) async for doc in cursor]

            summaries = []
            for conversation in conversations:
                last = await self._client.messages.find_one(
                    {"conversation_id": conversation.id},
                    sort=[("created_on", -1)],
                )
                summaries.append(
                    ConversationSummaryDTO(
                        conversation=conversation,
                        last_message=last["text"] if last else "",
                        last_message_on=last["created_on"] if last else None,
                    )
                )
        except PyMongoError as e:
            raise PersistenceError(f"Failed to list conversations: {e}") from e
        return summaries

    async def set_auto_active(self, conversation_id: str, active: bool) -> ConversationDTO:
        """Set the auto-reply flag of an existing conversation."""
        try:
            result = await self._client.conversations.update_one(
                {"id": conversation_id},
                {"$set": {"is_auto_active": active, "updated_on": int(time.time())}},
            )
            if result.matched_count == 0:
                raise PersistenceError(f"Conversation {conversation_id} does not exist")
            doc = await self._client.conversations.find_one({"id": conversation_id})
        except PyMongoError as e:
            raise PersistenceError(
                f"Failed to update mode of conversation {conversation_id}: {e}"
            ) from e

        if doc is None:
            raise PersistenceError(f"Conversation {conversation_id} does not exist")
        return self._doc_to_conversation(doc)

    # Message log
    async def append_message(
        self,
        conversation_id: str,
        role: SenderRole | str,
        text: str,
    ) -> MessageDTO:
        """Append a message and refresh the owning conversation's activity.

        The message insert and the conversation touch form one logical write.
        If the touch fails, the inserted message is removed again.
        """
        sender_role = self._validate_role(role)
        if not text:
            raise ValidationError("Message text must not be empty")

        created_on = self._next_created_on()
        message = MessageDTO(
            message_id=generate_message_id(conversation_id, sender_role.value, text, created_on),
            conversation_id=conversation_id,
            role=sender_role,
            text=text,
            created_on=created_on,
        )

        try:
            await self._client.messages.insert_one(self._message_to_doc(message))
        except PyMongoError as e:
            raise PersistenceError(
                f"Failed to append message to conversation {conversation_id}: {e}"
            ) from e

        try:
            result = await self._client.conversations.update_one(
                {"id": conversation_id},
                {"$set": {"updated_on": int(time.time())}},
            )
        except PyMongoError as e:
            await self._remove_message(message.message_id)
            raise PersistenceError(
                f"Failed to touch conversation {conversation_id}: {e}"
            ) from e

        if result.matched_count == 0:
            await self._remove_message(message.message_id)
            raise PersistenceError(f"Conversation {conversation_id} does not exist")

        return message

    async def recent_messages(self, conversation_id: str, limit: int) -> list[MessageDTO]:
        """Get up to `limit` latest messages in ascending order."""
        if limit <= 0:
            return []
        try:
            cursor = (
                self._client.messages.find({"conversation_id": conversation_id})
                .sort("created_on", -1)
                .limit(limit)
            )
            newest_first = [self._doc_to_message(doc) async for doc in cursor]
        except PyMongoError as e:
            raise PersistenceError(
                f"Failed to read messages of conversation {conversation_id}: {e}"
            ) from e
        return list(reversed(newest_first))

    async def get_messages(self, conversation_id: str) -> list[MessageDTO]:
        """Get the full transcript, ordered by creation time."""
        try:
            cursor = self._client.messages.find({"conversation_id": conversation_id}).sort(
                "created_on", 1
            )
            return [self._doc_to_message(doc) async for doc in cursor]
        except PyMongoError as e:
            raise PersistenceError(
                f"Failed to read messages of conversation {conversation_id}: {e}"
            ) from e

    # Knowledge document
    async def get_knowledge(self) -> str:
        """Get the latest knowledge document version, or an empty string."""
        try:
            doc = await self._client.knowledge.find_one({}, sort=[("version", -1)])
        except PyMongoError as e:
            raise PersistenceError(f"Failed to read knowledge document: {e}") from e
        return doc["content"] if doc else ""

    async def save_knowledge(self, content: str) -> KnowledgeDTO:
        """Insert a new knowledge version; earlier versions are kept.

        Two concurrent saves may pick the same version number. The unique
        index rejects the second insert, which then retries once on top of
        the winner.
        """
        try:
            try:
                knowledge = await self._insert_knowledge_version(content)
            except DuplicateKeyError:
                logger.info("knowledge_version_conflict")
                knowledge = await self._insert_knowledge_version(content)
        except PyMongoError as e:
            raise PersistenceError(f"Failed to save knowledge document: {e}") from e

        logger.info(
            "knowledge_saved",
            version=knowledge.version,
            content_length=len(content),
        )
        return knowledge

    # Helpers
    async def _insert_knowledge_version(self, content: str) -> KnowledgeDTO:
        latest = await self._client.knowledge.find_one({}, sort=[("version", -1)])
        knowledge = KnowledgeDTO(
            version=(latest["version"] + 1) if latest else 1,
            content=content,
            created_on=int(time.time()),
        )
        await self._client.knowledge.insert_one(knowledge.model_dump())
        return knowledge

    def _next_created_on(self) -> int:
        """Nanosecond timestamp, strictly increasing within this process."""
        created_on = max(time.time_ns(), self._last_created_on + 1)
        self._last_created_on = created_on
        return created_on

    async def _remove_message(self, message_id: str) -> None:
        """Undo a message insert whose conversation touch failed."""
        try:
            await self._client.messages.delete_one({"message_id": message_id})
        except PyMongoError as e:
            logger.error("message_rollback_failed", message_id=message_id, error=str(e))

    @staticmethod
    def _validate_role(role: SenderRole | str) -> SenderRole:
        try:
            return SenderRole(role)
        except ValueError:
            raise ValidationError(f"Unknown sender role: {role!r}") from None

    # Document conversion helpers
    def _doc_to_conversation(self, doc: dict[str, Any]) -> ConversationDTO:
        return ConversationDTO(
            id=doc["id"],
            external_chat_id=doc["external_chat_id"],
            username=doc.get("username") or "",
            first_name=doc.get("first_name") or "",
            is_auto_active=doc.get("is_auto_active", True),
            created_on=doc["created_on"],
            updated_on=doc.get("updated_on", doc["created_on"]),
            schema_version=doc.get("schema_version", 1),
        )

    def _message_to_doc(self, message: MessageDTO) -> dict[str, Any]:
        doc = message.model_dump()
        doc["role"] = message.role.value
        return doc

    def _doc_to_message(self, doc: dict[str, Any]) -> MessageDTO:
        role = doc["role"]
        return MessageDTO(
            message_id=doc["message_id"],
            conversation_id=doc["conversation_id"],
            role=_LEGACY_ROLES.get(role, role),
            text=doc["text"],
            created_on=doc["created_on"],
            schema_version=doc.get("schema_version", 1),
        )
