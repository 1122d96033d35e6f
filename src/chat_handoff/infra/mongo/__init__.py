"""MongoDB infrastructure for chat_handoff."""

from chat_handoff.infra.mongo.client import MongoClient
from chat_handoff.infra.mongo.repositories import MongoStorageRepository

__all__ = ["MongoClient", "MongoStorageRepository"]
