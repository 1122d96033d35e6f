"""Mock MongoDB client for testing.

Implements the small slice of the Motor collection API the repository uses,
with real filtering, sorting and limits, plus per-method failure injection.
"""

from typing import Any
from unittest.mock import MagicMock


def _matches(document: dict[str, Any], filter_: dict[str, Any] | None) -> bool:
    return all(document.get(k) == v for k, v in (filter_ or {}).items())


def _sorted(
    documents: list[dict[str, Any]],
    sort: list[tuple[str, int]] | None,
) -> list[dict[str, Any]]:
    result = list(documents)
    for key, direction in reversed(sort or []):
        result.sort(key=lambda d: d.get(key), reverse=direction < 0)
    return result


class MockMongoCollection:
    """Mock MongoDB collection."""

    def __init__(self) -> None:
        self._documents: list[dict[str, Any]] = []
        # method name -> exception raised on next calls
        self.failures: dict[str, Exception] = {}
        self.calls: list[str] = []

    def _enter(self, method: str) -> None:
        self.calls.append(method)
        if method in self.failures:
            raise self.failures[method]

    @property
    def documents(self) -> list[dict[str, Any]]:
        return self._documents

    async def insert_one(self, document: dict[str, Any]) -> MagicMock:
        self._enter("insert_one")
        self._documents.append(dict(document))
        result = MagicMock()
        result.inserted_id = len(self._documents)
        return result

    async def update_one(
        self,
        filter_: dict[str, Any],
        update: dict[str, Any],
        upsert: bool = False,
    ) -> MagicMock:
        self._enter("update_one")
        result = MagicMock()
        result.upserted_id = None
        for document in self._documents:
            if _matches(document, filter_):
                document.update(update.get("$set", {}))
                result.matched_count = 1
                result.modified_count = 1
                return result

        result.matched_count = 0
        result.modified_count = 0
        if upsert:
            document = dict(filter_)
            document.update(update.get("$setOnInsert", {}))
            document.update(update.get("$set", {}))
            self._documents.append(document)
            result.upserted_id = len(self._documents)
        return result

    async def find_one(
        self,
        filter_: dict[str, Any] | None = None,
        sort: list[tuple[str, int]] | None = None,
    ) -> dict[str, Any] | None:
        self._enter("find_one")
        matching = [d for d in self._documents if _matches(d, filter_)]
        matching = _sorted(matching, sort)
        return dict(matching[0]) if matching else None

    async def delete_one(self, filter_: dict[str, Any]) -> MagicMock:
        self._enter("delete_one")
        result = MagicMock()
        result.deleted_count = 0
        for index, document in enumerate(self._documents):
            if _matches(document, filter_):
                del self._documents[index]
                result.deleted_count = 1
                break
        return result

    async def count_documents(self, filter_: dict[str, Any]) -> int:
        self._enter("count_documents")
        return sum(1 for d in self._documents if _matches(d, filter_))

    async def create_index(self, *args: Any, **kwargs: Any) -> str:
        return "index"

    def find(self, filter_: dict[str, Any] | None = None) -> "MockCursor":
        self._enter("find")
        docs = [dict(d) for d in self._documents if _matches(d, filter_)]
        return MockCursor(docs)


class MockCursor:
    """Mock MongoDB cursor."""

    def __init__(self, documents: list[dict[str, Any]]) -> None:
        self._documents = documents

    def sort(self, key: str, direction: int = 1) -> "MockCursor":
        self._documents = _sorted(self._documents, [(key, direction)])
        return self

    def limit(self, n: int) -> "MockCursor":
        self._documents = self._documents[:n]
        return self

    def __aiter__(self) -> "MockCursor":
        self._index = 0
        return self

    async def __anext__(self) -> dict[str, Any]:
        if self._index >= len(self._documents):
            raise StopAsyncIteration
        doc = self._documents[self._index]
        self._index += 1
        return doc


class MockMongoClient:
    """Mock MongoDB client for testing."""

    def __init__(self) -> None:
        self._collections: dict[str, MockMongoCollection] = {}

    def __getitem__(self, name: str) -> MockMongoCollection:
        if name not in self._collections:
            self._collections[name] = MockMongoCollection()
        return self._collections[name]

    @property
    def conversations(self) -> MockMongoCollection:
        return self["conversations"]

    @property
    def messages(self) -> MockMongoCollection:
        return self["messages"]

    @property
    def knowledge(self) -> MockMongoCollection:
        return self["knowledge_base"]

    async def connect(self) -> None:
        pass

    async def disconnect(self) -> None:
        pass

    async def create_indexes(self) -> None:
        pass
