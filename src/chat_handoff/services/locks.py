"""Per-conversation mutual exclusion for chat_handoff.

Work on one conversation runs one task at a time; different conversations
never wait for each other.
"""

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager

__all__ = [
    "ConversationLocks",
]


class ConversationLocks:
    """Registry of asyncio locks keyed by conversation.

    Locks are created on first use and dropped once no task holds or
    waits for them, so the registry does not grow with every chat ever seen.

    Example:
        locks = ConversationLocks()
        async with locks.hold(conversation_id):
            ...
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        """Hold the lock for `key` for the duration of the block."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def is_locked(self, key: Hashable) -> bool:
        """Check if some task currently holds the lock for `key`."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
