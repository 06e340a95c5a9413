"""Per-request write locks — one mutating operation per request at a time.

Generation, rewrite, save and status transitions for the same request id
are serialized; different requests never wait on each other. Locks are
in-process asyncio locks, created on first use and dropped once nobody
holds or waits on them.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


class RequestLocks:
    """Registry of asyncio locks keyed by request id."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, request_id: str):
        """
        Serialize writers for one request.

        Usage:
            async with request_locks.hold(request_id):
                # read-modify-write safely
        """
        lock = self._locks.get(request_id)
        if lock is None:
            lock = self._locks[request_id] = asyncio.Lock()
        self._users[request_id] = self._users.get(request_id, 0) + 1

        if lock.locked():
            logger.debug("Waiting for request lock", extra={"request_id": request_id})
        try:
            async with lock:
                yield
        finally:
            self._users[request_id] -= 1
            if self._users[request_id] == 0:
                del self._users[request_id]
                del self._locks[request_id]

    def is_locked(self, request_id: str) -> bool:
        lock = self._locks.get(request_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


request_locks = RequestLocks()
