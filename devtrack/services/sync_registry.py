import asyncio
import logging
from typing import Awaitable, Callable, Dict, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SyncRegistry:
    """
    Per-user overlap control for sync passes.

    A non-forced trigger while a pass is in flight is a no-op (returns None).
    A forced trigger queues behind the in-flight pass, so two passes for the
    same user never interleave. Different users never block each other.
    """

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._pending: Dict[Hashable, int] = {}

    def is_syncing(self, user_id: Hashable) -> bool:
        return self._pending.get(user_id, 0) > 0

    def in_flight(self):
        return sorted(k for k, v in self._pending.items() if v > 0)

    async def run(
        self,
        user_id: Hashable,
        job: Callable[[], Awaitable[T]],
        force: bool = False,
    ) -> Optional[T]:
        # check-and-claim happens without an await in between
        if self.is_syncing(user_id) and not force:
            logger.info("Sync already in progress for user %s, skipping", user_id)
            return None

        self._pending[user_id] = self._pending.get(user_id, 0) + 1
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        try:
            async with lock:
                return await job()
        finally:
            self._pending[user_id] -= 1
            if self._pending[user_id] <= 0:
                del self._pending[user_id]
                if not lock.locked():
                    self._locks.pop(user_id, None)


sync_registry = SyncRegistry()
