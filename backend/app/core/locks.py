import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import datetime, timezone


logger = logging.getLogger(__name__)


def lock_key(restaurant_id: str, sector_id: str, table_ids: Iterable[str], start: datetime) -> str:
    return (
        f"{restaurant_id}:{sector_id}:"
        f"{','.join(sorted(table_ids))}:"
        f"{start.astimezone(timezone.utc).strftime('%Y%m%d%H%M')}"
    )


class LockManager:
    """Per-key mutual exclusion; waiters are granted the key in arrival order."""

    def __init__(self) -> None:
        # key -> queue of waiters; presence of the key means it is held
        self._waiters: dict[str, deque[asyncio.Future[None]]] = {}

    def is_locked(self, key: str) -> bool:
        return key in self._waiters

    def queued(self, key: str) -> int:
        waiters = self._waiters.get(key)
        if waiters is None:
            return 0
        return sum(1 for waiter in waiters if not waiter.done())

    async def acquire(self, key: str) -> None:
        waiters = self._waiters.get(key)
        if waiters is None:
            self._waiters[key] = deque()
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        waiters.append(waiter)
        logger.debug("Lock %s busy, queued behind %d waiter(s)", key, len(waiters) - 1)
        try:
            await waiter
        except asyncio.CancelledError:
            # Granted but cancelled before resuming: pass ownership on.
            if not waiter.cancelled():
                self.release(key)
            raise

    def release(self, key: str) -> None:
        waiters = self._waiters.get(key)
        if waiters is None:
            raise RuntimeError(f"Lock {key} released while not held")

        while waiters:
            waiter = waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        del self._waiters[key]

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        await self.acquire(key)
        try:
            yield
        finally:
            self.release(key)
