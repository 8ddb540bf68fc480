"""
InvocationGuard — at most one AI invocation per conversation.

Two ways in:

    async with guard.hold(space):        # interactive / scheduled: wait
        ...

    if guard.is_busy(space):             # heartbeat: skip, never queue
        return None
    async with guard.hold(space):
        ...

A key counts as busy while anyone holds or waits for its lock. On a
single event loop nothing can slip in between is_busy() and hold() for an
idle key, because acquiring a free lock does not yield.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator

logger = logging.getLogger(__name__)


class InvocationGuard:
    """Per-key mutual exclusion for AI invocations."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._pending: defaultdict[str, int] = defaultdict(int)

    def _lock(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def is_busy(self, key: str) -> bool:
        """True while an invocation for ``key`` holds or waits for the guard."""
        return self._pending.get(key, 0) > 0

    @property
    def busy_keys(self) -> list[str]:
        return [key for key, count in self._pending.items() if count > 0]

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Wait for the guard on ``key`` and hold it for the block."""
        lock = self._lock(key)
        if lock.locked():
            logger.debug(f"[{key}] waiting for in-flight invocation")
        self._pending[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._pending[key] -= 1
