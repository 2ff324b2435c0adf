"""In-memory send throttle.

One ``ThrottleEntry`` per identity, overwritten on every send. Elapsed
entries are evicted when read.
"""

import asyncio
import time
from datetime import timedelta
from typing import Callable, Dict, Optional

import structlog

from passreset.domain.interfaces.throttle import IThrottle
from passreset.domain.value_objects.email import mask_email
from passreset.domain.value_objects.throttle_entry import ThrottleEntry

logger = structlog.get_logger(__name__)


class InMemoryThrottle(IThrottle):
    """Per-identity cooldown kept in process memory.

    Args:
        window: Cooldown started by each send.
        clock: Monotonic seconds source, injectable for tests.
    """

    def __init__(
        self,
        window: timedelta = timedelta(seconds=60),
        clock: Callable[[], float] = time.monotonic,
    ):
        self._window = window.total_seconds()
        self._clock = clock
        self._entries: Dict[str, ThrottleEntry] = {}
        self._lock = asyncio.Lock()

    async def is_disabled(self, identity: str) -> Optional[int]:
        async with self._lock:
            return self._remaining(identity)

    async def mark_sent(self, identity: str) -> None:
        async with self._lock:
            self._start(identity)

    async def acquire(self, identity: str) -> Optional[int]:
        async with self._lock:
            remaining = self._remaining(identity)
            if remaining is None:
                self._start(identity)
        return remaining

    def _remaining(self, identity: str) -> Optional[int]:
        entry = self._entries.get(identity)
        if entry is None:
            return None
        remaining = entry.remaining_seconds(self._clock())
        if remaining is None:
            del self._entries[identity]
        return remaining

    def _start(self, identity: str) -> None:
        self._entries[identity] = ThrottleEntry(
            identity=identity, cooldown_until=self._clock() + self._window
        )
        logger.debug("Send cooldown started", email=mask_email(identity), window_seconds=self._window)
