"""Redis send throttle.

The cooldown of an identity is a single key ``<prefix>:throttle:<identity>``
with a native TTL equal to the window. ``SET NX PX`` makes check-and-mark
one atomic command, so concurrent requests cannot both pass.
"""

import math
import time
from datetime import timedelta
from typing import Optional

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from passreset.core.exceptions import StoreUnavailableError
from passreset.domain.interfaces.throttle import IThrottle
from passreset.domain.value_objects.email import mask_email

logger = structlog.get_logger(__name__)


class RedisThrottle(IThrottle):
    """Per-identity cooldown stored in Redis.

    Args:
        redis: Async Redis client.
        window: Cooldown started by each send.
        key_prefix: Namespace for throttle keys.
    """

    MAX_ACQUIRE_ATTEMPTS = 3

    def __init__(
        self,
        redis: Redis,
        window: timedelta = timedelta(seconds=60),
        key_prefix: str = "passreset",
    ):
        self._redis = redis
        self._window_ms = int(window.total_seconds() * 1000)
        self._prefix = key_prefix

    def _key(self, identity: str) -> str:
        return f"{self._prefix}:throttle:{identity}"

    def _cooldown_until(self) -> str:
        return str(time.time() + self._window_ms / 1000)

    async def is_disabled(self, identity: str) -> Optional[int]:
        try:
            return self._to_seconds(await self._redis.pttl(self._key(identity)))
        except RedisError as e:
            logger.error("Throttle check failed", email=mask_email(identity), error=str(e))
            raise StoreUnavailableError() from e

    async def mark_sent(self, identity: str) -> None:
        try:
            await self._redis.set(self._key(identity), self._cooldown_until(), px=self._window_ms)
        except RedisError as e:
            logger.error("Throttle update failed", email=mask_email(identity), error=str(e))
            raise StoreUnavailableError() from e

    async def acquire(self, identity: str) -> Optional[int]:
        key = self._key(identity)
        try:
            for _ in range(self.MAX_ACQUIRE_ATTEMPTS):
                if await self._redis.set(key, self._cooldown_until(), nx=True, px=self._window_ms):
                    logger.debug("Send cooldown started", email=mask_email(identity))
                    return None
                remaining = self._to_seconds(await self._redis.pttl(key))
                if remaining is not None:
                    return remaining
                # Key expired between SET NX and PTTL; try again.
        except RedisError as e:
            logger.error("Throttle acquire failed", email=mask_email(identity), error=str(e))
            raise StoreUnavailableError() from e

        logger.warning("Throttle acquire did not settle", email=mask_email(identity))
        return math.ceil(self._window_ms / 1000)

    @staticmethod
    def _to_seconds(pttl: int) -> Optional[int]:
        # PTTL is -2 for a missing key and -1 for a key without expiry.
        if pttl is None or pttl <= 0:
            return None
        return max(1, math.ceil(pttl / 1000))
