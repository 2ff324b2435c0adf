"""Redis implementation of the recovery token store.

Key layout (``<p>`` is the configured prefix):

- ``<p>:token:short:<identity>`` -> numeric code
- ``<p>:token:long:identity:<identity>`` -> deep-link key
- ``<p>:token:long:key:<key>`` -> identity

Every entry carries a native Redis TTL, so expired tokens disappear without
a sweep. Operations touching more than one key run as Lua scripts and are
atomic with respect to each other.
"""

from contextlib import contextmanager
from datetime import timedelta
from typing import Iterator, Optional, Union

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from passreset.core.exceptions import StoreUnavailableError
from passreset.domain.interfaces.token_store import ITokenStore
from passreset.domain.value_objects.email import mask_email
from passreset.domain.value_objects.recovery_token import RecoveryToken, TokenPurpose, tokens_match

logger = structlog.get_logger(__name__)

# KEYS[1] identity key; ARGV: key prefix, new key, identity, ttl in ms.
# Drops the mapping of the superseded key before writing the new pair.
ISSUE_LONG_SCRIPT = """
local previous = redis.call('GET', KEYS[1])
if previous then
    redis.call('DEL', ARGV[1] .. previous)
end
redis.call('SET', KEYS[1], ARGV[2], 'PX', ARGV[4])
redis.call('SET', ARGV[1] .. ARGV[2], ARGV[3], 'PX', ARGV[4])
return previous
"""

# KEYS[1] identity key; ARGV: key prefix, expected key or ''.
REVOKE_LONG_SCRIPT = """
local current = redis.call('GET', KEYS[1])
if not current then
    return 0
end
if ARGV[2] ~= '' and current ~= ARGV[2] then
    return 0
end
redis.call('DEL', ARGV[1] .. current)
return redis.call('DEL', KEYS[1])
"""

# KEYS[1] short code key; ARGV[1] expected code.
COMPARE_AND_DELETE_SCRIPT = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


def _text(value: Union[str, bytes, None]) -> Optional[str]:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except RedisError as e:
        logger.error("Token store operation failed", operation=operation, error=str(e))
        raise StoreUnavailableError() from e


class RedisTokenStore(ITokenStore):
    """Token store backed by Redis with native TTL.

    Args:
        redis: Async Redis client.
        key_prefix: Namespace for all keys written by the store.
        code_length: Digits in short codes.
        key_bytes: Entropy of long deep-link keys.
    """

    def __init__(
        self,
        redis: Redis,
        key_prefix: str = "passreset",
        code_length: int = RecoveryToken.DEFAULT_CODE_LENGTH,
        key_bytes: int = RecoveryToken.DEFAULT_KEY_BYTES,
    ):
        self._redis = redis
        self._prefix = key_prefix
        self._code_length = code_length
        self._key_bytes = key_bytes
        self._issue_long = redis.register_script(ISSUE_LONG_SCRIPT)
        self._revoke_long = redis.register_script(REVOKE_LONG_SCRIPT)
        self._compare_and_delete = redis.register_script(COMPARE_AND_DELETE_SCRIPT)

    def _short_key(self, identity: str) -> str:
        return f"{self._prefix}:token:short:{identity}"

    def _long_identity_key(self, identity: str) -> str:
        return f"{self._prefix}:token:long:identity:{identity}"

    @property
    def _long_key_prefix(self) -> str:
        return f"{self._prefix}:token:long:key:"

    async def issue(self, identity: str, purpose: TokenPurpose, ttl: timedelta) -> RecoveryToken:
        token = RecoveryToken.issue(
            identity, purpose, ttl, code_length=self._code_length, key_bytes=self._key_bytes
        )
        ttl_ms = int(ttl.total_seconds() * 1000)

        with _store_errors("issue"):
            if purpose is TokenPurpose.SHORT:
                await self._redis.set(self._short_key(identity), token.value, px=ttl_ms)
                superseded = None
            else:
                superseded = await self._issue_long(
                    keys=[self._long_identity_key(identity)],
                    args=[self._long_key_prefix, token.value, identity, ttl_ms],
                )

        logger.debug(
            "Recovery token stored",
            purpose=purpose.value,
            email=mask_email(identity),
            superseded=superseded is not None,
        )
        return token

    async def verify(self, purpose: TokenPurpose, identity: str, candidate: str) -> bool:
        if not candidate:
            return False

        with _store_errors("verify"):
            if purpose is TokenPurpose.SHORT:
                stored = _text(await self._redis.get(self._short_key(identity)))
                return stored is not None and tokens_match(stored, candidate)

            owner = _text(await self._redis.get(f"{self._long_key_prefix}{candidate}"))
        return owner is not None and tokens_match(owner, identity)

    async def revoke(
        self, purpose: TokenPurpose, identity: str, expected: Optional[str] = None
    ) -> bool:
        with _store_errors("revoke"):
            if purpose is TokenPurpose.SHORT:
                key = self._short_key(identity)
                if expected is None:
                    removed = await self._redis.delete(key)
                else:
                    removed = await self._compare_and_delete(keys=[key], args=[expected])
            else:
                removed = await self._revoke_long(
                    keys=[self._long_identity_key(identity)],
                    args=[self._long_key_prefix, expected or ""],
                )

        logger.debug(
            "Recovery token revoke",
            purpose=purpose.value,
            email=mask_email(identity),
            removed=bool(removed),
        )
        return bool(removed)

    async def resolve_identity(self, key: str) -> Optional[str]:
        if not key:
            return None
        with _store_errors("resolve_identity"):
            return _text(await self._redis.get(f"{self._long_key_prefix}{key}"))
