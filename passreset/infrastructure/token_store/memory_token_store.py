"""In-memory implementation of the recovery token store.

Suitable for single-process deployments and tests. There is no background
eviction: every read checks expiry against the injected clock and drops
entries found stale.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Dict, Optional, Tuple

import structlog

from passreset.domain.interfaces.token_store import ITokenStore
from passreset.domain.value_objects.email import mask_email
from passreset.domain.value_objects.recovery_token import RecoveryToken, TokenPurpose, tokens_match

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class _StoredToken:
    value: str
    expires_at: float


class InMemoryTokenStore(ITokenStore):
    """Token store keeping tokens in process memory.

    Args:
        clock: Monotonic seconds source, injectable for tests.
        code_length: Digits in short codes.
        key_bytes: Entropy of long deep-link keys.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        code_length: int = RecoveryToken.DEFAULT_CODE_LENGTH,
        key_bytes: int = RecoveryToken.DEFAULT_KEY_BYTES,
    ):
        self._clock = clock
        self._code_length = code_length
        self._key_bytes = key_bytes
        self._tokens: Dict[Tuple[TokenPurpose, str], _StoredToken] = {}
        self._long_keys: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def issue(self, identity: str, purpose: TokenPurpose, ttl: timedelta) -> RecoveryToken:
        token = RecoveryToken.issue(
            identity, purpose, ttl, code_length=self._code_length, key_bytes=self._key_bytes
        )
        async with self._lock:
            previous = self._tokens.get((purpose, identity))
            if previous is not None and purpose is TokenPurpose.LONG:
                self._long_keys.pop(previous.value, None)

            self._tokens[(purpose, identity)] = _StoredToken(
                value=token.value, expires_at=self._clock() + ttl.total_seconds()
            )
            if purpose is TokenPurpose.LONG:
                self._long_keys[token.value] = identity

        logger.debug(
            "Recovery token stored",
            purpose=purpose.value,
            email=mask_email(identity),
            superseded=previous is not None,
        )
        return token

    async def verify(self, purpose: TokenPurpose, identity: str, candidate: str) -> bool:
        if not candidate:
            return False
        async with self._lock:
            stored = self._live(purpose, identity)
        return stored is not None and tokens_match(stored.value, candidate)

    async def revoke(
        self, purpose: TokenPurpose, identity: str, expected: Optional[str] = None
    ) -> bool:
        async with self._lock:
            stored = self._live(purpose, identity)
            if stored is None:
                return False
            if expected is not None and not tokens_match(stored.value, expected):
                return False
            self._drop(purpose, identity)
        return True

    async def resolve_identity(self, key: str) -> Optional[str]:
        if not key:
            return None
        async with self._lock:
            identity = self._long_keys.get(key)
            if identity is None:
                return None
            stored = self._live(TokenPurpose.LONG, identity)
            if stored is None or stored.value != key:
                return None
            return identity

    def _live(self, purpose: TokenPurpose, identity: str) -> Optional[_StoredToken]:
        """Returns the stored token if still live; stale entries are evicted."""
        stored = self._tokens.get((purpose, identity))
        if stored is None:
            return None
        if self._clock() >= stored.expires_at:
            self._drop(purpose, identity)
            return None
        return stored

    def _drop(self, purpose: TokenPurpose, identity: str) -> None:
        stored = self._tokens.pop((purpose, identity), None)
        if stored is not None and purpose is TokenPurpose.LONG:
            self._long_keys.pop(stored.value, None)
