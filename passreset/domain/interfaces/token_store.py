"""Token store interface.

The token store is the single owner of recovery tokens. Implementations must
keep at most one live token per (identity, purpose) pair, honour the token
TTL on every read, and raise ``StoreUnavailableError`` when their backend
cannot be reached rather than reporting a token as invalid.
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Optional

from passreset.domain.value_objects.recovery_token import RecoveryToken, TokenPurpose


class ITokenStore(ABC):
    """Interface for recovery token issuance, verification and revocation."""

    @abstractmethod
    async def issue(self, identity: str, purpose: TokenPurpose, ttl: timedelta) -> RecoveryToken:
        """Generate and store a new token, superseding any live one for the pair.

        Args:
            identity: Normalized email the token is bound to.
            purpose: Short code or long deep-link key.
            ttl: Lifetime of the token.

        Returns:
            RecoveryToken: The issued token, including its secret value.

        Raises:
            StoreUnavailableError: If the backend cannot be reached.
        """
        raise NotImplementedError

    @abstractmethod
    async def verify(self, purpose: TokenPurpose, identity: str, candidate: str) -> bool:
        """Checks ``candidate`` against the live token for the pair.

        Returns:
            bool: True iff a non-expired token exists and equals ``candidate``.

        Raises:
            StoreUnavailableError: If the backend cannot be reached.
        """
        raise NotImplementedError

    @abstractmethod
    async def revoke(
        self, purpose: TokenPurpose, identity: str, expected: Optional[str] = None
    ) -> bool:
        """Removes the token for the pair. Revoking an absent token is a no-op.

        Args:
            purpose: Token purpose.
            identity: Normalized email.
            expected: When given, only remove the token if it still holds this
                value, so a newer token issued meanwhile survives.

        Returns:
            bool: True if a token was removed.
        """
        raise NotImplementedError

    @abstractmethod
    async def resolve_identity(self, key: str) -> Optional[str]:
        """Maps a live deep-link key back to its identity.

        Returns:
            Optional[str]: The identity, or None if the key is unknown or expired.
        """
        raise NotImplementedError
