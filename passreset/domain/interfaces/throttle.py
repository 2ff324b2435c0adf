"""Send throttle interface.

One cooldown clock per identity, shared by short codes and long links, caps
how often recovery messages can be sent to a mailbox.
"""

from abc import ABC, abstractmethod
from typing import Optional


class IThrottle(ABC):
    """Interface for the per-identity issuance cooldown."""

    @abstractmethod
    async def is_disabled(self, identity: str) -> Optional[int]:
        """Returns the remaining cooldown in whole seconds, or None if inactive."""
        raise NotImplementedError

    @abstractmethod
    async def mark_sent(self, identity: str) -> None:
        """Starts (or restarts) the cooldown for ``identity``."""
        raise NotImplementedError

    @abstractmethod
    async def acquire(self, identity: str) -> Optional[int]:
        """Atomically checks and starts the cooldown.

        Two concurrent callers for the same identity can never both succeed.

        Returns:
            Optional[int]: None if the caller started the cooldown, otherwise
            the remaining seconds of the cooldown already in effect.
        """
        raise NotImplementedError
