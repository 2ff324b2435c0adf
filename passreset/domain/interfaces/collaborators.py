"""External collaborator interfaces consumed by the recovery flow.

The flow implements none of these. They are injected through its
constructor and stand for systems owned elsewhere: the user directory, the
notification service, the password hashing scheme, message catalogs, the
organization policy source and the password history.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from passreset.domain.entities.user import User
from passreset.domain.value_objects.password_policy import PasswordPolicy


class NotificationEvent(str, Enum):
    """Event codes understood by the notification gateway."""

    FORGOT_PASSWORD = "forgot-password"
    PASSWORD_CHANGED = "password-changed"


class IUserDirectory(ABC):
    """Interface for user lookup and persistence."""

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[User]:
        """Finds a user by normalized email.

        Raises:
            DirectoryUnavailableError: If the directory cannot be reached.
        """
        raise NotImplementedError

    @abstractmethod
    async def update(self, user: User) -> Optional[User]:
        """Persists ``user``.

        Returns:
            Optional[User]: The stored user, or None if the record no longer
            matches the expected state (e.g. it was deleted mid-flow).

        Raises:
            DirectoryUnavailableError: If the directory cannot be reached.
        """
        raise NotImplementedError


class INotificationGateway(ABC):
    """Interface for outbound mail and site messages."""

    @abstractmethod
    async def send(
        self,
        event_code: NotificationEvent,
        targets: Sequence[Dict[str, Any]],
        params: Dict[str, Any],
    ) -> None:
        """Dispatches a notification.

        Args:
            event_code: Which template/event to send.
            targets: Recipients, each a mapping with ``email`` and/or ``id``.
            params: Template variables.

        Raises:
            NotificationError: If dispatch fails.
        """
        raise NotImplementedError


class IPasswordEncoder(ABC):
    """Interface for the one-way password hashing scheme."""

    @abstractmethod
    def hash(self, plaintext: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def verify(self, plaintext: str, digest: str) -> bool:
        raise NotImplementedError


class ILocalizer(ABC):
    """Interface for rendering stable codes into human-readable messages."""

    @abstractmethod
    def message(self, code: str, language: Optional[str] = None) -> str:
        raise NotImplementedError


class IPasswordPolicyRepository(ABC):
    """Interface for organization password policy lookup."""

    @abstractmethod
    async def get_by_organization(self, organization_id: int) -> Optional[PasswordPolicy]:
        raise NotImplementedError


class IPasswordHistory(ABC):
    """Interface for previously used password digests."""

    @abstractmethod
    async def recent(self, user_id: int, count: int) -> List[str]:
        """Returns up to ``count`` most recent digests, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def record(self, user_id: int, digest: str) -> None:
        raise NotImplementedError
