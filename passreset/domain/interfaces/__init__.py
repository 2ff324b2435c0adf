"""Domain interfaces.

Abstractions the recovery flow depends on. Concrete implementations live in
``passreset.infrastructure`` or are supplied by the embedding service.
"""

from .collaborators import (
    ILocalizer,
    INotificationGateway,
    IPasswordEncoder,
    IPasswordHistory,
    IPasswordPolicyRepository,
    IUserDirectory,
    NotificationEvent,
)
from .throttle import IThrottle
from .token_store import ITokenStore

__all__ = [
    "ILocalizer",
    "INotificationGateway",
    "IPasswordEncoder",
    "IPasswordHistory",
    "IPasswordPolicyRepository",
    "IThrottle",
    "ITokenStore",
    "IUserDirectory",
    "NotificationEvent",
]
