"""In-memory notification gateway.

Records every notice instead of delivering it. Used in development and in
tests to inspect what the recovery flow would have sent.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import structlog

from passreset.core.exceptions import NotificationError
from passreset.domain.interfaces.collaborators import INotificationGateway, NotificationEvent

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SentNotification:
    event_code: NotificationEvent
    targets: List[Dict[str, Any]]
    params: Dict[str, Any] = field(default_factory=dict)


class InMemoryNotificationGateway(INotificationGateway):
    """Notification gateway that keeps sent notices in memory.

    Setting ``fail_with`` makes every subsequent ``send`` raise it, which
    lets callers exercise delivery failures.
    """

    def __init__(self):
        self._sent: List[SentNotification] = []
        self.fail_with: Optional[Exception] = None

        logger.info("InMemoryNotificationGateway initialized")

    async def send(
        self,
        event_code: NotificationEvent,
        targets: Sequence[Dict[str, Any]],
        params: Dict[str, Any],
    ) -> None:
        if self.fail_with is not None:
            logger.warning("Notification dispatch failed", event_code=event_code.value)
            raise self.fail_with

        if not targets:
            raise NotificationError(f"No recipients for {event_code.value}")

        self._sent.append(
            SentNotification(
                event_code=event_code,
                targets=[dict(target) for target in targets],
                params=dict(params),
            )
        )
        logger.debug("Notification recorded", event_code=event_code.value, recipients=len(targets))

    @property
    def sent(self) -> List[SentNotification]:
        return list(self._sent)

    def sent_of(self, event_code: NotificationEvent) -> List[SentNotification]:
        return [notice for notice in self._sent if notice.event_code is event_code]

    def clear(self) -> None:
        self._sent.clear()
