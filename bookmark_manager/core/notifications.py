"""
User-facing notifications.

Transient notifications report outcomes (saved, archived, failed writes);
alerts report rejected operations the user must acknowledge.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    NOTIFICATION = "notification"
    ALERT = "alert"


@dataclass
class Notice:
    kind: NotificationKind
    message: str


@runtime_checkable
class Notifier(Protocol):
    """Sink for messages shown to the user."""

    def notify(self, message: str) -> None:
        ...

    def alert(self, message: str) -> None:
        ...


class LoggingNotifier:
    """Writes notifications to the log."""

    def notify(self, message: str) -> None:
        logger.info(message)

    def alert(self, message: str) -> None:
        logger.warning(message)


@dataclass
class CollectingNotifier:
    """Keeps notices in order so a caller can display them afterwards."""

    notices: List[Notice] = field(default_factory=list)

    def notify(self, message: str) -> None:
        self.notices.append(Notice(NotificationKind.NOTIFICATION, message))

    def alert(self, message: str) -> None:
        self.notices.append(Notice(NotificationKind.ALERT, message))

    @property
    def messages(self) -> List[str]:
        return [n.message for n in self.notices]

    @property
    def alerts(self) -> List[str]:
        return [n.message for n in self.notices if n.kind == NotificationKind.ALERT]

    def drain(self) -> List[Notice]:
        notices, self.notices = self.notices, []
        return notices
