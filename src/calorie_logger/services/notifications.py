"""In-process queue of user-facing notifications."""

from collections import deque
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Notification:
    """Message shown to the user after an action completes."""

    message: str
    severity: str = "info"


@dataclass
class NotificationQueue:
    """FIFO of pending notifications, drained by the client."""

    _items: deque[Notification] = field(default_factory=deque)

    def push(self, message: str, severity: str = "info") -> None:
        """Queue a notification."""
        self._items.append(Notification(message=message, severity=severity))

    def drain(self) -> list[Notification]:
        """Return and clear all pending notifications."""
        items = list(self._items)
        self._items.clear()
        return items
