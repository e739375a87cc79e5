"""
Notification Sinks and Navigation

The Data-Access Layer depends on two capabilities it does not own:
1. A Notifier that shows a message to the user
2. A navigate function that sends the whole client to another page

Both are injected so the presentation layer decides HOW, and tests can
substitute recorders.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from quantor.audit import ClientEventLogger
from quantor.models.notification import Notification, NotificationKind


Navigate = Callable[[str], None]


class Notifier(ABC):
    """Abstract sink for user-visible notifications."""

    @abstractmethod
    def notify(self, notification: Notification) -> None:
        """
        Show one notification.

        Must not raise: a failure to display is not a request failure.
        """
        pass


class LoggingNotifier(Notifier):
    """Notifier that only writes to the structured log (headless use)."""

    def __init__(self, logger: Optional[ClientEventLogger] = None):
        self._logger = logger or ClientEventLogger()

    def notify(self, notification: Notification) -> None:
        self._logger.notification(
            kind=notification.kind.value,
            title=notification.title,
            description=notification.description,
        )


class RecordingNotifier(Notifier):
    """
    Notifier that keeps every notification in memory.

    Useful for tests and for UIs that drain a queue on each render.
    """

    def __init__(self, forward_to: Optional[Notifier] = None):
        self.notifications: list[Notification] = []
        self._forward_to = forward_to

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)
        if self._forward_to is not None:
            self._forward_to.notify(notification)

    def of_kind(self, kind: NotificationKind) -> list[Notification]:
        return [n for n in self.notifications if n.kind == kind]

    def drain(self) -> list[Notification]:
        """Return and forget everything recorded so far."""
        drained, self.notifications = self.notifications, []
        return drained

    @property
    def last(self) -> Optional[Notification]:
        return self.notifications[-1] if self.notifications else None


class RecordingNavigator:
    """navigate() stand-in that remembers where the client was sent."""

    def __init__(self):
        self.visited: list[str] = []

    def __call__(self, target: str) -> None:
        self.visited.append(target)

    @property
    def current(self) -> Optional[str]:
        return self.visited[-1] if self.visited else None
