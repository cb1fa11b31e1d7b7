"""User notification fan-out (success / error toasts)."""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Optional

from ddrive.models import Notification, NotificationLevel

logger = logging.getLogger(__name__)

NotificationListener = Callable[[Notification], None]


class Notifier:
    """Publishes notifications to subscribers and keeps a short history."""

    def __init__(self, history_size: int = 100) -> None:
        self._listeners: list[NotificationListener] = []
        self._history: deque[Notification] = deque(maxlen=history_size)

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    def success(self, message: str, *, group_key: Optional[str] = None) -> None:
        self.publish(Notification(NotificationLevel.SUCCESS, message, group_key))

    def error(self, message: str, *, group_key: Optional[str] = None) -> None:
        self.publish(Notification(NotificationLevel.ERROR, message, group_key))

    def publish(self, notification: Notification) -> None:
        self._history.append(notification)
        logger.debug("Notification [%s] %s", notification.level.value, notification.message)
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception:
                logger.exception("Notification listener failed")
