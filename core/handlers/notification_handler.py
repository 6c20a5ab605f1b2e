"""
Handler for Notification events.

Keeps the most recent notifications in a bounded feed until a client drains
them, and writes each one to the log.
"""

import logging
import threading
from collections import deque
from typing import Callable

from core.events import Notification

logger = logging.getLogger(__name__)


class NotificationFeed:
    """Bounded FIFO of pending notifications. Oldest entries fall off first."""

    def __init__(self, max_size: int = 50):
        self._pending: deque[Notification] = deque(maxlen=max_size)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._pending)

    def append(self, notification: Notification) -> None:
        with self._lock:
            self._pending.append(notification)

    def drain(self) -> list[Notification]:
        """Return and clear every pending notification, oldest first."""
        with self._lock:
            notifications = list(self._pending)
            self._pending.clear()
        return notifications


def handle_notification(feed: NotificationFeed) -> Callable:
    """
    Factory that returns a Notification handler.

    Args:
        feed: NotificationFeed the handler appends to

    Returns:
        Handler callable that logs and stores the notification
    """

    def handler(event: Notification):
        if event.destructive:
            logger.warning(f"{event.title}: {event.description}")
        else:
            logger.info(f"{event.title}: {event.description}")
        feed.append(event)

    return handler
