"""
Event bus for store events.

Synchronous and in-process: the mirror publishes a Notification after each
mutation and subscribers run before publish() returns. A subscriber that
raises is logged and skipped; the mutation it reports on has already been
committed.
"""

import logging
from collections import defaultdict
from typing import Callable, DefaultDict, List, Type, Union

from core.events import PosEvent

logger = logging.getLogger(__name__)

Handler = Callable[[PosEvent], None]
EventKey = Union[str, Type[PosEvent]]


def _key(event_type: EventKey) -> str:
    return event_type if isinstance(event_type, str) else event_type.__name__


class EventBus:
    """
    Routes events to subscribers by event class name.

    Subscribers may register with either the class (Notification) or its
    name ('Notification'); both land in the same list.
    """

    def __init__(self):
        self._subscribers: DefaultDict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: EventKey, callback: Handler) -> None:
        self._subscribers[_key(event_type)].append(callback)

    def unsubscribe(self, event_type: EventKey, callback: Handler) -> bool:
        """Remove a subscriber. Returns False if it was not registered."""
        handlers = self._subscribers.get(_key(event_type), [])
        if callback not in handlers:
            return False
        handlers.remove(callback)
        return True

    def publish(self, event: PosEvent) -> int:
        """
        Deliver an event to its subscribers in registration order.

        Returns:
            Number of subscribers that handled the event without raising
        """
        name = type(event).__name__
        delivered = 0
        # Copy so a subscriber can unsubscribe itself mid-delivery
        for callback in list(self._subscribers.get(name, [])):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Subscriber %s raised on %s %s",
                    getattr(callback, "__name__", repr(callback)),
                    name,
                    event.event_id,
                )
                continue
            delivered += 1
        return delivered
