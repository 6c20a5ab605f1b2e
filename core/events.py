"""
Domain events for the point-of-sale store.

Immutable event objects published on the in-process EventBus. The mirror
publishes a Notification after every mutation (or failed mutation); handlers
decide where it goes without the mirror knowing who's listening.

Event Categories:
- Notification: transient user-facing message (success, validation, failure)
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class PosEvent:
    """Base class for all store events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


@dataclass(frozen=True)
class Notification(PosEvent):
    """A transient message for the operator. destructive marks failures."""
    title: str = ""
    description: str = ""
    destructive: bool = False

    @classmethod
    def create(cls, title: str, description: str = "", destructive: bool = False) -> "Notification":
        return cls(title=title, description=description, destructive=destructive)

    @classmethod
    def failure(cls, description: str) -> "Notification":
        return cls(title="Error", description=description, destructive=True)

