"""
Domain events base classes.

Events describe allocations, revocations and pool changes after they have
been committed. Handlers use them for audit logging and follow-up work
such as topping up a pool.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Subclasses call ``super().__init__`` with the aggregate id and then set
    their own attributes; those attributes form the event payload.
    """

    event_id: UUID
    occurred_at: datetime
    aggregate_id: str
    event_type: str

    def __init_subclass__(cls, **kwargs):
        """Automatically set event_type for subclasses."""
        super().__init_subclass__(**kwargs)
        cls.event_type = cls.__name__

    def __post_init__(self):
        """Set default values if not provided."""
        object.__setattr__(self, "event_id", self.event_id or uuid4())
        object.__setattr__(self, "occurred_at", self.occurred_at or datetime.now(timezone.utc))

    def payload(self) -> Dict[str, Any]:
        """Return subclass attributes in a JSON friendly form."""
        base = {f.name for f in fields(DomainEvent)}
        data = {}
        for name, value in vars(self).items():
            if name in base or name.startswith("_"):
                continue
            if isinstance(value, (UUID, Enum)):
                value = str(value)
            elif isinstance(value, (list, tuple)):
                value = [str(item) for item in value]
            data[name] = value
        return data

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        return {
            "event_id": str(self.event_id),
            "occurred_at": self.occurred_at.isoformat(),
            "aggregate_id": self.aggregate_id,
            "event_type": self.event_type,
            "payload": self.payload(),
        }


class EventHandler(ABC):
    """Processes published domain events."""

    @abstractmethod
    async def handle(self, event: DomainEvent) -> None:
        """
        Handle a domain event.

        Args:
            event: The domain event to handle
        """


class EventBus(ABC):
    """Publish/subscribe port for domain events."""

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        """Deliver an event to every handler subscribed to its type."""

    @abstractmethod
    def subscribe(self, event_type: type, handler: EventHandler) -> None:
        """
        Subscribe to a domain event type.

        Args:
            event_type: The type of event to subscribe to
            handler: The handler to call when event is published
        """

    @abstractmethod
    def clear(self) -> None:
        """Drop every subscription."""
