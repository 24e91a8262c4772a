"""
Base Domain Classes

Domain events represent something that happened to a stored record. Apps
subclass `DomainEvent` with the fields their handlers need and hand them to
the unit of work; the message bus delivers them after commit.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DomainEvent:
    """
    Base class for domain events

    `aggregate_id` is the primary key of the record the event is about.
    """
    aggregate_id: Optional[Any] = None
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict:
        """Convert event to dictionary for serialization"""
        return {
            'event_id': str(self.event_id),
            'event_type': self.__class__.__name__,
            'occurred_at': self.occurred_at.isoformat(),
            'aggregate_id': str(self.aggregate_id) if self.aggregate_id is not None else None,
        }
