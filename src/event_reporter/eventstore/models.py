"""Data models for queued events."""

from dataclasses import dataclass
from datetime import datetime

from .keys import Precision, as_utc, truncate


@dataclass
class EventDescription:
    """What happened.

    ``details`` is an opaque, pre-serialized payload (JSON text). The store
    never interprets it; the delivery side forwards it to the API as-is.
    """

    type: str
    details: str = "{}"


@dataclass
class Event:
    """A durable record pending upload, keyed by its timestamp."""

    timestamp: datetime
    description: EventDescription

    def __post_init__(self) -> None:
        self.timestamp = as_utc(self.timestamp)

    def truncated(self, precision: Precision) -> "Event":
        """Copy of this event with its timestamp truncated to ``precision``."""
        return Event(
            timestamp=truncate(self.timestamp, precision),
            description=EventDescription(
                type=self.description.type, details=self.description.details
            ),
        )
