"""
event-reporter - durable local queue for events awaiting upload.

Events are stored in a single SQLite file keyed by timestamp, so they
survive crashes and drain in chronological order. Legacy records written
by older producers are migrated into the current schema when the store
is opened.
"""

__version__ = "0.3.0"

from .config import StoreConfig, load_config
from .eventstore import Event, EventDescription, EventStore, Precision, now
from .exceptions import EventReporterError

__all__ = [
    "EventStore",  # Main entry point
    "Event",
    "EventDescription",
    "Precision",
    "now",
    "StoreConfig",
    "load_config",
    "EventReporterError",
]
