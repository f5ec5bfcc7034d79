"""Exception hierarchy for event-reporter."""

from .base import EventReporterError
from .config import ConfigurationError, InvalidConfigError
from .store import (
    BackendOpenError,
    EventStoreError,
    InvalidKeyError,
    MalformedLegacyRecordError,
    MalformedRecordError,
    MigrationError,
    NotFoundError,
    ReadOnlyTransactionError,
)

__all__ = [
    "EventReporterError",
    "ConfigurationError",
    "InvalidConfigError",
    "EventStoreError",
    "BackendOpenError",
    "InvalidKeyError",
    "MalformedRecordError",
    "MalformedLegacyRecordError",
    "NotFoundError",
    "MigrationError",
    "ReadOnlyTransactionError",
]
