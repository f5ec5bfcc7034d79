"""Event store exceptions: opening, decoding, lookups and migration."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from .base import EventReporterError


class EventStoreError(EventReporterError):
    """Base class for event store errors."""

    pass


class BackendOpenError(EventStoreError):
    """Raised when the store file cannot be opened or locked."""

    def __init__(self, path: Path, reason: str):
        super().__init__(
            f"Cannot open event store: {path}",
            details={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason


class ReadOnlyTransactionError(EventStoreError):
    """Raised when a write is attempted inside a read transaction."""

    def __init__(self, operation: str):
        super().__init__("Write in read-only transaction", details={"operation": operation})
        self.operation = operation


class InvalidKeyError(EventStoreError):
    """Raised when a key does not have the fixed key width."""

    def __init__(self, key: bytes, reason: str):
        super().__init__("Invalid event key", details={"reason": reason}, key=key)
        self.reason = reason


class MalformedRecordError(EventStoreError):
    """Raised when a stored payload is not a valid current-schema event."""

    def __init__(self, reason: str, key: Optional[bytes] = None):
        super().__init__("Malformed event record", details={"reason": reason}, key=key)
        self.reason = reason


class MalformedLegacyRecordError(EventStoreError):
    """Raised when a legacy payload does not match the legacy shape."""

    def __init__(self, reason: str, key: Optional[bytes] = None):
        super().__init__("Malformed legacy event record", details={"reason": reason}, key=key)
        self.reason = reason


class NotFoundError(EventStoreError):
    """Raised when no record exists at the requested key."""

    def __init__(self, key: bytes):
        super().__init__("Event not found", key=key)


class MigrationError(EventStoreError):
    """Raised when legacy records cannot be migrated.

    The enclosing transaction has been rolled back, so the legacy
    namespace is still intact and the migration is retried on the
    next open.
    """

    def __init__(self, errors: Sequence[MalformedLegacyRecordError]):
        super().__init__(
            f"Legacy migration aborted: {len(errors)} malformed record(s)",
            details={"keys": ",".join(e.key.hex() for e in errors if e.key is not None)},
        )
        self.errors = list(errors)
