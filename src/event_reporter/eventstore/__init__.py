"""Durable, single-file event queue with legacy schema migration."""

from .backend import Bucket, BucketDB, Transaction
from .codec import canonical_details, decode_event, decode_legacy, encode_event
from .keys import KEY_SIZE, Precision, key_for, now, timestamp_from_key, truncate
from .migration import (
    CURRENT_BUCKET,
    LEGACY_BUCKET,
    MigrationPlan,
    MigrationReport,
    MigrationState,
    migrate,
    plan_migration,
)
from .models import Event, EventDescription
from .store import EventStore

__all__ = [
    "EventStore",
    "Event",
    "EventDescription",
    "encode_event",
    "decode_event",
    "decode_legacy",
    "canonical_details",
    "Precision",
    "KEY_SIZE",
    "key_for",
    "timestamp_from_key",
    "truncate",
    "now",
    "MigrationPlan",
    "MigrationReport",
    "MigrationState",
    "plan_migration",
    "migrate",
    "LEGACY_BUCKET",
    "CURRENT_BUCKET",
    "BucketDB",
    "Bucket",
    "Transaction",
]
