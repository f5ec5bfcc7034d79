"""Durable queue of events pending upload.

Usage::

    with EventStore.open("/var/lib/event-reporter/events.db") as store:
        store.add(Event(timestamp=now(), description=EventDescription("audioBait")))
        for key in store.get_keys():
            payload = store.get(key)
            ...  # upload payload
            store.delete(key)

Opening a store migrates any legacy records (see :mod:`.migration`) before
it is returned, so callers never observe a half-migrated file.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..config import StoreConfig
from ..exceptions import MalformedRecordError, NotFoundError
from ..logging_config import get_logger
from .backend import BucketDB
from .codec import decode_event, encode_event
from .keys import Precision, key_for, timestamp_from_key
from .migration import CURRENT_BUCKET, LEGACY_BUCKET, MigrationReport, migrate
from .models import Event

logger = get_logger(__name__)


class EventStore:
    """An open event store file. Create with :meth:`open`."""

    def __init__(self, db: BucketDB, config: StoreConfig) -> None:
        self._db = db
        self.config = config
        self.key_precision = Precision.from_name(config.key_precision)
        self.legacy_key_precision = Precision.from_name(config.legacy_key_precision)
        self.migration_report: Optional[MigrationReport] = None

    @property
    def path(self) -> Path:
        return self._db.path

    @classmethod
    def open(
        cls,
        path: Union[str, Path, None] = None,
        config: Optional[StoreConfig] = None,
        run_migration: bool = True,
    ) -> "EventStore":
        """Open or create the store at ``path`` and migrate legacy records.

        Parameters
        ----------
        path:
            Store file. Defaults to ``config.db_path``.
        config:
            Store settings; defaults to ``StoreConfig()``.
        run_migration:
            If false, no records are moved on open and legacy records stay
            where they are, so they can be inspected with :meth:`all`.
            ``migration_report`` is then ``None``.

        Raises
        ------
        BackendOpenError
            If the file cannot be opened or another handle holds its lock.
        MigrationError
            If legacy records are malformed. The file is left unchanged and
            the handle is released.
        """
        config = config or StoreConfig()
        db = BucketDB(
            path if path is not None else config.db_path,
            lock_timeout=config.lock_timeout_seconds,
            synchronous=config.synchronous,
        )
        db.connect()
        store = cls(db, config)
        if not run_migration:
            logger.debug("Event store opened at %s without migration", db.path)
            return store
        try:
            with db.update() as tx:
                tx.create_bucket_if_not_exists(CURRENT_BUCKET)
                store.migration_report = migrate(tx)
        except Exception:
            db.close()
            raise
        logger.debug("Event store ready at %s", db.path)
        return store

    def close(self) -> None:
        """Release the file handle and its lock."""
        self._db.close()

    def __enter__(self) -> "EventStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── current namespace ─────────────────────────────────────────

    def add(self, event: Event) -> bytes:
        """Enqueue ``event``, replacing any event with the same key.

        The timestamp is truncated to the key precision before encoding, so
        the stored event always decodes to the timestamp its key names.
        Returns the key.
        """
        event = event.truncated(self.key_precision)
        key = key_for(event.timestamp, self.key_precision)
        payload = encode_event(event)
        with self._db.update() as tx:
            tx.create_bucket_if_not_exists(CURRENT_BUCKET).put(key, payload)
        logger.debug("Added %s event at %s", event.description.type, key.hex())
        return key

    def get(self, key: bytes) -> bytes:
        """Raw current-schema payload stored at ``key``.

        Raises:
            NotFoundError: If no event is stored at ``key``.
        """
        with self._db.view() as tx:
            bucket = tx.bucket(CURRENT_BUCKET)
            payload = bucket.get(key) if bucket is not None else None
        if payload is None:
            raise NotFoundError(key)
        return payload

    def get_event(self, key: bytes) -> Event:
        """Decoded event stored at ``key``.

        Raises:
            NotFoundError: If no event is stored at ``key``.
            MalformedRecordError: If the stored payload cannot be decoded.
        """
        payload = self.get(key)
        try:
            return decode_event(payload)
        except MalformedRecordError as e:
            raise MalformedRecordError(e.reason, key=key) from e

    def get_keys(self) -> list[bytes]:
        """All current keys, oldest first."""
        with self._db.view() as tx:
            bucket = tx.bucket(CURRENT_BUCKET)
            return bucket.keys() if bucket is not None else []

    def delete(self, key: bytes) -> None:
        """Remove the event at ``key``. Missing keys are ignored."""
        with self._db.update() as tx:
            bucket = tx.bucket(CURRENT_BUCKET)
            removed = bucket.delete(key) if bucket is not None else False
        logger.debug("Deleted %s (present=%s)", key.hex(), removed)

    # ── legacy namespace ──────────────────────────────────────────

    def queue(self, raw_payload: bytes, timestamp: datetime) -> bytes:
        """Write an already-encoded legacy payload into the legacy bucket.

        This is the old producer write path; the records are migrated the
        next time the store is opened. Returns the key.
        """
        key = key_for(timestamp, self.legacy_key_precision)
        with self._db.update() as tx:
            tx.create_bucket_if_not_exists(LEGACY_BUCKET).put(key, bytes(raw_payload))
        logger.debug("Queued legacy event at %s", key.hex())
        return key

    def all(self) -> list[datetime]:
        """Timestamps still waiting in the legacy bucket, oldest first.

        Empty once migration has run.
        """
        with self._db.view() as tx:
            bucket = tx.bucket(LEGACY_BUCKET)
            keys = bucket.keys() if bucket is not None else []
        return [timestamp_from_key(k) for k in keys]
