"""Single-file, transactional, ordered key-value store with named buckets.

Backed by SQLite. Buckets are rows in ``buckets``; their records live in a
``WITHOUT ROWID`` table keyed by ``(bucket, key)``, so iteration in key
order is a B-tree walk and BLOB keys compare byte-wise (memcmp).

The connection runs in ``locking_mode=EXCLUSIVE`` and takes the database
lock when it connects, so exactly one :class:`BucketDB` holds a given file
until it is closed.

Usage::

    with BucketDB("/path/to/events.db") as db:
        with db.update() as tx:
            tx.create_bucket_if_not_exists("events").put(b"k", b"v")
        with db.view() as tx:
            print(tx.bucket("events").get(b"k"))
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from ..config import SYNCHRONOUS_MODES
from ..exceptions import BackendOpenError, ReadOnlyTransactionError
from ..logging_config import get_logger

logger = get_logger(__name__)

# Current file format version (bump when tables change).
_SCHEMA_VERSION = 1


class Bucket:
    """A named partition of the store, bound to one transaction."""

    def __init__(self, tx: "Transaction", name: str) -> None:
        self._tx = tx
        self.name = name

    def get(self, key: bytes) -> Optional[bytes]:
        """Return the value at ``key``, or ``None`` if absent."""
        row = self._tx.cursor.execute(
            "SELECT value FROM entries WHERE bucket = ? AND key = ?",
            (self.name, key),
        ).fetchone()
        if row is None:
            return None
        return bytes(row[0])

    def put(self, key: bytes, value: bytes) -> None:
        """Store ``value`` at ``key``, replacing any previous value."""
        self._tx.require_writable("put")
        self._tx.cursor.execute(
            "INSERT OR REPLACE INTO entries (bucket, key, value) VALUES (?, ?, ?)",
            (self.name, key, value),
        )

    def delete(self, key: bytes) -> bool:
        """Remove ``key``. Returns whether a record was removed."""
        self._tx.require_writable("delete")
        cur = self._tx.cursor.execute(
            "DELETE FROM entries WHERE bucket = ? AND key = ?",
            (self.name, key),
        )
        return cur.rowcount > 0

    def keys(self) -> list[bytes]:
        """All keys in ascending byte order."""
        rows = self._tx.cursor.execute(
            "SELECT key FROM entries WHERE bucket = ? ORDER BY key",
            (self.name,),
        ).fetchall()
        return [bytes(r[0]) for r in rows]

    def items(self) -> list[tuple[bytes, bytes]]:
        """All ``(key, value)`` pairs in ascending key order."""
        rows = self._tx.cursor.execute(
            "SELECT key, value FROM entries WHERE bucket = ? ORDER BY key",
            (self.name,),
        ).fetchall()
        return [(bytes(k), bytes(v)) for k, v in rows]

    def __len__(self) -> int:
        row = self._tx.cursor.execute(
            "SELECT COUNT(*) FROM entries WHERE bucket = ?", (self.name,)
        ).fetchone()
        return int(row[0])

    def __repr__(self) -> str:
        return f"Bucket({self.name!r})"


class Transaction:
    """An open SQLite transaction. Obtain via :meth:`BucketDB.update` or :meth:`BucketDB.view`."""

    def __init__(self, cursor: sqlite3.Cursor, writable: bool) -> None:
        self.cursor = cursor
        self.writable = writable

    def require_writable(self, operation: str) -> None:
        if not self.writable:
            raise ReadOnlyTransactionError(operation)

    def bucket(self, name: str) -> Optional[Bucket]:
        """Return the bucket called ``name``, or ``None`` if it does not exist."""
        row = self.cursor.execute("SELECT 1 FROM buckets WHERE name = ?", (name,)).fetchone()
        if row is None:
            return None
        return Bucket(self, name)

    def create_bucket_if_not_exists(self, name: str) -> Bucket:
        self.require_writable("create_bucket")
        self.cursor.execute("INSERT OR IGNORE INTO buckets (name) VALUES (?)", (name,))
        return Bucket(self, name)

    def delete_bucket(self, name: str) -> bool:
        """Drop a bucket and all of its records. Returns whether it existed."""
        self.require_writable("delete_bucket")
        self.cursor.execute("DELETE FROM entries WHERE bucket = ?", (name,))
        cur = self.cursor.execute("DELETE FROM buckets WHERE name = ?", (name,))
        return cur.rowcount > 0


class BucketDB:
    """Owns the SQLite connection for one store file."""

    def __init__(
        self,
        path: Union[str, Path],
        lock_timeout: float = 5.0,
        synchronous: str = "FULL",
    ) -> None:
        if synchronous not in SYNCHRONOUS_MODES:
            raise ValueError(f"Unknown synchronous mode: {synchronous!r}")
        self.path: Path = Path(path)
        self.lock_timeout = lock_timeout
        self.synchronous = synchronous
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Return the active connection. Raises if not connected."""
        if self._conn is None:
            raise RuntimeError("BucketDB is not connected. Use as context manager or call connect().")
        return self._conn

    @property
    def connected(self) -> bool:
        return self._conn is not None

    # ── lifecycle ─────────────────────────────────────────────────

    def connect(self) -> sqlite3.Connection:
        """Open (or create) the file, take the exclusive lock and create tables.

        Raises:
            BackendOpenError: If the file cannot be opened or is locked.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Transactions are managed explicitly, hence isolation_level=None.
            conn = sqlite3.connect(
                str(self.path), timeout=self.lock_timeout, isolation_level=None
            )
        except (OSError, sqlite3.Error) as e:
            raise BackendOpenError(self.path, str(e)) from e

        try:
            conn.execute("PRAGMA locking_mode=EXCLUSIVE")
            conn.execute(f"PRAGMA synchronous={self.synchronous}")
            conn.execute("BEGIN EXCLUSIVE")
            try:
                self._create_tables(conn)
                conn.execute("COMMIT")
            except Exception:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
        except sqlite3.Error as e:
            conn.close()
            raise BackendOpenError(self.path, str(e)) from e

        self._conn = conn
        logger.debug("Store file opened at %s", self.path)
        return conn

    def close(self) -> None:
        """Close the connection (releasing the file lock) if open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug("Store file closed at %s", self.path)

    def __enter__(self) -> "BucketDB":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @staticmethod
    def _create_tables(conn: sqlite3.Connection) -> None:
        """Idempotently create the file's tables."""
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER NOT NULL
            )
            """
        )
        row = conn.execute("SELECT version FROM schema_version").fetchone()
        if row is None:
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (_SCHEMA_VERSION,),
            )
        elif row[0] > _SCHEMA_VERSION:
            raise sqlite3.DatabaseError(
                f"store file format {row[0]} is newer than supported ({_SCHEMA_VERSION})"
            )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS buckets (
                name TEXT PRIMARY KEY
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS entries (
                bucket TEXT NOT NULL,
                key    BLOB NOT NULL,
                value  BLOB NOT NULL,
                PRIMARY KEY (bucket, key)
            ) WITHOUT ROWID
            """
        )

    # ── transactions ──────────────────────────────────────────────

    @contextmanager
    def update(self) -> Iterator[Transaction]:
        """Read/write transaction: commits on success, rolls back and re-raises on error."""
        conn = self.conn
        cur = conn.cursor()
        cur.execute("BEGIN IMMEDIATE")
        try:
            yield Transaction(cur, writable=True)
            conn.execute("COMMIT")
        except BaseException:
            # SQLite may already have rolled back (e.g. SQLITE_FULL)
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            logger.debug("Transaction rolled back")
            raise
        finally:
            cur.close()

    @contextmanager
    def view(self) -> Iterator[Transaction]:
        """Read-only transaction over a consistent snapshot."""
        conn = self.conn
        cur = conn.cursor()
        cur.execute("BEGIN DEFERRED")
        try:
            yield Transaction(cur, writable=False)
        finally:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            cur.close()
