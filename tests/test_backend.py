"""Tests for the SQLite bucket store."""

import pytest

from event_reporter.config import SYNCHRONOUS_MODES
from event_reporter.eventstore.backend import BucketDB
from event_reporter.exceptions import BackendOpenError, ReadOnlyTransactionError


@pytest.fixture
def db(store_path):
    with BucketDB(store_path) as bucket_db:
        yield bucket_db


class TestBucketDBSchema:
    def test_creates_tables(self, db):
        tables = db.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        ).fetchall()
        table_names = {r[0] for r in tables}
        assert {"schema_version", "buckets", "entries"} <= table_names

    def test_schema_version_is_1(self, db):
        row = db.conn.execute("SELECT version FROM schema_version").fetchone()
        assert row[0] == 1

    def test_reconnect_keeps_single_version_row(self, store_path):
        for _ in range(3):
            with BucketDB(store_path) as bucket_db:
                rows = bucket_db.conn.execute("SELECT version FROM schema_version").fetchall()
        assert len(rows) == 1

    def test_conn_requires_connect(self, store_path):
        with pytest.raises(RuntimeError):
            BucketDB(store_path).conn

    @pytest.mark.parametrize("mode", SYNCHRONOUS_MODES)
    def test_accepts_every_configurable_synchronous_mode(self, store_path, mode):
        with BucketDB(store_path, synchronous=mode) as bucket_db:
            level = bucket_db.conn.execute("PRAGMA synchronous").fetchone()[0]
        assert level == SYNCHRONOUS_MODES.index(mode)

    def test_rejects_unknown_synchronous_mode(self, store_path):
        with pytest.raises(ValueError):
            BucketDB(store_path, synchronous="SOMETIMES")


class TestBuckets:
    def test_missing_bucket_is_none(self, db):
        with db.view() as tx:
            assert tx.bucket("nope") is None

    def test_put_get(self, db):
        with db.update() as tx:
            tx.create_bucket_if_not_exists("b").put(b"k", b"v")
        with db.view() as tx:
            assert tx.bucket("b").get(b"k") == b"v"
            assert tx.bucket("b").get(b"other") is None

    def test_keys_in_byte_order(self, db):
        with db.update() as tx:
            bucket = tx.create_bucket_if_not_exists("b")
            for key in (b"\x02", b"\x00\xff", b"\x01", b"\x00\x01"):
                bucket.put(key, b"v")
        with db.view() as tx:
            assert tx.bucket("b").keys() == [b"\x00\x01", b"\x00\xff", b"\x01", b"\x02"]

    def test_buckets_are_isolated(self, db):
        with db.update() as tx:
            tx.create_bucket_if_not_exists("a").put(b"k", b"from-a")
            tx.create_bucket_if_not_exists("b").put(b"k", b"from-b")
        with db.view() as tx:
            assert tx.bucket("a").items() == [(b"k", b"from-a")]
            assert tx.bucket("b").items() == [(b"k", b"from-b")]

    def test_put_overwrites(self, db):
        with db.update() as tx:
            bucket = tx.create_bucket_if_not_exists("b")
            bucket.put(b"k", b"one")
            bucket.put(b"k", b"two")
        with db.view() as tx:
            assert tx.bucket("b").items() == [(b"k", b"two")]

    def test_delete_reports_presence(self, db):
        with db.update() as tx:
            bucket = tx.create_bucket_if_not_exists("b")
            bucket.put(b"k", b"v")
            assert bucket.delete(b"k") is True
            assert bucket.delete(b"k") is False
            assert len(bucket) == 0

    def test_delete_bucket_drops_records(self, db):
        with db.update() as tx:
            tx.create_bucket_if_not_exists("b").put(b"k", b"v")
        with db.update() as tx:
            assert tx.delete_bucket("b") is True
            assert tx.delete_bucket("b") is False
        with db.view() as tx:
            assert tx.bucket("b") is None
        count = db.conn.execute("SELECT COUNT(*) FROM entries").fetchone()[0]
        assert count == 0


class TestTransactions:
    def test_error_rolls_back(self, db):
        with db.update() as tx:
            tx.create_bucket_if_not_exists("b").put(b"keep", b"v")

        with pytest.raises(KeyError):
            with db.update() as tx:
                bucket = tx.bucket("b")
                bucket.put(b"lost", b"v")
                bucket.delete(b"keep")
                raise KeyError("boom")

        with db.view() as tx:
            assert tx.bucket("b").keys() == [b"keep"]

    def test_view_is_read_only(self, db):
        with db.update() as tx:
            tx.create_bucket_if_not_exists("b")
        with db.view() as tx:
            with pytest.raises(ReadOnlyTransactionError):
                tx.bucket("b").put(b"k", b"v")
            with pytest.raises(ReadOnlyTransactionError):
                tx.create_bucket_if_not_exists("c")

    def test_no_transaction_left_open(self, db):
        with db.update() as tx:
            tx.create_bucket_if_not_exists("b")
        with db.view() as tx:
            tx.bucket("b")
        assert not db.conn.in_transaction


class TestLocking:
    def test_second_handle_is_refused(self, store_path):
        with BucketDB(store_path):
            with pytest.raises(BackendOpenError):
                BucketDB(store_path, lock_timeout=0.1).connect()

    def test_lock_released_on_close(self, store_path):
        with BucketDB(store_path):
            pass
        with BucketDB(store_path, lock_timeout=0.1) as again:
            assert again.connected

    def test_not_a_database(self, tmp_path):
        path = tmp_path / "garbage.db"
        path.write_bytes(b"this is not a database file\n" * 100)
        with pytest.raises(BackendOpenError):
            BucketDB(path).connect()

    def test_directory_path(self, tmp_path):
        with pytest.raises(BackendOpenError):
            BucketDB(tmp_path).connect()
