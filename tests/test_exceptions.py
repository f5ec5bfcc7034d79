"""Tests for exception rendering."""

from event_reporter.exceptions import (
    EventReporterError,
    InvalidKeyError,
    MalformedLegacyRecordError,
    MalformedRecordError,
    MigrationError,
    NotFoundError,
)


class TestEventReporterError:
    def test_message_only(self):
        assert str(EventReporterError("boom")) == "boom"

    def test_details_follow_message(self):
        err = EventReporterError("boom", details={"path": "/tmp/x", "reason": "locked"})
        assert str(err) == "boom (path=/tmp/x, reason=locked)"

    def test_key_is_kept_raw_and_shown_in_hex(self):
        err = NotFoundError(b"\x80\x00\x00\x00\x00\x00\x00\x01")
        assert err.key == b"\x80\x00\x00\x00\x00\x00\x00\x01"
        assert str(err) == "Event not found (key=8000000000000001)"

    def test_empty_key(self):
        err = InvalidKeyError(b"", "expected 8 bytes")
        assert err.details["key"] == "<empty>"

    def test_record_errors_without_key(self):
        err = MalformedRecordError("invalid JSON")
        assert err.key is None
        assert str(err) == "Malformed event record (reason=invalid JSON)"


class TestMigrationError:
    def test_lists_bad_keys(self):
        errors = [
            MalformedLegacyRecordError("invalid JSON", key=b"\x00" * 8),
            MalformedLegacyRecordError("missing description", key=b"\x01" * 8),
        ]
        err = MigrationError(errors)
        assert err.errors == errors
        assert err.details["keys"] == "0000000000000000,0101010101010101"
