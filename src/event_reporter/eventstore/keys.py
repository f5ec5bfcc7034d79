"""Timestamp-derived record keys.

A key is the signed number of microseconds since the Unix epoch, truncated
to a :class:`Precision`, with the sign bit flipped and packed as 8 bytes
big-endian. Byte-wise comparison of two keys therefore matches
chronological order of their timestamps, pre-1970 instants included.
"""

from __future__ import annotations

import struct
from datetime import datetime, timedelta, timezone
from enum import Enum

from ..exceptions import InvalidKeyError

KEY_SIZE = 8

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MICROSECOND = timedelta(microseconds=1)
_SIGN_BIT = 1 << 63
_KEY_STRUCT = struct.Struct(">Q")


class Precision(Enum):
    """Key truncation precision, valued in microseconds per step."""

    SECOND = 1_000_000
    MILLISECOND = 1_000
    MICROSECOND = 1

    @classmethod
    def from_name(cls, name: str) -> "Precision":
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown precision: {name!r}") from None


def as_utc(ts: datetime) -> datetime:
    """Return ``ts`` as an aware UTC datetime. Naive values are taken as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _to_micros(ts: datetime) -> int:
    return (as_utc(ts) - _EPOCH) // _ONE_MICROSECOND


def truncate(ts: datetime, precision: Precision) -> datetime:
    """Round ``ts`` down to a multiple of ``precision``, returned in UTC."""
    micros = _to_micros(ts)
    micros -= micros % precision.value
    return _EPOCH + timedelta(microseconds=micros)


def now(precision: Precision = Precision.SECOND) -> datetime:
    """Current UTC time truncated to ``precision``."""
    return truncate(datetime.now(timezone.utc), precision)


def key_for(ts: datetime, precision: Precision) -> bytes:
    """Derive the record key for ``ts`` at ``precision``."""
    micros = _to_micros(truncate(ts, precision))
    return _KEY_STRUCT.pack(micros + _SIGN_BIT)


def timestamp_from_key(key: bytes) -> datetime:
    """Recover the (already truncated) timestamp a key was derived from."""
    if len(key) != KEY_SIZE:
        raise InvalidKeyError(key, f"expected {KEY_SIZE} bytes, got {len(key)}")
    (raw,) = _KEY_STRUCT.unpack(key)
    try:
        return _EPOCH + timedelta(microseconds=raw - _SIGN_BIT)
    except OverflowError:
        raise InvalidKeyError(key, "timestamp out of range") from None
