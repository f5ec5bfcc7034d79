"""JSON codec for current-schema and legacy event payloads.

Current records are an envelope::

    {"Timestamp": "2018-06-01T10:00:00.000000Z",
     "Description": {"Type": "audioBait", "Details": "{\"fileId\":\"bird2\"}"}}

Legacy records are a bare object without a timestamp (it lives in the key)
and with structured details::

    {"description": {"type": "audioBait", "details": {"fileId": "bird2"}}}

Migration turns legacy details into their canonical JSON text, so after
migration ``Details`` is always an opaque string.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from ..exceptions import MalformedLegacyRecordError, MalformedRecordError
from .keys import as_utc
from .models import Event, EventDescription


def canonical_details(value: Any) -> str:
    """Canonical JSON text for a details payload (sorted keys, compact)."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def format_timestamp(ts: datetime) -> str:
    """RFC 3339 UTC timestamp with microseconds and a trailing ``Z``."""
    return as_utc(ts).isoformat(timespec="microseconds").replace("+00:00", "Z")


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 timestamp; a trailing ``Z`` means UTC."""
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def encode_event(event: Event) -> bytes:
    """Serialize ``event`` into the current-schema envelope."""
    details = event.description.details
    if not isinstance(details, str):
        details = canonical_details(details)
    envelope = {
        "Timestamp": format_timestamp(event.timestamp),
        "Description": {
            "Type": event.description.type,
            "Details": details,
        },
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def decode_event(data: bytes) -> Event:
    """Parse a current-schema envelope.

    Raises:
        MalformedRecordError: If ``data`` is not a valid current-schema record.
    """
    try:
        envelope = json.loads(data)
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedRecordError(f"invalid JSON: {e}") from e

    if not isinstance(envelope, dict):
        raise MalformedRecordError("record is not a JSON object")
    description = envelope.get("Description")
    if not isinstance(description, dict):
        raise MalformedRecordError("missing Description object")
    event_type = description.get("Type")
    if not isinstance(event_type, str):
        raise MalformedRecordError("Description.Type must be a string")
    if "Details" not in description:
        raise MalformedRecordError("missing Description.Details")
    details = description["Details"]
    if not isinstance(details, str):
        raise MalformedRecordError("Description.Details must be a string")
    raw_ts = envelope.get("Timestamp")
    if not isinstance(raw_ts, str):
        raise MalformedRecordError("Timestamp must be a string")
    try:
        timestamp = parse_timestamp(raw_ts)
    except ValueError as e:
        raise MalformedRecordError(f"invalid Timestamp {raw_ts!r}") from e

    return Event(timestamp=timestamp, description=EventDescription(type=event_type, details=details))


def decode_legacy(data: bytes, timestamp: datetime) -> Event:
    """Parse a legacy bare record into a current :class:`Event`.

    ``timestamp`` comes from the legacy record's key, since legacy payloads
    do not carry one.

    Raises:
        MalformedLegacyRecordError: If ``data`` does not have the legacy shape.
    """
    try:
        record = json.loads(data)
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedLegacyRecordError(f"invalid JSON: {e}") from e

    if not isinstance(record, dict):
        raise MalformedLegacyRecordError("record is not a JSON object")
    description = record.get("description")
    if not isinstance(description, dict):
        raise MalformedLegacyRecordError("missing description object")
    event_type = description.get("type")
    if not isinstance(event_type, str):
        raise MalformedLegacyRecordError("description.type must be a string")
    if "details" not in description:
        raise MalformedLegacyRecordError("missing description.details")

    return Event(
        timestamp=timestamp,
        description=EventDescription(
            type=event_type, details=canonical_details(description["details"])
        ),
    )
