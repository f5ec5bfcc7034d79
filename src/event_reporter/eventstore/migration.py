"""Migration of legacy event records into the current schema.

Legacy producers wrote bare ``{"description": ...}`` objects into the
``events`` bucket. The current schema keeps enveloped records in
``events_v2``. :func:`migrate` moves every legacy record across inside the
caller's write transaction and drops the legacy bucket; if any record fails
to decode, nothing is written and the transaction is expected to roll back.

The decision logic lives in :func:`plan_migration`, a pure function over
``(key, payload)`` pairs, so it can be exercised without a store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from ..exceptions import InvalidKeyError, MalformedLegacyRecordError, MigrationError
from ..logging_config import get_logger
from .backend import Transaction
from .codec import decode_legacy, encode_event
from .keys import timestamp_from_key

logger = get_logger(__name__)

LEGACY_BUCKET = "events"
CURRENT_BUCKET = "events_v2"


class MigrationState(Enum):
    NO_LEGACY_BUCKET = "no_legacy_bucket"
    LEGACY_BUCKET_EMPTY = "legacy_bucket_empty"
    LEGACY_BUCKET_HAS_RECORDS = "legacy_bucket_has_records"


@dataclass
class MigrationPlan:
    """Current-schema records to write, or the reasons they cannot be."""

    entries: list[tuple[bytes, bytes]] = field(default_factory=list)
    errors: list[MalformedLegacyRecordError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class MigrationReport:
    state: MigrationState
    migrated: int = 0
    overwritten: int = 0


def plan_migration(legacy_entries: Iterable[tuple[bytes, bytes]]) -> MigrationPlan:
    """Convert legacy ``(key, payload)`` pairs into current ``(key, payload)`` pairs.

    Keys are preserved so timestamps are not perturbed. Every entry is
    examined even after a failure, so the plan lists all bad records.
    """
    plan = MigrationPlan()
    for key, payload in legacy_entries:
        try:
            event = decode_legacy(payload, timestamp_from_key(key))
        except (InvalidKeyError, MalformedLegacyRecordError) as e:
            plan.errors.append(MalformedLegacyRecordError(e.reason, key=key))
            continue
        plan.entries.append((key, encode_event(event)))
    return plan


def detect_state(tx: Transaction) -> MigrationState:
    legacy = tx.bucket(LEGACY_BUCKET)
    if legacy is None:
        return MigrationState.NO_LEGACY_BUCKET
    if len(legacy) == 0:
        return MigrationState.LEGACY_BUCKET_EMPTY
    return MigrationState.LEGACY_BUCKET_HAS_RECORDS


def migrate(tx: Transaction) -> MigrationReport:
    """Move all legacy records into the current bucket within ``tx``.

    Performs no writes when there is no legacy bucket or it is empty.

    Raises:
        MigrationError: If any legacy record is malformed. Nothing has been
            written; the caller's transaction must be rolled back.
    """
    state = detect_state(tx)
    if state is not MigrationState.LEGACY_BUCKET_HAS_RECORDS:
        logger.debug("No legacy events to migrate (%s)", state.value)
        return MigrationReport(state=state)

    legacy = tx.bucket(LEGACY_BUCKET)
    assert legacy is not None
    plan = plan_migration(legacy.items())
    if not plan.ok:
        for err in plan.errors:
            logger.error("Cannot migrate legacy event: %s", err)
        raise MigrationError(plan.errors) from plan.errors[0]

    current = tx.create_bucket_if_not_exists(CURRENT_BUCKET)
    report = MigrationReport(state=state)
    for key, payload in plan.entries:
        if current.get(key) is not None:
            logger.warning("Legacy event %s replaces an existing event", key.hex())
            report.overwritten += 1
        current.put(key, payload)
        legacy.delete(key)
        report.migrated += 1

    tx.delete_bucket(LEGACY_BUCKET)
    logger.info(
        "Migrated %d legacy event(s) (%d overwritten)", report.migrated, report.overwritten
    )
    return report
