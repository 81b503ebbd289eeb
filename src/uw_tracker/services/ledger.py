"""Status-count ledger: per-underwriter status and assigned-file counter.

Ledger values are immutable. Every mutation returns a new ``Ledger`` and
leaves the input untouched, which lets callers apply a change optimistically
and still hold the pre-mutation value.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from uw_tracker.core.clock import Stamp
from uw_tracker.core.errors import UnknownWorker
from uw_tracker.services.authorization import require_counter_edit, require_status_edit

COUNTER_MIN = 0
COUNTER_MAX = 99


class Status(str, enum.Enum):
    GREEN = "green"
    NEUTRAL = "neutral"
    RED = "red"


class Role(str, enum.Enum):
    UNDERWRITER = "underwriter"
    ASSIGNER = "assigner"


def normalize_id(worker_id: str) -> str:
    """Return the canonical form of a worker id (email)."""
    return (worker_id or "").strip().lower()


@dataclass(frozen=True)
class Actor:
    """Someone acting on the board, with a role fixed for the session."""

    id: str
    role: Role

    @property
    def is_assigner(self) -> bool:
        return self.role == Role.ASSIGNER


@dataclass(frozen=True)
class WorkerRecord:
    """Board state for one underwriter."""

    id: str
    display_name: str
    status: Status = Status.NEUTRAL
    counter: int = 0
    status_changed_at: Stamp | None = None

    def __post_init__(self) -> None:
        if (self.status == Status.NEUTRAL) != (self.status_changed_at is None):
            raise ValueError(
                f"status_changed_at must be set iff status is not neutral ({self.id})"
            )
        if not COUNTER_MIN <= self.counter <= COUNTER_MAX:
            raise ValueError(f"counter out of range for {self.id}: {self.counter}")

    @classmethod
    def fresh(cls, worker_id: str, display_name: str) -> WorkerRecord:
        """Return a newly registered record: neutral, zero files, no stamp."""
        return cls(id=normalize_id(worker_id), display_name=display_name)

    def cleared(self) -> WorkerRecord:
        return replace(self, status=Status.NEUTRAL, counter=0, status_changed_at=None)

    def store_fields(self) -> dict[str, object]:
        """Return the persisted column values for this record."""
        stamp = self.status_changed_at
        return {
            "status": self.status.value,
            "count": self.counter,
            "status_time": stamp.display if stamp else None,
            "status_timestamp": stamp.sortable if stamp else None,
        }


@dataclass(frozen=True)
class Ledger:
    """All worker records plus the civil date of the last daily reset."""

    records: Mapping[str, WorkerRecord] = field(default_factory=dict)
    last_reset_epoch: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "records", MappingProxyType(dict(self.records)))

    @classmethod
    def from_records(
        cls, records: Iterable[WorkerRecord], last_reset_epoch: str | None = None
    ) -> Ledger:
        return cls({record.id: record for record in records}, last_reset_epoch)

    def __contains__(self, worker_id: object) -> bool:
        return isinstance(worker_id, str) and normalize_id(worker_id) in self.records

    def __len__(self) -> int:
        return len(self.records)

    def get(self, worker_id: str) -> WorkerRecord:
        try:
            return self.records[normalize_id(worker_id)]
        except KeyError:
            raise UnknownWorker(f"Unknown underwriter: {worker_id}") from None

    def with_record(self, record: WorkerRecord) -> Ledger:
        records = dict(self.records)
        records[record.id] = record
        return Ledger(records, self.last_reset_epoch)

    def without(self, worker_id: str) -> Ledger:
        records = dict(self.records)
        records.pop(normalize_id(worker_id), None)
        return Ledger(records, self.last_reset_epoch)


def clamp_counter(value: int) -> int:
    return max(COUNTER_MIN, min(COUNTER_MAX, value))


def set_status(ledger: Ledger, target_id: str, status: Status, stamp: Stamp | None) -> Ledger:
    """Set a record's status without any authorization check.

    The stamp is kept only for non-neutral statuses.
    """
    record = ledger.get(target_id)
    changed_at = stamp if status != Status.NEUTRAL else None
    if status != Status.NEUTRAL and changed_at is None:
        raise ValueError("a non-neutral status requires a stamp")
    return ledger.with_record(replace(record, status=status, status_changed_at=changed_at))


def resolve_toggle(current: Status, requested: Status) -> Status:
    """Clicking the active status clears it; anything else sets it directly."""
    return Status.NEUTRAL if current == requested else requested


def toggle_status(
    ledger: Ledger,
    actor: Actor,
    target_id: str,
    requested: Status,
    stamp: Stamp,
) -> Ledger:
    """Toggle ``requested`` on the target record.

    Raises:
        Unauthorized: the actor may not edit this record.
        UnknownWorker: the target is not on the ledger.
        ValueError: ``requested`` is neutral.
    """
    require_status_edit(actor, target_id)
    requested = Status(requested)
    if requested == Status.NEUTRAL:
        raise ValueError("requested status must be green or red")
    current = ledger.get(target_id)
    return set_status(ledger, target_id, resolve_toggle(current.status, requested), stamp)


def adjust_counter(ledger: Ledger, actor: Actor, target_id: str, delta: int) -> Ledger:
    """Add ``delta`` to the target's counter, clamped to the allowed range.

    Returns ``ledger`` itself when the clamped value does not change.
    """
    require_counter_edit(actor)
    record = ledger.get(target_id)
    new_counter = clamp_counter(record.counter + int(delta))
    if new_counter == record.counter:
        return ledger
    return ledger.with_record(replace(record, counter=new_counter))


def total_assigned(ledger: Ledger) -> int:
    return sum(record.counter for record in ledger.records.values())
