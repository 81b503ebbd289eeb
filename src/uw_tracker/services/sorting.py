"""Display ordering for the board.

Green workers come first (longest waiting first), then neutral workers
(idle before busy, idle by name, busy by lightest load), then red workers.
The order is recomputed from the ledger on every change.
"""

from __future__ import annotations

import locale
import logging
from dataclasses import dataclass

from uw_tracker.core.settings import settings
from uw_tracker.services.authorization import can_edit_status, can_view_counter
from uw_tracker.services.ledger import Actor, Ledger, Status, WorkerRecord, normalize_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerView:
    """One board row as presented to a particular viewer."""

    id: str
    display_name: str
    status: Status
    counter: int | None
    status_time: str | None
    status_timestamp: int | None
    is_own: bool = False
    can_edit_status: bool = False


def configure_collation(name: str | None = None) -> str:
    """Set the process collation locale used by ``name_key`` and return it.

    An unavailable locale leaves the current collation in place.
    """
    name = settings.collation_locale if name is None else name
    try:
        return locale.setlocale(locale.LC_COLLATE, name)
    except locale.Error:
        current = locale.setlocale(locale.LC_COLLATE)
        logger.warning("Collation locale %r is not available; keeping %s", name, current)
        return current


def name_key(name: str) -> tuple[str, str]:
    # Locale collation first, raw name as a deterministic fallback for equal keys.
    return locale.strxfrm(name.casefold()), name


def _changed_at_key(record: WorkerRecord) -> tuple[int, tuple[str, str], str]:
    stamp = record.status_changed_at
    return (stamp.sortable if stamp else 0), name_key(record.display_name), record.id


def _neutral_key(record: WorkerRecord) -> tuple[int, int, tuple[str, str], str]:
    has_files = 1 if record.counter > 0 else 0
    return has_files, record.counter, name_key(record.display_name), record.id


def sort_records(ledger: Ledger) -> list[WorkerRecord]:
    """Return every record in display order: green, neutral, red."""
    records = list(ledger.records.values())
    greens = sorted((r for r in records if r.status == Status.GREEN), key=_changed_at_key)
    neutrals = sorted((r for r in records if r.status == Status.NEUTRAL), key=_neutral_key)
    reds = sorted((r for r in records if r.status == Status.RED), key=_changed_at_key)
    return [*greens, *neutrals, *reds]


def to_view(record: WorkerRecord, viewer: Actor | None = None) -> WorkerView:
    stamp = record.status_changed_at
    show_counter = viewer is None or can_view_counter(viewer)
    return WorkerView(
        id=record.id,
        display_name=record.display_name,
        status=record.status,
        counter=record.counter if show_counter else None,
        status_time=stamp.display if stamp else None,
        status_timestamp=stamp.sortable if stamp else None,
        is_own=viewer is not None and normalize_id(viewer.id) == record.id,
        can_edit_status=viewer is not None and can_edit_status(viewer, record.id),
    )


def sort_for_display(ledger: Ledger, viewer: Actor | None = None) -> list[WorkerView]:
    """Project the sorted ledger into views.

    Without a viewer the full record is exposed; with one, counters are hidden
    from anyone who may not see them.
    """
    return [to_view(record, viewer) for record in sort_records(ledger)]
