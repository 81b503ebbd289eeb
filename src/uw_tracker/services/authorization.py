"""Authorization gate for board mutations.

These checks are pure and cheap. They are evaluated on every mutating call
rather than cached, because the target differs from call to call even though
an actor's role is fixed for the session.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from uw_tracker.core.errors import Unauthorized

if TYPE_CHECKING:
    from uw_tracker.services.ledger import Actor


def _same_worker(left: str, right: str) -> bool:
    return (left or "").strip().lower() == (right or "").strip().lower()


def can_edit_status(actor: Actor, target_id: str) -> bool:
    """Assigners may edit anyone; underwriters only themselves."""
    return actor.is_assigner or _same_worker(actor.id, target_id)


def can_edit_counter(actor: Actor) -> bool:
    return actor.is_assigner


def can_view_counter(actor: Actor) -> bool:
    """Counters are assigner-only for reading as well as writing."""
    return can_edit_counter(actor)


def require_status_edit(actor: Actor, target_id: str) -> None:
    if not can_edit_status(actor, target_id):
        raise Unauthorized()


def require_counter_edit(actor: Actor) -> None:
    if not can_edit_counter(actor):
        raise Unauthorized()
