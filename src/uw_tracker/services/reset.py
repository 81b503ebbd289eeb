"""Daily reset policy.

The board is wiped once per civil day. The check runs at the start of every
data load; there is no background timer.
"""

from __future__ import annotations

from uw_tracker.services.ledger import Ledger


def needs_reset(ledger: Ledger, today: str) -> bool:
    return ledger.last_reset_epoch != today


def check_and_reset(ledger: Ledger, today: str) -> tuple[Ledger, bool]:
    """Clear every record if the ledger's epoch is not ``today``.

    Returns the (possibly new) ledger and whether a reset happened. Calling it
    again with the same ``today`` is a no-op.
    """
    if not needs_reset(ledger, today):
        return ledger, False
    cleared = [record.cleared() for record in ledger.records.values()]
    return Ledger.from_records(cleared, last_reset_epoch=today), True
