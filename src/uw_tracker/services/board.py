"""Board orchestration: loading, optimistic mutations and reconciliation.

``BoardService`` holds the locally known ledger for one process. Mutations
follow two explicit paths:

- apply-then-confirm: authorize and compute synchronously, replace the local
  ledger, then write the single changed record to the durable store;
- revert-via-reload: if that write fails, discard local state and reload the
  whole ledger from the store.

A failed write is never retried as the same logical operation once the store
layer has given up, since its base state may already be stale.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from uw_tracker.core.clock import Clock
from uw_tracker.core.errors import (
    LOAD_ERROR_MESSAGE,
    PersistenceFailure,
    TrackerError,
    Unauthorized,
)
from uw_tracker.core.settings import settings
from uw_tracker.services import ledger as ledger_ops
from uw_tracker.services.audit import AuditAction, AuditLogService
from uw_tracker.services.ledger import Actor, Ledger, Status
from uw_tracker.services.reset import check_and_reset
from uw_tracker.services.sorting import WorkerView, sort_for_display
from uw_tracker.services.store import DurableStore, Subscription, record_from_values

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """Transient, auto-dismissing message for the acting user."""

    message: str
    level: str = "info"
    ttl_seconds: float = 4.0


@dataclass(frozen=True)
class MutationResult:
    ok: bool
    changed: bool
    ledger: Ledger
    notification: Notification | None = None


NotificationSink = Callable[[Notification], None]


class BoardService:
    """Owns the local ledger and mediates every change to it."""

    def __init__(
        self,
        store: DurableStore,
        *,
        clock: Clock | None = None,
        audit: AuditLogService | None = None,
        on_notification: NotificationSink | None = None,
    ) -> None:
        self.store = store
        self.clock = clock or Clock()
        self.audit = audit
        self._on_notification = on_notification
        self._ledger: Ledger | None = None
        self._lock = asyncio.Lock()
        self._subscription: Subscription | None = None

    @property
    def ledger(self) -> Ledger:
        if self._ledger is None:
            raise RuntimeError("Board has not been loaded")
        return self._ledger

    @property
    def loaded(self) -> bool:
        return self._ledger is not None

    # Loading

    async def load(self) -> Ledger:
        """Load from the store, applying the daily reset when the day rolled over."""
        async with self._lock:
            return await self._load_locked()

    async def _load_locked(self) -> Ledger:
        try:
            ledger = await self.store.load_ledger()
            ledger, reset = check_and_reset(ledger, self.clock.today())
            if reset:
                await self.store.write_ledger(ledger)
                logger.info(
                    "Daily reset applied for %s (%d records)", ledger.last_reset_epoch, len(ledger)
                )
                await self._audit(
                    AuditAction.DAILY_RESET,
                    "system",
                    details={"reset_date": ledger.last_reset_epoch},
                )
        except PersistenceFailure:
            self._notify(Notification(LOAD_ERROR_MESSAGE, "error", settings.notification_ttl_seconds))
            raise
        self._ledger = ledger
        return ledger

    async def _ensure_current(self) -> Ledger:
        if self._ledger is None or self._ledger.last_reset_epoch != self.clock.today():
            return await self._load_locked()
        return self._ledger

    async def reconcile(self) -> Ledger | None:
        """Discard local state and reload the authoritative ledger."""
        async with self._lock:
            return await self._reconcile_locked()

    async def _reconcile_locked(self) -> Ledger | None:
        try:
            return await self._load_locked()
        except PersistenceFailure:
            logger.error("Reconciliation reload failed; keeping last known ledger")
            return self._ledger

    async def roster_changed(self, removed: str | None = None) -> None:
        """Reload after users were added to or removed from the directory.

        A removed worker is dropped locally even when the reload fails, so no
        further writes are attempted for them.
        """
        async with self._lock:
            if self._ledger is None:
                return
            await self._reconcile_locked()
            if removed is not None and self._ledger is not None and removed in self._ledger:
                self._ledger = self._ledger.without(removed)

    # Mutations

    async def toggle_status(self, actor: Actor, target_id: str, requested: Status) -> MutationResult:
        """Set or clear ``requested`` on the target's record."""
        async with self._lock:
            before = await self._ensure_current()
            try:
                after = ledger_ops.toggle_status(
                    before, actor, target_id, requested, self.clock.now()
                )
            except Unauthorized as exc:
                self._reject(exc)
                raise
            previous = before.get(target_id)
            updated = after.get(target_id)
            return await self._commit(
                after,
                updated.id,
                {
                    key: value
                    for key, value in updated.store_fields().items()
                    if key != "count"
                },
                AuditAction.STATUS_CHANGE,
                actor,
                previous.status.value,
                updated.status.value,
                "Failed to update status.",
            )

    async def adjust_counter(self, actor: Actor, target_id: str, delta: int) -> MutationResult:
        """Add ``delta`` to the target's counter; no write when clamping leaves it unchanged."""
        async with self._lock:
            before = await self._ensure_current()
            try:
                after = ledger_ops.adjust_counter(before, actor, target_id, delta)
            except Unauthorized as exc:
                self._reject(exc)
                raise
            if after is before:
                return MutationResult(ok=True, changed=False, ledger=before)
            previous = before.get(target_id)
            updated = after.get(target_id)
            return await self._commit(
                after,
                updated.id,
                {"count": updated.counter},
                AuditAction.COUNT_CHANGE,
                actor,
                previous.counter,
                updated.counter,
                "Failed to update count.",
            )

    async def _commit(
        self,
        after: Ledger,
        target_id: str,
        fields: Mapping[str, Any],
        action: AuditAction,
        actor: Actor,
        previous_value: Any,
        new_value: Any,
        failure_message: str,
    ) -> MutationResult:
        # Optimistic: local state changes before the write is confirmed.
        self._ledger = after
        await self._audit(action, actor.id, target_id, previous_value, new_value)
        try:
            await self.store.write_record(target_id, fields)
        except PersistenceFailure as exc:
            logger.warning("Write for %s failed, reconciling: %s", target_id, exc)
            notification = Notification(
                failure_message, "error", settings.notification_ttl_seconds
            )
            self._notify(notification)
            reconciled = await self._reconcile_locked()
            return MutationResult(
                ok=False,
                changed=False,
                ledger=reconciled if reconciled is not None else after,
                notification=notification,
            )
        except Exception:
            logger.error("Write for %s raised unexpectedly, reconciling", target_id, exc_info=True)
            await self._reconcile_locked()
            raise
        return MutationResult(ok=True, changed=True, ledger=after)

    # Push updates

    def apply_remote_change(self, worker_id: str, fields: Mapping[str, Any]) -> None:
        """Merge a pushed row change into the local ledger.

        Works the same whether triggered by a subscription or a manual poll.
        Changes for workers not on the local ledger are ignored until the next load.
        """
        if self._ledger is None or worker_id not in self._ledger:
            logger.debug("Ignoring change for unknown worker %s", worker_id)
            return
        record = self._ledger.get(worker_id)
        merged = dict(record.store_fields())
        merged.update(fields)
        updated = record_from_values(record.id, record.display_name, merged)
        self._ledger = self._ledger.with_record(updated)

    def start_listening(self) -> Subscription:
        if self._subscription is None:
            self._subscription = self.store.subscribe(self.apply_remote_change)
        return self._subscription

    def stop_listening(self) -> None:
        if self._subscription is not None:
            self.store.unsubscribe(self._subscription)
            self._subscription = None

    # Views

    def view(self, viewer: Actor | None = None) -> list[WorkerView]:
        return sort_for_display(self.ledger, viewer)

    def total_assigned(self) -> int:
        return ledger_ops.total_assigned(self.ledger)

    # Helpers

    def _reject(self, exc: TrackerError) -> None:
        self._notify(Notification(exc.user_message, "error", settings.notification_ttl_seconds))

    def _notify(self, notification: Notification) -> None:
        if self._on_notification is not None:
            self._on_notification(notification)

    async def _audit(
        self,
        action: AuditAction,
        actor: str | None,
        target: str | None = None,
        previous_value: Any = None,
        new_value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        if self.audit is None:
            return
        await asyncio.to_thread(
            self.audit.record, action, actor, target, previous_value, new_value, details
        )


class _BoardServiceSingleton:
    """Singleton wrapper for BoardService.

    Every request in the process shares one local ledger, subscribed to the
    shared store so writes from any request are reflected immediately.
    """

    _instance: BoardService | None = None

    @classmethod
    def get_instance(cls) -> BoardService:
        if cls._instance is None:
            from uw_tracker.services.audit import get_audit_service
            from uw_tracker.services.store import get_store

            cls._instance = BoardService(get_store(), audit=get_audit_service())
            cls._instance.start_listening()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        if cls._instance is not None:
            cls._instance.stop_listening()
        cls._instance = None


def get_board_service() -> BoardService:
    """Return the process-wide board service."""
    return _BoardServiceSingleton.get_instance()
