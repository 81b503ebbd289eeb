"""Durable store for the board ledger.

``DurableStore`` is the contract the board depends on. ``SqlAlchemyStore``
implements it against the ``tracker_status`` / ``ledger_meta`` tables: one row
per underwriter, the reset epoch stored once. Blocking database work runs in a
worker thread; every call goes through the retry policy and surfaces final
failures as ``PersistenceFailure``.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from uw_tracker.core.clock import Stamp
from uw_tracker.core.errors import PersistenceFailure, TrackerError, UnknownWorker
from uw_tracker.models import LedgerMeta, TrackerStatus, User
from uw_tracker.services.ledger import (
    Ledger,
    Role,
    Status,
    WorkerRecord,
    clamp_counter,
    normalize_id,
)
from uw_tracker.services.retry import RetryConfig, with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")

META_ROW_ID = 1
RECORD_FIELDS = frozenset({"status", "count", "status_time", "status_timestamp"})

ChangeCallback = Callable[[str, Mapping[str, Any]], None]


@dataclass(frozen=True)
class Subscription:
    """Handle returned by ``subscribe``; pass it to ``unsubscribe`` to cancel."""

    id: int
    callback: ChangeCallback


class DurableStore(Protocol):
    async def load_ledger(self) -> Ledger: ...

    async def write_record(self, worker_id: str, fields: Mapping[str, Any]) -> None: ...

    async def write_ledger_meta(self, epoch: str) -> None: ...

    async def write_ledger(self, ledger: Ledger) -> None: ...

    def subscribe(self, on_change: ChangeCallback) -> Subscription: ...

    def unsubscribe(self, subscription: Subscription) -> None: ...


def record_from_values(email: str, name: str, values: Mapping[str, Any]) -> WorkerRecord:
    """Build a ledger record from stored column values, repairing inconsistencies.

    Missing values fall back to a fresh record's defaults, counters are clamped
    and a neutral status never keeps a stamp.
    """
    raw_status = values.get("status") or Status.NEUTRAL.value
    try:
        status = Status(raw_status)
    except ValueError:
        logger.warning("Unknown status %r stored for %s; treating as neutral", raw_status, email)
        status = Status.NEUTRAL
    stamp = None
    if status != Status.NEUTRAL:
        stamp = Stamp(
            display=values.get("status_time") or "",
            sortable=int(values.get("status_timestamp") or 0),
        )
    return WorkerRecord(
        id=normalize_id(email),
        display_name=name,
        status=status,
        counter=clamp_counter(int(values.get("count") or 0)),
        status_changed_at=stamp,
    )


def record_from_row(email: str, name: str, row: TrackerStatus | None) -> WorkerRecord:
    if row is None:
        return WorkerRecord.fresh(email, name)
    return record_from_values(email, name, fields_from_row(row))


def fields_from_row(row: TrackerStatus) -> dict[str, Any]:
    return {
        "status": row.status,
        "count": row.count,
        "status_time": row.status_time,
        "status_timestamp": row.status_timestamp,
    }


class SqlAlchemyStore:
    """Reference durable store backed by SQLAlchemy sessions."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | Callable[[], Session] | None = None,
        *,
        retry_config: RetryConfig | None = None,
    ) -> None:
        if session_factory is None:
            from uw_tracker.db.session import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory
        self.retry_config = retry_config
        self._subscribers: dict[int, Subscription] = {}
        self._ids = itertools.count(1)

    async def _run(self, description: str, func: Callable[[Session], T]) -> T:
        def _in_session() -> T:
            with self._session_factory() as db:
                try:
                    result = func(db)
                    db.commit()
                    return result
                except Exception:
                    db.rollback()
                    raise

        async def _attempt() -> T:
            return await asyncio.to_thread(_in_session)

        try:
            return await with_retry(_attempt, config=self.retry_config, description=description)
        except TrackerError:
            raise
        except SQLAlchemyError as exc:
            logger.error("Durable store %s failed: %s", description, exc)
            raise PersistenceFailure() from exc
        except Exception as exc:
            logger.error("Durable store %s failed unexpectedly: %s", description, exc, exc_info=True)
            raise PersistenceFailure() from exc

    # Reads

    async def load_ledger(self) -> Ledger:
        def _load(db: Session) -> Ledger:
            underwriters = (
                db.query(User)
                .filter(User.role == Role.UNDERWRITER.value)
                .order_by(User.name)
                .all()
            )
            rows = {row.email: row for row in db.query(TrackerStatus).all()}
            meta = db.get(LedgerMeta, META_ROW_ID)
            records = [
                record_from_row(user.email, user.name, rows.get(user.email))
                for user in underwriters
            ]
            return Ledger.from_records(records, meta.last_reset_date if meta else None)

        return await self._run("load_ledger", _load)

    # Writes

    async def write_record(self, worker_id: str, fields: Mapping[str, Any]) -> None:
        """Upsert the given columns of one worker's row."""
        unknown = set(fields) - RECORD_FIELDS
        if unknown:
            raise ValueError(f"Unknown tracker fields: {sorted(unknown)}")
        email = normalize_id(worker_id)

        def _write(db: Session) -> dict[str, Any]:
            row = db.get(TrackerStatus, email)
            if row is None:
                registered = db.query(User.id).filter(User.email == email).first()
                if registered is None:
                    raise UnknownWorker(f"Unknown underwriter: {email}")
                row = TrackerStatus(email=email, status=Status.NEUTRAL.value, count=0)
                db.add(row)
            for key, value in fields.items():
                setattr(row, key, value)
            db.flush()
            return fields_from_row(row)

        stored = await self._run(f"write_record({email})", _write)
        self._notify(email, stored)

    async def write_ledger_meta(self, epoch: str) -> None:
        def _write(db: Session) -> None:
            _upsert_meta(db, epoch)

        await self._run("write_ledger_meta", _write)

    async def write_ledger(self, ledger: Ledger) -> None:
        """Persist every record and the epoch in a single transaction."""

        def _write(db: Session) -> list[tuple[str, dict[str, Any]]]:
            written = []
            for record in ledger.records.values():
                row = db.get(TrackerStatus, record.id)
                if row is None:
                    row = TrackerStatus(email=record.id)
                    db.add(row)
                for key, value in record.store_fields().items():
                    setattr(row, key, value)
                written.append((record.id, record.store_fields()))
            if ledger.last_reset_epoch is not None:
                _upsert_meta(db, ledger.last_reset_epoch)
            return written

        written = await self._run("write_ledger", _write)
        for email, stored in written:
            self._notify(email, stored)

    # Subscriptions

    def subscribe(self, on_change: ChangeCallback) -> Subscription:
        subscription = Subscription(id=next(self._ids), callback=on_change)
        self._subscribers[subscription.id] = subscription
        return subscription

    def unsubscribe(self, subscription: Subscription | None) -> None:
        if subscription is not None:
            self._subscribers.pop(subscription.id, None)

    def _notify(self, email: str, fields: Mapping[str, Any]) -> None:
        for subscription in list(self._subscribers.values()):
            try:
                subscription.callback(email, dict(fields))
            except Exception as exc:
                logger.error(
                    "Change subscriber %d failed for %s: %s",
                    subscription.id,
                    email,
                    exc,
                    exc_info=True,
                )


def _upsert_meta(db: Session, epoch: str) -> None:
    meta = db.get(LedgerMeta, META_ROW_ID)
    if meta is None:
        db.add(LedgerMeta(id=META_ROW_ID, last_reset_date=epoch))
    else:
        meta.last_reset_date = epoch


class _StoreSingleton:
    """Singleton wrapper for the process-wide store."""

    _instance: SqlAlchemyStore | None = None

    @classmethod
    def get_instance(cls) -> SqlAlchemyStore:
        if cls._instance is None:
            cls._instance = SqlAlchemyStore()
        return cls._instance


def get_store() -> SqlAlchemyStore:
    """Return the shared durable store."""
    return _StoreSingleton.get_instance()
