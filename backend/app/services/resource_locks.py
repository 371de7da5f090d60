from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from threading import Lock

from sqlalchemy import insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from app.models.common import DayOfWeek
from app.models.resource_lock import ResourceDayLock, ResourceKind

ResourceDayKey = tuple[ResourceKind, str, DayOfWeek]


class KeyedLockRegistry:
    """Process-local mutexes keyed by (resource kind, resource id, weekday)."""

    def __init__(self) -> None:
        # One entry per distinct key ever held. Entries are never evicted: the key space is
        # bounded by resources times seven weekdays, and dropping a lock another thread
        # still waits on would let a second writer in.
        self._locks: dict[ResourceDayKey, Lock] = {}
        self._guard = Lock()

    def _lock_for(self, key: ResourceDayKey) -> Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, keys: Iterable[ResourceDayKey]) -> Iterator[list[ResourceDayKey]]:
        # Sorted acquisition so two writers touching the same keys cannot deadlock.
        ordered = sorted(set(keys))
        acquired: list[Lock] = []
        try:
            for key in ordered:
                lock = self._lock_for(key)
                lock.acquire()
                acquired.append(lock)
            yield ordered
        finally:
            for lock in reversed(acquired):
                lock.release()

    def clear(self) -> None:
        with self._guard:
            self._locks.clear()


_registry = KeyedLockRegistry()


def get_lock_registry() -> KeyedLockRegistry:
    return _registry


def clear_lock_registry() -> None:
    _registry.clear()


def _insert_ignoring_duplicates(db: Session, key: ResourceDayKey) -> None:
    resource_kind, resource_id, day_of_week = key
    values = {"resource_kind": resource_kind, "resource_id": resource_id, "day_of_week": day_of_week}
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        statement = postgresql.insert(ResourceDayLock).values(**values).on_conflict_do_nothing()
    elif dialect == "sqlite":
        statement = sqlite.insert(ResourceDayLock).values(**values).on_conflict_do_nothing()
    else:
        statement = insert(ResourceDayLock).values(**values)
    db.execute(statement)


def claim_resource_days(db: Session, keys: Iterable[ResourceDayKey]) -> None:
    """Lock one row per key for the rest of the current transaction.

    On PostgreSQL the ``FOR UPDATE`` row lock serializes check-and-commit across
    workers; SQLite already serializes writers on the database file.
    """
    for key in sorted(set(keys)):
        resource_kind, resource_id, day_of_week = key
        query = (
            select(ResourceDayLock)
            .where(
                ResourceDayLock.resource_kind == resource_kind,
                ResourceDayLock.resource_id == resource_id,
                ResourceDayLock.day_of_week == day_of_week,
            )
            .with_for_update()
        )
        if db.execute(query).scalar_one_or_none() is None:
            _insert_ignoring_duplicates(db, key)
            db.execute(query).scalar_one()
