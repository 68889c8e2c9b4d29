"""SQLite implementations of repository interfaces.

All repositories use SQLAlchemy 2.0-style queries (select() + session.execute()).

Unlike a single-threaded unit of work, hook records are written from a
background event thread and from request handlers at the same time, so each
call opens a short-lived session from the shared :class:`SqlStorage`.
"""

from __future__ import annotations

import logging
import secrets
import threading
import uuid
from contextlib import contextmanager, nullcontext
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Iterator, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hookwatch.exceptions import StoreConflictError
from hookwatch.models.auth import AuthData
from hookwatch.models.hook import HookRecord
from hookwatch.models.repository import RepositoryInfo
from hookwatch.storage.engine import (
    create_hook_engine,
    create_session_factory,
    init_db,
    is_shared_connection,
)
from hookwatch.storage.repositories import AuthDataStore, HookMutator, HookRecordStore
from hookwatch.storage.schema import AuthDataRow, HookRow

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from hookwatch.models.config import HookwatchConfig

logger = logging.getLogger(__name__)

_LOCK_STRIPES = 64


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_db_time(value: datetime | None) -> datetime | None:
    """Aware or naive-UTC datetime -> naive UTC for storage."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db_time(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)


def _row_to_record(row: HookRow) -> HookRecord:
    revisions = row.last_branch_revisions
    return HookRecord(
        repository=RepositoryInfo(host=row.host, owner=row.owner, name=row.name),
        hook_id=row.hook_id,
        url=row.url,
        callback_url=row.callback_url,
        status=row.status,
        correct=row.correct,
        last_used=_from_db_time(row.last_used),
        last_branch_revisions=dict(revisions) if revisions is not None else None,
    )


def _record_values(record: HookRecord) -> dict:
    """Column values for every mutable field of *record*."""
    revisions = record.last_branch_revisions
    return {
        "hook_id": record.hook_id,
        "url": record.url,
        "callback_url": record.callback_url,
        "status": record.status,
        "correct": record.correct,
        "last_used": _to_db_time(record.last_used),
        "last_branch_revisions": dict(revisions) if revisions is not None else None,
    }


class SqlStorage:
    """Engine, sessions and stores for one Hookwatch database.

    Usage::

        with SqlStorage.open("hooks.db") as storage:
            record = storage.hooks.get(repo)
    """

    def __init__(self, engine: Engine, *, max_attempts: int = 10) -> None:
        self._engine = engine
        self._session_factory = create_session_factory(engine)
        # A shared in-memory connection must not interleave transactions
        self._conn_lock = threading.RLock() if is_shared_connection(engine) else nullcontext()
        self.hooks = SqliteHookRecordStore(self, max_attempts=max_attempts)
        self.auth = SqliteAuthDataStore(self)

    @classmethod
    def open(
        cls,
        path: str = ":memory:",
        *,
        url: str | None = None,
        max_attempts: int = 10,
    ) -> SqlStorage:
        """Create the engine, initialize the schema and return the storage."""
        engine = create_hook_engine(path, url=url)
        init_db(engine)
        return cls(engine, max_attempts=max_attempts)

    @classmethod
    def from_config(cls, config: HookwatchConfig) -> SqlStorage:
        return cls.open(
            config.db_path, url=config.db_url, max_attempts=config.store_max_attempts
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a fresh session; closes (and rolls back) on exit."""
        with self._conn_lock:
            with self._session_factory() as session:
                yield session

    def close(self) -> None:
        self._engine.dispose()

    def __enter__(self) -> SqlStorage:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class SqliteHookRecordStore(HookRecordStore):
    """SQL implementation of the hook record store.

    Atomic updates take a striped per-key lock, then compare-and-swap on the
    row's ``version`` column. The lock serializes writers in this process;
    the version check catches writers in other processes sharing the file.
    """

    def __init__(self, storage: SqlStorage, *, max_attempts: int = 10) -> None:
        self._storage = storage
        self._max_attempts = max_attempts
        self._stripes = [threading.Lock() for _ in range(_LOCK_STRIPES)]

    def _lock_for(self, key: str) -> threading.Lock:
        return self._stripes[hash(key) % _LOCK_STRIPES]

    def get(self, repository: RepositoryInfo) -> HookRecord | None:
        with self._storage.session() as session:
            row = session.get(HookRow, repository.id)
            return _row_to_record(row) if row is not None else None

    def atomic_update(
        self,
        repository: RepositoryInfo,
        mutator: HookMutator,
        *,
        create: bool = True,
    ) -> HookRecord | None:
        key = repository.id
        with self._lock_for(key):
            for attempt in range(1, self._max_attempts + 1):
                with self._storage.session() as session:
                    row = session.get(HookRow, key)
                    if row is None and not create:
                        return None
                    current = (
                        _row_to_record(row) if row is not None
                        else HookRecord(repository=repository)
                    )
                    updated = mutator(current)
                    if updated.repository != repository:
                        raise ValueError(
                            f"Mutator changed the record key: {repository} -> {updated.repository}"
                        )
                    if row is not None and updated == current:
                        return current

                    if row is None:
                        session.add(
                            HookRow(
                                repo_id=key,
                                host=repository.host,
                                owner=repository.owner,
                                name=repository.name,
                                version=1,
                                updated_at=_utcnow(),
                                **_record_values(updated),
                            )
                        )
                        try:
                            session.commit()
                        except IntegrityError:
                            session.rollback()
                            logger.debug(
                                "Concurrent insert of hook %s (attempt %d), retrying",
                                key, attempt,
                            )
                            continue
                        return updated

                    stmt = (
                        update(HookRow)
                        .where(HookRow.repo_id == key, HookRow.version == row.version)
                        .values(
                            version=row.version + 1,
                            updated_at=_utcnow(),
                            **_record_values(updated),
                        )
                        .execution_options(synchronize_session=False)
                    )
                    result = session.execute(stmt)
                    if result.rowcount == 0:
                        session.rollback()
                        logger.debug(
                            "Version conflict on hook %s (attempt %d), retrying",
                            key, attempt,
                        )
                        continue
                    session.commit()
                    return updated

        raise StoreConflictError(key, self._max_attempts)

    def list_where(self, predicate: Callable[[HookRecord], bool]) -> Sequence[HookRecord]:
        return [r for r in self.list_all() if predicate(r)]

    def list_incorrect(self) -> Sequence[HookRecord]:
        stmt = (
            select(HookRow)
            .where(HookRow.correct.is_(False))
            .order_by(HookRow.repo_id)
        )
        with self._storage.session() as session:
            return [_row_to_record(r) for r in session.execute(stmt).scalars().all()]

    def list_all(self) -> Sequence[HookRecord]:
        stmt = select(HookRow).order_by(HookRow.repo_id)
        with self._storage.session() as session:
            return [_row_to_record(r) for r in session.execute(stmt).scalars().all()]

    def delete(self, repository: RepositoryInfo) -> bool:
        key = repository.id
        with self._lock_for(key), self._storage.session() as session:
            result = session.execute(delete(HookRow).where(HookRow.repo_id == key))
            session.commit()
            return result.rowcount > 0


class SqliteAuthDataStore(AuthDataStore):
    """SQL implementation of auth data storage."""

    def __init__(self, storage: SqlStorage) -> None:
        self._storage = storage

    @staticmethod
    def _to_auth(row: AuthDataRow) -> AuthData:
        return AuthData(
            user_id=row.user_id,
            public_key=row.public_key,
            secret=row.secret,
            repository=RepositoryInfo.from_id(row.repo_id),
        )

    def create(self, user_id: str, repository: RepositoryInfo) -> AuthData:
        row = AuthDataRow(
            public_key=uuid.uuid4().hex,
            user_id=user_id,
            secret=secrets.token_hex(20),
            repo_id=repository.id,
            created_at=_utcnow(),
        )
        with self._storage.session() as session:
            session.add(row)
            session.commit()
        return self._to_auth(row)

    def find(self, public_key: str) -> AuthData | None:
        with self._storage.session() as session:
            row = session.get(AuthDataRow, public_key)
            return self._to_auth(row) if row is not None else None

    def find_for_repository(self, repository: RepositoryInfo) -> Sequence[AuthData]:
        stmt = (
            select(AuthDataRow)
            .where(AuthDataRow.repo_id == repository.id)
            .order_by(AuthDataRow.created_at)
        )
        with self._storage.session() as session:
            return [self._to_auth(r) for r in session.execute(stmt).scalars().all()]

    def remove(self, public_key: str) -> bool:
        with self._storage.session() as session:
            result = session.execute(
                delete(AuthDataRow).where(AuthDataRow.public_key == public_key)
            )
            session.commit()
            return result.rowcount > 0

    def remove_all(self, repository: RepositoryInfo) -> int:
        with self._storage.session() as session:
            result = session.execute(
                delete(AuthDataRow).where(AuthDataRow.repo_id == repository.id)
            )
            session.commit()
            return result.rowcount
