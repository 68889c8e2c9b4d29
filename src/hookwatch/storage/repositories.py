"""Abstract repository interfaces for Hookwatch storage.

Defines ABC interfaces for hook records and auth data. No SQLAlchemy
imports here -- pure abstract contracts.

Concrete implementations are in sqlite.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Sequence

if TYPE_CHECKING:
    from hookwatch.models.auth import AuthData
    from hookwatch.models.hook import HookRecord
    from hookwatch.models.repository import RepositoryInfo

HookMutator = Callable[["HookRecord"], "HookRecord"]


class HookRecordStore(ABC):
    """Durable mapping repository -> HookRecord with atomic updates."""

    @abstractmethod
    def get(self, repository: RepositoryInfo) -> HookRecord | None:
        """Get the record for a repository. Returns None if not tracked."""
        ...

    @abstractmethod
    def atomic_update(
        self,
        repository: RepositoryInfo,
        mutator: HookMutator,
        *,
        create: bool = True,
    ) -> HookRecord | None:
        """Apply *mutator* to the current record and persist the result.

        *mutator* receives the currently stored record (or a fresh default
        record when none exists and *create* is True) and returns the
        record to store. It must be a pure function: it may be called more
        than once if a concurrent writer wins the race, each time with the
        freshest stored value.

        With ``create=False`` a missing record is left missing: the mutator
        is not called and None is returned.

        Returns the stored record.
        """
        ...

    @abstractmethod
    def list_where(self, predicate: Callable[[HookRecord], bool]) -> Sequence[HookRecord]:
        """Get all records matching *predicate*. May be slightly stale."""
        ...

    @abstractmethod
    def list_incorrect(self) -> Sequence[HookRecord]:
        """Get all records with ``correct=False``."""
        ...

    @abstractmethod
    def list_all(self) -> Sequence[HookRecord]:
        """Get every record, ordered by repository id."""
        ...

    @abstractmethod
    def delete(self, repository: RepositoryInfo) -> bool:
        """Delete a record. Returns True if one existed."""
        ...


class AuthDataStore(ABC):
    """Abstract interface for per-hook auth data."""

    @abstractmethod
    def create(self, user_id: str, repository: RepositoryInfo) -> AuthData:
        """Generate and persist a fresh public key + secret."""
        ...

    @abstractmethod
    def find(self, public_key: str) -> AuthData | None:
        """Look up auth data by public key. Returns None if unknown."""
        ...

    @abstractmethod
    def find_for_repository(self, repository: RepositoryInfo) -> Sequence[AuthData]:
        """All auth data issued for a repository, oldest first."""
        ...

    @abstractmethod
    def remove(self, public_key: str) -> bool:
        """Remove one entry. Returns True if it existed."""
        ...

    @abstractmethod
    def remove_all(self, repository: RepositoryInfo) -> int:
        """Remove every entry for a repository. Returns the count removed."""
        ...
