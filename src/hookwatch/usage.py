"""Usage tracking: liveness signals and explicit re-baselines."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Mapping

from hookwatch.models.hook import HookRecord, HookStatus
from hookwatch.models.repository import RepositoryInfo
from hookwatch.storage.repositories import HookRecordStore

logger = logging.getLogger(__name__)


def _as_utc(timestamp: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


class UsageTracker:
    """Records hook liveness and re-baselines branch revisions.

    Both operations are no-ops for repositories without a hook record and
    never create one.
    """

    def __init__(self, store: HookRecordStore) -> None:
        self._store = store

    def record_usage(self, repository: RepositoryInfo, timestamp: datetime) -> HookRecord | None:
        """Record that the hook delivered an event at *timestamp*.

        Only a timestamp later than the stored ``last_used`` takes effect.
        A delivery is the strongest proof a hook works, so it also marks
        the hook correct. ``last_branch_revisions`` is never touched.

        Returns the stored record, or None if the repository is untracked.
        """
        hook = self._store.get(repository)
        if hook is None:
            return None
        used_at = _as_utc(timestamp)
        if hook.last_used is not None and hook.last_used >= used_at:
            return hook

        def bump(record: HookRecord) -> HookRecord:
            # Re-check against the freshest value
            if record.last_used is not None and record.last_used >= used_at:
                return record
            return record.evolve(last_used=used_at, correct=True, status=HookStatus.OK)

        stored = self._store.atomic_update(repository, bump, create=False)
        if stored is not None and stored.last_used == used_at:
            logger.debug("Hook for %s used at %s", repository, used_at.isoformat())
        return stored

    def merge_branch_revisions(
        self, repository: RepositoryInfo, observed: Mapping[str, str]
    ) -> HookRecord | None:
        """Overlay *observed* onto the hook's baseline and mark it correct.

        Right-biased key-wise union: branches in *observed* win, branches
        only in the existing baseline are kept. A missing baseline starts
        empty.

        Returns the stored record, or None if the repository is untracked.
        """
        if self._store.get(repository) is None:
            return None
        overlay = dict(observed)

        def merge(record: HookRecord) -> HookRecord:
            merged = dict(record.last_branch_revisions or {})
            merged.update(overlay)
            return record.evolve(
                correct=True, status=HookStatus.OK, last_branch_revisions=merged
            )

        stored = self._store.atomic_update(repository, merge, create=False)
        if stored is not None:
            logger.debug(
                "Merged %d branch revisions into hook baseline for %s",
                len(overlay), repository,
            )
        return stored
