"""Consistency checking of hook records against observed branch revisions.

A hook that delivers every push keeps its recorded baseline in step with the
branch tips we observe. When an observation shows a branch the baseline does
not know, or a revision the baseline disagrees with, the hook missed an event
and the record is flagged ``correct=False``.

Flagging is data, not an error: the flag is durable until a usage signal, a
successful test or an explicit re-baseline clears it, and it is surfaced
through ``HookManager.incorrect_hooks()``.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from typing import Mapping

from hookwatch.events import (
    RevisionEventSource,
    Subscription,
    VcsRoot,
    repository_for_root,
)
from hookwatch.exceptions import HookwatchError
from hookwatch.models.hook import HookRecord, HookStatus
from hookwatch.models.repository import RepositoryInfo
from hookwatch.storage.repositories import HookRecordStore

logger = logging.getLogger(__name__)


class Verdict(str, enum.Enum):
    """Outcome of a consistency check."""

    CONSISTENT = "consistent"
    BASELINED = "baselined"  # no history, observation became the baseline
    INCONSISTENT = "inconsistent"
    UNTRACKED = "untracked"  # no hook record for the repository


@dataclass(frozen=True)
class BranchMismatch:
    """One branch whose observed revision the hook baseline does not match.

    Attributes:
        repository: Repository the branch belongs to.
        branch: Branch name.
        expected: Revision just observed on the branch.
        found: Revision in the hook's baseline, None if the branch is absent.
    """

    repository: RepositoryInfo
    branch: str
    expected: str
    found: str | None

    def __str__(self) -> str:
        if self.found is None:
            return (
                f"{self.repository}: no revision saved for branch {self.branch}, "
                f"but it should be {self.expected}"
            )
        return (
            f"{self.repository}: incorrect revision saved for branch {self.branch}, "
            f"expected {self.expected} but found {self.found}"
        )


@dataclass(frozen=True)
class ConsistencyReport:
    repository: RepositoryInfo
    verdict: Verdict
    mismatches: tuple[BranchMismatch, ...] = ()

    @property
    def is_consistent(self) -> bool:
        return self.verdict in (Verdict.CONSISTENT, Verdict.BASELINED)


def find_mismatch(
    repository: RepositoryInfo,
    baseline: Mapping[str, str],
    observed: Mapping[str, str],
) -> BranchMismatch | None:
    """First branch of *observed* that *baseline* does not reflect.

    Stops at the first mismatch; branches only present in the baseline are
    not mismatches.
    """
    for branch, revision in observed.items():
        stored = baseline.get(branch)
        if stored != revision:
            return BranchMismatch(repository, branch, expected=revision, found=stored)
    return None


def _log_mismatch(mismatch: BranchMismatch) -> None:
    logger.warning(
        "Hook for %s is out of date: %s",
        mismatch.repository,
        mismatch,
        extra={
            "repository": mismatch.repository.id,
            "branch": mismatch.branch,
            "expected": mismatch.expected,
            "found": mismatch.found,
        },
    )


class ConsistencyEngine:
    """Checks hook baselines against revision change notifications.

    Safe to call concurrently, including for the same repository: every
    write is a pure mutator applied through ``HookRecordStore.atomic_update``,
    never a blind overwrite.

    Usage::

        engine = ConsistencyEngine(storage.hooks)
        engine.start(dispatcher)
        ...
        engine.stop()
    """

    def __init__(self, store: HookRecordStore) -> None:
        self._store = store
        self._subscription: Subscription | None = None
        self._lifecycle_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._subscription is not None

    def start(self, source: RevisionEventSource) -> None:
        """Subscribe to *source*. Raises HookwatchError if already started."""
        with self._lifecycle_lock:
            if self._subscription is not None:
                raise HookwatchError("ConsistencyEngine is already started")
            self._subscription = source.subscribe(self._on_root_changed)
        logger.debug("ConsistencyEngine subscribed to %r", source)

    def stop(self) -> None:
        """Unsubscribe from the event source. No-op if not started."""
        with self._lifecycle_lock:
            subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.unsubscribe()
            logger.debug("ConsistencyEngine unsubscribed")

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def _on_root_changed(
        self, root: VcsRoot, old: Mapping[str, str], new: Mapping[str, str]
    ) -> None:
        repository = repository_for_root(root)
        if repository is None:
            return
        self.on_repository_state_changed(repository, old, new)

    def on_repository_state_changed(
        self,
        repository: RepositoryInfo,
        old: Mapping[str, str],
        new: Mapping[str, str],
    ) -> ConsistencyReport:
        """Handle a branch-tip change; *old* is informational only."""
        return self.check_consistency(repository, new)

    def check_consistency(
        self, repository: RepositoryInfo, branches: Mapping[str, str]
    ) -> ConsistencyReport:
        """Compare *branches* with the hook's baseline and flag on mismatch.

        - No record: UNTRACKED, nothing is written.
        - No baseline: *branches* becomes the baseline, BASELINED.
        - Any branch missing from, or differing with, the baseline:
          ``correct=False``, the baseline is kept as evidence, INCONSISTENT.
        - Otherwise CONSISTENT, nothing is written.

        The comparison runs inside the store mutator, so it always sees the
        record being replaced, never an earlier read.
        """
        observed = dict(branches)
        # Outcome of the mutator run that was committed (the last one)
        verdict = Verdict.UNTRACKED
        mismatch: BranchMismatch | None = None

        def check(record: HookRecord) -> HookRecord:
            nonlocal verdict, mismatch
            mismatch = None
            if record.last_branch_revisions is None:
                verdict = Verdict.BASELINED
                return record.evolve(last_branch_revisions=observed)
            mismatch = find_mismatch(repository, record.last_branch_revisions, observed)
            if mismatch is None:
                verdict = Verdict.CONSISTENT
                return record
            verdict = Verdict.INCONSISTENT
            return record.evolve(correct=False, status=HookStatus.INCORRECT)

        stored = self._store.atomic_update(repository, check, create=False)
        if stored is None:
            return ConsistencyReport(repository, Verdict.UNTRACKED)
        if mismatch is not None:
            _log_mismatch(mismatch)
            return ConsistencyReport(repository, verdict, (mismatch,))
        if verdict is Verdict.BASELINED:
            logger.debug("Baselined hook for %s with %d branches", repository, len(observed))
        return ConsistencyReport(repository, verdict)
