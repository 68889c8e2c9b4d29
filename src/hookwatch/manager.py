"""HookManager: the Hookwatch entry point.

Wires storage, the consistency engine, the usage tracker and the action
dispatcher together, and exposes the read-only query surface for hooks
flagged incorrect.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Mapping, Sequence

from hookwatch.actions.base import ActingUser, ActionContext
from hookwatch.actions.dispatcher import GITHUB_ACTIONS, HookActionDispatcher, HookActions
from hookwatch.consistency import ConsistencyEngine, ConsistencyReport
from hookwatch.events import RevisionEventSource
from hookwatch.links import WebLinks
from hookwatch.models.config import HookwatchConfig
from hookwatch.models.hook import HookRecord
from hookwatch.models.repository import RepositoryInfo
from hookwatch.models.results import (
    ListResult,
    RegisterResult,
    TestResult,
    UnregisterResult,
)
from hookwatch.storage.sqlite import SqlStorage
from hookwatch.usage import UsageTracker

logger = logging.getLogger(__name__)


class HookManager:
    """Tracks webhooks and detects the ones that went stale.

    Usage::

        with HookManager.open(HookwatchConfig(db_path="hooks.db")) as manager:
            manager.start(revision_events)
            manager.register(repo, github_client, user)
            ...
            for repo, hook in manager.incorrect_hooks():
                print(repo, hook.last_branch_revisions)

    The consistency engine only reacts to revision events between
    :meth:`start` and :meth:`stop`; everything else works without starting.
    """

    def __init__(
        self,
        storage: SqlStorage,
        links: WebLinks,
        *,
        actions: HookActions = GITHUB_ACTIONS,
        hook_events: Sequence[str] = ("push",),
        owns_storage: bool = False,
    ) -> None:
        self._storage = storage
        self._links = links
        self._owns_storage = owns_storage
        self.usage = UsageTracker(storage.hooks)
        self.consistency = ConsistencyEngine(storage.hooks)
        self.dispatcher = HookActionDispatcher(
            ActionContext(
                store=storage.hooks,
                auth_storage=storage.auth,
                links=links,
                hook_events=tuple(hook_events),
            ),
            actions,
        )

    @classmethod
    def open(
        cls,
        config: HookwatchConfig | None = None,
        *,
        actions: HookActions = GITHUB_ACTIONS,
    ) -> HookManager:
        """Open (or create) the configured database and build a manager.

        Args:
            config: Settings. ``HookwatchConfig.from_env()`` if *None*.
            actions: Action implementations. GitHub actions by default.
        """
        if config is None:
            config = HookwatchConfig.from_env()
        storage = SqlStorage.from_config(config)
        logger.debug("Opened hook database %s", config.db_url or config.db_path)
        return cls(
            storage,
            WebLinks(config.root_url),
            actions=actions,
            hook_events=config.hook_events,
            owns_storage=True,
        )

    @property
    def storage(self) -> SqlStorage:
        return self._storage

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, source: RevisionEventSource) -> None:
        """Start checking hooks on every revision event from *source*."""
        self.consistency.start(source)

    def stop(self) -> None:
        self.consistency.stop()

    def close(self) -> None:
        """Stop listening and release storage opened by :meth:`open`."""
        self.stop()
        if self._owns_storage:
            self._storage.close()

    def __enter__(self) -> HookManager:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Hook actions
    # ------------------------------------------------------------------

    def register(
        self, repository: RepositoryInfo, client: object, user: ActingUser
    ) -> RegisterResult:
        return self.dispatcher.register(repository, client, user)

    def list_all(
        self, repository: RepositoryInfo, client: object, user: ActingUser
    ) -> ListResult:
        return self.dispatcher.list_all(repository, client, user)

    def unregister(
        self, repository: RepositoryInfo, client: object, user: ActingUser
    ) -> UnregisterResult:
        return self.dispatcher.unregister(repository, client, user)

    def test(
        self, repository: RepositoryInfo, client: object, user: ActingUser
    ) -> TestResult:
        return self.dispatcher.test(repository, client, user)

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def check_consistency(
        self, repository: RepositoryInfo, branches: Mapping[str, str]
    ) -> ConsistencyReport:
        return self.consistency.check_consistency(repository, branches)

    def record_usage(self, repository: RepositoryInfo, timestamp: datetime) -> HookRecord | None:
        return self.usage.record_usage(repository, timestamp)

    def record_delivery(self, callback_url: str, timestamp: datetime) -> HookRecord | None:
        """Record a payload delivered to one of our callback urls.

        The public key in the url identifies the hook's auth data and so
        its repository. Returns None for urls that are not ours, unknown
        keys and untracked repositories.
        """
        public_key = self._links.public_key_of(callback_url)
        if public_key is None:
            return None
        auth = self._storage.auth.find(public_key)
        if auth is None:
            logger.info("Delivery for unknown hook key %s ignored", public_key)
            return None
        return self.usage.record_usage(auth.repository, timestamp)

    def merge_branch_revisions(
        self, repository: RepositoryInfo, observed: Mapping[str, str]
    ) -> HookRecord | None:
        return self.usage.merge_branch_revisions(repository, observed)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_hook(self, repository: RepositoryInfo) -> HookRecord | None:
        return self._storage.hooks.get(repository)

    def has_incorrect_hooks(self) -> bool:
        return bool(self._storage.hooks.list_incorrect())

    def incorrect_hooks(self) -> list[tuple[RepositoryInfo, HookRecord]]:
        """Every hook flagged ``correct=False``, ordered by repository id.

        Reads without taking update locks, so the snapshot may be slightly
        stale.
        """
        return [(r.repository, r) for r in self._storage.hooks.list_incorrect()]
