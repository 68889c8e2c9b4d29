"""Revision change events.

A RevisionEventSource notifies listeners, from any thread, whenever a VCS
root's branch tips change. Listeners receive ``(root, old, new)`` where
*old* and *new* map branch name -> revision.

RevisionEventDispatcher is the in-process source: ``subscribe()`` returns a
Subscription handle owned by the caller, ``publish()`` fans an event out.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Mapping, Protocol, runtime_checkable

from hookwatch.models.repository import RepositoryInfo

logger = logging.getLogger(__name__)

GIT_VCS_NAMES = frozenset({"git", "jetbrains.git"})

RepositoryStateListener = Callable[
    ["VcsRoot", Mapping[str, str], Mapping[str, str]], None
]


@dataclass(frozen=True)
class VcsRoot:
    """A version-control root as seen by the revision event source."""

    vcs_name: str
    url: str
    name: str = ""


def repository_for_root(root: VcsRoot) -> RepositoryInfo | None:
    """RepositoryInfo for a hook-eligible root, None otherwise.

    Eligible roots are git roots whose url parses to host/owner/name.
    """
    if root.vcs_name not in GIT_VCS_NAMES:
        return None
    return RepositoryInfo.parse(root.url)


def is_suitable_root(root: VcsRoot) -> bool:
    return repository_for_root(root) is not None


class Subscription:
    """Handle for one listener registration.

    ``unsubscribe()`` is idempotent. Also usable as a context manager.
    """

    def __init__(self, detach: Callable[[], None]) -> None:
        self._detach: Callable[[], None] | None = detach
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._detach is not None

    def unsubscribe(self) -> None:
        with self._lock:
            detach, self._detach = self._detach, None
        if detach is not None:
            detach()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *args: object) -> None:
        self.unsubscribe()


@runtime_checkable
class RevisionEventSource(Protocol):
    """Anything listeners can subscribe to for revision changes."""

    def subscribe(self, listener: RepositoryStateListener) -> Subscription: ...


class RevisionEventDispatcher:
    """Thread-safe in-process RevisionEventSource.

    ``publish()`` calls listeners on the publishing thread, in subscription
    order, on a snapshot of the listener list. A failing listener is logged
    and does not stop the others.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: list[RepositoryStateListener] = []

    def subscribe(self, listener: RepositoryStateListener) -> Subscription:
        with self._lock:
            self._listeners.append(listener)
        return Subscription(lambda: self._remove(listener))

    def _remove(self, listener: RepositoryStateListener) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def publish(
        self,
        root: VcsRoot,
        old: Mapping[str, str],
        new: Mapping[str, str],
    ) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(root, old, new)
            except Exception:
                logger.exception("Revision listener failed for root %s", root.url)
