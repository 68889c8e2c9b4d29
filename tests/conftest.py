"""Shared test fixtures for Hookwatch.

Provides in-memory storage, repository and manager fixtures, plus a fake
GitHub client that keeps hooks in a dict.
"""

from __future__ import annotations

import itertools

import pytest

from hookwatch.exceptions import RemoteRejection
from hookwatch.links import WebLinks
from hookwatch.manager import HookManager
from hookwatch.models.hook import HookRecord
from hookwatch.models.remote import RemoteHook
from hookwatch.models.repository import RepositoryInfo
from hookwatch.storage.repositories import HookRecordStore
from hookwatch.storage.sqlite import SqlStorage

ROOT_URL = "https://ci.example.com"


@pytest.fixture
def storage():
    """In-memory storage with all tables created."""
    s = SqlStorage.open(":memory:")
    yield s
    s.close()


@pytest.fixture
def store(storage):
    return storage.hooks


@pytest.fixture
def auth_store(storage):
    return storage.auth


@pytest.fixture
def repo() -> RepositoryInfo:
    return RepositoryInfo(host="github.com", owner="acme", name="widgets")


@pytest.fixture
def other_repo() -> RepositoryInfo:
    return RepositoryInfo(host="github.com", owner="acme", name="gadgets")


@pytest.fixture
def links() -> WebLinks:
    return WebLinks(ROOT_URL)


@pytest.fixture
def manager(storage, links) -> HookManager:
    m = HookManager(storage, links)
    yield m
    m.stop()


# ------------------------------------------------------------------
# Shared test helpers
# ------------------------------------------------------------------

def make_hook(store, repository: RepositoryInfo, **fields) -> HookRecord:
    """Create (or overwrite fields of) a hook record."""
    return store.atomic_update(repository, lambda r: r.evolve(**fields))


class FakeGitHubClient:
    """In-memory stand-in for GitHubClient.

    ``fail_with`` maps a method name to an exception raised on every call.
    """

    def __init__(self) -> None:
        self.hooks: dict[RepositoryInfo, dict[int, RemoteHook]] = {}
        self.calls: list[tuple[str, RepositoryInfo]] = []
        self.fail_with: dict[str, Exception] = {}
        self._ids = itertools.count(1000)

    def _maybe_fail(self, method: str, repository: RepositoryInfo) -> None:
        self.calls.append((method, repository))
        if method in self.fail_with:
            raise self.fail_with[method]

    def add_remote_hook(
        self, repository: RepositoryInfo, callback_url: str, **fields
    ) -> RemoteHook:
        hook_id = next(self._ids)
        hook = RemoteHook(
            id=hook_id,
            url=f"https://api.github.com/repos/{repository.slug}/hooks/{hook_id}",
            config={"url": callback_url, "content_type": "json"},
            **fields,
        )
        self.hooks.setdefault(repository, {})[hook_id] = hook
        return hook

    def list_hooks(self, repository):
        self._maybe_fail("list_hooks", repository)
        return list(self.hooks.get(repository, {}).values())

    def create_hook(self, repository, *, callback_url, secret, events):
        self._maybe_fail("create_hook", repository)
        hook = self.add_remote_hook(repository, callback_url, events=list(events))
        hook.config["secret"] = secret
        return hook

    def get_hook(self, repository, hook_id):
        self._maybe_fail("get_hook", repository)
        try:
            return self.hooks[repository][hook_id]
        except KeyError:
            raise RemoteRejection(404, "Not Found") from None

    def delete_hook(self, repository, hook_id):
        self._maybe_fail("delete_hook", repository)
        if hook_id not in self.hooks.get(repository, {}):
            raise RemoteRejection(404, "Not Found")
        del self.hooks[repository][hook_id]

    def test_hook(self, repository, hook_id):
        self._maybe_fail("test_hook", repository)
        if hook_id not in self.hooks.get(repository, {}):
            raise RemoteRejection(404, "Not Found")


@pytest.fixture
def github() -> FakeGitHubClient:
    return FakeGitHubClient()


class InterleavedHookStore(HookRecordStore):
    """Wraps a store and runs *writer* once, inside the first mutator call.

    The mutator then computes from the record read before *writer* ran, so
    the wrapped store has to detect the conflict and retry. *writer* must
    write through a different storage on the same database file; the
    wrapped store holds its per-key lock while the mutator runs.
    """

    def __init__(self, inner: HookRecordStore, writer) -> None:
        self._inner = inner
        self._writer = writer
        self.mutator_calls = 0

    def get(self, repository):
        return self._inner.get(repository)

    def atomic_update(self, repository, mutator, *, create=True):
        def interleaved(record):
            self.mutator_calls += 1
            writer, self._writer = self._writer, None
            if writer is not None:
                writer()
            return mutator(record)

        return self._inner.atomic_update(repository, interleaved, create=create)

    def list_where(self, predicate):
        return self._inner.list_where(predicate)

    def list_incorrect(self):
        return self._inner.list_incorrect()

    def list_all(self):
        return self._inner.list_all()

    def delete(self, repository):
        return self._inner.delete(repository)


@pytest.fixture
def shared_db(tmp_path):
    """Two storages on one database file, standing in for two processes."""
    path = str(tmp_path / "shared.db")
    with SqlStorage.open(path) as first, SqlStorage.open(path) as second:
        yield first, second
