"""Shared types for hook lifecycle actions.

An action is any callable ``(repository, client, user, context) -> result``.
The context gives it the hook store, auth data storage and link generation;
the client is whatever talks to the hosting API.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol, TypeVar

from hookwatch.links import WebLinks
from hookwatch.models.hook import HookRecord, HookStatus
from hookwatch.models.remote import RemoteHook
from hookwatch.models.repository import RepositoryInfo
from hookwatch.storage.repositories import AuthDataStore, HookRecordStore

logger = logging.getLogger(__name__)

R_co = TypeVar("R_co", covariant=True)


@dataclass(frozen=True)
class ActingUser:
    """The user on whose behalf an action runs."""

    user_id: str
    username: str = ""


@dataclass(frozen=True)
class ActionContext:
    """Services handed to every action."""

    store: HookRecordStore
    auth_storage: AuthDataStore
    links: WebLinks
    hook_events: tuple[str, ...] = ("push",)


class HookAction(Protocol[R_co]):
    """Call signature shared by all four hook actions."""

    def __call__(
        self,
        repository: RepositoryInfo,
        client: object,
        user: ActingUser,
        context: ActionContext,
    ) -> R_co: ...


def find_our_hook(hooks: Iterable[RemoteHook], links: WebLinks) -> RemoteHook | None:
    """The hook whose callback url points at this server, if any."""
    for hook in hooks:
        if links.is_our_callback(hook.callback_url):
            return hook
    return None


def refresh_record(
    context: ActionContext, repository: RepositoryInfo, remote: RemoteHook
) -> HookRecord:
    """Store what the remote reports about our hook.

    Updates hook id, urls and status. ``correct`` is left alone: only a
    verification or a repair may clear a suspected inconsistency, so a hook
    flagged incorrect stays INCORRECT while the remote calls it OK.
    """

    def apply(record: HookRecord) -> HookRecord:
        status = remote.status
        if not record.correct and status is HookStatus.OK:
            status = HookStatus.INCORRECT
        return record.evolve(
            hook_id=remote.id,
            url=remote.url,
            callback_url=remote.callback_url,
            status=status,
        )

    stored = context.store.atomic_update(repository, apply)
    assert stored is not None  # create=True always stores
    logger.debug("Refreshed hook %s for %s (status %s)", remote.id, repository, stored.status)
    return stored
