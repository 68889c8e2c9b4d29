"""List a repository's webhooks and sync our record with them."""

from __future__ import annotations

import logging

from hookwatch.actions.base import (
    ActingUser,
    ActionContext,
    find_our_hook,
    refresh_record,
)
from hookwatch.github.client import GitHubClient
from hookwatch.models.repository import RepositoryInfo
from hookwatch.models.results import ListOutcome, ListResult

logger = logging.getLogger(__name__)


def get_all_webhooks(
    repository: RepositoryInfo,
    client: GitHubClient,
    user: ActingUser,
    context: ActionContext,
) -> ListResult:
    """Fetch every hook of *repository*.

    FOUND when one of them is ours (its record is refreshed), NO_HOOKS
    otherwise. A local record whose hook vanished remotely is forgotten
    together with its auth data.
    """
    hooks = tuple(client.list_hooks(repository))
    ours = find_our_hook(hooks, context.links)
    if ours is None:
        if context.store.delete(repository):
            context.auth_storage.remove_all(repository)
            logger.info("Hook for %s no longer exists remotely, record removed", repository)
        return ListResult(ListOutcome.NO_HOOKS, None, hooks)

    record = refresh_record(context, repository, ours)
    return ListResult(ListOutcome.FOUND, record, hooks)
