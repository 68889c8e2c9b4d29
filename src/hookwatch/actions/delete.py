"""Unregister a repository's webhook."""

from __future__ import annotations

import logging

from hookwatch.actions.base import ActingUser, ActionContext
from hookwatch.exceptions import RemoteRejection
from hookwatch.github.client import GitHubClient
from hookwatch.models.repository import RepositoryInfo
from hookwatch.models.results import UnregisterOutcome, UnregisterResult

logger = logging.getLogger(__name__)


def delete_webhook(
    repository: RepositoryInfo,
    client: GitHubClient,
    user: ActingUser,
    context: ActionContext,
) -> UnregisterResult:
    """Delete our hook remotely, then forget its record and auth data.

    A hook already gone remotely (404) still counts as removed.
    """
    record = context.store.get(repository)
    if record is None:
        return UnregisterResult(UnregisterOutcome.NEVER_EXISTED)

    if record.hook_id is not None:
        try:
            client.delete_hook(repository, record.hook_id)
        except RemoteRejection as exc:
            if exc.status != 404:
                raise
            logger.info("Hook %s for %s was already deleted remotely", record.hook_id, repository)

    context.store.delete(repository)
    context.auth_storage.remove_all(repository)
    logger.info("Removed hook for %s on behalf of %s", repository, user.user_id)
    return UnregisterResult(UnregisterOutcome.REMOVED, record)
