"""Register a webhook for a repository."""

from __future__ import annotations

import logging

from hookwatch.actions.base import (
    ActingUser,
    ActionContext,
    find_our_hook,
    refresh_record,
)
from hookwatch.exceptions import HookwatchError
from hookwatch.github.client import GitHubClient
from hookwatch.models.hook import HookRecord
from hookwatch.models.repository import RepositoryInfo
from hookwatch.models.results import RegisterOutcome, RegisterResult

logger = logging.getLogger(__name__)


def _discard_remote_hook(repository: RepositoryInfo, client: GitHubClient, hook_id: int) -> None:
    try:
        client.delete_hook(repository, hook_id)
    except HookwatchError:
        logger.exception("Could not remove orphaned hook %s for %s", hook_id, repository)


def create_webhook(
    repository: RepositoryInfo,
    client: GitHubClient,
    user: ActingUser,
    context: ActionContext,
) -> RegisterResult:
    """Create our webhook unless the repository already has one.

    A new hook gets fresh auth data: the callback url embeds the public key
    and the secret signs deliveries. The record starts correct with no
    baseline, so the next revision observation becomes its baseline.

    Raises:
        TransportFailure, RemoteRejection, AccessDenied: from the client.
            Auth data generated for a failed creation is removed first.
        Exception: from the store, after the new hook was deleted remotely
            and its auth data removed.
    """
    existing = find_our_hook(client.list_hooks(repository), context.links)
    if existing is not None:
        record = refresh_record(context, repository, existing)
        logger.info("Hook %s for %s already exists", existing.id, repository)
        return RegisterResult(RegisterOutcome.ALREADY_EXISTS, record)

    auth = context.auth_storage.create(user.user_id, repository)
    try:
        remote = client.create_hook(
            repository,
            callback_url=context.links.callback_url(auth.public_key),
            secret=auth.secret,
            events=list(context.hook_events),
        )
    except Exception:
        context.auth_storage.remove(auth.public_key)
        raise

    def install(record: HookRecord) -> HookRecord:
        return record.evolve(
            hook_id=remote.id,
            url=remote.url,
            callback_url=remote.callback_url,
            status=remote.status,
            correct=True,
            last_branch_revisions=None,
        )

    try:
        record = context.store.atomic_update(repository, install)
    except Exception:
        logger.error(
            "Storing hook %s for %s failed, removing it remotely", remote.id, repository
        )
        _discard_remote_hook(repository, client, remote.id)
        context.auth_storage.remove(auth.public_key)
        raise
    logger.info("Created hook %s for %s on behalf of %s", remote.id, repository, user.user_id)
    return RegisterResult(RegisterOutcome.CREATED, record)
