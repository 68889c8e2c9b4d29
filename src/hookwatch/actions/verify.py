"""Test a repository's webhook by asking the remote for a test delivery."""

from __future__ import annotations

import logging

from hookwatch.actions.base import ActingUser, ActionContext
from hookwatch.exceptions import RemoteRejection
from hookwatch.github.client import GitHubClient
from hookwatch.models.hook import HookRecord
from hookwatch.models.repository import RepositoryInfo
from hookwatch.models.results import TestOutcome, TestResult

logger = logging.getLogger(__name__)


def trigger_webhook_test(
    repository: RepositoryInfo,
    client: GitHubClient,
    user: ActingUser,
    context: ActionContext,
) -> TestResult:
    """Trigger a test delivery and mark the hook verified.

    NOT_FOUND if we have no hook for the repository, or the remote no
    longer knows it (the stale record is then removed). Otherwise the
    record is refreshed and ``correct`` is set: a successful test is a
    verification pass.
    """
    record = context.store.get(repository)
    if record is None or record.hook_id is None:
        return TestResult(TestOutcome.NOT_FOUND, record)

    try:
        client.test_hook(repository, record.hook_id)
        remote = client.get_hook(repository, record.hook_id)
    except RemoteRejection as exc:
        if exc.status != 404:
            raise
        context.store.delete(repository)
        context.auth_storage.remove_all(repository)
        logger.info("Hook %s for %s not found remotely, record removed", record.hook_id, repository)
        return TestResult(TestOutcome.NOT_FOUND)

    def verified(current: HookRecord) -> HookRecord:
        return current.evolve(
            hook_id=remote.id,
            url=remote.url,
            callback_url=remote.callback_url,
            status=remote.status,
            correct=True,
        )

    stored = context.store.atomic_update(repository, verified, create=False)
    if stored is None:
        return TestResult(TestOutcome.NOT_FOUND)
    logger.info("Hook %s for %s tested by %s", remote.id, repository, user.user_id)
    return TestResult(TestOutcome.OK, stored)
