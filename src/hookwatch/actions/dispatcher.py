"""Routing of hook lifecycle requests to pluggable actions."""

from __future__ import annotations

from dataclasses import dataclass

from hookwatch.actions.base import ActingUser, ActionContext, HookAction
from hookwatch.actions.create import create_webhook
from hookwatch.actions.delete import delete_webhook
from hookwatch.actions.list_all import get_all_webhooks
from hookwatch.actions.verify import trigger_webhook_test
from hookwatch.models.repository import RepositoryInfo
from hookwatch.models.results import (
    ListResult,
    RegisterResult,
    TestResult,
    UnregisterResult,
)


@dataclass(frozen=True)
class HookActions:
    """One implementation per lifecycle operation."""

    register: HookAction[RegisterResult]
    list_all: HookAction[ListResult]
    unregister: HookAction[UnregisterResult]
    test: HookAction[TestResult]


GITHUB_ACTIONS = HookActions(
    register=create_webhook,
    list_all=get_all_webhooks,
    unregister=delete_webhook,
    test=trigger_webhook_test,
)


class HookActionDispatcher:
    """Forwards each request unchanged to its action, with the shared context.

    Adds no logic of its own: TransportFailure, RemoteRejection and
    AccessDenied raised by an action reach the caller untouched, and nothing
    is retried here.
    """

    def __init__(self, context: ActionContext, actions: HookActions = GITHUB_ACTIONS) -> None:
        self._context = context
        self._actions = actions

    @property
    def context(self) -> ActionContext:
        return self._context

    def register(
        self, repository: RepositoryInfo, client: object, user: ActingUser
    ) -> RegisterResult:
        return self._actions.register(repository, client, user, self._context)

    def list_all(
        self, repository: RepositoryInfo, client: object, user: ActingUser
    ) -> ListResult:
        return self._actions.list_all(repository, client, user, self._context)

    def unregister(
        self, repository: RepositoryInfo, client: object, user: ActingUser
    ) -> UnregisterResult:
        return self._actions.unregister(repository, client, user, self._context)

    def test(
        self, repository: RepositoryInfo, client: object, user: ActingUser
    ) -> TestResult:
        return self._actions.test(repository, client, user, self._context)
