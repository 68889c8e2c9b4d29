"""Hook lifecycle actions.

Public API:
    HookActionDispatcher -- routes register/list/unregister/test to actions
    HookActions          -- bundle of the four action implementations
    GITHUB_ACTIONS       -- default bundle backed by the GitHub REST API
    ActionContext        -- services handed to every action
    ActingUser           -- user on whose behalf an action runs
"""

from hookwatch.actions.base import ActingUser, ActionContext, HookAction
from hookwatch.actions.create import create_webhook
from hookwatch.actions.delete import delete_webhook
from hookwatch.actions.dispatcher import GITHUB_ACTIONS, HookActionDispatcher, HookActions
from hookwatch.actions.list_all import get_all_webhooks
from hookwatch.actions.verify import trigger_webhook_test

__all__ = [
    "ActingUser",
    "ActionContext",
    "HookAction",
    "HookActions",
    "HookActionDispatcher",
    "GITHUB_ACTIONS",
    "create_webhook",
    "get_all_webhooks",
    "delete_webhook",
    "trigger_webhook_test",
]
