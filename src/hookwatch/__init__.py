"""Hookwatch: webhook registration tracking and stale-hook detection.

A hook that stops delivering events fails silently. Hookwatch compares the
branch revisions it observes with the revisions each hook has reported and
flags the hooks that fell behind.
"""

from hookwatch._version import __version__

# Core entry point
from hookwatch.manager import HookManager

# Components
from hookwatch.consistency import (
    BranchMismatch,
    ConsistencyEngine,
    ConsistencyReport,
    Verdict,
)
from hookwatch.usage import UsageTracker
from hookwatch.events import (
    RevisionEventDispatcher,
    RevisionEventSource,
    Subscription,
    VcsRoot,
    is_suitable_root,
)
from hookwatch.links import WebLinks

# Actions
from hookwatch.actions import (
    GITHUB_ACTIONS,
    ActingUser,
    ActionContext,
    HookAction,
    HookActionDispatcher,
    HookActions,
)
from hookwatch.github import GitHubClient

# Models
from hookwatch.models.auth import AuthData
from hookwatch.models.config import HookwatchConfig
from hookwatch.models.hook import HookRecord, HookStatus
from hookwatch.models.remote import RemoteHook
from hookwatch.models.repository import RepositoryInfo
from hookwatch.models.results import (
    ListOutcome,
    ListResult,
    RegisterOutcome,
    RegisterResult,
    TestOutcome,
    TestResult,
    UnregisterOutcome,
    UnregisterResult,
)

# Storage
from hookwatch.storage.repositories import AuthDataStore, HookRecordStore
from hookwatch.storage.sqlite import SqlStorage

# Exceptions
from hookwatch.exceptions import (
    AccessDenied,
    ConfigError,
    HookwatchError,
    RemoteRejection,
    StoreConflictError,
    TransportFailure,
)

__all__ = [
    "__version__",
    "HookManager",
    "BranchMismatch",
    "ConsistencyEngine",
    "ConsistencyReport",
    "Verdict",
    "UsageTracker",
    "RevisionEventDispatcher",
    "RevisionEventSource",
    "Subscription",
    "VcsRoot",
    "is_suitable_root",
    "WebLinks",
    "GITHUB_ACTIONS",
    "ActingUser",
    "ActionContext",
    "HookAction",
    "HookActionDispatcher",
    "HookActions",
    "GitHubClient",
    "AuthData",
    "HookwatchConfig",
    "HookRecord",
    "HookStatus",
    "RemoteHook",
    "RepositoryInfo",
    "ListOutcome",
    "ListResult",
    "RegisterOutcome",
    "RegisterResult",
    "TestOutcome",
    "TestResult",
    "UnregisterOutcome",
    "UnregisterResult",
    "AuthDataStore",
    "HookRecordStore",
    "SqlStorage",
    "AccessDenied",
    "ConfigError",
    "HookwatchError",
    "RemoteRejection",
    "StoreConflictError",
    "TransportFailure",
]
