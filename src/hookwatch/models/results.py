"""Result types for hook lifecycle actions.

Each action returns a frozen result whose ``outcome`` is a closed enum, never
a bare boolean. Failures that stop an action are raised instead (see
hookwatch.exceptions).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from hookwatch.models.hook import HookRecord
from hookwatch.models.remote import RemoteHook


class RegisterOutcome(str, enum.Enum):
    """Outcome of a register action."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


class ListOutcome(str, enum.Enum):
    """Outcome of a list-all action."""

    FOUND = "found"
    NO_HOOKS = "no_hooks"


class UnregisterOutcome(str, enum.Enum):
    """Outcome of an unregister action."""

    REMOVED = "removed"
    NEVER_EXISTED = "never_existed"


class TestOutcome(str, enum.Enum):
    """Outcome of a test action."""

    __test__ = False  # not a pytest class

    OK = "ok"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class RegisterResult:
    outcome: RegisterOutcome
    record: HookRecord | None = None

    @property
    def created(self) -> bool:
        return self.outcome is RegisterOutcome.CREATED


@dataclass(frozen=True)
class ListResult:
    """Result of listing a repository's hooks.

    Attributes:
        outcome: FOUND if one of the remote hooks is ours.
        record: Refreshed local record for our hook, if any.
        hooks: Every hook the remote returned (ours and foreign).
    """

    outcome: ListOutcome
    record: HookRecord | None = None
    hooks: tuple[RemoteHook, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class UnregisterResult:
    outcome: UnregisterOutcome
    record: HookRecord | None = None


@dataclass(frozen=True)
class TestResult:
    __test__ = False  # not a pytest class

    outcome: TestOutcome
    record: HookRecord | None = None
