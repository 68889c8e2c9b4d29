"""Hook record domain model for Hookwatch.

HookRecord is the per-repository state of a registered webhook.
HookStatus summarizes what the remote last told us about the hook.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime

from hookwatch.models.repository import RepositoryInfo


class HookStatus(str, enum.Enum):
    """Remote-side status of a hook."""

    OK = "ok"
    INCORRECT = "incorrect"
    DISABLED = "disabled"
    NOT_FOUND = "not_found"
    PAYLOAD_DELIVERY_FAILED = "payload_delivery_failed"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class HookRecord:
    """State of one repository's webhook.

    Immutable: every update produces a new record through
    :meth:`evolve`, so store mutators are pure functions old -> new.

    Attributes:
        repository: Repository the hook belongs to.
        hook_id: Remote hook id, None until known.
        url: Remote API url of the hook.
        callback_url: Url the remote delivers events to.
        status: Last known remote status.
        correct: Whether the hook is believed to deliver events consistent
            with observed branch activity.
        last_used: Last time a delivery from the hook was confirmed.
        last_branch_revisions: Baseline of branch -> revision known to be
            reflected by the hook. None means unknown (re-baseline on the
            next observation), which is not the same as an empty mapping.
    """

    repository: RepositoryInfo
    hook_id: int | None = None
    url: str | None = None
    callback_url: str | None = None
    status: HookStatus = HookStatus.OK
    correct: bool = True
    last_used: datetime | None = None
    last_branch_revisions: dict[str, str] | None = field(default=None)

    def evolve(self, **changes: object) -> HookRecord:
        """Return a copy with *changes* applied.

        A ``last_branch_revisions`` mapping is copied so records never
        share a dict.
        """
        if changes.get("last_branch_revisions") is not None:
            changes["last_branch_revisions"] = dict(changes["last_branch_revisions"])  # type: ignore[call-overload]
        return replace(self, **changes)  # type: ignore[arg-type]

    def __str__(self) -> str:
        state = "correct" if self.correct else "INCORRECT"
        return f"Hook({self.repository.id} id={self.hook_id} {state})"
