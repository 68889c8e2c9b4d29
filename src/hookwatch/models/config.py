"""Configuration models for Hookwatch.

HookwatchConfig holds storage and remote-API settings. Values can be
passed directly or read from ``HOOKWATCH_*`` environment variables.
"""

from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, field_validator

_ENV_PREFIX = "HOOKWATCH_"


class HookwatchConfig(BaseModel):
    """Hookwatch settings.

    Attributes:
        db_path: SQLite path, ``":memory:"`` for in-memory.
        db_url: Full SQLAlchemy url; overrides *db_path* when set.
        api_url: Base url of the GitHub REST API.
        root_url: Public root url of this server; hook callbacks are
            generated beneath it.
        timeout: Per-request timeout in seconds.
        max_retries: Attempts for transient remote failures.
        hook_events: Events requested when a hook is created.
        store_max_attempts: Compare-and-swap attempts before an atomic
            update gives up.
    """

    db_path: str = ":memory:"
    db_url: Optional[str] = None
    api_url: str = "https://api.github.com"
    root_url: str = "http://localhost:8111"
    timeout: float = 30.0
    max_retries: int = 3
    hook_events: list[str] = ["push"]
    store_max_attempts: int = 10

    @field_validator("api_url", "root_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("max_retries", "store_max_attempts")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: object
    ) -> HookwatchConfig:
        """Build a config from ``HOOKWATCH_*`` variables.

        ``HOOKWATCH_DB_PATH`` maps to ``db_path`` and so on;
        ``HOOKWATCH_HOOK_EVENTS`` is comma separated. Keyword *overrides*
        win over the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for name in cls.model_fields:
            raw = env.get(f"{_ENV_PREFIX}{name.upper()}")
            if raw is None:
                continue
            if name == "hook_events":
                values[name] = [e.strip() for e in raw.split(",") if e.strip()]
            else:
                values[name] = raw
        values.update(overrides)
        return cls(**values)
