"""Tests for HookwatchConfig."""

import pytest
from pydantic import ValidationError

from hookwatch.models.config import HookwatchConfig


class TestHookwatchConfig:
    def test_defaults(self):
        config = HookwatchConfig()
        assert config.db_path == ":memory:"
        assert config.db_url is None
        assert config.api_url == "https://api.github.com"
        assert config.hook_events == ["push"]
        assert config.max_retries == 3

    def test_trailing_slash_stripped(self):
        config = HookwatchConfig(root_url="https://ci.example.com/", api_url="https://gh.local/api/v3/")
        assert config.root_url == "https://ci.example.com"
        assert config.api_url == "https://gh.local/api/v3"

    @pytest.mark.parametrize("field", ["max_retries", "store_max_attempts"])
    def test_attempts_must_be_positive(self, field):
        with pytest.raises(ValidationError):
            HookwatchConfig(**{field: 0})

    def test_from_env(self):
        config = HookwatchConfig.from_env(
            {
                "HOOKWATCH_DB_PATH": "/var/lib/hooks.db",
                "HOOKWATCH_ROOT_URL": "https://ci.example.com/",
                "HOOKWATCH_TIMEOUT": "5.5",
                "HOOKWATCH_MAX_RETRIES": "7",
                "HOOKWATCH_HOOK_EVENTS": "push, pull_request,",
                "UNRELATED": "x",
            }
        )
        assert config.db_path == "/var/lib/hooks.db"
        assert config.root_url == "https://ci.example.com"
        assert config.timeout == 5.5
        assert config.max_retries == 7
        assert config.hook_events == ["push", "pull_request"]

    def test_overrides_win(self):
        config = HookwatchConfig.from_env({"HOOKWATCH_DB_PATH": "a.db"}, db_path="b.db")
        assert config.db_path == "b.db"

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("HOOKWATCH_API_URL", "https://gh.local/api/v3")
        assert HookwatchConfig.from_env().api_url == "https://gh.local/api/v3"

    def test_invalid_env_value(self):
        with pytest.raises(ValidationError):
            HookwatchConfig.from_env({"HOOKWATCH_MAX_RETRIES": "lots"})
