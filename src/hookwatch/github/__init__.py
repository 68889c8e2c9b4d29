"""GitHub REST API access for hook actions."""

from hookwatch.github.client import TOKEN_ENV_VAR, GitHubClient

__all__ = [
    "GitHubClient",
    "TOKEN_ENV_VAR",
]
