"""GitHub REST client for webhook operations, built on httpx with tenacity retry.

Every failure leaves this module as one of the Hookwatch error kinds:

- TransportFailure: connect/read errors, timeouts.
- AccessDenied: 401/403 (except rate limiting).
- RemoteRejection: every other non-2xx answer.

Transient failures (connect errors, timeouts, 429, 5xx) are retried with
exponential backoff before the final error is raised. Hook creation is
only retried on connect errors and 429: a duplicate POST would create a
second hook.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

import httpx
import tenacity

from hookwatch.exceptions import AccessDenied, ConfigError, RemoteRejection, TransportFailure
from hookwatch.models.remote import RemoteHook
from hookwatch.models.repository import RepositoryInfo

if TYPE_CHECKING:
    from hookwatch.models.config import HookwatchConfig

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "HOOKWATCH_GITHUB_TOKEN"

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
_AUTH_ERROR_STATUS_CODES = {401, 403}


def _is_retryable(exc: BaseException) -> bool:
    """Check if an exception is retryable.

    Retryable: transport failures, 429, 500, 502, 503, 504.
    Not retryable: access denied and other client errors.
    """
    if isinstance(exc, TransportFailure):
        return True
    if isinstance(exc, RemoteRejection):
        return exc.status in _RETRYABLE_STATUS_CODES
    return False


def _is_retryable_once_only(exc: BaseException) -> bool:
    """Retry predicate for requests that must not take effect twice.

    Only failures where the request cannot have reached the remote:
    the connection was never established, or it was rate limited.
    A 5xx or read timeout may arrive after the remote already acted.
    """
    if isinstance(exc, TransportFailure):
        return isinstance(exc.__cause__, (httpx.ConnectError, httpx.ConnectTimeout))
    if isinstance(exc, RemoteRejection):
        return exc.status == 429
    return False


def _reason(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason_phrase


def _is_rate_limited(response: httpx.Response) -> bool:
    return response.status_code == 429 or (
        response.status_code == 403
        and response.headers.get("X-RateLimit-Remaining") == "0"
    )


class GitHubClient:
    """Sync httpx client for the GitHub repository hooks API.

    Usage::

        with GitHubClient(token="ghp_...") as client:
            hooks = client.list_hooks(repo)
    """

    def __init__(
        self,
        token: str | None = None,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        max_retries: int = 3,
        *,
        transport: httpx.BaseTransport | None = None,
        wait: tenacity.wait.wait_base | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: API token. Falls back to HOOKWATCH_GITHUB_TOKEN env var.
            api_url: API base url.
            timeout: Request timeout in seconds.
            max_retries: Maximum attempts for retryable errors.
            transport: Optional httpx transport (tests use MockTransport).
            wait: Backoff between retries. Exponential with jitter by default.

        Raises:
            ConfigError: If no token is provided or found in environment.
        """
        self._token = token or os.environ.get(TOKEN_ENV_VAR, "")
        if not self._token:
            raise ConfigError(
                f"No GitHub token provided. Pass token= or set {TOKEN_ENV_VAR} "
                "environment variable."
            )
        self._api_url = api_url.rstrip("/")
        self._max_retries = max_retries
        self._wait = wait or (
            tenacity.wait_exponential(multiplier=1, min=1, max=30)
            + tenacity.wait_random(0, 2)
        )
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {self._token}",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )

    @classmethod
    def from_config(cls, config: HookwatchConfig, token: str | None = None) -> GitHubClient:
        return cls(
            token=token,
            api_url=config.api_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )

    # ------------------------------------------------------------------
    # Hooks API
    # ------------------------------------------------------------------

    def _hooks_url(self, repository: RepositoryInfo) -> str:
        return f"{self._api_url}/repos/{repository.owner}/{repository.name}/hooks"

    def list_hooks(self, repository: RepositoryInfo) -> list[RemoteHook]:
        """GET all hooks of a repository (follows pagination)."""
        hooks: list[RemoteHook] = []
        url: str | None = self._hooks_url(repository)
        params: dict[str, Any] | None = {"per_page": 100}
        while url is not None:
            response = self._request("GET", url, params=params)
            hooks.extend(RemoteHook.model_validate(h) for h in response.json())
            next_link = response.links.get("next")
            url = next_link.get("url") if next_link else None
            params = None  # the next link carries its own query
        return hooks

    def create_hook(
        self,
        repository: RepositoryInfo,
        *,
        callback_url: str,
        secret: str,
        events: list[str],
    ) -> RemoteHook:
        payload = {
            "name": "web",
            "active": True,
            "events": events,
            "config": {
                "url": callback_url,
                "content_type": "json",
                "secret": secret,
                "insecure_ssl": "0",
            },
        }
        response = self._request(
            "POST", self._hooks_url(repository), idempotent=False, json=payload
        )
        return RemoteHook.model_validate(response.json())

    def get_hook(self, repository: RepositoryInfo, hook_id: int) -> RemoteHook:
        response = self._request("GET", f"{self._hooks_url(repository)}/{hook_id}")
        return RemoteHook.model_validate(response.json())

    def delete_hook(self, repository: RepositoryInfo, hook_id: int) -> None:
        self._request("DELETE", f"{self._hooks_url(repository)}/{hook_id}")

    def test_hook(self, repository: RepositoryInfo, hook_id: int) -> None:
        """Ask the remote to deliver a test push event to the hook."""
        self._request("POST", f"{self._hooks_url(repository)}/{hook_id}/tests")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self, method: str, url: str, *, idempotent: bool = True, **kwargs: Any
    ) -> httpx.Response:
        """Send a request, retrying transient failures.

        Uses tenacity.Retrying programmatically (not as decorator) so that
        max_retries is configurable per-instance. Non-idempotent requests
        are only retried when they cannot have reached the remote.
        """
        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception(
                _is_retryable if idempotent else _is_retryable_once_only
            ),
            wait=self._wait,
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retryer(self._do_request, method, url, **kwargs)

    def _do_request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Execute a single request (no retry)."""
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            raise TransportFailure(f"{method} {url} failed: {exc}", url=url) from exc

        if response.is_success:
            return response

        if _is_rate_limited(response):
            raise RemoteRejection(429, _reason(response))
        if response.status_code in _AUTH_ERROR_STATUS_CODES:
            raise AccessDenied(_reason(response), status=response.status_code)
        raise RemoteRejection(response.status_code, _reason(response))

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
