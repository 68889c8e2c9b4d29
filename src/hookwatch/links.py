"""Url generation for hook callbacks."""

from __future__ import annotations

CALLBACK_PATH = "/app/hooks/github"


class WebLinks:
    """Builds urls under this server's public root url."""

    def __init__(self, root_url: str) -> None:
        self._root_url = root_url.rstrip("/")

    @property
    def root_url(self) -> str:
        return self._root_url

    @property
    def callback_prefix(self) -> str:
        """Every hook callback url we generate starts with this prefix."""
        return f"{self._root_url}{CALLBACK_PATH}/"

    def callback_url(self, public_key: str) -> str:
        return f"{self.callback_prefix}{public_key}"

    def is_our_callback(self, url: str | None) -> bool:
        return url is not None and url.startswith(self.callback_prefix)

    def public_key_of(self, url: str | None) -> str | None:
        """Public key embedded in one of our callback urls, else None."""
        if not self.is_our_callback(url):
            return None
        key = url[len(self.callback_prefix):].strip("/")  # type: ignore[index]
        return key or None
