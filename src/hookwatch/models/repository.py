"""Repository identity model for Hookwatch.

RepositoryInfo identifies a remote repository (host + owner + name) and is
the key of every hook record.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# https://host/owner/name(.git), ssh://git@host(:port)/owner/name(.git)
_URL_RE = re.compile(
    r"^(?:https?|ssh|git)://(?:[^@/]+@)?(?P<host>[^/:]+)(?::\d+)?/"
    r"(?P<owner>[^/]+)/(?P<name>[^/]+?)(?:\.git)?/?$"
)
# git@host:owner/name(.git)
_SCP_RE = re.compile(
    r"^(?:[^@/]+@)?(?P<host>[^/:]+):(?P<owner>[^/]+)/(?P<name>[^/]+?)(?:\.git)?/?$"
)


@dataclass(frozen=True)
class RepositoryInfo:
    """Identity of a remote repository.

    Immutable: used as a dictionary and storage key.
    """

    host: str
    owner: str
    name: str

    @property
    def id(self) -> str:
        """Stable string key: ``host/owner/name``."""
        return f"{self.host}/{self.owner}/{self.name}"

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, url: str) -> RepositoryInfo | None:
        """Parse a clone or web url into a RepositoryInfo.

        Returns None when the url does not look like ``host/owner/name``.
        Host names are lower-cased; owner and name keep their case.
        """
        url = url.strip()
        match = _URL_RE.match(url) or _SCP_RE.match(url)
        if match is None:
            return None
        return cls(
            host=match.group("host").lower(),
            owner=match.group("owner"),
            name=match.group("name"),
        )

    @classmethod
    def from_id(cls, key: str) -> RepositoryInfo:
        """Inverse of :attr:`id`."""
        parts = key.split("/")
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"Not a repository id: {key!r}")
        return cls(host=parts[0], owner=parts[1], name=parts[2])

    def __str__(self) -> str:
        return self.id
