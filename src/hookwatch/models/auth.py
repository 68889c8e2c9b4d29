"""Auth data issued to registered hooks."""

from __future__ import annotations

from dataclasses import dataclass

from hookwatch.models.repository import RepositoryInfo


@dataclass(frozen=True)
class AuthData:
    """Credentials a hook delivers with each payload.

    The public key is embedded in the callback url to find this record;
    the secret is the hook's signing secret.
    """

    user_id: str
    public_key: str
    secret: str
    repository: RepositoryInfo
