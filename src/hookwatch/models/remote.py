"""Remote hook model parsed from the hosting API's JSON."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from hookwatch.models.hook import HookStatus


class HookLastResponse(BaseModel):
    """The remote's record of the last delivery attempt."""

    code: Optional[int] = None
    status: Optional[str] = None
    message: Optional[str] = None


class RemoteHook(BaseModel):
    """A webhook as reported by the hosting API.

    Unknown fields are ignored so API additions do not break parsing.
    """

    model_config = {"extra": "ignore"}

    id: int
    name: str = "web"
    active: bool = True
    events: list[str] = []
    config: dict = {}
    url: Optional[str] = None
    test_url: Optional[str] = None
    ping_url: Optional[str] = None
    last_response: Optional[HookLastResponse] = None

    @property
    def callback_url(self) -> str | None:
        return self.config.get("url")

    @property
    def status(self) -> HookStatus:
        """Derive a HookStatus from ``active`` and ``last_response``."""
        if not self.active:
            return HookStatus.DISABLED
        last = self.last_response
        if last is not None and last.code is not None and not 200 <= last.code < 300:
            return HookStatus.PAYLOAD_DELIVERY_FAILED
        return HookStatus.OK
