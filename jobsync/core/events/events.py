from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar


class ChannelStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ChannelStatusChanged:
    """Local notification; never received from the server."""

    status: ChannelStatus
    error: str | None = None


@dataclass(frozen=True, slots=True)
class Ping:
    """Server keep-alive."""

    event_name: ClassVar[str] = "ping"

    ts: int | None = None

    @classmethod
    def from_payload(cls, data: Any) -> Ping:
        ts = data.get("ts") if isinstance(data, dict) else None
        return cls(ts=ts if isinstance(ts, int) and not isinstance(ts, bool) else None)


@dataclass(frozen=True, slots=True)
class Ready:
    """Sent once by the server when the stream is open."""

    event_name: ClassVar[str] = "ready"

    ok: bool = True

    @classmethod
    def from_payload(cls, data: Any) -> Ready:
        if isinstance(data, dict):
            return cls(ok=bool(data.get("ok", True)))
        return cls()
