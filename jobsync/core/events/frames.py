"""Push frame decoding.

The set of frames the client understands is closed: FRAME_TYPES maps each wire event
name to the class listeners subscribe to. Frames with any other name are dropped
before their payload is looked at.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from jobsync.core.errors import FrameDecodeError, ValidationError

from .events import Ping, Ready
from .job_events import JobsSnapshot, JobUpdated

PushFrame = JobsSnapshot | JobUpdated | Ping | Ready

FRAME_TYPES: dict[str, type[PushFrame]] = {
    JobsSnapshot.event_name: JobsSnapshot,
    JobUpdated.event_name: JobUpdated,
    Ping.event_name: Ping,
    Ready.event_name: Ready,
}


@dataclass(frozen=True, slots=True)
class RawFrame:
    """One server-sent event as read off the wire."""

    event: str
    data: str = ""
    id: str | None = None


def event_name_of(frame_type: type[object]) -> str:
    name = getattr(frame_type, "event_name", None)
    if not isinstance(name, str) or FRAME_TYPES.get(name) is not frame_type:
        raise ValueError(f"{getattr(frame_type, '__name__', frame_type)!r} is not a push frame type")
    return name


def decode_frame(raw: RawFrame) -> PushFrame | None:
    """Decode a raw frame into its typed form.

    Returns None for unknown event names and for frames whose payload carries nothing
    to apply. Raises FrameDecodeError when the payload is not valid for its type.
    """
    frame_type = FRAME_TYPES.get(raw.event)
    if frame_type is None:
        return None
    try:
        payload = json.loads(raw.data) if raw.data.strip() else None
    except json.JSONDecodeError as e:
        raise FrameDecodeError(f"Frame '{raw.event}' carries invalid JSON", cause=e) from e
    try:
        return frame_type.from_payload(payload)
    except (ValidationError, TypeError, ValueError) as e:
        raise FrameDecodeError(f"Frame '{raw.event}' has an invalid payload: {e}", cause=e) from e
