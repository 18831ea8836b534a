"""Push stream events.

Frames arrive from the server as named server-sent events and are decoded into the
typed classes below; listeners subscribe by class through EventChannel.on().
"""

from .event_bus import EventBus, Subscription
from .events import ChannelStatus, ChannelStatusChanged, Ping, Ready
from .job_events import JobsSnapshot, JobUpdated
from .frames import FRAME_TYPES, PushFrame, RawFrame, decode_frame, event_name_of
from .event_channel import EventChannel

__all__ = [
    "EventBus",
    "Subscription",
    "ChannelStatus",
    "ChannelStatusChanged",
    "Ping",
    "Ready",
    "JobsSnapshot",
    "JobUpdated",
    "FRAME_TYPES",
    "PushFrame",
    "RawFrame",
    "decode_frame",
    "event_name_of",
    "EventChannel",
]
