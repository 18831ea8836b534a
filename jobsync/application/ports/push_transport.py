"""Application port for the server push stream.

EventChannel depends on this interface; the HTTP/SSE implementation lives in
jobsync.services.adapters.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import AbstractAsyncContextManager
from typing import Protocol

from jobsync.core.events.frames import RawFrame


class PushTransport(Protocol):
    def subscribe(
        self, event_types: Sequence[str]
    ) -> AbstractAsyncContextManager[AsyncIterator[RawFrame]]:
        """Open one subscription filtered to event_types (empty means all).

        Entering the context opens the stream and raises TransportError if that fails.
        The yielded iterator produces frames in arrival order and raises TransportError
        if the stream breaks; it simply ends when the server closes the stream.
        """
