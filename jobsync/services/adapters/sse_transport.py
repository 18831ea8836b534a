"""Server-Sent Events transport for the push stream.

GET /v1/events?type=a&type=b answers with text/event-stream. Each event is a block of
"field: value" lines ended by a blank line:

    event: download_job_updated
    data: {"id": "...", ...}

Multi-line data is joined with "\\n"; lines starting with ":" are comments.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

import httpx

from jobsync.core.errors import TransportError
from jobsync.core.events.frames import RawFrame

logger = logging.getLogger(__name__)

EVENTS_PATH = "/v1/events"


class SseDecoder:
    """Incremental line decoder; feed lines without their line terminator."""

    def __init__(self) -> None:
        self._event = ""
        self._data: list[str] = []
        self._last_id: str | None = None

    def decode(self, line: str) -> RawFrame | None:
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        elif field == "id":
            if "\0" not in value:
                self._last_id = value
        # "retry" and unknown fields are ignored.
        return None

    def _dispatch(self) -> RawFrame | None:
        if not self._event and not self._data:
            return None
        frame = RawFrame(
            event=self._event or "message",
            data="\n".join(self._data),
            id=self._last_id,
        )
        self._event = ""
        self._data = []
        return frame


async def _read_frames(response: httpx.Response) -> AsyncIterator[RawFrame]:
    decoder = SseDecoder()
    async for line in response.aiter_lines():
        frame = decoder.decode(line)
        if frame is not None:
            yield frame
    # A block without its terminating blank line is discarded.


class SseTransport:
    """PushTransport over a streaming httpx request.

    read_timeout bounds the silence between two chunks; the server pings every 15s, so
    a longer gap means the connection is dead.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        path: str = EVENTS_PATH,
        read_timeout: float | None = 60.0,
    ) -> None:
        self._client = client
        self._path = path
        self._read_timeout = read_timeout

    @asynccontextmanager
    async def subscribe(self, event_types: Sequence[str]) -> AsyncIterator[AsyncIterator[RawFrame]]:
        params = [("type", t) for t in event_types]
        timeout = self._client.timeout
        timeout = httpx.Timeout(
            connect=timeout.connect,
            read=self._read_timeout,
            write=timeout.write,
            pool=timeout.pool,
        )
        try:
            async with self._client.stream(
                "GET",
                self._path,
                params=params,
                headers={"Accept": "text/event-stream", "Cache-Control": "no-cache"},
                timeout=timeout,
            ) as response:
                # Redirects are not followed; a 3xx is usually a login page.
                if not response.is_success:
                    await response.aread()
                    raise TransportError(
                        f"Event stream rejected with status {response.status_code}"
                    )
                content_type = response.headers.get("Content-Type", "")
                if not content_type.startswith("text/event-stream"):
                    await response.aread()
                    raise TransportError(
                        f"Event stream answered with unexpected content type {content_type!r}"
                    )
                logger.debug("Event stream open: %s", response.url)
                yield _read_frames(response)
        except httpx.HTTPError as e:
            raise TransportError(f"Event stream failed: {e}", cause=e) from e
