"""Single-connection, filtered, typed fan-out of server push frames.

One EventChannel owns at most one subscription to the push stream. Listeners are
registered per frame class and outlive connections: disconnect() followed by
connect() resumes delivery without re-registration.

Failures never escape the public API. They show up as status == ERROR with a
message in last_error, and as a ChannelStatusChanged notification.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, TypeVar

from jobsync.core.errors import FrameDecodeError, ListenerError, TransportError

from .event_bus import EventBus
from .events import ChannelStatus, ChannelStatusChanged
from .frames import PushFrame, decode_frame, event_name_of

if TYPE_CHECKING:
    from jobsync.application.ports.push_transport import PushTransport

logger = logging.getLogger(__name__)

TFrame = TypeVar("TFrame")
Unsubscribe = Callable[[], None]


class EventChannel:
    def __init__(self, transport: PushTransport) -> None:
        self._transport = transport
        self._bus = EventBus(on_error=self._on_listener_error)
        self._wanted: list[type[PushFrame]] = []
        self._task: asyncio.Task[None] | None = None
        self._status = ChannelStatus.DISCONNECTED
        self._last_error: str | None = None
        self.last_listener_error: ListenerError | None = None

    @property
    def status(self) -> ChannelStatus:
        return self._status

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def is_connected(self) -> bool:
        return self._status is ChannelStatus.CONNECTED

    @property
    def wanted_types(self) -> tuple[type[PushFrame], ...]:
        return tuple(self._wanted)

    def wanted_event_names(self) -> list[str]:
        return [event_name_of(t) for t in self._wanted]

    def on(self, frame_type: type[TFrame], callback: Callable[[TFrame], None]) -> Unsubscribe:
        """Register callback for frame_type; returns a function that removes it.

        frame_type is a push frame class or ChannelStatusChanged.
        """
        if frame_type is not ChannelStatusChanged:
            event_name_of(frame_type)
        sub = self._bus.subscribe(frame_type, callback)

        def _unsubscribe() -> None:
            self._bus.unsubscribe(sub)

        return _unsubscribe

    async def connect(self, wanted_types: Iterable[type[PushFrame]] | None = None) -> None:
        """Open the subscription unless one is already open or opening.

        wanted_types are merged into the set requested so far. The filter of a live
        subscription never changes; disconnect() and connect() again for that.
        Returns once the stream is open or has failed.
        """
        for frame_type in wanted_types or ():
            event_name_of(frame_type)
            if frame_type not in self._wanted:
                self._wanted.append(frame_type)

        if self._task is not None:
            return

        opened: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._task = asyncio.create_task(
            self._consume(self.wanted_event_names(), opened), name="event-channel"
        )
        # A task cancelled before it ever ran skips _consume's finally block.
        self._task.add_done_callback(lambda _t: _resolve(opened))
        self._last_error = None
        self._set_status(ChannelStatus.CONNECTING)
        await opened

    def disconnect(self) -> None:
        """Cancel the consume loop. Listeners stay registered."""
        task = self._task
        self._task = None
        if task is not None:
            task.cancel()
            logger.info("Event channel disconnected")
        self._set_status(ChannelStatus.DISCONNECTED)

    async def close(self) -> None:
        """disconnect() and wait until the consume loop has finished."""
        task = self._task
        self.disconnect()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def _consume(self, event_names: Sequence[str], opened: asyncio.Future[None]) -> None:
        task = asyncio.current_task()
        try:
            async with self._transport.subscribe(event_names) as frames:
                if self._task is task:
                    self._set_status(ChannelStatus.CONNECTED)
                    logger.info("Event channel connected", extra={"event": ",".join(event_names)})
                _resolve(opened)
                async for raw in frames:
                    frame = decode_frame(raw)
                    if frame is not None:
                        self._emit(frame)
        except asyncio.CancelledError:
            raise
        except FrameDecodeError as e:
            if self._task is task:
                self._fail(TransportError(f"Failed to decode push frame: {e.message}", cause=e))
        except Exception as e:  # noqa: BLE001
            if self._task is task:
                self._fail(e)
        finally:
            _resolve(opened)
            if self._task is task:
                # Stream ended without being asked to.
                self._task = None
                if self._status is not ChannelStatus.ERROR:
                    self._set_status(ChannelStatus.DISCONNECTED)

    def _emit(self, frame: object) -> None:
        self._bus.publish(frame)

    def _fail(self, error: Exception) -> None:
        message = str(error) or type(error).__name__
        logger.warning("Event channel failed: %s", message)
        self._last_error = message
        self._set_status(ChannelStatus.ERROR)

    def _set_status(self, status: ChannelStatus) -> None:
        if status is self._status:
            return
        self._status = status
        logger.debug("Event channel status -> %s", status.value)
        error = self._last_error if status is ChannelStatus.ERROR else None
        self._bus.publish(ChannelStatusChanged(status=status, error=error))

    def _on_listener_error(self, event: object, error: Exception) -> None:
        name = getattr(event, "event_name", type(event).__name__)
        self.last_listener_error = ListenerError(
            f"Listener for '{name}' failed", cause=error, event_name=name
        )


def _resolve(fut: asyncio.Future[None]) -> None:
    if not fut.done():
        fut.set_result(None)
