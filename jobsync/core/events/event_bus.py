from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar, cast

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Subscription:
    event_type: type[object]
    handler: Callable[[object], None]


TEvent = TypeVar("TEvent")
ErrorHook = Callable[[object, Exception], None]


class EventBus:
    """Simple, synchronous, in-process listener table keyed by event class.

    - Handlers for one event type run in registration order.
    - A handler that raises is logged and skipped; the remaining handlers still run.
    - Meant for a single event loop: no locking.
    """

    def __init__(self, *, on_error: ErrorHook | None = None) -> None:
        self._subs: defaultdict[type[object], list[Callable[[object], None]]] = defaultdict(list)
        self._on_error = on_error

    def subscribe(
        self, event_type: type[TEvent], handler: Callable[[TEvent], None]
    ) -> Subscription:
        # One entry per call: the same callback subscribed twice is two registrations,
        # each removed only through its own Subscription.
        def _wrapped(event: object) -> None:
            handler(cast(TEvent, event))

        self._subs[event_type].append(_wrapped)
        return Subscription(event_type=event_type, handler=_wrapped)

    def unsubscribe(self, subscription: Subscription) -> None:
        handlers = self._subs.get(subscription.event_type)
        if not handlers:
            return
        try:
            handlers.remove(subscription.handler)
        except ValueError:
            return
        if not handlers:
            del self._subs[subscription.event_type]

    def has_subscribers(self, event_type: type[object]) -> bool:
        return bool(self._subs.get(event_type))

    def publish(self, event: object) -> None:
        # Copy first: handlers may (un)subscribe while we iterate.
        handlers = list(self._subs.get(type(event), []))
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.exception(
                    "Event handler failed",
                    extra={"event_type": type(event).__name__, "handler": repr(handler)},
                )
                if self._on_error is not None:
                    self._on_error(event, e)

