"""Event bus - publishes typed payloads to registered handlers.

In-memory and fire-and-forget: nothing is persisted or retried.
Handlers run synchronously, in registration order, on the publisher's stack.
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Dict, List, Set, TypeVar, Union

from pydantic import BaseModel

from ..logger import log_exception, logger
from .base import (
    PAYLOAD_TYPES,
    DownloadEvent,
    LogEntry,
    PlayerEvent,
    RawLine,
    WorldJoinEvent,
    WorldLeaveEvent,
)
from .types import EventType

PayloadT = TypeVar("PayloadT", bound=BaseModel)

# Handlers may be plain functions or coroutine functions
EventHandler = Union[
    Callable[[PayloadT], None], Callable[[PayloadT], Awaitable[None]]
]


class EventBus:
    """Observer registry keyed by EventType."""

    def __init__(self):
        self._handlers: Dict[EventType, List[Callable]] = {
            event_type: [] for event_type in EventType
        }
        self._pending: Set[asyncio.Task] = set()

    # Generic registration

    def subscribe(self, event_type: EventType | str, handler: EventHandler) -> None:
        """Register handler for an event type or its string name.

        Raises:
            ValueError: If the name is not a known event type
        """
        self._handlers[EventType(event_type)].append(handler)

    def unsubscribe(self, event_type: EventType | str, handler: EventHandler) -> bool:
        """Remove the first registration of handler. Returns False if absent.

        A handler registered with once() is removed by passing the handler
        itself.
        """
        handlers = self._handlers[EventType(event_type)]
        for index, registered in enumerate(handlers):
            once_of = getattr(registered, "once_of", None)
            if registered == handler or once_of == handler:
                del handlers[index]
                return True
        return False

    def once(self, event_type: EventType | str, handler: EventHandler) -> None:
        """Register handler for the next publish of event_type only."""
        event_type = EventType(event_type)

        def wrapper(payload):
            self.unsubscribe(event_type, wrapper)
            return handler(payload)

        wrapper.once_of = handler
        self.subscribe(event_type, wrapper)

    def handler_count(self, event_type: EventType | str) -> int:
        return len(self._handlers[EventType(event_type)])

    # Typed registration helpers

    def on_raw(self, handler: EventHandler[RawLine]) -> None:
        self.subscribe(EventType.RAW, handler)

    def on_data(self, handler: EventHandler[LogEntry]) -> None:
        self.subscribe(EventType.DATA, handler)

    def on_debug(self, handler: EventHandler[LogEntry]) -> None:
        self.subscribe(EventType.DEBUG, handler)

    def on_warning(self, handler: EventHandler[LogEntry]) -> None:
        self.subscribe(EventType.WARNING, handler)

    def on_err(self, handler: EventHandler[LogEntry]) -> None:
        self.subscribe(EventType.ERR, handler)

    def on_string_load(self, handler: EventHandler[DownloadEvent]) -> None:
        self.subscribe(EventType.STRING_LOAD, handler)

    def on_image_load(self, handler: EventHandler[DownloadEvent]) -> None:
        self.subscribe(EventType.IMAGE_LOAD, handler)

    def on_join(self, handler: EventHandler[WorldJoinEvent]) -> None:
        self.subscribe(EventType.JOIN, handler)

    def on_leave(self, handler: EventHandler[WorldLeaveEvent]) -> None:
        self.subscribe(EventType.LEAVE, handler)

    def on_player_joined(self, handler: EventHandler[PlayerEvent]) -> None:
        self.subscribe(EventType.PLAYER_JOINED, handler)

    def on_player_left(self, handler: EventHandler[PlayerEvent]) -> None:
        self.subscribe(EventType.PLAYER_LEFT, handler)

    # Dispatch

    def publish(self, event_type: EventType | str, payload: BaseModel) -> None:
        """Call every handler registered for event_type with payload.

        A failing handler is logged and does not stop the others.

        Raises:
            TypeError: If payload is not the model published under event_type
        """
        event_type = EventType(event_type)
        expected = PAYLOAD_TYPES[event_type]
        if not isinstance(payload, expected):
            raise TypeError(
                f"{event_type.value} expects {expected.__name__}, "
                f"got {type(payload).__name__}"
            )

        # Copy so handlers may (un)subscribe while we iterate
        handlers = list(self._handlers[event_type])
        if not handlers:
            logger.debug(f"No handlers registered for event: {event_type.value}")
            return

        for handler in handlers:
            self._invoke(handler, event_type, payload)

    async def drain(self) -> None:
        """Wait until all scheduled coroutine handlers have finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @log_exception("Listener failed for event {event_type.value}")
    def _invoke(self, handler: Callable, event_type: EventType, payload: Any) -> None:
        result = handler(payload)
        if inspect.isawaitable(result):
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                if inspect.iscoroutine(result):
                    result.close()
                raise RuntimeError("Coroutine handlers need a running event loop")
            task = asyncio.ensure_future(result, loop=loop)
            self._pending.add(task)
            task.add_done_callback(
                lambda t: self._on_handler_done(t, handler, event_type)
            )

    def _on_handler_done(
        self, task: asyncio.Task, handler: Callable, event_type: EventType
    ) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            handler_name = getattr(handler, "__qualname__", repr(handler))
            logger.error(
                f"Handler {handler_name} failed for event {event_type.value}: {error}",
                exc_info=error,
            )
