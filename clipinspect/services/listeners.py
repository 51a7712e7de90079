"""Paste and drop subscriptions returned as explicit handles."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Set, Tuple, runtime_checkable

from clipinspect.config.constants import ORIGIN_DROP, ORIGIN_PASTE
from clipinspect.core.types import ParseResult

from .parser import ClipboardParser

EVENT_PASTE = "paste"
EVENT_DROP = "drop"

EventCallback = Callable[[Any], Any]
ResultCallback = Callable[[ParseResult], None]


@runtime_checkable
class EventSource(Protocol):
    """Anything that can deliver paste/drop transfers to callbacks."""

    def add_listener(self, event: str, callback: EventCallback) -> None:
        ...

    def remove_listener(self, event: str, callback: EventCallback) -> None:
        ...


class EventHub:
    """In-process event source; adapters and tests dispatch transfers through it."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[EventCallback]] = {}
        self._tasks: Set[asyncio.Task] = set()

    def add_listener(self, event: str, callback: EventCallback) -> None:
        self._listeners.setdefault(event, []).append(callback)

    def remove_listener(self, event: str, callback: EventCallback) -> None:
        callbacks = self._listeners.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    async def dispatch(self, event: str, payload: Any) -> None:
        for callback in list(self._listeners.get(event, [])):
            outcome = callback(payload)
            if inspect.isawaitable(outcome):
                await outcome

    def dispatch_soon(self, event: str, payload: Any) -> None:
        """Dispatch from synchronous code, e.g. a Qt signal handler."""

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self.dispatch(event, payload))
        else:
            task = loop.create_task(self.dispatch(event, payload))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)


class ListenerHandle:
    """Owns one subscription; :meth:`disable` is the only way to release it."""

    def __init__(self, source: EventSource, bindings: List[Tuple[str, EventCallback]]) -> None:
        self._source: Optional[EventSource] = source
        self._bindings = bindings
        for event, callback in bindings:
            source.add_listener(event, callback)

    @property
    def active(self) -> bool:
        return self._source is not None

    def disable(self) -> None:
        source = self._source
        if source is None:
            return
        self._source = None
        for event, callback in self._bindings:
            try:
                source.remove_listener(event, callback)
            except Exception:
                logging.exception("Failed to remove %s listener", event)

    def __enter__(self) -> "ListenerHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.disable()


def _transfer_handler(
    parser: ClipboardParser, origin: str, callback: ResultCallback
) -> EventCallback:
    async def handle(transfer: Any) -> None:
        result = await parser.parse_transfer(transfer, origin)
        callback(result)

    return handle


def enable_paste_listener(
    source: EventSource, parser: ClipboardParser, callback: ResultCallback
) -> ListenerHandle:
    """Parse every paste delivered by *source* and hand the result to *callback*."""

    return ListenerHandle(source, [(EVENT_PASTE, _transfer_handler(parser, ORIGIN_PASTE, callback))])


def enable_drop_listener(
    source: EventSource, parser: ClipboardParser, callback: ResultCallback
) -> ListenerHandle:
    return ListenerHandle(source, [(EVENT_DROP, _transfer_handler(parser, ORIGIN_DROP, callback))])
