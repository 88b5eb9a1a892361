"""
Event dispatching for the TMDb client.

`EventDispatcher` is the typed registry used by default. `EventDispatcherBridge`
adapts any string-keyed observer (anything with `listen` / `fire`) to the same
`EventSink` interface, so the client never depends on a concrete dispatcher.

Both dispatch synchronously in registration order. An exception raised by a
listener stops dispatch for that event and propagates to the caller.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Protocol, runtime_checkable

from tmdb_provider.events import EventKind, Listener, RequestEvent

logger = logging.getLogger(__name__)


@runtime_checkable
class EventSink(Protocol):
    """Dispatcher interface expected by the client."""

    def add_listener(self, kind: EventKind, listener: Listener) -> None: ...

    def dispatch(self, kind: EventKind, event: RequestEvent) -> RequestEvent: ...


class Observer(Protocol):
    """Generic string-keyed observer (e.g. an application event bus)."""

    def listen(self, name: str, callback: Callable[[Any], None]) -> None: ...

    def fire(self, name: str, payload: Any) -> None: ...


class EventDispatcher:
    """Typed listener registry keyed by `EventKind`."""

    def __init__(self) -> None:
        self._listeners: dict[EventKind, list[Listener]] = defaultdict(list)

    def add_listener(self, kind: EventKind, listener: Listener) -> None:
        kind = EventKind(kind)
        self._listeners[kind].append(listener)
        logger.debug(f"Registered {type(listener).__name__} for {kind.value}")

    def listeners(self, kind: EventKind | None = None) -> list[Listener]:
        """Return a copy of the listeners for `kind` (or all listeners, in kind order)."""
        if kind is not None:
            return list(self._listeners.get(EventKind(kind), []))
        return [listener for k in EventKind for listener in self._listeners.get(k, [])]

    def has_listeners(self, kind: EventKind | None = None) -> bool:
        return bool(self.listeners(kind))

    def dispatch(self, kind: EventKind, event: RequestEvent) -> RequestEvent:
        for listener in list(self._listeners.get(EventKind(kind), [])):
            listener(event)
        return event


class LocalObserver:
    """
    In-process string-keyed observer.

    Callbacks run in registration order; the first exception stops the remaining
    callbacks for that name.
    """

    def __init__(self) -> None:
        self._callbacks: dict[str, list[Callable[[Any], None]]] = defaultdict(list)

    def listen(self, name: str, callback: Callable[[Any], None]) -> None:
        self._callbacks[name].append(callback)

    def callbacks(self, name: str) -> list[Callable[[Any], None]]:
        return list(self._callbacks.get(name, []))

    def fire(self, name: str, payload: Any) -> None:
        for callback in list(self._callbacks.get(name, [])):
            callback(payload)


class EventDispatcherBridge:
    """Adapts a string-keyed `Observer` to the client's `EventSink` interface."""

    def __init__(self, observer: Observer | None = None) -> None:
        self.observer = observer if observer is not None else LocalObserver()
        self._registered: dict[EventKind, list[Listener]] = defaultdict(list)

    def add_listener(self, kind: EventKind, listener: Listener) -> None:
        kind = EventKind(kind)
        self.observer.listen(kind.value, listener)
        self._registered[kind].append(listener)

    def listeners(self, kind: EventKind | None = None) -> list[Listener]:
        if kind is not None:
            return list(self._registered.get(EventKind(kind), []))
        return [listener for k in EventKind for listener in self._registered.get(k, [])]

    def has_listeners(self, kind: EventKind | None = None) -> bool:
        return bool(self.listeners(kind))

    def dispatch(self, kind: EventKind, event: RequestEvent) -> RequestEvent:
        self.observer.fire(EventKind(kind).value, event)
        return event
