from __future__ import annotations

import pytest

from tmdb_provider.dispatcher import EventDispatcher, EventDispatcherBridge, EventSink, LocalObserver
from tmdb_provider.events import EventKind, RequestEvent
from tmdb_provider.transport import HttpRequest


def _event() -> RequestEvent:
    return RequestEvent(request=HttpRequest(method="GET", url="https://api.themoviedb.org/3/configuration"))


@pytest.fixture(params=["typed", "bridge"])
def dispatcher(request: pytest.FixtureRequest):
    if request.param == "typed":
        return EventDispatcher()
    return EventDispatcherBridge(LocalObserver())


def test_dispatchers_implement_event_sink(dispatcher) -> None:  # noqa: ANN001
    assert isinstance(dispatcher, EventSink)


def test_dispatch_runs_listeners_in_registration_order(dispatcher) -> None:  # noqa: ANN001
    calls: list[str] = []
    dispatcher.add_listener(EventKind.BEFORE_REQUEST, lambda e: calls.append("first"))
    dispatcher.add_listener(EventKind.BEFORE_REQUEST, lambda e: calls.append("second"))
    dispatcher.add_listener(EventKind.BEFORE_REQUEST, lambda e: calls.append("third"))

    event = _event()
    assert dispatcher.dispatch(EventKind.BEFORE_REQUEST, event) is event
    assert calls == ["first", "second", "third"]


def test_dispatch_only_runs_listeners_for_that_kind(dispatcher) -> None:  # noqa: ANN001
    calls: list[str] = []
    dispatcher.add_listener(EventKind.BEFORE_REQUEST, lambda e: calls.append("before"))
    dispatcher.add_listener(EventKind.REQUEST, lambda e: calls.append("request"))

    dispatcher.dispatch(EventKind.REQUEST, _event())
    assert calls == ["request"]


def test_listener_exception_aborts_remaining_listeners(dispatcher) -> None:  # noqa: ANN001
    calls: list[str] = []

    def boom(event: RequestEvent) -> None:
        raise ValueError("boom")

    dispatcher.add_listener(EventKind.BEFORE_REQUEST, lambda e: calls.append("first"))
    dispatcher.add_listener(EventKind.BEFORE_REQUEST, boom)
    dispatcher.add_listener(EventKind.BEFORE_REQUEST, lambda e: calls.append("third"))

    with pytest.raises(ValueError, match="boom"):
        dispatcher.dispatch(EventKind.BEFORE_REQUEST, _event())
    assert calls == ["first"]


def test_listeners_share_the_same_event(dispatcher) -> None:  # noqa: ANN001
    def set_header(event: RequestEvent) -> None:
        event.request.headers["X-Step"] = "1"

    seen: list[str | None] = []
    dispatcher.add_listener(EventKind.BEFORE_REQUEST, set_header)
    dispatcher.add_listener(EventKind.BEFORE_REQUEST, lambda e: seen.append(e.request.headers.get("x-step")))

    dispatcher.dispatch(EventKind.BEFORE_REQUEST, _event())
    assert seen == ["1"]


def test_listeners_returns_copy(dispatcher) -> None:  # noqa: ANN001
    listener = lambda e: None  # noqa: E731
    dispatcher.add_listener(EventKind.AFTER_REQUEST, listener)
    listeners = dispatcher.listeners(EventKind.AFTER_REQUEST)
    listeners.clear()
    assert dispatcher.listeners(EventKind.AFTER_REQUEST) == [listener]
    assert dispatcher.has_listeners() is True


def test_bridge_uses_string_keys_on_observer() -> None:
    observer = LocalObserver()
    bridge = EventDispatcherBridge(observer)
    listener = lambda e: None  # noqa: E731
    bridge.add_listener(EventKind.BEFORE_REQUEST, listener)
    assert observer.callbacks("before_request") == [listener]


def test_dispatch_without_listeners_is_noop() -> None:
    event = _event()
    assert EventDispatcher().dispatch(EventKind.AFTER_REQUEST, event) is event
    assert EventDispatcherBridge().dispatch(EventKind.AFTER_REQUEST, event) is event
