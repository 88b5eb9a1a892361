"""
Client assembly.

`build_client` wires token, dispatcher, cache bridge and request listeners into a
`Client`. `ClientProvider` owns the single client instance for an application;
create it at startup and hand it to consumers (see `api/deps.py`).
"""
from __future__ import annotations

import logging
import threading

import requests

from tmdb_provider.cache import CacheBackend, CacheBridge, CacheStore
from tmdb_provider.client import Client, ClientOptions
from tmdb_provider.configuration import Configuration, ConfigurationRepository, ImageHelper
from tmdb_provider.dispatcher import EventDispatcher, EventDispatcherBridge, EventSink, Observer
from tmdb_provider.errors import TmdbError
from tmdb_provider.events import EventKind
from tmdb_provider.listeners import (
    AcceptJsonRequestListener,
    ApiTokenRequestListener,
    CachedRequestListener,
    ContentTypeJsonRequestListener,
    RequestListener,
    UserAgentRequestListener,
)
from tmdb_provider.settings import TmdbSettings, load_settings
from tmdb_provider.tokens import token_from_settings
from tmdb_provider.transport import HttpTransport

logger = logging.getLogger(__name__)


def build_client(
    settings: TmdbSettings,
    *,
    event_dispatcher: EventSink | None = None,
    observer: Observer | None = None,
    cache_handler: CacheBackend | None = None,
    cache_store: CacheStore | None = None,
    session: requests.Session | None = None,
    transport: HttpTransport | None = None,
) -> Client:
    """
    Build a fully configured client.

    Dispatcher: `event_dispatcher` when supplied, else a bridge over `observer` when
    supplied, else a fresh `EventDispatcher`. Cache: `cache_handler` when supplied,
    else a `CacheBridge` over `cache_store` (or the store named by
    `settings.cache_store`), unless caching is disabled.

    Raises:
        ConfigurationError: if the api key is missing. No listener is registered.
    """

    api_key = settings.require_api_key()
    token = token_from_settings(api_key, settings.bearer_token)

    if event_dispatcher is None:
        event_dispatcher = EventDispatcherBridge(observer) if observer is not None else EventDispatcher()

    options = ClientOptions(
        api_token=token,
        event_dispatcher=event_dispatcher,
        cache_handler=cache_handler,
        cache_ttl=settings.cache_ttl,
        session=session,
        transport=transport,
        base_url=settings.base_url,
        user_agent=settings.user_agent,
        timeout_seconds=settings.timeout_seconds,
    )
    client = Client(options)

    if options.cache_handler is None and settings.cache_enabled:
        client.set_cache_handler(CacheBridge.from_settings(settings, cache_store))

    ed = client.get_event_dispatcher()

    ed.add_listener(EventKind.BEFORE_REQUEST, ApiTokenRequestListener(client.get_token()))
    ed.add_listener(EventKind.BEFORE_REQUEST, AcceptJsonRequestListener())
    ed.add_listener(EventKind.BEFORE_REQUEST, ContentTypeJsonRequestListener())
    ed.add_listener(EventKind.BEFORE_REQUEST, UserAgentRequestListener(options.user_agent))

    cache = client.get_cache_handler()
    if cache is not None:
        request_listener: RequestListener = CachedRequestListener(client.get_http_client(), cache, options.cache_ttl)
    else:
        request_listener = RequestListener(client.get_http_client())
    ed.add_listener(EventKind.REQUEST, request_listener)

    logger.info(
        f"TMDb client built (token={token.kind.value}, cache={type(cache).__name__ if cache else 'off'}, "
        f"dispatcher={type(ed).__name__})"
    )
    return client


class ClientProvider:
    """
    Owns the application's single TMDb client.

    `get_client()` builds the client on first call and returns the same instance
    afterwards; listeners are registered only once. A closed provider stays closed:
    create a new provider instead of reusing it.
    """

    def __init__(
        self,
        settings: TmdbSettings | None = None,
        *,
        event_dispatcher: EventSink | None = None,
        observer: Observer | None = None,
        cache_handler: CacheBackend | None = None,
        cache_store: CacheStore | None = None,
        session: requests.Session | None = None,
        transport: HttpTransport | None = None,
    ) -> None:
        self.settings = settings if settings is not None else load_settings()
        self._build_kwargs = {
            "event_dispatcher": event_dispatcher,
            "observer": observer,
            "cache_handler": cache_handler,
            "cache_store": cache_store,
            "session": session,
            "transport": transport,
        }
        self._client: Client | None = None
        self._closed = False
        self._lock = threading.Lock()

    @staticmethod
    def provides() -> list[type]:
        return [Client]

    @property
    def has_client(self) -> bool:
        return self._client is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def get_client(self) -> Client:
        """
        Raises:
            ConfigurationError: if the client cannot be built from the settings.
            TmdbError: if the provider has been closed.
        """
        client = self._client
        if client is not None:
            return client
        with self._lock:
            if self._closed:
                raise TmdbError("TMDb client provider is closed.")
            if self._client is None:
                self._client = build_client(self.settings, **self._build_kwargs)
            return self._client

    def configuration(self) -> Configuration:
        return ConfigurationRepository(self.get_client()).load()

    def image_helper(self, *, secure: bool = True) -> ImageHelper:
        return ImageHelper(self.configuration(), secure=secure)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            if self._client is not None:
                self._client.close()
                self._client = None
