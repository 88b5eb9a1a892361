"""
Request listeners.

Before-request listeners only mutate the outgoing request. The transport
listeners (`RequestListener`, `CachedRequestListener`) run on `EventKind.REQUEST`
and attach the response to the event.
"""
from __future__ import annotations

import hashlib
import json
import logging

from tmdb_provider.cache import CacheBackend
from tmdb_provider.events import RequestEvent
from tmdb_provider.settings import DEFAULT_USER_AGENT
from tmdb_provider.tokens import ApiToken, TokenKind
from tmdb_provider.transport import HttpResponse, HttpTransport

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"

# Query params never folded into cache keys.
_CREDENTIAL_PARAMS = frozenset({"api_key"})


class ApiTokenRequestListener:
    """Attaches the credential: `api_key` query param or `Authorization: Bearer` header."""

    def __init__(self, token: ApiToken) -> None:
        self.token = token

    def __call__(self, event: RequestEvent) -> None:
        value = self.token.validate()
        if self.token.kind is TokenKind.BEARER:
            event.request.headers["Authorization"] = f"Bearer {value}"
        else:
            event.request.params["api_key"] = value


class AcceptJsonRequestListener:
    def __call__(self, event: RequestEvent) -> None:
        event.request.headers["Accept"] = JSON_MEDIA_TYPE


class ContentTypeJsonRequestListener:
    """Sets `Content-Type: application/json` for requests carrying a body."""

    def __call__(self, event: RequestEvent) -> None:
        if event.request.has_body:
            event.request.headers["Content-Type"] = JSON_MEDIA_TYPE


class UserAgentRequestListener:
    def __init__(self, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self.user_agent = user_agent

    def __call__(self, event: RequestEvent) -> None:
        if "User-Agent" not in event.request.headers:
            event.request.headers["User-Agent"] = self.user_agent


class RequestListener:
    """Sends the prepared request through the transport."""

    def __init__(self, transport: HttpTransport) -> None:
        self.transport = transport

    def __call__(self, event: RequestEvent) -> None:
        if event.response is not None:
            return
        event.response = self.transport.send(event.request)


def cache_key_for(event: RequestEvent) -> str:
    """
    Stable cache key from method, url, and params.

    Credentials are excluded so keys do not leak the api key into the store.
    """
    request = event.request
    params = {k: v for k, v in request.params.items() if k not in _CREDENTIAL_PARAMS}
    raw = json.dumps(
        [request.method, request.url, sorted((str(k), str(v)) for k, v in params.items())],
        separators=(",", ":"),
    )
    return "tmdb:" + hashlib.sha256(raw.encode("utf-8")).hexdigest()


class CachedRequestListener(RequestListener):
    """
    Transport listener with a read-through cache for GET requests.

    Only successful (200) GET responses are stored.
    """

    def __init__(self, transport: HttpTransport, cache: CacheBackend, ttl: int | None = 3600) -> None:
        super().__init__(transport)
        self.cache = cache
        self.ttl = ttl

    def __call__(self, event: RequestEvent) -> None:
        if event.response is not None:
            return

        if event.request.method != "GET":
            super().__call__(event)
            return

        key = cache_key_for(event)
        cached = self.cache.fetch(key)
        if cached is not None:
            logger.debug(f"Cache hit for {event.request.url}")
            event.response = HttpResponse(
                status_code=200,
                headers={"Content-Type": JSON_MEDIA_TYPE},
                content=cached,
                from_cache=True,
            )
            return

        super().__call__(event)
        response = event.response
        if response is not None and response.status_code == 200:
            self.cache.store(key, response.content, self.ttl)
