from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import requests

from tmdb_provider.cache import CacheBackend
from tmdb_provider.dispatcher import EventDispatcher, EventSink
from tmdb_provider.errors import RequestPreparationError, TransportError
from tmdb_provider.events import EventKind, RequestEvent
from tmdb_provider.settings import DEFAULT_USER_AGENT, TMDB_API_BASE_URL
from tmdb_provider.tokens import ApiToken
from tmdb_provider.transport import HttpRequest, HttpResponse, HttpTransport

logger = logging.getLogger(__name__)


@dataclass
class ClientOptions:
    """
    Everything the client is assembled from.

    `session` / `transport` are placeholders: when left as None the client creates
    its own `requests.Session` and `HttpTransport`. `cache_ttl` and `user_agent`
    are read by the request listeners `build_client` registers.
    """

    api_token: ApiToken
    event_dispatcher: EventSink | None = None
    cache_handler: CacheBackend | None = None
    cache_ttl: int | None = 3600
    session: requests.Session | None = None
    transport: HttpTransport | None = None
    base_url: str = TMDB_API_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = 20.0


class Client:
    """
    TMDb API client.

    Every request goes through the event dispatcher: `BEFORE_REQUEST` listeners
    prepare it, the `REQUEST` listener sends it, `AFTER_REQUEST` listeners observe
    the response.
    """

    def __init__(self, options: ClientOptions) -> None:
        self.options = options
        self._token = options.api_token
        self._dispatcher: EventSink = (
            options.event_dispatcher if options.event_dispatcher is not None else EventDispatcher()
        )
        self._http_client = options.transport or HttpTransport(
            options.session,
            timeout_seconds=options.timeout_seconds,
        )
        self._cache_handler = options.cache_handler
        self.base_url = options.base_url.rstrip("/")

    def get_token(self) -> ApiToken:
        return self._token

    def get_http_client(self) -> HttpTransport:
        return self._http_client

    def get_event_dispatcher(self) -> EventSink:
        return self._dispatcher

    def set_event_dispatcher(self, dispatcher: EventSink) -> None:
        self._dispatcher = dispatcher
        self.options.event_dispatcher = dispatcher

    def get_cache_handler(self) -> CacheBackend | None:
        return self._cache_handler

    def set_cache_handler(self, cache_handler: CacheBackend | None) -> None:
        self._cache_handler = cache_handler
        self.options.cache_handler = cache_handler

    def close(self) -> None:
        self._http_client.close()

    # --- Request plumbing ---

    def build_request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpRequest:
        url = f"{self.base_url}/{path.lstrip('/')}"
        body = None
        if json_body is not None:
            body = json.dumps(json_body, separators=(",", ":")).encode("utf-8")
        clean_params = {k: v for k, v in (params or {}).items() if v is not None}
        return HttpRequest(method=method, url=url, params=clean_params, headers=dict(headers or {}), body=body)

    def send(self, request: HttpRequest) -> HttpResponse:
        """
        Run `request` through the listener pipeline.

        Raises:
            RequestPreparationError: a before-request listener failed; nothing was sent.
            TransportError: raised by the transport, passed through unchanged.
        """
        event = RequestEvent(request=request)

        try:
            self._dispatcher.dispatch(EventKind.BEFORE_REQUEST, event)
        except RequestPreparationError:
            raise
        except Exception as exc:
            raise RequestPreparationError(f"Preparing {request.method} {request.url} failed: {exc}") from exc

        self._dispatcher.dispatch(EventKind.REQUEST, event)
        if event.response is None:
            raise TransportError(f"No request listener handled {request.method} {request.url}.")

        self._dispatcher.dispatch(EventKind.AFTER_REQUEST, event)
        return event.response

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        response = self.send(self.build_request(method, path, params=params, json_body=json_body, headers=headers))
        return response.json()

    def get(self, path: str, **params: Any) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json_body: Any = None, **params: Any) -> Any:
        return self.request("POST", path, params=params, json_body=json_body)

    def delete(self, path: str, **params: Any) -> Any:
        return self.request("DELETE", path, params=params)

    # --- API helpers ---

    def _object(self, payload: Any) -> dict[str, Any]:
        if not isinstance(payload, dict):
            raise TransportError("TMDb returned unexpected JSON shape (not an object).")
        return payload

    def get_movie(
        self,
        movie_id: int,
        *,
        language: str | None = None,
        append_to_response: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"language": language}
        append_key = sorted({p.strip() for p in (append_to_response or []) if p and p.strip()})
        if append_key:
            params["append_to_response"] = ",".join(append_key)
        return self._object(self.request("GET", f"movie/{int(movie_id)}", params=params))

    def get_tv(self, tv_id: int, *, language: str | None = None) -> dict[str, Any]:
        return self._object(self.request("GET", f"tv/{int(tv_id)}", params={"language": language}))

    def search_movies(
        self,
        query: str,
        *,
        page: int = 1,
        language: str | None = None,
        include_adult: bool = False,
        year: int | None = None,
    ) -> dict[str, Any]:
        query = (query or "").strip()
        if not query:
            raise ValueError("Search query is empty.")
        params: dict[str, Any] = {
            "query": query,
            "page": int(page),
            "language": language,
            "include_adult": "true" if include_adult else "false",
            "year": year,
        }
        return self._object(self.request("GET", "search/movie", params=params))

    def get_configuration(self) -> dict[str, Any]:
        return self._object(self.request("GET", "configuration"))
