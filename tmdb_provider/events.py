"""
Event kinds and the request envelope passed through the listener pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from tmdb_provider.transport import HttpRequest, HttpResponse


class EventKind(str, Enum):
    """Events fired by the client while handling a request."""

    # Listeners mutate the outgoing request
    BEFORE_REQUEST = "before_request"

    # The transport listener sends the request and attaches the response
    REQUEST = "request"

    # Fired with the response attached
    AFTER_REQUEST = "after_request"


@dataclass
class RequestEvent:
    """
    Mutable envelope for one outgoing request.

    The same instance is passed through every listener for every event kind.
    """

    request: HttpRequest
    response: HttpResponse | None = None
    attributes: dict[str, object] = field(default_factory=dict)

    @property
    def headers(self):
        return self.request.headers

    @property
    def has_response(self) -> bool:
        return self.response is not None


Listener = Callable[[RequestEvent], None]
