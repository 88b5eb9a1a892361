"""
HTTP transport for the TMDb client.

A thin wrapper over `requests.Session` with retry on 429/5xx. Requests arrive here
fully prepared by the before-request listeners; the transport only sends them.
"""
from __future__ import annotations

import json
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import urlencode

import requests
from requests.structures import CaseInsensitiveDict

from tmdb_provider.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


@dataclass
class HttpRequest:
    method: str
    url: str
    params: dict[str, Any] = field(default_factory=dict)
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: bytes | None = None

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        if not isinstance(self.headers, CaseInsensitiveDict):
            self.headers = CaseInsensitiveDict(self.headers or {})

    @property
    def has_body(self) -> bool:
        return bool(self.body)

    def full_url(self) -> str:
        if not self.params:
            return self.url
        return f"{self.url}?{urlencode(sorted(self.params.items()), doseq=True)}"


@dataclass
class HttpResponse:
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    content: bytes = b""
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        try:
            return json.loads(self.content or b"null")
        except ValueError as exc:
            raise TransportError(
                "TMDb returned non-JSON response.",
                status_code=self.status_code,
                body_snippet=self.text[:400],
            ) from exc


class HttpTransport:
    """Sends prepared requests with `requests`, retrying rate limits and server errors."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout_seconds: float = 20.0,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = 1.0,
        sleep=time.sleep,
    ) -> None:
        self._session = session or requests.Session()
        self._owns_session = session is None
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max(1, int(max_attempts))
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    @property
    def session(self) -> requests.Session:
        return self._session

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def _delay(self, attempt: int, retry_after: str | None = None) -> float:
        delay = self.backoff_seconds * (2**attempt)
        retry_after = (retry_after or "").strip()
        if retry_after.isdigit():
            delay = max(delay, float(retry_after))
        return delay + random.uniform(0.0, delay * 0.25)

    def send(self, request: HttpRequest) -> HttpResponse:
        """
        Send `request` and return the final response.

        Raises:
            TransportError: on network failure after retries, or a non-2xx status.
        """

        last_response: requests.Response | None = None
        for attempt in range(self.max_attempts):
            try:
                resp = self._session.request(
                    request.method,
                    request.url,
                    params=request.params or None,
                    headers=dict(request.headers),
                    data=request.body,
                    timeout=self.timeout_seconds,
                )
            except requests.RequestException as exc:
                if attempt < self.max_attempts - 1:
                    logger.debug(f"TMDb request to {request.url} failed ({exc}); retrying")
                    self._sleep(self._delay(attempt))
                    continue
                raise TransportError(f"TMDb request failed: {exc}") from exc

            last_response = resp
            if 200 <= resp.status_code < 300:
                break

            retryable = resp.status_code == 429 or 500 <= resp.status_code < 600
            if retryable and attempt < self.max_attempts - 1:
                logger.warning(f"TMDb returned HTTP {resp.status_code} for {request.url}; retrying")
                self._sleep(self._delay(attempt, resp.headers.get("Retry-After")))
                continue

            raise TransportError(
                f"TMDb request failed with HTTP {resp.status_code}.",
                status_code=resp.status_code,
                body_snippet=(resp.text or "")[:400],
            )

        if last_response is None:
            raise TransportError("TMDb request failed (no response).")

        return HttpResponse(
            status_code=last_response.status_code,
            headers=dict(last_response.headers),
            content=last_response.content or b"",
        )
