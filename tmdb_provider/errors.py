from __future__ import annotations


class TmdbError(RuntimeError):
    """Base class for all errors raised by the TMDb provider."""

    pass


class ConfigurationError(TmdbError):
    """Raised when required settings (e.g. the API key) are missing or invalid."""

    pass


class CacheError(TmdbError):
    """Raised by cache stores. The cache bridge recovers from it as a miss."""

    pass


class RequestPreparationError(TmdbError):
    """Raised when a before-request listener fails and the request is aborted."""

    pass


class AuthenticationError(RequestPreparationError):
    """Raised when the API token is empty or malformed, before any network I/O."""

    pass


class TransportError(TmdbError):
    def __init__(self, message: str, *, status_code: int | None = None, body_snippet: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet
