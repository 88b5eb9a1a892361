from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from tmdb_provider.errors import AuthenticationError

_INVALID_TOKEN_CHARS = re.compile(r"[\s\x00-\x1f\x7f]")


class TokenKind(str, Enum):
    """How the credential is attached to a request."""

    API_KEY = "api_key"
    BEARER = "bearer"


@dataclass(frozen=True)
class ApiToken:
    """v3 api key, sent as the `api_key` query parameter."""

    value: str

    @property
    def kind(self) -> TokenKind:
        return TokenKind.API_KEY

    def validate(self) -> str:
        token = self.value if isinstance(self.value, str) else ""
        if not token:
            raise AuthenticationError("TMDb api token is empty.")
        if _INVALID_TOKEN_CHARS.search(token):
            raise AuthenticationError("TMDb api token contains whitespace or control characters.")
        return token

    def __repr__(self) -> str:
        return f"{type(self).__name__}(value='***')"


@dataclass(frozen=True, repr=False)
class BearerToken(ApiToken):
    """v4 read access token, sent as `Authorization: Bearer ...`."""

    @property
    def kind(self) -> TokenKind:
        return TokenKind.BEARER


def token_from_settings(api_key: str, bearer_token: str | None = None) -> ApiToken:
    if bearer_token:
        return BearerToken(bearer_token)
    return ApiToken(api_key)
