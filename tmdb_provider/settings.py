"""
Settings for the TMDb client provider.

Settings are read once at startup, either from the environment (after loading
`.env` with python-dotenv) or from an explicit mapping using the short keys
(`api_key`, `cache_store`, `cache_tag`, ...).
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from tmdb_provider.errors import ConfigurationError
from tmdb_provider.utils.env import load_env, parse_bool

TMDB_API_BASE_URL = "https://api.themoviedb.org/3"
DEFAULT_USER_AGENT = "tmdb-provider/0.1.0"
DEFAULT_CACHE_STORE = "memory"
DEFAULT_CACHE_TTL = 3600

# Short key -> environment variable.
ENV_KEYS: dict[str, str] = {
    "api_key": "TMDB_API_KEY",
    "bearer_token": "TMDB_BEARER",
    "cache_store": "TMDB_CACHE_STORE",
    "cache_tag": "TMDB_CACHE_TAG",
    "cache_ttl": "TMDB_CACHE_TTL",
    "cache_enabled": "TMDB_CACHE_ENABLED",
    "base_url": "TMDB_BASE_URL",
    "user_agent": "TMDB_USER_AGENT",
    "timeout_seconds": "TMDB_TIMEOUT_SECONDS",
    "redis_url": "REDIS_URL",
}


@dataclass(frozen=True)
class TmdbSettings:
    api_key: str
    bearer_token: str | None = None
    cache_store: str = DEFAULT_CACHE_STORE
    cache_tag: str | None = None
    cache_ttl: int = DEFAULT_CACHE_TTL
    cache_enabled: bool = True
    base_url: str = TMDB_API_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = 20.0
    redis_url: str | None = None

    def require_api_key(self) -> str:
        resolved = (self.api_key or "").strip()
        if not resolved:
            raise ConfigurationError("TMDb api_key is not set (TMDB_API_KEY).")
        return resolved


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_int(key: str, value: Any, default: int) -> int:
    text = _clean(value)
    if text is None:
        return default
    try:
        return int(text)
    except ValueError as exc:
        raise ConfigurationError(f"Setting {key!r} must be an integer, got {value!r}.") from exc


def _to_float(key: str, value: Any, default: float) -> float:
    text = _clean(value)
    if text is None:
        return default
    try:
        return float(text)
    except ValueError as exc:
        raise ConfigurationError(f"Setting {key!r} must be a number, got {value!r}.") from exc


def settings_from_mapping(values: Mapping[str, Any]) -> TmdbSettings:
    """
    Build settings from a mapping of short keys.

    The api key is not validated here; `build_client` validates it so a missing key
    surfaces at first client construction.
    """

    try:
        cache_enabled = parse_bool(values.get("cache_enabled"), default=True)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc

    cache_ttl = _to_int("cache_ttl", values.get("cache_ttl"), DEFAULT_CACHE_TTL)
    if cache_ttl < 0:
        raise ConfigurationError("Setting 'cache_ttl' must not be negative.")

    return TmdbSettings(
        api_key=_clean(values.get("api_key")) or "",
        bearer_token=_clean(values.get("bearer_token")),
        cache_store=_clean(values.get("cache_store")) or DEFAULT_CACHE_STORE,
        cache_tag=_clean(values.get("cache_tag")),
        cache_ttl=cache_ttl,
        cache_enabled=cache_enabled,
        base_url=(_clean(values.get("base_url")) or TMDB_API_BASE_URL).rstrip("/"),
        user_agent=_clean(values.get("user_agent")) or DEFAULT_USER_AGENT,
        timeout_seconds=_to_float("timeout_seconds", values.get("timeout_seconds"), 20.0),
        redis_url=_clean(values.get("redis_url")),
    )


def load_settings(values: Mapping[str, Any] | None = None, *, load_dotenv_file: bool = True) -> TmdbSettings:
    """
    Load settings from `values` when given, otherwise from the environment.
    """

    if values is not None:
        return settings_from_mapping(values)

    if load_dotenv_file:
        load_env()
    return settings_from_mapping({key: os.getenv(env_name) for key, env_name in ENV_KEYS.items()})
