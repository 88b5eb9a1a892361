from __future__ import annotations

import pytest

from tmdb_provider.errors import ConfigurationError
from tmdb_provider.settings import (
    DEFAULT_CACHE_STORE,
    DEFAULT_CACHE_TTL,
    ENV_KEYS,
    TMDB_API_BASE_URL,
    TmdbSettings,
    load_settings,
)
from tmdb_provider.utils.env import parse_bool


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    # setenv first so the undo also removes anything a loaded .env file adds
    for env_name in [*ENV_KEYS.values(), "TMDB_ENV_FILE"]:
        monkeypatch.setenv(env_name, "")
        monkeypatch.delenv(env_name)
    return monkeypatch


def test_load_settings_from_mapping_uses_short_keys() -> None:
    settings = load_settings({"api_key": " abc123 ", "cache_store": "redis", "cache_tag": "tmdb"})
    assert settings.api_key == "abc123"
    assert settings.cache_store == "redis"
    assert settings.cache_tag == "tmdb"
    assert settings.cache_ttl == DEFAULT_CACHE_TTL
    assert settings.base_url == TMDB_API_BASE_URL


def test_empty_cache_tag_means_no_tagging() -> None:
    assert load_settings({"api_key": "abc", "cache_tag": ""}).cache_tag is None


def test_defaults_when_mapping_is_empty() -> None:
    settings = load_settings({})
    assert settings.api_key == ""
    assert settings.cache_store == DEFAULT_CACHE_STORE
    assert settings.cache_enabled is True
    assert settings.bearer_token is None


def test_load_settings_from_environment(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("TMDB_API_KEY", "env-key")
    clean_env.setenv("TMDB_CACHE_TTL", "60")
    clean_env.setenv("TMDB_CACHE_ENABLED", "false")
    clean_env.setenv("TMDB_BASE_URL", "https://tmdb.example/3/")

    settings = load_settings(load_dotenv_file=False)

    assert settings.api_key == "env-key"
    assert settings.cache_ttl == 60
    assert settings.cache_enabled is False
    assert settings.base_url == "https://tmdb.example/3"


def test_load_settings_reads_env_file(clean_env: pytest.MonkeyPatch, tmp_path) -> None:  # noqa: ANN001
    env_file = tmp_path / "tmdb.env"
    env_file.write_text("TMDB_API_KEY=from-file\nTMDB_CACHE_TAG=movies\n", encoding="utf-8")
    clean_env.setenv("TMDB_ENV_FILE", str(env_file))

    settings = load_settings()

    assert settings.api_key == "from-file"
    assert settings.cache_tag == "movies"


@pytest.mark.parametrize(
    "values",
    [
        {"api_key": "abc", "cache_ttl": "soon"},
        {"api_key": "abc", "cache_ttl": "-1"},
        {"api_key": "abc", "cache_enabled": "maybe"},
        {"api_key": "abc", "timeout_seconds": "fast"},
    ],
)
def test_invalid_values_raise_configuration_error(values: dict) -> None:
    with pytest.raises(ConfigurationError):
        load_settings(values)


def test_require_api_key() -> None:
    assert TmdbSettings(api_key=" abc ").require_api_key() == "abc"
    with pytest.raises(ConfigurationError):
        TmdbSettings(api_key="").require_api_key()


def test_settings_are_immutable() -> None:
    settings = TmdbSettings(api_key="abc")
    with pytest.raises(AttributeError):
        settings.api_key = "other"  # type: ignore[misc]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("TRUE", True), ("on", True), ("0", False), ("no", False), ("", True), (None, True)],
)
def test_parse_bool(raw, expected: bool) -> None:  # noqa: ANN001
    assert parse_bool(raw, default=True) is expected
