"""
Response cache for the TMDb client.

`CacheBridge` adapts a generic key/value `CacheStore` to the three-method
`CacheBackend` capability the client uses. Store failures never reach the
caller: they are logged and treated as a cache miss.

Stores are resolved by name (`memory`, `redis`, or anything registered with
`register_cache_store`). When a cache tag is configured, entries are written
through `store.tags(tag)` so the whole group can be flushed at once.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Protocol, runtime_checkable

import redis
from redis.exceptions import RedisError

from tmdb_provider.errors import CacheError, ConfigurationError
from tmdb_provider.settings import TmdbSettings

logger = logging.getLogger(__name__)


@runtime_checkable
class CacheBackend(Protocol):
    """Cache capability expected by the client."""

    def fetch(self, key: str) -> bytes | None: ...

    def store(self, key: str, value: bytes, ttl: int | None) -> None: ...

    def invalidate(self, key: str) -> None: ...


class CacheStore(Protocol):
    """Generic key/value store with optional tag support."""

    def get(self, key: str) -> bytes | None: ...

    def put(self, key: str, value: bytes, ttl: int | None) -> None: ...

    def delete(self, key: str) -> None: ...

    def has(self, key: str) -> bool: ...


class TaggedCache:
    """
    View of a store where every key belongs to one tag.

    Keys are namespaced by the tag; `flush()` removes every key written through the view.
    """

    def __init__(self, store: "BaseCacheStore", tag: str) -> None:
        if not tag:
            raise ValueError("Cache tag must not be empty.")
        self.store = store
        self.tag = tag

    def _key(self, key: str) -> str:
        return f"tag:{self.tag}:{key}"

    def get(self, key: str) -> bytes | None:
        return self.store.get(self._key(key))

    def put(self, key: str, value: bytes, ttl: int | None) -> None:
        full_key = self._key(key)
        self.store.put(full_key, value, ttl)
        self.store.add_tag_member(self.tag, full_key, ttl)

    def delete(self, key: str) -> None:
        self.store.delete(self._key(key))

    def has(self, key: str) -> bool:
        return self.store.has(self._key(key))

    def flush(self) -> None:
        for full_key in self.store.tag_members(self.tag):
            self.store.delete(full_key)
        self.store.forget_tag(self.tag)


class BaseCacheStore:
    def get(self, key: str) -> bytes | None:
        raise NotImplementedError

    def put(self, key: str, value: bytes, ttl: int | None) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def add_tag_member(self, tag: str, key: str, ttl: int | None = None) -> None:
        raise NotImplementedError

    def tag_members(self, tag: str) -> list[str]:
        raise NotImplementedError

    def forget_tag(self, tag: str) -> None:
        raise NotImplementedError

    def tags(self, tag: str) -> TaggedCache:
        return TaggedCache(self, tag)


class InMemoryCacheStore(BaseCacheStore):
    """
    Process-local store with TTL expiry.

    Not shared between workers; fine for local dev and tests. Expired entries are
    dropped on read and swept from the whole store (tag index included) on writes,
    at most once per `sweep_interval` seconds.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic, sweep_interval: float = 60.0) -> None:
        self._entries: dict[str, tuple[bytes, float | None]] = {}  # key -> (value, expires_at)
        self._tags: dict[str, set[str]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self.sweep_interval = sweep_interval
        self._next_sweep_at: float | None = None

    def get(self, key: str) -> bytes | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def put(self, key: str, value: bytes, ttl: int | None) -> None:
        now = self._clock()
        expires_at = None if ttl is None else now + ttl
        with self._lock:
            if self._next_sweep_at is None or now >= self._next_sweep_at:
                self._sweep(now)
                self._next_sweep_at = now + self.sweep_interval
            self._entries[key] = (bytes(value), expires_at)

    def _sweep(self, now: float) -> None:
        # Caller holds the lock.
        expired = [k for k, (_, expires_at) in self._entries.items() if expires_at is not None and now >= expires_at]
        for key in expired:
            del self._entries[key]
        for tag in list(self._tags):
            members = {k for k in self._tags[tag] if k in self._entries}
            if members:
                self._tags[tag] = members
            else:
                del self._tags[tag]
        if expired:
            logger.debug(f"Swept {len(expired)} expired cache entries")

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def add_tag_member(self, tag: str, key: str, ttl: int | None = None) -> None:
        with self._lock:
            self._tags.setdefault(tag, set()).add(key)

    def tag_members(self, tag: str) -> list[str]:
        with self._lock:
            return sorted(self._tags.get(tag, set()))

    def forget_tag(self, tag: str) -> None:
        with self._lock:
            self._tags.pop(tag, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._tags.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisCacheStore(BaseCacheStore):
    """Redis-backed store; shared across workers and instances."""

    def __init__(self, client: redis.Redis, *, prefix: str = "tmdb:") -> None:
        self._redis = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, redis_url: str, *, prefix: str = "tmdb:") -> "RedisCacheStore":
        return cls(redis.Redis.from_url(redis_url), prefix=prefix)

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _tag_set(self, tag: str) -> str:
        return f"{self.prefix}__tags__:{tag}"

    def get(self, key: str) -> bytes | None:
        try:
            value = self._redis.get(self._key(key))
        except RedisError as e:
            raise CacheError(f"Redis get failed for {key!r}: {e}") from e
        if value is None:
            return None
        return value if isinstance(value, bytes) else str(value).encode("utf-8")

    def put(self, key: str, value: bytes, ttl: int | None) -> None:
        try:
            if ttl is None:
                self._redis.set(self._key(key), value)
            else:
                self._redis.setex(self._key(key), int(ttl), value)
        except RedisError as e:
            raise CacheError(f"Redis put failed for {key!r}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._redis.delete(self._key(key))
        except RedisError as e:
            raise CacheError(f"Redis delete failed for {key!r}: {e}") from e

    def has(self, key: str) -> bool:
        try:
            return bool(self._redis.exists(self._key(key)))
        except RedisError as e:
            raise CacheError(f"Redis exists failed for {key!r}: {e}") from e

    def add_tag_member(self, tag: str, key: str, ttl: int | None = None) -> None:
        """Track `key` under `tag`. The tag set takes the expiry of its newest member."""
        tag_set = self._tag_set(tag)
        try:
            self._redis.sadd(tag_set, key)
            if ttl is None:
                self._redis.persist(tag_set)
            else:
                self._redis.expire(tag_set, int(ttl))
        except RedisError as e:
            raise CacheError(f"Redis tag update failed for {tag!r}: {e}") from e

    def tag_members(self, tag: str) -> list[str]:
        try:
            members = self._redis.smembers(self._tag_set(tag))
        except RedisError as e:
            raise CacheError(f"Redis tag read failed for {tag!r}: {e}") from e
        return sorted(m.decode("utf-8") if isinstance(m, bytes) else str(m) for m in members)

    def forget_tag(self, tag: str) -> None:
        try:
            self._redis.delete(self._tag_set(tag))
        except RedisError as e:
            raise CacheError(f"Redis tag delete failed for {tag!r}: {e}") from e


class CacheBridge:
    """
    `CacheBackend` over a generic store.

    Any exception raised by the store is logged and recovered: reads become a miss,
    writes and invalidations become no-ops.
    """

    def __init__(self, repository: CacheStore | TaggedCache) -> None:
        self.repository = repository

    @classmethod
    def from_settings(cls, settings: TmdbSettings, store: CacheStore | None = None) -> "CacheBridge":
        repository = store if store is not None else get_cache_store(settings.cache_store, settings)
        if settings.cache_tag:
            tags = getattr(repository, "tags", None)
            if callable(tags):
                repository = tags(settings.cache_tag)
            else:
                logger.info(f"Cache store {type(repository).__name__} does not support tags; ignoring cache_tag")
        return cls(repository)

    @property
    def tag(self) -> str | None:
        return getattr(self.repository, "tag", None)

    def fetch(self, key: str) -> bytes | None:
        try:
            return self.repository.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}, treating as miss: {e}")
            return None

    def store(self, key: str, value: bytes, ttl: int | None) -> None:
        if ttl is not None and ttl <= 0:
            self.invalidate(key)
            return
        try:
            self.repository.put(key, value, ttl)
        except Exception as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    def invalidate(self, key: str) -> None:
        try:
            self.repository.delete(key)
        except Exception as e:
            logger.warning(f"Cache invalidate failed for {key}: {e}")

    def flush(self) -> bool:
        """Flush the tag group. Returns False when the bridge is untagged or the flush failed."""
        flush = getattr(self.repository, "flush", None)
        if flush is None:
            return False
        try:
            flush()
        except Exception as e:
            logger.warning(f"Cache flush failed for tag {self.tag}: {e}")
            return False
        return True


# --- Named store registry ---

StoreFactory = Callable[[TmdbSettings | None], BaseCacheStore]


def _memory_store(settings: TmdbSettings | None) -> BaseCacheStore:
    return InMemoryCacheStore()


def _redis_store(settings: TmdbSettings | None) -> BaseCacheStore:
    redis_url = settings.redis_url if settings is not None else None
    if not redis_url:
        raise ConfigurationError("Cache store 'redis' requires REDIS_URL to be set.")
    return RedisCacheStore.from_url(redis_url)


_STORE_FACTORIES: dict[str, StoreFactory] = {
    "memory": _memory_store,
    "array": _memory_store,
    "redis": _redis_store,
}
_STORES: dict[str, BaseCacheStore] = {}
_registry_lock = threading.Lock()


def register_cache_store(name: str, factory: StoreFactory) -> None:
    with _registry_lock:
        _STORE_FACTORIES[name] = factory
        _STORES.pop(name, None)


def get_cache_store(name: str, settings: TmdbSettings | None = None) -> BaseCacheStore:
    """
    Return the store registered under `name`, creating it on first use.

    Raises:
        ConfigurationError: if no store is registered under `name`.
    """
    with _registry_lock:
        if name in _STORES:
            return _STORES[name]
        factory = _STORE_FACTORIES.get(name)
        if factory is None:
            raise ConfigurationError(f"Unknown cache store: {name!r}")
        store = factory(settings)
        _STORES[name] = store
        logger.info(f"Cache store '{name}' initialized ({type(store).__name__})")
        return store


def reset_cache_stores() -> None:
    with _registry_lock:
        _STORES.clear()
