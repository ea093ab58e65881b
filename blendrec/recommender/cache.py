"""Key-value caches with TTL and a cache-aside helper.

Values passed through the caches must be JSON-serializable so the in-memory
and Redis backends behave the same way.
"""

import copy
import json
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

import redis

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "blendrec"


class Cache(Protocol):
    """Minimal cache contract used by the scorers."""

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss."""
        ...

    def set(self, key: str, value: Any, ttl: int) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""
        ...


class InMemoryTTLCache:
    """Process-local cache with per-entry expiry.

    Thread-safe. ``clock`` defaults to ``time.monotonic`` and can be
    replaced in tests to move time forward.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + ttl, copy.deepcopy(value))

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class RedisCache:
    """Cache backed by a synchronous ``redis.Redis`` client.

    Values are stored as JSON strings with a Redis-side expiry.
    """

    def __init__(self, client, key_prefix: str = DEFAULT_KEY_PREFIX):
        self.client = client
        self.prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = DEFAULT_KEY_PREFIX) -> "RedisCache":
        logger.info(f"Connecting cache to Redis at {url}")
        return cls(redis.Redis.from_url(url, decode_responses=True), key_prefix)

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def get(self, key: str) -> Optional[Any]:
        raw = self.client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl: int) -> None:
        self.client.set(self._key(key), json.dumps(value), ex=ttl)

    def delete(self, key: str) -> None:
        self.client.delete(self._key(key))


def remember(
    cache: Optional[Cache],
    key: str,
    ttl: int,
    compute: Callable[[], Any],
) -> Any:
    """Return the cached value for ``key`` or compute and store it.

    Cache errors are logged and never raised: a failed read falls through to
    ``compute`` and a failed write just skips storing the result. Errors from
    ``compute`` itself propagate.

    Args:
        cache: Cache backend, or None to always compute.
        key: Cache key.
        ttl: Time to live in seconds for a freshly computed value.
        compute: Zero-argument function producing the value.

    Returns:
        The cached or freshly computed value.
    """
    if cache is None:
        return compute()

    try:
        cached = cache.get(key)
    except Exception as e:
        logger.warning(
            "Cache read failed, computing directly",
            extra={"cache_key": key, "error": str(e), "error_type": type(e).__name__},
        )
        cached = None

    if cached is not None:
        logger.debug("Cache hit", extra={"cache_key": key})
        return cached

    value = compute()

    try:
        cache.set(key, value, ttl)
    except Exception as e:
        logger.warning(
            "Cache write failed, result not cached",
            extra={"cache_key": key, "error": str(e), "error_type": type(e).__name__},
        )

    return value
