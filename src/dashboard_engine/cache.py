"""
Process-local TTL cache for computed dashboard payloads.

Entries expire lazily: an entry past its TTL is dropped the next time it is
read, and nothing sweeps entries that are never read again. The store lives
in this process only, so several server processes each keep their own
independent copy. Code that needs a shared store should depend on
``CacheBackend`` and inject a distributed implementation.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Protocol, TypeVar

from .config import load_engine_config
from .models import CacheEntry, CacheStats

logger = logging.getLogger(__name__)

V = TypeVar("V")


class CacheBackend(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        ...

    def clear(self, key: Optional[str] = None) -> None:
        ...


class DataCache:
    def __init__(
        self,
        default_ttl_seconds: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock
        self._store: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        entry = CacheEntry(value=value, inserted_at=self._clock(), ttl_ms=int(ttl * 1000))
        with self._lock:
            self._store[key] = entry

    def get(self, key: str) -> Optional[Any]:
        """
        Return the cached value, or ``None`` on a miss or an expired entry.

        A stored ``None`` is indistinguishable from a miss; ``get_or_set``
        tells them apart.
        """

        with self._lock:
            entry = self._lookup(key)
        return None if entry is None else entry.value

    def clear(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._store.clear()
            else:
                self._store.pop(key, None)

    def get_stats(self) -> CacheStats:
        # Expired-but-unread entries are still listed.
        with self._lock:
            return CacheStats(
                size=len(self._store),
                keys=list(self._store.keys()),
                hits=self.hits,
                misses=self.misses,
            )

    def get_or_set(self, key: str, factory: Callable[[], V], ttl_seconds: Optional[int] = None) -> V:
        with self._lock:
            entry = self._lookup(key)
        if entry is not None:
            return entry.value
        value = factory()
        self.set(key, value, ttl_seconds)
        return value

    async def aget_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[V]],
        ttl_seconds: Optional[int] = None,
    ) -> V:
        with self._lock:
            entry = self._lookup(key)
        if entry is not None:
            return entry.value
        value = await factory()
        self.set(key, value, ttl_seconds)
        return value

    @staticmethod
    def create_key(prefix: str, params: Mapping[str, Any]) -> str:
        """
        Build a deterministic key from ``params``.

        Keys are emitted in sorted order and values as compact JSON with
        sorted nested keys, so two parameter sets that differ only in key
        order share one cache key.
        """

        parts = "|".join(f"{name}:{_serialize_param(params[name])}" for name in sorted(params))
        return f"{prefix}:{parts}"

    def _lookup(self, key: str) -> Optional[CacheEntry]:
        entry = self._store.get(key)
        if entry is None:
            self.misses += 1
            logger.debug("Cache miss for %s", key)
            return None
        if entry.is_expired(self._clock()):
            del self._store[key]
            self.misses += 1
            logger.debug("Cache entry expired for %s", key)
            return None
        self.hits += 1
        return entry


def _serialize_param(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


data_cache = DataCache(default_ttl_seconds=load_engine_config().cache.default_ttl_seconds)
