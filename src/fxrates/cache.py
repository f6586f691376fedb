"""In-memory TTL cache for FX API responses.

Entries expire by age: an entry is valid while ``now - timestamp < ttl``.
Expired entries are shadowed (treated as a miss) rather than evicted, unless
a capacity bound is configured, in which case inserting into a full cache
sweeps expired entries and then drops the oldest insert.

No lock is needed: the engine runs on a single event loop and no method
awaits between reading and writing the store.
"""

import json
import time
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from typing import Any

from fxrates.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    """A cached value with its insertion time and lifetime (both in ms)."""

    data: Any
    timestamp: int  # epoch milliseconds
    ttl: int  # milliseconds


@dataclass
class CacheStats:
    """Snapshot of cache occupancy."""

    size: int
    keys: list[str]


def make_cache_key(endpoint: str, params: dict[str, Any] | None = None) -> str:
    """Build a deterministic key from an endpoint name and its parameters.

    Parameters are serialized as JSON with sorted keys so that argument order
    never matters. ``None`` values are dropped, so an omitted optional
    parameter and an explicit ``None`` share a key.

    Examples:
        >>> make_cache_key("popular-pairs")
        'popular-pairs'
        >>> make_cache_key("exchange-rate", {"to": "EUR", "from": "USD"})
        'exchange-rate_{"from": "USD", "to": "EUR"}'
    """
    if not params:
        return endpoint
    cleaned = {k: v for k, v in params.items() if v is not None}
    return f"{endpoint}_{json.dumps(cleaned, sort_keys=True, default=str)}"


class TTLCache:
    """Key/value store with per-entry expiry.

    Args:
        default_ttl_ms: TTL applied when ``set`` is called without one.
        clock: Returns the current time in seconds (``time.time`` by default).
        storage: Backing mapping; a fresh dict when omitted.
        max_entries: Optional capacity bound. None keeps the cache unbounded.
    """

    def __init__(
        self,
        default_ttl_ms: int = 30_000,
        clock: Callable[[], float] = time.time,
        storage: MutableMapping[str, CacheEntry] | None = None,
        max_entries: int | None = None,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self._default_ttl_ms = default_ttl_ms
        self._clock = clock
        self._store: MutableMapping[str, CacheEntry] = (
            storage if storage is not None else {}
        )
        self._max_entries = max_entries

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def set(self, key: str, data: Any, ttl: int | None = None) -> None:
        """Store ``data`` under ``key``, stamped with the current time."""
        if (
            self._max_entries is not None
            and key not in self._store
            and len(self._store) >= self._max_entries
        ):
            self._make_room()
        self._store[key] = CacheEntry(
            data=data,
            timestamp=self._now_ms(),
            ttl=self._default_ttl_ms if ttl is None else ttl,
        )

    def get(self, key: str) -> Any | None:
        """Return the stored data for ``key`` without checking expiry.

        Callers check ``is_valid`` first; an expired entry is still returned
        here so that stale data can be inspected.
        """
        entry = self._store.get(key)
        return entry.data if entry is not None else None

    def is_valid(self, key: str) -> bool:
        """True if ``key`` is present and younger than its TTL."""
        entry = self._store.get(key)
        if entry is None:
            return False
        return self._now_ms() - entry.timestamp < entry.ttl

    def get_valid(self, key: str) -> Any | None:
        """Return the data for ``key`` if it is still valid, else None."""
        if self.is_valid(key):
            return self._store[key].data
        return None

    def invalidate(self, key: str) -> None:
        """Drop a single entry if present."""
        self._store.pop(key, None)

    def clear(self) -> None:
        """Drop every entry."""
        self._store.clear()

    def stats(self) -> CacheStats:
        """Return current size and keys (expired entries included)."""
        return CacheStats(size=len(self._store), keys=list(self._store.keys()))

    def sweep_expired(self) -> int:
        """Evict all expired entries. Returns the number evicted."""
        now = self._now_ms()
        expired = [
            key
            for key, entry in self._store.items()
            if now - entry.timestamp >= entry.ttl
        ]
        for key in expired:
            del self._store[key]
        if expired:
            logger.debug("cache_swept", evicted=len(expired))
        return len(expired)

    def _make_room(self) -> None:
        """Free one slot: sweep expired entries, else drop the oldest insert."""
        if self.sweep_expired() > 0:
            return
        oldest = min(self._store, key=lambda k: self._store[k].timestamp)
        del self._store[oldest]
        logger.debug("cache_evicted_oldest", key=oldest)
