#!/usr/bin/env python3
"""
In-memory TTL Cache
Key/value stores with per-entry expiry, partitioned by concern:
node list, per-node stats, analytics and geo lookups
"""

import time
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class CacheStore:
    """
    Key/value store with a default TTL per instance.

    - Expired entries behave exactly like missing ones and are evicted on read
    - A sweep of expired entries runs from set() at most every check_period seconds
    - Values are stored by reference; callers must not mutate cached values
    """

    def __init__(self, default_ttl: float, name: str = "cache",
                 clock: Callable[[], float] = time.monotonic,
                 check_period: Optional[float] = None):
        """
        Initialize cache store

        Args:
            default_ttl: TTL in seconds applied when set() gets none (0 = never expires)
            name: Name used in log messages
            clock: Monotonic time source, injectable for tests
            check_period: Seconds between expiry sweeps (default: 20% of default_ttl)
        """
        self.default_ttl = default_ttl
        self.name = name
        self.clock = clock
        self.check_period = check_period if check_period is not None else default_ttl * 0.2
        self._entries: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._last_prune = clock()
        self.hits = 0
        self.misses = 0

    def _is_expired(self, expires_at: Optional[float], now: float) -> bool:
        return expires_at is not None and now >= expires_at

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        value, expires_at = entry
        if self._is_expired(expires_at, self.clock()):
            del self._entries[key]
            self.misses += 1
            logger.debug(f"[{self.name}] expired entry evicted: {key}")
            return None

        self.hits += 1
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        ttl = self.default_ttl if ttl is None else ttl
        now = self.clock()
        expires_at = now + ttl if ttl > 0 else None
        self._entries[key] = (value, expires_at)

        if self.check_period > 0 and now - self._last_prune >= self.check_period:
            self.prune()
        return True

    def delete(self, key: str) -> int:
        """Remove key, returning the number of entries removed"""
        if self._entries.pop(key, None) is None:
            return 0
        return 1

    def flush(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def keys(self) -> List[str]:
        now = self.clock()
        return [key for key, (_, expires_at) in self._entries.items()
                if not self._is_expired(expires_at, now)]

    def prune(self) -> int:
        """Drop all expired entries, returning how many were removed"""
        now = self.clock()
        expired = [key for key, (_, expires_at) in self._entries.items()
                   if self._is_expired(expires_at, now)]
        for key in expired:
            del self._entries[key]
        self._last_prune = now
        if expired:
            logger.debug(f"[{self.name}] pruned {len(expired)} expired entries")
        return len(expired)

    def get_stats(self) -> Dict[str, int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "keys": len(self.keys()),
        }


class CacheRegistry:
    """The four process-wide cache stores, one per concern"""

    def __init__(self, nodes: CacheStore, stats: CacheStore,
                 analytics: CacheStore, geo: CacheStore):
        self.nodes = nodes
        self.stats = stats
        self.analytics = analytics
        self.geo = geo

    @classmethod
    def from_settings(cls, settings, clock: Callable[[], float] = time.monotonic) -> "CacheRegistry":
        """Build stores with TTLs from settings (node list TTL follows runtime mode)"""
        return cls(
            nodes=CacheStore(settings.node_list_ttl, name="nodes", clock=clock),
            stats=CacheStore(settings.stats_cache_ttl, name="stats", clock=clock),
            analytics=CacheStore(settings.analytics_cache_ttl, name="analytics", clock=clock),
            geo=CacheStore(settings.geo_cache_ttl, name="geo", clock=clock),
        )

    def all_stores(self) -> Dict[str, CacheStore]:
        return {
            "nodes": self.nodes,
            "stats": self.stats,
            "analytics": self.analytics,
            "geo": self.geo,
        }

    def flush_all(self) -> None:
        for store in self.all_stores().values():
            store.flush()

    def get_all_stats(self) -> Dict[str, Dict[str, int]]:
        return {name: store.get_stats() for name, store in self.all_stores().items()}
