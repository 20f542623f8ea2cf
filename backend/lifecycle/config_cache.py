"""
lifecycle/config_cache.py

TTL cache in front of an IConfigSource, so scheduler ticks do not re-read
property settings every time. Bounded LRU with per-entry expiry.
"""
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple
import threading
import time
import logging

from lifecycle.domain.models import AutomationConfig
from lifecycle.ports import IConfigSource

logger = logging.getLogger(__name__)


class CachedConfigSource(IConfigSource):
    """
    Caches ``load_automation_config`` results for ``ttl_seconds``.

    Example:
        >>> source = CachedConfigSource(PropertySettingsLoader(SessionLocal), ttl_seconds=300)
        >>> source.load_automation_config(1)  # loads
        >>> source.load_automation_config(1)  # served from cache
    """

    def __init__(
        self,
        source: IConfigSource,
        ttl_seconds: float = 300.0,
        max_entries: int = 1024,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._source = source
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._timer = timer
        self._cache: "OrderedDict[int, Tuple[float, AutomationConfig]]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def load_automation_config(self, property_id: int) -> AutomationConfig:
        now = self._timer()
        with self._lock:
            cached = self._cache.get(property_id)
            if cached is not None and cached[0] > now:
                self._cache.move_to_end(property_id)
                self._hits += 1
                return cached[1]
            self._misses += 1

        # Load outside the lock; a concurrent miss may load twice, which is harmless
        config = self._source.load_automation_config(property_id)

        with self._lock:
            self._cache[property_id] = (now + self._ttl, config)
            self._cache.move_to_end(property_id)
            while len(self._cache) > self._max_entries:
                self._cache.popitem(last=False)
        logger.debug(f"Automation config loaded for property {property_id}")
        return config

    def invalidate(self, property_id: Optional[int] = None) -> None:
        """Drop one property's entry, or everything when property_id is None."""
        with self._lock:
            if property_id is None:
                self._cache.clear()
            else:
                self._cache.pop(property_id, None)

    def get_cache_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "ttl_seconds": self._ttl,
                "entries": len(self._cache),
                "hits": self._hits,
                "misses": self._misses,
            }


__all__ = ["CachedConfigSource"]
