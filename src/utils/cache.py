from typing import Dict, Any, Optional
from datetime import datetime
import threading
import time
from src.utils.tracing import setup_logger_with_tracing

LOGGER = setup_logger_with_tracing(__name__, service_name="ttl-cache")


class TTLCache:
    """
    In-memory key/value cache whose entries expire after a TTL.

    Entries are evicted lazily on read. When `max_entries` is reached the
    entry closest to expiry is dropped to make room. A TTL of zero or less
    disables storage entirely, so `get` always misses.
    """

    def __init__(self, default_ttl_seconds: int = 1800, name: str = "ttl-cache", max_entries: int = 512):
        self.cache: Dict[str, Dict[str, Any]] = {}
        self.default_ttl = default_ttl_seconds
        self.max_entries = max_entries
        self.name = name
        self._lock = threading.Lock()

    @staticmethod
    def _is_expired(entry: Dict[str, Any]) -> bool:
        return time.time() > entry.get("expires_at", 0)

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""
        with self._lock:
            entry = self.cache.get(key)
            if entry is None:
                return None

            if self._is_expired(entry):
                del self.cache[key]
                LOGGER.debug(f"Cache {self.name} EXPIRED: {key}")
                return None

        LOGGER.info(f"Cache {self.name} HIT: {key}")
        return entry["value"]

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl
        if ttl <= 0:
            return

        with self._lock:
            if key not in self.cache and len(self.cache) >= self.max_entries:
                oldest = min(self.cache, key=lambda k: self.cache[k]["expires_at"])
                del self.cache[oldest]

            self.cache[key] = {
                "value": value,
                "expires_at": time.time() + ttl,
                "cached_at": datetime.now().isoformat()
            }
        LOGGER.debug(f"Cache {self.name} SET: {key} (TTL: {ttl}s)")

    def remove(self, key: str) -> bool:
        """
        Remove a specific entry from cache.

        Returns:
            True if the key existed and was removed, False otherwise
        """
        with self._lock:
            removed = self.cache.pop(key, None) is not None
        if removed:
            LOGGER.debug(f"Cache {self.name} REMOVE: {key}")
        return removed

    def clear(self) -> None:
        with self._lock:
            self.cache.clear()
        LOGGER.info(f"Cache {self.name} cleared")

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            total = len(self.cache)
            expired = sum(1 for entry in self.cache.values() if self._is_expired(entry))
        return {
            "cache": self.name,
            "total_entries": total,
            "expired_entries": expired,
            "active_entries": total - expired
        }
