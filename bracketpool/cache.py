"""
In-memory cache with Time-To-Live (TTL).

The clock is injected so expiry can be driven from tests without
patching global time.
"""
import time
from threading import Lock
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from .utils.observability import Logger

logger = Logger(__name__)

_MISSING = object()


class TTLCache:
    """
    Key/value cache whose entries expire ``ttl`` seconds after being set.

    Expired entries are dropped lazily on access.

    Example:
        cache = TTLCache(default_ttl=300)
        cache.set("site_config", config)
        cache.get("site_config")
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if default_ttl < 0:
            raise ValueError("default_ttl cannot be negative")
        self.default_ttl = default_ttl
        self.clock = clock
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}
        self._lock = Lock()

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Return the cached value, or ``default`` when absent or expired."""
        with self._lock:
            entry = self._entries.get(key, _MISSING)
            if entry is _MISSING:
                return default
            value, expires_at = entry
            if self.clock() >= expires_at:
                del self._entries[key]
                logger.log_event("cache_entry_expired", key=str(key))
                return default
            return value

    def set(self, key: Hashable, value: Any, ttl: Optional[float] = None) -> None:
        """Store ``value`` for ``ttl`` seconds (default TTL when omitted)."""
        ttl = self.default_ttl if ttl is None else ttl
        if ttl < 0:
            raise ValueError("ttl cannot be negative")
        with self._lock:
            self._entries[key] = (value, self.clock() + ttl)

    def expire(self, key: Optional[Hashable] = None) -> None:
        """Drop one key, or every entry when no key is given."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        with self._lock:
            now = self.clock()
            return sum(1 for _, expires_at in self._entries.values() if now < expires_at)
