"""Caching layer for loaded schema registries.

Loading and indexing a registry document on every request is wasteful, so
registries are memoized per file with:

    * TTL expiry (``CacheEntry.ttl``),
    * file modification time staleness checks (an edited registry file is
      reloaded on the next lookup),
    * hit/miss reporting to the performance monitor.

Quick example::

    from netconf_filter.cache import get_cached_registry
    registry = get_cached_registry("modules.json")
    print(len(registry))

A cached registry is shared between requests; it is never mutated after
loading, which is what lets concurrent compiles use it without locking.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .monitoring import get_monitor
from .registry import SchemaRegistry, load_registry

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cache entry with TTL and file modification tracking."""

    data: Any
    timestamp: float = field(default_factory=time.time)
    ttl: float = 3600.0
    file_mtime: float = 0.0

    def is_expired(self) -> bool:
        """Check if the entry outlived its TTL."""
        return time.time() - self.timestamp > self.ttl

    def is_stale(self, file_path: Path) -> bool:
        """Check if the source file changed (or vanished) since caching."""
        if not file_path.exists():
            return True
        return file_path.stat().st_mtime > self.file_mtime


class RegistryCache:
    """In-memory cache of :class:`SchemaRegistry` objects keyed by file path."""

    def __init__(self, default_ttl: float = 3600.0, enable_monitoring: bool = True):
        self.default_ttl = default_ttl
        self.enable_monitoring = enable_monitoring
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def _make_key(self, *args) -> str:
        """Create cache key from arguments."""
        return hashlib.md5(str(args).encode()).hexdigest()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or ``None`` if absent or expired."""
        monitor = get_monitor() if self.enable_monitoring else None
        with self._lock:
            entry = self._cache.get(key)
            if entry is not None and entry.is_expired():
                del self._cache[key]
                entry = None
                if monitor:
                    monitor.record_cache_eviction()
        if entry is None:
            if monitor:
                monitor.record_cache_miss()
            return None
        if monitor:
            monitor.record_cache_hit()
        return entry.data

    def set(
        self,
        key: str,
        data: Any,
        ttl: Optional[float] = None,
        file_path: Optional[Path] = None,
    ) -> None:
        """Insert or replace a value; ``file_path`` enables staleness checks."""
        file_mtime = 0.0
        if file_path is not None and file_path.exists():
            file_mtime = file_path.stat().st_mtime
        with self._lock:
            self._cache[key] = CacheEntry(
                data=data, ttl=ttl or self.default_ttl, file_mtime=file_mtime
            )
            size = len(self._cache)
        if self.enable_monitoring:
            get_monitor().update_cache_size(size)

    def check_file_staleness(self, key: str, file_path: Path) -> bool:
        """True if ``key`` is missing or its source file has changed."""
        with self._lock:
            entry = self._cache.get(key)
        if entry is None:
            return True
        return entry.is_stale(file_path)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def load(self, path: Union[str, Path], force_refresh: bool = False) -> SchemaRegistry:
        """Return the registry stored in ``path``, loading it when needed.

        Raises:
            RegistryError: If the file cannot be loaded.
        """
        path = Path(path).resolve()
        key = self._make_key("registry", str(path))
        if not force_refresh and not self.check_file_staleness(key, path):
            cached = self.get(key)
            if cached is not None:
                return cached
        logger.debug(f"Loading schema registry from {path}")
        registry = load_registry(path)
        self.set(key, registry, file_path=path)
        return registry


_registry_cache = RegistryCache()


def get_cached_registry(
    path: Union[str, Path], force_refresh: bool = False
) -> SchemaRegistry:
    """Load ``path`` through the process-wide registry cache."""
    return _registry_cache.load(path, force_refresh=force_refresh)
