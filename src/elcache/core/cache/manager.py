"""
Cache Manager

Expiry-aware access layer over one :class:`FileCache` per context, plus a
process-wide registry of managers with an explicit init/close lifecycle.
"""

import atexit
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple, Union

from elcache.core.cache.compare import loose_equals, strict_equals
from elcache.core.cache.engine import Entry, FileCache
from elcache.core.config.models import CacheConfig
from elcache.core.exceptions import CacheNotInitializedError, ConfigurationError, ElcacheError


logger = logging.getLogger(__name__)


class CacheManager:
    """
    Facade applying TTL policy and expiry-aware reads on top of the engine.

    Features:
    - Default TTL for set() and push()
    - Expired entries are revoked when read
    - None values and non-positive TTLs revoke instead of storing
    - Loose and strict value checks
    - List/dict push helper
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize cache manager.

        Args:
            config: Cache configuration
            clock: Source of the current epoch time in seconds
        """
        self.config = config or CacheConfig()
        self._clock = clock
        self._engine = FileCache(self.config)

        if self.config.purge_on_init:
            self.purge_expired()

    @property
    def engine(self) -> FileCache:
        return self._engine

    @property
    def context(self) -> str:
        return self.config.context

    @property
    def closed(self) -> bool:
        return self._engine.closed

    @property
    def flush_error(self) -> Optional[ElcacheError]:
        """Error that prevented the final flush on close, if any."""
        return self._engine.flush_error

    def now(self) -> float:
        return self._clock()

    def get_option(self, option: str) -> Any:
        """
        Read a configuration value.

        There is no set_option(): options are fixed once the cache is initialized.
        """
        return getattr(self.config, option, None)

    def get(self, key: str, with_expiry: bool = False) -> Union[Any, Tuple[Any, float]]:
        """
        Get a live value from the cache.

        Args:
            key: Cache key
            with_expiry: Return a ``(value, expiry)`` pair instead of the value

        Returns:
            The value, or None if absent or expired (``(None, 0)`` with
            ``with_expiry``)
        """
        entry = self._engine.get(key)
        if entry is not None:
            if entry.expiry > self.now():
                return tuple(entry) if with_expiry else entry.value
            # Expired entries are destroyed instead of returned
            if not self._engine.closed:
                self._engine.revoke(key)

        return (None, 0) if with_expiry else None

    def set(self, key: str, value: Any = None, ttl: Optional[float] = None) -> None:
        """
        Store a value for ``ttl`` seconds.

        Args:
            key: Cache key
            value: Value to cache; None revokes the key
            ttl: Time-to-live in seconds (defaults to the configured ttl);
                zero or negative revokes the key
        """
        if ttl is None:
            ttl = self.config.ttl

        if ttl > 0 and value is not None:
            self._engine.set(key, value, self.now() + ttl)
            return

        self.revoke(key)

    def revoke(self, key: str) -> None:
        """Remove a key from the cache."""
        self._engine.revoke(key)

    def check(self, key: str, value: Any, strict: bool = False) -> bool:
        """
        Compare the cached value of a key with ``value``.

        Args:
            key: Cache key
            value: Value to compare against
            strict: Require identical types instead of loose coercion
        """
        cached = self.get(key)
        return strict_equals(cached, value) if strict else loose_equals(cached, value)

    def push(
        self,
        key: str,
        value: Any,
        index: Optional[Union[int, str]] = None,
        ttl: Optional[float] = None
    ) -> Union[list, dict]:
        """
        Add ``value`` to the list or dict cached under ``key``.

        A missing or scalar value is replaced by an empty list first. With an
        index the value is inserted at that position (lists) or assigned to
        that key (dicts); a list given a non-integer index becomes a dict keyed
        by position first. Without an index the value is appended unless
        already present.
        The whole container is stored again with a fresh ``ttl``.

        Returns:
            The stored container
        """
        container = self.get(key)
        if not isinstance(container, (list, dict)):
            container = []

        if index is not None:
            position = self._list_position(index) if isinstance(container, list) else None
            if position is not None:
                container.insert(position, value)
            else:
                if isinstance(container, list):
                    container = {str(i): item for i, item in enumerate(container)}
                container[str(index)] = value
        elif isinstance(container, list):
            if not any(strict_equals(item, value) for item in container):
                container.append(value)
        elif not any(strict_equals(item, value) for item in container.values()):
            container[str(self._next_index(container))] = value

        self.set(key, container, ttl)
        return container

    @staticmethod
    def _list_position(index: Union[int, str]) -> Optional[int]:
        """Integer list position for an index, None if it is not one."""
        try:
            return int(index)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _next_index(container: dict) -> int:
        """Next free integer key of a dict, following its largest integer key."""
        numeric = []
        for key in container:
            try:
                numeric.append(int(key))
            except (TypeError, ValueError):
                continue
        return max(numeric) + 1 if numeric else 0

    def purge_expired(self, then_write: bool = False) -> int:
        """Drop expired entries; optionally write afterwards."""
        return self._engine.purge_expired(self.now(), then_write)

    def purge_all(self, hard: bool = False) -> None:
        """Drop every entry; ``hard`` deletes the cache file."""
        self._engine.purge_all(hard)

    def write(self, force: bool = False) -> bool:
        """Write the cache file if it changed (or always with ``force``)."""
        return self._engine.write(force)

    def close(self) -> None:
        """Reconcile with other writers and flush the cache file."""
        self._engine.close()

    def items(self):
        """Live ``(key, Entry)`` pairs, without revoking expired ones."""
        now = self.now()
        return [(key, entry) for key, entry in self._engine.items() if entry.expiry > now]

    def get_cache_info(self) -> Dict[str, Any]:
        """Get detailed cache information."""
        stats = self._engine.stats
        now = self.now()
        entries = list(self._engine.items())
        return {
            "config": {
                "context": self.config.context,
                "file_path": str(self._engine.file_path),
                "default_ttl": self.config.ttl,
                "max_buffer_kib": self.config.max_buffer,
            },
            "entries": {
                "total": len(entries),
                "expired": sum(1 for _, entry in entries if entry.expiry <= now),
            },
            "stats": {
                "disk_reads": stats.disk_reads,
                "disk_writes": stats.disk_writes,
                "skipped_writes": stats.skipped_writes,
                "merges": stats.merges,
                "decode_failures": stats.decode_failures,
            },
        }

    def __enter__(self) -> 'CacheManager':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"CacheManager(context={self.context!r}, engine={self._engine!r})"


# Live managers by context
_managers: Dict[str, CacheManager] = {}
_atexit_registered = False


def init(config: Optional[CacheConfig] = None, **overrides) -> CacheManager:
    """
    Initialize (or reuse) the manager for a context.

    Options only take effect the first time a context is initialized; a
    repeated init returns the live manager after purging expired entries.

    Args:
        config: Cache configuration
        **overrides: Individual CacheConfig fields, applied over ``config``

    Returns:
        The context's CacheManager
    """
    global _atexit_registered

    if overrides:
        base = config.model_dump() if config else {}
        base.update(overrides)
        try:
            config = CacheConfig(**base)
        except ValueError as e:
            raise ConfigurationError(f"Invalid cache options: {e}", cause=e)
    config = config or CacheConfig()

    manager = _managers.get(config.context)
    if manager is None or manager.closed:
        manager = CacheManager(config)
        _managers[config.context] = manager
        logger.debug(f"Initialized cache context '{config.context}'")
    else:
        manager.purge_expired()

    if not _atexit_registered:
        atexit.register(close_all)
        _atexit_registered = True

    return manager


def get_cache_manager(context: str = "default") -> CacheManager:
    """Get the live manager of a context."""
    manager = _managers.get(context)
    if manager is None or manager.closed:
        raise CacheNotInitializedError(
            f"Cache context '{context}' is not initialized; call init() first",
            cache_context=context
        )
    return manager


def close(context: str = "default") -> None:
    """Close and forget the manager of a context (e.g. to re-init it differently)."""
    manager = _managers.pop(context, None)
    if manager is not None:
        manager.close()


def close_all() -> None:
    """Close every live manager; a failed flush on one does not stop the others."""
    for context in list(_managers):
        manager = _managers.pop(context)
        manager.close()
        if manager.flush_error is not None:
            logger.error(f"Failed to close cache context '{context}': {manager.flush_error.message}")
