"""
elcache - file-persisted key-value cache with per-key expiry.

Usage::

    import elcache

    with elcache.CacheManager(elcache.CacheConfig(context="web")) as cache:
        cache.set("greeting", "hello", ttl=60)
        cache.get("greeting")
"""

from elcache.core.config import CacheConfig, ConfigManager
from elcache.core.cache import (
    CacheManager,
    FileCache,
    Entry,
    init,
    get_cache_manager,
    close,
    close_all,
)
from elcache.core.exceptions import (
    ElcacheError,
    PathNotWritableError,
    CacheTooLargeError,
    CacheClosedError,
    CacheNotInitializedError,
    ConfigurationError,
)

__version__ = "1.0.1"

__all__ = [
    'CacheConfig',
    'ConfigManager',
    'CacheManager',
    'FileCache',
    'Entry',
    'init',
    'get_cache_manager',
    'close',
    'close_all',
    'ElcacheError',
    'PathNotWritableError',
    'CacheTooLargeError',
    'CacheClosedError',
    'CacheNotInitializedError',
    'ConfigurationError',
    '__version__',
]
