"""
Core Cache Module

File-persisted key-value cache with per-key expiry:
- Persistence engine with hash-based dirty tracking
- Merge of concurrent writers on close
- Expiry-aware facade and context registry
"""

from .engine import Entry, FileCache, CacheStats
from .manager import CacheManager, init, get_cache_manager, close, close_all

__all__ = [
    'Entry',
    'FileCache',
    'CacheStats',
    'CacheManager',
    'init',
    'get_cache_manager',
    'close',
    'close_all',
]
