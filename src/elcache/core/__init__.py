"""
Core elcache Package

Contains the persistence engine, the cache facade, configuration and
error handling.
"""

from elcache.core.exceptions import (
    ElcacheError,
    PathNotWritableError,
    CacheTooLargeError,
    CacheDecodeError,
    CacheWriteError,
    CacheClosedError,
    CacheNotInitializedError,
    ConfigurationError,
    ErrorCode,
    ErrorContext,
    RecoverySuggestion
)

__all__ = [
    'ElcacheError',
    'PathNotWritableError',
    'CacheTooLargeError',
    'CacheDecodeError',
    'CacheWriteError',
    'CacheClosedError',
    'CacheNotInitializedError',
    'ConfigurationError',
    'ErrorCode',
    'ErrorContext',
    'RecoverySuggestion',
]
