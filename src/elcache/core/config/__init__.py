"""
Configuration Management Package

Provides the Pydantic-based cache configuration and its loader.
"""

from elcache.core.config.models import CacheConfig
from elcache.core.config.manager import ConfigManager

__all__ = [
    "CacheConfig",
    "ConfigManager",
]
