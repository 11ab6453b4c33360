"""
Shared Test Configuration and Fixtures

Provides temporary cache directories, a controllable clock and cleanup of
the process-wide cache registry.
"""

import pytest

from elcache.core.cache import manager as cache_registry
from elcache.core.cache.engine import FileCache
from elcache.core.cache.manager import CacheManager
from elcache.core.config.models import CacheConfig


class FakeClock:
    """Callable clock whose time only moves when a test says so."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def cache_dir(tmp_path):
    """Empty directory for cache files."""
    directory = tmp_path / "cache"
    directory.mkdir()
    return directory


@pytest.fixture
def config(cache_dir):
    """Configuration bound to the temporary cache directory."""
    return CacheConfig(path=cache_dir, context="test")


@pytest.fixture
def clock():
    """Controllable clock."""
    return FakeClock()


@pytest.fixture
def engine(config):
    """Open engine, closed after the test if still open."""
    cache = FileCache(config)
    yield cache
    if not cache.closed:
        cache.close()


@pytest.fixture
def cache(config, clock):
    """Open cache manager driven by the fake clock."""
    manager = CacheManager(config, clock=clock)
    yield manager
    if not manager.closed:
        manager.close()


@pytest.fixture(autouse=True)
def clean_registry():
    """Make sure no registered cache context leaks between tests."""
    yield
    cache_registry.close_all()
