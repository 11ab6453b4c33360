"""
Tests for CacheManager and the context registry

Tests expiry-aware reads, TTL policy, check/push helpers and the explicit
init/close lifecycle of registered contexts.
"""

import pytest

from elcache.core.cache import manager as registry
from elcache.core.cache.engine import Entry
from elcache.core.cache.manager import CacheManager
from elcache.core.config.models import CacheConfig
from elcache.core.exceptions import (
    CacheClosedError,
    CacheNotInitializedError,
    CacheTooLargeError,
    ConfigurationError,
)


class TestGet:
    """Test expiry-aware reads."""

    def test_absent_key(self, cache):
        assert cache.get("missing") is None

    def test_absent_key_with_expiry(self, cache):
        assert cache.get("missing", with_expiry=True) == (None, 0)

    def test_live_value(self, cache, clock):
        cache.set("k", "v", ttl=10)
        assert cache.get("k") == "v"
        assert cache.get("k", with_expiry=True) == ("v", clock.now + 10)

    def test_value_lives_until_expiry(self, cache, clock):
        cache.set("k", "v", ttl=10)

        clock.advance(9.5)
        assert cache.get("k") == "v"

        clock.advance(0.5)
        assert cache.get("k") is None

    def test_expired_read_revokes_key(self, cache, clock):
        cache.set("k", "v", ttl=10)
        clock.advance(11)

        assert cache.get("k") is None
        assert cache.engine.get("k") is None


class TestSet:
    """Test TTL policy."""

    def test_default_ttl(self, cache, clock):
        cache.set("k", "v")
        assert cache.engine.get("k") == Entry("v", clock.now + 3600)

    def test_configured_default_ttl(self, cache_dir, clock):
        config = CacheConfig(path=cache_dir, default_expiry=60)
        with CacheManager(config, clock=clock) as cache:
            cache.set("k", "v")
            assert cache.engine.get("k").expiry == clock.now + 60

    @pytest.mark.parametrize("value, ttl", [
        ("v", 0),
        ("v", -1),
        (None, 10),
        (None, None),
    ])
    def test_revoking_set(self, cache, value, ttl):
        """Zero or negative TTL and None values revoke the key."""
        cache.set("k", "old", ttl=100)

        cache.set("k", value, ttl)

        assert cache.get("k") is None
        assert "k" not in cache.engine

    def test_falsy_values_are_stored(self, cache):
        """Only None means absence."""
        for value in (0, "", False, [], {}):
            cache.set("k", value, ttl=10)
            assert cache.get("k") == value


class TestCheck:
    """Test value checks."""

    def test_loose_check(self, cache):
        cache.set("k", 1)
        assert cache.check("k", "1")
        assert cache.check("k", 1.0)
        assert not cache.check("k", 2)

    def test_strict_check(self, cache):
        cache.set("k", 1)
        assert cache.check("k", 1, strict=True)
        assert not cache.check("k", "1", strict=True)
        assert not cache.check("k", True, strict=True)

    def test_check_absent_key(self, cache):
        assert cache.check("missing", None)
        assert cache.check("missing", False)
        assert not cache.check("missing", False, strict=True)


class TestPush:
    """Test the push helper."""

    def test_push_to_absent_key(self, cache):
        assert cache.push("k", "a") == ["a"]
        assert cache.get("k") == ["a"]

    def test_push_appends_unique(self, cache):
        cache.push("k", "a")
        cache.push("k", "b")
        cache.push("k", "a")
        assert cache.get("k") == ["a", "b"]

    def test_push_uses_strict_uniqueness(self, cache):
        cache.push("k", 1)
        cache.push("k", "1")
        cache.push("k", True)
        assert cache.get("k") == [1, "1", True]

    def test_push_with_index(self, cache):
        cache.push("k", "a")
        cache.push("k", "b")
        cache.push("k", "first", index=0)
        assert cache.get("k") == ["first", "a", "b"]

    def test_push_with_index_allows_duplicates(self, cache):
        cache.push("k", "a")
        cache.push("k", "a", index=1)
        assert cache.get("k") == ["a", "a"]

    def test_push_replaces_scalar(self, cache):
        cache.set("k", "scalar")
        assert cache.push("k", "a") == ["a"]

    def test_push_to_dict(self, cache):
        cache.set("k", {"0": "a", "name": "x"})

        cache.push("k", "b")
        cache.push("k", "a")
        cache.push("k", "y", index="name")

        assert cache.get("k") == {"0": "a", "name": "y", "1": "b"}

    def test_push_to_dict_without_numeric_keys(self, cache):
        cache.set("k", {"name": "x"})
        cache.push("k", "b")
        assert cache.get("k") == {"name": "x", "0": "b"}

    def test_push_refreshes_ttl(self, cache, clock):
        cache.push("k", "a", ttl=10)
        clock.advance(8)
        cache.push("k", "b", ttl=10)

        clock.advance(8)
        assert cache.get("k") == ["a", "b"]
        assert cache.get("k", with_expiry=True)[1] == clock.now + 2

    def test_push_with_non_positive_ttl_revokes(self, cache):
        cache.push("k", "a")
        cache.push("k", "b", ttl=0)
        assert cache.get("k") is None

    def test_push_with_numeric_string_index_on_list(self, cache):
        cache.push("k", "a")
        cache.push("k", "first", index="0")
        assert cache.get("k") == ["first", "a"]

    def test_push_with_text_index_turns_list_into_dict(self, cache):
        cache.set("k", ["a"])

        result = cache.push("k", "b", index="first")

        assert result == {"0": "a", "first": "b"}
        assert cache.get("k") == {"0": "a", "first": "b"}

    def test_push_with_text_index_on_scalar(self, cache):
        cache.set("k", "scalar")
        assert cache.push("k", "b", index="name") == {"name": "b"}


class TestLifecycle:
    """Test purging, writing and closing through the facade."""

    def test_purge_on_init(self, config, clock):
        with CacheManager(config, clock=clock) as cache:
            cache.set("short", 1, ttl=5)
            cache.set("long", 2, ttl=500)

        clock.advance(10)
        with CacheManager(config, clock=clock) as cache:
            assert cache.engine.keys() == ["long"]

    def test_purge_on_init_disabled(self, cache_dir, clock):
        config = CacheConfig(path=cache_dir, purge_on_init=False)
        with CacheManager(config, clock=clock) as cache:
            cache.set("short", 1, ttl=5)

        clock.advance(10)
        with CacheManager(config, clock=clock) as cache:
            assert cache.engine.keys() == ["short"]

    def test_purge_expired_uses_clock(self, cache, clock):
        cache.set("a", 1, ttl=5)
        cache.set("b", 2, ttl=10)
        clock.advance(5)

        assert cache.purge_expired() == 0

        clock.advance(1)
        assert cache.purge_expired() == 1
        assert cache.engine.keys() == ["b"]

    def test_values_shared_between_managers(self, config, clock):
        with CacheManager(config, clock=clock) as cache:
            cache.set("k", {"nested": [1, 2]})

        with CacheManager(config, clock=clock) as cache:
            assert cache.get("k") == {"nested": [1, 2]}

    def test_write_skips_unchanged(self, cache):
        cache.set("k", 1)
        assert cache.write() is True
        assert cache.write() is False

    def test_purge_all(self, cache, config):
        cache.set("k", 1)
        cache.purge_all(hard=True)
        assert cache.get("k") is None
        assert not config.file_path.exists()

    def test_get_option(self, cache):
        assert cache.get_option("ttl") == 3600
        assert cache.get_option("context") == "test"
        assert cache.get_option("unknown") is None

    def test_cache_info(self, cache, clock):
        cache.set("a", 1, ttl=5)
        cache.set("b", 2, ttl=50)
        clock.advance(10)

        info = cache.get_cache_info()

        assert info["config"]["context"] == "test"
        assert info["entries"] == {"total": 2, "expired": 1}
        assert info["stats"]["disk_writes"] == 1

    def test_items_hides_expired(self, cache, clock):
        cache.set("a", 1, ttl=5)
        cache.set("b", 2, ttl=50)
        clock.advance(10)

        assert [key for key, _ in cache.items()] == ["b"]
        assert "a" in cache.engine


class TestAfterClose:
    """Test the facade once its cache has been closed."""

    def test_reads_use_last_state(self, cache):
        cache.set("k", "v", ttl=10)
        cache.close()

        assert cache.get("k") == "v"
        assert cache.check("k", "v")

    def test_expired_read_after_close(self, cache, clock):
        cache.set("k", "v", ttl=10)
        cache.close()
        clock.advance(11)

        assert cache.get("k") is None
        assert "k" in cache.engine

    @pytest.mark.parametrize("operation", [
        lambda cache: cache.set("k", "v"),
        lambda cache: cache.revoke("k"),
        lambda cache: cache.push("k", "v"),
        lambda cache: cache.purge_expired(),
    ])
    def test_mutations_raise(self, cache, operation):
        cache.close()
        with pytest.raises(CacheClosedError):
            operation(cache)

    def test_failed_flush_does_not_raise(self, cache_dir, clock):
        config = CacheConfig(path=cache_dir, context="small", max_buffer=1)

        with CacheManager(config, clock=clock) as cache:
            cache.set("big", "x" * 4000)

        assert cache.closed
        assert isinstance(cache.flush_error, CacheTooLargeError)

    def test_failed_flush_keeps_original_exception(self, cache_dir, clock):
        config = CacheConfig(path=cache_dir, context="small", max_buffer=1)

        with pytest.raises(RuntimeError, match="boom"):
            with CacheManager(config, clock=clock) as cache:
                cache.set("big", "x" * 4000)
                raise RuntimeError("boom")

        assert isinstance(cache.flush_error, CacheTooLargeError)

class TestRegistry:
    """Test the process-wide registry of cache contexts."""

    def test_init_returns_same_manager_per_context(self, cache_dir):
        first = registry.init(path=cache_dir)
        second = registry.init(path=cache_dir)
        assert first is second

    def test_distinct_contexts(self, cache_dir):
        web = registry.init(path=cache_dir, context="web")
        jobs = registry.init(path=cache_dir, context="jobs")

        assert web is not jobs
        assert registry.get_cache_manager("web") is web
        assert registry.get_cache_manager("jobs") is jobs

    def test_init_with_config_and_overrides(self, cache_dir):
        config = CacheConfig(path=cache_dir, context="base", ttl=10)
        manager = registry.init(config, ttl=20)

        assert manager.context == "base"
        assert manager.get_option("ttl") == 20

    def test_init_with_invalid_overrides(self, cache_dir):
        with pytest.raises(ConfigurationError):
            registry.init(path=cache_dir, context="../escape")

    def test_lookup_before_init(self):
        with pytest.raises(CacheNotInitializedError):
            registry.get_cache_manager("never")

    def test_close_flushes_and_forgets(self, cache_dir):
        manager = registry.init(path=cache_dir, context="web")
        manager.set("k", "v")

        registry.close("web")

        assert manager.closed
        with pytest.raises(CacheNotInitializedError):
            registry.get_cache_manager("web")
        assert registry.init(path=cache_dir, context="web").get("k") == "v"

    def test_close_unknown_context_is_noop(self):
        registry.close("nothing")

    def test_close_all(self, cache_dir):
        web = registry.init(path=cache_dir, context="web")
        jobs = registry.init(path=cache_dir, context="jobs")

        registry.close_all()

        assert web.closed and jobs.closed

    def test_close_all_continues_after_failure(self, cache_dir, caplog):
        small = registry.init(path=cache_dir, context="small", max_buffer=1)
        other = registry.init(path=cache_dir, context="other")
        small.set("big", "x" * 5000)
        other.set("k", "v")

        registry.close_all()

        assert other.closed
        assert "Failed to close cache context 'small'" in caplog.text
        assert registry.init(path=cache_dir, context="other").get("k") == "v"
