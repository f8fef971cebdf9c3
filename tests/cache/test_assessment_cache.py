"""
Tests for the two-tier AssessmentCache facade.

Covers round-trips, TTL expiry across both tiers, FIFO capacity, cross-instance
persistence, memory-only operation and tolerance of disk failures.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import pytest

from assessment_cache.cache import AssessmentCache, CacheStats
from assessment_cache.cache.backends import DiskCache
from assessment_cache.cache.expiry import now_ms
from assessment_cache.cache.models import CacheEntry
from assessment_cache.config import CacheConfig
from assessment_cache.utils.logging_factory import PACKAGE_LOGGER


class TestBasicOperations:

    @pytest.mark.asyncio
    async def test_set_then_get_round_trip(self, make_cache):
        cache = make_cache()
        value = {"capabilities": ["kv", "d1"], "score": 0.8, "ready": True}

        await cache.set("abc", value)

        assert await cache.get("abc") == value

    @pytest.mark.asyncio
    async def test_get_unknown_key_returns_none(self, make_cache):
        cache = make_cache()

        assert await cache.get("missing") is None
        assert await cache.get("") is None

    @pytest.mark.asyncio
    async def test_set_overwrites(self, make_cache):
        cache = make_cache()

        await cache.set("k", {"v": 1})
        await cache.set("k", {"v": 2})

        assert await cache.get("k") == {"v": 2}

    @pytest.mark.asyncio
    async def test_operations_initialize_lazily(self, make_cache, cache_dir: Path):
        cache = make_cache()
        assert cache.initialized is False
        assert not cache_dir.exists()

        await cache.get("anything")

        assert cache.initialized is True
        assert cache_dir.is_dir()

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, make_cache):
        cache = make_cache()

        await asyncio.gather(cache.initialize(), cache.initialize(), cache.initialize())
        await cache.initialize()

        assert cache.initialized is True

    def test_rejects_invalid_bounds(self, cache_dir: Path):
        with pytest.raises(ValueError):
            AssessmentCache(cache_dir=cache_dir, max_entries=0)
        with pytest.raises(ValueError):
            AssessmentCache(cache_dir=cache_dir, ttl_ms=0)


class TestExpiry:

    @pytest.mark.asyncio
    async def test_expired_entry_is_a_miss(self, make_cache):
        cache = make_cache(ttl_ms=100)

        await cache.set("k", {"v": 1})
        await asyncio.sleep(0.15)

        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_expired_entry_purged_from_both_tiers(self, make_cache, cache_dir: Path):
        cache = make_cache(ttl_ms=100)
        await cache.set("k", {"v": 1})
        assert (cache_dir / "k.json").exists()

        await asyncio.sleep(0.15)
        await cache.get("k")

        assert cache.memory.size() == 0
        assert not (cache_dir / "k.json").exists()

    @pytest.mark.asyncio
    async def test_expired_disk_record_is_a_miss(self, make_cache, cache_dir: Path):
        disk = DiskCache(cache_dir)
        disk.initialize()
        stale = CacheEntry(key="old", value={"v": 1}, created_at=now_ms() - 10_000, ttl_ms=1_000)
        disk.put("old", stale)

        cache = make_cache(warm_on_initialize=False)

        assert await cache.get("old") is None
        assert not (cache_dir / "old.json").exists()

    @pytest.mark.asyncio
    async def test_prune_removes_expired_entries(self, make_cache, cache_dir: Path):
        cache = make_cache(ttl_ms=100)
        await cache.set("a", 1)
        await cache.set("b", 2)
        await asyncio.sleep(0.15)

        removed = await cache.prune()

        assert removed == 2
        assert cache.memory.size() == 0
        assert cache.disk.size() == 0

    @pytest.mark.asyncio
    async def test_prune_keeps_live_entries(self, make_cache):
        cache = make_cache()
        await cache.set("a", 1)

        assert await cache.prune() == 0
        assert await cache.get("a") == 1


class TestCapacity:

    @pytest.mark.asyncio
    async def test_memory_bounded_by_max_entries(self, make_cache):
        cache = make_cache(max_entries=5)

        for i in range(7):
            await cache.set(f"key_{i}", {"i": i})

        stats = await cache.get_stats()
        assert stats.memory.total == 5
        assert await cache.get("key_0") is None
        assert await cache.get("key_1") is None
        for i in range(2, 7):
            assert await cache.get(f"key_{i}") == {"i": i}

    @pytest.mark.asyncio
    async def test_evicted_keys_do_not_return_from_disk(self, make_cache, cache_dir: Path):
        cache = make_cache(max_entries=2)

        for key in ("a", "b", "c"):
            await cache.set(key, key)

        assert not (cache_dir / "a.json").exists()
        assert await cache.get("a") is None

    @pytest.mark.asyncio
    async def test_rewrite_does_not_refresh_position(self, make_cache):
        cache = make_cache(max_entries=2)

        await cache.set("a", 1)
        await cache.set("b", 2)
        await cache.set("a", 10)
        await cache.set("c", 3)

        assert await cache.get("a") is None
        assert await cache.get("b") == 2
        assert await cache.get("c") == 3


class TestPersistence:

    @pytest.mark.asyncio
    async def test_second_instance_reads_from_disk(self, make_cache):
        writer = make_cache()
        await writer.set("shared", {"a": 1})

        reader = make_cache(warm_on_initialize=False)

        assert await reader.get("shared") == {"a": 1}
        # Promoted into memory on the disk hit
        assert reader.memory.exists("shared")

    @pytest.mark.asyncio
    async def test_warm_on_initialize_loads_newest_live_records(self, make_cache, cache_dir: Path):
        disk = DiskCache(cache_dir)
        disk.initialize()
        now = now_ms()
        for offset, key in ((3_000, "older"), (2_000, "newer"), (1_000, "newest")):
            disk.put(key, CacheEntry(key=key, value=key, created_at=now - offset, ttl_ms=60_000))
        disk.put("stale", CacheEntry(key="stale", value=0, created_at=now - 120_000, ttl_ms=60_000))

        cache = make_cache(max_entries=2)
        await cache.initialize()

        assert cache.memory.keys() == {"newer", "newest"}
        assert not (cache_dir / "stale.json").exists()

    @pytest.mark.asyncio
    async def test_warm_disabled_leaves_memory_empty(self, make_cache):
        writer = make_cache()
        await writer.set("k", 1)

        reader = make_cache(warm_on_initialize=False)
        await reader.initialize()

        assert reader.memory.size() == 0

    @pytest.mark.asyncio
    async def test_disk_disabled_instances_are_isolated(self, make_cache, cache_dir: Path):
        first = make_cache(enable_disk_cache=False)
        second = make_cache(enable_disk_cache=False)

        await first.set("k", {"v": 1})

        assert await first.get("k") == {"v": 1}
        assert await second.get("k") is None
        assert not cache_dir.exists()

    @pytest.mark.asyncio
    async def test_disk_write_failure_is_absorbed(self, make_cache, monkeypatch):
        def _fail(path, data):
            raise OSError("read-only file system")

        monkeypatch.setattr("assessment_cache.cache.backends.atomic_write_bytes", _fail)
        cache = make_cache()

        await cache.set("k", {"v": 1})

        assert await cache.get("k") == {"v": 1}

    @pytest.mark.asyncio
    async def test_unusable_cache_dir_falls_back_to_memory(self, tmp_path: Path):
        blocker = tmp_path / "occupied"
        blocker.write_text("not a directory")
        cache = AssessmentCache(cache_dir=blocker / "cache", ttl_ms=60_000, max_entries=5)

        await cache.set("k", [1, 2, 3])

        assert await cache.get("k") == [1, 2, 3]
        assert cache.disk.available is False
        assert (await cache.get_stats()).disk is None

    @pytest.mark.asyncio
    async def test_non_finite_record_is_a_miss(self, make_cache, cache_dir: Path):
        cache_dir.mkdir()
        (cache_dir / "k.json").write_text(
            '{"key": "k", "value": 1, "created_at": Infinity, "ttl_ms": 1000}', encoding="utf-8"
        )
        cache = make_cache(warm_on_initialize=False)

        assert await cache.get("k") is None
        assert not (cache_dir / "k.json").exists()

    @pytest.mark.asyncio
    async def test_warm_up_skips_non_finite_record(self, make_cache, cache_dir: Path):
        cache_dir.mkdir()
        (cache_dir / "bad.json").write_text(
            '{"key": "bad", "value": 1, "created_at": 1e400, "ttl_ms": 1000}', encoding="utf-8"
        )
        cache = make_cache()

        await cache.set("other", 1)

        assert cache.initialized is True
        assert await cache.get("other") == 1
        assert not (cache_dir / "bad.json").exists()

    @pytest.mark.asyncio
    async def test_undeletable_corrupted_record_is_a_miss(self, make_cache, cache_dir: Path, monkeypatch):
        cache_dir.mkdir()
        (cache_dir / "k.json").write_text("{not json", encoding="utf-8")
        cache = make_cache(warm_on_initialize=False)

        def _deny(self, missing_ok=False):
            raise PermissionError("read-only cache directory")

        monkeypatch.setattr(Path, "unlink", _deny)

        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_deeply_nested_value_stays_in_memory(self, make_cache, cache_dir: Path):
        cache = make_cache()
        value = []
        for _ in range(100_000):
            value = [value]

        await cache.set("k", value)

        assert await cache.get("k") is value
        assert not (cache_dir / "k.json").exists()

    @pytest.mark.asyncio
    async def test_non_json_value_stays_in_memory(self, make_cache, cache_dir: Path):
        cache = make_cache()
        value = {"tags": {"kv", "d1"}}

        await cache.set("k", value)

        assert await cache.get("k") == value
        assert not (cache_dir / "k.json").exists()


class TestClearing:

    @pytest.mark.asyncio
    async def test_clear_removes_key_from_both_tiers(self, make_cache, cache_dir: Path):
        cache = make_cache()
        await cache.set("a", 1)
        await cache.set("b", 2)

        await cache.clear("a")

        assert await cache.get("a") is None
        assert not (cache_dir / "a.json").exists()
        assert await cache.get("b") == 2

    @pytest.mark.asyncio
    async def test_clear_unknown_key_is_noop(self, make_cache):
        cache = make_cache()

        await cache.clear("never-set")

    @pytest.mark.asyncio
    async def test_clear_all(self, make_cache):
        cache = make_cache()
        await cache.set("a", 1)
        await cache.set("b", 2)

        removed = await cache.clear_all()

        assert removed == 4
        assert await cache.get("a") is None
        assert cache.disk.size() == 0


class TestStats:

    @pytest.mark.asyncio
    async def test_stats_reflect_both_tiers(self, make_cache):
        cache = make_cache(max_entries=10)
        await cache.set("a", 1)
        await cache.set("b", 2)

        stats = await cache.get_stats()

        assert isinstance(stats, CacheStats)
        assert stats.memory.total == 2
        assert stats.memory.valid == 2
        assert stats.memory.expired == 0
        assert stats.disk.total == 2
        assert stats.ttl_ms == 60_000
        assert stats.max_entries == 10

    @pytest.mark.asyncio
    async def test_stats_count_expired_without_purging(self, make_cache):
        cache = make_cache(ttl_ms=100)
        await cache.set("a", 1)
        await asyncio.sleep(0.15)

        stats = await cache.get_stats()

        assert stats.memory.total == 1
        assert stats.memory.valid == 0
        assert stats.memory.expired == 1
        assert stats.disk.expired == 1

    @pytest.mark.asyncio
    async def test_hits_and_misses(self, make_cache):
        cache = make_cache()
        await cache.set("a", 1)
        await cache.get("a")
        await cache.get("missing")

        stats = await cache.get_stats()

        assert stats.hits == 1
        assert stats.misses == 1
        assert stats.to_dict()["hit_rate"] == "50.00%"


class TestKeyGeneration:

    @pytest.mark.asyncio
    async def test_cache_dir_inside_project_does_not_change_key(self, project_dir: Path):
        cache = AssessmentCache(cache_dir=project_dir / "records", ttl_ms=60_000, max_entries=5)

        before = await cache.generate_cache_key(project_dir, {"serviceName": "api"})
        await cache.set(before, {"result": True})
        after = await cache.generate_cache_key(project_dir, {"serviceName": "api"})

        assert before == after
        assert await cache.get(after) == {"result": True}

    @pytest.mark.asyncio
    async def test_sensitive_inputs_share_key(self, make_cache, project_dir: Path):
        cache = make_cache()

        first = await cache.generate_cache_key(project_dir, {"serviceName": "api", "apiToken": "a"})
        second = await cache.generate_cache_key(project_dir, {"serviceName": "api", "apiToken": "b"})

        assert first == second


class TestFromConfig:

    def teardown_method(self):
        logging.getLogger(PACKAGE_LOGGER).setLevel(logging.NOTSET)

    def test_builds_cache_from_config(self, cache_dir: Path):
        config = CacheConfig(
            cache_dir=cache_dir,
            ttl_ms=1_000,
            max_entries=3,
            enable_disk_cache=False,
            warm_on_initialize=False,
            sensitive_patterns=["credential"],
            ignore_dirs=["vendor"],
            log_level="debug",
        )

        cache = AssessmentCache.from_config(config)

        assert cache.ttl_ms == 1_000
        assert cache.max_entries == 3
        assert cache.enable_disk_cache is False
        assert cache.sanitizer.is_sensitive("dbCredential")
        assert not cache.sanitizer.is_sensitive("apiToken")
        assert cache.ignore_dirs == frozenset({"vendor"})

    def test_does_not_change_logging(self, cache_dir: Path):
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.setLevel(logging.ERROR)
        config = CacheConfig(cache_dir=cache_dir, log_level="DEBUG")

        AssessmentCache.from_config(config)

        assert package_logger.level == logging.ERROR

    def test_invalid_config_raises(self, cache_dir: Path):
        config = CacheConfig(cache_dir=cache_dir, ttl_ms=0)

        with pytest.raises(ValueError):
            AssessmentCache.from_config(config)
