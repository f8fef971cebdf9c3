"""Two-tier cache for project assessment results.

Combines a private in-memory tier with a best-effort disk tier under one
uniform TTL and a FIFO capacity bound:

- Keys come from project fingerprints (path/mtime/size + sanitized inputs)
- Memory is consulted first; disk only on a memory miss
- Disk hits are promoted back into memory
- Expired entries are purged from both tiers when read
- Disk problems are logged and absorbed; the cache keeps working memory-only

Example:
    ```python
    cache = AssessmentCache(cache_dir=project / ".assessment-cache", ttl_ms=60_000)

    key = await cache.generate_cache_key(project, {"service": "api", "token": "..."})
    result = await cache.get(key)
    if result is None:
        result = assess_project(project)
        await cache.set(key, result)
    ```
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from ..config import DEFAULT_CACHE_DIR, CacheConfig
from .backends import DiskCache, InMemoryCache
from .expiry import ExpiryPolicy, now_ms
from .fingerprint import DEFAULT_IGNORE_DIRS, InputSanitizer, generate_cache_key
from .models import CacheEntry, CacheStats, TierStats

logger = logging.getLogger(__name__)


class AssessmentCache:
    """Memory + disk cache facade for one cache directory and one TTL/capacity.

    Each instance is independent; construct one per run and hand it to the
    code that needs it.

    Cache Hit Flow:
        1. Memory tier lookup; live entry -> return value
        2. Memory miss -> disk record lookup
        3. Live disk entry -> copy into memory, return value
        4. Expired entry in either tier -> purge from both, report miss

    Set Flow:
        1. Build entry (created_at=now, ttl_ms=instance TTL)
        2. Write memory tier before the disk persist starts
        3. Evict earliest-inserted entries over capacity (from both tiers)
        4. Persist to disk, absorbing any failure

    Thread Safety:
        Intended for a single event loop. Blocking disk work runs through
        asyncio.to_thread; the tiers guard their own state with locks.
    """

    def __init__(
        self,
        cache_dir: Union[str, Path] = DEFAULT_CACHE_DIR,
        ttl_ms: int = 300_000,
        max_entries: int = 50,
        enable_disk_cache: bool = True,
        warm_on_initialize: bool = True,
        sanitizer: Optional[InputSanitizer] = None,
        ignore_dirs: Optional[Iterable[str]] = None,
    ):
        """Initialize the cache (no I/O until initialize(), get() or set()).

        Args:
            cache_dir: Directory for disk records
            ttl_ms: Lifetime of every entry in milliseconds
            max_entries: Memory tier capacity
            enable_disk_cache: False keeps everything in memory
            warm_on_initialize: Load live disk records into memory on initialize
            sanitizer: Sensitive-field deny-list for key generation
            ignore_dirs: Directory names skipped while fingerprinting
        """
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")

        self.cache_dir = Path(cache_dir)
        self.expiry = ExpiryPolicy(ttl_ms)
        self.max_entries = max_entries
        self.enable_disk_cache = enable_disk_cache
        self.warm_on_initialize = warm_on_initialize
        self.sanitizer = sanitizer or InputSanitizer()
        self.ignore_dirs = frozenset(DEFAULT_IGNORE_DIRS if ignore_dirs is None else ignore_dirs)

        self.memory = InMemoryCache()
        self.disk = DiskCache(self.cache_dir, enabled=enable_disk_cache)

        self._initialized = False
        self._init_lock: Optional[asyncio.Lock] = None
        self._hits = 0
        self._misses = 0

        logger.info(
            f"Created AssessmentCache ttl={self.ttl_ms}ms, max_entries={max_entries}, "
            f"disk={'on' if enable_disk_cache else 'off'} ({self.cache_dir})"
        )

    @classmethod
    def from_config(cls, config: CacheConfig) -> "AssessmentCache":
        """Build a cache from a validated CacheConfig.

        Logging is left to the host; pass ``config.log_level`` to
        LoggingFactory.initialize() to apply it.

        Raises:
            ValueError: If the configuration is invalid
        """
        config.validate()
        return cls(
            cache_dir=config.cache_dir,
            ttl_ms=config.ttl_ms,
            max_entries=config.max_entries,
            enable_disk_cache=config.enable_disk_cache,
            warm_on_initialize=config.warm_on_initialize,
            sanitizer=InputSanitizer(config.sensitive_patterns),
            ignore_dirs=config.ignore_dirs,
        )

    @property
    def ttl_ms(self) -> int:
        return self.expiry.ttl_ms

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Prepare the disk tier and optionally warm memory from it.

        Safe to call any number of times; get(), set() and friends call it
        lazily. Disk problems only downgrade the cache to memory-only.
        """
        if self._initialized:
            return
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()

        async with self._init_lock:
            if self._initialized:
                return
            if self.enable_disk_cache:
                ready = await asyncio.to_thread(self.disk.initialize)
                if ready and self.warm_on_initialize:
                    await self._warm_from_disk()
            self._initialized = True

    async def _warm_from_disk(self) -> None:
        """Load the newest live disk records into memory and drop expired ones."""
        records = await asyncio.to_thread(self.disk.entries)
        valid, expired = self.expiry.partition(records)

        for entry in expired:
            await asyncio.to_thread(self.disk.delete, entry.key)

        # Oldest first so insertion order mirrors creation order
        valid.sort(key=lambda entry: entry.created_at)
        for entry in valid[-self.max_entries:]:
            if not self.memory.exists(entry.key):
                self.memory.put(entry.key, entry)
        self.memory.evict_if_over_capacity(self.max_entries)

        logger.info(f"Warmed {min(len(valid), self.max_entries)} entries from disk, removed {len(expired)} expired")

    async def generate_cache_key(
        self, root_path: Union[str, Path], inputs: Optional[Mapping[str, Any]] = None
    ) -> str:
        """Derive the key for a project state using this cache's sanitizer.

        The cache directory is excluded from the scan so the cache's own
        writes never change project keys.

        Raises:
            FileSystemError: If root_path cannot be read
            TypeError: If an input value is not JSON-compatible
        """
        return await generate_cache_key(
            root_path,
            inputs,
            sanitizer=self.sanitizer,
            ignore_dirs=self.ignore_dirs,
            exclude_paths=[self.cache_dir],
        )

    async def get(self, key: str) -> Optional[Any]:
        """Get a live value, or None on any miss.

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        await self.initialize()
        current = now_ms()

        entry = self.memory.get(key)
        if entry is not None:
            if not self.expiry.is_expired(entry, current):
                self._hits += 1
                logger.debug(f"Cache hit for {key} from memory")
                return entry.value
            await self._purge(key)
            self._misses += 1
            return None

        if self.disk.available:
            entry = await asyncio.to_thread(self.disk.get, key)
            if entry is not None:
                if self.expiry.is_expired(entry, current):
                    await self._purge(key)
                    self._misses += 1
                    return None
                await self._store_in_memory(key, entry)
                self._hits += 1
                logger.debug(f"Cache hit for {key} from disk")
                return entry.value

        self._misses += 1
        logger.debug(f"Cache miss for {key}")
        return None

    async def set(self, key: str, value: Any) -> None:
        """Store a value under key, replacing any previous entry.

        The memory write completes before the disk persist starts, so a
        following get() from the same caller always sees the value. Disk
        failures are logged and never raised.

        Args:
            key: Cache key
            value: Opaque JSON-compatible payload
        """
        await self.initialize()

        entry = self.expiry.new_entry(key, value)
        await self._store_in_memory(key, entry)

        if self.disk.available:
            await asyncio.to_thread(self.disk.put, key, entry)
        logger.debug(f"Cached {key}")

    async def _store_in_memory(self, key: str, entry: CacheEntry) -> None:
        self.memory.put(key, entry)
        evicted = self.memory.evict_if_over_capacity(self.max_entries)
        # Evicted keys must read as misses, so their records go too
        if evicted and self.disk.available:
            for victim in evicted:
                await asyncio.to_thread(self.disk.delete, victim)

    async def _purge(self, key: str) -> None:
        self.memory.delete(key)
        if self.disk.available:
            await asyncio.to_thread(self.disk.delete, key)
        logger.debug(f"Purged expired entry {key}")

    async def clear(self, key: str) -> None:
        """Remove one key from both tiers."""
        await self.initialize()
        await self._purge(key)

    async def clear_all(self) -> int:
        """Remove every entry from both tiers.

        Returns:
            Number of memory entries plus disk records removed
        """
        await self.initialize()
        count = self.memory.clear()
        if self.disk.available:
            count += await asyncio.to_thread(self.disk.clear)
        logger.info(f"Cleared {count} cache entries")
        return count

    async def prune(self) -> int:
        """Delete expired entries from both tiers.

        Returns:
            Number of distinct keys removed
        """
        await self.initialize()
        current = now_ms()

        _, expired = self.expiry.partition(self.memory.entries(), current)
        removed = {entry.key for entry in expired}
        for key in removed:
            self.memory.delete(key)

        if self.disk.available:
            records = await asyncio.to_thread(self.disk.entries)
            _, expired_records = self.expiry.partition(records, current)
            for entry in expired_records:
                if await asyncio.to_thread(self.disk.delete, entry.key):
                    removed.add(entry.key)

        if removed:
            logger.debug(f"Pruned {len(removed)} expired entries")
        return len(removed)

    async def get_stats(self) -> CacheStats:
        """Compute live statistics for both tiers.

        Validity is evaluated now against the expiry policy, never cached.
        ``disk`` is None when the disk tier is disabled or unavailable.
        """
        await self.initialize()
        current = now_ms()

        memory_entries = self.memory.entries()
        valid, expired = self.expiry.partition(memory_entries, current)
        stats = CacheStats(
            memory=TierStats(total=len(memory_entries), valid=len(valid), expired=len(expired)),
            ttl_ms=self.ttl_ms,
            max_entries=self.max_entries,
            hits=self._hits,
            misses=self._misses,
        )

        if self.disk.available:
            records = await asyncio.to_thread(self.disk.entries)
            disk_valid, disk_expired = self.expiry.partition(records, current)
            stats.disk = TierStats(total=len(records), valid=len(disk_valid), expired=len(disk_expired))

        return stats
