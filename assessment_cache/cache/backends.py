"""Cache tier implementations for the assessment cache.

This module provides two backends:

- InMemoryCache: Fast, thread-safe in-memory tier with insertion-ordered
  (FIFO) capacity eviction. Private to one process.

- DiskCache: Best-effort persistent tier storing one JSON record per key.
  Survives restarts and degrades to a no-op when its directory is unusable.

Both implement the CacheBackend interface. Neither applies TTL expiry; the
facade decides liveness.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from pathlib import Path
from threading import Lock, RLock
from typing import List, Optional, Set, Union

from ..exceptions import FileSystemError, SerializationError
from ..utils.paths import atomic_write_bytes, ensure_subpath, safe_record_name
from .common import SerializationHelper
from .eviction import evict_to_capacity
from .models import CacheBackend, CacheEntry

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".json"


class InMemoryCache(CacheBackend):
    """Thread-safe in-memory tier with FIFO eviction.

    Entries live in an OrderedDict in first-insertion order. Rewriting an
    existing key replaces its entry in place without moving it, and reads
    never reorder, so eviction always removes the earliest-inserted key.

    Performance:
        - O(1) get, put, delete
        - O(1) per evicted entry
        - No persistence - data lost on process termination

    Attributes:
        _cache (OrderedDict): Internal storage in insertion order
        _lock (RLock): Reentrant lock for thread safety
    """

    def __init__(self):
        self._cache: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = RLock()

    def get(self, key: str) -> Optional[CacheEntry]:
        """Retrieve an entry without touching its eviction position."""
        with self._lock:
            return self._cache.get(key)

    def put(self, key: str, entry: CacheEntry) -> bool:
        """Insert or replace an entry.

        Replacing keeps the key's original insertion position.

        Returns:
            Always True; capacity is enforced separately by
            evict_if_over_capacity().
        """
        with self._lock:
            self._cache[key] = entry
            return True

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._cache

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._cache.pop(key, None) is not None

    def clear(self) -> int:
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            return count

    def size(self) -> int:
        with self._lock:
            return len(self._cache)

    def keys(self) -> Set[str]:
        with self._lock:
            return set(self._cache.keys())

    def entries(self) -> List[CacheEntry]:
        with self._lock:
            return list(self._cache.values())

    def evict_if_over_capacity(self, max_entries: int) -> List[str]:
        """Remove earliest-inserted entries until size() <= max_entries.

        Args:
            max_entries: Capacity bound

        Returns:
            Evicted keys, oldest first (empty when within bound)
        """
        with self._lock:
            return evict_to_capacity(self, max_entries)


class DiskCache(CacheBackend):
    """Best-effort persistent tier with one JSON file per key.

    Records are named ``<safe-name>.json`` inside ``cache_dir`` and written
    atomically, so readers see either the old or the new record. Each record
    is self-contained and can be removed without touching its siblings.

    Degradation:
        The tier starts unavailable. initialize() creates the directory; if
        that fails, or the tier was constructed with enabled=False, every
        operation becomes a no-op reporting a miss. No method raises for
        I/O or decoding problems; failures are logged and absorbed.

    Thread Safety:
        File operations are serialized with a Lock within one process. There
        is no cross-process locking; concurrent writers to one record race
        and the last os.replace wins.

    Attributes:
        cache_dir (Path): Directory holding the records
        enabled (bool): Whether disk caching was requested
    """

    def __init__(self, cache_dir: Union[str, Path], enabled: bool = True):
        """Initialize disk tier (no I/O happens until initialize()).

        Args:
            cache_dir: Record directory (string or Path object)
            enabled: False makes the tier a permanent no-op
        """
        self.cache_dir = Path(cache_dir)
        self.enabled = enabled
        self._available = False
        self._lock = Lock()

    @property
    def available(self) -> bool:
        """True once initialize() succeeded on an enabled tier."""
        return self._available

    def initialize(self) -> bool:
        """Create the record directory if needed.

        Idempotent. Never raises.

        Returns:
            True if the tier is usable
        """
        if not self.enabled:
            return False
        if self._available:
            return True

        with self._lock:
            try:
                self._ensure_directory()
            except FileSystemError as e:
                logger.warning(f"Disk cache disabled, continuing memory-only: {e}")
                return False
            self._available = True

        logger.info(f"Initialized DiskCache at {self.cache_dir}")
        return True

    def _ensure_directory(self) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(f"Cannot create cache directory {self.cache_dir}: {e}", self.cache_dir) from e
        if not self.cache_dir.is_dir():
            raise FileSystemError(f"Cache path is not a directory: {self.cache_dir}", self.cache_dir)

    def _record_path(self, key: str) -> Path:
        return ensure_subpath(self.cache_dir, safe_record_name(key) + RECORD_SUFFIX)

    def _record_files(self) -> List[Path]:
        # Skip in-flight temp files, which are dot-prefixed
        return sorted(
            p for p in self.cache_dir.glob(f"*{RECORD_SUFFIX}")
            if p.is_file() and not p.name.startswith(".")
        )

    def _read_record(self, path: Path) -> Optional[CacheEntry]:
        """Read one record file; corrupted records are deleted.

        Must be called within the lock.
        """
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Failed to read cache record {path.name}: {e}")
            return None

        try:
            return SerializationHelper.deserialize_entry(data)
        except SerializationError as e:
            logger.warning(f"Discarding corrupted cache record {path.name}: {e}")
            try:
                path.unlink(missing_ok=True)
            except OSError as unlink_error:
                logger.warning(f"Failed to delete corrupted cache record {path.name}: {unlink_error}")
            return None

    def get(self, key: str) -> Optional[CacheEntry]:
        """Load the record for a key.

        Returns:
            The stored entry, or None when the tier is unavailable, the record
            is missing, unreadable, corrupted (and then deleted), or belongs to
            a different key.
        """
        if not self._available:
            return None

        with self._lock:
            entry = self._read_record(self._record_path(key))

        if entry is not None and entry.key != key:
            logger.debug(f"Disk record for {key!r} holds key {entry.key!r}; treating as miss")
            return None
        return entry

    def put(self, key: str, entry: CacheEntry) -> bool:
        """Persist an entry, replacing any previous record for the key.

        Returns:
            True if written; False when unavailable or on any encode/write
            failure (logged, never raised)
        """
        if not self._available:
            return False

        try:
            data = SerializationHelper.serialize_entry(entry)
        except SerializationError as e:
            logger.warning(f"Not persisting cache entry: {e}")
            return False

        with self._lock:
            try:
                atomic_write_bytes(self._record_path(key), data)
            except OSError as e:
                logger.warning(f"Failed to save to disk cache: {e}")
                return False

        logger.debug(f"Persisted {key} ({len(data)} bytes)")
        return True

    def exists(self, key: str) -> bool:
        if not self._available:
            return False
        return self._record_path(key).is_file()

    def delete(self, key: str) -> bool:
        if not self._available:
            return False

        with self._lock:
            path = self._record_path(key)
            try:
                path.unlink()
                return True
            except FileNotFoundError:
                return False
            except OSError as e:
                logger.warning(f"Failed to delete cache record {path.name}: {e}")
                return False

    def clear(self) -> int:
        """Remove every record.

        Returns:
            Number of records removed
        """
        if not self._available:
            return 0

        count = 0
        with self._lock:
            try:
                files = self._record_files()
            except OSError as e:
                logger.warning(f"Failed to list disk cache: {e}")
                return 0
            for path in files:
                try:
                    path.unlink()
                    count += 1
                except FileNotFoundError:
                    continue
                except OSError as e:
                    logger.warning(f"Failed to delete cache record {path.name}: {e}")
        return count

    def entries(self) -> List[CacheEntry]:
        """Load every decodable record, deleting corrupted ones on the way."""
        if not self._available:
            return []

        with self._lock:
            try:
                files = self._record_files()
            except OSError as e:
                logger.warning(f"Failed to list disk cache: {e}")
                return []
            loaded = (self._read_record(path) for path in files)
            return [entry for entry in loaded if entry is not None]

    def size(self) -> int:
        """Number of record files currently on disk."""
        if not self._available:
            return 0

        with self._lock:
            try:
                return len(self._record_files())
            except OSError as e:
                logger.warning(f"Failed to list disk cache: {e}")
                return 0

    def keys(self) -> Set[str]:
        return {entry.key for entry in self.entries()}
