"""TTL-based liveness checks applied uniformly at read time."""
from __future__ import annotations

import time
from typing import Any, Iterable, List, Optional, Tuple

from .models import CacheEntry


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class ExpiryPolicy:
    """Time-to-live policy for one cache instance.

    Every entry created through the policy gets the same ``ttl_ms``. An entry
    is expired once ``created_at + ttl_ms < now``; at exactly the boundary it
    is still live.
    """

    def __init__(self, ttl_ms: int):
        if ttl_ms <= 0:
            raise ValueError(f"ttl_ms must be positive, got {ttl_ms}")
        self.ttl_ms = int(ttl_ms)

    def new_entry(self, key: str, value: Any, created_at: Optional[int] = None) -> CacheEntry:
        """Build an entry stamped with the creation time and this policy's TTL."""
        return CacheEntry(
            key=key,
            value=value,
            created_at=now_ms() if created_at is None else created_at,
            ttl_ms=self.ttl_ms,
        )

    @staticmethod
    def is_expired(entry: CacheEntry, current_ms: Optional[int] = None) -> bool:
        """Determine if an entry has outlived its TTL.

        Args:
            entry: Entry to check
            current_ms: Reference time in epoch ms. Defaults to now; pass a
                fixed value for batch checks or tests.
        """
        current = now_ms() if current_ms is None else current_ms
        return entry.created_at + entry.ttl_ms < current

    @staticmethod
    def time_until_expiry(entry: CacheEntry, current_ms: Optional[int] = None) -> int:
        """Milliseconds left before the entry expires, never negative."""
        current = now_ms() if current_ms is None else current_ms
        return max(0, entry.created_at + entry.ttl_ms - current)

    def partition(
        self, entries: Iterable[CacheEntry], current_ms: Optional[int] = None
    ) -> Tuple[List[CacheEntry], List[CacheEntry]]:
        """Split entries into (valid, expired) against one reference time."""
        current = now_ms() if current_ms is None else current_ms
        valid: List[CacheEntry] = []
        expired: List[CacheEntry] = []
        for entry in entries:
            (expired if self.is_expired(entry, current) else valid).append(entry)
        return valid, expired
