"""Core data types shared by the cache tiers and the facade.

Architecture:
    AssessmentCache (facade)
    ├── InMemoryCache (CacheBackend, insertion-ordered, FIFO capacity bound)
    ├── DiskCache (CacheBackend, one JSON record per key)
    ├── ExpiryPolicy (uniform TTL, checked at read time)
    └── CacheStats (per-tier live/expired counts)
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set


@dataclass(frozen=True)
class CacheEntry:
    """A cached value plus the metadata needed to decide its liveness.

    Entries are never mutated; a new set() for the same key builds a fresh
    entry that fully replaces the old one.

    Attributes:
        key: Cache key the entry was stored under
        value: Opaque, JSON-compatible payload
        created_at: Creation time in epoch milliseconds
        ttl_ms: Lifetime in milliseconds
    """

    key: str
    value: Any
    created_at: int
    ttl_ms: int

    @property
    def expires_at(self) -> int:
        """Epoch milliseconds after which the entry is expired."""
        return self.created_at + self.ttl_ms

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted record layout."""
        return {
            "key": self.key,
            "value": self.value,
            "created_at": self.created_at,
            "ttl_ms": self.ttl_ms,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        """Create an entry from a persisted record.

        Raises:
            KeyError: If a field is missing
            TypeError: If a field has the wrong type
            ValueError: If a timestamp or TTL is not finite
        """
        key = data["key"]
        created_at = data["created_at"]
        ttl_ms = data["ttl_ms"]
        if not isinstance(key, str):
            raise TypeError(f"record key must be a string, got {type(key).__name__}")
        for name, number in (("created_at", created_at), ("ttl_ms", ttl_ms)):
            if isinstance(number, bool) or not isinstance(number, (int, float)):
                raise TypeError(f"record {name} must be a number, got {type(number).__name__}")
            if not math.isfinite(number):
                raise ValueError(f"record {name} must be finite, got {number}")
        return cls(key=key, value=data["value"], created_at=int(created_at), ttl_ms=int(ttl_ms))


@dataclass
class TierStats:
    """Entry counts for one cache tier."""

    total: int = 0
    valid: int = 0
    expired: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"total": self.total, "valid": self.valid, "expired": self.expired}


@dataclass
class CacheStats:
    """Cache statistics, computed when requested."""

    memory: TierStats = field(default_factory=TierStats)
    disk: Optional[TierStats] = None
    ttl_ms: int = 0
    max_entries: int = 0
    hits: int = 0
    misses: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate.

        Returns:
            Hit rate percentage
        """
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits / total) * 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary.

        Returns:
            Stats dictionary
        """
        return {
            "memory": self.memory.to_dict(),
            "disk": self.disk.to_dict() if self.disk is not None else None,
            "ttl_ms": self.ttl_ms,
            "max_entries": self.max_entries,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": f"{self.hit_rate:.2f}%",
        }


class CacheBackend(ABC):
    """Abstract base class for cache tiers.

    Backends store whole CacheEntry objects and never apply expiry; the
    facade owns liveness decisions. Backends must not raise for ordinary
    misses.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        """Get entry from the tier.

        Args:
            key: Cache key

        Returns:
            Cache entry or None
        """

    @abstractmethod
    def put(self, key: str, entry: CacheEntry) -> bool:
        """Store entry, replacing any previous entry for the key.

        Returns:
            True if stored
        """

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete entry.

        Returns:
            True if an entry was removed
        """

    @abstractmethod
    def clear(self) -> int:
        """Clear all entries.

        Returns:
            Number of entries cleared
        """

    @abstractmethod
    def size(self) -> int:
        """Number of entries held."""

    @abstractmethod
    def keys(self) -> Set[str]:
        """Get all keys."""

    @abstractmethod
    def entries(self) -> List[CacheEntry]:
        """Get all entries, oldest insertion first where the tier tracks order."""
