"""FIFO eviction helpers for the memory tier.

Eviction order is insertion order: the earliest-inserted entry goes first,
regardless of how recently it was read or rewritten.

Backend Requirements:
The backend must provide size(), delete(key) and either an OrderedDict
``_cache`` attribute kept in insertion order (O(1) victim selection) or
entries() returning CacheEntry objects (O(n) fallback on created_at).
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, List, Optional

logger = logging.getLogger(__name__)


def select_fifo_victim(backend: Any) -> Optional[str]:
    """Select the oldest-inserted entry as eviction victim.

    Returns:
        The victim key, or None if the backend is empty.

    Complexity:
        O(1) for OrderedDict backends, O(n) for generic backends.
    """
    if hasattr(backend, "_cache") and isinstance(backend._cache, OrderedDict):
        return next(iter(backend._cache), None)

    entries = backend.entries()
    if not entries:
        return None
    return min(entries, key=lambda entry: entry.created_at).key


def evict_to_capacity(backend: Any, max_entries: int) -> List[str]:
    """Remove FIFO victims until the backend holds at most max_entries.

    Args:
        backend: Tier to trim
        max_entries: Capacity bound (>= 0)

    Returns:
        Evicted keys, oldest first
    """
    evicted: List[str] = []
    while backend.size() > max_entries:
        victim = select_fifo_victim(backend)
        if victim is None or not backend.delete(victim):
            break
        evicted.append(victim)

    if evicted:
        logger.debug(f"Evicted {len(evicted)} entries over capacity {max_entries}")
    return evicted
