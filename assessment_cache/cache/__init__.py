"""Caching layer for project assessment results.

Components:
    Cache Tiers:
        - InMemoryCache: Insertion-ordered in-process tier with FIFO eviction
        - DiskCache: Best-effort per-key JSON records that survive restarts

    Core Classes:
        - AssessmentCache: Facade composing both tiers with TTL expiry
        - ExpiryPolicy: Uniform time-to-live checks
        - CacheEntry: Immutable cached value with creation time and TTL
        - CacheStats / TierStats: Live per-tier counts

    Key Derivation:
        - generate_cache_key / compute_cache_key: Fingerprint-based keys
        - InputSanitizer: Configurable deny-list for credential-like inputs

Usage:
    Basic caching with disk tier::

        from assessment_cache.cache import AssessmentCache

        cache = AssessmentCache(cache_dir=".assessment-cache", ttl_ms=300_000)
        key = await cache.generate_cache_key("./my-service", {"env": "prod"})

        result = await cache.get(key)
        if result is None:
            result = assess("./my-service")
            await cache.set(key, result)
"""

from .assessment_cache import AssessmentCache
from .backends import DiskCache, InMemoryCache
from .common import SerializationHelper
from .expiry import ExpiryPolicy, now_ms
from .fingerprint import (
    DEFAULT_IGNORE_DIRS,
    DEFAULT_SENSITIVE_PATTERNS,
    FileFingerprint,
    InputSanitizer,
    compute_cache_key,
    generate_cache_key,
    scan_directory,
)
from .models import CacheBackend, CacheEntry, CacheStats, TierStats
from .runner import CachedAssessment, run_cached_assessment

__all__ = [
    "AssessmentCache",
    "CacheBackend",
    "CacheEntry",
    "CacheStats",
    "CachedAssessment",
    "DEFAULT_IGNORE_DIRS",
    "DEFAULT_SENSITIVE_PATTERNS",
    "DiskCache",
    "ExpiryPolicy",
    "FileFingerprint",
    "InMemoryCache",
    "InputSanitizer",
    "SerializationHelper",
    "TierStats",
    "compute_cache_key",
    "generate_cache_key",
    "now_ms",
    "run_cached_assessment",
    "scan_directory",
]
