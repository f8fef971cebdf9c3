"""Fingerprint-keyed, two-tier result cache for project assessments."""

import logging

from .cache import (
    AssessmentCache,
    CacheEntry,
    CacheStats,
    CachedAssessment,
    DiskCache,
    ExpiryPolicy,
    FileFingerprint,
    InMemoryCache,
    InputSanitizer,
    TierStats,
    compute_cache_key,
    generate_cache_key,
    run_cached_assessment,
    scan_directory,
)
from .config import CacheConfig
from .exceptions import AssessmentCacheError, FileSystemError, SerializationError

# Library default: stay silent unless the host application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.0"

__all__ = [
    "AssessmentCache",
    "AssessmentCacheError",
    "CacheConfig",
    "CacheEntry",
    "CacheStats",
    "CachedAssessment",
    "DiskCache",
    "ExpiryPolicy",
    "FileFingerprint",
    "FileSystemError",
    "InMemoryCache",
    "InputSanitizer",
    "SerializationError",
    "TierStats",
    "compute_cache_key",
    "generate_cache_key",
    "run_cached_assessment",
    "scan_directory",
]
