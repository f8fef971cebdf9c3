"""Run a project assessment through the cache."""
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from .assessment_cache import AssessmentCache

logger = logging.getLogger(__name__)


@dataclass
class CachedAssessment:
    """Assessment result plus where it came from.

    Attributes:
        value: The assessment result
        cached: True if served from the cache
        cache_key: Key the result is stored under (None when caching is off)
    """

    value: Any
    cached: bool
    cache_key: Optional[str] = None


async def run_cached_assessment(
    cache: Optional[AssessmentCache],
    root_path: Union[str, Path],
    inputs: Optional[Mapping[str, Any]],
    compute: Callable[[], Any],
) -> CachedAssessment:
    """Return a cached assessment for root_path, computing and storing it on a miss.

    Args:
        cache: Cache to use; None runs compute() directly
        root_path: Project root the assessment scans
        inputs: Caller parameters that influence the assessment
        compute: Zero-argument callable (sync or async) producing the result

    Returns:
        CachedAssessment wrapping the result

    Raises:
        FileSystemError: If root_path cannot be fingerprinted
    """
    if cache is None:
        return CachedAssessment(value=await _call(compute), cached=False)

    cache_key = await cache.generate_cache_key(root_path, inputs)
    cached_value = await cache.get(cache_key)
    if cached_value is not None:
        logger.info(f"Assessment loaded from cache ({cache_key[:12]})")
        return CachedAssessment(value=cached_value, cached=True, cache_key=cache_key)

    result = await _call(compute)
    # None is indistinguishable from a miss, so it is never stored
    if result is not None:
        await cache.set(cache_key, result)
    return CachedAssessment(value=result, cached=False, cache_key=cache_key)


async def _call(compute: Callable[[], Any]) -> Any:
    result = compute()
    if inspect.isawaitable(result):
        result = await result
    return result
