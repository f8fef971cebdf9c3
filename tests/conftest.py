"""Global pytest fixtures and configuration.

This module provides shared fixtures for all tests including:
- A small project tree to fingerprint
- Per-test cache directories
- A factory for cache instances bound to those directories
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from assessment_cache.cache import AssessmentCache


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Create a small service project tree.

    Returns:
        Path to the project root
    """
    root = tmp_path / "service"
    (root / "src").mkdir(parents=True)
    (root / "package.json").write_text('{"name": "demo-service"}')
    (root / "wrangler.toml").write_text('name = "demo-service"\n')
    (root / "src" / "index.js").write_text("export default { fetch() {} };\n")
    return root


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Directory for disk records, outside the project tree."""
    return tmp_path / "cache"


@pytest.fixture
def make_cache(cache_dir: Path) -> Callable[..., AssessmentCache]:
    """Factory building caches that share the per-test cache directory.

    Keyword arguments override the constructor defaults.
    """

    def _make(**overrides) -> AssessmentCache:
        options = {"cache_dir": cache_dir, "ttl_ms": 60_000, "max_entries": 5}
        options.update(overrides)
        return AssessmentCache(**options)

    return _make
