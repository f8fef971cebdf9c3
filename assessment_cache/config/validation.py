"""Configuration validation schema for the assessment cache."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.types import PositiveInt

logger = logging.getLogger(__name__)

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class CacheSettingsModel(BaseModel):
    """Assessment cache configuration model."""

    cache_dir: str = Field(".assessment-cache", description="Directory holding disk records")
    ttl_ms: PositiveInt = Field(300_000, description="Entry lifetime in milliseconds")
    max_entries: PositiveInt = Field(50, description="Memory tier capacity")
    enable_disk_cache: bool = Field(True, description="Persist entries to disk")
    warm_on_initialize: bool = Field(True, description="Load live disk records on initialize")
    sensitive_patterns: List[str] = Field(
        ["token", "password", "secret", "key"],
        description="Input field-name substrings excluded from cache keys",
    )
    ignore_dirs: List[str] = Field(
        [".git", "node_modules", "__pycache__", ".assessment-cache"],
        description="Directory names skipped while fingerprinting",
    )
    log_level: str = Field("WARNING", description="Package log level")

    @field_validator("cache_dir")
    @classmethod
    def validate_cache_dir(cls, v: str) -> str:
        """Reject an empty cache directory."""
        if not v.strip():
            raise ValueError("cache_dir must not be empty")
        return v

    @field_validator("sensitive_patterns")
    @classmethod
    def validate_patterns(cls, v: List[str]) -> List[str]:
        """Normalize patterns to lowercase and drop blanks."""
        patterns = [p.strip().lower() for p in v if p.strip()]
        if not patterns:
            logger.warning("No sensitive field patterns configured; all inputs feed cache keys")
        return patterns

    @field_validator("ttl_ms")
    @classmethod
    def validate_ttl(cls, v: int) -> int:
        """Warn about very long lifetimes."""
        if v > 24 * 60 * 60 * 1000:
            logger.warning("Very long cache TTL (>1 day) configured")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure the level is a standard logging level name."""
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return level


def validate_config_schema(config: Dict[str, Any]) -> tuple[bool, Optional[List[Dict[str, Any]]]]:
    """Validate a configuration mapping against CacheSettingsModel.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, errors) where errors is pydantic's error list
    """
    try:
        CacheSettingsModel(**config)
        return True, None
    except ValidationError as e:
        return False, e.errors()
