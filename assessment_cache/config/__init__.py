"""Cache configuration loaded from environment variables."""
from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from dotenv import load_dotenv
from pydantic import ValidationError

from .validation import CacheSettingsModel, validate_config_schema

DEFAULT_CACHE_DIR = ".assessment-cache"


def _parse_bool(value: str | bool | None) -> bool:
    """Parse boolean value from various formats."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes", "on", "enabled")
    return bool(value)


def _parse_list(value: str | List[str] | None, delimiter: str = ",") -> List[str]:
    """Parse list value from string or return as-is if already a list."""
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        return [item.strip() for item in value.split(delimiter) if item.strip()]
    return [] if value is None else [value]


def _getenv(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.getenv(key, default)


def _getenv_int(key: str, default: int) -> int:
    """Get integer environment variable with validation.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Parsed integer value

    Raises:
        ValueError: If value cannot be parsed as integer
    """
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(
            f"Invalid integer value for {key}='{value}'. "
            f"Expected integer, got: {value}"
        ) from e


@dataclass
class CacheConfig:
    """Assessment cache configuration loaded from environment variables."""

    # ========== Storage ==========
    cache_dir: Path = field(
        default_factory=lambda: Path(_getenv("ASSESSMENT_CACHE_DIR", DEFAULT_CACHE_DIR))
    )
    enable_disk_cache: bool = field(
        default_factory=lambda: _parse_bool(_getenv("ASSESSMENT_CACHE_DISK_ENABLED", "true"))
    )
    warm_on_initialize: bool = field(
        default_factory=lambda: _parse_bool(_getenv("ASSESSMENT_CACHE_WARM_ON_INIT", "true"))
    )

    # ========== Expiry & Capacity ==========
    ttl_ms: int = field(default_factory=lambda: _getenv_int("ASSESSMENT_CACHE_TTL_MS", 300_000))
    max_entries: int = field(default_factory=lambda: _getenv_int("ASSESSMENT_CACHE_MAX_ENTRIES", 50))

    # ========== Key Derivation ==========
    sensitive_patterns: List[str] = field(
        default_factory=lambda: _parse_list(
            _getenv("ASSESSMENT_CACHE_SENSITIVE_PATTERNS", "token,password,secret,key")
        )
    )
    ignore_dirs: List[str] = field(
        default_factory=lambda: _parse_list(
            _getenv(
                "ASSESSMENT_CACHE_IGNORE_DIRS",
                f".git,node_modules,__pycache__,{DEFAULT_CACHE_DIR}",
            )
        )
    )

    # ========== Logging ==========
    log_level: str = field(
        default_factory=lambda: _getenv("ASSESSMENT_CACHE_LOG_LEVEL", "WARNING").upper()
    )

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "CacheConfig":
        """Load a .env file (without overriding the real environment) and build a config.

        Args:
            env_file: Explicit .env path. When None, python-dotenv searches
                upward from the working directory.

        Returns:
            CacheConfig populated from the environment
        """
        if env_file is not None:
            load_dotenv(env_file, override=False)
        else:
            load_dotenv(override=False)
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a plain dictionary."""
        data = asdict(self)
        data["cache_dir"] = str(self.cache_dir)
        return data

    def validate(self) -> bool:
        """Validate configuration against CacheSettingsModel.

        Returns:
            True if valid

        Raises:
            ValueError: If validation fails
        """
        try:
            CacheSettingsModel(**self.to_dict())
        except ValidationError as e:
            raise ValueError(f"Invalid assessment cache configuration: {e}") from e
        return True


__all__ = [
    "CacheConfig",
    "CacheSettingsModel",
    "DEFAULT_CACHE_DIR",
    "validate_config_schema",
]
