"""Utility modules for the assessment cache."""

from .logging_factory import LoggingFactory, get_logger
from .paths import atomic_write_bytes, ensure_subpath, safe_record_name

__all__ = [
    "LoggingFactory",
    "atomic_write_bytes",
    "ensure_subpath",
    "get_logger",
    "safe_record_name",
]
