"""Exception types raised by the assessment cache."""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class AssessmentCacheError(Exception):
    """Base class for all assessment cache errors."""


class FileSystemError(AssessmentCacheError):
    """Raised when a path cannot be read or written.

    Only the project root being fingerprinted surfaces this to callers. The
    disk tier catches it for its own directory and degrades to memory-only.
    """

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None) -> None:
        self.path = Path(path) if path is not None else None
        super().__init__(message)


class SerializationError(AssessmentCacheError):
    """Raised when a cache record cannot be encoded or decoded."""
