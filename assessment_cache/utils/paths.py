"""Path utilities for cache record naming and safe file writes.

Functions here centralize record-name sanitization, containment checks, and
atomic writes for the disk tier.
"""

from __future__ import annotations

import hashlib
import os
import re
import tempfile
from pathlib import Path

# Keys made only of these characters are already safe to use as file names
_SAFE_NAME = re.compile(r"[A-Za-z0-9_-]{1,128}")


def safe_record_name(key: str) -> str:
    """Return a filesystem-safe file stem for a cache key.

    Short keys of letters, digits, hyphens and underscores are kept as-is so
    records stay recognizable. Anything else maps to its SHA-256 hex digest.
    """
    if _SAFE_NAME.fullmatch(key):
        return key
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def ensure_subpath(root: Path, sub: Path | str) -> Path:
    """Return absolute path for `root/sub` ensuring it stays within `root`.

    Raises ValueError if the resolved path escapes the root directory.
    """
    root_resolved = Path(root).resolve()
    candidate = (root_resolved / Path(sub)).resolve()
    try:
        candidate.relative_to(root_resolved)
    except ValueError as e:
        raise ValueError(f"Path escapes root: {candidate} not in {root_resolved}") from e
    return candidate


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write bytes to `path` through a sibling temp file and `os.replace`.

    Readers never observe a half-written file. Propagates OSError to the
    caller; the temp file is removed on failure.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
