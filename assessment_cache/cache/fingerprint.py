"""Deterministic cache keys from project file metadata and caller inputs.

A key is the SHA-256 of a canonical JSON document holding:

- the resolved project root,
- the caller inputs with credential-like fields removed,
- every file's (relative path, mtime_ns, size), sorted by path.

File contents are never read, so fingerprinting costs one stat per file.
Touching or resizing any file changes the key; an untouched tree with the
same inputs always yields the same key, in any process.
"""
from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import os
import stat
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from ..exceptions import FileSystemError

logger = logging.getLogger(__name__)

DEFAULT_SENSITIVE_PATTERNS = ("token", "password", "secret", "key")
DEFAULT_IGNORE_DIRS = frozenset({".git", "node_modules", "__pycache__", ".assessment-cache"})

PathLike = Union[str, Path]
FileLister = Callable[[Path], Iterable["FileFingerprint"]]


@dataclass(frozen=True)
class FileFingerprint:
    """Metadata signature of one file: POSIX-style relative path, mtime in ns, size in bytes."""

    path: str
    mtime_ns: int
    size: int

    def to_json_list(self) -> List[Any]:
        return [self.path, self.mtime_ns, self.size]


class InputSanitizer:
    """Removes credential-like fields from caller inputs before hashing.

    A field is sensitive when its name contains any deny-listed pattern,
    compared case-insensitively ("apiToken" matches "token"). Nested mappings
    and mappings inside lists are sanitized too. Stripping (rather than
    masking) keeps secret values from influencing keys at all.
    """

    def __init__(self, patterns: Iterable[str] = DEFAULT_SENSITIVE_PATTERNS):
        self.patterns = tuple(p.strip().lower() for p in patterns if p and p.strip())

    def extend(self, *patterns: str) -> "InputSanitizer":
        """Return a new sanitizer with additional patterns."""
        return InputSanitizer(self.patterns + patterns)

    def is_sensitive(self, name: Any) -> bool:
        lowered = str(name).lower()
        return any(pattern in lowered for pattern in self.patterns)

    def sanitize(self, inputs: Optional[Mapping[Any, Any]]) -> Dict[str, Any]:
        """Copy inputs without sensitive fields; keys become strings."""
        if not inputs:
            return {}
        return {
            str(name): self._sanitize_value(value)
            for name, value in inputs.items()
            if not self.is_sensitive(name)
        }

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return self.sanitize(value)
        if isinstance(value, (list, tuple)):
            return [self._sanitize_value(item) for item in value]
        if isinstance(value, (set, frozenset)):
            # Iteration order of sets varies between processes
            return sorted(str(item) for item in value)
        return value


def _canonical_default(value: Any) -> Any:
    """Render the few non-JSON input types whose text form is stable across processes."""
    if isinstance(value, Path):
        return value.as_posix()
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Cache key inputs must be JSON-compatible, got {type(value).__name__}")


def _resolve_root(root_path: PathLike) -> Path:
    """Resolve and validate the project root.

    Raises:
        FileSystemError: If the root is missing, not a directory, or unreadable
    """
    try:
        resolved = Path(root_path).resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise FileSystemError(f"Project root not accessible: {root_path} ({e})", root_path) from e
    if not resolved.is_dir():
        raise FileSystemError(f"Project root is not a directory: {resolved}", resolved)
    if not os.access(resolved, os.R_OK | os.X_OK):
        raise FileSystemError(f"Project root is not readable: {resolved}", resolved)
    return resolved


def scan_directory(
    root_path: PathLike,
    ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS,
    exclude_paths: Sequence[PathLike] = (),
) -> List[FileFingerprint]:
    """Collect fingerprints for every regular file under root_path.

    Args:
        root_path: Project root
        ignore_dirs: Directory names pruned anywhere in the tree
        exclude_paths: Specific directories pruned by location (e.g. the
            cache directory itself)

    Returns:
        Fingerprints sorted by relative path

    Raises:
        FileSystemError: If the root or any directory below it cannot be listed
    """
    root = _resolve_root(root_path)
    ignored = frozenset(ignore_dirs)
    excluded = {Path(p).resolve() for p in exclude_paths}

    def _raise_listing_error(err: OSError) -> None:
        raise FileSystemError(f"Cannot list {err.filename}: {err.strerror}", err.filename) from err

    fingerprints: List[FileFingerprint] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_listing_error):
        current = Path(dirpath)
        dirnames[:] = [
            d for d in dirnames if d not in ignored and (current / d) not in excluded
        ]
        for name in filenames:
            full_path = current / name
            try:
                st = full_path.stat()
            except FileNotFoundError:
                # Deleted mid-scan or a dangling symlink
                continue
            except OSError as e:
                raise FileSystemError(f"Cannot stat {full_path}: {e}", full_path) from e
            if not stat.S_ISREG(st.st_mode):
                continue
            fingerprints.append(
                FileFingerprint(
                    path=full_path.relative_to(root).as_posix(),
                    mtime_ns=st.st_mtime_ns,
                    size=st.st_size,
                )
            )

    fingerprints.sort(key=lambda fp: fp.path)
    return fingerprints


def compute_cache_key(
    root_path: PathLike,
    inputs: Optional[Mapping[Any, Any]] = None,
    *,
    sanitizer: Optional[InputSanitizer] = None,
    lister: Optional[FileLister] = None,
    ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS,
    exclude_paths: Sequence[PathLike] = (),
) -> str:
    """Synchronously derive the cache key for a project state and inputs.

    Args:
        root_path: Project root to fingerprint
        inputs: Caller parameters; sensitive fields are dropped. Values must
            be JSON-like (Path, date, datetime and Enum are also accepted)
        sanitizer: Deny-list to apply (defaults to InputSanitizer())
        lister: Replacement file enumerator; receives the resolved root and
            returns FileFingerprint objects in any order
        ignore_dirs: Directory names skipped by the default enumerator
        exclude_paths: Directories skipped by location by the default enumerator

    Returns:
        64-character lowercase hex digest

    Raises:
        FileSystemError: If the root cannot be read
        TypeError: If an input value has no stable JSON rendering
    """
    root = _resolve_root(root_path)
    sanitizer = sanitizer or InputSanitizer()

    if lister is None:
        files = scan_directory(root, ignore_dirs=ignore_dirs, exclude_paths=exclude_paths)
    else:
        files = sorted(lister(root), key=lambda fp: fp.path)

    payload = {
        "root": str(root),
        "inputs": sanitizer.sanitize(inputs),
        "files": [fp.to_json_list() for fp in files],
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=_canonical_default, ensure_ascii=False)
    key = hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    logger.debug(f"Fingerprinted {len(files)} files under {root} -> {key[:12]}")
    return key


async def generate_cache_key(
    root_path: PathLike,
    inputs: Optional[Mapping[Any, Any]] = None,
    *,
    sanitizer: Optional[InputSanitizer] = None,
    lister: Optional[FileLister] = None,
    ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS,
    exclude_paths: Sequence[PathLike] = (),
) -> str:
    """Derive the cache key without blocking the event loop.

    Same contract as compute_cache_key(); the directory walk and stat calls
    run in a worker thread.
    """
    return await asyncio.to_thread(
        compute_cache_key,
        root_path,
        inputs,
        sanitizer=sanitizer,
        lister=lister,
        ignore_dirs=ignore_dirs,
        exclude_paths=exclude_paths,
    )
