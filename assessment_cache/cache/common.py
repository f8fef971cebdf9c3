"""
Record serialization for the disk tier.

Each disk record is a UTF-8 JSON document holding one CacheEntry. Values are
stored exactly as given, so only JSON-compatible payloads can be persisted;
anything else fails with SerializationError and stays memory-only.
"""

from __future__ import annotations

import json
import logging

from ..exceptions import SerializationError
from .models import CacheEntry

logger = logging.getLogger(__name__)


class SerializationHelper:
    """JSON serialization utilities for cache records.

    Encoding refuses NaN/Infinity so every record is strict JSON that any
    reader can parse back to a deep-equal value.
    """

    @staticmethod
    def serialize_entry(entry: CacheEntry) -> bytes:
        """Serialize a CacheEntry to bytes for storage.

        Args:
            entry: CacheEntry instance to serialize

        Returns:
            UTF-8 encoded, indented JSON bytes.

        Raises:
            SerializationError: If the value is not JSON-serializable or is
                nested too deeply to encode
        """
        try:
            return json.dumps(entry.to_dict(), ensure_ascii=False, allow_nan=False, indent=2).encode("utf-8")
        except (TypeError, ValueError, RecursionError) as e:
            raise SerializationError(f"Failed to serialize cache entry {entry.key!r}: {e}") from e

    @staticmethod
    def deserialize_entry(data: bytes) -> CacheEntry:
        """Deserialize bytes back into a CacheEntry instance.

        Args:
            data: Serialized byte data

        Returns:
            Reconstructed CacheEntry

        Raises:
            SerializationError: For invalid UTF-8, invalid JSON, a non-object
                document, or missing/mistyped fields
        """
        try:
            record = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as e:
            raise SerializationError(f"Failed to decode cache record: {e}") from e

        if not isinstance(record, dict):
            raise SerializationError(f"Cache record must be a JSON object, got {type(record).__name__}")

        try:
            return CacheEntry.from_dict(record)
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise SerializationError(f"Malformed cache record: {e}") from e
