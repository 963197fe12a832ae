"""Per-adapter metadata cache.

Holds metadata set by callers so it can be merged into the next upload of a
key and served back before the backend has seen it. Local values win over
remote ones.
"""

from __future__ import annotations

from threading import Lock
from typing import Mapping


class MetadataCache:
    """Thread-safe mapping of key to a string metadata mapping."""

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, str]] = {}
        self._lock = Lock()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> dict[str, str] | None:
        with self._lock:
            entry = self._entries.get(key)
            return dict(entry) if entry is not None else None

    def set(self, key: str, metadata: Mapping[str, str]) -> dict[str, str]:
        entry = {str(k): str(v) for k, v in metadata.items()}
        with self._lock:
            self._entries[key] = entry
        return dict(entry)

    def pop(self, key: str) -> dict[str, str] | None:
        with self._lock:
            return self._entries.pop(key, None)

    def merged(self, key: str, base: Mapping[str, str] | None = None) -> dict[str, str]:
        """Return ``base`` overlaid with the cached entry for ``key``."""
        merged = dict(base or {})
        with self._lock:
            merged.update(self._entries.get(key) or {})
        return merged
