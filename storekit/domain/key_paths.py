from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True, slots=True)
class KeyPathMapper:
    """Maps adapter keys to backend paths under an optional directory prefix."""

    prefix: str = ""

    def to_path(self, key: str) -> str:
        if not self.prefix:
            return key
        return f"{self.prefix}/{key}"

    def to_key(self, path: str) -> str:
        if not self.prefix:
            return path
        root = f"{self.prefix}/"
        if path.startswith(root):
            return path[len(root):]
        return path

    def directory_prefix(self, key: str) -> str:
        return self.to_path(key).rstrip("/") + "/"


def unique_in_order(keys: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for key in keys:
        if key in seen:
            continue
        seen.add(key)
        result.append(key)
    return result
