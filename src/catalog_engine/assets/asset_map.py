"""Session-wide asset key → URL registry."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Iterator


class AssetMap(Mapping[str, str]):
    """Append-only mapping of asset keys (usually file names) to URLs.

    :meth:`merge` swaps in a new dict rather than updating in place, so a
    reader iterating the map never sees a partially applied batch.
    """

    def __init__(self, entries: Mapping[str, str] | None = None) -> None:
        self._entries: dict[str, str] = dict(entries or {})

    def merge(self, entries: Mapping[str, str]) -> int:
        """Add ``entries``; returns how many keys were new."""

        if not entries:
            return 0
        merged = dict(self._entries)
        added = sum(1 for key in entries if key not in merged)
        merged.update(entries)
        self._entries = merged
        return added

    def snapshot(self) -> Mapping[str, str]:
        return MappingProxyType(self._entries)

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"AssetMap({len(self._entries)} asset(s))"


__all__ = ["AssetMap"]
