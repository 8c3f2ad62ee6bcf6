"""Read-through cache for configuration-like lookups."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable


@dataclass
class ReadThroughCache[K: Hashable, V]:
    """Memoize a loader per key until explicitly invalidated.

    The loader can be fixed at construction or supplied per lookup, so one
    cache instance may be shared by several consumers. Failed loads are not
    cached.
    """

    loader: Callable[[K], V] | None = None
    _entries: dict[K, V] = field(default_factory=dict, repr=False)

    def get(self, key: K, loader: Callable[[K], V] | None = None) -> V:
        if key in self._entries:
            return self._entries[key]
        load = loader or self.loader
        if load is None:
            raise LookupError(f"No loader configured for {key!r}")
        value = load(key)
        self._entries[key] = value
        return value

    def invalidate(self, key: K | None = None) -> None:
        if key is None:
            self._entries.clear()
            return
        self._entries.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
