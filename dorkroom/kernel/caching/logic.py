from collections import OrderedDict
from typing import Generic, Optional, TypeVar

V = TypeVar("V")


class BoundedCache(Generic[V]):
    """
    Small memo map with insertion-order eviction.

    Once ``max_size`` entries are held, storing a new key drops the oldest
    inserted one. Lookups do not refresh an entry's position. Not safe for
    concurrent mutation; give each thread its own instance.
    """

    def __init__(self, max_size: int) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self.max_size = max_size
        self._entries: "OrderedDict[str, V]" = OrderedDict()

    def get(self, key: str) -> Optional[V]:
        return self._entries.get(key)

    def put(self, key: str, value: V) -> None:
        if key in self._entries:
            self._entries[key] = value
            return
        if len(self._entries) >= self.max_size:
            self._entries.popitem(last=False)
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
