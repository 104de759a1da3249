"""
Expiring Set

A set whose members each carry an expiry timestamp. Re-inserting a member
only ever pushes its expiry forward, and a sweep drops every member whose
expiry has already passed.
"""

import time
from typing import Dict, Generic, Hashable, Iterable, Iterator, Optional, Tuple, TypeVar

T = TypeVar("T", bound=Hashable)


class ExpiringSet(Generic[T]):
    """Set of items, each with an expiry timestamp (``time.monotonic`` scale)."""

    def __init__(self, items: Optional[Iterable[Tuple[T, float]]] = None):
        self._expiry: Dict[T, float] = {}
        if items is not None:
            for item, expiry in items:
                self.insert(item, expiry)

    def insert(self, item: T, expiry: float) -> None:
        """Add item, keeping the later of the stored and incoming expiry."""
        current = self._expiry.get(item)
        if current is None or expiry > current:
            self._expiry[item] = expiry

    def merge_from(self, other: "ExpiringSet[T]") -> None:
        """Absorb every entry of another set using the same rule as insert()."""
        for item, expiry in other._expiry.items():
            self.insert(item, expiry)

    def sweep(self, now: Optional[float] = None) -> int:
        """
        Remove every entry that expired strictly before ``now``.

        Args:
            now: Reference time, defaults to ``time.monotonic()``

        Returns:
            Number of entries removed
        """
        if now is None:
            now = time.monotonic()

        expired = [item for item, expiry in self._expiry.items() if expiry < now]
        for item in expired:
            del self._expiry[item]
        return len(expired)

    def remove(self, item: T) -> bool:
        """Remove item if present. Returns True when something was removed."""
        return self._expiry.pop(item, None) is not None

    def contains(self, item: T) -> bool:
        return item in self._expiry

    def expiry(self, item: T) -> Optional[float]:
        """Stored expiry for item, or None if it is not a member."""
        return self._expiry.get(item)

    def copy(self) -> "ExpiringSet[T]":
        clone: ExpiringSet[T] = ExpiringSet()
        clone._expiry = dict(self._expiry)
        return clone

    def __copy__(self) -> "ExpiringSet[T]":
        return self.copy()

    def __deepcopy__(self, memo) -> "ExpiringSet[T]":
        # Items are immutable keys, a shallow dict copy is enough
        return self.copy()

    def __contains__(self, item: object) -> bool:
        return item in self._expiry

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._expiry))

    def __len__(self) -> int:
        return len(self._expiry)

    def __bool__(self) -> bool:
        return bool(self._expiry)

    def __repr__(self) -> str:
        return f"ExpiringSet({sorted(map(str, self._expiry))})"
