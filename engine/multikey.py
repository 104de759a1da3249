"""
Multi-Key Index

Stores records that are each reachable through several keys. A device owns
one or more MAC addresses, and any of them resolves to the same record.
"""

import copy
import logging
from typing import (
    Callable, Dict, Generic, Hashable, Iterable, Iterator, List, Optional, Tuple, TypeVar
)

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class MultiKeyIndex(Generic[K, V]):
    """
    Arena of records plus a key-to-record-id lookup table.

    Every insert() mints a new record id, independent of how many keys point
    at it. A key bound by a later insert shadows the earlier binding, but both
    records stay in the arena and are visible through values().
    """

    def __init__(self):
        self._next_id = 0
        self._keys: Dict[K, int] = {}
        self._records: Dict[int, V] = {}

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[Iterable[K], V]]) -> "MultiKeyIndex[K, V]":
        index: MultiKeyIndex[K, V] = cls()
        for keys, value in pairs:
            index.insert(keys, value)
        return index

    def insert(self, keys: Iterable[K], value: V) -> int:
        """
        Store value under a new record id and bind every key to it.

        Args:
            keys: Keys that should resolve to this record
            value: The record

        Returns:
            The record id assigned to value
        """
        record_id = self._next_id
        self._next_id += 1

        self._records[record_id] = value
        for key in keys:
            previous = self._keys.get(key)
            if previous is not None and previous != record_id:
                logger.debug(f"Key {key} rebound from record {previous} to {record_id}")
            self._keys[key] = record_id

        return record_id

    def get(self, key: K) -> Optional[V]:
        record_id = self._keys.get(key)
        if record_id is None:
            return None
        return self._records.get(record_id)

    def get_by_id(self, record_id: int) -> Optional[V]:
        return self._records.get(record_id)

    def record_id(self, key: K) -> Optional[int]:
        return self._keys.get(key)

    def contains_key(self, key: K) -> bool:
        return key in self._keys

    def keys(self) -> List[K]:
        return list(self._keys)

    def values(self) -> List[V]:
        return list(self._records.values())

    def items(self) -> List[Tuple[int, V]]:
        return list(self._records.items())

    def visit_pairs(self, visit: Callable[[V, V], None]) -> None:
        """Call visit once for every unordered pair of distinct records."""
        records = list(self._records.values())
        for i, left in enumerate(records):
            for right in records[i + 1:]:
                visit(left, right)

    def clone(self) -> "MultiKeyIndex[K, V]":
        """Copy of the index with deep-copied records and the same record ids."""
        other: MultiKeyIndex[K, V] = MultiKeyIndex()
        other._next_id = self._next_id
        other._keys = dict(self._keys)
        other._records = {rid: copy.deepcopy(value) for rid, value in self._records.items()}
        return other

    def __getitem__(self, key: K) -> V:
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __iter__(self) -> Iterator[V]:
        return iter(self.values())

    def __len__(self) -> int:
        return len(self._records)
