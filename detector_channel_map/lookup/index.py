from __future__ import annotations

from typing import Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

from detector_channel_map.models.keys import KeyTuple
from detector_channel_map.models.schema import Value


RowId = int
K = TypeVar("K")


class RowStore:
    """Append-only sequence of decoded rows; a row's position is its RowId."""

    def __init__(self) -> None:
        self._rows: List[Tuple[Value, ...]] = []

    def append(self, values: Tuple[Value, ...]) -> RowId:
        self._rows.append(values)
        return len(self._rows) - 1

    def __getitem__(self, row_id: RowId) -> Tuple[Value, ...]:
        return self._rows[row_id]

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Tuple[Value, ...]]:
        return iter(self._rows)


class _KeyIndex(Generic[K]):
    def __init__(self) -> None:
        self._map: Dict[K, RowId] = {}

    def insert(self, key: K, row_id: RowId) -> Optional[RowId]:
        """Map key to row_id and return the RowId it replaced, if any."""
        previous = self._map.get(key)
        self._map[key] = row_id
        return previous

    def get(self, key: K) -> Optional[RowId]:
        return self._map.get(key)

    def keys(self) -> List[K]:
        return list(self._map)

    def row_ids(self) -> List[RowId]:
        return list(self._map.values())

    def __contains__(self, key: object) -> bool:
        return key in self._map

    def __len__(self) -> int:
        return len(self._map)


class PrimaryIndex(_KeyIndex[KeyTuple]):
    """
    Key tuple -> RowId.

    A single flat dict keyed by the 4-int tuple; a lookup hits only when all
    four components match, exactly as a four-level nested lookup would.
    """


class ReverseIndex(_KeyIndex[int]):
    """Reverse-key (offline channel) -> RowId."""
