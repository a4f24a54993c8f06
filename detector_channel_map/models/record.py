from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Optional

from detector_channel_map.errors import ValueTypeError
from detector_channel_map.models.schema import ColumnType, Value


# Reverse key reported when the schema has no reverse-key column. Any int,
# negative ones included, is a real channel number.
UNSET_REVERSE_KEY = None


class Record(Mapping[str, Value]):
    """
    Query result: one row materialised as named fields.

    The reverse-key column is not among the fields; its value is exposed as
    ``reverse_key`` (alias ``offlchan``). ``valid`` is False for a miss, in
    which case there are no fields and the reverse key is unset.
    """

    __slots__ = ("_fields", "_types", "_valid", "_reverse_key", "_reverse_key_name")

    def __init__(
        self,
        fields: Optional[Mapping[str, Value]] = None,
        types: Optional[Mapping[str, ColumnType]] = None,
        *,
        valid: bool = True,
        reverse_key: Optional[int] = UNSET_REVERSE_KEY,
        reverse_key_name: str = "offlchan",
    ) -> None:
        self._fields: Dict[str, Value] = dict(fields or {})
        self._types: Dict[str, ColumnType] = dict(types or {})
        missing = [k for k in self._fields if k not in self._types]
        if missing:
            raise ValueError(f"no column type given for fields {missing}")
        self._valid = bool(valid)
        self._reverse_key: Optional[int] = None if reverse_key is None else int(reverse_key)
        self._reverse_key_name = reverse_key_name

    @classmethod
    def invalid(cls, reverse_key_name: str = "offlchan") -> "Record":
        return cls(valid=False, reverse_key_name=reverse_key_name)

    # Mapping protocol

    def __getitem__(self, name: str) -> Value:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __bool__(self) -> bool:
        return self._valid

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Record):
            return (
                self._valid == other._valid
                and self._reverse_key == other._reverse_key
                and self._fields == other._fields
            )
        return NotImplemented

    def __repr__(self) -> str:
        if not self._valid:
            return "Record(valid=False)"
        return f"Record({self._fields!r}, {self._reverse_key_name}={self._reverse_key})"

    # Attributes

    @property
    def valid(self) -> bool:
        return self._valid

    @property
    def reverse_key(self) -> Optional[int]:
        return self._reverse_key

    @property
    def offlchan(self) -> Optional[int]:
        return self._reverse_key

    @property
    def has_reverse_key(self) -> bool:
        return self._reverse_key is not None

    @property
    def types(self) -> Mapping[str, ColumnType]:
        return dict(self._types)

    # Typed access

    def _typed(self, name: str, want: ColumnType) -> Value:
        value = self._fields[name]
        have = self._types[name]
        if have is not want:
            raise ValueTypeError(f"field {name!r} is {have.name}, not {want.name}")
        return value

    def get_int(self, name: str) -> int:
        return int(self._typed(name, ColumnType.INT))

    def get_str(self, name: str) -> str:
        return str(self._typed(name, ColumnType.STRING))

    def get_float(self, name: str) -> float:
        return float(self._typed(name, ColumnType.FLOAT))

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly dict; includes ``valid`` and the reverse key when set."""
        d: Dict[str, Any] = dict(self._fields)
        if self.has_reverse_key:
            d[self._reverse_key_name] = self._reverse_key
        d["valid"] = self._valid
        return d

