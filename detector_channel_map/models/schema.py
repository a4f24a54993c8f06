from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Union
import re

import numpy as np

from detector_channel_map.errors import KeyTypeError, SchemaError, UnknownColumnError


Value = Union[int, str, float]

_INT_RE = re.compile(r"[+-]?[0-9]+", re.ASCII)
_FLOAT_RE = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?(?:nan|inf)",
    re.ASCII | re.IGNORECASE,
)

# INT columns are exported as int64.
_INT64 = np.iinfo(np.int64)


class ColumnType(Enum):
    """Declared type of one column (header line 3)."""

    INT = "I"
    STRING = "S"
    FLOAT = "F"

    @classmethod
    def from_token(cls, tok: str) -> "ColumnType":
        t = tok.strip()
        if t == "I":
            return cls.INT
        if t in ("C", "S"):
            return cls.STRING
        if t == "F":
            return cls.FLOAT
        raise SchemaError(f"unknown column type token {tok!r} (expected one of I, C, S, F)")

    @property
    def python_type(self) -> type:
        return {ColumnType.INT: int, ColumnType.STRING: str, ColumnType.FLOAT: float}[self]

    @property
    def numpy_dtype(self) -> np.dtype:
        if self is ColumnType.INT:
            return np.dtype(np.int64)
        if self is ColumnType.FLOAT:
            return np.dtype(np.float64)
        return np.dtype(object)

    @property
    def default(self) -> Value:
        """Value a missing field takes when short rows are padded."""
        return self.python_type()

    def parse(self, token: str) -> Value:
        """Convert one whitespace-free token; raises ValueError when malformed."""
        if self is ColumnType.INT:
            if not _INT_RE.fullmatch(token):
                raise ValueError(f"not an integer: {token!r}")
            value = int(token)
            if not _INT64.min <= value <= _INT64.max:
                raise ValueError(f"integer out of int64 range: {token!r}")
            return value
        if self is ColumnType.FLOAT:
            if not _FLOAT_RE.fullmatch(token):
                raise ValueError(f"not a float: {token!r}")
            return float(token)
        return token

    def accepts(self, value: object) -> bool:
        """True if ``value`` is a Python value of this column type."""
        if self is ColumnType.INT:
            return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))
        if self is ColumnType.FLOAT:
            return isinstance(value, (float, np.floating))
        return isinstance(value, str)


@dataclass(frozen=True)
class ColumnSpec:
    """
    One column of the map file.

    key_ordinal is the slot this column fills in the key tuple; it is set
    only for key columns, in file order among flagged columns.
    """
    name: str
    ctype: ColumnType
    is_key: bool = False
    key_ordinal: Optional[int] = None


@dataclass(frozen=True)
class ColumnSchema:
    """
    Column layout declared by the file header.

    Built once per load and never modified. The name -> index table is built
    at construction so that decoding and lookups resolve names in O(1).
    """
    columns: Tuple[ColumnSpec, ...]
    _index: Dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: Dict[str, int] = {}
        for i, c in enumerate(self.columns):
            if c.name in index:
                raise SchemaError(f"duplicate column name {c.name!r}")
            index[c.name] = i
        expected = 0
        for c in self.columns:
            if not c.is_key:
                continue
            if c.ctype is not ColumnType.INT:
                raise KeyTypeError(f"key column {c.name!r} must be integer, got {c.ctype.name}")
            if c.key_ordinal != expected:
                raise SchemaError(
                    f"key column {c.name!r} has ordinal {c.key_ordinal}, expected {expected}"
                )
            expected += 1
        object.__setattr__(self, "_index", index)

    @property
    def n_columns(self) -> int:
        return len(self.columns)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    @property
    def key_columns(self) -> Tuple[ColumnSpec, ...]:
        """Key columns ordered by key ordinal (which is also file order)."""
        return tuple(c for c in self.columns if c.is_key)

    @property
    def key_names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.key_columns)

    @property
    def n_keys(self) -> int:
        return len(self.key_columns)

    def has_column(self, name: str) -> bool:
        return name in self._index

    def index_of(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise UnknownColumnError(f"unknown column name {name!r}") from None

    def column(self, name: str) -> ColumnSpec:
        return self.columns[self.index_of(name)]
