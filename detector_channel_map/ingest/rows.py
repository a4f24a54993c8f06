from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from detector_channel_map.errors import RowError, SchemaError
from detector_channel_map.models.config import ChannelMapConfig
from detector_channel_map.models.keys import KEY_DEPTH, KeyTuple, make_key_tuple
from detector_channel_map.models.schema import ColumnSchema, ColumnType, Value


@dataclass(frozen=True)
class DecodedRow:
    """
    One data line decoded against the schema.

    key is None when the schema flags more key columns than the key tuple
    holds; such a file is rejected once loading finishes.
    reverse_key is None when the schema has no reverse-key column.
    """
    line_no: int
    values: Tuple[Value, ...]
    key: Optional[KeyTuple]
    reverse_key: Optional[int]
    padded: int = 0


class RowDecoder:
    """
    Decodes whitespace-separated data lines into typed value tuples.

    The i-th token is parsed with the declared type of column i. Key-column
    values are gathered in key-ordinal order into the key tuple; the
    reverse-key column value (if that column exists) is captured separately.
    """

    def __init__(self, schema: ColumnSchema, config: Optional[ChannelMapConfig] = None):
        self.schema = schema
        self.config = config or ChannelMapConfig()
        self._types: Tuple[ColumnType, ...] = tuple(c.ctype for c in schema.columns)
        self._key_cols: Tuple[int, ...] = tuple(schema.index_of(c.name) for c in schema.key_columns)
        rk = self.config.reverse_key_column
        self._reverse_col: Optional[int] = schema.index_of(rk) if schema.has_column(rk) else None
        if self._reverse_col is not None and self._types[self._reverse_col] is not ColumnType.INT:
            raise SchemaError(f"reverse-key column {rk!r} must be integer, got {self._types[self._reverse_col].name}")

    @property
    def has_reverse_key(self) -> bool:
        return self._reverse_col is not None

    def decode(self, line_no: int, text: str) -> DecodedRow:
        toks = text.split()
        n = self.schema.n_columns
        padded = 0
        if len(toks) < n:
            if self.config.short_rows == "error":
                raise RowError(f"expected {n} fields, got {len(toks)}", line_no)
            padded = n - len(toks)
        elif len(toks) > n and self.config.extra_tokens == "error":
            raise RowError(f"expected {n} fields, got {len(toks)}", line_no)

        values: List[Value] = []
        for i, ctype in enumerate(self._types):
            if i >= len(toks):
                values.append(ctype.default)
                continue
            try:
                values.append(ctype.parse(toks[i]))
            except ValueError as e:
                name = self.schema.columns[i].name
                raise RowError(f"column {name!r} ({ctype.name}): {e}", line_no) from None

        key: Optional[KeyTuple] = None
        if len(self._key_cols) <= KEY_DEPTH:
            key = make_key_tuple([values[i] for i in self._key_cols])  # type: ignore[misc]

        reverse_key: Optional[int] = None
        if self._reverse_col is not None:
            reverse_key = int(values[self._reverse_col])

        return DecodedRow(
            line_no=line_no,
            values=tuple(values),
            key=key,
            reverse_key=reverse_key,
            padded=padded,
        )
