from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import pandas as pd

from detector_channel_map.errors import (
    DuplicateKeyError,
    KeyCardinalityError,
    MapReadError,
    MapStateError,
    ValueTypeError,
)
from detector_channel_map.ingest.header import iter_logical_lines, parse_header
from detector_channel_map.ingest.rows import DecodedRow, RowDecoder
from detector_channel_map.lookup.index import PrimaryIndex, ReverseIndex, RowId, RowStore
from detector_channel_map.models.config import ChannelMapConfig
from detector_channel_map.models.keys import KEY_DEPTH, KEY_SENTINEL
from detector_channel_map.models.record import Record, UNSET_REVERSE_KEY
from detector_channel_map.models.schema import ColumnSchema, ColumnType, Value


# Per-kind cap on detailed overwrite diagnostics; the rest are only counted.
_MAX_DETAILED_WARNINGS = 20


class ChannelMap:
    """
    Hardware <-> offline channel map driven entirely by its input file.

    The file declares its own columns, their types, and which integer
    columns (up to four) form the hardware key, e.g. crate/slot/stream/chan.
    Two lookups are provided:

      - lookup_by_detector_elements({...}): by the hardware key columns
      - lookup_by_channel(offlchan): by the reverse-key column

    Lifecycle: constructed empty, loaded exactly once, then read-only. Any
    number of threads may query a loaded map; loading concurrently with
    queries is not supported. A failed load leaves the object unusable: build
    a new ChannelMap instead of loading again.
    """

    def __init__(self, config: Optional[ChannelMapConfig] = None):
        self.config = config or ChannelMapConfig()
        self._schema: Optional[ColumnSchema] = None
        self._rows = RowStore()
        self._primary = PrimaryIndex()
        self._reverse = ReverseIndex()
        self._reverse_col: Optional[int] = None
        self._source: Optional[str] = None
        self._warnings: List[str] = []
        self._load_started = False
        self._loaded = False

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, path: str | Path) -> None:
        """Read the map file at ``path`` and build both indexes."""
        self._begin_load()
        p = Path(path).expanduser().resolve()
        if not p.exists():
            raise FileNotFoundError(str(p))
        with p.open("rb") as fh:
            self._load_from(_decode_lines(fh, str(p)), source=str(p))

    def load_lines(self, lines: Iterable[str], source: str = "<lines>") -> None:
        """Same as load(), from any iterable of text lines."""
        self._begin_load()
        self._load_from(lines, source=source)

    def _begin_load(self) -> None:
        if self._load_started:
            raise MapStateError(
                "ChannelMap is load-once: it was already loaded (or a load failed); create a new ChannelMap"
            )
        self._load_started = True

    def _load_from(self, lines: Iterable[str], source: str) -> None:
        self._source = source
        logical = iter_logical_lines(lines)
        schema = parse_header(logical)
        decoder = RowDecoder(schema, self.config)
        self._schema = schema
        self._reverse_col = (
            schema.index_of(self.config.reverse_key_column) if decoder.has_reverse_key else None
        )

        counts = {"key": 0, "reverse": 0, "padded": 0}
        for line_no, text in logical:
            self._add_row(decoder.decode(line_no, text), counts)

        # Whole-file check, performed only after every line was consumed.
        if schema.n_keys > self.config.max_key_columns:
            raise KeyCardinalityError(
                f"too many map keys: {schema.n_keys} (max {self.config.max_key_columns}); "
                f"names: {' '.join(schema.key_names)}"
            )

        self._summarize(counts)
        self._loaded = True

    def _add_row(self, row: DecodedRow, counts: Dict[str, int]) -> None:
        strict = self.config.strict_duplicates
        if strict and row.key is not None and row.key in self._primary:
            raise DuplicateKeyError(
                f"duplicate key {self._format_key(row.key)} "
                f"(first seen in row {self._primary.get(row.key)})",
                row.line_no,
            )
        if strict and row.reverse_key is not None and row.reverse_key in self._reverse:
            raise DuplicateKeyError(
                f"duplicate {self.config.reverse_key_column}={row.reverse_key} "
                f"(first seen in row {self._reverse.get(row.reverse_key)})",
                row.line_no,
            )

        row_id = self._rows.append(row.values)

        if row.key is not None:
            prev = self._primary.insert(row.key, row_id)
            if prev is not None:
                counts["key"] += 1
                if counts["key"] <= _MAX_DETAILED_WARNINGS:
                    self._warnings.append(
                        f"line {row.line_no}: key {self._format_key(row.key)} overrides row {prev} (last write wins)"
                    )
        if row.reverse_key is not None:
            prev = self._reverse.insert(row.reverse_key, row_id)
            if prev is not None:
                counts["reverse"] += 1
                if counts["reverse"] <= _MAX_DETAILED_WARNINGS:
                    self._warnings.append(
                        f"line {row.line_no}: {self.config.reverse_key_column}={row.reverse_key} "
                        f"overrides row {prev} (last write wins)"
                    )
        if row.padded:
            counts["padded"] += 1
            if counts["padded"] <= _MAX_DETAILED_WARNINGS:
                self._warnings.append(f"line {row.line_no}: short row padded with {row.padded} default value(s)")

    def _summarize(self, counts: Dict[str, int]) -> None:
        schema = self.schema
        rk = self.config.reverse_key_column
        if counts["key"] > _MAX_DETAILED_WARNINGS:
            self._warnings.append(f"{counts['key']} key tuples overridden in total")
        if counts["reverse"] > _MAX_DETAILED_WARNINGS:
            self._warnings.append(f"{counts['reverse']} {rk} values overridden in total")
        if counts["padded"] > _MAX_DETAILED_WARNINGS:
            self._warnings.append(f"{counts['padded']} short rows padded in total")
        if self._reverse_col is None:
            self._warnings.append(f"no '{rk}' column: lookup_by_channel will always miss")
        self._warnings.append(
            f"loaded {len(self._rows)} rows from {self._source}: "
            f"keys=({', '.join(schema.key_names)}), "
            f"{len(self._primary)} distinct key tuples, {len(self._reverse)} distinct channels"
        )

    @staticmethod
    def _format_key(key: Tuple[int, ...]) -> str:
        return "(" + ", ".join(str(k) for k in key) + ")"

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def lookup_by_detector_elements(self, elements: Mapping[str, Any]) -> Record:
        """
        Look up a row by its hardware key columns.

        ``elements`` maps column names to values. Names must be columns of the
        map (UnknownColumnError otherwise); entries for non-key columns are
        accepted and ignored. Key columns not given take the sentinel 0, so a
        map keyed on fewer than four columns is queried with just those.
        Values for key columns must be integers (ValueTypeError otherwise).

        Returns a Record with valid=False when no row has this key.
        """
        rk = self.config.reverse_key_column
        if self._schema is None:
            return Record.invalid(rk)
        schema = self._schema

        key = [KEY_SENTINEL] * KEY_DEPTH
        for name, value in elements.items():
            col = schema.columns[schema.index_of(name)]
            if not col.is_key:
                continue
            if not ColumnType.INT.accepts(value):
                raise ValueTypeError(
                    f"key column {name!r} needs an integer value, got {type(value).__name__} {value!r}"
                )
            key[col.key_ordinal] = int(value)  # type: ignore[index]

        row_id = self._primary.get((key[0], key[1], key[2], key[3]))
        if row_id is None:
            return Record.invalid(rk)
        return self._materialize(row_id)

    def lookup_by_channel(self, channel: int) -> Record:
        """Look up a row by its reverse-key value. Never raises; a miss gives valid=False."""
        rk = self.config.reverse_key_column
        if not ColumnType.INT.accepts(channel):
            return Record.invalid(rk)
        row_id = self._reverse.get(int(channel))
        if row_id is None:
            return Record.invalid(rk)
        return self._materialize(row_id)

    def row(self, row_id: RowId) -> Record:
        """Materialise any stored row by RowId, including rows no key reaches any more."""
        if not 0 <= row_id < len(self._rows):
            raise IndexError(f"row id {row_id} out of range (0..{len(self._rows) - 1})")
        return self._materialize(row_id)

    def _materialize(self, row_id: RowId) -> Record:
        schema = self.schema
        values = self._rows[row_id]
        fields: Dict[str, Value] = {}
        types: Dict[str, ColumnType] = {}
        reverse_key: Optional[int] = UNSET_REVERSE_KEY
        for i, (col, value) in enumerate(zip(schema.columns, values)):
            if i == self._reverse_col:
                reverse_key = int(value)
                continue
            fields[col.name] = value
            types[col.name] = col.ctype
        return Record(
            fields,
            types,
            valid=True,
            reverse_key=reverse_key,
            reverse_key_name=self.config.reverse_key_column,
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def schema(self) -> ColumnSchema:
        if self._schema is None:
            raise MapStateError("ChannelMap has no schema yet; call load() first")
        return self._schema

    @property
    def source_path(self) -> Optional[str]:
        return self._source

    @property
    def warnings(self) -> Tuple[str, ...]:
        return tuple(self._warnings)

    @property
    def key_names(self) -> Tuple[str, ...]:
        return self.schema.key_names if self._schema is not None else ()

    @property
    def has_reverse_key(self) -> bool:
        return self._reverse_col is not None

    @property
    def n_rows(self) -> int:
        return len(self._rows)

    @property
    def n_keys(self) -> int:
        """Number of distinct key tuples in the primary index."""
        return len(self._primary)

    def __len__(self) -> int:
        return len(self._rows)

    def channels(self) -> List[int]:
        """Sorted reverse-key values present in the map."""
        return sorted(self._reverse.keys())

    def unreachable_rows(self) -> List[RowId]:
        """RowIds whose key tuple was taken over by a later row."""
        reachable = set(self._primary.row_ids())
        return [i for i in range(len(self._rows)) if i not in reachable]

    def to_frame(self) -> pd.DataFrame:
        """
        All stored rows as a DataFrame, columns in file order.

        INT columns are int64, FLOAT float64, STRING object. The index is the
        RowId. Overridden rows are included.
        """
        if self._schema is None:
            return pd.DataFrame()
        data = {}
        for i, col in enumerate(self._schema.columns):
            data[col.name] = pd.Series([r[i] for r in self._rows], dtype=col.ctype.numpy_dtype)
        df = pd.DataFrame(data, columns=list(self._schema.names))
        df.index.name = "row_id"
        return df

    def __repr__(self) -> str:
        state = "loaded" if self._loaded else "empty"
        return f"ChannelMap({state}, rows={len(self._rows)}, source={self._source!r})"


def _decode_lines(fh: Iterable[bytes], source: str) -> Iterator[str]:
    """Decode a binary line stream as UTF-8, one physical line at a time."""
    for line_no, raw in enumerate(fh, start=1):
        try:
            yield raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MapReadError(
                f"{source}: not valid UTF-8 ({e.reason} at byte {e.start} of the line)", line_no
            ) from None


def load_channel_map(path: str | Path, config: Optional[ChannelMapConfig] = None) -> ChannelMap:
    """Build and load a ChannelMap from ``path`` in one call."""
    cmap = ChannelMap(config)
    cmap.load(path)
    return cmap
