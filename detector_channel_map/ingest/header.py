from __future__ import annotations

from typing import Iterable, Iterator, List, Tuple

from detector_channel_map.errors import KeyTypeError, SchemaError
from detector_channel_map.models.schema import ColumnSchema, ColumnSpec, ColumnType


COMMENT_CHAR = "#"

# Logical header lines, in the order they must appear.
HEADER_LINES = ("column count", "column names", "column types", "key flags")


def strip_comment(line: str) -> str:
    """Drop everything from the first '#' to end of line."""
    i = line.find(COMMENT_CHAR)
    return line if i < 0 else line[:i]


def iter_logical_lines(lines: Iterable[str]) -> Iterator[Tuple[int, str]]:
    """
    Yield (line_no, text) for every line that is not blank after comment
    stripping. line_no is the 1-based physical line number in the source.
    """
    for line_no, raw in enumerate(lines, start=1):
        text = strip_comment(raw.rstrip("\r\n")).strip()
        if text:
            yield line_no, text


def _tokens(line_no: int, text: str, n: int, what: str) -> List[str]:
    toks = text.split()
    if len(toks) != n:
        raise SchemaError(f"line {line_no}: expected {n} {what}, got {len(toks)}: {text!r}")
    return toks


def _parse_ncolumns(line_no: int, text: str) -> int:
    toks = text.split()
    if len(toks) != 1:
        raise SchemaError(f"line {line_no}: column count line must hold a single integer, got {text!r}")
    try:
        n = int(ColumnType.INT.parse(toks[0]))
    except ValueError:
        raise SchemaError(f"line {line_no}: column count is not an integer: {toks[0]!r}") from None
    if n <= 0:
        raise SchemaError(f"line {line_no}: column count must be positive, got {n}")
    return n


def parse_header(logical_lines: Iterator[Tuple[int, str]]) -> ColumnSchema:
    """
    Consume exactly four logical lines from ``logical_lines`` and build the
    column schema:

      1. number of columns N
      2. N column names
      3. N type tokens (I, C/S, F)
      4. N integer key flags (nonzero marks a key column)

    The iterator is left positioned on the first data line. The key-column
    count is not bounded here; the loader checks it once the whole file has
    been read.
    """
    header: List[Tuple[int, str]] = []
    for item in logical_lines:
        header.append(item)
        if len(header) == len(HEADER_LINES):
            break
    if len(header) < len(HEADER_LINES):
        missing = HEADER_LINES[len(header)]
        raise SchemaError(f"truncated header: missing {missing} line")

    (ln0, t0), (ln1, t1), (ln2, t2), (ln3, t3) = header
    n = _parse_ncolumns(ln0, t0)
    names = _tokens(ln1, t1, n, "column names")

    types: List[ColumnType] = []
    for tok in _tokens(ln2, t2, n, "column types"):
        try:
            types.append(ColumnType.from_token(tok))
        except SchemaError as e:
            raise SchemaError(f"line {ln2}: {e}") from None

    columns: List[ColumnSpec] = []
    n_keys = 0
    for name, ctype, tok in zip(names, types, _tokens(ln3, t3, n, "key flags")):
        try:
            flag = int(ColumnType.INT.parse(tok))
        except ValueError:
            raise SchemaError(f"line {ln3}: key flag for {name!r} is not an integer: {tok!r}") from None
        if flag == 0:
            columns.append(ColumnSpec(name=name, ctype=ctype))
            continue
        if ctype is not ColumnType.INT:
            raise KeyTypeError(
                f"line {ln3}: map keys must be integer; column {name!r} is {ctype.name} (key flag {flag})"
            )
        columns.append(ColumnSpec(name=name, ctype=ctype, is_key=True, key_ordinal=n_keys))
        n_keys += 1

    try:
        return ColumnSchema(columns=tuple(columns))
    except SchemaError as e:
        raise type(e)(f"line {ln1}: {e}") from None
