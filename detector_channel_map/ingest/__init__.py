"""Ingest package -- map file parsing.

This package handles:
- Comment and blank-line filtering of the map file
- Parsing the four header lines into a ColumnSchema
- Decoding data lines into typed value tuples plus their lookup keys

Design principle:
- Every malformed line is reported with its physical line number
- Nothing here touches the indexes; the lookup package owns them
"""
from .header import iter_logical_lines, parse_header, strip_comment
from .rows import DecodedRow, RowDecoder

__all__ = [
    "iter_logical_lines",
    "parse_header",
    "strip_comment",
    "DecodedRow",
    "RowDecoder",
]
