"""Detector Channel Map -- file-driven hardware <-> offline channel mapping.

A channel map file declares its own layout in four header lines (column
count, names, types, key flags), followed by one data row per line.

This package provides tools for:
- Parsing the self-describing header into a typed column schema
- Decoding data rows into typed records (integer, string, float columns)
- Looking up a row by up to four integer hardware coordinates
  (e.g. crate, slot, stream, chan)
- Looking up a row by its offline channel number ('offlchan' column)
- Exporting the loaded map as a pandas DataFrame

Key principles:
- The file is the only source of truth: no column name other than the
  reverse key is hard-coded
- A lookup miss is a normal outcome (Record.valid is False), not an error
- Load once, then read-only: a loaded map is safe to share between readers

Main subpackages:
- models: Column schema, key tuple, Record, loader configuration
- ingest: Header parsing and row decoding
- lookup: Row store, indexes, and the ChannelMap query object
- validation: Command-line map checker
"""

from .errors import (
    ChannelMapError,
    DuplicateKeyError,
    KeyCardinalityError,
    KeyTypeError,
    MapReadError,
    MapStateError,
    RowError,
    SchemaError,
    UnknownColumnError,
    ValueTypeError,
)
from .lookup.channel_map import ChannelMap, load_channel_map
from .models import ChannelMapConfig, ColumnSchema, ColumnSpec, ColumnType, Record, UNSET_REVERSE_KEY

__all__ = [
    "ChannelMap",
    "load_channel_map",
    "ChannelMapConfig",
    "ColumnSchema",
    "ColumnSpec",
    "ColumnType",
    "Record",
    "UNSET_REVERSE_KEY",
    "ChannelMapError",
    "DuplicateKeyError",
    "KeyCardinalityError",
    "KeyTypeError",
    "MapReadError",
    "MapStateError",
    "RowError",
    "SchemaError",
    "UnknownColumnError",
    "ValueTypeError",
]
