from .config import ChannelMapConfig, REVERSE_KEY_COLUMN
from .keys import KEY_DEPTH, KEY_SENTINEL, KeyTuple, make_key_tuple
from .record import Record, UNSET_REVERSE_KEY
from .schema import ColumnSchema, ColumnSpec, ColumnType

__all__ = [
    "ChannelMapConfig",
    "REVERSE_KEY_COLUMN",
    "KEY_DEPTH",
    "KEY_SENTINEL",
    "KeyTuple",
    "make_key_tuple",
    "Record",
    "UNSET_REVERSE_KEY",
    "ColumnSchema",
    "ColumnSpec",
    "ColumnType",
]
