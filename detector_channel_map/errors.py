"""Exception types raised while loading or querying a channel map.

A normal lookup miss is not an error: it is reported through
``Record.valid == False``.
"""

from __future__ import annotations

from typing import Optional


class ChannelMapError(Exception):
    """Base class for every channel-map failure."""


class SchemaError(ChannelMapError, ValueError):
    """The four header lines do not describe a usable column schema."""


class KeyTypeError(SchemaError):
    """A key flag was set on a column that is not integer-typed."""


class KeyCardinalityError(ChannelMapError):
    """More key columns were flagged than the key tuple can hold."""


class RowError(ChannelMapError, ValueError):
    """A data line could not be decoded against the schema."""

    def __init__(self, message: str, line_no: Optional[int] = None) -> None:
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)
        self.line_no = line_no


class DuplicateKeyError(RowError):
    """Two data rows share a key tuple (or reverse key) and duplicates are refused."""


class UnknownColumnError(ChannelMapError, KeyError):
    """A lookup named a column that does not exist in the schema."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


class ValueTypeError(ChannelMapError, TypeError):
    """A value does not carry the type its column declares."""


class MapStateError(ChannelMapError, RuntimeError):
    """Operation not allowed in the current load state."""


class MapReadError(ChannelMapError, OSError):
    """The map file could be opened but its bytes are not readable text."""

    def __init__(self, message: str, line_no: Optional[int] = None) -> None:
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)
        self.line_no = line_no
