"""Loader configuration -- every policy that changes how a map file is read.

A ChannelMapConfig is a frozen dataclass. It can be:

- Constructed with defaults (reference behaviour, except that short rows
  are rejected)
- Overridden field-by-field via ``dataclasses.replace()``
- Serialized to/from a dict for provenance
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

from detector_channel_map.models.keys import KEY_DEPTH


REVERSE_KEY_COLUMN = "offlchan"

DUPLICATE_POLICIES = ("last_write_wins", "error")
SHORT_ROW_POLICIES = ("error", "pad")
EXTRA_TOKEN_POLICIES = ("error", "ignore")


@dataclass(frozen=True)
class ChannelMapConfig:
    """Frozen configuration for loading a channel map.

    Fields
    ------
    duplicate_keys : str
        "last_write_wins": a later row with the same key tuple (or reverse
        key) replaces the earlier one in the index; the earlier row stays in
        the row store but is no longer reachable by that key.
        "error": raise DuplicateKeyError on the second occurrence.
    short_rows : str
        "error": a data line with fewer tokens than columns is a RowError.
        "pad": missing trailing fields take the column type default
        (0, "", 0.0).
    extra_tokens : str
        "error" or "ignore" for data lines with more tokens than columns.
    reverse_key_column : str
        Column whose value feeds the reverse (channel) index.
    max_key_columns : int
        Upper bound on flagged key columns, at most 4.
    """

    duplicate_keys: str = "last_write_wins"
    short_rows: str = "error"
    extra_tokens: str = "error"
    reverse_key_column: str = REVERSE_KEY_COLUMN
    max_key_columns: int = KEY_DEPTH

    def __post_init__(self) -> None:
        if self.duplicate_keys not in DUPLICATE_POLICIES:
            raise ValueError(f"duplicate_keys must be one of {DUPLICATE_POLICIES}, got {self.duplicate_keys!r}")
        if self.short_rows not in SHORT_ROW_POLICIES:
            raise ValueError(f"short_rows must be one of {SHORT_ROW_POLICIES}, got {self.short_rows!r}")
        if self.extra_tokens not in EXTRA_TOKEN_POLICIES:
            raise ValueError(f"extra_tokens must be one of {EXTRA_TOKEN_POLICIES}, got {self.extra_tokens!r}")
        if not self.reverse_key_column:
            raise ValueError("reverse_key_column must be a non-empty column name")
        if not (0 <= int(self.max_key_columns) <= KEY_DEPTH):
            raise ValueError(f"max_key_columns must be within 0..{KEY_DEPTH}, got {self.max_key_columns}")

    @property
    def strict_duplicates(self) -> bool:
        return self.duplicate_keys == "error"

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> ChannelMapConfig:
        """Reconstruct from a dict; unknown keys are rejected."""
        d = dict(d)
        known = set(cls.__dataclass_fields__)
        extra = sorted(set(d) - known)
        if extra:
            raise ValueError(f"unknown ChannelMapConfig fields: {extra}")
        return cls(**d)
