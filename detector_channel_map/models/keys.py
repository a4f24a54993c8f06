from __future__ import annotations

from typing import Sequence, Tuple


# The key tuple always has four slots; slots past the declared key arity
# hold the sentinel.
KEY_DEPTH = 4
KEY_SENTINEL = 0

KeyTuple = Tuple[int, int, int, int]


def make_key_tuple(values: Sequence[int]) -> KeyTuple:
    """Pad up to KEY_DEPTH integer key components with KEY_SENTINEL."""
    if len(values) > KEY_DEPTH:
        raise ValueError(f"at most {KEY_DEPTH} key components, got {len(values)}")
    padded = [int(v) for v in values] + [KEY_SENTINEL] * (KEY_DEPTH - len(values))
    return (padded[0], padded[1], padded[2], padded[3])
