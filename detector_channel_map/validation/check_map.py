"""
Channel map checker.

Loads one map file, reports its shape and any load diagnostics, and can run
a single lookup against it. Useful before deploying a new map file.

Examples
--------
Summary only::

    python -m detector_channel_map.validation.check_map wibeth_map.txt

Lookup by hardware key, then by offline channel::

    python -m detector_channel_map.validation.check_map wibeth_map.txt \\
        --key crate=1 --key slot=2 --key stream=3 --key chan=4
    python -m detector_channel_map.validation.check_map wibeth_map.txt --channel 1234
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from detector_channel_map.errors import ChannelMapError
from detector_channel_map.lookup.channel_map import ChannelMap
from detector_channel_map.models.config import ChannelMapConfig
from detector_channel_map.models.record import Record


EXIT_OK = 0
EXIT_LOAD_FAILED = 1
EXIT_LOOKUP_MISS = 2
EXIT_BAD_QUERY = 3


@dataclass(frozen=True)
class MapSummary:
    """
    Shape of a loaded map.

    Attributes
    ----------
    n_unreachable_rows:
        Rows whose key tuple was overridden by a later row (last write wins).
    warnings:
        Load diagnostics copied from the map.
    """
    source_path: Optional[str]
    column_names: Tuple[str, ...]
    key_names: Tuple[str, ...]
    n_rows: int
    n_key_tuples: int
    n_channels: int
    n_unreachable_rows: int
    has_reverse_key: bool
    warnings: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.n_unreachable_rows == 0


def summarize_map(cmap: ChannelMap) -> MapSummary:
    schema = cmap.schema
    return MapSummary(
        source_path=cmap.source_path,
        column_names=schema.names,
        key_names=schema.key_names,
        n_rows=cmap.n_rows,
        n_key_tuples=cmap.n_keys,
        n_channels=len(cmap.channels()),
        n_unreachable_rows=len(cmap.unreachable_rows()),
        has_reverse_key=cmap.has_reverse_key,
        warnings=cmap.warnings,
    )


def _parse_key_args(items: Sequence[str]) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for item in items:
        if "=" not in item:
            raise ValueError(f"--key expects name=value, got {item!r}")
        name, value = item.split("=", 1)
        try:
            out[name.strip()] = int(value.strip())
        except ValueError:
            raise ValueError(f"--key value for {name.strip()!r} is not an integer: {value.strip()!r}") from None
    return out


def _format_record(rec: Record) -> List[str]:
    lines = [f"  {name} = {value!r}" for name, value in rec.items()]
    if rec.has_reverse_key:
        lines.append(f"  (reverse key) = {rec.reverse_key}")
    return lines


def main(argv: Optional[Sequence[str]] = None) -> int:
    import argparse
    import textwrap

    p = argparse.ArgumentParser(
        prog="python -m detector_channel_map.validation.check_map",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            Load a channel map file and report its shape.

            Optionally look up one row by hardware key (--key, repeatable) or by
            offline channel (--channel).
            """
        ),
    )
    p.add_argument("map_file", help="Channel map text file")
    p.add_argument("--key", action="append", default=[], help="Key column value as name=value (repeatable)")
    p.add_argument("--channel", type=int, default=None, help="Offline channel to look up")
    p.add_argument("--strict-duplicates", action="store_true", help="Fail on duplicate key tuples or channels")
    p.add_argument("--pad-short-rows", action="store_true", help="Pad short data rows instead of failing")

    ns = p.parse_args(list(argv) if argv is not None else None)

    try:
        key_values = _parse_key_args(ns.key)
    except ValueError as e:
        print(f"[error] bad --key argument: {e}")
        return EXIT_BAD_QUERY

    cfg = ChannelMapConfig(
        duplicate_keys="error" if ns.strict_duplicates else "last_write_wins",
        short_rows="pad" if ns.pad_short_rows else "error",
    )
    cmap = ChannelMap(cfg)
    try:
        cmap.load(ns.map_file)
    except (OSError, ChannelMapError) as e:
        print(f"[error] could not load {ns.map_file}: {type(e).__name__}: {e}")
        return EXIT_LOAD_FAILED

    s = summarize_map(cmap)
    print(f"[info] {s.source_path}")
    print(f"[info] columns ({len(s.column_names)}): {' '.join(s.column_names)}")
    print(f"[info] keys: {' '.join(s.key_names) or '<none>'}")
    print(f"[info] rows={s.n_rows}, key tuples={s.n_key_tuples}, channels={s.n_channels}")
    for w in s.warnings:
        tag = "info" if w.startswith("loaded ") else "warn"
        print(f"[{tag}] {w}")

    status = EXIT_OK
    if key_values:
        try:
            rec = cmap.lookup_by_detector_elements(key_values)
        except ChannelMapError as e:
            print(f"[error] key lookup failed: {e}")
            return EXIT_BAD_QUERY
        print(f"[info] key lookup {' '.join(ns.key)}: valid={rec.valid}")
        print("\n".join(_format_record(rec)) if rec.valid else "  <no match>")
        if not rec.valid:
            status = EXIT_LOOKUP_MISS
    if ns.channel is not None:
        rec = cmap.lookup_by_channel(ns.channel)
        print(f"[info] channel lookup {ns.channel}: valid={rec.valid}")
        print("\n".join(_format_record(rec)) if rec.valid else "  <no match>")
        if not rec.valid:
            status = EXIT_LOOKUP_MISS
    return status


if __name__ == "__main__":
    raise SystemExit(main())
