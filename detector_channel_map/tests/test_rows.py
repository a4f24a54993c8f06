"""Tests for the row decoder."""

from __future__ import annotations

import pytest

from detector_channel_map.errors import RowError, SchemaError
from detector_channel_map.ingest.header import iter_logical_lines, parse_header
from detector_channel_map.ingest.rows import RowDecoder
from detector_channel_map.models.config import ChannelMapConfig
from detector_channel_map.models.keys import make_key_tuple
from detector_channel_map.models.schema import ColumnSchema


def _schema(text: str) -> ColumnSchema:
    return parse_header(iter_logical_lines(text.splitlines()))


MIXED = _schema("6\ncrate slot name gain offlchan chan\nI I S F I I\n1 1 0 0 0 1\n")


def test_make_key_tuple_pads_with_sentinel() -> None:
    assert make_key_tuple([7]) == (7, 0, 0, 0)
    assert make_key_tuple([]) == (0, 0, 0, 0)
    assert make_key_tuple([1, 2, 3, 4]) == (1, 2, 3, 4)
    with pytest.raises(ValueError):
        make_key_tuple([1, 2, 3, 4, 5])


def test_decode_typed_values() -> None:
    row = RowDecoder(MIXED).decode(10, "3 4 APA2 1.25 1234 77")
    assert row.values == (3, 4, "APA2", 1.25, 1234, 77)
    assert [type(v) for v in row.values] == [int, int, str, float, int, int]
    assert row.line_no == 10
    assert row.padded == 0


def test_decode_key_tuple_in_key_ordinal_order() -> None:
    row = RowDecoder(MIXED).decode(1, "3 4 APA2 1.25 1234 77")
    # crate, slot, chan flagged; fourth slot is the sentinel
    assert row.key == (3, 4, 77, 0)


def test_decode_reverse_key() -> None:
    row = RowDecoder(MIXED).decode(1, "3 4 APA2 1.25 1234 77")
    assert row.reverse_key == 1234


def test_decode_without_reverse_column() -> None:
    schema = _schema("2\ncrate slot\nI I\n1 1\n")
    dec = RowDecoder(schema)
    assert not dec.has_reverse_key
    row = dec.decode(1, "5 6")
    assert row.reverse_key is None
    assert row.key == (5, 6, 0, 0)


def test_reverse_column_need_not_be_key() -> None:
    schema = _schema("2\nofflchan crate\nI I\n0 1\n")
    row = RowDecoder(schema).decode(1, "42 9")
    assert row.reverse_key == 42
    assert row.key == (9, 0, 0, 0)


def test_non_integer_reverse_column_is_schema_error() -> None:
    schema = _schema("2\ncrate offlchan\nI S\n1 0\n")
    with pytest.raises(SchemaError):
        RowDecoder(schema)


def test_custom_reverse_column_name() -> None:
    schema = _schema("2\ncrate chid\nI I\n1 0\n")
    row = RowDecoder(schema, ChannelMapConfig(reverse_key_column="chid")).decode(1, "1 99")
    assert row.reverse_key == 99


def test_short_row_is_error_by_default() -> None:
    with pytest.raises(RowError, match="line 5"):
        RowDecoder(MIXED).decode(5, "3 4 APA2")


def test_short_row_padded_on_request() -> None:
    dec = RowDecoder(MIXED, ChannelMapConfig(short_rows="pad"))
    row = dec.decode(5, "3 4 APA2")
    assert row.values == (3, 4, "APA2", 0.0, 0, 0)
    assert row.padded == 3
    assert row.key == (3, 4, 0, 0)
    assert row.reverse_key == 0


def test_extra_tokens() -> None:
    with pytest.raises(RowError):
        RowDecoder(MIXED).decode(1, "3 4 APA2 1.25 1234 77 extra")
    dec = RowDecoder(MIXED, ChannelMapConfig(extra_tokens="ignore"))
    assert dec.decode(1, "3 4 APA2 1.25 1234 77 extra").values[-1] == 77


@pytest.mark.parametrize(
    "line, column",
    [
        ("x 4 APA2 1.25 1234 77", "crate"),
        ("3 4 APA2 gain 1234 77", "gain"),
        ("3 4 APA2 1.25 12.5 77", "offlchan"),
    ],
)
def test_unparseable_token_names_the_column(line: str, column: str) -> None:
    with pytest.raises(RowError, match=column) as ei:
        RowDecoder(MIXED).decode(8, line)
    assert ei.value.line_no == 8


def test_too_many_keys_gives_no_key_tuple() -> None:
    schema = _schema("5\na b c d e\nI I I I I\n1 1 1 1 1\n")
    row = RowDecoder(schema).decode(1, "1 2 3 4 5")
    assert row.key is None
    assert row.values == (1, 2, 3, 4, 5)
