"""Tests for swelfi.scanning.anchors — the TextCursor field extractors."""

from __future__ import annotations

import sys

import pytest

from swelfi.scanning.anchors import TextCursor
from swelfi.wireless_common import AnchorNotFound, FieldFormatError, ParseError


class TestSkipPast:
    """skip_past moves the cursor just beyond the next anchor."""

    def test_moves_past_anchor(self):
        cursor = TextCursor("abc Quality=42/70")
        cursor.skip_past("Quality=")
        assert cursor.text[cursor.pos:] == "42/70"

    def test_missing_anchor_raises(self):
        cursor = TextCursor("no anchors here")
        with pytest.raises(AnchorNotFound):
            cursor.skip_past("ESSID:")

    def test_missing_anchor_does_not_move(self):
        cursor = TextCursor("no anchors here", pos=3)
        with pytest.raises(AnchorNotFound):
            cursor.skip_past("ESSID:")
        assert cursor.pos == 3

    def test_anchor_beyond_end_not_found(self):
        text = "first part | ESSID:\"x\""
        cursor = TextCursor(text, end=text.index("|"))
        with pytest.raises(AnchorNotFound):
            cursor.skip_past("ESSID:")

    def test_anchor_not_found_is_parse_error(self):
        assert issubclass(AnchorNotFound, ParseError)


class TestSkipPastOnLine:
    def test_anchor_on_current_line(self):
        cursor = TextCursor("Cell 01 - Address: AA:BB\nnext")
        cursor.skip_past_on_line("- Address: ")
        assert cursor.rest_of_line() == "AA:BB"

    def test_anchor_on_later_line_not_found(self):
        cursor = TextCursor("Cell 01\n - Address: AA:BB")
        with pytest.raises(AnchorNotFound):
            cursor.skip_past_on_line("- Address: ")


class TestRestOfLine:
    def test_stops_at_newline(self):
        cursor = TextCursor("wlan0\nifindex 3")
        assert cursor.rest_of_line() == "wlan0"
        assert cursor.text[cursor.pos] == "\n"

    def test_runs_to_end_without_newline(self):
        cursor = TextCursor("wlan0")
        assert cursor.rest_of_line() == "wlan0"
        assert cursor.at_end()

    def test_strips_carriage_return(self):
        assert TextCursor("wlan0\r\n").rest_of_line() == "wlan0"


class TestTakeNumbers:
    @pytest.mark.parametrize("text, expected", [
        ("2.437 GHz", 2.437),
        ("5.18 GHz", 5.18),
        ("5 GHz", 5.0),
        (".5", 0.5),
    ])
    def test_take_float(self, text, expected):
        assert TextCursor(text).take_float() == pytest.approx(expected)

    def test_take_float_advances_past_number(self):
        cursor = TextCursor("2.437 GHz")
        cursor.take_float()
        assert cursor.text[cursor.pos:] == " GHz"

    def test_take_float_rejects_text(self):
        with pytest.raises(FieldFormatError):
            TextCursor("n/a").take_float()

    def test_take_int(self):
        cursor = TextCursor("42/70")
        assert cursor.take_int() == 42
        cursor.expect("/")
        assert cursor.take_int() == 70

    def test_take_int_rejects_negative(self):
        with pytest.raises(FieldFormatError):
            TextCursor("-1/70").take_int()

    @pytest.mark.skipif(
        not hasattr(sys, "set_int_max_str_digits"),
        reason="interpreter has no integer string length limit",
    )
    def test_take_int_oversized_is_field_format_error(self):
        cursor = TextCursor("9" * 5000 + "/70")
        with pytest.raises(FieldFormatError):
            cursor.take_int()
        assert cursor.pos == 0


class TestTakeQuoted:
    def test_returns_contents(self):
        assert TextCursor('"some network" rest').take_quoted() == "some network"

    def test_empty_string(self):
        assert TextCursor('""').take_quoted() == ""

    def test_missing_opening_quote_raises(self):
        with pytest.raises(FieldFormatError):
            TextCursor("some network").take_quoted()

    def test_unterminated_raises(self):
        with pytest.raises(FieldFormatError):
            TextCursor('"some network').take_quoted()


class TestExpect:
    def test_mismatch_raises_field_format_error(self):
        with pytest.raises(FieldFormatError):
            TextCursor("42:70", pos=2).expect("/")
