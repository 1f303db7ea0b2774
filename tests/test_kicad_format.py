"""Tests for kicad/_format.py and kicad/coords.py - formatting and transforms."""
from kicad_jlcconvert.kicad._format import (
    escape_sexpr,
    fmt_float,
    sanitize_footprint_name,
    sanitize_pin_name,
    sanitize_symbol_name,
    sanitize_text,
)
from kicad_jlcconvert.kicad.coords import flip_none_for_footprint, flip_y_for_symbol, to_millimeters


class TestFmtFloat:
    def test_integer_value(self):
        assert fmt_float(5.0) == "5"

    def test_negative_integer(self):
        assert fmt_float(-3.0) == "-3"

    def test_zero(self):
        assert fmt_float(0.0) == "0"

    def test_negative_zero(self):
        assert fmt_float(-0.0) == "0"

    def test_strips_trailing_zeros(self):
        assert fmt_float(1.100000) == "1.1"

    def test_precision_limit(self):
        assert fmt_float(1.23456789) == "1.234568"


class TestEscapeSexpr:
    def test_quotes(self):
        assert escape_sexpr('say "hi"') == 'say \\"hi\\"'

    def test_backslash(self):
        assert escape_sexpr("a\\b") == "a\\\\b"

    def test_newline(self):
        assert escape_sexpr("a\nb") == "a b"


class TestSanitizers:
    def test_symbol_name(self):
        assert sanitize_symbol_name("LM358 (DIP-8)") == "LM358__DIP-8_"

    def test_footprint_name_keeps_dots(self):
        assert sanitize_footprint_name("SOT-23 3.0mm") == "SOT-23_3.0mm"

    def test_pin_name_empty(self):
        assert sanitize_pin_name("") == "~"

    def test_pin_name_quotes(self):
        assert sanitize_pin_name('A"B\\') == "A'B"

    def test_text_newlines(self):
        assert sanitize_text("line1\r\nline2") == "line1 line2"


class TestCoords:
    def test_to_millimeters(self):
        assert to_millimeters(10) == 2.54

    def test_symbol_flips_y(self):
        assert flip_y_for_symbol(410, 290, 400, 300) == (2.54, 2.54)

    def test_footprint_keeps_y(self):
        assert flip_none_for_footprint(4010, 4010, 4000, 4000) == (2.54, 2.54)

    def test_symbol_precision(self):
        assert flip_y_for_symbol(1, 0) == (0.254, 0)
        assert flip_y_for_symbol(0.33333, 0)[0] == 0.085
