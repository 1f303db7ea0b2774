"""Tests for kicad/symbol_writer.py - symbol layouts and library merging."""
import pytest

from kicad_jlcconvert.easyeda.component import ComponentData, ComponentInfo
from kicad_jlcconvert.easyeda.ee_types import EEFootprint, EEPin, EESymbol, EESymRect
from kicad_jlcconvert.kicad.symbol_writer import (
    LibraryFormatError,
    append_to_library,
    convert_symbol,
    convert_to_symbol_entry,
    create_library,
    get_symbol_name,
    pin_electrical_type,
    pin_graphic_style,
    remove_from_library,
    replace_in_library,
    symbol_exists_in_library,
)


def _make_component(name="0603WAF1002T5E", prefix="R?", pins=None, symbol=None, **info):
    if symbol is None:
        if pins is None:
            pins = [EEPin("1", "1", "0", 390, 300), EEPin("2", "2", "0", 410, 300)]
        symbol = EESymbol(pins=pins, origin_x=400, origin_y=300)
    return ComponentData(
        info=ComponentInfo(name=name, prefix=prefix, lcsc_id=info.pop("lcsc_id", "C25804"), **info),
        symbol=symbol,
        footprint=EEFootprint(),
    )


def _make_ic(pin_count=4, with_body=False):
    pins = [EEPin(str(i), f"P{i}", "1", 0, 0) for i in range(1, pin_count + 1)]
    symbol = EESymbol(pins=pins, origin_x=400, origin_y=300)
    if with_body:
        symbol.rectangles.append(EESymRect(380, 280, 40, 40))
    return _make_component(name="NE555", prefix="U?", symbol=symbol)


class TestPinHelpers:
    def test_electrical_types(self):
        assert pin_electrical_type("4") == "power_in"
        assert pin_electrical_type("8") == "passive"
        assert pin_electrical_type("?") == "passive"

    def test_graphic_styles(self):
        assert pin_graphic_style(EEPin("1", "A", "0", 0, 0)) == "line"
        assert pin_graphic_style(EEPin("1", "A", "0", 0, 0, has_dot=True)) == "inverted"
        assert pin_graphic_style(EEPin("1", "A", "0", 0, 0, has_clock=True)) == "clock"
        assert pin_graphic_style(EEPin("1", "A", "0", 0, 0, has_dot=True, has_clock=True)) == "inverted_clock"


class TestTemplateLayout:
    def test_resistor_pins(self):
        entry = convert_to_symbol_entry(_make_component())
        assert "(pin passive line (at 0 3.81 270) (length 2.54)" in entry
        assert "(pin passive line (at 0 -3.81 90) (length 2.54)" in entry
        assert "(pin_numbers (hide yes))" in entry

    def test_resistor_reference_position(self):
        entry = convert_to_symbol_entry(_make_component())
        assert '(property "Reference" "R" (at 2.54 0 90)' in entry

    def test_category_selects_template(self):
        component = _make_component(prefix="U", category="Chip Resistor - Surface Mount")
        entry = convert_to_symbol_entry(component)
        assert "(pin passive line (at 0 3.81 270)" in entry

    def test_three_pins_skip_template(self):
        pins = [EEPin(str(i), "", "0", 0, 0) for i in range(1, 4)]
        entry = convert_to_symbol_entry(_make_component(pins=pins))
        assert "(pin_numbers (hide yes))" not in entry


class TestShapeLayout:
    def test_pin_from_drawing(self):
        pins = [EEPin("1", "VCC", "0", 390, 300, rotation=180, pin_length=10)]
        symbol = EESymbol(pins=pins, rectangles=[EESymRect(390, 290, 20, 20)], origin_x=400, origin_y=300)
        entry = convert_to_symbol_entry(_make_component(name="X1", prefix="U?", symbol=symbol))
        assert "(pin unspecified line (at -2.54 0 0) (length 2.54)" in entry
        assert '(name "VCC"' in entry

    def test_rectangle_flipped(self):
        entry = convert_to_symbol_entry(_make_ic(with_body=True))
        assert "(rectangle (start -5.08 5.08) (end 5.08 -5.08)" in entry


class TestDipLayout:
    def test_four_pins(self):
        entry = convert_to_symbol_entry(_make_ic(4))
        assert "(rectangle (start -12.7 5.08) (end 12.7 -2.54)" in entry
        assert "(pin input line (at -15.24 2.54 0) (length 2.54)" in entry
        assert "(pin input line (at -15.24 0 0) (length 2.54)" in entry
        assert "(pin input line (at 15.24 0 180) (length 2.54)" in entry
        assert "(pin input line (at 15.24 2.54 180) (length 2.54)" in entry


class TestProperties:
    def test_footprint_property(self):
        entry = convert_to_symbol_entry(_make_component(), footprint_ref="Resistor_SMD:R_0603_1608Metric")
        assert '(property "Footprint" "Resistor_SMD:R_0603_1608Metric" (at -1.778 0 90)' in entry

    def test_footprint_falls_back_to_package(self):
        entry = convert_to_symbol_entry(_make_component(package="R0603"))
        assert '(property "Footprint" "R0603"' in entry

    def test_default_datasheet(self):
        entry = convert_to_symbol_entry(_make_component())
        assert '(property "Datasheet" "https://www.lcsc.com/datasheet/C25804.pdf"' in entry

    def test_explicit_datasheet(self):
        entry = convert_to_symbol_entry(_make_component(datasheet_pdf="https://example.com/r.pdf"))
        assert '"https://example.com/r.pdf"' in entry

    def test_hidden_lcsc(self):
        entry = convert_to_symbol_entry(_make_component())
        assert '(property "LCSC" "C25804" (at 0 0 0)' in entry

    def test_attributes_emitted(self):
        entry = convert_to_symbol_entry(_make_component(attributes={"Resistance": "10k", "Empty": ""}))
        assert '(property "Resistance" "10k"' in entry
        assert '"Empty"' not in entry

    def test_symbol_name(self):
        assert get_symbol_name(_make_component(name="LM358 (DIP-8)")) == "LM358__DIP-8_"
        assert get_symbol_name(_make_component(name="")) == "C25804"


class TestLibraryText:
    def test_header_v9(self):
        text = convert_symbol(_make_component())
        assert text.startswith("(kicad_symbol_lib\n  (version 20241209)")
        assert "(embedded_fonts no)" in text
        assert text.endswith(")\n")

    def test_header_v8(self):
        text = convert_symbol(_make_component(), kicad_version=8)
        assert "(version 20231120)" in text
        assert "embedded_fonts" not in text

    def test_create_library(self):
        text = create_library([_make_component(), _make_ic()])
        assert symbol_exists_in_library(text, "0603WAF1002T5E")
        assert symbol_exists_in_library(text, "NE555")

    def test_exists_ignores_sub_symbols(self):
        text = convert_symbol(_make_component())
        assert not symbol_exists_in_library(text, "0603WAF1002T5E_0")


class TestLibraryMerge:
    def test_append(self):
        text = append_to_library(convert_symbol(_make_component()), _make_ic())
        assert symbol_exists_in_library(text, "0603WAF1002T5E")
        assert symbol_exists_in_library(text, "NE555")
        assert text.endswith(")\n")

    def test_append_invalid(self):
        with pytest.raises(LibraryFormatError):
            append_to_library("not a library", _make_component())

    def test_remove(self):
        text = create_library([_make_component(), _make_ic()])
        text = remove_from_library(text, "NE555")
        assert not symbol_exists_in_library(text, "NE555")
        assert symbol_exists_in_library(text, "0603WAF1002T5E")

    def test_remove_missing_is_noop(self):
        text = convert_symbol(_make_component())
        assert remove_from_library(text, "NE555") == text

    def test_remove_unbalanced(self):
        with pytest.raises(LibraryFormatError):
            remove_from_library('(kicad_symbol_lib\n  (symbol "X"\n', "X")

    def test_replace_is_idempotent(self):
        component = _make_component()
        original = convert_symbol(component)
        assert replace_in_library(original, component) == original

    def test_replace_keeps_others(self):
        text = create_library([_make_component(), _make_ic()])
        text = replace_in_library(text, _make_ic(), footprint_ref="Package_DIP:DIP-8_W7.62mm")
        assert text.count('(symbol "NE555"') == 1
        assert "Package_DIP:DIP-8_W7.62mm" in text
        assert symbol_exists_in_library(text, "0603WAF1002T5E")

    def test_repeated_replace_tracks_renamed_pin(self):
        resistor = _make_component()
        text = create_library([resistor, _make_ic()])
        first = _make_ic()
        first.symbol.pins[0].name = "TRIG"
        text = replace_in_library(text, first)
        second = _make_ic()
        second.symbol.pins[0].name = "THR"
        text = replace_in_library(text, second)
        assert text.count('(symbol "NE555"') == 1
        assert '(name "THR"' in text
        assert '(name "TRIG"' not in text
        assert convert_to_symbol_entry(resistor) in text

    def test_remove_after_escaped_backslash(self):
        text = (
            "(kicad_symbol_lib\n"
            '  (symbol "X" (property "Description" "C:\\\\dir\\\\" (at 0 0 0)))\n'
            '  (symbol "Y")\n'
            ")\n"
        )
        assert remove_from_library(text, "X") == '(kicad_symbol_lib\n  (symbol "Y")\n)\n'
