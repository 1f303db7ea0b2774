"""Tests for validation/symbol_compare.py - reference SVG pin comparison."""
from kicad_jlcconvert.validation import (
    ComparisonOptions,
    compare_symbols,
    extract_symbol_from_kicad,
    extract_symbol_from_svg,
    format_symbol_comparison_result,
    validate_symbol,
)
from kicad_jlcconvert.validation.symbol_compare import centroid, map_electrical_type
from kicad_jlcconvert.validation.types import PinInfo, SymbolData

REFERENCE_SVG = """<svg>
  <g c_partid="part_pin" number="1" c_origin="390,300" c_rotation="180" c_etype="input">
    <path d="M 390 300 h 10"/><text x="395" y="297">VCC</text>
  </g>
  <g c_partid="part_pin" number="2" c_origin="410,300" c_rotation="0" c_etype="output">
    <path d="M 410 300 h -10"/><text x="405" y="297">OUT</text>
  </g>
</svg>"""

KICAD_SYM = """(kicad_symbol_lib
  (symbol "X"
    (pin_numbers (hide yes))
    (symbol "X_1_1"
      (pin input line (at -2.54 0 0) (length 2.54)
        (name "VCC" (effects (font (size 1 1))))
        (number "1" (effects (font (size 1 1))))
      )
      (pin output line (at 2.54 0 180) (length 2.54)
        (name "OUT" (effects (font (size 1 1))))
        (number "2" (effects (font (size 1 1))))
      )
    )
  )
)
"""


def _pin(number, x, y=0.0, name=None, rotation=0.0, electrical="passive"):
    return PinInfo(number=number, name=name or number, x=x, y=y, rotation=rotation, electrical=electrical)


class TestExtractFromSvg:
    def test_pins_centred(self):
        data = extract_symbol_from_svg(REFERENCE_SVG)
        assert [(p.number, p.name) for p in data.pins] == [("1", "VCC"), ("2", "OUT")]
        assert data.pins[0].x == -2.54
        assert data.pins[0].y == 0
        assert data.pins[1].x == 2.54

    def test_rotation_and_type(self):
        pins = extract_symbol_from_svg(REFERENCE_SVG).pins
        assert pins[0].rotation == 0
        assert pins[1].rotation == 180
        assert pins[0].electrical == "input"
        assert pins[1].electrical == "output"

    def test_name_falls_back_to_number(self):
        data = extract_symbol_from_svg('<svg><g c_partid="part_pin" number="5" c_origin="0,0"></g></svg>')
        assert data.pins[0].name == "5"


class TestExtractFromKicad:
    def test_pins(self):
        data = extract_symbol_from_kicad(KICAD_SYM)
        assert [(p.number, p.name, p.electrical) for p in data.pins] == [
            ("1", "VCC", "input"),
            ("2", "OUT", "output"),
        ]
        assert data.pins[1].rotation == 180

    def test_bounds(self):
        bounds = extract_symbol_from_kicad(KICAD_SYM).bounds
        assert (bounds.min_x, bounds.max_x) == (-2.54, 2.54)


class TestHelpers:
    def test_map_electrical_type(self):
        assert map_electrical_type("bi") == "bidirectional"
        assert map_electrical_type("Power") == "power_in"
        assert map_electrical_type("weird") == "unspecified"

    def test_centroid(self):
        assert centroid([(0, 0), (2, 4)]) == (1, 2)
        assert centroid([]) == (0.0, 0.0)


class TestCompareSymbols:
    def test_missing_pin(self):
        reference = SymbolData(pins=[_pin("1", -1), _pin("2", 1)])
        result = compare_symbols(reference, SymbolData(pins=[_pin("1", -1)]))
        assert result.passed is False
        assert result.pin_count_match is False
        assert [(d.number, d.field, d.severity) for d in result.diffs] == [("2", "missing", "error")]

    def test_name_difference_is_warning(self):
        reference = SymbolData(pins=[_pin("1", 0, name="VCC")])
        result = compare_symbols(reference, SymbolData(pins=[_pin("1", 0, name="VDD")]))
        assert result.passed
        assert [d.field for d in result.warnings] == ["name"]

    def test_name_case_insensitive(self):
        reference = SymbolData(pins=[_pin("1", 0, name="vcc")])
        assert compare_symbols(reference, SymbolData(pins=[_pin("1", 0, name="VCC")])).diffs == []

    def test_ignore_pin_names(self):
        reference = SymbolData(pins=[_pin("1", 0, name="VCC")])
        options = ComparisonOptions(ignore_pin_names=True)
        assert compare_symbols(reference, SymbolData(pins=[_pin("1", 0, name="VDD")]), options).diffs == []

    def test_loose_position_tolerance(self):
        reference = SymbolData(pins=[_pin("1", 0)])
        assert compare_symbols(reference, SymbolData(pins=[_pin("1", 0.3)])).diffs == []
        diffs = compare_symbols(reference, SymbolData(pins=[_pin("1", 1.0)])).diffs
        assert [(d.field, d.severity) for d in diffs] == [("position", "warning")]

    def test_rotation_is_info(self):
        reference = SymbolData(pins=[_pin("1", 0, rotation=0)])
        result = compare_symbols(reference, SymbolData(pins=[_pin("1", 0, rotation=90)]))
        assert [(d.field, d.severity) for d in result.diffs] == [("rotation", "info")]
        assert result.passed

    def test_unspecified_reference_type_ignored(self):
        reference = SymbolData(pins=[_pin("1", 0, electrical="unspecified")])
        assert compare_symbols(reference, SymbolData(pins=[_pin("1", 0, electrical="input")])).diffs == []

    def test_electrical_difference(self):
        reference = SymbolData(pins=[_pin("1", 0, electrical="output")])
        diffs = compare_symbols(reference, SymbolData(pins=[_pin("1", 0, electrical="input")])).diffs
        assert [d.field for d in diffs] == ["electrical"]

    def test_extra_pin(self):
        reference = SymbolData(pins=[_pin("1", 0)])
        result = compare_symbols(reference, SymbolData(pins=[_pin("1", 0), _pin("2", 10)]))
        assert [d.field for d in result.warnings] == ["extra"]
        assert result.passed is False

    def test_repeated_numbers_match_closest(self):
        reference = SymbolData(pins=[_pin("GND", -5), _pin("GND", 5)])
        generated = SymbolData(pins=[_pin("GND", 5), _pin("GND", -5)])
        result = compare_symbols(reference, generated)
        assert result.diffs == []
        assert result.passed

    def test_repeated_number_extra_pin(self):
        reference = SymbolData(pins=[_pin("NC", 0)])
        result = compare_symbols(reference, SymbolData(pins=[_pin("NC", 0), _pin("NC", 10)]))
        assert [(d.number, d.field) for d in result.warnings] == [("NC", "extra")]


class TestValidateSymbol:
    def test_matching_symbol(self):
        result = validate_symbol(REFERENCE_SVG, KICAD_SYM)
        assert result.error == ""
        assert result.passed
        assert result.symbol.diffs == []

    def test_never_raises(self):
        result = validate_symbol(REFERENCE_SVG, "(kicad_symbol_lib (symbol")
        assert result.passed is False
        assert result.kind == "symbol"
        assert result.error


class TestFormatSymbolComparisonResult:
    def test_report(self):
        reference = SymbolData(pins=[_pin("1", -1), _pin("2", 1)])
        report = format_symbol_comparison_result(compare_symbols(reference, SymbolData(pins=[_pin("1", -1)])))
        assert report.startswith("Symbol Comparison: FAIL")
        assert "Pin count: 1/2 MISMATCH" in report
        assert "x Pin 2:" in report
