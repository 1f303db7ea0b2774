"""Tests for kicad/value_normalizer.py - passive display values."""
from kicad_jlcconvert.kicad.value_normalizer import detect_component_type, extract_display_value, normalize_value


class TestDetectComponentType:
    def test_prefix(self):
        assert detect_component_type("R?") == "resistor"
        assert detect_component_type("U") == "ic"

    def test_category_fallback(self):
        assert detect_component_type("Z", "Chip Resistor") == "resistor"

    def test_other(self):
        assert detect_component_type("X", "Crystal") == "other"


class TestNormalizeValue:
    def test_resistor_with_params(self):
        result = normalize_value("10kΩ ±1% 0.1W", "resistor")
        assert result.display_value == "10k"
        assert result.params == {"value": "10k", "tolerance": "1%", "power": "0.1W"}

    def test_zero_r_notation(self):
        assert normalize_value("0R1", "resistor").display_value == "0.1"

    def test_capacitor_voltage(self):
        result = normalize_value("100nF 50V", "capacitor")
        assert result.display_value == "100n/50V"
        assert result.params["voltage"] == "50V"

    def test_inductor_current(self):
        assert normalize_value("4.7uH 2A", "inductor").display_value == "4.7uH/2A"

    def test_non_passive_trimmed(self):
        result = normalize_value("  NE555  ", "ic")
        assert result.display_value == "NE555"
        assert result.original_value == "NE555"


class TestExtractDisplayValue:
    def test_resistor_prefers_description(self):
        value = extract_display_value("0603WAF1002T5E", "10kΩ ±1% 100mW 0603 Thick Film Resistors", "R")
        assert value == "10k"

    def test_ic_uses_name(self):
        assert extract_display_value("NE555", "Timer 555", "U") == "NE555"
