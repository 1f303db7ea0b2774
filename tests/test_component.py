"""Tests for easyeda/component.py - raw record decoding."""
import json
import os
import tempfile

import pytest

from kicad_jlcconvert.easyeda.component import component_from_record, load_component_file, validate_lcsc_id
from kicad_jlcconvert.kicad.symbol_writer import convert_symbol


def _make_record(**overrides):
    record = {
        "title": "10k 0603 1% resistor",
        "dataStr": {
            "head": {
                "x": 400,
                "y": 300,
                "c_para": {
                    "pre": "R?",
                    "name": "0603WAF1002T5E",
                    "package": "R0603",
                    "BOM_Manufacturer": "UNI-ROYAL",
                    "BOM_Resistance": "10k",
                    "BOM_JLCPCB Part Class": "Basic Part",
                    "Manufacturer Part": "0603WAF1002T5E",
                },
            },
            "shape": [
                "P~show~0~1~390~300~180~p1~0^^390~300^^M 390 300 h 10~#880000",
                "P~show~0~2~410~300~0~p2~0^^410~300^^M 410 300 h -10~#880000",
            ],
        },
        "packageDetail": {
            "dataStr": {
                "head": {"x": 4000, "y": 3000, "c_para": {"package": "R0603"}},
                "shape": [
                    "PAD~RECT~3997~3000~3~3.5~1~~1~0~~0~pa1~0~~0~0",
                    "PAD~RECT~4003~3000~3~3.5~1~~2~0~~0~pa2~0~~0~0",
                ],
            }
        },
        "lcsc": {"number": "C25804", "url": "https://lcsc.com/product-detail/C25804.html", "stock": 1000,
                 "price": 0.0012, "min": 100},
        "SMT": True,
    }
    record.update(overrides)
    return record


class TestValidateLcscId:
    def test_normalizes(self):
        assert validate_lcsc_id(" c25804 ") == "C25804"

    def test_adds_prefix(self):
        assert validate_lcsc_id("25804") == "C25804"

    @pytest.mark.parametrize("bad", ["", "CX12", "C12/../x", "C1234567890123"])
    def test_rejects_invalid(self, bad):
        with pytest.raises(ValueError):
            validate_lcsc_id(bad)


class TestComponentFromRecord:
    def test_info(self):
        comp = component_from_record(_make_record())
        info = comp.info
        assert info.name == "0603WAF1002T5E"
        assert info.prefix == "R?"
        assert info.package == "R0603"
        assert info.manufacturer == "UNI-ROYAL"
        assert info.lcsc_id == "C25804"
        assert info.description == "10k 0603 1% resistor"
        assert info.stock == 1000
        assert info.min_order_qty == 100
        assert info.process == "SMT"
        assert info.part_number == "0603WAF1002T5E"

    def test_bom_attributes(self):
        comp = component_from_record(_make_record())
        assert comp.info.attributes == {"Resistance": "10k"}

    def test_shapes_and_origins(self):
        comp = component_from_record(_make_record())
        assert len(comp.symbol.pins) == 2
        assert (comp.symbol.origin_x, comp.symbol.origin_y) == (400.0, 300.0)
        assert len(comp.footprint.pads) == 2
        assert comp.footprint.name == "R0603"
        assert comp.footprint.origin_x == 4000.0

    def test_missing_sections(self):
        comp = component_from_record({}, "C1")
        assert comp.info.name == "C1"
        assert comp.info.lcsc_id == "C1"
        assert comp.info.prefix == "U"
        assert comp.symbol.pins == []
        assert comp.footprint.name == "Unknown"
        assert comp.model3d is None

    def test_protocol_relative_pdf(self):
        comp = component_from_record(_make_record(datasheetPdf="//example.invalid/ds.pdf"))
        assert comp.info.datasheet_pdf == "https://example.invalid/ds.pdf"

    def test_pin_names_filled_from_labels(self):
        record = _make_record()
        record["dataStr"]["head"]["c_para"]["pre"] = "U?"
        record["dataStr"]["shape"].append("T~L~380~290~0~#0000FF~Arial~5pt~~~~comment~1/IN~1~start~tt1~0~pinpart")
        comp = component_from_record(record)
        assert comp.symbol.pins[0].name == "IN"
        assert '(name "IN"' in convert_symbol(comp)


class TestLoadComponentFile:
    def test_bare_record(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "C25804.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump(_make_record(), f)
            comp = load_component_file(path)
            assert comp.info.lcsc_id == "C25804"

    def test_result_wrapper(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "C25804.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump({"success": True, "result": _make_record()}, f)
            comp = load_component_file(path)
            assert len(comp.footprint.pads) == 2

    def test_not_a_record(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "list.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump([1, 2, 3], f)
            with pytest.raises(ValueError):
                load_component_file(path)
