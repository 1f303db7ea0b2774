"""Tests for importer.py - installing components into the libraries."""
import os
import tempfile

import pytest

from kicad_jlcconvert import importer
from kicad_jlcconvert.easyeda.component import component_from_record
from kicad_jlcconvert.easyeda.ee_types import EE3DModel
from kicad_jlcconvert.importer import (
    MAX_BATCH_SIZE,
    MAX_REPORTED_FAILURES,
    BatchSummary,
    batch_install,
    install_component,
    regenerate_library,
)
from kicad_jlcconvert.kicad.library import list_installed


def _make_record(lcsc_id="C25804", name="0603WAF1002T5E", prefix="R?", package="R0603"):
    return {
        "title": f"{name} {package}",
        "dataStr": {
            "head": {"x": 400, "y": 300, "c_para": {"pre": prefix, "name": name, "package": package}},
            "shape": [
                "P~show~0~1~390~300~180~p1~0^^390~300^^M 390 300 h 10~#880000",
                "P~show~0~2~410~300~0~p2~0^^410~300^^M 410 300 h -10~#880000",
            ],
        },
        "packageDetail": {
            "dataStr": {
                "head": {"x": 4000, "y": 3000, "c_para": {"package": package}},
                "shape": [
                    "PAD~RECT~3997~3000~3~3.5~1~~1~0~~0~pa1~0~~0~0",
                    "PAD~RECT~4003~3000~3~3.5~1~~2~0~~0~pa2~0~~0~0",
                ],
            }
        },
        "lcsc": {"number": lcsc_id},
    }


def _make_component(**kwargs):
    return component_from_record(_make_record(**kwargs))


def _make_ic(lcsc_id="C7593", name="NE555"):
    return _make_component(lcsc_id=lcsc_id, name=name, prefix="U?", package="SOIC-8")


def _read(path):
    with open(path, encoding="utf-8") as f:
        return f.read()


class TestInstallComponent:
    def test_builtin_footprint(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            messages = []
            result = install_component(_make_component(), tmpdir, log=messages.append)
            assert result.category == "Resistors"
            assert result.symbol_action == "created"
            assert result.footprint_type == "reference"
            assert result.footprint_ref == "Resistor_SMD:R_0603_1608Metric"
            assert messages[0] == "Installing C25804 into Resistors"
            assert "  Using KiCad footprint Resistor_SMD:R_0603_1608Metric" in messages
            content = _read(os.path.join(tmpdir, "JLC-MCP-Resistors.kicad_sym"))
            assert '"Resistor_SMD:R_0603_1608Metric"' in content

    def test_lib_tables_registered(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            messages = []
            install_component(_make_component(), tmpdir, log=messages.append)
            assert '(name "JLC-MCP-Resistors")' in _read(os.path.join(tmpdir, "sym-lib-table"))
            assert '(name "JLC-MCP")' in _read(os.path.join(tmpdir, "fp-lib-table"))
            assert messages[-1].startswith("NOTE: Reopen project")

    def test_skip_tables(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            install_component(_make_component(), tmpdir, update_tables=False, log=lambda msg: None)
            assert not os.path.exists(os.path.join(tmpdir, "sym-lib-table"))

    def test_existing_symbol_kept_without_force(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            install_component(_make_component(), tmpdir, log=lambda msg: None)
            assert install_component(_make_component(), tmpdir, log=lambda msg: None).symbol_action == "exists"
            result = install_component(_make_component(), tmpdir, force=True, log=lambda msg: None)
            assert result.symbol_action == "replaced"

    def test_generated_footprint(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            messages = []
            result = install_component(_make_ic(), tmpdir, log=messages.append)
            assert result.category == "ICs"
            assert result.footprint_type == "generated"
            assert result.footprint_ref == "JLC-MCP:SOIC-8"
            assert result.footprint_saved is True
            fp_path = os.path.join(tmpdir, "JLC-MCP.pretty", "SOIC-8.kicad_mod")
            assert os.path.exists(fp_path)
            assert f"  Saved: {fp_path}" in messages
            assert '"JLC-MCP:SOIC-8"' in _read(os.path.join(tmpdir, "JLC-MCP-ICs.kicad_sym"))

    def test_footprint_not_overwritten(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            install_component(_make_ic(), tmpdir, log=lambda msg: None)
            messages = []
            result = install_component(_make_ic("C7594", "NE555B"), tmpdir, log=messages.append)
            assert result.footprint_saved is False
            assert any(m.startswith("  Skipped:") and m.endswith("(exists, overwrite=off)") for m in messages)

    def test_3d_model_reference(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            component = _make_ic()
            component.model3d = EE3DModel("abc123")
            install_component(component, tmpdir, include_3d_model=True, log=lambda msg: None)
            content = _read(os.path.join(tmpdir, "JLC-MCP.pretty", "SOIC-8.kicad_mod"))
            assert '(model "${KIPRJMOD}/JLC-MCP.3dshapes/SOIC-8.step"' in content

    def test_kicad_8_output(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            install_component(_make_component(), tmpdir, kicad_version=8, log=lambda msg: None)
            assert "(version 20231120)" in _read(os.path.join(tmpdir, "JLC-MCP-Resistors.kicad_sym"))


class TestRegenerateLibrary:
    def test_progress_and_success(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            progress = []
            components = [_make_component(), _make_component(lcsc_id="C60490", name="RC0402FR-0710KL")]
            summary = regenerate_library(
                components, tmpdir, on_progress=lambda *args: progress.append(args), log=lambda msg: None
            )
            assert summary.success == 2
            assert summary.failed == 0
            assert progress == [(1, 2, "C25804"), (2, 2, "C60490")]

    def test_replaces_existing(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            install_component(_make_component(), tmpdir, log=lambda msg: None)
            summary = regenerate_library([_make_component()], tmpdir, log=lambda msg: None)
            assert summary.results[0].symbol_action == "replaced"

    def test_failure_recorded_and_walk_continues(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open(os.path.join(tmpdir, "JLC-MCP-Resistors.kicad_sym"), "w", encoding="utf-8") as f:
                f.write("garbage")
            summary = regenerate_library([_make_component(), _make_ic()], tmpdir, log=lambda msg: None)
            assert summary.failed == 1
            assert summary.success == 1
            assert summary.failures[0][0] == "C25804"
            assert "missing closing parenthesis" in summary.failures[0][1]

    def test_unexpected_error_recorded(self, monkeypatch):
        real_install = importer.install_component

        def install(component, *args, **kwargs):
            if component.info.lcsc_id == "C25804":
                raise KeyError("dataStr")
            return real_install(component, *args, **kwargs)

        monkeypatch.setattr(importer, "install_component", install)
        with tempfile.TemporaryDirectory() as tmpdir:
            summary = regenerate_library([_make_component(), _make_ic()], tmpdir, log=lambda msg: None)
            assert summary.failed == 1
            assert summary.success == 1
            assert summary.failures[0][0] == "C25804"
            assert os.path.exists(os.path.join(tmpdir, "JLC-MCP-ICs.kicad_sym"))


class TestBatchInstall:
    def test_mixed_batch(self):
        records = {"C25804": _make_record()}
        with tempfile.TemporaryDirectory() as tmpdir:
            messages = []
            summary = batch_install(
                ["C25804", "c25804", "bad!", "C999"], records.get, tmpdir, log=messages.append
            )
            assert summary.success == 1
            assert summary.failed == 2
            assert summary.skipped == 0
            failures = dict(summary.failures)
            assert "bad!" in failures
            assert failures["C999"] == "Component C999 not found"
            assert messages[-1] == "Batch install: 1 installed, 0 skipped, 2 failed"

    def test_existing_counts_as_skipped(self):
        records = {"C25804": _make_record()}
        with tempfile.TemporaryDirectory() as tmpdir:
            batch_install(["C25804"], records.get, tmpdir, log=lambda msg: None)
            summary = batch_install(["C25804"], records.get, tmpdir, log=lambda msg: None)
            assert summary.skipped == 1
            assert summary.success == 0

    def test_fetcher_error_is_failure(self):
        def fetcher(lcsc_id):
            raise ConnectionError("network down")

        with tempfile.TemporaryDirectory() as tmpdir:
            summary = batch_install(["C1", "C2"], fetcher, tmpdir, log=lambda msg: None)
            assert summary.failed == 2
            assert all(message == "network down" for _, message in summary.failures)

    def test_accepts_component_data(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            summary = batch_install(["C7593"], lambda lcsc_id: _make_ic(), tmpdir, log=lambda msg: None)
            assert summary.success == 1
            assert summary.results[0].name == "NE555"

    def test_concurrent_installs_share_library(self):
        ids = [f"C{100 + i}" for i in range(MAX_BATCH_SIZE)]
        records = {lcsc_id: _make_record(lcsc_id=lcsc_id, name=f"R{lcsc_id}") for lcsc_id in ids}
        with tempfile.TemporaryDirectory() as tmpdir:
            summary = batch_install(ids, records.get, tmpdir, log=lambda msg: None)
            assert summary.success == MAX_BATCH_SIZE
            installed = list_installed(tmpdir)
            assert sorted(item.lcsc_id for item in installed) == sorted(ids)
            sym_table = _read(os.path.join(tmpdir, "sym-lib-table"))
            assert sym_table.count('(name "JLC-MCP-Resistors")') == 1

    def test_too_many_ids(self):
        ids = [f"C{100 + i}" for i in range(MAX_BATCH_SIZE + 1)]
        with pytest.raises(ValueError, match="At most"):
            batch_install(ids, lambda lcsc_id: None, "unused", log=lambda msg: None)

    def test_nothing_valid(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            summary = batch_install(["???"], lambda lcsc_id: None, tmpdir, log=lambda msg: None)
            assert summary.failed == 1
            assert summary.results == []


class TestBatchSummary:
    def test_failures_capped(self):
        summary = BatchSummary()
        for i in range(MAX_REPORTED_FAILURES + 3):
            summary.add_failure(f"C{i}", "boom")
        assert summary.failed == MAX_REPORTED_FAILURES + 3
        assert len(summary.failures) == MAX_REPORTED_FAILURES
