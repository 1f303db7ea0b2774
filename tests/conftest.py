"""Shared test fixtures for kicad_jlcconvert tests."""
import pytest

from kicad_jlcconvert.kicad import library


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep jlcconvert.json out of the real KiCad config directory."""
    config_dir = tmp_path / "kicad-config"
    monkeypatch.setattr(library, "_kicad_config_base", lambda: str(config_dir))
    return config_dir
