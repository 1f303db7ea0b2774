"""Library file management - category symbol libraries, footprints, lib-tables, config."""

import json
import os
import re
import sys
from dataclasses import dataclass
from typing import List, Optional

from ..easyeda.component import ComponentData
from .category_router import (
    LIBRARY_PREFIX,
    get_3d_models_dir_name,
    get_all_categories,
    get_footprint_dir_name,
    get_library_filename,
    get_symbol_library_name,
)
from .symbol_writer import (
    append_to_library,
    convert_symbol,
    get_symbol_name,
    replace_in_library,
    symbol_exists_in_library,
)
from .version import DEFAULT_KICAD_VERSION

_DEFAULT_CONFIG = {
    "lib_dir": "",
    "kicad_version": DEFAULT_KICAD_VERSION,
    "strict_footprints": True,
    "include_3d_models": False,
}

_TOP_SYMBOL_RE = re.compile(r'^  \(symbol "([^"]+)"', re.MULTILINE)
_LCSC_PROPERTY_RE = re.compile(r'\(property "LCSC" "([^"]*)"')


@dataclass
class InstalledSymbol:
    category: str
    name: str
    lcsc_id: str = ""


def _config_path() -> str:
    """Get path to the jlcconvert config file."""
    return os.path.join(_kicad_config_base(), "jlcconvert.json")


def load_config() -> dict:
    """Load config from jlcconvert.json, returning defaults for missing keys.

    Auto-creates the file if missing and backfills any new default keys
    into existing files.
    """
    config = dict(_DEFAULT_CONFIG)
    path = _config_path()
    needs_write = False
    if os.path.exists(path):
        try:
            with open(path, encoding="utf-8") as f:
                stored = json.load(f)
            if isinstance(stored, dict):
                for key in _DEFAULT_CONFIG:
                    if key not in stored:
                        needs_write = True
                config.update(stored)
        except (json.JSONDecodeError, OSError):
            needs_write = True
    else:
        needs_write = True
    if needs_write:
        save_config(config)
    return config


def save_config(config: dict) -> None:
    """Save config to jlcconvert.json."""
    path = _config_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)
        f.write("\n")


def _kicad_config_base() -> str:
    """Get the base KiCad config directory (without version)."""
    if sys.platform == "darwin":
        return os.path.expanduser("~/Library/Preferences/kicad")
    elif sys.platform == "win32":
        return os.path.join(os.environ.get("APPDATA", ""), "kicad")
    else:
        return os.path.expanduser("~/.config/kicad")


def ensure_lib_structure(base_path: str, category: str) -> dict:
    """Create the shared footprint and 3D model directories if needed.

    Returns dict with paths: sym_path (the category's symbol library),
    fp_dir, models_dir
    """
    fp_dir = os.path.join(base_path, get_footprint_dir_name())
    models_dir = os.path.join(base_path, get_3d_models_dir_name())

    os.makedirs(fp_dir, exist_ok=True)
    os.makedirs(models_dir, exist_ok=True)

    return {
        "sym_path": os.path.join(base_path, get_library_filename(category)),
        "fp_dir": fp_dir,
        "models_dir": models_dir,
    }


def write_symbol(
    sym_path: str,
    component: ComponentData,
    force: bool = False,
    kicad_version: int = DEFAULT_KICAD_VERSION,
    footprint_ref: str = "",
) -> str:
    """Create, append to or update a symbol library file.

    Returns the action taken: "created", "appended", "exists" (left alone
    because *force* is off) or "replaced".
    """
    name = get_symbol_name(component)
    if not os.path.exists(sym_path):
        content = convert_symbol(component, name, kicad_version, footprint_ref)
        action = "created"
    else:
        with open(sym_path, encoding="utf-8") as f:
            lib_content = f.read()
        if symbol_exists_in_library(lib_content, name):
            if not force:
                return "exists"
            content = replace_in_library(lib_content, component, name, kicad_version, footprint_ref)
            action = "replaced"
        else:
            content = append_to_library(lib_content, component, name, kicad_version, footprint_ref)
            action = "appended"

    with open(sym_path, "w", encoding="utf-8") as f:
        f.write(content)
    return action


def save_footprint(fp_dir: str, name: str, content: str, overwrite: bool = False) -> bool:
    """Save a .kicad_mod footprint file.

    Returns True if saved, False if exists and overwrite=False.
    """
    fp_path = os.path.join(fp_dir, f"{name}.kicad_mod")
    if os.path.exists(fp_path) and not overwrite:
        return False

    with open(fp_path, "w", encoding="utf-8") as f:
        f.write(content)
    return True


def update_project_lib_tables(project_dir: str, categories: Optional[List[str]] = None) -> bool:
    """Register category symbol libraries and the footprint library in the project tables.

    Returns True if a table was newly created (requires project reopen).
    """
    created = False
    sym_table = os.path.join(project_dir, "sym-lib-table")
    for category in categories or []:
        lib_name = get_symbol_library_name(category)
        uri = f"${{KIPRJMOD}}/{get_library_filename(category)}"
        created = _update_lib_table(sym_table, "sym_lib_table", lib_name, "KiCad", uri) or created

    fp_uri = f"${{KIPRJMOD}}/{get_footprint_dir_name()}"
    fp_table = os.path.join(project_dir, "fp-lib-table")
    created = _update_lib_table(fp_table, "fp_lib_table", LIBRARY_PREFIX, "KiCad", fp_uri) or created
    return created


def _update_lib_table(table_path: str, table_type: str, lib_name: str, lib_type: str, uri: str) -> bool:
    """Add an entry to a lib-table file.

    Returns True if the file was newly created.
    """
    entry = f'  (lib (name "{lib_name}")(type "{lib_type}")(uri "{uri}")(options "")(descr ""))'

    if os.path.exists(table_path):
        with open(table_path, encoding="utf-8") as f:
            content = f.read()
        if f'(name "{lib_name}")' in content:
            return False
        last_paren = content.rfind(")")
        if last_paren >= 0:
            new_content = content[:last_paren] + entry + "\n)\n"
            with open(table_path, "w", encoding="utf-8") as f:
                f.write(new_content)
        return False
    else:
        with open(table_path, "w", encoding="utf-8") as f:
            f.write(f"({table_type}\n")
            f.write("  (version 7)\n")
            f.write(entry + "\n")
            f.write(")\n")
        return True


def list_installed(lib_dir: str) -> List[InstalledSymbol]:
    """Scan the category symbol libraries under *lib_dir*."""
    installed = []
    for category in get_all_categories():
        path = os.path.join(lib_dir, get_library_filename(category))
        if not os.path.exists(path):
            continue
        with open(path, encoding="utf-8") as f:
            content = f.read()
        starts = list(_TOP_SYMBOL_RE.finditer(content))
        for i, match in enumerate(starts):
            end = starts[i + 1].start() if i + 1 < len(starts) else len(content)
            lcsc = _LCSC_PROPERTY_RE.search(content, match.start(), end)
            installed.append(InstalledSymbol(category, match.group(1), lcsc.group(1) if lcsc else ""))
    return installed


_WINDOWS_RESERVED = re.compile(r"^(CON|PRN|AUX|NUL|COM[0-9]|LPT[0-9])$", re.IGNORECASE)


def sanitize_name(title: str) -> str:
    """Sanitize a component name for use as a file name.

    Strips path separators and special characters and rejects Windows
    reserved device names.
    """
    name = re.sub(r"[^A-Za-z0-9_\-]", "_", title)
    name = re.sub(r"_+", "_", name)
    name = name.strip("_")
    if _WINDOWS_RESERVED.match(name):
        name = "_" + name
    if not name:
        name = "unnamed"
    return name
