"""Shared formatting utilities for KiCad file output."""
import re


def fmt_float(v: float) -> str:
    """Format a float for KiCad S-expression output.

    Returns integers without decimals, otherwise up to 6 decimal places
    with trailing zeros stripped.
    """
    if v == int(v) and abs(v) < 1e10:
        return str(int(v))
    return f"{v:.6f}".rstrip("0").rstrip(".")


def escape_sexpr(s: str) -> str:
    """Escape special characters for S-expression string values."""
    return s.replace("\\", "\\\\").replace('"', '\\"').replace("\n", " ")


def sanitize_symbol_name(name: str) -> str:
    """Symbol names keep letters, digits, underscore and hyphen."""
    return re.sub(r"[^a-zA-Z0-9_-]", "_", name)


def sanitize_footprint_name(name: str) -> str:
    """Footprint names additionally keep dots."""
    return re.sub(r"[^a-zA-Z0-9_.-]", "_", name)


def sanitize_pin_name(name: str) -> str:
    """Pin names: empty becomes "~", double quotes become single, backslashes dropped."""
    if not name:
        return "~"
    return name.replace('"', "'").replace("\\", "")


def sanitize_text(text: str) -> str:
    """Property text: quotes and backslashes as for pin names, newlines flattened."""
    return text.replace('"', "'").replace("\\", "").replace("\r", "").replace("\n", " ")
