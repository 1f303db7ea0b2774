"""Compact display values for passive components (``10k``, ``100n/50V``, ``4.7uH/2A``)."""

import re
from dataclasses import dataclass, field
from typing import Dict, Optional

_RESISTOR_RE = re.compile(r"(\d+(?:\.\d+)?)\s*([kKmMgGrR]?)\s*(?:ohm|Ohm|OHM|Ω|R)?", re.IGNORECASE)
_CAPACITOR_RE = re.compile(r"(\d+(?:\.\d+)?)\s*([pnuμmM]?)[Ff]?\s*(?:[/\s]*(\d+)\s*[Vv])?", re.IGNORECASE)
_INDUCTOR_RE = re.compile(r"(\d+(?:\.\d+)?)\s*([nμumM]?)[Hh]\s*(?:[/\s]*(\d+(?:\.\d+)?)\s*[Aa])?", re.IGNORECASE)
_TOLERANCE_RE = re.compile(r"[±]?\s*(\d+(?:\.\d+)?)\s*%")
_POWER_RE = re.compile(r"(\d+(?:\.\d+)?)\s*[Ww]")
_ZERO_R_RE = re.compile(r"0[rR](\d)")

MULTIPLIERS = {
    "": "",
    "r": "",
    "R": "",
    "k": "k",
    "K": "k",
    "m": "m",
    "M": "M",
    "g": "G",
    "G": "G",
    "p": "p",
    "n": "n",
    "u": "u",
    "μ": "u",
}

_PREFIX_TYPES = {
    "R": "resistor",
    "C": "capacitor",
    "L": "inductor",
    "D": "diode",
    "Q": "transistor",
    "U": "ic",
}


@dataclass
class NormalizedValue:
    display_value: str
    original_value: str
    params: Dict[str, str] = field(default_factory=dict)


def detect_component_type(prefix: str, category: Optional[str] = None) -> str:
    """Classify as resistor/capacitor/inductor/diode/transistor/ic/other."""
    clean = (prefix or "").strip().rstrip("?").upper()
    if clean in _PREFIX_TYPES:
        return _PREFIX_TYPES[clean]
    if category:
        cat = category.lower()
        for kind in ("resistor", "capacitor", "inductor", "diode", "transistor"):
            if kind in cat:
                return kind
        if "ic" in cat or "microcontroller" in cat:
            return "ic"
    return "other"


def _normalize_resistor(text: str) -> NormalizedValue:
    match = _RESISTOR_RE.search(text)
    if not match:
        return NormalizedValue(text, text)
    value, multiplier = match.group(1), match.group(2)

    # "0R1" is 0.1 ohm
    if multiplier.lower() == "r" and float(value) == 0:
        zero_r = _ZERO_R_RE.search(text)
        if zero_r:
            display = f"0.{zero_r.group(1)}"
            return NormalizedValue(display, text, {"value": display})

    display = f"{value}{MULTIPLIERS.get(multiplier, '')}"
    params = {"value": display}
    tolerance = _TOLERANCE_RE.search(text)
    if tolerance:
        params["tolerance"] = f"{tolerance.group(1)}%"
    power = _POWER_RE.search(text)
    if power:
        params["power"] = f"{power.group(1)}W"
    return NormalizedValue(display, text, params)


def _normalize_capacitor(text: str) -> NormalizedValue:
    match = _CAPACITOR_RE.search(text)
    if not match:
        return NormalizedValue(text, text)
    value, unit, voltage = match.group(1), match.group(2), match.group(3)
    base = f"{value}{MULTIPLIERS.get(unit, unit)}"
    params = {"value": base}
    display = base
    if voltage:
        display += f"/{voltage}V"
        params["voltage"] = f"{voltage}V"
    return NormalizedValue(display, text, params)


def _normalize_inductor(text: str) -> NormalizedValue:
    match = _INDUCTOR_RE.search(text)
    if not match:
        return NormalizedValue(text, text)
    value, unit, current = match.group(1), match.group(2), match.group(3)
    base = f"{value}{MULTIPLIERS.get(unit, unit)}H"
    params = {"value": base}
    display = base
    if current:
        display += f"/{current}A"
        params["current"] = f"{current}A"
    return NormalizedValue(display, text, params)


def normalize_value(text: str, component_type: str) -> NormalizedValue:
    """Normalize a value string for the given component type.

    Only passives are rewritten; anything else is returned trimmed.
    """
    cleaned = text.strip()
    if component_type == "resistor":
        return _normalize_resistor(cleaned)
    if component_type == "capacitor":
        return _normalize_capacitor(cleaned)
    if component_type == "inductor":
        return _normalize_inductor(cleaned)
    return NormalizedValue(cleaned, cleaned)


def extract_display_value(
    name: str, description: Optional[str], prefix: str, category: Optional[str] = None
) -> str:
    """Value shown on the schematic symbol.

    Passives prefer the richer description when it normalizes to something
    shorter; otherwise the part name is used.
    """
    component_type = detect_component_type(prefix, category)
    if description and component_type in ("resistor", "capacitor", "inductor"):
        normalized = normalize_value(description, component_type)
        if normalized.display_value != description:
            return normalized.display_value
    return normalize_value(name, component_type).display_value
