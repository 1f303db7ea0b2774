"""Map components onto KiCad's built-in footprint libraries.

Strict mode only maps two-pad unpolarised passives (R, C, L in standard
SMD sizes).  EasyEDA pad numbering does not always agree with KiCad's
built-ins for polarised or multi-pin parts, and a silent pin swap is worse
than a generated footprint.  Non-strict mode adds diode, LED and common IC
package families.
"""
import re
from dataclasses import dataclass
from typing import Dict, Optional

from .category_router import get_library_category


@dataclass(frozen=True)
class FootprintMapping:
    library: str
    footprint: str


# Imperial size code -> metric size code
SMD_SIZES = {
    "0201": "0603",
    "0402": "1005",
    "0603": "1608",
    "0805": "2012",
    "1206": "3216",
    "1210": "3225",
    "1812": "4532",
    "2010": "5025",
    "2512": "6332",
}

PASSIVE_LIBRARIES = {
    "R": "Resistor_SMD",
    "C": "Capacitor_SMD",
    "L": "Inductor_SMD",
}

LED_LIBRARY = "LED_SMD"
DIODE_LIBRARY = "Diode_SMD"

_CATEGORY_PREFIXES = {
    "Resistors": "R",
    "Capacitors": "C",
    "Inductors": "L",
    "Diodes": "D",
}

_SOD_FOOTPRINTS = {
    "SOD-123": "D_SOD-123",
    "SOD-123F": "D_SOD-123F",
    "SOD-323": "D_SOD-323",
    "SOD-523": "D_SOD-523",
    "SOD-923": "D_SOD-923",
    "SOD-128": "D_SOD-128",
    "SOD-80": "D_SOD-80",
}

_DIODE_PACKAGE_FOOTPRINTS = {
    "SMA": "D_SMA",
    "SMB": "D_SMB",
    "SMC": "D_SMC",
    "MELF": "D_MELF",
    "MINIMELF": "D_MiniMELF",
    "MICROMELF": "D_MicroMELF",
}

_SOIC_FOOTPRINTS = {
    "SOIC-8": "SOIC-8_3.9x4.9mm_P1.27mm",
    "SOP-8": "SOIC-8_3.9x4.9mm_P1.27mm",
    "SOIC-14": "SOIC-14_3.9x8.7mm_P1.27mm",
    "SOIC-16": "SOIC-16_3.9x9.9mm_P1.27mm",
    "SOIC-16W": "SOIC-16W_7.5x10.3mm_P1.27mm",
    "SOIC-20": "SOIC-20W_7.5x12.8mm_P1.27mm",
    "SOIC-24": "SOIC-24W_7.5x15.4mm_P1.27mm",
    "SOIC-28": "SOIC-28W_7.5x17.9mm_P1.27mm",
}

_TSSOP_FOOTPRINTS = {
    "TSSOP-8": "TSSOP-8_3x3mm_P0.65mm",
    "TSSOP-14": "TSSOP-14_4.4x5mm_P0.65mm",
    "TSSOP-16": "TSSOP-16_4.4x5mm_P0.65mm",
    "TSSOP-20": "TSSOP-20_4.4x6.5mm_P0.65mm",
    "TSSOP-24": "TSSOP-24_4.4x7.8mm_P0.65mm",
    "TSSOP-28": "TSSOP-28_4.4x9.7mm_P0.65mm",
}

_SOT_FOOTPRINTS = {
    "SOT-23": "SOT-23",
    "SOT-23-3": "SOT-23",
    "SOT-23-5": "SOT-23-5",
    "SOT-23-6": "SOT-23-6",
    "SOT-89": "SOT-89-3",
    "SOT-223": "SOT-223-3_TabPin2",
}

_EXPECTED_PAD_COUNTS = {
    "Resistor_SMD": 2,
    "Capacitor_SMD": 2,
    "Inductor_SMD": 2,
}

_SIZE_RE = re.compile(r"(0201|0402|0603|0805|1206|1210|1812|2010|2512)(?![0-9])")


def normalize_package_name(name: str) -> str:
    """Uppercase, unify separators to '-', drop parenthesised notes."""
    name = re.sub(r"[_\s-]+", "-", name.upper())
    name = re.sub(r"\(.*?\)", "", name)
    return name.strip()


def extract_smd_size(package: str) -> Optional[str]:
    """Find a standard imperial SMD size code in a package name."""
    normalized = normalize_package_name(package)
    for size in SMD_SIZES:
        if normalized in (size, f"SMD{size}"):
            return size
    match = _SIZE_RE.search(normalized)
    return match.group(1) if match else None


def _clean_prefix(prefix: str) -> str:
    return re.sub(r"[^A-Za-z0-9]", "", prefix or "").upper()


def _size_footprint(prefix: str, size: str) -> str:
    # KiCad naming: R_0603_1608Metric
    return f"{prefix}_{size}_{SMD_SIZES[size]}Metric"


def _longest_first(table: Dict[str, str]):
    # SOT-23-5 must be tried before SOT-23
    return sorted(table.items(), key=lambda item: len(item[0]), reverse=True)


def _match_family(normalized: str) -> Optional[FootprintMapping]:
    for pattern, footprint in _longest_first(_SOD_FOOTPRINTS):
        if pattern in normalized or normalized.startswith(pattern.replace("-", "")):
            return FootprintMapping(DIODE_LIBRARY, footprint)

    for pattern, footprint in _longest_first(_DIODE_PACKAGE_FOOTPRINTS):
        if normalized == pattern or normalized.startswith(pattern + "-"):
            return FootprintMapping(DIODE_LIBRARY, footprint)

    for pattern, footprint in _longest_first(_SOIC_FOOTPRINTS):
        if pattern in normalized or normalized.startswith(pattern.replace("-", "")):
            return FootprintMapping("Package_SO", footprint)

    for pattern, footprint in _longest_first(_TSSOP_FOOTPRINTS):
        if pattern in normalized or normalized.startswith(pattern.replace("-", "")):
            return FootprintMapping("Package_SO", footprint)

    for pattern, footprint in _longest_first(_SOT_FOOTPRINTS):
        if pattern in normalized or normalized == pattern.replace("-", ""):
            return FootprintMapping("Package_TO_SOT_SMD", footprint)

    return None


def map_to_kicad_footprint(
    package: str,
    prefix: str,
    category: Optional[str] = None,
    description: Optional[str] = None,
    strict: bool = True,
) -> Optional[FootprintMapping]:
    """Return a built-in footprint for the component, or None to generate one.

    In strict mode *category* and *description* are ignored and only R, C
    and L prefixes map.
    """
    clean = _clean_prefix(prefix)
    size = extract_smd_size(package or "")

    if strict:
        if size and clean in PASSIVE_LIBRARIES:
            return FootprintMapping(PASSIVE_LIBRARIES[clean], _size_footprint(clean, size))
        return None

    known = clean in PASSIVE_LIBRARIES or clean in ("D", "LED")
    if not known and (category or description):
        detected = get_library_category(clean, category, description)
        clean = _CATEGORY_PREFIXES.get(detected, clean)

    if size:
        if clean in PASSIVE_LIBRARIES:
            return FootprintMapping(PASSIVE_LIBRARIES[clean], _size_footprint(clean, size))
        if clean == "LED":
            return FootprintMapping(LED_LIBRARY, _size_footprint("LED", size))
        if clean == "D":
            return FootprintMapping(DIODE_LIBRARY, _size_footprint("D", size))

    return _match_family(normalize_package_name(package or ""))


def get_expected_pad_count(mapping: FootprintMapping) -> Optional[int]:
    """Pad count of a built-in footprint, when known."""
    return _EXPECTED_PAD_COUNTS.get(mapping.library)


def get_kicad_footprint_ref(mapping: FootprintMapping) -> str:
    return f"{mapping.library}:{mapping.footprint}"


def is_standard_passive(package: str, prefix: str) -> bool:
    return extract_smd_size(package) is not None and _clean_prefix(prefix) in PASSIVE_LIBRARIES
