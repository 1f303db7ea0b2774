"""KiCad file format version stamps.

Output targets KiCad 9 by default.  KiCad 8 stamps are kept so libraries can
be written for an older install.
"""

KICAD_V8 = 8
KICAD_V9 = 9
DEFAULT_KICAD_VERSION = KICAD_V9
SUPPORTED_VERSIONS = (KICAD_V8, KICAD_V9)

GENERATOR = "kicad_jlcconvert"

_SYMBOL_FORMAT_VERSIONS = {
    KICAD_V8: "20231120",
    KICAD_V9: "20241209",
}

_FOOTPRINT_FORMAT_VERSIONS = {
    KICAD_V8: "20240108",
    KICAD_V9: "20241209",
}

_GENERATOR_VERSIONS = {
    KICAD_V8: "8.0",
    KICAD_V9: "9.0",
}


def validate_kicad_version(version: int) -> int:
    """Validate and return a KiCad major version number.

    Raises ValueError if the version is not supported.
    """
    if version not in SUPPORTED_VERSIONS:
        raise ValueError(f"Unsupported KiCad version: {version}. Supported: {SUPPORTED_VERSIONS}")
    return version


def symbol_format_version(kicad_version: int = DEFAULT_KICAD_VERSION) -> str:
    """Return the symbol library format version string for a KiCad version."""
    return _SYMBOL_FORMAT_VERSIONS[validate_kicad_version(kicad_version)]


def footprint_format_version(kicad_version: int = DEFAULT_KICAD_VERSION) -> str:
    """Return the footprint format version string for a KiCad version."""
    return _FOOTPRINT_FORMAT_VERSIONS[validate_kicad_version(kicad_version)]


def generator_version(kicad_version: int = DEFAULT_KICAD_VERSION) -> str:
    """Value of the (generator_version ...) field."""
    return _GENERATOR_VERSIONS[validate_kicad_version(kicad_version)]


def has_embedded_fonts(kicad_version: int = DEFAULT_KICAD_VERSION) -> bool:
    """Whether symbols and footprints carry (embedded_fonts no)."""
    return kicad_version >= KICAD_V9
