"""Check generated footprints and symbols against JLCPCB reference SVGs."""

from .footprint_compare import (
    compare_footprints,
    extract_footprint_from_kicad,
    extract_footprint_from_svg,
    format_comparison_result,
    validate_footprint,
)
from .symbol_compare import (
    compare_symbols,
    extract_symbol_from_kicad,
    extract_symbol_from_svg,
    format_symbol_comparison_result,
    validate_symbol,
)
from .types import ComparisonOptions, ValidationResult

__all__ = [
    "ComparisonOptions",
    "ValidationResult",
    "compare_footprints",
    "compare_symbols",
    "extract_footprint_from_kicad",
    "extract_footprint_from_svg",
    "extract_symbol_from_kicad",
    "extract_symbol_from_svg",
    "format_comparison_result",
    "format_symbol_comparison_result",
    "validate_footprint",
    "validate_symbol",
]
