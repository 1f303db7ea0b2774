"""EasyEDA to KiCad coordinate transforms.

EasyEDA stores geometry in 10-mil units with Y growing downward.  KiCad
footprints use millimetres with Y growing downward; KiCad symbols use
millimetres with Y growing upward.  All unit and axis conversions go
through this module.
"""
from typing import Tuple

EE_TO_MM = 0.254

SYMBOL_PRECISION = 3
FOOTPRINT_PRECISION = 4


def to_millimeters(value: float, precision: int = FOOTPRINT_PRECISION) -> float:
    """Scale a length from EasyEDA units to millimetres."""
    return round(value * EE_TO_MM, precision)


def flip_y_for_symbol(x: float, y: float, origin_x: float = 0.0, origin_y: float = 0.0) -> Tuple[float, float]:
    """Convert a symbol point: origin-relative, scaled, Y inverted."""
    return (
        round((x - origin_x) * EE_TO_MM, SYMBOL_PRECISION),
        round(-(y - origin_y) * EE_TO_MM, SYMBOL_PRECISION),
    )


def flip_none_for_footprint(
    x: float, y: float, origin_x: float = 0.0, origin_y: float = 0.0
) -> Tuple[float, float]:
    """Convert a footprint point: origin-relative and scaled, Y kept."""
    return (
        round((x - origin_x) * EE_TO_MM, FOOTPRINT_PRECISION),
        round((y - origin_y) * EE_TO_MM, FOOTPRINT_PRECISION),
    )
