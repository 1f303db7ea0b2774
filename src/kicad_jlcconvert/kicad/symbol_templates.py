"""Fixed symbol layouts for two-pin passives.

Template graphics are in KiCad symbol millimetres, centred on the origin,
with pin 1 on top and pin 2 at the bottom.
"""
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

Point = Tuple[float, float]
Placement = Tuple[float, float, float]  # x, y, angle


@dataclass(frozen=True)
class TemplateRect:
    start: Point
    end: Point
    fill: str = "background"


@dataclass(frozen=True)
class TemplatePolyline:
    points: Tuple[Point, ...]
    fill: str = "none"


@dataclass(frozen=True)
class TemplateArc:
    start: Point
    mid: Point
    end: Point


@dataclass(frozen=True)
class SymbolTemplate:
    name: str
    pin_length: float
    pin_spacing: float
    ref_position: Placement
    value_position: Placement
    graphics: List[object] = field(default_factory=list)
    stroke_width: float = 0.254


RESISTOR = SymbolTemplate(
    name="resistor",
    pin_length=2.54,
    pin_spacing=7.62,
    ref_position=(2.54, 0, 90),
    value_position=(-1.778, 0, 90),
    graphics=[TemplateRect((-1.016, 2.54), (1.016, -2.54))],
)

CAPACITOR = SymbolTemplate(
    name="capacitor",
    pin_length=2.54,
    pin_spacing=5.08,
    ref_position=(2.54, 0, 0),
    value_position=(-2.54, 0, 0),
    graphics=[
        TemplatePolyline(((-1.27, 0.635), (1.27, 0.635))),
        TemplatePolyline(((-1.27, -0.635), (1.27, -0.635))),
    ],
)

INDUCTOR = SymbolTemplate(
    name="inductor",
    pin_length=2.54,
    pin_spacing=7.62,
    ref_position=(2.54, 0, 90),
    value_position=(-1.778, 0, 90),
    graphics=[
        TemplateArc((0, 2.54), (0.635, 1.905), (0, 1.27)),
        TemplateArc((0, 1.27), (0.635, 0.635), (0, 0)),
        TemplateArc((0, 0), (0.635, -0.635), (0, -1.27)),
        TemplateArc((0, -1.27), (0.635, -1.905), (0, -2.54)),
    ],
)

_DIODE_GRAPHICS = [
    TemplatePolyline(((-1.27, 1.27), (0, -1.27), (1.27, 1.27), (-1.27, 1.27))),
    TemplatePolyline(((-1.27, -1.27), (1.27, -1.27))),
]

DIODE = SymbolTemplate(
    name="diode",
    pin_length=3.81,
    pin_spacing=10.16,
    ref_position=(2.54, 0, 0),
    value_position=(-2.54, 0, 0),
    graphics=_DIODE_GRAPHICS,
)

LED = SymbolTemplate(
    name="led",
    pin_length=3.81,
    pin_spacing=10.16,
    ref_position=(2.54, 0, 0),
    value_position=(-2.54, 0, 0),
    graphics=_DIODE_GRAPHICS,
)

_TEMPLATES = {
    "R": RESISTOR,
    "C": CAPACITOR,
    "L": INDUCTOR,
    "D": DIODE,
    "LED": LED,
}


def get_symbol_template(prefix: Optional[str]) -> Optional[SymbolTemplate]:
    """Template for a reference prefix such as ``R`` or ``LED?``, or None."""
    clean = re.sub(r"[^A-Za-z0-9]", "", prefix or "").upper()
    return _TEMPLATES.get(clean)


def has_fixed_template(prefix: Optional[str]) -> bool:
    return get_symbol_template(prefix) is not None
