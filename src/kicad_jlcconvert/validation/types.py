"""Records shared by the footprint and symbol comparators.

Positions and sizes are millimetres, centred on the part's origin.
"""
from dataclasses import asdict, dataclass, field
from typing import List, Optional

PAD_SHAPES = ("rect", "circle", "oval", "polygon", "roundrect", "custom")

PIN_ELECTRICAL_TYPES = (
    "input",
    "output",
    "bidirectional",
    "tri_state",
    "passive",
    "free",
    "unspecified",
    "power_in",
    "power_out",
    "open_collector",
    "open_emitter",
    "no_connect",
)


@dataclass
class Bounds:
    min_x: float = 0.0
    max_x: float = 0.0
    min_y: float = 0.0
    max_y: float = 0.0

    @classmethod
    def from_points(cls, points) -> "Bounds":
        points = list(points)
        if not points:
            return cls()
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return cls(min(xs), max(xs), min(ys), max(ys))


@dataclass
class PadInfo:
    number: str
    x: float
    y: float
    width: float
    height: float
    shape: str = "rect"
    layer_id: int = 1  # 1=F.Cu, 2=B.Cu, 11=all copper
    has_hole: bool = False
    hole_radius: Optional[float] = None
    rotation: float = 0.0


@dataclass
class ViaInfo:
    x: float
    y: float
    outer_diameter: float
    hole_diameter: float


@dataclass
class HoleInfo:
    x: float
    y: float
    diameter: float
    plated: bool = False


@dataclass
class FootprintData:
    pads: List[PadInfo] = field(default_factory=list)
    vias: List[ViaInfo] = field(default_factory=list)
    holes: List[HoleInfo] = field(default_factory=list)
    bounds: Bounds = field(default_factory=Bounds)


@dataclass
class PinInfo:
    number: str
    name: str
    x: float
    y: float
    rotation: float = 0.0
    electrical: str = "unspecified"


@dataclass
class SymbolData:
    pins: List[PinInfo] = field(default_factory=list)
    bounds: Bounds = field(default_factory=Bounds)


@dataclass
class PadDiff:
    number: str
    field: str  # missing, extra, position, size, shape, hole
    severity: str  # error, warning, info
    message: str
    expected: str = ""
    actual: str = ""


@dataclass
class PinDiff:
    number: str
    field: str  # missing, extra, position, name, rotation, electrical
    severity: str
    message: str
    expected: str = ""
    actual: str = ""


@dataclass
class ComparisonOptions:
    position_tolerance: float = 0.05
    size_tolerance: float = 0.02
    hole_tolerance: float = 0.02
    size_errors: bool = False
    ignore_extra_pads: bool = False
    ignore_pin_names: bool = False


@dataclass
class FootprintComparisonResult:
    passed: bool
    pad_count_match: bool
    via_count_match: bool
    hole_count_match: bool
    reference_pad_count: int
    generated_pad_count: int
    reference_via_count: int
    generated_via_count: int
    reference_hole_count: int = 0
    generated_hole_count: int = 0
    diffs: List[PadDiff] = field(default_factory=list)

    @property
    def errors(self) -> List[PadDiff]:
        return [d for d in self.diffs if d.severity == "error"]

    @property
    def warnings(self) -> List[PadDiff]:
        return [d for d in self.diffs if d.severity == "warning"]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SymbolComparisonResult:
    passed: bool
    pin_count_match: bool
    reference_pin_count: int
    generated_pin_count: int
    diffs: List[PinDiff] = field(default_factory=list)

    @property
    def errors(self) -> List[PinDiff]:
        return [d for d in self.diffs if d.severity == "error"]

    @property
    def warnings(self) -> List[PinDiff]:
        return [d for d in self.diffs if d.severity == "warning"]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ValidationResult:
    """Outcome of validating one generated file against a reference."""

    kind: str  # "footprint" or "symbol"
    passed: bool
    error: str = ""
    footprint: Optional[FootprintComparisonResult] = None
    symbol: Optional[SymbolComparisonResult] = None

    def to_dict(self) -> dict:
        return asdict(self)
