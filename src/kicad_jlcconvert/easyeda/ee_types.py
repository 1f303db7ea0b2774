"""Dataclass types for parsed EasyEDA shape records.

Every EasyEDA shape kind has its own record type.  Coordinates stay in
EasyEDA 10-mil units and are only converted to millimetres by the KiCad
writers (see ``kicad.coords``).
"""
from dataclasses import dataclass, field
from typing import List, Optional, Union

# --- Symbol shapes ---


@dataclass
class EEPin:
    number: str
    name: str
    electrical_type: str  # "0".."9" EasyEDA pin type code
    x: float
    y: float
    rotation: float = 0.0
    has_dot: bool = False  # inverted bubble
    has_clock: bool = False
    pin_length: float = 100.0


@dataclass
class EESymRect:
    x: float
    y: float
    width: float
    height: float
    rx: float = 0.0
    ry: float = 0.0
    stroke_color: str = ""
    stroke_width: float = 1.0
    fill_color: str = "none"


@dataclass
class EESymCircle:
    cx: float
    cy: float
    radius: float
    stroke_color: str = ""
    stroke_width: float = 1.0
    fill_color: str = "none"


@dataclass
class EESymEllipse:
    cx: float
    cy: float
    rx: float
    ry: float
    stroke_color: str = ""
    stroke_width: float = 1.0
    fill_color: str = "none"


@dataclass
class EESymArc:
    path: str  # "M x1 y1 A rx ry phi large sweep x2 y2"
    stroke_color: str = ""
    stroke_width: float = 1.0
    fill_color: str = "none"


@dataclass
class EESymPolyline:
    points: str  # "x1 y1 x2 y2 ..."
    stroke_color: str = ""
    stroke_width: float = 1.0
    fill_color: str = "none"


@dataclass
class EESymPolygon:
    points: str
    stroke_color: str = ""
    stroke_width: float = 1.0
    fill_color: str = "none"


@dataclass
class EESymPath:
    path: str  # M/L/Z commands
    stroke_color: str = ""
    stroke_width: float = 1.0
    fill_color: str = "none"


@dataclass
class EESymText:
    x: float
    y: float
    text: str
    rotation: float = 0.0
    font_size: float = 0.0
    text_type: str = ""
    is_pin_part: bool = False


SymbolShape = Union[
    EEPin, EESymRect, EESymCircle, EESymEllipse, EESymArc,
    EESymPolyline, EESymPolygon, EESymPath, EESymText,
]


@dataclass
class EESymbol:
    pins: List[EEPin] = field(default_factory=list)
    rectangles: List[EESymRect] = field(default_factory=list)
    circles: List[EESymCircle] = field(default_factory=list)
    ellipses: List[EESymEllipse] = field(default_factory=list)
    arcs: List[EESymArc] = field(default_factory=list)
    polylines: List[EESymPolyline] = field(default_factory=list)
    polygons: List[EESymPolygon] = field(default_factory=list)
    paths: List[EESymPath] = field(default_factory=list)
    texts: List[EESymText] = field(default_factory=list)
    origin_x: float = 0.0
    origin_y: float = 0.0

    def has_graphics(self) -> bool:
        """Whether any drawable body graphics were parsed."""
        return bool(
            self.rectangles or self.circles or self.ellipses or self.arcs
            or self.polylines or self.polygons or self.paths
        )


# --- Footprint shapes ---


@dataclass
class EEPad:
    shape: str  # "RECT", "OVAL", "ELLIPSE", "POLYGON"
    cx: float
    cy: float
    width: float
    height: float
    layer_id: int = 1  # 1=F.Cu, 2=B.Cu, 11=all copper
    number: str = ""
    hole_radius: float = 0.0  # 0 for SMD
    points: str = ""  # polygon outline "x1 y1 x2 y2 ..."
    rotation: float = 0.0
    net: str = ""
    id: str = ""
    hole_length: float = 0.0  # slot length, 0 for round holes
    hole_point: str = ""
    is_plated: bool = False
    is_locked: bool = False


@dataclass
class EETrack:
    stroke_width: float
    layer_id: int
    points: str
    net: str = ""
    id: str = ""


@dataclass
class EEHole:
    cx: float
    cy: float
    radius: float
    id: str = ""


@dataclass
class EECircle:
    cx: float
    cy: float
    radius: float
    stroke_width: float = 0.0
    layer_id: int = 1
    id: str = ""


@dataclass
class EEArc:
    stroke_width: float
    layer_id: int
    path: str
    net: str = ""
    helper_dots: str = ""
    id: str = ""


@dataclass
class EERect:
    x: float
    y: float
    width: float
    height: float
    stroke_width: float = 0.0
    layer_id: int = 1
    id: str = ""


@dataclass
class EEVia:
    cx: float
    cy: float
    diameter: float
    radius: float  # drill radius
    net: str = ""
    id: str = ""


@dataclass
class EEText:
    text_type: str  # "N" name, "P" prefix, "L"/"R" justified free text
    cx: float
    cy: float
    text: str
    stroke_width: float = 0.0
    rotation: float = 0.0
    mirror: str = ""
    layer_id: int = 1
    font_size: float = 0.0
    text_path: str = ""
    is_displayed: bool = True
    id: str = ""


@dataclass
class EESolidRegion:
    layer_id: int
    path: str
    fill_type: str = "solid"
    id: str = ""


@dataclass
class EE3DModel:
    uuid: str
    name: str = "3D Model"


FootprintShape = Union[
    EEPad, EETrack, EEHole, EECircle, EEArc, EERect, EEVia, EEText,
    EESolidRegion, EE3DModel,
]


@dataclass
class EEFootprint:
    name: str = "Unknown"
    type: str = "smd"  # "smd" or "tht"
    pads: List[EEPad] = field(default_factory=list)
    tracks: List[EETrack] = field(default_factory=list)
    holes: List[EEHole] = field(default_factory=list)
    circles: List[EECircle] = field(default_factory=list)
    arcs: List[EEArc] = field(default_factory=list)
    rects: List[EERect] = field(default_factory=list)
    vias: List[EEVia] = field(default_factory=list)
    texts: List[EEText] = field(default_factory=list)
    regions: List[EESolidRegion] = field(default_factory=list)
    model: Optional[EE3DModel] = None
    origin_x: float = 0.0
    origin_y: float = 0.0
