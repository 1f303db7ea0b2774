"""Generate KiCad .kicad_mod footprints from EasyEDA components."""

import logging
import re
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from ..easyeda.component import ComponentData
from ..easyeda.ee_types import EEFootprint, EEPad
from ..easyeda.parser import parse_points
from ..easyeda.svg_arc import arc_midpoint, arc_path_to_center, parse_svg_arc_path
from ._format import escape_sexpr as _escape
from ._format import fmt_float as _fmt
from ._format import sanitize_footprint_name
from .coords import FOOTPRINT_PRECISION, flip_none_for_footprint, to_millimeters
from .footprint_mapper import get_expected_pad_count, get_kicad_footprint_ref, map_to_kicad_footprint
from .version import DEFAULT_KICAD_VERSION, GENERATOR, footprint_format_version, generator_version, has_embedded_fonts

logger = logging.getLogger(__name__)

# EasyEDA layer id -> KiCad layer, for graphics
KI_LAYERS = {
    1: "F.Cu",
    2: "B.Cu",
    3: "F.SilkS",
    4: "B.SilkS",
    5: "F.Paste",
    6: "B.Paste",
    7: "F.Mask",
    8: "B.Mask",
    10: "Edge.Cuts",
    11: "Edge.Cuts",
    12: "Cmts.User",
    13: "F.Fab",
    14: "B.Fab",
    15: "Dwgs.User",
    101: "F.Fab",
}

_SMD_PAD_LAYERS = {
    1: ("F.Cu", "F.Paste", "F.Mask"),
    2: ("B.Cu", "B.Paste", "B.Mask"),
    11: ("*.Cu", "*.Paste", "*.Mask"),
}
_THT_PAD_LAYERS = ("*.Cu", "*.Mask")

_PAD_SHAPES = {
    "ELLIPSE": "circle",
    "RECT": "rect",
    "OVAL": "oval",
}

# Internal EasyEDA layers (body outline, mask helpers) never exported as regions
_HIDDEN_REGION_LAYERS = (99, 100, 101)

TEXT_OFFSET = 1.75
COURTYARD_MARGIN = 0.25
POLYGON_DRILL_RATIO = 0.6

_PATH_TOKEN_RE = re.compile(r"[MLHVCSQTAZmlhvcsqtaz]|[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
# Numbers consumed per path command, the last two being the endpoint
_PATH_ARGS = {"M": 2, "L": 2, "H": 1, "V": 1, "C": 6, "S": 4, "Q": 4, "T": 2, "A": 7}


@dataclass
class FootprintResult:
    type: str  # "reference" or "generated"
    name: str
    reference: str = ""
    content: str = ""


@dataclass
class Bounds:
    min_x: float
    max_x: float
    min_y: float
    max_y: float


def get_layer(layer_id: int) -> str:
    return KI_LAYERS.get(layer_id, "F.SilkS")


def get_pad_layers(layer_id: int, is_smd: bool) -> Tuple[str, ...]:
    if is_smd:
        return _SMD_PAD_LAYERS.get(layer_id, _SMD_PAD_LAYERS[1])
    return _THT_PAD_LAYERS


def get_footprint_name(component: ComponentData) -> str:
    fp = component.footprint
    name = fp.name if fp.name and fp.name != "Unknown" else component.info.package
    return sanitize_footprint_name(name or component.info.lcsc_id or "Unknown")


def pad_center(pads: List[EEPad]) -> Tuple[float, float]:
    """Centre of the pads' bounding box, pad sizes included, in EasyEDA units."""
    if not pads:
        return 0.0, 0.0
    min_x = min(p.cx - p.width / 2 for p in pads)
    max_x = max(p.cx + p.width / 2 for p in pads)
    min_y = min(p.cy - p.height / 2 for p in pads)
    max_y = max(p.cy + p.height / 2 for p in pads)
    return (min_x + max_x) / 2, (min_y + max_y) / 2


def _layers_str(layers: Tuple[str, ...]) -> str:
    return " ".join(f'"{layer}"' for layer in layers)


def _stroke(width: float) -> str:
    return f"(stroke (width {_fmt(width)}) (type solid))"


def _line(start: Tuple[float, float], end: Tuple[float, float], width: float, layer: str) -> str:
    return (
        f"  (fp_line (start {_fmt(start[0])} {_fmt(start[1])}) (end {_fmt(end[0])} {_fmt(end[1])})"
        f' {_stroke(width)} (layer "{layer}"))'
    )


def calculate_bounds(footprint: EEFootprint, origin: Tuple[float, float]) -> Bounds:
    """Extent of copper, holes, tracks and circles in millimetres."""
    ox, oy = origin
    xs: List[float] = []
    ys: List[float] = []

    for pad in footprint.pads:
        x, y = flip_none_for_footprint(pad.cx, pad.cy, ox, oy)
        margin = max(to_millimeters(pad.width) / 2, to_millimeters(pad.height) / 2)
        xs.extend((x - margin, x + margin))
        ys.extend((y - margin, y + margin))
    for hole in footprint.holes:
        x, y = flip_none_for_footprint(hole.cx, hole.cy, ox, oy)
        r = to_millimeters(hole.radius)
        xs.extend((x - r, x + r))
        ys.extend((y - r, y + r))
    for track in footprint.tracks:
        for px, py in parse_points(track.points):
            x, y = flip_none_for_footprint(px, py, ox, oy)
            xs.append(x)
            ys.append(y)
    for circle in footprint.circles:
        x, y = flip_none_for_footprint(circle.cx, circle.cy, ox, oy)
        r = to_millimeters(circle.radius)
        xs.extend((x - r, x + r))
        ys.extend((y - r, y + r))

    if not xs:
        return Bounds(-1.0, 1.0, -1.0, 1.0)
    return Bounds(min(xs), max(xs), min(ys), max(ys))


# --- Pads ---


def _drill(hole_radius: float, hole_length: float) -> str:
    diameter = to_millimeters(hole_radius * 2)
    if hole_length > 0:
        return f"(drill oval {_fmt(diameter)} {_fmt(to_millimeters(hole_length))})"
    return f"(drill {_fmt(diameter)})"


def _pad(pad: EEPad, origin: Tuple[float, float]) -> List[str]:
    if pad.shape == "POLYGON" and pad.points:
        points = parse_points(pad.points)
        if len(points) >= 3:
            return _polygon_pad(pad, points, origin)
        pad = replace(pad, shape="RECT", points="")

    x, y = flip_none_for_footprint(pad.cx, pad.cy, *origin)
    is_smd = pad.hole_radius == 0
    shape = _PAD_SHAPES.get(pad.shape, "rect")
    if is_smd and shape == "rect":
        shape = "roundrect"

    at = f"(at {_fmt(x)} {_fmt(y)}"
    if pad.rotation != 0:
        at += f" {_fmt(pad.rotation)}"
    at += ")"

    parts = [
        f'(pad "{_escape(pad.number)}" {"smd" if is_smd else "thru_hole"} {shape} {at}',
        f"(size {_fmt(to_millimeters(pad.width))} {_fmt(to_millimeters(pad.height))})",
    ]
    if not is_smd:
        parts.append(_drill(pad.hole_radius, pad.hole_length))
    parts.append(f"(layers {_layers_str(get_pad_layers(pad.layer_id, is_smd))})")
    if shape == "roundrect":
        parts.append("(roundrect_rratio 0.25)")
    return ["  " + " ".join(parts) + ")"]


def polygon_drill_radius(points: List[Tuple[float, float]]) -> float:
    """Drill radius for a plated polygon pad with no hole: 60% of its smaller extent."""
    width = max(p[0] for p in points) - min(p[0] for p in points)
    height = max(p[1] for p in points) - min(p[1] for p in points)
    return min(width, height) * POLYGON_DRILL_RATIO / 2


def _polygon_pad(pad: EEPad, points: List[Tuple[float, float]], origin: Tuple[float, float]) -> List[str]:
    x, y = flip_none_for_footprint(pad.cx, pad.cy, *origin)
    hole_radius = pad.hole_radius
    if hole_radius == 0 and pad.is_plated:
        hole_radius = polygon_drill_radius(points)
    is_smd = hole_radius == 0

    # Outline points are already rotated, so the pad itself carries no rotation
    header = f'  (pad "{_escape(pad.number)}" {"smd" if is_smd else "thru_hole"} custom (at {_fmt(x)} {_fmt(y)}) (size 0.01 0.01)'
    if not is_smd:
        header += f" {_drill(hole_radius, pad.hole_length)}"
    header += f" (layers {_layers_str(get_pad_layers(pad.layer_id, is_smd))})"

    pts = " ".join(
        f"(xy {_fmt(to_millimeters(px - pad.cx, 2))} {_fmt(to_millimeters(py - pad.cy, 2))})" for px, py in points
    )
    return [
        header,
        "    (primitives",
        f"      (gr_poly (pts {pts}) (width 0.1))",
        "    )",
        "  )",
    ]


def _hole(hole, origin) -> str:
    x, y = flip_none_for_footprint(hole.cx, hole.cy, *origin)
    d = _fmt(to_millimeters(hole.radius * 2))
    return f'  (pad "" np_thru_hole circle (at {_fmt(x)} {_fmt(y)}) (size {d} {d}) (drill {d}) (layers "*.Cu" "*.Mask"))'


def _via(via, origin) -> str:
    x, y = flip_none_for_footprint(via.cx, via.cy, *origin)
    size = _fmt(to_millimeters(via.diameter))
    drill = _fmt(to_millimeters(via.radius * 2))
    return (
        f'  (pad "" thru_hole circle (at {_fmt(x)} {_fmt(y)}) (size {size} {size}) (drill {drill})'
        ' (layers "*.Cu" "*.Mask"))'
    )


# --- Graphics ---


def _tracks(footprint: EEFootprint, origin) -> List[str]:
    lines = []
    for track in footprint.tracks:
        layer = get_layer(track.layer_id)
        width = to_millimeters(track.stroke_width, 2)
        points = [flip_none_for_footprint(px, py, *origin) for px, py in parse_points(track.points)]
        for start, end in zip(points, points[1:]):
            lines.append(_line(start, end, width, layer))
    return lines


def _circles(footprint: EEFootprint, origin) -> List[str]:
    lines = []
    for circle in footprint.circles:
        cx, cy = flip_none_for_footprint(circle.cx, circle.cy, *origin)
        end_x = round(cx + to_millimeters(circle.radius), FOOTPRINT_PRECISION)
        lines.append(
            f"  (fp_circle (center {_fmt(cx)} {_fmt(cy)}) (end {_fmt(end_x)} {_fmt(cy)})"
            f' {_stroke(to_millimeters(circle.stroke_width, 2))} (fill none) (layer "{get_layer(circle.layer_id)}"))'
        )
    return lines


def _arcs(footprint: EEFootprint, origin) -> List[str]:
    lines = []
    for arc in footprint.arcs:
        path = parse_svg_arc_path(arc.path)
        if path is None:
            continue
        params = arc_path_to_center(path)
        if params is None:
            continue
        start = flip_none_for_footprint(path.x1, path.y1, *origin)
        end = flip_none_for_footprint(path.x2, path.y2, *origin)
        mid = flip_none_for_footprint(*arc_midpoint(params, path.phi), *origin)
        lines.append(
            f"  (fp_arc (start {_fmt(start[0])} {_fmt(start[1])}) (mid {_fmt(mid[0])} {_fmt(mid[1])})"
            f" (end {_fmt(end[0])} {_fmt(end[1])})"
            f' {_stroke(to_millimeters(arc.stroke_width, 2))} (layer "{get_layer(arc.layer_id)}"))'
        )
    return lines


def _rects(footprint: EEFootprint, origin) -> List[str]:
    lines = []
    for rect in footprint.rects:
        layer = get_layer(rect.layer_id)
        width = to_millimeters(rect.stroke_width, 2)
        x1, y1 = flip_none_for_footprint(rect.x, rect.y, *origin)
        x2, y2 = flip_none_for_footprint(rect.x + rect.width, rect.y + rect.height, *origin)
        corners = [(x1, y1), (x2, y1), (x2, y2), (x1, y2)]
        for i, start in enumerate(corners):
            lines.append(_line(start, corners[(i + 1) % 4], width, layer))
    return lines


def _texts(footprint: EEFootprint, origin) -> List[str]:
    lines = []
    for text in footprint.texts:
        # Name and prefix labels become the Value and Reference properties
        if not text.is_displayed or text.text_type in ("N", "P"):
            continue
        x, y = flip_none_for_footprint(text.cx, text.cy, *origin)
        size = to_millimeters(text.font_size, 2)
        thickness = round(size * 0.15, 2)
        at = f"(at {_fmt(x)} {_fmt(y)}"
        if text.rotation != 0:
            at += f" {_fmt(text.rotation)}"
        at += ")"
        justify = {"L": " (justify left)", "R": " (justify right)"}.get(text.text_type, "")
        lines.append(f'  (fp_text user "{_escape(text.text)}" {at} (layer "{get_layer(text.layer_id)}")')
        lines.append(f"    (effects (font (size {_fmt(size)} {_fmt(size)}) (thickness {_fmt(thickness)})){justify})")
        lines.append("  )")
    return lines


def path_to_points(path: str) -> List[Tuple[float, float]]:
    """Walk an SVG path keeping only segment endpoints.

    Lowercase commands are relative to the current point.  Curves and arcs
    contribute their endpoint only.
    """
    tokens = _PATH_TOKEN_RE.findall(path)
    points: List[Tuple[float, float]] = []
    cur_x = cur_y = 0.0
    start: Optional[Tuple[float, float]] = None
    cmd = ""
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token.isalpha():
            cmd = token
            i += 1
            if cmd in "Zz":
                if start is not None:
                    cur_x, cur_y = start
                continue
        if not cmd or cmd in "Zz":
            i += 1
            continue

        upper = cmd.upper()
        count = _PATH_ARGS[upper]
        args = tokens[i:i + count]
        if len(args) < count:
            break
        if any(a.isalpha() for a in args):
            cmd = ""
            continue
        values = [float(a) for a in args]
        i += count
        relative = cmd.islower()

        if upper == "H":
            cur_x = values[0] + (cur_x if relative else 0)
        elif upper == "V":
            cur_y = values[0] + (cur_y if relative else 0)
        else:
            ex, ey = values[-2], values[-1]
            if relative:
                ex, ey = ex + cur_x, ey + cur_y
            cur_x, cur_y = ex, ey
        points.append((cur_x, cur_y))

        if upper == "M":
            start = (cur_x, cur_y)
            # Further pairs after M are implicit line-tos
            cmd = "l" if relative else "L"
    return points


def _regions(footprint: EEFootprint, origin) -> List[str]:
    lines = []
    for region in footprint.regions:
        if region.layer_id in _HIDDEN_REGION_LAYERS:
            continue
        points = [flip_none_for_footprint(x, y, *origin) for x, y in path_to_points(region.path)]
        if len(points) < 3:
            continue
        pts = " ".join(f"(xy {_fmt(x)} {_fmt(y)})" for x, y in points)
        lines.append(
            f'  (fp_poly (pts {pts}) {_stroke(0)} (fill solid) (layer "{get_layer(region.layer_id)}"))'
        )
    return lines


def _courtyard(bounds: Bounds) -> List[str]:
    x1 = round(bounds.min_x - COURTYARD_MARGIN, 2)
    y1 = round(bounds.min_y - COURTYARD_MARGIN, 2)
    x2 = round(bounds.max_x + COURTYARD_MARGIN, 2)
    y2 = round(bounds.max_y + COURTYARD_MARGIN, 2)
    corners = [(x1, y1), (x2, y1), (x2, y2), (x1, y2)]
    return [_line(start, corners[(i + 1) % 4], 0.05, "F.CrtYd") for i, start in enumerate(corners)]


def _fp_property(lines: List[str], key: str, value: str, at: Tuple[float, float], layer: str, hidden: bool = True):
    hide = " (hide yes)" if hidden else ""
    lines.append(
        f'  (property "{_escape(key)}" "{_escape(value)}" (at {_fmt(at[0])} {_fmt(at[1])} 0) (layer "{layer}"){hide}'
    )
    lines.append("    (effects (font (size 1 1) (thickness 0.15)))")
    lines.append("  )")


def convert_footprint(
    component: ComponentData,
    model_path: str = "",
    kicad_version: int = DEFAULT_KICAD_VERSION,
) -> str:
    """Generate complete .kicad_mod content for the component's footprint.

    The footprint is centred on its pads' bounding box.  *model_path* adds
    a 3D model reference.
    """
    info = component.info
    footprint = component.footprint
    name = get_footprint_name(component)
    origin = pad_center(footprint.pads)
    bounds = calculate_bounds(footprint, origin)

    lines = [f'(footprint "{name}"']
    lines.append(f"  (version {footprint_format_version(kicad_version)})")
    lines.append(f'  (generator "{GENERATOR}")')
    lines.append(f'  (generator_version "{generator_version(kicad_version)}")')
    lines.append('  (layer "F.Cu")')
    lines.append(f'  (descr "{_escape(info.description or name)}")')
    lines.append(f'  (tags "{_escape(info.category or "component")}")')

    _fp_property(lines, "Reference", "REF**", (0, round(bounds.min_y - TEXT_OFFSET, 2)), "F.SilkS", hidden=False)
    value = sanitize_footprint_name(info.name) if info.name else name
    _fp_property(lines, "Value", value, (0, round(bounds.max_y + TEXT_OFFSET, 2)), "F.Fab", hidden=False)
    if info.description:
        _fp_property(lines, "Description", info.description, (0, 0), "F.Fab")
    if info.lcsc_id:
        _fp_property(lines, "LCSC", info.lcsc_id, (0, 0), "F.Fab")
    if info.manufacturer:
        _fp_property(lines, "Manufacturer", info.manufacturer, (0, 0), "F.Fab")
    for key, value in info.attributes.items():
        if value:
            _fp_property(lines, key, value, (0, 0), "F.Fab")

    lines.append(f"  (attr {'through_hole' if footprint.type == 'tht' else 'smd'})")

    for pad in footprint.pads:
        lines.extend(_pad(pad, origin))
    lines.extend(_hole(hole, origin) for hole in footprint.holes)
    lines.extend(_via(via, origin) for via in footprint.vias)
    lines.extend(_tracks(footprint, origin))
    lines.extend(_circles(footprint, origin))
    lines.extend(_arcs(footprint, origin))
    lines.extend(_rects(footprint, origin))
    lines.extend(_texts(footprint, origin))
    lines.extend(_regions(footprint, origin))

    lines.append('  (fp_text user "${REFERENCE}" (at 0 0 0) (layer "F.Fab")')
    lines.append("    (effects (font (size 0.5 0.5) (thickness 0.08)))")
    lines.append("  )")
    lines.extend(_courtyard(bounds))

    if has_embedded_fonts(kicad_version):
        lines.append("  (embedded_fonts no)")

    if model_path:
        lines.append(f'  (model "{_escape(model_path)}"')
        lines.append("    (offset (xyz 0 0 0))")
        lines.append("    (scale (xyz 1 1 1))")
        lines.append("    (rotate (xyz 0 0 0))")
        lines.append("  )")

    lines.append(")")
    return "\n".join(lines) + "\n"


def get_footprint(
    component: ComponentData,
    strict: bool = True,
    model_path: str = "",
    kicad_version: int = DEFAULT_KICAD_VERSION,
) -> FootprintResult:
    """Use a KiCad built-in footprint when safe, otherwise generate one.

    A built-in is only used when its known pad count matches the parsed
    footprint, so resistor arrays and similar parts in a standard package
    size still get a generated footprint.
    """
    info = component.info
    package = component.footprint.name if component.footprint.name != "Unknown" else info.package
    mapping = map_to_kicad_footprint(package, info.prefix, info.category, info.description, strict=strict)

    if mapping:
        expected = get_expected_pad_count(mapping)
        actual = len(component.footprint.pads)
        if expected is not None and expected != actual:
            logger.warning(
                "Pad count mismatch for %s: expected %d, got %d. Generating custom footprint.",
                package,
                expected,
                actual,
            )
        else:
            return FootprintResult(
                type="reference", name=mapping.footprint, reference=get_kicad_footprint_ref(mapping)
            )

    return FootprintResult(
        type="generated",
        name=get_footprint_name(component),
        content=convert_footprint(component, model_path, kicad_version),
    )
