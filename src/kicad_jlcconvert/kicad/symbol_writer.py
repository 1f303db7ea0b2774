"""Generate KiCad .kicad_sym symbol libraries from EasyEDA components.

Three layouts are tried in order: a fixed template for two-pin passives,
the EasyEDA drawing converted shape by shape, and a DIP-style box when the
symbol carries no graphics at all.  Library files are merged by string
surgery so that other symbols in the file are left untouched.
"""
import math
import re
from typing import List, Optional, Tuple

from ..easyeda.component import ComponentData
from ..easyeda.ee_types import EEPin, EESymbol
from ..easyeda.parser import parse_points
from ..easyeda.svg_arc import arc_path_to_center, parse_svg_arc_path
from ._format import escape_sexpr as _escape
from ._format import fmt_float as _fmt
from ._format import sanitize_pin_name, sanitize_symbol_name, sanitize_text
from .category_router import get_library_category
from .coords import SYMBOL_PRECISION, flip_y_for_symbol, to_millimeters
from .symbol_templates import SymbolTemplate, TemplateArc, TemplatePolyline, TemplateRect, get_symbol_template
from .value_normalizer import extract_display_value
from .version import (
    DEFAULT_KICAD_VERSION,
    GENERATOR,
    generator_version,
    has_embedded_fonts,
    symbol_format_version,
)

IC_PIN_LENGTH = 2.54
IC_PIN_SPACING = 2.54
IC_BODY_HALF_WIDTH = 12.7
IC_PIN_FONT_SIZE = 1.0
TEXT_SIZE = 1.27

PIN_TYPES = {
    "0": "unspecified",
    "1": "input",
    "2": "output",
    "3": "bidirectional",
    "4": "power_in",
    "5": "power_out",
    "6": "open_collector",
    "7": "open_emitter",
    "8": "passive",
    "9": "no_connect",
}

_CATEGORY_TEMPLATE_PREFIXES = {
    "Resistors": "R",
    "Capacitors": "C",
    "Inductors": "L",
    "Diodes": "D",
}

_PATH_COMMAND_RE = re.compile(r"([MLZ])\s*([\d.-]+)?[,\s]*([\d.-]+)?", re.IGNORECASE)


class LibraryFormatError(ValueError):
    """Raised when a symbol library file cannot be merged into."""

    pass


def get_symbol_name(component: ComponentData) -> str:
    return sanitize_symbol_name(component.info.name or component.info.lcsc_id)


def pin_electrical_type(code: str) -> str:
    return PIN_TYPES.get(code, "passive")


def pin_graphic_style(pin: EEPin) -> str:
    if pin.has_dot and pin.has_clock:
        return "inverted_clock"
    if pin.has_dot:
        return "inverted"
    if pin.has_clock:
        return "clock"
    return "line"


def _stroke(width: float) -> float:
    return max(to_millimeters(width, SYMBOL_PRECISION), 0.1)


def _xy(point: Tuple[float, float]) -> str:
    return f"(xy {_fmt(point[0])} {_fmt(point[1])})"


def _effects(size: float, hidden: bool = False) -> str:
    hide = " (hide yes)" if hidden else ""
    return f"(effects (font (size {_fmt(size)} {_fmt(size)})){hide})"


def _property(lines: List[str], key: str, value: str, at: Tuple[float, float, float], hidden: bool = True):
    x, y, angle = at
    lines.append(f'    (property "{key}" "{value}" (at {_fmt(x)} {_fmt(y)} {_fmt(angle)})')
    lines.append(f"      {_effects(TEXT_SIZE, hidden)}")
    lines.append("    )")


def _pin_block(
    pin_type: str,
    style: str,
    x: float,
    y: float,
    rotation: float,
    length: float,
    name: str,
    number: str,
    font_size: float,
) -> List[str]:
    return [
        f"      (pin {pin_type} {style} (at {_fmt(x)} {_fmt(y)} {_fmt(rotation)}) (length {_fmt(length)})",
        f'        (name "{name}" {_effects(font_size)})',
        f'        (number "{_escape(number)}" {_effects(font_size)})',
        "      )",
    ]


# --- Template layout ---


def _template_for(component: ComponentData) -> Optional[SymbolTemplate]:
    if len(component.symbol.pins) != 2:
        return None
    info = component.info
    template = get_symbol_template(info.prefix)
    if template is None:
        category = get_library_category(info.prefix, info.category, info.description)
        prefix = _CATEGORY_TEMPLATE_PREFIXES.get(category)
        if prefix:
            template = get_symbol_template(prefix)
    return template


def _template_graphics(template: SymbolTemplate) -> List[str]:
    lines = []
    width = _fmt(template.stroke_width)
    for item in template.graphics:
        if isinstance(item, TemplateRect):
            lines.append(
                f"      (rectangle (start {_fmt(item.start[0])} {_fmt(item.start[1])})"
                f" (end {_fmt(item.end[0])} {_fmt(item.end[1])})"
                f" (stroke (width {width}) (type default)) (fill (type {item.fill})))"
            )
        elif isinstance(item, TemplatePolyline):
            pts = " ".join(_xy(p) for p in item.points)
            lines.append(
                f"      (polyline (pts {pts})"
                f" (stroke (width {width}) (type default)) (fill (type {item.fill})))"
            )
        elif isinstance(item, TemplateArc):
            lines.append(
                f"      (arc (start {_fmt(item.start[0])} {_fmt(item.start[1])})"
                f" (mid {_fmt(item.mid[0])} {_fmt(item.mid[1])})"
                f" (end {_fmt(item.end[0])} {_fmt(item.end[1])})"
                f" (stroke (width {width}) (type default)) (fill (type none)))"
            )
    return lines


def _template_pins(template: SymbolTemplate, pins: List[EEPin]) -> List[str]:
    half = template.pin_spacing / 2
    placements = ((0.0, half, 270), (0.0, -half, 90))
    lines = []
    for pin, (x, y, rot) in zip(pins, placements):
        lines.extend(
            _pin_block(
                "passive", "line", x, y, rot, template.pin_length,
                sanitize_pin_name(pin.name), pin.number, TEXT_SIZE,
            )
        )
    return lines


# --- Shape-preserving layout ---


def _shape_graphics(symbol: EESymbol) -> List[str]:
    ox, oy = symbol.origin_x, symbol.origin_y
    lines = []

    for rect in symbol.rectangles:
        x1, y1 = flip_y_for_symbol(rect.x, rect.y, ox, oy)
        x2, y2 = flip_y_for_symbol(rect.x + rect.width, rect.y + rect.height, ox, oy)
        lines.append(
            f"      (rectangle (start {_fmt(x1)} {_fmt(y1)}) (end {_fmt(x2)} {_fmt(y2)})"
            f" (stroke (width {_fmt(_stroke(rect.stroke_width))}) (type default)) (fill (type background)))"
        )

    for circle in symbol.circles:
        cx, cy = flip_y_for_symbol(circle.cx, circle.cy, ox, oy)
        radius = to_millimeters(circle.radius, SYMBOL_PRECISION)
        lines.append(
            f"      (circle (center {_fmt(cx)} {_fmt(cy)}) (radius {_fmt(radius)})"
            f" (stroke (width {_fmt(_stroke(circle.stroke_width))}) (type default)) (fill (type none)))"
        )

    # KiCad symbols have no ellipse primitive
    for ellipse in symbol.ellipses:
        cx, cy = flip_y_for_symbol(ellipse.cx, ellipse.cy, ox, oy)
        radius = to_millimeters((ellipse.rx + ellipse.ry) / 2, SYMBOL_PRECISION)
        lines.append(
            f"      (circle (center {_fmt(cx)} {_fmt(cy)}) (radius {_fmt(radius)})"
            f" (stroke (width {_fmt(_stroke(ellipse.stroke_width))}) (type default)) (fill (type none)))"
        )

    for arc in symbol.arcs:
        arc_line = _arc_line(arc.path, arc.stroke_width, ox, oy)
        if arc_line:
            lines.append(arc_line)

    for polyline in symbol.polylines:
        points = [flip_y_for_symbol(x, y, ox, oy) for x, y in parse_points(polyline.points)]
        if len(points) < 2:
            continue
        lines.append(
            f"      (polyline (pts {' '.join(_xy(p) for p in points)})"
            f" (stroke (width {_fmt(_stroke(polyline.stroke_width))}) (type default)) (fill (type none)))"
        )

    for polygon in symbol.polygons:
        points = [flip_y_for_symbol(x, y, ox, oy) for x, y in parse_points(polygon.points)]
        if len(points) < 3:
            continue
        points.append(points[0])
        lines.append(
            f"      (polyline (pts {' '.join(_xy(p) for p in points)})"
            f" (stroke (width {_fmt(_stroke(polygon.stroke_width))}) (type default)) (fill (type background)))"
        )

    for path in symbol.paths:
        points = _path_points(path.path)
        if len(points) < 2:
            continue
        points = [flip_y_for_symbol(x, y, ox, oy) for x, y in points]
        fill = "outline" if path.fill_color and path.fill_color.lower() != "none" else "none"
        lines.append(
            f"      (polyline (pts {' '.join(_xy(p) for p in points)})"
            f" (stroke (width {_fmt(_stroke(path.stroke_width))}) (type default)) (fill (type {fill})))"
        )

    return lines


def _arc_line(path: str, stroke_width: float, ox: float, oy: float) -> Optional[str]:
    arc = parse_svg_arc_path(path)
    if arc is None:
        return None
    params = arc_path_to_center(arc)
    if params is None:
        return None
    cx, cy = flip_y_for_symbol(params.cx, params.cy, ox, oy)
    radius = to_millimeters(params.rx, SYMBOL_PRECISION)
    start = flip_y_for_symbol(arc.x1, arc.y1, ox, oy)
    end = flip_y_for_symbol(arc.x2, arc.y2, ox, oy)
    # Y is flipped, so the mid angle is mirrored as well
    angle = params.start_angle + params.delta_angle / 2
    mid = (
        round(cx + radius * math.cos(angle), SYMBOL_PRECISION),
        round(cy - radius * math.sin(angle), SYMBOL_PRECISION),
    )
    return (
        f"      (arc (start {_fmt(start[0])} {_fmt(start[1])})"
        f" (mid {_fmt(mid[0])} {_fmt(mid[1])})"
        f" (end {_fmt(end[0])} {_fmt(end[1])})"
        f" (stroke (width {_fmt(_stroke(stroke_width))}) (type default)) (fill (type none)))"
    )


def _path_points(path: str) -> List[Tuple[float, float]]:
    """Points of an M/L/Z path; Z closes back to the first M."""
    points = []
    first = None
    for cmd, x, y in _PATH_COMMAND_RE.findall(path):
        cmd = cmd.upper()
        if cmd == "Z":
            if first is not None and points and points[-1] != first:
                points.append(first)
            continue
        if not x or not y:
            continue
        try:
            point = (float(x), float(y))
        except ValueError:
            continue
        if cmd == "M" and first is None:
            first = point
        points.append(point)
    return points


def _shape_pins(symbol: EESymbol) -> List[str]:
    lines = []
    for pin in symbol.pins:
        x, y = flip_y_for_symbol(pin.x, pin.y, symbol.origin_x, symbol.origin_y)
        # EasyEDA points the pin away from the body, KiCad toward it
        rotation = ((pin.rotation % 360 + 360) % 360 + 180) % 360
        length = to_millimeters(pin.pin_length, 2)
        lines.extend(
            _pin_block(
                pin_electrical_type(pin.electrical_type), pin_graphic_style(pin),
                x, y, rotation, length, sanitize_pin_name(pin.name), pin.number, IC_PIN_FONT_SIZE,
            )
        )
    return lines


# --- DIP fallback ---


def _pin_sort_key(pin: EEPin) -> int:
    try:
        return int(pin.number)
    except ValueError:
        return 0


def _dip_layout(pins: List[EEPin]) -> List[str]:
    ordered = sorted(pins, key=_pin_sort_key)
    half = math.ceil(len(ordered) / 2)
    top_y = (max(half, 1) - 1) * IC_PIN_SPACING
    pin_x = IC_BODY_HALF_WIDTH + IC_PIN_LENGTH

    lines = [
        f"      (rectangle (start {_fmt(-IC_BODY_HALF_WIDTH)} {_fmt(round(top_y + IC_PIN_SPACING, 3))})"
        f" (end {_fmt(IC_BODY_HALF_WIDTH)} {_fmt(-IC_PIN_SPACING)})"
        f" (stroke (width 0) (type default)) (fill (type background)))"
    ]
    for i, pin in enumerate(ordered):
        if i < half:
            x, y, rot = -pin_x, round(top_y - i * IC_PIN_SPACING, 3), 0
        else:
            x, y, rot = pin_x, round((i - half) * IC_PIN_SPACING, 3), 180
        lines.extend(
            _pin_block(
                pin_electrical_type(pin.electrical_type), pin_graphic_style(pin),
                x, y, rot, IC_PIN_LENGTH, sanitize_pin_name(pin.name), pin.number, IC_PIN_FONT_SIZE,
            )
        )
    return lines


# --- Symbol entry ---


def _properties(
    component: ComponentData, template: Optional[SymbolTemplate], footprint_ref: str
) -> List[str]:
    info = component.info
    lines = []

    reference = (info.prefix or "U").rstrip("?") or "U"
    value = sanitize_text(extract_display_value(info.name, info.description, info.prefix, info.category))
    ref_at = template.ref_position if template else (0, 10.16, 0)
    value_at = template.value_position if template else (0, 7.62, 0)
    _property(lines, "Reference", reference, ref_at, hidden=False)
    _property(lines, "Value", value, value_at, hidden=False)

    _property(lines, "Footprint", _escape(footprint_ref or info.package or ""), (-1.778, 0, 90))
    if info.datasheet_pdf:
        datasheet = info.datasheet_pdf
    elif info.lcsc_id:
        datasheet = f"https://www.lcsc.com/datasheet/{info.lcsc_id}.pdf"
    else:
        datasheet = "~"
    _property(lines, "Datasheet", _escape(datasheet), (0, 0, 0))

    hidden = []
    if info.datasheet:
        hidden.append(("Product Page", info.datasheet))
    hidden.append(("Description", info.description or info.name))
    if info.lcsc_id:
        hidden.append(("LCSC", info.lcsc_id))
    if info.manufacturer:
        hidden.append(("Manufacturer", info.manufacturer))
    if info.category:
        hidden.append(("Category", info.category))
    if info.lcsc_id:
        hidden.append(("ki_keywords", info.lcsc_id))
    if info.stock is not None:
        hidden.append(("Stock", str(info.stock)))
    if info.price is not None:
        hidden.append(("Price", f"{info.price}USD"))
    if info.process:
        hidden.append(("Process", info.process))
    if info.min_order_qty is not None:
        hidden.append(("Minimum Qty", str(info.min_order_qty)))
    hidden.append(("Attrition Qty", "0"))
    if info.part_class:
        hidden.append(("Class", info.part_class))
    if info.part_number:
        hidden.append(("Part", info.part_number))
    for key, attr in info.attributes.items():
        if attr:
            hidden.append((key, attr))

    for key, text in hidden:
        _property(lines, _escape(key), _escape(text), (0, 0, 0))
    return lines


def convert_to_symbol_entry(
    component: ComponentData,
    symbol_name: Optional[str] = None,
    kicad_version: int = DEFAULT_KICAD_VERSION,
    footprint_ref: str = "",
) -> str:
    """Generate one ``(symbol ...)`` block for *component*.

    *footprint_ref* fills the Footprint property; the package name is used
    when it is empty.
    """
    name = sanitize_symbol_name(symbol_name) if symbol_name else get_symbol_name(component)
    symbol = component.symbol
    template = _template_for(component)

    lines = [f'  (symbol "{name}"']
    if template:
        lines.append("    (pin_numbers (hide yes))")
        lines.append("    (pin_names (offset 0))")
    lines.append("    (exclude_from_sim no)")
    lines.append("    (in_bom yes)")
    lines.append("    (on_board yes)")
    lines.extend(_properties(component, template, footprint_ref))

    if template:
        lines.append(f'    (symbol "{name}_0_1"')
        lines.extend(_template_graphics(template))
        lines.append("    )")
        lines.append(f'    (symbol "{name}_1_1"')
        lines.extend(_template_pins(template, symbol.pins))
        lines.append("    )")
    elif symbol.has_graphics():
        lines.append(f'    (symbol "{name}_0_1"')
        lines.extend(_shape_graphics(symbol))
        lines.append("    )")
        lines.append(f'    (symbol "{name}_1_1"')
        lines.extend(_shape_pins(symbol))
        lines.append("    )")
    else:
        lines.append(f'    (symbol "{name}_0_1"')
        lines.extend(_dip_layout(symbol.pins))
        lines.append("    )")

    if has_embedded_fonts(kicad_version):
        lines.append("    (embedded_fonts no)")
    lines.append("  )")
    return "\n".join(lines) + "\n"


def _library_header(kicad_version: int) -> str:
    return (
        "(kicad_symbol_lib\n"
        f"  (version {symbol_format_version(kicad_version)})\n"
        f'  (generator "{GENERATOR}")\n'
        f'  (generator_version "{generator_version(kicad_version)}")\n'
    )


def convert_symbol(
    component: ComponentData,
    symbol_name: Optional[str] = None,
    kicad_version: int = DEFAULT_KICAD_VERSION,
    footprint_ref: str = "",
) -> str:
    """Generate a complete .kicad_sym library holding one symbol."""
    entry = convert_to_symbol_entry(component, symbol_name, kicad_version, footprint_ref)
    return _library_header(kicad_version) + entry + ")\n"


def create_library(components: List[ComponentData], kicad_version: int = DEFAULT_KICAD_VERSION) -> str:
    """Generate a .kicad_sym library holding all *components*."""
    entries = "".join(convert_to_symbol_entry(c, kicad_version=kicad_version) for c in components)
    return _library_header(kicad_version) + entries + ")\n"


# --- Library merge ---


def _symbol_start_re(name: str):
    return re.compile(r'\(symbol\s+"' + re.escape(name) + '"')


def symbol_exists_in_library(library_text: str, symbol_name: str) -> bool:
    return _symbol_start_re(sanitize_symbol_name(symbol_name)).search(library_text) is not None


def append_to_library(
    library_text: str,
    component: ComponentData,
    symbol_name: Optional[str] = None,
    kicad_version: int = DEFAULT_KICAD_VERSION,
    footprint_ref: str = "",
) -> str:
    """Insert the component's symbol before the library's closing paren.

    Raises LibraryFormatError if the text does not end with ``)``.
    """
    text = library_text.rstrip()
    if not text.endswith(")"):
        raise LibraryFormatError("Invalid library file format: missing closing parenthesis")
    entry = convert_to_symbol_entry(component, symbol_name, kicad_version, footprint_ref)
    return text[:-1] + entry + ")\n"


def _block_end(text: str, start: int) -> int:
    """Index just past the S-expression opening at *start*."""
    depth = 0
    in_string = False
    i = start
    while i < len(text):
        ch = text[i]
        if in_string and ch == "\\":
            # skip the escaped character
            i += 2
            continue
        if ch == '"':
            in_string = not in_string
        elif not in_string:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0:
                    return i + 1
        i += 1
    raise LibraryFormatError("Invalid library file format: unbalanced parentheses")


def remove_from_library(library_text: str, symbol_name: str) -> str:
    """Cut the named top-level symbol block out of the library text."""
    match = _symbol_start_re(sanitize_symbol_name(symbol_name)).search(library_text)
    if match is None:
        return library_text
    start = match.start()
    end = _block_end(library_text, start)
    # Take the block's indentation with it
    line_start = library_text.rfind("\n", 0, start) + 1
    if library_text[line_start:start].strip() == "":
        start = line_start
    return library_text[:start] + library_text[end:].lstrip("\n")


def replace_in_library(
    library_text: str,
    component: ComponentData,
    symbol_name: Optional[str] = None,
    kicad_version: int = DEFAULT_KICAD_VERSION,
    footprint_ref: str = "",
) -> str:
    """Replace the component's symbol, or append it if not present."""
    name = symbol_name or get_symbol_name(component)
    if symbol_exists_in_library(library_text, name):
        library_text = remove_from_library(library_text, name)
    return append_to_library(library_text, component, name, kicad_version, footprint_ref)
