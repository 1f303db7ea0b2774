"""EasyEDA shape string parser for footprints and symbols.

Shape strings are tilde-delimited records whose first field is a designator
(``PAD``, ``TRACK``, ``P``, ``R`` ...).  Each designator has its own parser
returning a typed record from ``ee_types``.  Malformed lines are dropped:
a parser that cannot make sense of its input returns ``None``.
"""
import json
import re
from typing import Callable, Dict, List, Optional, Tuple

from .ee_types import (
    EE3DModel,
    EEArc,
    EECircle,
    EEFootprint,
    EEHole,
    EEPad,
    EEPin,
    EERect,
    EESolidRegion,
    EESymArc,
    EESymbol,
    EESymCircle,
    EESymEllipse,
    EESymPath,
    EESymPolygon,
    EESymPolyline,
    EESymRect,
    EESymText,
    EEText,
    EETrack,
    EEVia,
)

_FLOAT_PREFIX_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX_RE = re.compile(r"^\s*[+-]?\d+")
_PIN_LENGTH_RE = re.compile(r"[hv]\s*(-?[\d.]+)", re.IGNORECASE)
_PIN_LABEL_RE = re.compile(r"^([A-Za-z]*\d+)/(.+)$")

_DEFAULT_STROKE = "#000000"


def safe_parse_float(value: Optional[str], default: float = 0.0) -> float:
    """Parse the leading number of *value*, returning *default* when there is none."""
    if value is None or value == "":
        return default
    match = _FLOAT_PREFIX_RE.match(str(value))
    if not match:
        return default
    try:
        return float(match.group(0))
    except ValueError:
        return default


def safe_parse_int(value: Optional[str], default: int = 0) -> int:
    """Parse the leading integer of *value*, returning *default* when there is none."""
    if value is None or value == "":
        return default
    match = _INT_PREFIX_RE.match(str(value))
    if not match:
        return default
    return int(match.group(0))


def parse_bool(value: Optional[str]) -> bool:
    """EasyEDA booleans: missing, empty and "0" are false."""
    return value is not None and value != "" and value != "0"


def _field(parts: List[str], index: int, default: str = "") -> str:
    """Return ``parts[index]`` or *default* when missing or empty."""
    if index < len(parts) and parts[index] != "":
        return parts[index]
    return default


def parse_points(points: str) -> List[Tuple[float, float]]:
    """Parse a space/comma separated coordinate list into (x, y) pairs."""
    values = []
    for token in re.split(r"[\s,]+", points.strip()):
        if not token:
            continue
        try:
            values.append(float(token))
        except ValueError:
            continue
    return [(values[i], values[i + 1]) for i in range(0, len(values) - 1, 2)]


# --- Symbol shape parsers ---


def _parse_pin(line: str) -> Optional[EEPin]:
    """Parse a pin record.

    Segments are separated by ``^^``:
    settings, dot display, pin line path, name label, number label,
    inverted bubble, clock indicator.
    """
    segments = line.split("^^")
    settings = segments[0].split("~")
    # P~show~type~number~x~y~rotation~id~locked
    if len(settings) < 4:
        return None

    pin_length = 100.0
    if len(segments) > 2:
        match = _PIN_LENGTH_RE.search(segments[2])
        if match:
            pin_length = abs(safe_parse_float(match.group(1), 100.0))

    name_fields = segments[3].split("~") if len(segments) > 3 else []
    dot_fields = segments[5].split("~") if len(segments) > 5 else []
    clock_fields = segments[6].split("~") if len(segments) > 6 else []

    return EEPin(
        number=_field(settings, 3),
        name=_field(name_fields, 4),
        electrical_type=_field(settings, 2, "0"),
        x=safe_parse_float(_field(settings, 4)),
        y=safe_parse_float(_field(settings, 5)),
        rotation=safe_parse_float(_field(settings, 6)),
        has_dot=bool(dot_fields) and dot_fields[0] == "1",
        has_clock=bool(clock_fields) and clock_fields[0] == "1",
        pin_length=pin_length,
    )


def _parse_sym_rect(parts: List[str]) -> EESymRect:
    # R~x~y~rx~ry~width~height~strokeColor~strokeWidth~strokeStyle~fillColor~id~locked
    return EESymRect(
        x=safe_parse_float(_field(parts, 1)),
        y=safe_parse_float(_field(parts, 2)),
        rx=safe_parse_float(_field(parts, 3)),
        ry=safe_parse_float(_field(parts, 4)),
        width=safe_parse_float(_field(parts, 5)),
        height=safe_parse_float(_field(parts, 6)),
        stroke_color=_field(parts, 7, _DEFAULT_STROKE),
        stroke_width=safe_parse_float(_field(parts, 8), 1.0),
        fill_color=_field(parts, 10, "none"),
    )


def _parse_sym_circle(parts: List[str]) -> EESymCircle:
    # C~cx~cy~radius~strokeColor~strokeWidth~strokeStyle~fillColor~id~locked
    return EESymCircle(
        cx=safe_parse_float(_field(parts, 1)),
        cy=safe_parse_float(_field(parts, 2)),
        radius=safe_parse_float(_field(parts, 3)),
        stroke_color=_field(parts, 4, _DEFAULT_STROKE),
        stroke_width=safe_parse_float(_field(parts, 5), 1.0),
        fill_color=_field(parts, 7, "none"),
    )


def _parse_sym_ellipse(parts: List[str]) -> EESymEllipse:
    # E~cx~cy~rx~ry~strokeColor~strokeWidth~strokeStyle~fillColor~id~locked
    return EESymEllipse(
        cx=safe_parse_float(_field(parts, 1)),
        cy=safe_parse_float(_field(parts, 2)),
        rx=safe_parse_float(_field(parts, 3)),
        ry=safe_parse_float(_field(parts, 4)),
        stroke_color=_field(parts, 5, _DEFAULT_STROKE),
        stroke_width=safe_parse_float(_field(parts, 6), 1.0),
        fill_color=_field(parts, 8, "none"),
    )


def _path_style(parts: List[str]) -> dict:
    # <designator>~pathOrPoints~strokeColor~strokeWidth~strokeStyle~fillColor~id~locked
    return {
        "stroke_color": _field(parts, 2, _DEFAULT_STROKE),
        "stroke_width": safe_parse_float(_field(parts, 3), 1.0),
        "fill_color": _field(parts, 5, "none"),
    }


def _parse_sym_arc(parts: List[str]) -> EESymArc:
    return EESymArc(path=_field(parts, 1), **_path_style(parts))


def _parse_sym_polyline(parts: List[str]) -> EESymPolyline:
    return EESymPolyline(points=_field(parts, 1), **_path_style(parts))


def _parse_sym_polygon(parts: List[str]) -> EESymPolygon:
    return EESymPolygon(points=_field(parts, 1), **_path_style(parts))


def _parse_sym_path(parts: List[str]) -> EESymPath:
    return EESymPath(path=_field(parts, 1), **_path_style(parts))


def _parse_sym_text(parts: List[str]) -> Optional[EESymText]:
    # T~align~x~y~rotation~color~font~fontSize~weight~style~baseline~type~text~visible~anchor~id~...
    text = _field(parts, 12)
    if not text:
        return None
    return EESymText(
        x=safe_parse_float(_field(parts, 2)),
        y=safe_parse_float(_field(parts, 3)),
        text=text,
        rotation=safe_parse_float(_field(parts, 4)),
        font_size=safe_parse_float(_field(parts, 7)),
        text_type=_field(parts, 11),
        is_pin_part="pinpart" in parts,
    )


# designator -> (parser, EESymbol collection)
_SYMBOL_PARSERS: Dict[str, Tuple[Callable, str]] = {
    "R": (_parse_sym_rect, "rectangles"),
    "C": (_parse_sym_circle, "circles"),
    "E": (_parse_sym_ellipse, "ellipses"),
    "A": (_parse_sym_arc, "arcs"),
    "PL": (_parse_sym_polyline, "polylines"),
    "PG": (_parse_sym_polygon, "polygons"),
    "PT": (_parse_sym_path, "paths"),
    "T": (_parse_sym_text, "texts"),
}


def parse_symbol_shapes(shapes: List[str], origin_x: float = 0.0, origin_y: float = 0.0) -> EESymbol:
    """Parse symbol shape strings into an EESymbol."""
    sym = EESymbol(origin_x=origin_x, origin_y=origin_y)

    for line in shapes:
        if not isinstance(line, str):
            continue
        designator = line.split("~", 1)[0]
        if designator == "P":
            pin = _parse_pin(line)
            if pin:
                sym.pins.append(pin)
            continue
        entry = _SYMBOL_PARSERS.get(designator)
        if entry is None:
            continue
        parser, collection = entry
        try:
            shape = parser(line.split("~"))
        except (ValueError, IndexError):
            continue
        if shape is not None:
            getattr(sym, collection).append(shape)

    return sym


def associate_pin_names_from_texts(symbol: EESymbol) -> int:
    """Back-fill pin names from ``pinpart`` text labels such as ``J3/SDA``.

    A label applies to the pin whose number equals the label prefix, or the
    digits at its end.  Only pins without a descriptive name (empty, or just
    repeating the pin number) are renamed.  Returns the number of pins renamed.
    """
    renamed = 0
    for text in symbol.texts:
        if not text.is_pin_part:
            continue
        match = _PIN_LABEL_RE.match(text.text.strip())
        if not match:
            continue
        label, function = match.group(1), match.group(2).strip()
        digits = re.search(r"\d+$", label).group(0)
        for pin in symbol.pins:
            if pin.number not in (label, digits):
                continue
            if pin.name and pin.name != pin.number:
                continue
            pin.name = function
            renamed += 1
    return renamed


# --- Footprint shape parsers ---


def _parse_pad(parts: List[str]) -> EEPad:
    # PAD~shape~cx~cy~w~h~layer~net~number~holeRadius~points~rotation~id~holeLength~holePoint~isPlated~isLocked
    return EEPad(
        shape=_field(parts, 1, "RECT"),
        cx=safe_parse_float(_field(parts, 2)),
        cy=safe_parse_float(_field(parts, 3)),
        width=safe_parse_float(_field(parts, 4)),
        height=safe_parse_float(_field(parts, 5)),
        layer_id=safe_parse_int(_field(parts, 6), 1),
        net=_field(parts, 7),
        number=_field(parts, 8),
        hole_radius=safe_parse_float(_field(parts, 9)),
        points=_field(parts, 10),
        rotation=safe_parse_float(_field(parts, 11)),
        id=_field(parts, 12),
        hole_length=safe_parse_float(_field(parts, 13)),
        hole_point=_field(parts, 14),
        is_plated=parse_bool(_field(parts, 15)),
        is_locked=parse_bool(_field(parts, 16)),
    )


def _parse_track(parts: List[str]) -> EETrack:
    # TRACK~strokeWidth~layer~net~points~id~locked
    return EETrack(
        stroke_width=safe_parse_float(_field(parts, 1)),
        layer_id=safe_parse_int(_field(parts, 2), 1),
        net=_field(parts, 3),
        points=_field(parts, 4),
        id=_field(parts, 5),
    )


def _parse_hole(parts: List[str]) -> EEHole:
    # HOLE~cx~cy~radius~id~locked
    return EEHole(
        cx=safe_parse_float(_field(parts, 1)),
        cy=safe_parse_float(_field(parts, 2)),
        radius=safe_parse_float(_field(parts, 3)),
        id=_field(parts, 4),
    )


def _parse_circle(parts: List[str]) -> EECircle:
    # CIRCLE~cx~cy~radius~strokeWidth~layer~id~locked
    return EECircle(
        cx=safe_parse_float(_field(parts, 1)),
        cy=safe_parse_float(_field(parts, 2)),
        radius=safe_parse_float(_field(parts, 3)),
        stroke_width=safe_parse_float(_field(parts, 4)),
        layer_id=safe_parse_int(_field(parts, 5), 1),
        id=_field(parts, 6),
    )


def _parse_arc(parts: List[str]) -> EEArc:
    # ARC~strokeWidth~layer~net~path~helperDots~id~locked
    return EEArc(
        stroke_width=safe_parse_float(_field(parts, 1)),
        layer_id=safe_parse_int(_field(parts, 2), 1),
        net=_field(parts, 3),
        path=_field(parts, 4),
        helper_dots=_field(parts, 5),
        id=_field(parts, 6),
    )


def _parse_rect(parts: List[str]) -> EERect:
    # RECT~x~y~width~height~strokeWidth~id~layer~locked
    return EERect(
        x=safe_parse_float(_field(parts, 1)),
        y=safe_parse_float(_field(parts, 2)),
        width=safe_parse_float(_field(parts, 3)),
        height=safe_parse_float(_field(parts, 4)),
        stroke_width=safe_parse_float(_field(parts, 5)),
        id=_field(parts, 6),
        layer_id=safe_parse_int(_field(parts, 7), 1),
    )


def _parse_via(parts: List[str]) -> EEVia:
    # VIA~cx~cy~diameter~net~radius~id~locked
    return EEVia(
        cx=safe_parse_float(_field(parts, 1)),
        cy=safe_parse_float(_field(parts, 2)),
        diameter=safe_parse_float(_field(parts, 3)),
        net=_field(parts, 4),
        radius=safe_parse_float(_field(parts, 5)),
        id=_field(parts, 6),
    )


def _parse_text(parts: List[str]) -> EEText:
    # TEXT~type~cx~cy~strokeWidth~rotation~mirror~layer~net~fontSize~text~textPath~isDisplayed~id~locked
    displayed = _field(parts, 12)
    return EEText(
        text_type=_field(parts, 1),
        cx=safe_parse_float(_field(parts, 2)),
        cy=safe_parse_float(_field(parts, 3)),
        stroke_width=safe_parse_float(_field(parts, 4)),
        rotation=safe_parse_float(_field(parts, 5)),
        mirror=_field(parts, 6),
        layer_id=safe_parse_int(_field(parts, 7), 1),
        font_size=safe_parse_float(_field(parts, 9)),
        text=_field(parts, 10),
        text_path=_field(parts, 11),
        is_displayed=True if displayed == "" else parse_bool(displayed),
        id=_field(parts, 13),
    )


def _parse_solid_region(parts: List[str]) -> Optional[EESolidRegion]:
    # SOLIDREGION~layer~~path~fillType~id
    path = _field(parts, 3)
    if len(path) < 3:
        return None
    return EESolidRegion(
        layer_id=safe_parse_int(_field(parts, 1), 1),
        path=path,
        fill_type=_field(parts, 4, "solid"),
        id=_field(parts, 5),
    )


def _parse_svgnode(parts: List[str]) -> Optional[EE3DModel]:
    """Extract the 3D model reference from an SVGNODE JSON payload."""
    try:
        data = json.loads(parts[1])
    except (ValueError, IndexError):
        return None
    attrs = data.get("attrs") if isinstance(data, dict) else None
    if not isinstance(attrs, dict) or not attrs.get("uuid"):
        return None
    return EE3DModel(uuid=attrs["uuid"], name=attrs.get("title") or "3D Model")


_FOOTPRINT_PARSERS: Dict[str, Tuple[Callable, str]] = {
    "PAD": (_parse_pad, "pads"),
    "TRACK": (_parse_track, "tracks"),
    "HOLE": (_parse_hole, "holes"),
    "CIRCLE": (_parse_circle, "circles"),
    "ARC": (_parse_arc, "arcs"),
    "RECT": (_parse_rect, "rects"),
    "VIA": (_parse_via, "vias"),
    "TEXT": (_parse_text, "texts"),
    "SOLIDREGION": (_parse_solid_region, "regions"),
    "SVGNODE": (_parse_svgnode, "model"),
}


def parse_footprint_shapes(
    shapes: List[str], origin_x: float = 0.0, origin_y: float = 0.0, name: str = "Unknown"
) -> EEFootprint:
    """Parse footprint shape strings into an EEFootprint."""
    fp = EEFootprint(name=name, origin_x=origin_x, origin_y=origin_y)

    for line in shapes:
        if not isinstance(line, str):
            continue
        parts = line.split("~")
        entry = _FOOTPRINT_PARSERS.get(parts[0])
        if entry is None:
            continue
        parser, collection = entry
        try:
            shape = parser(parts)
        except (ValueError, IndexError):
            continue
        if shape is None:
            continue
        if collection == "model":
            fp.model = shape
        else:
            getattr(fp, collection).append(shape)

    fp.type = infer_footprint_type(fp.pads)
    return fp


def infer_footprint_type(pads: List[EEPad]) -> str:
    """Return "tht" when any pad is drilled or a polygon pad is plated, else "smd"."""
    for pad in pads:
        if pad.hole_radius > 0:
            return "tht"
        if pad.shape == "POLYGON" and pad.is_plated:
            return "tht"
    return "smd"
