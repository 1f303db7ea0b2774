"""Compare generated KiCad footprints against JLCPCB reference SVGs.

The reference SVG marks copper with ``<g c_partid="part_pad">`` groups (and
``part_via``/``part_hole`` for vias and holes) positioned by a ``c_origin``
attribute in EasyEDA units.  Both sides are reduced to FootprintData and
matched pad by pad.
"""
import logging
import math
import re
from typing import List, Optional, Tuple

from ..kicad.coords import EE_TO_MM
from . import sexpr
from .svg import Element, parse_number_pair, parse_svg
from .types import (
    Bounds,
    ComparisonOptions,
    FootprintComparisonResult,
    FootprintData,
    HoleInfo,
    PadDiff,
    PadInfo,
    ValidationResult,
    ViaInfo,
)

logger = logging.getLogger(__name__)

_RECTANGULAR_SHAPES = ("polygon", "rect", "roundrect", "custom")
_ROUND_SHAPES = ("circle", "oval")

_ROTATE_RE = re.compile(r"rotate\(\s*([-\d.]+)")
_WHITE_FILL_RE = re.compile(r"white|#fff", re.IGNORECASE)


def _float(value: str, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


# --- Reference SVG ---


def _groups(root: Element, part_id: str) -> List[Element]:
    return root.find_all(lambda el: el.tag == "g" and el.get("c_partid") == part_id)


def _origin(group: Element) -> Optional[Tuple[float, float]]:
    pair = parse_number_pair(group.get("c_origin"))
    if pair is None:
        return None
    # Footprint Y grows downward on both sides
    return pair[0] * EE_TO_MM, pair[1] * EE_TO_MM


def _is_hole_circle(circle: Element, pinhole: bool) -> bool:
    if "hole" in circle.get("class").lower():
        return True
    return pinhole and bool(_WHITE_FILL_RE.search(circle.get("fill")))


def _polygon_size(points: str) -> Tuple[float, float]:
    values = []
    for token in re.split(r"[\s,]+", points.strip()):
        try:
            values.append(float(token))
        except ValueError:
            continue
    xs = values[0::2]
    ys = values[1::2]
    if not xs or not ys:
        return 0.0, 0.0
    return (max(xs) - min(xs)) * EE_TO_MM, (max(ys) - min(ys)) * EE_TO_MM


def _parse_pad_group(group: Element) -> Optional[PadInfo]:
    origin = _origin(group)
    if origin is None:
        return None

    elements = list(group.iter())
    pinhole = any(el.get("c_etype") == "pinhole" for el in elements)
    pad = PadInfo(
        number=group.get("number"),
        x=origin[0],
        y=origin[1],
        width=0.0,
        height=0.0,
        layer_id=int(_float(group.get("layerid"), 1)),
    )

    shapes = {}
    for el in elements:
        if el.tag == "circle" and _is_hole_circle(el, pinhole):
            pad.has_hole = True
            pad.hole_radius = _float(el.get("r")) * EE_TO_MM
        elif el.tag in ("rect", "circle", "ellipse", "polygon") and el.tag not in shapes:
            shapes[el.tag] = el
        elif el.tag == "path" and "path" not in shapes and re.search(r"[Cc]", el.get("d")):
            shapes["path"] = el
        if "rotate(" in el.get("transform") and not pad.rotation:
            match = _ROTATE_RE.search(el.get("transform"))
            if match:
                pad.rotation = _float(match.group(1))

    if pinhole:
        pad.has_hole = True

    # Later checks win: polygon over ellipse over circle over rect
    if "rect" in shapes:
        rect = shapes["rect"]
        pad.width = _float(rect.get("width")) * EE_TO_MM
        pad.height = _float(rect.get("height")) * EE_TO_MM
        pad.shape = "roundrect" if rect.get("rx") else "rect"
    if "circle" in shapes:
        radius = _float(shapes["circle"].get("r")) * EE_TO_MM
        pad.width = pad.height = radius * 2
        pad.shape = "circle"
    if "ellipse" in shapes:
        ellipse = shapes["ellipse"]
        pad.width = _float(ellipse.get("rx")) * 2 * EE_TO_MM
        pad.height = _float(ellipse.get("ry")) * 2 * EE_TO_MM
        pad.shape = "oval"
    if "polygon" in shapes:
        pad.width, pad.height = _polygon_size(shapes["polygon"].get("points"))
        pad.shape = "polygon"
    elif "path" in shapes:
        pad.shape = "polygon"
    return pad


def _parse_via_group(group: Element) -> Optional[ViaInfo]:
    origin = _origin(group)
    if origin is None:
        return None
    radii = [_float(el.get("r")) * EE_TO_MM for el in group.iter() if el.tag == "circle"]
    if not radii:
        return None
    return ViaInfo(origin[0], origin[1], outer_diameter=max(radii) * 2, hole_diameter=min(radii) * 2)


def _parse_hole_group(group: Element) -> Optional[HoleInfo]:
    origin = _origin(group)
    circle = group.first("circle")
    if origin is None or circle is None:
        return None
    plated = group.get("layerid") == "11" or group.get("c_etype") == "plated"
    return HoleInfo(origin[0], origin[1], diameter=_float(circle.get("r")) * 2 * EE_TO_MM, plated=plated)


def pad_bbox_center(pads: List[PadInfo]) -> Tuple[float, float]:
    """Centre of the pads' bounding box with pad sizes included."""
    if not pads:
        return 0.0, 0.0
    min_x = min(p.x - p.width / 2 for p in pads)
    max_x = max(p.x + p.width / 2 for p in pads)
    min_y = min(p.y - p.height / 2 for p in pads)
    max_y = max(p.y + p.height / 2 for p in pads)
    return (min_x + max_x) / 2, (min_y + max_y) / 2


def _bounds(data: FootprintData) -> Bounds:
    points = [(p.x, p.y) for p in data.pads]
    points += [(v.x, v.y) for v in data.vias]
    points += [(h.x, h.y) for h in data.holes]
    return Bounds.from_points(points)


def extract_footprint_from_svg(svg: str) -> FootprintData:
    """Pads, vias and holes of a reference SVG, centred like the converter centres footprints."""
    root = parse_svg(svg)
    pads = [p for p in (_parse_pad_group(g) for g in _groups(root, "part_pad")) if p]
    vias = [v for v in (_parse_via_group(g) for g in _groups(root, "part_via")) if v]
    holes = [h for h in (_parse_hole_group(g) for g in _groups(root, "part_hole")) if h]

    cx, cy = pad_bbox_center(pads)
    for item in [*pads, *vias, *holes]:
        item.x = round(item.x - cx, 4)
        item.y = round(item.y - cy, 4)

    data = FootprintData(pads=pads, vias=vias, holes=holes)
    data.bounds = _bounds(data)
    return data


# --- Generated KiCad footprint ---


def _pad_layer_id(layers: List[str]) -> int:
    if "*.Cu" in layers:
        return 11
    if "B.Cu" in layers:
        return 2
    return 1


def extract_footprint_from_kicad(text: str) -> FootprintData:
    """Pads, vias and holes of a .kicad_mod file.

    ``np_thru_hole`` pads are holes; unnumbered plated through-hole pads
    are vias.
    """
    tree = sexpr.parse(text)
    data = FootprintData()

    for node in sexpr.children(tree, "pad"):
        if len(node) < 4:
            continue
        number, pad_type, shape = node[1], node[2], node[3]
        at = sexpr.child(node, "at")
        if at is None or len(at) < 3:
            continue
        x, y = sexpr.to_float(at[1]), sexpr.to_float(at[2])
        rotation = sexpr.to_float(at[3]) if len(at) > 3 else 0.0

        size = sexpr.child(node, "size")
        width = sexpr.to_float(size[1]) if size and len(size) > 2 else 0.0
        height = sexpr.to_float(size[2]) if size and len(size) > 2 else 0.0

        drill_node = sexpr.child(node, "drill")
        drill = None
        if drill_node is not None:
            values = [v for v in drill_node[1:] if isinstance(v, str) and v != "oval"]
            if values:
                drill = sexpr.to_float(values[0])

        layers_node = sexpr.child(node, "layers")
        layers = [v for v in layers_node[1:] if isinstance(v, str)] if layers_node else []

        if pad_type == "np_thru_hole":
            data.holes.append(HoleInfo(x, y, diameter=drill if drill is not None else width, plated=False))
            continue
        if pad_type == "thru_hole" and number == "":
            data.vias.append(ViaInfo(x, y, outer_diameter=width, hole_diameter=drill or 0.0))
            continue

        data.pads.append(
            PadInfo(
                number=number,
                x=x,
                y=y,
                width=width,
                height=height,
                shape=shape,
                layer_id=_pad_layer_id(layers),
                has_hole=pad_type == "thru_hole" or drill is not None,
                hole_radius=drill / 2 if drill is not None else None,
                rotation=rotation,
            )
        )

    data.bounds = _bounds(data)
    return data


# --- Comparison ---


def shapes_equivalent(a: str, b: str) -> bool:
    """Rectangular shapes match each other, as do round ones."""
    if a == b:
        return True
    if a in _RECTANGULAR_SHAPES and b in _RECTANGULAR_SHAPES:
        return True
    return a in _ROUND_SHAPES and b in _ROUND_SHAPES


def _find_matching_pad(
    ref: PadInfo, generated: List[PadInfo], used: set, tolerance: float
) -> Optional[int]:
    """Closest unused pad with the same number, else an unused pad at the same spot."""
    candidates = [
        (math.hypot(p.x - ref.x, p.y - ref.y), i)
        for i, p in enumerate(generated)
        if i not in used and p.number == ref.number
    ]
    if candidates:
        return min(candidates)[1]
    for i, p in enumerate(generated):
        if i in used:
            continue
        if abs(p.x - ref.x) < tolerance and abs(p.y - ref.y) < tolerance:
            return i
    return None


def compare_footprints(
    reference: FootprintData,
    generated: FootprintData,
    options: Optional[ComparisonOptions] = None,
) -> FootprintComparisonResult:
    """Match generated pads to reference pads and record every difference.

    Passes when no error was recorded and the pad counts agree.
    """
    opts = options or ComparisonOptions()
    tol = opts.position_tolerance
    diffs: List[PadDiff] = []
    used: set = set()

    for ref in reference.pads:
        index = _find_matching_pad(ref, generated.pads, used, tol)
        if index is None:
            diffs.append(PadDiff(ref.number, "missing", "error", f"Pad {ref.number} missing in generated output"))
            continue
        used.add(index)
        gen = generated.pads[index]

        if abs(ref.x - gen.x) > tol or abs(ref.y - gen.y) > tol:
            expected = f"({ref.x:.3f}, {ref.y:.3f})"
            actual = f"({gen.x:.3f}, {gen.y:.3f})"
            diffs.append(
                PadDiff(ref.number, "position", "error", f"Position differs: expected {expected}, got {actual}",
                        expected, actual)
            )

        stol = opts.size_tolerance
        size_ok = (abs(ref.width - gen.width) <= stol and abs(ref.height - gen.height) <= stol) or (
            abs(ref.width - gen.height) <= stol and abs(ref.height - gen.width) <= stol
        )
        if not size_ok:
            expected = f"{ref.width:.3f}x{ref.height:.3f}"
            actual = f"{gen.width:.3f}x{gen.height:.3f}"
            diffs.append(
                PadDiff(
                    ref.number,
                    "size",
                    "error" if opts.size_errors else "warning",
                    f"Size differs at ({ref.x:.2f}, {ref.y:.2f}): expected {expected}mm, got {actual}mm",
                    expected,
                    actual,
                )
            )

        if not shapes_equivalent(ref.shape, gen.shape):
            diffs.append(
                PadDiff(ref.number, "shape", "warning", f"Shape differs: expected {ref.shape}, got {gen.shape}",
                        ref.shape, gen.shape)
            )

        if ref.has_hole != gen.has_hole:
            expected = "THT" if ref.has_hole else "SMD"
            actual = "THT" if gen.has_hole else "SMD"
            diffs.append(
                PadDiff(ref.number, "hole", "error", f"Hole mismatch: expected {expected}, got {actual}",
                        expected, actual)
            )
        elif ref.has_hole and ref.hole_radius and gen.hole_radius:
            if abs(ref.hole_radius - gen.hole_radius) > opts.hole_tolerance:
                expected = f"{ref.hole_radius * 2:.3f}"
                actual = f"{gen.hole_radius * 2:.3f}"
                diffs.append(
                    PadDiff(ref.number, "hole", "warning",
                            f"Hole size differs: expected {expected}mm, got {actual}mm", expected, actual)
                )

    if not opts.ignore_extra_pads:
        for i, gen in enumerate(generated.pads):
            if i in used:
                continue
            at_reference = any(abs(p.x - gen.x) < tol and abs(p.y - gen.y) < tol for p in reference.pads)
            if not at_reference:
                diffs.append(
                    PadDiff(gen.number, "extra", "warning",
                            f"Extra pad {gen.number} in generated output at ({gen.x:.3f}, {gen.y:.3f})")
                )

    pad_count_match = len(reference.pads) == len(generated.pads)
    has_errors = any(d.severity == "error" for d in diffs)
    return FootprintComparisonResult(
        passed=not has_errors and pad_count_match,
        pad_count_match=pad_count_match,
        via_count_match=len(reference.vias) == len(generated.vias),
        hole_count_match=len(reference.holes) == len(generated.holes),
        reference_pad_count=len(reference.pads),
        generated_pad_count=len(generated.pads),
        reference_via_count=len(reference.vias),
        generated_via_count=len(generated.vias),
        reference_hole_count=len(reference.holes),
        generated_hole_count=len(generated.holes),
        diffs=diffs,
    )


def validate_footprint(
    reference_svg: str, kicad_text: str, options: Optional[ComparisonOptions] = None
) -> ValidationResult:
    """Extract both sides and compare them.  Never raises."""
    try:
        reference = extract_footprint_from_svg(reference_svg)
        generated = extract_footprint_from_kicad(kicad_text)
        result = compare_footprints(reference, generated, options)
    except Exception as e:
        logger.debug("Footprint validation failed", exc_info=True)
        return ValidationResult(kind="footprint", passed=False, error=str(e) or type(e).__name__)
    return ValidationResult(kind="footprint", passed=result.passed, footprint=result)


def format_comparison_result(result: FootprintComparisonResult) -> str:
    """Human-readable report of a footprint comparison."""
    lines = [f"Footprint Comparison: {'PASS' if result.passed else 'FAIL'}", ""]
    lines.append(
        f"  Pad count: {result.generated_pad_count}/{result.reference_pad_count}"
        f" {'ok' if result.pad_count_match else 'MISMATCH'}"
    )
    lines.append(
        f"  Via count: {result.generated_via_count}/{result.reference_via_count}"
        f" {'ok' if result.via_count_match else 'MISMATCH'}"
    )
    lines.append(
        f"  Hole count: {result.generated_hole_count}/{result.reference_hole_count}"
        f" {'ok' if result.hole_count_match else 'MISMATCH'}"
    )
    lines.append("")

    errors = result.errors
    if errors:
        lines.append(f"  Errors ({len(errors)}):")
        for diff in errors:
            lines.append(f"    x Pad {diff.number}: {diff.message}")
        lines.append("")

    warnings = result.warnings
    if warnings:
        lines.append(f"  Warnings ({len(warnings)}):")
        for diff in warnings:
            lines.append(f"    ! Pad {diff.number}: {diff.message}")

    return "\n".join(lines)
