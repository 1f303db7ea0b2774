"""Compare generated KiCad symbols against JLCPCB reference SVGs.

Reference pins are ``<g c_partid="part_pin">`` groups.  Both sides are
centred on their pin centroid before matching, since a symbol's origin is
arbitrary.
"""
import logging
import math
from typing import List, Optional, Tuple

from ..kicad.coords import EE_TO_MM
from . import sexpr
from .svg import Element, parse_number_pair, parse_svg
from .types import (
    PIN_ELECTRICAL_TYPES,
    Bounds,
    ComparisonOptions,
    PinDiff,
    PinInfo,
    SymbolComparisonResult,
    SymbolData,
    ValidationResult,
)

logger = logging.getLogger(__name__)

# Symbol pin placement is judged far more loosely than copper
SYMBOL_TOLERANCE_FACTOR = 10

_EASYEDA_ELECTRICAL = {
    "input": "input",
    "output": "output",
    "bi": "bidirectional",
    "tristate": "tri_state",
    "passive": "passive",
    "power": "power_in",
    "power_in": "power_in",
    "power_out": "power_out",
    "open_collector": "open_collector",
    "open_emitter": "open_emitter",
    "unconnected": "no_connect",
    "nc": "no_connect",
}


def map_electrical_type(easyeda_type: str) -> str:
    return _EASYEDA_ELECTRICAL.get(easyeda_type.lower(), "unspecified")


def _float(value: str, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def centroid(points: List[Tuple[float, float]]) -> Tuple[float, float]:
    if not points:
        return 0.0, 0.0
    return sum(p[0] for p in points) / len(points), sum(p[1] for p in points) / len(points)


def _centre(pins: List[PinInfo]) -> SymbolData:
    cx, cy = centroid([(p.x, p.y) for p in pins])
    for pin in pins:
        pin.x = round(pin.x - cx, 4)
        pin.y = round(pin.y - cy, 4)
    return SymbolData(pins=pins, bounds=Bounds.from_points((p.x, p.y) for p in pins))


def _parse_pin_group(group: Element) -> Optional[PinInfo]:
    origin = parse_number_pair(group.get("c_origin"))
    if origin is None:
        return None
    number = group.get("c_spicepin") or group.get("number")
    text = group.first("text")
    name = text.text.strip() if text is not None and text.text.strip() else number
    # EasyEDA rotation points away from the body; KiCad's points toward it
    rotation = (_float(group.get("c_rotation")) + 180) % 360
    return PinInfo(
        number=number,
        name=name,
        x=origin[0] * EE_TO_MM,
        y=-origin[1] * EE_TO_MM,
        rotation=rotation,
        electrical=map_electrical_type(group.get("c_etype")),
    )


def extract_symbol_from_svg(svg: str) -> SymbolData:
    root = parse_svg(svg)
    groups = root.find_all(lambda el: el.tag == "g" and el.get("c_partid") == "part_pin")
    return _centre([p for p in (_parse_pin_group(g) for g in groups) if p])


def extract_symbol_from_kicad(text: str) -> SymbolData:
    """Pins of every unit in a .kicad_sym file, in millimetres, Y up."""
    tree = sexpr.parse(text)
    pins = []
    for node in sexpr.find_all(tree, "pin"):
        if len(node) < 3:
            continue
        at = sexpr.child(node, "at")
        if at is None or len(at) < 3:
            continue
        name_node = sexpr.child(node, "name")
        number_node = sexpr.child(node, "number")
        electrical = node[1] if node[1] in PIN_ELECTRICAL_TYPES else "unspecified"
        pins.append(
            PinInfo(
                number=number_node[1] if number_node and len(number_node) > 1 else "",
                name=name_node[1] if name_node and len(name_node) > 1 else "",
                x=sexpr.to_float(at[1]),
                y=sexpr.to_float(at[2]),
                rotation=sexpr.to_float(at[3]) if len(at) > 3 else 0.0,
                electrical=electrical,
            )
        )
    return _centre(pins)


def _find_matching_pin(
    ref: PinInfo, generated: List[PinInfo], used: set, tolerance: float
) -> Optional[int]:
    """Closest unused pin with the same number, else an unused pin at the same spot."""
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


def compare_symbols(
    reference: SymbolData,
    generated: SymbolData,
    options: Optional[ComparisonOptions] = None,
) -> SymbolComparisonResult:
    """Match pins by number (then position) and record differences.

    Only missing pins are errors.  Passes when there are no errors and the
    pin counts agree.
    """
    opts = options or ComparisonOptions()
    tol = opts.position_tolerance * SYMBOL_TOLERANCE_FACTOR
    diffs: List[PinDiff] = []
    used = set()

    for ref in reference.pins:
        index = _find_matching_pin(ref, generated.pins, used, tol)
        if index is None:
            diffs.append(
                PinDiff(ref.number, "missing", "error", f"Pin {ref.number} ({ref.name}) missing in generated output")
            )
            continue
        used.add(index)
        gen = generated.pins[index]

        if abs(ref.x - gen.x) > tol or abs(ref.y - gen.y) > tol:
            expected = f"({ref.x:.2f}, {ref.y:.2f})"
            actual = f"({gen.x:.2f}, {gen.y:.2f})"
            diffs.append(
                PinDiff(ref.number, "position", "warning", f"Position differs: expected {expected}, got {actual}",
                        expected, actual)
            )

        if not opts.ignore_pin_names and ref.name.lower() != gen.name.lower():
            diffs.append(
                PinDiff(ref.number, "name", "warning", f'Name differs: expected "{ref.name}", got "{gen.name}"',
                        ref.name, gen.name)
            )

        rot_diff = abs(ref.rotation - gen.rotation) % 360
        if 1 < rot_diff < 359:
            diffs.append(
                PinDiff(ref.number, "rotation", "info",
                        f"Rotation differs: expected {ref.rotation:g}, got {gen.rotation:g}",
                        f"{ref.rotation:g}", f"{gen.rotation:g}")
            )

        # An unspecified reference type carries no information
        if ref.electrical != "unspecified" and gen.electrical and ref.electrical != gen.electrical:
            diffs.append(
                PinDiff(ref.number, "electrical", "warning",
                        f"Electrical type differs: expected {ref.electrical}, got {gen.electrical}",
                        ref.electrical, gen.electrical)
            )

    if not opts.ignore_extra_pads:
        for i, gen in enumerate(generated.pins):
            if i in used:
                continue
            at_reference = any(abs(p.x - gen.x) < tol and abs(p.y - gen.y) < tol for p in reference.pins)
            if not at_reference:
                diffs.append(
                    PinDiff(gen.number, "extra", "warning", f"Extra pin {gen.number} ({gen.name}) in generated output")
                )

    pin_count_match = len(reference.pins) == len(generated.pins)
    has_errors = any(d.severity == "error" for d in diffs)
    return SymbolComparisonResult(
        passed=not has_errors and pin_count_match,
        pin_count_match=pin_count_match,
        reference_pin_count=len(reference.pins),
        generated_pin_count=len(generated.pins),
        diffs=diffs,
    )


def validate_symbol(
    reference_svg: str, kicad_text: str, options: Optional[ComparisonOptions] = None
) -> ValidationResult:
    """Extract both sides and compare them.  Never raises."""
    try:
        reference = extract_symbol_from_svg(reference_svg)
        generated = extract_symbol_from_kicad(kicad_text)
        result = compare_symbols(reference, generated, options)
    except Exception as e:
        logger.debug("Symbol validation failed", exc_info=True)
        return ValidationResult(kind="symbol", passed=False, error=str(e) or type(e).__name__)
    return ValidationResult(kind="symbol", passed=result.passed, symbol=result)


def format_symbol_comparison_result(result: SymbolComparisonResult) -> str:
    lines = [f"Symbol Comparison: {'PASS' if result.passed else 'FAIL'}", ""]
    lines.append(
        f"  Pin count: {result.generated_pin_count}/{result.reference_pin_count}"
        f" {'ok' if result.pin_count_match else 'MISMATCH'}"
    )
    lines.append("")

    errors = result.errors
    if errors:
        lines.append(f"  Errors ({len(errors)}):")
        for diff in errors:
            lines.append(f"    x Pin {diff.number}: {diff.message}")
        lines.append("")

    warnings = result.warnings
    if warnings:
        lines.append(f"  Warnings ({len(warnings)}):")
        for diff in warnings:
            lines.append(f"    ! Pin {diff.number}: {diff.message}")

    return "\n".join(lines)
