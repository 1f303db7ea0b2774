"""SVG elliptical arc math: endpoint parameterisation to center parameterisation.

Follows the conversion in the SVG implementation notes (appendix B.2.4).
Used by the symbol and footprint writers to recover true arcs and by the
footprint writer to flatten arc segments of region outlines.
"""
import math
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

_ARC_PATH_RE = re.compile(
    r"M\s*(-?[\d.]+)\s+(-?[\d.]+)\s*A\s*(-?[\d.]+)\s+(-?[\d.]+)\s+(-?[\d.]+)"
    r"\s+([01])\s+([01])\s+(-?[\d.]+)\s+(-?[\d.]+)",
    re.IGNORECASE,
)


@dataclass
class ArcPath:
    """An arc in SVG endpoint form."""

    x1: float
    y1: float
    rx: float
    ry: float
    phi: float  # x-axis rotation, degrees
    large_arc: bool
    sweep: bool
    x2: float
    y2: float


@dataclass
class ArcParams:
    """An arc in center form.  Angles are radians; a negative delta runs clockwise."""

    cx: float
    cy: float
    rx: float
    ry: float
    start_angle: float
    end_angle: float
    delta_angle: float


def _vector_angle(ux: float, uy: float, vx: float, vy: float) -> float:
    """Signed angle from vector u to vector v."""
    dot = ux * vx + uy * vy
    length = math.hypot(ux, uy) * math.hypot(vx, vy)
    angle = math.acos(max(-1.0, min(1.0, dot / length)))
    if ux * vy - uy * vx < 0:
        angle = -angle
    return angle


def svg_arc_to_center(
    x1: float,
    y1: float,
    rx: float,
    ry: float,
    phi: float,
    large_arc: bool,
    sweep: bool,
    x2: float,
    y2: float,
) -> Optional[ArcParams]:
    """Convert an SVG endpoint arc to center parameters.

    Returns None when the arc is degenerate (a zero radius or coincident
    endpoints), in which case the caller should treat it as a straight line.
    Radii too small to span the chord are scaled up.
    """
    rx = abs(rx)
    ry = abs(ry)
    if rx == 0 or ry == 0:
        return None
    if x1 == x2 and y1 == y2:
        return None

    phi_rad = math.radians(phi)
    cos_phi = math.cos(phi_rad)
    sin_phi = math.sin(phi_rad)

    # Midpoint in the rotated frame
    dx = (x1 - x2) / 2
    dy = (y1 - y2) / 2
    x1p = cos_phi * dx + sin_phi * dy
    y1p = -sin_phi * dx + cos_phi * dy

    lam = (x1p * x1p) / (rx * rx) + (y1p * y1p) / (ry * ry)
    if lam > 1:
        scale = math.sqrt(lam)
        rx *= scale
        ry *= scale

    rx2 = rx * rx
    ry2 = ry * ry
    x1p2 = x1p * x1p
    y1p2 = y1p * y1p

    sq = (rx2 * ry2 - rx2 * y1p2 - ry2 * x1p2) / (rx2 * y1p2 + ry2 * x1p2)
    sq = max(sq, 0.0)
    coef = math.sqrt(sq)
    if bool(large_arc) == bool(sweep):
        coef = -coef

    cxp = coef * (rx * y1p / ry)
    cyp = coef * -(ry * x1p / rx)

    cx = cos_phi * cxp - sin_phi * cyp + (x1 + x2) / 2
    cy = sin_phi * cxp + cos_phi * cyp + (y1 + y2) / 2

    ux = (x1p - cxp) / rx
    uy = (y1p - cyp) / ry
    vx = (-x1p - cxp) / rx
    vy = (-y1p - cyp) / ry

    start_angle = _vector_angle(1.0, 0.0, ux, uy)
    delta_angle = _vector_angle(ux, uy, vx, vy)
    if not sweep and delta_angle > 0:
        delta_angle -= 2 * math.pi
    elif sweep and delta_angle < 0:
        delta_angle += 2 * math.pi

    return ArcParams(
        cx=cx,
        cy=cy,
        rx=rx,
        ry=ry,
        start_angle=start_angle,
        end_angle=start_angle + delta_angle,
        delta_angle=delta_angle,
    )


def arc_path_to_center(arc: ArcPath) -> Optional[ArcParams]:
    """svg_arc_to_center() for a parsed ArcPath."""
    return svg_arc_to_center(
        arc.x1, arc.y1, arc.rx, arc.ry, arc.phi, arc.large_arc, arc.sweep, arc.x2, arc.y2
    )


def parse_svg_arc_path(path: str) -> Optional[ArcPath]:
    """Parse ``M x y A rx ry phi large sweep x y``; commas are accepted as separators."""
    normalized = re.sub(r"\s+", " ", path.replace(",", " ")).strip()
    match = _ARC_PATH_RE.search(normalized)
    if not match:
        return None
    try:
        return ArcPath(
            x1=float(match.group(1)),
            y1=float(match.group(2)),
            rx=float(match.group(3)),
            ry=float(match.group(4)),
            phi=float(match.group(5)),
            large_arc=match.group(6) == "1",
            sweep=match.group(7) == "1",
            x2=float(match.group(8)),
            y2=float(match.group(9)),
        )
    except ValueError:
        return None


def point_at_angle(params: ArcParams, angle: float, phi: float = 0.0) -> Tuple[float, float]:
    """Point on the arc's ellipse at *angle* (radians), rotated by *phi* degrees."""
    phi_rad = math.radians(phi)
    px = params.rx * math.cos(angle)
    py = params.ry * math.sin(angle)
    x = math.cos(phi_rad) * px - math.sin(phi_rad) * py + params.cx
    y = math.sin(phi_rad) * px + math.cos(phi_rad) * py + params.cy
    return x, y


def arc_midpoint(params: ArcParams, phi: float = 0.0) -> Tuple[float, float]:
    """Point halfway along the arc sweep."""
    return point_at_angle(params, params.start_angle + params.delta_angle / 2, phi)


def interpolate_arc(arc: ArcPath, segments_per_quarter: int = 4) -> List[Tuple[float, float]]:
    """Sample an arc into polyline points, excluding the start point.

    A degenerate arc yields just its endpoint.
    """
    params = arc_path_to_center(arc)
    if params is None:
        return [(arc.x2, arc.y2)]

    degrees = abs(rad_to_deg(params.delta_angle))
    count = max(2, math.ceil(degrees / 90 * segments_per_quarter))
    points = []
    for i in range(1, count + 1):
        angle = params.start_angle + params.delta_angle * (i / count)
        points.append(point_at_angle(params, angle, arc.phi))
    return points


def rad_to_deg(rad: float) -> float:
    return rad * 180 / math.pi


def normalize_angle(degrees: float) -> float:
    """Wrap an angle into [0, 360)."""
    degrees = math.fmod(degrees, 360.0)
    if degrees < 0:
        degrees += 360.0
    return degrees
