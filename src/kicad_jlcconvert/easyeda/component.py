"""Component records: decode raw EasyEDA API results into ComponentData."""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .ee_types import EE3DModel, EEFootprint, EESymbol
from .parser import associate_pin_names_from_texts, parse_footprint_shapes, parse_symbol_shapes


class ComponentNotFoundError(Exception):
    """Raised when no component record exists for an LCSC part number."""

    pass


@dataclass
class ComponentInfo:
    name: str
    prefix: str = "U"
    package: str = ""
    manufacturer: str = ""
    datasheet: str = ""  # product page URL
    datasheet_pdf: str = ""
    lcsc_id: str = ""
    jlc_id: str = ""
    description: str = ""
    category: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)
    stock: Optional[int] = None
    price: Optional[float] = None
    min_order_qty: Optional[int] = None
    process: str = ""
    part_class: str = ""
    part_number: str = ""


@dataclass
class ComponentData:
    info: ComponentInfo
    symbol: EESymbol
    footprint: EEFootprint
    model3d: Optional[EE3DModel] = None


def validate_lcsc_id(lcsc_id: str) -> str:
    """Validate and normalize an LCSC part number.

    Raises ValueError if the ID doesn't match the expected C<digits> format.
    """
    lcsc_id = lcsc_id.strip().upper()
    if not lcsc_id.startswith("C"):
        lcsc_id = "C" + lcsc_id
    if not re.match(r"^C\d{1,12}$", lcsc_id):
        raise ValueError(f"Invalid LCSC part number: {lcsc_id}")
    return lcsc_id


def _origin(data_str: dict) -> tuple:
    head = data_str.get("head", {}) or {}
    return _to_float(head.get("x")), _to_float(head.get("y"))


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _bom_attributes(c_para: dict) -> Dict[str, str]:
    """Collect ``BOM_*`` fields as extra attributes, e.g. BOM_Resistance -> Resistance."""
    attributes = {}
    for key, value in c_para.items():
        if not key.startswith("BOM_") or not value or not isinstance(value, str):
            continue
        clean = key[len("BOM_"):]
        if clean in ("Manufacturer", "JLCPCB Part Class"):
            continue
        attributes[clean] = value
    return attributes


def component_from_record(record: Dict[str, Any], lcsc_id: str = "") -> ComponentData:
    """Build ComponentData from a raw EasyEDA component API result.

    The record carries the symbol document in ``dataStr``, the footprint
    document in ``packageDetail.dataStr`` and catalogue data in ``lcsc``.
    """
    data_str = record.get("dataStr") or {}
    c_para = (data_str.get("head") or {}).get("c_para") or {}
    package_detail = record.get("packageDetail") or {}
    fp_data_str = package_detail.get("dataStr") or {}
    fp_c_para = (fp_data_str.get("head") or {}).get("c_para") or {}
    lcsc = record.get("lcsc") or {}

    sym_x, sym_y = _origin(data_str)
    fp_x, fp_y = _origin(fp_data_str)

    symbol = parse_symbol_shapes(data_str.get("shape") or [], sym_x, sym_y)
    associate_pin_names_from_texts(symbol)
    package = c_para.get("package") or fp_c_para.get("package") or ""
    footprint = parse_footprint_shapes(
        fp_data_str.get("shape") or [], fp_x, fp_y, name=fp_c_para.get("package") or "Unknown"
    )

    link = c_para.get("link", "")
    datasheet_pdf = record.get("datasheetPdf") or (link if link.lower().endswith(".pdf") else "")
    if datasheet_pdf.startswith("//"):
        datasheet_pdf = "https:" + datasheet_pdf

    lcsc_number = lcsc.get("number") or lcsc_id
    info = ComponentInfo(
        name=c_para.get("name") or lcsc_number,
        prefix=c_para.get("pre") or "U",
        package=package,
        manufacturer=c_para.get("BOM_Manufacturer") or c_para.get("Manufacturer") or "",
        datasheet=lcsc.get("url") or "",
        datasheet_pdf=datasheet_pdf,
        lcsc_id=lcsc_number,
        jlc_id=c_para.get("BOM_JLCPCB Part Class") or "",
        description=record.get("title") or c_para.get("name") or "",
        category=record.get("category") or "",
        attributes=_bom_attributes(c_para),
        stock=lcsc.get("stock"),
        price=lcsc.get("price"),
        min_order_qty=lcsc.get("min"),
        process="SMT" if record.get("SMT") else "THT",
        part_class=c_para.get("JLCPCB Part Class") or "",
        part_number=c_para.get("Manufacturer Part") or "",
    )
    return ComponentData(info=info, symbol=symbol, footprint=footprint, model3d=footprint.model)


def load_component_file(path: str) -> ComponentData:
    """Load a component record saved as JSON.

    Accepts either the bare API result or a response wrapper with a
    ``result`` key.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict) and isinstance(data.get("result"), dict):
        data = data["result"]
    if not isinstance(data, dict):
        raise ValueError(f"Not a component record: {path}")
    return component_from_record(data)
