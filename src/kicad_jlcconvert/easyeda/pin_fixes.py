"""Pin corrections applied to a parsed symbol before regeneration."""

from dataclasses import dataclass
from typing import List, Optional

from .ee_types import EEPin, EESymbol

ACTIONS = ("modify", "swap", "add", "remove")

# KiCad electrical type name -> EasyEDA pin type code
_TYPE_CODES = {
    "unspecified": "0",
    "input": "1",
    "output": "2",
    "bidirectional": "3",
    "power_in": "4",
    "power_out": "5",
    "open_collector": "6",
    "open_emitter": "7",
    "passive": "8",
    "no_connect": "9",
    "unconnected": "9",
}

# Spacing for appended pins, EasyEDA units
_ADDED_PIN_PITCH = 10.0


@dataclass
class NewPin:
    number: str
    name: str
    type: str = "passive"


@dataclass
class PinCorrection:
    action: str
    pin_number: str = ""
    new_name: Optional[str] = None
    new_type: Optional[str] = None
    swap_with: str = ""
    new_pin: Optional[NewPin] = None


def type_code(electrical_type: str) -> str:
    """Accept a KiCad type name or an EasyEDA code and return the EasyEDA code."""
    value = electrical_type.strip().lower()
    if value in _TYPE_CODES:
        return _TYPE_CODES[value]
    if value in _TYPE_CODES.values():
        return value
    raise ValueError(f"Unknown pin type: {electrical_type}")


def _find_pin(symbol: EESymbol, number: str) -> EEPin:
    for pin in symbol.pins:
        if pin.number == number:
            return pin
    raise KeyError(f"Pin {number} not found")


def apply_pin_corrections(symbol: EESymbol, corrections: List[PinCorrection]) -> int:
    """Apply corrections to ``symbol.pins`` in place.

    ``swap`` exchanges the placement of two pins so each number lands where
    the other was drawn.  ``add`` places the new pin one pitch below the
    lowest existing pin.

    Returns the number of corrections applied.  Raises KeyError for a pin
    number that does not exist and ValueError for an unknown action or type.
    """
    applied = 0
    for corr in corrections:
        if corr.action == "modify":
            pin = _find_pin(symbol, corr.pin_number)
            if corr.new_name is not None:
                pin.name = corr.new_name
            if corr.new_type is not None:
                pin.electrical_type = type_code(corr.new_type)
        elif corr.action == "swap":
            a = _find_pin(symbol, corr.pin_number)
            b = _find_pin(symbol, corr.swap_with)
            a.x, b.x = b.x, a.x
            a.y, b.y = b.y, a.y
            a.rotation, b.rotation = b.rotation, a.rotation
            a.pin_length, b.pin_length = b.pin_length, a.pin_length
        elif corr.action == "add":
            if corr.new_pin is None:
                raise ValueError("add correction requires new_pin")
            new = corr.new_pin
            if symbol.pins:
                x = min(p.x for p in symbol.pins)
                y = max(p.y for p in symbol.pins) + _ADDED_PIN_PITCH
            else:
                x, y = 0.0, 0.0
            symbol.pins.append(
                EEPin(number=new.number, name=new.name, electrical_type=type_code(new.type), x=x, y=y)
            )
        elif corr.action == "remove":
            pin = _find_pin(symbol, corr.pin_number)
            symbol.pins.remove(pin)
        else:
            raise ValueError(f"Unknown correction action: {corr.action}")
        applied += 1
    return applied
