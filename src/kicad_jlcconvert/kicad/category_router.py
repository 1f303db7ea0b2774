"""Route components into per-category symbol libraries.

A component lands in exactly one of fifteen categories.  The reference
prefix decides first; otherwise ordered keyword rules are matched against
the category and description text, most specific category first.
"""
import re
from typing import List, Optional, Tuple

LIBRARY_PREFIX = "JLC-MCP"

CATEGORIES = (
    "Resistors",
    "Capacitors",
    "Inductors",
    "Diodes",
    "Transistors",
    "Crystals",
    "Power",
    "MCUs",
    "Memory",
    "Sensors",
    "Interface",
    "Optocouplers",
    "Connectors",
    "ICs",
    "Misc",
)

PREFIX_CATEGORIES = {
    "R": "Resistors",
    "C": "Capacitors",
    "L": "Inductors",
    "FB": "Inductors",
    "D": "Diodes",
    "Q": "Transistors",
    "Y": "Crystals",
    "X": "Crystals",
    "J": "Connectors",
    "P": "Connectors",
    "RJ": "Connectors",
    "K": "Misc",
    "F": "Misc",
}

# Checked in order; the first category with a matching keyword wins.
KEYWORD_RULES: List[Tuple[str, Tuple[str, ...]]] = [
    ("MCUs", (
        "mcu", "microcontroller", "microprocessor", "stm32", "stm8", "esp32", "esp8266",
        "atmega", "attiny", "pic16", "pic18", "pic32", "nrf52", "nrf51", "rp2040",
        "arm cortex", "risc-v", "riscv", "arduino", "samd", "sam3", "sam4", "lpc", "gd32",
        "ch32", "n76e", "nuvoton", "renesas", "cy8c", "psoc",
    )),
    ("Memory", (
        "memory", "flash memory", "eeprom", "sram", "dram", "sdram", "fram", "nvram",
        "nand", "nor flash", "w25q", "w25n", "at24c", "at25", "is62", "is61", "as4c",
        "m24c", "mx25", "gd25", "s25fl", "mt48", "cy62",
    )),
    ("Power", (
        "voltage regulator", "regulator", "ldo", "dcdc", "dc-dc", "dc/dc", "buck converter",
        "boost converter", "buck-boost", "pmic", "voltage reference", "power management",
        "battery charger", "charge controller", "power switch", "load switch", "hot swap",
        "ams1117", "lm7805", "lm317", "ap2112", "mp1584", "mp2359", "tps6", "tps7",
        "rt8059", "xl4015", "lm2596", "ap3216", "sy8088", "me6211", "ht7333", "ht7533",
        "xc6206",
    )),
    ("Sensors", (
        "sensor", "accelerometer", "gyroscope", "magnetometer", "imu", "temperature sensor",
        "humidity sensor", "pressure sensor", "proximity sensor", "hall effect",
        "hall sensor", "current sense", "current sensor", "light sensor", "ambient light",
        "color sensor", "gas sensor", "bme280", "bmp280", "bme680", "mpu6050", "mpu9250",
        "lis3dh", "adxl345", "hmc5883", "qmc5883", "dht11", "dht22", "ds18b20", "sht30",
        "sht40", "ina219", "ina226", "apds9960", "tsl2561", "veml6070", "max30102",
        "mlx90614",
    )),
    ("Interface", (
        "interface ic", "transceiver", "level shifter", "level translator", "uart", "usart",
        "usb controller", "usb hub", "usb switch", "usb protection", "i2c expander",
        "io expander", "spi", "can transceiver", "can controller", "rs485", "rs-485",
        "rs232", "rs-232", "ethernet phy", "phy", "hdmi", "lvds", "ch340", "ch341",
        "cp2102", "cp2104", "ft232", "ft2232", "max485", "max3485", "max232", "sp3485",
        "sn65hvd", "tja1050", "mcp2515", "mcp2551", "pca9685", "tca9548", "pcf8574",
        "mcp23017", "enc28j60", "w5500", "lan8720", "dp83848", "usb3300", "tusb",
    )),
    ("Optocouplers", (
        "optocoupler", "optoisolator", "photocoupler", "opto-isolator", "opto isolator",
        "optical isolator", "pc817", "pc357", "el817", "tlp181", "tlp281", "tlp291",
        "6n137", "6n136", "hcpl", "acpl", "vo617", "ps2801", "ps2501", "moc3021",
        "moc3041", "4n25", "4n35",
    )),
    ("Crystals", (
        "crystal", "oscillator", "resonator", "xtal", "tcxo", "vcxo", "ocxo",
        "mems oscillator", "clock generator", "rtc crystal", "ceramic resonator",
    )),
    ("Connectors", (
        "connector", "header", "socket", "terminal", "terminal block", "jack", "plug",
        "receptacle", "usb-c", "usb type-c", "micro usb", "mini usb", "usb-a", "usb-b",
        "hdmi connector", "rj45", "rj11", "barrel jack", "dc jack", "audio jack", "jst",
        "jst-xh", "jst-ph", "molex", "dupont", "pin header", "female header", "fpc", "ffc",
        "sim card", "sd card", "microsd", "pogo pin", "spring contact", "test point",
        "ethernet connector", "modular connector",
    )),
    ("Transistors", (
        "transistor", "mosfet", "bjt", "jfet", "igbt", "darlington", "n-channel",
        "p-channel", "n channel", "p channel", "npn", "pnp", "2n2222", "2n3904", "2n3906",
        "2n7002", "irf", "irfz", "ao3400", "ao3401", "si2301", "si2302", "bss138",
        "bc847", "bc857", "s8050", "s8550", "tip120", "tip122",
    )),
    ("Diodes", (
        "diode", "led", "zener", "schottky", "tvs", "esd protection", "esd diode",
        "rectifier", "bridge rectifier", "photodiode", "laser diode", "varactor", "1n4148",
        "1n4007", "1n5819", "ss14", "ss34", "ss54", "bat54", "b5819", "ws2812", "sk6812",
        "apa102", "smaj", "smbj", "pesd", "usblc6", "prtr5v0",
    )),
    ("Inductors", (
        "inductor", "ferrite bead", "ferrite", "choke", "coil", "transformer",
        "common mode",
    )),
    ("Capacitors", (
        "capacitor", "supercap", "ultracap", "mlcc", "electrolytic", "tantalum",
        "ceramic cap", "film cap", "polymer cap",
    )),
    ("Resistors", (
        "resistor", "thermistor", "ntc", "ptc", "potentiometer", "varistor", "rheostat",
        "shunt resistor", "current sense resistor", "chip resistor",
    )),
    ("ICs", (
        "ic", "integrated circuit", "op amp", "opamp", "operational amplifier",
        "comparator", "amplifier", "audio amplifier", "adc", "dac", "analog to digital",
        "digital to analog", "timer", "555 timer", "ne555", "logic gate", "flip-flop",
        "shift register", "multiplexer", "demux", "demultiplexer", "buffer", "driver",
        "gate driver", "motor driver", "led driver", "display driver", "codec", "mixer",
        "pll", "phase lock", "dds", "fpga", "cpld", "asic", "logic ic", "74hc", "74ls",
        "74ahc", "cd4", "lm358", "lm324", "ne5532", "tl072", "tl084", "opa2134", "ad8",
        "max9", "uln2003", "l293", "drv8", "a4988", "tmc2",
    )),
]

_LIBRARY_NAME_RE = re.compile(r"^" + re.escape(LIBRARY_PREFIX) + r"-(\w+)$")


def normalize_text(text: str) -> str:
    """Lowercase, turn separators into spaces and drop other punctuation."""
    text = text.lower()
    text = re.sub(r"[-_/\\]", " ", text)
    text = re.sub(r"[^a-z0-9\s]", "", text)
    return re.sub(r"\s+", " ", text).strip()


def _clean_prefix(prefix: str) -> str:
    return re.sub(r"[^A-Za-z0-9]", "", prefix).upper()


def _matches(keyword: str, text: str, words: set) -> bool:
    norm = normalize_text(keyword)
    if not norm:
        return False
    return norm in text or norm in words


def get_library_category(
    prefix: Optional[str] = None,
    category: Optional[str] = None,
    description: Optional[str] = None,
) -> str:
    """Pick the library category for a component."""
    if prefix:
        clean = _clean_prefix(prefix)
        if clean[:2] in PREFIX_CATEGORIES:
            return PREFIX_CATEGORIES[clean[:2]]
        if clean[:1] in PREFIX_CATEGORIES:
            return PREFIX_CATEGORIES[clean[:1]]

    text = normalize_text(f"{category or ''} {description or ''}")
    if text:
        words = set(text.split(" "))
        for cat, keywords in KEYWORD_RULES:
            if any(_matches(kw, text, words) for kw in keywords):
                return cat

    return "Misc"


def get_library_filename(category: str) -> str:
    """E.g. ``JLC-MCP-Resistors.kicad_sym``."""
    return f"{LIBRARY_PREFIX}-{category}.kicad_sym"


def get_footprint_dir_name() -> str:
    return f"{LIBRARY_PREFIX}.pretty"


def get_3d_models_dir_name() -> str:
    return f"{LIBRARY_PREFIX}.3dshapes"


def get_symbol_library_name(category: str) -> str:
    return f"{LIBRARY_PREFIX}-{category}"


def get_symbol_reference(category: str, symbol_name: str) -> str:
    """Library-qualified symbol reference, ``JLC-MCP-<Category>:<name>``."""
    return f"{get_symbol_library_name(category)}:{symbol_name}"


def get_footprint_reference(footprint_name: str) -> str:
    return f"{LIBRARY_PREFIX}:{footprint_name}"


def get_all_categories() -> List[str]:
    return list(CATEGORIES)


def parse_library_name(library_name: str) -> Optional[str]:
    """Return the category encoded in a library name, or None."""
    match = _LIBRARY_NAME_RE.match(library_name)
    if match and match.group(1) in CATEGORIES:
        return match.group(1)
    return None
