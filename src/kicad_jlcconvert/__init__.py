"""Convert EasyEDA/JLCPCB components into KiCad symbol and footprint libraries."""

__version__ = "1.0.0"
