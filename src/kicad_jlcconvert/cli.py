#!/usr/bin/env python3
"""CLI tool for converting JLCPCB/EasyEDA component records to KiCad."""
import argparse
import logging
import os
import sys

from .easyeda.component import load_component_file
from .importer import install_component
from .kicad.category_router import get_footprint_reference, get_library_category, get_library_filename
from .kicad.footprint_mapper import map_to_kicad_footprint
from .kicad.footprint_writer import get_footprint
from .kicad.library import list_installed, load_config, sanitize_name
from .kicad.symbol_writer import convert_symbol, get_symbol_name
from .kicad.version import DEFAULT_KICAD_VERSION, SUPPORTED_VERSIONS, validate_kicad_version
from .validation import format_comparison_result, format_symbol_comparison_result, validate_footprint, validate_symbol


def _read(path: str) -> str:
    with open(path, encoding="utf-8") as f:
        return f.read()


def cmd_convert(args):
    """Convert one component record and show/save the output."""
    try:
        comp = load_component_file(args.record)
    except (OSError, ValueError) as e:
        print(f"  Error: {e}")
        return 1

    info = comp.info
    name = get_symbol_name(comp)
    print(f"\n  Component: {info.name}")
    print(f"  Prefix: {info.prefix}, Name: {name}, Package: {info.package or 'n/a'}")
    print(f"  Footprint: {len(comp.footprint.pads)} pads, {len(comp.footprint.tracks)} tracks")
    print(f"  Type: {'Through-hole' if comp.footprint.type == 'tht' else 'SMD'}")
    print(f"  Symbol: {len(comp.symbol.pins)} pins")

    fp = get_footprint(comp, strict=args.strict, kicad_version=args.kicad_version)
    if fp.type == "reference":
        print(f"  Using KiCad footprint: {fp.reference}")
        footprint_ref = fp.reference
    else:
        footprint_ref = get_footprint_reference(fp.name)
    sym_content = convert_symbol(comp, kicad_version=args.kicad_version, footprint_ref=footprint_ref)

    print()
    if args.output:
        os.makedirs(args.output, exist_ok=True)
        if fp.content:
            fp_path = os.path.join(args.output, f"{fp.name}.kicad_mod")
            with open(fp_path, "w", encoding="utf-8") as f:
                f.write(fp.content)
            print(f"  Saved: {fp_path}")
        sym_path = os.path.join(args.output, f"{sanitize_name(info.name)}.kicad_sym")
        with open(sym_path, "w", encoding="utf-8") as f:
            f.write(sym_content)
        print(f"  Saved: {sym_path}")
        return 0

    if args.show in ("footprint", "both"):
        if fp.content:
            print("  -- Footprint (.kicad_mod) --")
            print(fp.content)
        else:
            print(f"  (Built-in footprint {fp.reference}, nothing generated)")
    if args.show in ("symbol", "both"):
        print("  -- Symbol (.kicad_sym) --")
        print(sym_content)
    if not args.show:
        print(f"  Footprint: {len(fp.content)} bytes")
        print(f"  Symbol: {len(sym_content)} bytes")
        print("\n  Use --show footprint|symbol|both to see output")
        print("  Use -o <dir> to save files")
    return 0


def cmd_install(args):
    """Install component records into the category libraries."""
    lib_dir = args.lib_dir or load_config().get("lib_dir")
    if not lib_dir:
        print("  Error: no library directory (use --lib-dir or set lib_dir in jlcconvert.json)")
        return 1
    os.makedirs(lib_dir, exist_ok=True)

    failed = 0
    for path in args.records:
        try:
            comp = load_component_file(path)
            install_component(
                comp, lib_dir, force=args.force, strict=args.strict, kicad_version=args.kicad_version
            )
        except (OSError, ValueError) as e:
            print(f"  Error: {path}: {e}")
            failed += 1
    return 1 if failed else 0


def cmd_list(args):
    """List installed symbols with their LCSC part numbers."""
    lib_dir = args.lib_dir or load_config().get("lib_dir")
    if not lib_dir:
        print("  Error: no library directory (use --lib-dir or set lib_dir in jlcconvert.json)")
        return 1
    installed = list_installed(lib_dir)
    if not installed:
        print("  No installed symbols.")
        return 0
    print(f"  {'Category':<14} {'LCSC':<12} Symbol")
    for item in installed:
        print(f"  {item.category:<14} {item.lcsc_id or '-':<12} {item.name}")
    return 0


def cmd_validate_footprint(args):
    """Compare a generated footprint with a JLCPCB reference SVG."""
    result = validate_footprint(_read(args.reference), _read(args.footprint))
    if result.error:
        print(f"  Error: {result.error}")
        return 1
    print(format_comparison_result(result.footprint))
    return 0 if result.passed else 1


def cmd_validate_symbol(args):
    """Compare a generated symbol with a JLCPCB reference SVG."""
    result = validate_symbol(_read(args.reference), _read(args.symbol))
    if result.error:
        print(f"  Error: {result.error}")
        return 1
    print(format_symbol_comparison_result(result.symbol))
    return 0 if result.passed else 1


def cmd_category(args):
    """Show the library and built-in footprint a component would be routed to."""
    category = get_library_category(args.prefix, args.category, args.description)
    print(f"  Category: {category}")
    print(f"  Library: {get_library_filename(category)}")
    if args.package:
        mapping = map_to_kicad_footprint(args.package, args.prefix, args.category, args.description)
        if mapping:
            print(f"  Footprint: {mapping.library}:{mapping.footprint}")
        else:
            print("  Footprint: generated")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="jlcconvert",
        description="JLCConvert CLI - convert EasyEDA/JLCPCB components to KiCad libraries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  %(prog)s convert C25804.json
  %(prog)s convert C25804.json --show both
  %(prog)s convert C427602.json -o ./output
  %(prog)s install C25804.json C427602.json --lib-dir ./libs
  %(prog)s list --lib-dir ./libs
  %(prog)s validate-footprint C427602.svg ./output/SOIC-8.kicad_mod
  %(prog)s category U --description "LDO voltage regulator"
""")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--kicad-version", type=int, choices=SUPPORTED_VERSIONS, default=None,
                        help="Target KiCad version (default: from config)")

    sub = parser.add_subparsers(dest="command")

    cp = sub.add_parser("convert", aliases=["c"], help="Convert a saved component record")
    cp.add_argument("record", help="Component record JSON file")
    cp.add_argument("--show", choices=["footprint", "symbol", "both"], help="Print generated output")
    cp.add_argument("-o", "--output", help="Directory to save output files")
    cp.add_argument("--no-strict", dest="strict", action="store_false",
                    help="Allow built-in footprints from the package name alone")
    cp.set_defaults(func=cmd_convert)

    ip = sub.add_parser("install", aliases=["i"], help="Install records into the category libraries")
    ip.add_argument("records", nargs="+", help="Component record JSON files")
    ip.add_argument("--lib-dir", help="Library directory (default: lib_dir from config)")
    ip.add_argument("--force", action="store_true", help="Replace symbols and footprints that exist")
    ip.add_argument("--no-strict", dest="strict", action="store_false",
                    help="Allow built-in footprints from the package name alone")
    ip.set_defaults(func=cmd_install)

    lp = sub.add_parser("list", help="List installed symbols")
    lp.add_argument("--lib-dir", help="Library directory (default: lib_dir from config)")
    lp.set_defaults(func=cmd_list)

    vf = sub.add_parser("validate-footprint", help="Compare a .kicad_mod with a reference SVG")
    vf.add_argument("reference", help="Reference footprint SVG")
    vf.add_argument("footprint", help="Generated .kicad_mod file")
    vf.set_defaults(func=cmd_validate_footprint)

    vs = sub.add_parser("validate-symbol", help="Compare a .kicad_sym with a reference SVG")
    vs.add_argument("reference", help="Reference symbol SVG")
    vs.add_argument("symbol", help="Generated .kicad_sym file")
    vs.set_defaults(func=cmd_validate_symbol)

    gp = sub.add_parser("category", help="Show where a component would be installed")
    gp.add_argument("prefix", help="Reference prefix (e.g. R, U)")
    gp.add_argument("--category", default="", help="Catalogue category text")
    gp.add_argument("--description", default="", help="Component description")
    gp.add_argument("--package", default="", help="Package name, to check for a built-in footprint")
    gp.set_defaults(func=cmd_category)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if not args.command:
        parser.print_help()
        return 0

    if args.kicad_version is None:
        args.kicad_version = validate_kicad_version(load_config().get("kicad_version", DEFAULT_KICAD_VERSION))
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
