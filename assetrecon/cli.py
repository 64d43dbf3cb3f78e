from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError

from .config import Settings, load_config
from .errors import AssetReconError, InputError
from .workflows import (
    export_blue_hierarchy,
    export_red_hierarchy,
    generate_comparison,
    import_code_mapping,
    resolve_new_codes,
)

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="assetrecon", description="Blue/red asset hierarchy export and reconciliation")
    parser.add_argument("--config", default="config.yaml")
    parser.add_argument("--area", help="Management area; overrides the config value")
    parser.add_argument("--log-level", default="INFO")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("blue-hierarchy", help="Export level-1 blue assets and their direct children")
    commands.add_parser("red-hierarchy", help="Export red assets from the -99 level down three levels")
    commands.add_parser("compare", help="Build blue-first and red-first comparison tables from the latest exports")

    imp = commands.add_parser("import-codes", help="Load an old-code -> new-code mapping sheet")
    imp.add_argument("file", nargs="?", default="code_mapping.xlsx")
    mode = imp.add_mutually_exclusive_group()
    mode.add_argument("--clear", "-c", dest="clear", action="store_true", default=True,
                      help="Delete existing mappings before importing (default)")
    mode.add_argument("--append", "-a", dest="clear", action="store_false",
                      help="Keep existing mappings and upsert on top")

    res = commands.add_parser("resolve-codes", help="Look up the new asset for each old code in a sheet")
    res.add_argument("file")
    return parser


def _report(path) -> None:
    if path:
        LOGGER.info("Wrote %s", path)
    else:
        LOGGER.warning("Nothing to export")


def _dispatch(args: argparse.Namespace, settings: Settings) -> None:
    if args.command == "blue-hierarchy":
        _report(export_blue_hierarchy(settings))
    elif args.command == "red-hierarchy":
        _report(export_red_hierarchy(settings))
    elif args.command == "compare":
        blue, red = generate_comparison(settings)
        LOGGER.info("Wrote %s and %s", blue, red)
    elif args.command == "import-codes":
        if not Path(args.file).exists():
            raise InputError(f'Mapping file "{args.file}" does not exist')
        LOGGER.info("Importing %s (clear existing: %s)", args.file, "yes" if args.clear else "no")
        counts, summary = import_code_mapping(settings, args.file, clear_existing=args.clear)
        LOGGER.info("Inserted %d, updated %d; summary %s", counts.inserted, counts.updated, summary)
    elif args.command == "resolve-codes":
        if not Path(args.file).exists():
            raise InputError(f'Input file "{args.file}" does not exist')
        LOGGER.info("Wrote %s", resolve_new_codes(settings, args.file))


def run(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="%(levelname)s %(name)s: %(message)s")
    try:
        settings = Settings.from_config(load_config(args.config), area=args.area)
        _dispatch(args, settings)
    except (AssetReconError, SQLAlchemyError) as exc:
        LOGGER.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
