#!/usr/bin/env python
"""
sheet-mapper - CLI entry point.

Usage:
    # Print the header row derived from a record type
    python -m sheet_mapper.main headers mypackage.models:Person

    # Read a sheet into records and print one JSON object per row
    python -m sheet_mapper.main dump people.xlsx mypackage.models:Person [--sheet People] [--config config.yaml]
"""

import argparse
import dataclasses
import importlib
import json
import logging
import sys

from .config import load_config
from .errors import SheetMapperError
from .reader import SpreadsheetReader
from .schema import derive_headers, derive_sheet_name


def setup_logging(level_str: str = "INFO"):
    """Configure logging."""
    level = getattr(logging, level_str.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )


def import_record_type(dotted: str):
    """Resolve ``package.module:ClassName``."""
    module_name, sep, attr = dotted.partition(":")
    if not sep or not attr:
        raise argparse.ArgumentTypeError(
            f"Record type must look like 'package.module:ClassName', got {dotted!r}")
    try:
        obj = importlib.import_module(module_name)
        for part in attr.split("."):
            obj = getattr(obj, part)
    except (ImportError, AttributeError) as exc:
        raise argparse.ArgumentTypeError(f"Cannot import {dotted!r}: {exc}") from exc
    return obj


def _record_to_dict(record):
    if dataclasses.is_dataclass(record):
        return dataclasses.asdict(record)
    return dict(vars(record))


def cmd_headers(args, config):
    headers = derive_headers(args.record_type)
    sheet_name = derive_sheet_name(args.record_type)
    if sheet_name:
        print(f"# sheet: {sheet_name}")
    print("\t".join(headers))
    return 0


def cmd_dump(args, config):
    logger = logging.getLogger(__name__)

    def on_row(row_index, record):
        print(json.dumps({"row": row_index, **_record_to_dict(record)}, default=str))

    def on_error(row_index, error):
        logger.error(f"Row {row_index}: {error}")

    sheet = args.sheet
    if sheet is not None and sheet.isdigit():
        sheet = int(sheet)

    with SpreadsheetReader.from_config(args.workbook, config, error_listener=on_error) as reader:
        count = reader.read(args.record_type, on_row, sheet)
    logger.info(f"Dumped {count} rows from {args.workbook}")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        description="Map records to spreadsheet rows and back"
    )
    parser.add_argument("--config", default=None, help="Path to config YAML file")
    parser.add_argument(
        "--log-level", type=str, default=None,
        help="Logging level: DEBUG, INFO, WARNING, ERROR",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # ---- headers ----
    p_headers = sub.add_parser("headers", help="Print the header row of a record type")
    p_headers.add_argument("record_type", type=import_record_type,
                           help="Record type as package.module:ClassName")
    p_headers.set_defaults(func=cmd_headers)

    # ---- dump ----
    p_dump = sub.add_parser("dump", help="Read a sheet and print its records as JSON lines")
    p_dump.add_argument("workbook", help="Path to the workbook (.xlsx)")
    p_dump.add_argument("record_type", type=import_record_type,
                        help="Record type as package.module:ClassName")
    p_dump.add_argument("--sheet", default=None,
                        help="Sheet name or zero-based index (default: declared or first sheet)")
    p_dump.set_defaults(func=cmd_dump)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except SheetMapperError as exc:
        parser.error(str(exc))
    setup_logging(args.log_level or config.get("log_level", "INFO"))

    try:
        return args.func(args, config)
    except SheetMapperError as exc:
        logging.getLogger(__name__).error(str(exc))
        return 1


if __name__ == "__main__":
    sys.exit(main())
