#!/usr/bin/env python3
"""
Load a visit schedule workbook and (re)build the SQLite store used by the
Streamlit browser (visit_browser/visit_streamlit_app.py).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from visit_browser.visit_db import populate_database
from visit_common.config import load_settings
from visit_common.load import load_data
from visit_common.messages import MessageCollector, run_collecting


def configure_logging(verbosity: int) -> None:
    level = logging.DEBUG if verbosity > 0 else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Populate the visit SQLite database from a schedule workbook.",
    )
    parser.add_argument("input", type=Path, help="Path to the schedule workbook (.xlsx).")
    parser.add_argument(
        "--db-path",
        type=Path,
        default=None,
        help="Destination SQLite database (default: $VISIT_DB_PATH or the config's db_path).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config with load options (default: $VISIT_CONFIG or ./visit.yaml).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (repeatable).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = load_settings(args.config)
    except ValueError as e:
        logging.error(f"Failed to load config: {e}")
        return 1

    if not args.input.exists():
        logging.error(f"Input file not found: {args.input}")
        return 1

    db_path = args.db_path or settings.db_path
    collector = MessageCollector()

    def populate() -> None:
        data = load_data(args.input, settings.load_options, collector)
        populate_database(data, db_path, tz_name=settings.timezone, collector=collector)

    if not run_collecting(populate, collector).success:
        logging.error(f"Failed to populate {db_path}")
        return 1

    if collector.has_errors:
        logging.warning(f"Database populated with {len(collector.of_type('error'))} reported problems")
    logging.info(f"Successfully populated database at {db_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
