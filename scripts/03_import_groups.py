#!/usr/bin/env python3
"""
03_import_groups.py - Bulk-create groups from a sheet.

One row per group; the courses column lists course ids. Unknown course ids
are skipped, and a row without any known course is reported as an error.

Usage:
  python scripts/03_import_groups.py --file groups.csv --teacher-id t1
  python scripts/03_import_groups.py --template groups_template.xlsx
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from aulafeed import config
from aulafeed.classroom import ClassroomStore, CourseService, GroupService
from aulafeed.utils import import_groups, parse_group_rows, read_sheet, write_template

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Import groups from an Excel or CSV sheet",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--file", type=Path, help="Sheet to import (.xlsx, .xls, .csv)")
    parser.add_argument("--teacher-id", default="", help="Owner of the created groups")
    parser.add_argument("--teacher-name", default="", help="Teacher name shown on groups")
    parser.add_argument("--db", type=Path, default=config.DB_PATH, help="Database path")
    parser.add_argument("--template", type=Path, default=None,
                        help="Write a sample sheet to this path and exit")

    args = parser.parse_args()

    if args.template:
        path = write_template(args.template, "groups")
        logger.info(f"Template written to {path}")
        return

    if not args.file or not args.teacher_id:
        parser.error("--file and --teacher-id are required")

    logger.info(f"Reading {args.file}...")
    rows = parse_group_rows(read_sheet(args.file))
    logger.info(f"  {len(rows)} group rows")

    store = ClassroomStore(args.db)
    results = import_groups(rows, GroupService(store), CourseService(store),
                            args.teacher_id, args.teacher_name)

    failed = [r for r in results if not r.ok]
    logger.info(f"Imported {len(results) - len(failed)} of {len(results)} groups")
    for result in failed:
        logger.warning(f"  Row {result.row}: {result.message}")

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
