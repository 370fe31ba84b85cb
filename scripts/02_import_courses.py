#!/usr/bin/env python3
"""
02_import_courses.py - Bulk-create courses, lessons and classes from a sheet.

One row per class. Rows sharing a course title land in the same course,
rows sharing a lesson name in the same lesson.

Usage:
  python scripts/02_import_courses.py --file courses.xlsx --teacher-id t1
  python scripts/02_import_courses.py --template courses_template.xlsx
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from aulafeed import config
from aulafeed.classroom import ClassroomStore, CourseService
from aulafeed.utils import import_courses, parse_course_rows, read_sheet, write_template

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Import courses from an Excel or CSV sheet",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--file", type=Path, help="Sheet to import (.xlsx, .xls, .csv)")
    parser.add_argument("--teacher-id", default="", help="Owner of the created courses")
    parser.add_argument("--teacher-name", default="", help="Teacher name shown on courses")
    parser.add_argument("--db", type=Path, default=config.DB_PATH, help="Database path")
    parser.add_argument("--template", type=Path, default=None,
                        help="Write a sample sheet to this path and exit")

    args = parser.parse_args()

    if args.template:
        path = write_template(args.template, "courses")
        logger.info(f"Template written to {path}")
        return

    if not args.file or not args.teacher_id:
        parser.error("--file and --teacher-id are required")

    logger.info(f"Reading {args.file}...")
    rows = parse_course_rows(read_sheet(args.file))
    logger.info(f"  {len(rows)} class rows")

    store = ClassroomStore(args.db)
    results = import_courses(rows, CourseService(store), args.teacher_id, args.teacher_name)

    failed = [r for r in results if not r.ok]
    logger.info(f"Imported {len(results) - len(failed)} of {len(results)} rows")
    for result in failed:
        logger.warning(f"  Row {result.row}: {result.message}")

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
