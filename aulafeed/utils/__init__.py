"""AulaFeed utilities."""

from .spreadsheet import (
    ImportResult,
    CourseRow,
    GroupRow,
    read_sheet,
    parse_course_rows,
    import_courses,
    parse_group_rows,
    import_groups,
    template_frame,
    write_template,
)

__all__ = [
    "ImportResult",
    "CourseRow",
    "GroupRow",
    "read_sheet",
    "parse_course_rows",
    "import_courses",
    "parse_group_rows",
    "import_groups",
    "template_frame",
    "write_template",
]
