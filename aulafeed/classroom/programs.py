"""
ProgramService - Named bundles of courses.

A course belongs to a program by name: its `program` field (or, for older
courses, its category). The program keeps the matching course ids so the
dashboard can list a program's courses without scanning every course.
"""

import logging
import sqlite3
from typing import Any, Optional

from aulafeed.schemas import Program, ProgramStatus

from .store import ClassroomStore, from_json, new_id, now, parse_timestamp, to_json

logger = logging.getLogger(__name__)


_PROGRAM_COLUMNS = {
    "name": "name",
    "description": "description",
    "cover_url": "cover_url",
    "course_ids": "course_ids",
    "status": "status",
}


def _column_value(field: str, value: Any) -> Any:
    if field == "course_ids":
        return to_json(list(value or []))
    if field == "name":
        return (value or "").strip()
    if isinstance(value, ProgramStatus):
        return value.value
    return value


def _row_to_program(row: sqlite3.Row) -> Program:
    try:
        status = ProgramStatus(row["status"])
    except ValueError:
        status = ProgramStatus.ACTIVE
    return Program(
        id=row["id"],
        name=row["name"] or "Programa",
        description=row["description"] or "",
        cover_url=row["cover_url"] or "",
        course_ids=from_json(row["course_ids"], []),
        status=status,
        created_at=parse_timestamp(row["created_at"]),
        updated_at=parse_timestamp(row["updated_at"]),
    )


class ProgramService:
    """Programs and their course membership."""

    def __init__(self, store: ClassroomStore):
        self.store = store

    def get_programs(self) -> list[Program]:
        """All programs, newest first."""
        rows = self.store.fetch_all(
            "SELECT * FROM programs ORDER BY created_at DESC, rowid DESC"
        )
        return [_row_to_program(row) for row in rows]

    def get_program(self, program_id: str) -> Optional[Program]:
        row = self.store.fetch_one("SELECT * FROM programs WHERE id = ?", (program_id,))
        return _row_to_program(row) if row else None

    def create_program(self, name: str, description: str = "", cover_url: str = "") -> str:
        """Create an active program with no courses."""
        program_id = new_id()
        timestamp = now()
        self.store.execute(
            """INSERT INTO programs (id, name, description, cover_url, course_ids, status,
                                     created_at, updated_at)
               VALUES (?, ?, ?, ?, '[]', ?, ?, ?)""",
            (program_id, name.strip(), description, cover_url,
             ProgramStatus.ACTIVE.value, timestamp, timestamp)
        )
        logger.info(f"Created program {program_id} ({name.strip()})")
        return program_id

    def update_program(self, program_id: str, **fields) -> None:
        """Update only the given fields and bump updated_at."""
        updates = {
            _PROGRAM_COLUMNS[name]: _column_value(name, value)
            for name, value in fields.items()
            if name in _PROGRAM_COLUMNS
        }
        updates["updated_at"] = now()
        assignments = ", ".join(f"{column} = ?" for column in updates)
        self.store.execute(
            f"UPDATE programs SET {assignments} WHERE id = ?",
            (*updates.values(), program_id)
        )

    def delete_program(self, program_id: str) -> None:
        self.store.execute("DELETE FROM programs WHERE id = ?", (program_id,))
        logger.info(f"Deleted program {program_id}")

    def sync_course_program(self, course_id: str, program_name: str) -> None:
        """
        Move a course into the program called program_name.

        Every other program loses the course. An empty name only removes it.
        """
        name = (program_name or "").strip()
        timestamp = now()
        with self.store.transaction() as conn:
            rows = conn.execute("SELECT id, name, course_ids FROM programs").fetchall()
            for row in rows:
                course_ids = from_json(row["course_ids"], [])
                belongs = bool(name) and (row["name"] or "").strip() == name
                if belongs and course_id not in course_ids:
                    course_ids.append(course_id)
                elif not belongs and course_id in course_ids:
                    course_ids = [cid for cid in course_ids if cid != course_id]
                else:
                    continue
                conn.execute(
                    "UPDATE programs SET course_ids = ?, updated_at = ? WHERE id = ?",
                    (to_json(course_ids), timestamp, row["id"])
                )

    def sync_programs_from_courses(self) -> int:
        """
        Rebuild every program's course list from the courses' program names.

        A course without a program falls back to its category.

        Returns:
            Number of programs whose course list changed
        """
        timestamp = now()
        changed = 0
        with self.store.transaction() as conn:
            by_name: dict[str, list[str]] = {}
            for row in conn.execute(
                "SELECT id, program, category FROM courses ORDER BY created_at, rowid"
            ).fetchall():
                name = (row["program"] or row["category"] or "").strip()
                if name:
                    by_name.setdefault(name, []).append(row["id"])

            for row in conn.execute("SELECT id, name, course_ids FROM programs").fetchall():
                course_ids = by_name.get((row["name"] or "").strip(), [])
                if course_ids == from_json(row["course_ids"], []):
                    continue
                conn.execute(
                    "UPDATE programs SET course_ids = ?, updated_at = ? WHERE id = ?",
                    (to_json(course_ids), timestamp, row["id"])
                )
                changed += 1
        logger.info(f"Synced {changed} programs from courses")
        return changed
