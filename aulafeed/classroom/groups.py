"""
GroupService - Cohorts of students linked to one or more courses.

Provides:
- Group creation and lookup (by teacher, by course, active only)
- Membership batches that keep students_count and StudentEnrollments in sync
- Course linking/unlinking and assistant teachers
"""

import logging
import sqlite3
from datetime import datetime
from typing import Optional

from aulafeed.schemas import (
    AssistantTeacher,
    CourseRef,
    Group,
    GroupStatus,
    GroupStudent,
    NewStudent,
    StudentEnrollment,
    enrollment_id_for,
)

from .errors import GroupNotFoundError
from .store import ClassroomStore, from_json, new_id, now, parse_timestamp, to_json

logger = logging.getLogger(__name__)


def _dedupe(values: list[str]) -> list[str]:
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _row_to_group(row: sqlite3.Row) -> Group:
    courses = [CourseRef(**ref) for ref in from_json(row["courses"], [])]
    course_ids = from_json(row["course_ids"], [])

    # Legacy single-course groups
    if not courses and row["course_id"]:
        courses = [CourseRef(course_id=row["course_id"], course_name=row["course_name"] or "")]
    if not course_ids:
        course_ids = [ref.course_id for ref in courses]

    try:
        status = GroupStatus(row["status"])
    except ValueError:
        status = GroupStatus.ACTIVE

    return Group(
        id=row["id"],
        course_id=row["course_id"] or "",
        course_name=row["course_name"] or "",
        courses=courses,
        course_ids=course_ids,
        group_name=row["group_name"],
        program=row["program"] or "",
        teacher_id=row["teacher_id"],
        teacher_name=row["teacher_name"] or "",
        assistant_teacher_ids=from_json(row["assistant_teacher_ids"], []),
        assistant_teachers=[
            AssistantTeacher(**teacher)
            for teacher in from_json(row["assistant_teachers"], [])
        ],
        semester=row["semester"] or "",
        start_date=parse_timestamp(row["start_date"]),
        end_date=parse_timestamp(row["end_date"]),
        status=status,
        students_count=row["students_count"],
        max_students=row["max_students"],
        created_at=parse_timestamp(row["created_at"]),
        updated_at=parse_timestamp(row["updated_at"]),
    )


def _row_to_enrollment(row: sqlite3.Row) -> StudentEnrollment:
    return StudentEnrollment(
        id=row["id"],
        student_id=row["student_id"],
        student_name=row["student_name"] or "",
        student_email=row["student_email"] or "",
        group_id=row["group_id"],
        group_name=row["group_name"] or "",
        course_id=row["course_id"] or "",
        course_name=row["course_name"] or "",
        teacher_name=row["teacher_name"] or "",
        status=row["status"],
        enrolled_at=parse_timestamp(row["enrolled_at"]),
        final_grade=row["final_grade"],
    )


class GroupService:
    """Group management backed by a ClassroomStore."""

    def __init__(self, store: ClassroomStore):
        self.store = store

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    def create_group(
        self,
        course_id: str,
        course_name: str,
        group_name: str,
        teacher_id: str,
        teacher_name: str = "",
        semester: str = "",
        program: str = "",
        courses: Optional[list[CourseRef]] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        max_students: int = 0,
    ) -> str:
        """
        Create an active group.

        Args:
            course_id: Primary course
            course_name: Primary course title
            group_name: Display name of the group
            teacher_id: Owning teacher
            courses: Linked courses (default: just the primary course)

        Returns:
            The new group id
        """
        courses = courses or [CourseRef(course_id=course_id, course_name=course_name)]
        course_ids = _dedupe([ref.course_id for ref in courses])
        group_id = new_id()
        stamp = now()

        self.store.execute(
            """INSERT INTO groups (id, course_id, course_name, courses, course_ids,
                                   group_name, program, teacher_id, teacher_name,
                                   assistant_teacher_ids, assistant_teachers, semester,
                                   start_date, end_date, status, students_count,
                                   max_students, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, '[]', '[]', ?, ?, ?, ?, 0, ?, ?, ?)""",
            (group_id, course_id, course_name,
             to_json([ref.model_dump() for ref in courses]), to_json(course_ids),
             group_name, program, teacher_id, teacher_name, semester,
             start_date.isoformat() if start_date else None,
             end_date.isoformat() if end_date else None,
             GroupStatus.ACTIVE.value, max_students, stamp, stamp)
        )
        logger.info(f"Created group {group_id} ({group_name}) with {len(course_ids)} course(s)")
        return group_id

    def get_group(self, group_id: str) -> Optional[Group]:
        row = self.store.fetch_one("SELECT * FROM groups WHERE id = ?", (group_id,))
        return _row_to_group(row) if row else None

    def get_groups(self, teacher_id: str) -> list[Group]:
        """Get a teacher's groups, newest first."""
        rows = self.store.fetch_all(
            "SELECT * FROM groups WHERE teacher_id = ? ORDER BY created_at DESC",
            (teacher_id,)
        )
        return [_row_to_group(row) for row in rows]

    def get_groups_by_course(self, course_id: str,
                             teacher_id: Optional[str] = None) -> list[Group]:
        """
        Get groups linked to a course.

        Matches both the legacy single course_id and the course_ids list.
        """
        query = "SELECT * FROM groups"
        params: tuple = ()
        if teacher_id:
            query += " WHERE teacher_id = ?"
            params = (teacher_id,)
        query += " ORDER BY created_at DESC"

        result = []
        seen_ids = set()
        for row in self.store.fetch_all(query, params):
            group = _row_to_group(row)
            if group.id in seen_ids:
                continue
            if group.course_id == course_id or course_id in group.course_ids:
                seen_ids.add(group.id)
                result.append(group)
        return result

    def get_active_groups(self, teacher_id: Optional[str] = None) -> list[Group]:
        query = "SELECT * FROM groups WHERE status = ?"
        params: tuple = (GroupStatus.ACTIVE.value,)
        if teacher_id:
            query += " AND teacher_id = ?"
            params += (teacher_id,)
        rows = self.store.fetch_all(query + " ORDER BY created_at DESC", params)
        return [_row_to_group(row) for row in rows]

    def set_group_status(self, group_id: str, status: GroupStatus) -> None:
        self.store.execute(
            "UPDATE groups SET status = ?, updated_at = ? WHERE id = ?",
            (status.value, now(), group_id)
        )

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    def add_students_to_group(self, group_id: str, students: list[NewStudent]) -> int:
        """
        Add students in one batch, skipping current members.

        Each new member also gets a StudentEnrollment "{group}_{student}".

        Returns:
            Number of students actually added
        """
        if not students:
            return 0
        group = self.get_group(group_id)
        if not group:
            logger.warning(f"add_students_to_group: unknown group {group_id}")
            return 0

        stamp = now()
        added = 0
        with self.store.transaction() as conn:
            existing = {
                row["student_id"]
                for row in conn.execute(
                    "SELECT student_id FROM group_students WHERE group_id = ?", (group_id,)
                )
            }
            for student in students:
                if student.id in existing:
                    continue
                existing.add(student.id)
                conn.execute(
                    """INSERT INTO group_students (group_id, student_id, student_name,
                                                   student_email, status, enrolled_at)
                       VALUES (?, ?, ?, ?, 'active', ?)""",
                    (group_id, student.id, student.name, student.email, stamp)
                )
                conn.execute(
                    """INSERT INTO student_enrollments (id, student_id, student_name,
                                                       student_email, group_id, group_name,
                                                       course_id, course_name, teacher_name,
                                                       status, enrolled_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 'active', ?)
                       ON CONFLICT(id) DO UPDATE SET status = 'active',
                                                     enrolled_at = excluded.enrolled_at""",
                    (enrollment_id_for(group_id, student.id), student.id, student.name,
                     student.email, group_id, group.group_name, group.course_id,
                     group.course_name, group.teacher_name, stamp)
                )
                added += 1
            if added:
                conn.execute(
                    """UPDATE groups SET students_count = students_count + ?, updated_at = ?
                       WHERE id = ?""",
                    (added, stamp, group_id)
                )
        logger.info(f"Added {added} student(s) to group {group_id}")
        return added

    def get_group_students(self, group_id: str) -> list[GroupStudent]:
        """Get group members, most recently enrolled first."""
        rows = self.store.fetch_all(
            """SELECT * FROM group_students WHERE group_id = ?
               ORDER BY enrolled_at DESC""",
            (group_id,)
        )
        return [
            GroupStudent(
                id=row["student_id"],
                student_name=row["student_name"] or "",
                student_email=row["student_email"] or "",
                status=row["status"],
                enrolled_at=parse_timestamp(row["enrolled_at"]),
            )
            for row in rows
        ]

    def find_memberships(self, student_id: str) -> list[tuple[str, GroupStudent]]:
        """Get (group_id, member) pairs for every group the student belongs to."""
        rows = self.store.fetch_all(
            "SELECT * FROM group_students WHERE student_id = ? ORDER BY enrolled_at DESC",
            (student_id,)
        )
        return [
            (row["group_id"], GroupStudent(
                id=row["student_id"],
                student_name=row["student_name"] or "",
                student_email=row["student_email"] or "",
                status=row["status"],
                enrolled_at=parse_timestamp(row["enrolled_at"]),
            ))
            for row in rows
        ]

    def remove_student_from_group(self, group_id: str, student_id: str) -> None:
        """Remove member and enrollment, decrementing students_count."""
        with self.store.transaction() as conn:
            deleted = conn.execute(
                "DELETE FROM group_students WHERE group_id = ? AND student_id = ?",
                (group_id, student_id)
            ).rowcount
            conn.execute(
                "DELETE FROM student_enrollments WHERE id = ?",
                (enrollment_id_for(group_id, student_id),)
            )
            if deleted:
                conn.execute(
                    """UPDATE groups SET students_count = MAX(0, students_count - 1),
                                         updated_at = ?
                       WHERE id = ?""",
                    (now(), group_id)
                )

    # -------------------------------------------------------------------------
    # Enrollments
    # -------------------------------------------------------------------------

    def get_student_enrollments(self, student_id: str) -> list[StudentEnrollment]:
        """Get a student's enrollments, newest first."""
        rows = self.store.fetch_all(
            """SELECT * FROM student_enrollments WHERE student_id = ?
               ORDER BY enrolled_at DESC""",
            (student_id,)
        )
        return [_row_to_enrollment(row) for row in rows]

    def create_enrollment(self, group: Group, member: GroupStudent) -> str:
        """Write the StudentEnrollment for an existing membership (idempotent)."""
        enrollment_id = enrollment_id_for(group.id, member.id)
        self.store.execute(
            """INSERT INTO student_enrollments (id, student_id, student_name, student_email,
                                               group_id, group_name, course_id, course_name,
                                               teacher_name, status, enrolled_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 'active', ?)
               ON CONFLICT(id) DO NOTHING""",
            (enrollment_id, member.id, member.student_name, member.student_email,
             group.id, group.group_name, group.course_id, group.course_name,
             group.teacher_name,
             member.enrolled_at.isoformat() if member.enrolled_at else now())
        )
        return enrollment_id

    # -------------------------------------------------------------------------
    # Courses and teachers
    # -------------------------------------------------------------------------

    def link_course_to_group(self, group_id: str, course_id: str, course_name: str) -> None:
        """
        Link a course to a group; linking twice is a no-op.

        Raises:
            GroupNotFoundError: If the group does not exist
        """
        group = self.get_group(group_id)
        if not group:
            raise GroupNotFoundError(group_id)
        if course_id in group.course_ids:
            return

        courses = group.courses + [CourseRef(course_id=course_id, course_name=course_name)]
        self._write_courses(group_id, courses)

    def unlink_course_from_group(self, group_id: str, course_id: str) -> None:
        """
        Remove a course from a group.

        The primary course fields follow the first remaining course.

        Raises:
            GroupNotFoundError: If the group does not exist
        """
        group = self.get_group(group_id)
        if not group:
            raise GroupNotFoundError(group_id)
        courses = [ref for ref in group.courses if ref.course_id != course_id]
        self._write_courses(group_id, courses)

    def _write_courses(self, group_id: str, courses: list[CourseRef]) -> None:
        primary = courses[0] if courses else CourseRef(course_id="", course_name="")
        self.store.execute(
            """UPDATE groups SET courses = ?, course_ids = ?, course_id = ?,
                                 course_name = ?, updated_at = ?
               WHERE id = ?""",
            (to_json([ref.model_dump() for ref in courses]),
             to_json(_dedupe([ref.course_id for ref in courses])),
             primary.course_id, primary.course_name, now(), group_id)
        )

    def set_assistant_teachers(self, group_id: str,
                               assistants: list[AssistantTeacher]) -> None:
        self.store.execute(
            """UPDATE groups SET assistant_teacher_ids = ?, assistant_teachers = ?,
                                 updated_at = ?
               WHERE id = ?""",
            (to_json(_dedupe([a.id for a in assistants])),
             to_json([a.model_dump() for a in assistants]), now(), group_id)
        )
