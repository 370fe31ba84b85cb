"""
SubmissionService - Assignment and quiz submissions inside a group.

Submissions are only accepted while the group is active.
"""

import logging
import sqlite3
from typing import Optional

from aulafeed.schemas import (
    GroupStatus,
    NewSubmission,
    QuizAnswer,
    Submission,
    SubmissionStatus,
)

from .errors import GroupNotFoundError, SubmissionsClosedError
from .store import ClassroomStore, from_json, new_id, now, parse_timestamp, to_json

logger = logging.getLogger(__name__)


def _status(raw: Optional[str]) -> SubmissionStatus:
    """Read a stored status; unknown values count as pending."""
    try:
        return SubmissionStatus(raw)
    except ValueError:
        return SubmissionStatus.PENDING


def _row_to_submission(row: sqlite3.Row) -> Submission:
    return Submission(
        id=row["id"],
        group_id=row["group_id"],
        class_id=row["class_id"],
        class_doc_id=row["class_doc_id"],
        course_id=row["course_id"],
        course_title=row["course_title"],
        class_name=row["class_name"] or "",
        class_type=row["class_type"] or "",
        student_id=row["student_id"],
        student_name=row["student_name"] or "",
        enrollment_id=row["enrollment_id"],
        submitted_at=parse_timestamp(row["submitted_at"]),
        file_url=row["file_url"] or "",
        attachment_url=row["attachment_url"] or "",
        content=row["content"] or "",
        answers=[QuizAnswer(**answer) for answer in from_json(row["answers"], [])],
        status=_status(row["status"]),
        grade=row["grade"],
        feedback=row["feedback"] or "",
        graded_at=parse_timestamp(row["graded_at"]),
    )


class SubmissionService:
    """Submissions backed by a ClassroomStore."""

    def __init__(self, store: ClassroomStore):
        self.store = store

    def create_submission(self, group_id: str, data: NewSubmission) -> str:
        """
        Create a submission in a group.

        Raises:
            GroupNotFoundError: If the group does not exist
            SubmissionsClosedError: If the group is no longer active

        Returns:
            The new submission id
        """
        group = self.store.fetch_one("SELECT status FROM groups WHERE id = ?", (group_id,))
        if not group:
            raise GroupNotFoundError(group_id)
        if group["status"] != GroupStatus.ACTIVE.value:
            raise SubmissionsClosedError(group_id)

        submission_id = new_id()
        status = data.status or SubmissionStatus.PENDING
        submitted_at = data.submitted_at.isoformat() if data.submitted_at else now()
        self.store.execute(
            """INSERT INTO submissions (id, group_id, class_id, class_doc_id, course_id,
                                        course_title, class_name, class_type, student_id,
                                        student_name, enrollment_id, submitted_at, file_url,
                                        attachment_url, content, answers, status, grade)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (submission_id, group_id, data.class_id, data.class_doc_id, data.course_id,
             data.course_title, data.class_name, data.class_type, data.student_id,
             data.student_name, data.enrollment_id, submitted_at, data.file_url,
             data.attachment_url, data.content,
             to_json([answer.model_dump() for answer in data.answers]),
             status.value, data.grade)
        )
        logger.info(
            f"Submission {submission_id} from {data.student_id} for class {data.class_id}"
        )
        return submission_id

    def get_submission(self, group_id: str, submission_id: str) -> Optional[Submission]:
        row = self.store.fetch_one(
            "SELECT * FROM submissions WHERE group_id = ? AND id = ?",
            (group_id, submission_id)
        )
        return _row_to_submission(row) if row else None

    def get_submissions_by_class(self, group_id: str, class_id: str) -> list[Submission]:
        rows = self.store.fetch_all(
            """SELECT * FROM submissions WHERE group_id = ? AND class_id = ?
               ORDER BY submitted_at DESC""",
            (group_id, class_id)
        )
        return [_row_to_submission(row) for row in rows]

    def get_all_submissions(self, group_id: str) -> list[Submission]:
        rows = self.store.fetch_all(
            "SELECT * FROM submissions WHERE group_id = ? ORDER BY submitted_at DESC",
            (group_id,)
        )
        return [_row_to_submission(row) for row in rows]

    def get_student_submissions(self, group_id: str, student_id: str) -> list[Submission]:
        rows = self.store.fetch_all(
            """SELECT * FROM submissions WHERE group_id = ? AND student_id = ?
               ORDER BY submitted_at DESC""",
            (group_id, student_id)
        )
        return [_row_to_submission(row) for row in rows]

    def find_submission(self, group_id: str, class_id: str,
                        student_id: str) -> Optional[Submission]:
        """Latest submission of a student for one class."""
        row = self.store.fetch_one(
            """SELECT * FROM submissions
               WHERE group_id = ? AND class_id = ? AND student_id = ?
               ORDER BY submitted_at DESC LIMIT 1""",
            (group_id, class_id, student_id)
        )
        return _row_to_submission(row) if row else None

    def update_submission(self, group_id: str, submission_id: str, **fields) -> None:
        """Update content fields of an existing submission."""
        columns = {
            "content": lambda v: v,
            "attachment_url": lambda v: v,
            "file_url": lambda v: v,
            "submitted_at": lambda v: v.isoformat() if v else now(),
            "answers": lambda v: to_json([QuizAnswer.model_validate(a).model_dump() for a in v]),
            "status": lambda v: SubmissionStatus(v).value,
            "grade": lambda v: v,
        }
        updates = {name: columns[name](value) for name, value in fields.items() if name in columns}
        if not updates:
            return
        assignments = ", ".join(f"{column} = ?" for column in updates)
        self.store.execute(
            f"UPDATE submissions SET {assignments} WHERE group_id = ? AND id = ?",
            (*updates.values(), group_id, submission_id)
        )

    def grade_submission(self, group_id: str, submission_id: str,
                         grade: float, feedback: str = "") -> None:
        self.store.execute(
            """UPDATE submissions SET grade = ?, feedback = ?, graded_at = ?, status = ?
               WHERE group_id = ? AND id = ?""",
            (grade, feedback, now(), SubmissionStatus.GRADED.value, group_id, submission_id)
        )
