"""
CourseService - Authoring access to courses, lessons, classes and quizzes.

Provides:
- Course CRUD with publish/archive flags
- Lessons and classes ordered by position, with course counters kept in sync
- Quiz questions for quiz classes
- Per-course enrollment records and per-class responses
"""

import logging
import sqlite3
from typing import Any, Optional

from aulafeed.schemas import (
    ClassItem,
    Course,
    CourseEnrollment,
    EnrollmentCounters,
    EnrollmentStatus,
    Lesson,
    QuizOption,
    QuizQuestion,
)

from .errors import NotFoundError
from .store import ClassroomStore, from_json, new_id, now, parse_timestamp, to_json

logger = logging.getLogger(__name__)


# Model field -> column, for partial updates
_COURSE_COLUMNS = {
    "title": "title",
    "description": "description",
    "thumbnail": "thumbnail",
    "image_urls": "image_urls",
    "intro_video_url": "intro_video_url",
    "category": "category",
    "program": "program",
    "teacher_name": "teacher_name",
}

_CLASS_COLUMNS = {
    "title": "title",
    "type": "type",
    "order": "position",
    "duration": "duration",
    "video_url": "video_url",
    "content": "content",
    "audio_url": "audio_url",
    "image_urls": "image_urls",
    "has_assignment": "has_assignment",
    "assignment_template_url": "assignment_template_url",
    "forum_enabled": "forum_enabled",
    "forum_required_format": "forum_required_format",
}

_JSON_FIELDS = {"image_urls"}


def _column_value(field: str, value: Any) -> Any:
    if field in _JSON_FIELDS:
        return to_json(list(value or []))
    if isinstance(value, bool):
        return int(value)
    return value


def _row_to_course(row: sqlite3.Row) -> Course:
    return Course(
        id=row["id"],
        title=row["title"] or "Untitled course",
        description=row["description"] or "",
        thumbnail=row["thumbnail"] or "",
        image_urls=from_json(row["image_urls"], []),
        is_published=bool(row["is_published"]),
        is_archived=bool(row["is_archived"]),
        lessons_count=row["lessons_count"],
        students_count=row["students_count"],
        intro_video_url=row["intro_video_url"] or "",
        category=row["category"] or "",
        program=row["program"] or "",
        teacher_id=row["teacher_id"],
        teacher_name=row["teacher_name"] or "",
        created_at=parse_timestamp(row["created_at"]),
    )


def _row_to_lesson(row: sqlite3.Row) -> Lesson:
    return Lesson(
        id=row["id"],
        course_id=row["course_id"],
        lesson_number=row["lesson_number"] or 1,
        title=row["title"] or "Untitled lesson",
        description=row["description"] or "",
        order=row["position"],
    )


def _row_to_class(row: sqlite3.Row) -> ClassItem:
    return ClassItem(
        id=row["id"],
        course_id=row["course_id"],
        lesson_id=row["lesson_id"],
        title=row["title"] or "Untitled class",
        type=row["type"] or "",
        order=row["position"],
        duration=row["duration"],
        video_url=row["video_url"] or "",
        content=row["content"] or "",
        audio_url=row["audio_url"] or "",
        image_urls=from_json(row["image_urls"], []),
        has_assignment=bool(row["has_assignment"]),
        assignment_template_url=row["assignment_template_url"] or "",
        forum_enabled=bool(row["forum_enabled"]),
        forum_required_format=row["forum_required_format"] or None,
        likes_count=max(0, row["likes_count"] or 0),
    )


class CourseService:
    """
    Course authoring backed by a ClassroomStore.

    Counters on the course row (lessons_count, students_count) are updated in
    the same transaction as the change that affects them.
    """

    def __init__(self, store: ClassroomStore):
        self.store = store

    # -------------------------------------------------------------------------
    # Courses
    # -------------------------------------------------------------------------

    def get_courses(self, teacher_id: str) -> list[Course]:
        """Get a teacher's courses, newest first."""
        rows = self.store.fetch_all(
            "SELECT * FROM courses WHERE teacher_id = ? ORDER BY created_at DESC",
            (teacher_id,)
        )
        return [_row_to_course(row) for row in rows]

    def get_all_courses(self) -> list[Course]:
        rows = self.store.fetch_all("SELECT * FROM courses ORDER BY created_at DESC")
        return [_row_to_course(row) for row in rows]

    def get_course(self, course_id: str) -> Optional[Course]:
        row = self.store.fetch_one("SELECT * FROM courses WHERE id = ?", (course_id,))
        return _row_to_course(row) if row else None

    def create_course(
        self,
        teacher_id: str,
        title: str,
        description: str = "",
        teacher_name: str = "",
        thumbnail: str = "",
        image_urls: Optional[list[str]] = None,
        intro_video_url: str = "",
        category: str = "",
        program: str = "",
    ) -> str:
        """
        Create an unpublished course with zeroed counters.

        Returns:
            The new course id
        """
        course_id = new_id()
        self.store.execute(
            """INSERT INTO courses (id, teacher_id, teacher_name, title, description,
                                    thumbnail, image_urls, intro_video_url, category,
                                    program, is_published, is_archived, lessons_count,
                                    students_count, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, 0, 0, 0, ?)""",
            (course_id, teacher_id, teacher_name, title, description, thumbnail,
             to_json(image_urls or []), intro_video_url, category, program, now())
        )
        logger.info(f"Created course {course_id} ({title})")
        return course_id

    def update_course(self, course_id: str, **fields) -> None:
        """Update only the given course fields."""
        updates = {
            _COURSE_COLUMNS[name]: _column_value(name, value)
            for name, value in fields.items()
            if name in _COURSE_COLUMNS
        }
        if not updates:
            return
        assignments = ", ".join(f"{column} = ?" for column in updates)
        self.store.execute(
            f"UPDATE courses SET {assignments} WHERE id = ?",
            (*updates.values(), course_id)
        )

    def publish_course(self, course_id: str, published: bool = True) -> None:
        self.store.execute(
            "UPDATE courses SET is_published = ? WHERE id = ?",
            (int(published), course_id)
        )

    def archive_course(self, course_id: str, archived: bool = True) -> None:
        self.store.execute(
            "UPDATE courses SET is_archived = ? WHERE id = ?",
            (int(archived), course_id)
        )

    # -------------------------------------------------------------------------
    # Lessons
    # -------------------------------------------------------------------------

    def get_lessons(self, course_id: str) -> list[Lesson]:
        """Get a course's lessons ordered by position."""
        rows = self.store.fetch_all(
            "SELECT * FROM lessons WHERE course_id = ? ORDER BY position, created_at",
            (course_id,)
        )
        return [_row_to_lesson(row) for row in rows]

    def get_lesson(self, lesson_id: str) -> Optional[Lesson]:
        row = self.store.fetch_one("SELECT * FROM lessons WHERE id = ?", (lesson_id,))
        return _row_to_lesson(row) if row else None

    def create_lesson(
        self,
        course_id: str,
        title: str,
        description: str = "",
        order: Optional[int] = None,
        lesson_number: Optional[int] = None,
    ) -> str:
        """
        Add a lesson to a course and bump its lessons_count.

        Without an explicit order the lesson goes after the existing ones.
        """
        lesson_id = new_id()
        with self.store.transaction() as conn:
            count = conn.execute(
                "SELECT COUNT(*) FROM lessons WHERE course_id = ?", (course_id,)
            ).fetchone()[0]
            position = count if order is None else order
            conn.execute(
                """INSERT INTO lessons (id, course_id, lesson_number, title, description,
                                        position, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (lesson_id, course_id, lesson_number or count + 1, title, description,
                 position, now())
            )
            conn.execute(
                "UPDATE courses SET lessons_count = lessons_count + 1 WHERE id = ?",
                (course_id,)
            )
        return lesson_id

    def update_lesson(self, lesson_id: str, title: Optional[str] = None,
                      description: Optional[str] = None, order: Optional[int] = None) -> None:
        updates = {}
        if title is not None:
            updates["title"] = title
        if description is not None:
            updates["description"] = description
        if order is not None:
            updates["position"] = order
        if not updates:
            return
        assignments = ", ".join(f"{column} = ?" for column in updates)
        self.store.execute(
            f"UPDATE lessons SET {assignments} WHERE id = ?",
            (*updates.values(), lesson_id)
        )

    def delete_lesson(self, course_id: str, lesson_id: str) -> None:
        """Delete a lesson with its classes and decrement lessons_count."""
        with self.store.transaction() as conn:
            conn.execute(
                """DELETE FROM quiz_questions WHERE class_id IN
                   (SELECT id FROM classes WHERE lesson_id = ?)""",
                (lesson_id,)
            )
            conn.execute("DELETE FROM classes WHERE lesson_id = ?", (lesson_id,))
            deleted = conn.execute(
                "DELETE FROM lessons WHERE id = ? AND course_id = ?", (lesson_id, course_id)
            ).rowcount
            if deleted:
                conn.execute(
                    """UPDATE courses SET lessons_count = MAX(0, lessons_count - 1)
                       WHERE id = ?""",
                    (course_id,)
                )

    # -------------------------------------------------------------------------
    # Classes
    # -------------------------------------------------------------------------

    def get_classes(self, lesson_id: str) -> list[ClassItem]:
        """Get a lesson's classes ordered by position."""
        rows = self.store.fetch_all(
            "SELECT * FROM classes WHERE lesson_id = ? ORDER BY position, created_at",
            (lesson_id,)
        )
        return [_row_to_class(row) for row in rows]

    def get_class(self, class_id: str) -> Optional[ClassItem]:
        row = self.store.fetch_one("SELECT * FROM classes WHERE id = ?", (class_id,))
        return _row_to_class(row) if row else None

    def create_class(self, course_id: str, lesson_id: str, title: str,
                     type: str = "video", order: Optional[int] = None, **fields) -> str:
        """
        Add a class under a lesson.

        Args:
            course_id: Owning course
            lesson_id: Owning lesson
            title: Class title
            type: Class type (video, text, audio, quiz, image)
            order: Position in the lesson (default: after existing classes)
            **fields: Any other ClassItem field (video_url, content, ...)

        Returns:
            The new class id
        """
        item = ClassItem(id=new_id(), course_id=course_id, lesson_id=lesson_id,
                         title=title, type=type, **fields)
        with self.store.transaction() as conn:
            if order is None:
                order = conn.execute(
                    "SELECT COUNT(*) FROM classes WHERE lesson_id = ?", (lesson_id,)
                ).fetchone()[0]
            conn.execute(
                """INSERT INTO classes (id, course_id, lesson_id, title, type, position,
                                        duration, video_url, content, audio_url, image_urls,
                                        has_assignment, assignment_template_url,
                                        forum_enabled, forum_required_format, likes_count,
                                        created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?)""",
                (item.id, course_id, lesson_id, item.title, item.type, order,
                 item.duration, item.video_url, item.content, item.audio_url,
                 to_json(item.image_urls), int(item.has_assignment),
                 item.assignment_template_url, int(item.forum_enabled),
                 item.forum_required_format, now())
            )
        return item.id

    def update_class(self, class_id: str, **fields) -> None:
        """Update only the given class fields; no-op when none are given."""
        updates = {
            _CLASS_COLUMNS[name]: _column_value(name, value)
            for name, value in fields.items()
            if name in _CLASS_COLUMNS
        }
        if not updates:
            return
        assignments = ", ".join(f"{column} = ?" for column in updates)
        self.store.execute(
            f"UPDATE classes SET {assignments} WHERE id = ?",
            (*updates.values(), class_id)
        )

    def delete_class(self, class_id: str) -> None:
        with self.store.transaction() as conn:
            conn.execute("DELETE FROM quiz_questions WHERE class_id = ?", (class_id,))
            conn.execute("DELETE FROM classes WHERE id = ?", (class_id,))

    # -------------------------------------------------------------------------
    # Quiz questions
    # -------------------------------------------------------------------------

    def get_quiz_questions(self, class_id: str) -> list[QuizQuestion]:
        rows = self.store.fetch_all(
            """SELECT * FROM quiz_questions WHERE class_id = ?
               ORDER BY position, created_at""",
            (class_id,)
        )
        return [
            QuizQuestion(
                id=row["id"],
                prompt=row["prompt"] or "",
                type=row["type"],
                order=row["position"],
                options=[QuizOption(**opt) for opt in from_json(row["options"], [])],
                answer_text=row["answer_text"],
                explanation=row["explanation"] or "",
            )
            for row in rows
        ]

    def create_quiz_question(self, class_id: str, prompt: str,
                             options: list[QuizOption], type: str = "multiple",
                             order: Optional[int] = None, answer_text: Optional[str] = None,
                             explanation: str = "") -> str:
        question_id = new_id()
        with self.store.transaction() as conn:
            if order is None:
                order = conn.execute(
                    "SELECT COUNT(*) FROM quiz_questions WHERE class_id = ?", (class_id,)
                ).fetchone()[0]
            conn.execute(
                """INSERT INTO quiz_questions (id, class_id, prompt, type, position, options,
                                               answer_text, explanation, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (question_id, class_id, prompt, type, order,
                 to_json([opt.model_dump() for opt in options]),
                 answer_text, explanation, now())
            )
        return question_id

    def delete_quiz_question(self, question_id: str) -> None:
        self.store.execute("DELETE FROM quiz_questions WHERE id = ?", (question_id,))

    # -------------------------------------------------------------------------
    # Course enrollment
    # -------------------------------------------------------------------------

    def enroll_student(self, course_id: str, user_id: str,
                       assigned_by: Optional[str] = None) -> None:
        """
        Enroll a student in a course (merge) and bump students_count.

        Raises:
            NotFoundError: If the course does not exist
        """
        with self.store.transaction() as conn:
            exists = conn.execute(
                "SELECT 1 FROM courses WHERE id = ?", (course_id,)
            ).fetchone()
            if not exists:
                raise NotFoundError(f"Course not found: {course_id}")
            already = conn.execute(
                "SELECT 1 FROM course_enrollments WHERE course_id = ? AND user_id = ?",
                (course_id, user_id)
            ).fetchone()
            conn.execute(
                """INSERT INTO course_enrollments (course_id, user_id, assigned_by, status,
                                                   started_at, progress)
                   VALUES (?, ?, ?, ?, ?, ?)
                   ON CONFLICT(course_id, user_id) DO UPDATE SET
                     assigned_by = COALESCE(excluded.assigned_by, assigned_by),
                     status = excluded.status""",
                (course_id, user_id, assigned_by, EnrollmentStatus.ACTIVE.value, now(),
                 to_json(EnrollmentCounters().model_dump()))
            )
            if not already:
                conn.execute(
                    "UPDATE courses SET students_count = students_count + 1 WHERE id = ?",
                    (course_id,)
                )

    def get_enrollment(self, course_id: str, user_id: str) -> Optional[CourseEnrollment]:
        row = self.store.fetch_one(
            "SELECT * FROM course_enrollments WHERE course_id = ? AND user_id = ?",
            (course_id, user_id)
        )
        if not row:
            return None
        return CourseEnrollment(
            user_id=row["user_id"],
            course_id=row["course_id"],
            status=EnrollmentStatus(row["status"]),
            assigned_by=row["assigned_by"],
            started_at=parse_timestamp(row["started_at"]),
            completed_at=parse_timestamp(row["completed_at"]),
            progress=EnrollmentCounters(**from_json(row["progress"], {})),
        )

    def update_enrollment_progress(self, course_id: str, user_id: str,
                                   counters: EnrollmentCounters,
                                   status: Optional[EnrollmentStatus] = None) -> None:
        """Store progress counters; completed_at is set when status becomes completed."""
        completed_at = now() if status == EnrollmentStatus.COMPLETED else None
        self.store.execute(
            """UPDATE course_enrollments SET
                 progress = ?,
                 status = COALESCE(?, status),
                 completed_at = COALESCE(?, completed_at)
               WHERE course_id = ? AND user_id = ?""",
            (to_json(counters.model_dump()), status.value if status else None,
             completed_at, course_id, user_id)
        )

    # -------------------------------------------------------------------------
    # Per-class responses
    # -------------------------------------------------------------------------

    def mark_class_completed(self, class_id: str, user_id: str) -> None:
        stamp = now()
        self.store.execute(
            """INSERT INTO class_responses (class_id, user_id, completed_at)
               VALUES (?, ?, ?)
               ON CONFLICT(class_id, user_id) DO UPDATE SET completed_at = ?""",
            (class_id, user_id, stamp, stamp)
        )

    def record_quiz_response(self, class_id: str, user_id: str, score: float,
                             answers: dict[str, str], passed: bool) -> None:
        stamp = now()
        self.store.execute(
            """INSERT INTO class_responses (class_id, user_id, score, answers, passed,
                                            submitted_at)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT(class_id, user_id) DO UPDATE SET
                 score = excluded.score,
                 answers = excluded.answers,
                 passed = excluded.passed,
                 submitted_at = excluded.submitted_at""",
            (class_id, user_id, score, to_json(answers), int(passed), stamp)
        )

    def get_class_response(self, class_id: str, user_id: str) -> Optional[dict]:
        row = self.store.fetch_one(
            "SELECT * FROM class_responses WHERE class_id = ? AND user_id = ?",
            (class_id, user_id)
        )
        if not row:
            return None
        return {
            "score": row["score"],
            "answers": from_json(row["answers"], {}),
            "passed": None if row["passed"] is None else bool(row["passed"]),
            "completed_at": parse_timestamp(row["completed_at"]),
            "submitted_at": parse_timestamp(row["submitted_at"]),
        }
