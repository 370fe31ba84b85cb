"""
ClassroomStore - Document-style persistence on top of SQLite.

Every collection of the classroom (courses, lessons, classes, groups,
enrollments, progress, forums, ...) is a table; nested or list-valued
fields are stored as JSON columns.

Each call opens its own connection, so a store can be shared between
Streamlit sessions.
"""

import json
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Optional


SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT,
    display_name TEXT,
    email TEXT,
    role TEXT NOT NULL DEFAULT 'student',
    must_change_password INTEGER,
    phone TEXT,
    status TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS courses (
    id TEXT PRIMARY KEY,
    teacher_id TEXT NOT NULL,
    teacher_name TEXT,
    title TEXT NOT NULL,
    description TEXT,
    thumbnail TEXT,
    image_urls JSON NOT NULL DEFAULT '[]',
    intro_video_url TEXT,
    category TEXT,
    program TEXT,
    is_published INTEGER NOT NULL DEFAULT 0,
    is_archived INTEGER NOT NULL DEFAULT 0,
    lessons_count INTEGER NOT NULL DEFAULT 0,
    students_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS programs (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    cover_url TEXT,
    course_ids JSON NOT NULL DEFAULT '[]',
    status TEXT NOT NULL DEFAULT 'active',
    created_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS lessons (
    id TEXT PRIMARY KEY,
    course_id TEXT NOT NULL REFERENCES courses(id),
    lesson_number INTEGER,
    title TEXT NOT NULL,
    description TEXT,
    position INTEGER NOT NULL DEFAULT 0,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS classes (
    id TEXT PRIMARY KEY,
    course_id TEXT NOT NULL REFERENCES courses(id),
    lesson_id TEXT NOT NULL REFERENCES lessons(id),
    title TEXT NOT NULL,
    type TEXT,
    position INTEGER NOT NULL DEFAULT 0,
    duration REAL,
    video_url TEXT,
    content TEXT,
    audio_url TEXT,
    image_urls JSON NOT NULL DEFAULT '[]',
    has_assignment INTEGER NOT NULL DEFAULT 0,
    assignment_template_url TEXT,
    forum_enabled INTEGER NOT NULL DEFAULT 0,
    forum_required_format TEXT,
    likes_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS quiz_questions (
    id TEXT PRIMARY KEY,
    class_id TEXT NOT NULL REFERENCES classes(id),
    prompt TEXT,
    type TEXT NOT NULL DEFAULT 'multiple',
    position INTEGER NOT NULL DEFAULT 0,
    options JSON NOT NULL DEFAULT '[]',
    answer_text TEXT,
    explanation TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS class_responses (
    class_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    score REAL,
    answers JSON,
    passed INTEGER,
    completed_at TEXT,
    submitted_at TEXT,
    PRIMARY KEY (class_id, user_id)
);

CREATE TABLE IF NOT EXISTS course_enrollments (
    course_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    assigned_by TEXT,
    status TEXT NOT NULL DEFAULT 'active',
    started_at TEXT,
    completed_at TEXT,
    progress JSON,
    PRIMARY KEY (course_id, user_id)
);

CREATE TABLE IF NOT EXISTS groups (
    id TEXT PRIMARY KEY,
    course_id TEXT,
    course_name TEXT,
    courses JSON,
    course_ids JSON,
    group_name TEXT NOT NULL,
    program TEXT,
    teacher_id TEXT NOT NULL,
    teacher_name TEXT,
    assistant_teacher_ids JSON,
    assistant_teachers JSON,
    semester TEXT,
    start_date TEXT,
    end_date TEXT,
    status TEXT NOT NULL DEFAULT 'active',
    students_count INTEGER NOT NULL DEFAULT 0,
    max_students INTEGER NOT NULL DEFAULT 0,
    created_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS group_students (
    group_id TEXT NOT NULL REFERENCES groups(id),
    student_id TEXT NOT NULL,
    student_name TEXT,
    student_email TEXT,
    status TEXT NOT NULL DEFAULT 'active',
    enrolled_at TEXT,
    PRIMARY KEY (group_id, student_id)
);

CREATE TABLE IF NOT EXISTS student_enrollments (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL,
    student_name TEXT,
    student_email TEXT,
    group_id TEXT NOT NULL,
    group_name TEXT,
    course_id TEXT,
    course_name TEXT,
    teacher_name TEXT,
    status TEXT NOT NULL DEFAULT 'active',
    enrolled_at TEXT,
    final_grade REAL
);

CREATE TABLE IF NOT EXISTS class_progress (
    enrollment_id TEXT NOT NULL,
    class_id TEXT NOT NULL,
    progress REAL NOT NULL DEFAULT 0,
    completed INTEGER NOT NULL DEFAULT 0,
    seen INTEGER NOT NULL DEFAULT 0,
    last_updated TEXT,
    completed_at TEXT,
    quiz_completed INTEGER NOT NULL DEFAULT 0,
    quiz_answers JSON,
    quiz_answers_detailed JSON,
    grade REAL,
    status TEXT,
    PRIMARY KEY (enrollment_id, class_id)
);

CREATE TABLE IF NOT EXISTS seen_classes (
    user_id TEXT NOT NULL,
    class_id TEXT NOT NULL,
    seen INTEGER NOT NULL DEFAULT 0,
    progress REAL NOT NULL DEFAULT 0,
    updated_at TEXT,
    PRIMARY KEY (user_id, class_id)
);

CREATE TABLE IF NOT EXISTS submissions (
    id TEXT PRIMARY KEY,
    group_id TEXT NOT NULL,
    class_id TEXT NOT NULL,
    class_doc_id TEXT,
    course_id TEXT,
    course_title TEXT,
    class_name TEXT,
    class_type TEXT,
    student_id TEXT NOT NULL,
    student_name TEXT,
    enrollment_id TEXT,
    submitted_at TEXT,
    file_url TEXT,
    attachment_url TEXT,
    content TEXT,
    answers JSON,
    status TEXT NOT NULL DEFAULT 'pending',
    grade REAL,
    feedback TEXT,
    graded_at TEXT
);

CREATE TABLE IF NOT EXISTS forum_posts (
    class_id TEXT NOT NULL,
    author_id TEXT NOT NULL,
    text TEXT,
    author_name TEXT,
    format TEXT,
    media_url TEXT,
    created_at TEXT,
    replies_count INTEGER NOT NULL DEFAULT 0,
    status TEXT,
    grade REAL,
    feedback TEXT,
    graded_at TEXT,
    PRIMARY KEY (class_id, author_id)
);

CREATE TABLE IF NOT EXISTS forum_replies (
    id TEXT PRIMARY KEY,
    class_id TEXT NOT NULL,
    post_id TEXT NOT NULL,
    text TEXT,
    author_id TEXT,
    author_name TEXT,
    role TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS comments (
    id TEXT PRIMARY KEY,
    class_id TEXT NOT NULL,
    text TEXT,
    author_id TEXT,
    author_name TEXT,
    parent_id TEXT,
    role TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS likes (
    class_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    liked_at TEXT,
    PRIMARY KEY (class_id, user_id)
);

CREATE INDEX IF NOT EXISTS idx_lessons_course ON lessons(course_id);
CREATE INDEX IF NOT EXISTS idx_classes_lesson ON classes(lesson_id);
CREATE INDEX IF NOT EXISTS idx_questions_class ON quiz_questions(class_id);
CREATE INDEX IF NOT EXISTS idx_groups_teacher ON groups(teacher_id);
CREATE INDEX IF NOT EXISTS idx_enrollments_student ON student_enrollments(student_id);
CREATE INDEX IF NOT EXISTS idx_submissions_group ON submissions(group_id);
CREATE INDEX IF NOT EXISTS idx_replies_post ON forum_replies(class_id, post_id);
CREATE INDEX IF NOT EXISTS idx_comments_class ON comments(class_id);
"""


def now() -> str:
    """Timestamp in the format stored by every table."""
    return datetime.now().isoformat()


def new_id() -> str:
    return uuid.uuid4().hex


def to_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def from_json(raw: Optional[str], default: Any = None) -> Any:
    if not raw:
        return default
    return json.loads(raw)


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(raw) if raw else None


class ClassroomStore:
    """
    SQLite-backed document store for the whole classroom.

    Creates the schema on first use. Reads go through get_connection();
    multi-document writes go through transaction().
    """

    def __init__(self, db_path: str | Path):
        """
        Initialize store.

        Args:
            db_path: Path to the database file (created if missing)
        """
        self.db_path = Path(db_path)
        self._ensure_database()

    def _ensure_database(self):
        """Create database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            conn.close()

    def get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Run a batch of writes atomically.

        Commits when the block exits normally, rolls back and re-raises otherwise.
        """
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def fetch_one(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        conn = self.get_connection()
        try:
            return conn.execute(query, params).fetchone()
        finally:
            conn.close()

    def fetch_all(self, query: str, params: tuple = ()) -> list[sqlite3.Row]:
        conn = self.get_connection()
        try:
            return conn.execute(query, params).fetchall()
        finally:
            conn.close()

    def execute(self, query: str, params: tuple = ()) -> int:
        """Run a single write and return the number of affected rows."""
        with self.transaction() as conn:
            return conn.execute(query, params).rowcount
