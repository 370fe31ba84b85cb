"""
ForumService - Per-class forum with one root post per student.

Provides:
- Value normalizers for loosely typed forum documents
- Root posts keyed by author id, locked once graded
- Replies with a replies_count kept on the post
"""

import logging
import sqlite3
from datetime import datetime
from typing import Any, Optional

from aulafeed.schemas import ForumPost, ForumReply

from .errors import ForumGradedError
from .store import ClassroomStore, new_id, now

logger = logging.getLogger(__name__)


FORUM_FORMATS = ("text", "audio", "video")
REPLY_ROLES = ("professor", "student", "mentor")


# -----------------------------------------------------------------------------
# Normalizers
# -----------------------------------------------------------------------------

def normalize_date(value: Any) -> datetime:
    """Accept datetimes, ISO strings and epoch numbers (s or ms); fall back to now."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000 if value > 1e11 else value
        return datetime.fromtimestamp(seconds)
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            pass
    return datetime.now()


def normalize_text(value: Any, fallback: str = "") -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, dict):
        for key in ("name", "displayName", "display_name", "text"):
            if isinstance(value.get(key), str):
                return value[key]
    return fallback


def normalize_format(value: Any) -> str:
    return value if value in FORUM_FORMATS else "text"


def normalize_role(value: Any) -> Optional[str]:
    return value if value in REPLY_ROLES else None


def normalize_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            return float(value)
        except ValueError:
            return None
    return None


def normalize_optional_string(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _row_to_post(row: sqlite3.Row) -> ForumPost:
    status = row["status"] if row["status"] in ("pending", "graded") else None
    return ForumPost(
        id=row["author_id"],
        class_id=row["class_id"],
        text=normalize_text(row["text"]),
        author_id=row["author_id"],
        author_name=normalize_text(row["author_name"], "User") or "User",
        format=normalize_format(row["format"]),
        media_url=normalize_optional_string(row["media_url"]),
        created_at=normalize_date(row["created_at"]),
        replies_count=max(0, int(row["replies_count"] or 0)),
        status=status,
        grade=normalize_number(row["grade"]),
        feedback=normalize_text(row["feedback"]),
        graded_at=normalize_date(row["graded_at"]) if row["graded_at"] else None,
    )


def _row_to_reply(row: sqlite3.Row) -> ForumReply:
    return ForumReply(
        id=row["id"],
        post_id=row["post_id"],
        text=normalize_text(row["text"]),
        author_id=normalize_text(row["author_id"]),
        author_name=normalize_text(row["author_name"], "User") or "User",
        role=normalize_role(row["role"]),
        created_at=normalize_date(row["created_at"]),
    )


class ForumService:
    """Class forums backed by a ClassroomStore."""

    def __init__(self, store: ClassroomStore):
        self.store = store

    # -------------------------------------------------------------------------
    # Posts
    # -------------------------------------------------------------------------

    def get_forum_posts(self, class_id: str) -> list[ForumPost]:
        """Get all root posts of a class, newest first."""
        rows = self.store.fetch_all(
            "SELECT * FROM forum_posts WHERE class_id = ? ORDER BY created_at DESC",
            (class_id,)
        )
        return [_row_to_post(row) for row in rows]

    def get_student_forum_post(self, class_id: str, student_id: str) -> Optional[ForumPost]:
        row = self.store.fetch_one(
            "SELECT * FROM forum_posts WHERE class_id = ? AND author_id = ?",
            (class_id, student_id)
        )
        return _row_to_post(row) if row else None

    def create_or_update_forum_post(
        self,
        class_id: str,
        author_id: str,
        text: str,
        author_name: str = "User",
        format: str = "text",
        media_url: Optional[str] = None,
    ) -> ForumPost:
        """
        Write the student's root post for a class.

        The replies count of an existing post is kept.

        Raises:
            ForumGradedError: If the existing post has been graded
        """
        existing = self.get_student_forum_post(class_id, author_id)
        if existing and existing.is_graded:
            raise ForumGradedError(class_id, author_id)

        self.store.execute(
            """INSERT INTO forum_posts (class_id, author_id, text, author_name, format,
                                        media_url, created_at, replies_count)
               VALUES (?, ?, ?, ?, ?, ?, ?, 0)
               ON CONFLICT(class_id, author_id) DO UPDATE SET
                 text = excluded.text,
                 author_name = excluded.author_name,
                 format = excluded.format,
                 media_url = excluded.media_url,
                 created_at = excluded.created_at""",
            (class_id, author_id, text.strip(), author_name or "User",
             normalize_format(format), normalize_optional_string(media_url), now())
        )
        return self.get_student_forum_post(class_id, author_id)

    def has_student_posted(self, class_id: str, student_id: str,
                           required_format: Optional[str] = None) -> bool:
        """Whether the student has a root post (of the required format, if any)."""
        post = self.get_student_forum_post(class_id, student_id)
        if not post:
            return False
        return required_format is None or post.format == required_format

    def delete_student_forum_post_if_not_evaluated(self, class_id: str,
                                                   student_id: str) -> bool:
        """
        Delete the student's post and its replies unless it was graded.

        Raises:
            ForumGradedError: If the post has been graded

        Returns:
            True if a post was deleted
        """
        post = self.get_student_forum_post(class_id, student_id)
        if not post:
            return False
        if post.is_graded:
            raise ForumGradedError(class_id, student_id)

        with self.store.transaction() as conn:
            conn.execute(
                "DELETE FROM forum_replies WHERE class_id = ? AND post_id = ?",
                (class_id, student_id)
            )
            conn.execute(
                "DELETE FROM forum_posts WHERE class_id = ? AND author_id = ?",
                (class_id, student_id)
            )
        return True

    def grade_forum_post(self, class_id: str, student_id: str,
                         grade: float, feedback: str = "") -> None:
        self.store.execute(
            """UPDATE forum_posts SET status = 'graded', grade = ?, feedback = ?,
                                      graded_at = ?
               WHERE class_id = ? AND author_id = ?""",
            (grade, feedback, now(), class_id, student_id)
        )

    # -------------------------------------------------------------------------
    # Replies
    # -------------------------------------------------------------------------

    def get_forum_replies(self, class_id: str, post_id: str) -> list[ForumReply]:
        """Get replies of a post, oldest first."""
        rows = self.store.fetch_all(
            """SELECT * FROM forum_replies WHERE class_id = ? AND post_id = ?
               ORDER BY created_at ASC""",
            (class_id, post_id)
        )
        return [_row_to_reply(row) for row in rows]

    def add_forum_reply(self, class_id: str, post_id: str, text: str,
                        author_id: str, author_name: str = "User",
                        role: str = "student") -> str:
        reply_id = new_id()
        with self.store.transaction() as conn:
            conn.execute(
                """INSERT INTO forum_replies (id, class_id, post_id, text, author_id,
                                              author_name, role, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (reply_id, class_id, post_id, text.strip(), author_id,
                 author_name or "User", normalize_role(role) or "student", now())
            )
            conn.execute(
                """UPDATE forum_posts SET replies_count = replies_count + 1
                   WHERE class_id = ? AND author_id = ?""",
                (class_id, post_id)
            )
        return reply_id

    def delete_forum_reply(self, class_id: str, post_id: str, reply_id: str) -> None:
        with self.store.transaction() as conn:
            deleted = conn.execute(
                "DELETE FROM forum_replies WHERE id = ? AND class_id = ? AND post_id = ?",
                (reply_id, class_id, post_id)
            ).rowcount
            if deleted:
                conn.execute(
                    """UPDATE forum_posts SET replies_count = MAX(0, replies_count - 1)
                       WHERE class_id = ? AND author_id = ?""",
                    (class_id, post_id)
                )

    def get_forum_post_replies_count(self, class_id: str, post_id: str) -> int:
        row = self.store.fetch_one(
            "SELECT replies_count FROM forum_posts WHERE class_id = ? AND author_id = ?",
            (class_id, post_id)
        )
        return max(0, int(row["replies_count"])) if row else 0
