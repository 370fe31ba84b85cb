"""
Engagement - Comments, likes and the user directory.

Provides:
- Threaded class comments with author names resolved from user profiles
- Transactional like toggling with a never-negative likes_count
- User profiles (display names, forced password change flag)
- Teacher and student listings for the dashboard
"""

import logging
import sqlite3
from typing import Optional

from aulafeed.schemas import Comment, UserProfile

from .store import ClassroomStore, new_id, now, parse_timestamp

logger = logging.getLogger(__name__)


DEFAULT_STUDENT_NAME = "Estudiante"

TEACHER_ROLES = ("teacher", "adminTeacher", "superAdminTeacher")

# Author names written by older clients instead of a real name
PLACEHOLDER_NAMES = {"", "alumno", "estudiante", "profesor"}


def _row_to_profile(row: sqlite3.Row) -> UserProfile:
    flag = row["must_change_password"]
    return UserProfile(
        id=row["id"],
        name=row["name"] or "",
        display_name=row["display_name"] or "",
        email=row["email"] or "",
        role=row["role"],
        must_change_password=None if flag is None else bool(flag),
        phone=row["phone"] or "",
        status=row["status"] or "active",
        created_at=parse_timestamp(row["created_at"]),
    )


def _listed(profile: UserProfile, fallback: str) -> UserProfile:
    """Profile with its name resolved for people listings."""
    name = (profile.display_name or profile.name).strip() or fallback
    return profile.model_copy(update={"name": name})


class UserDirectory:
    """User profiles with a per-instance name cache."""

    def __init__(self, store: ClassroomStore):
        self.store = store
        self._names: dict[str, str] = {}

    def upsert_user(self, profile: UserProfile) -> None:
        self.store.execute(
            """INSERT INTO users (id, name, display_name, email, role, must_change_password,
                                  phone, status, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                 name = excluded.name,
                 display_name = excluded.display_name,
                 email = excluded.email,
                 role = excluded.role,
                 must_change_password = COALESCE(excluded.must_change_password,
                                                 must_change_password),
                 phone = excluded.phone,
                 status = excluded.status""",
            (profile.id, profile.name, profile.display_name, profile.email, profile.role,
             None if profile.must_change_password is None else int(profile.must_change_password),
             profile.phone, profile.status,
             profile.created_at.isoformat() if profile.created_at else now())
        )
        self._names.pop(profile.id, None)

    def get_user(self, user_id: str) -> Optional[UserProfile]:
        row = self.store.fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))
        return _row_to_profile(row) if row else None

    def get_display_name(self, user_id: str) -> str:
        """Profile name, then display name; empty when unknown."""
        if user_id in self._names:
            return self._names[user_id]
        profile = self.get_user(user_id) if user_id else None
        name = ""
        if profile:
            name = (profile.name or profile.display_name).strip()
        self._names[user_id] = name
        return name

    def must_change_password(self, user_id: str) -> bool:
        """A missing flag (or missing profile) means the password must be changed."""
        profile = self.get_user(user_id)
        if not profile or profile.must_change_password is None:
            return True
        return profile.must_change_password

    def clear_must_change_password(self, user_id: str) -> None:
        self.store.execute(
            "UPDATE users SET must_change_password = 0 WHERE id = ?", (user_id,)
        )

    # -------------------------------------------------------------------------
    # People listings
    # -------------------------------------------------------------------------

    def _list_by_roles(self, roles: tuple[str, ...], limit: int) -> list[UserProfile]:
        placeholders = ", ".join("?" for _ in roles)
        rows = self.store.fetch_all(
            f"""SELECT * FROM users WHERE role IN ({placeholders})
                ORDER BY created_at DESC, rowid DESC LIMIT ?""",
            (*roles, limit)
        )
        return [_row_to_profile(row) for row in rows]

    def get_teacher_users(self, limit: int = 100) -> list[UserProfile]:
        """Teachers of every role, newest first, named by display name or "Profesor"."""
        return [_listed(profile, "Profesor")
                for profile in self._list_by_roles(TEACHER_ROLES, limit)]

    def get_student_users(self, limit: int = 100) -> list[UserProfile]:
        """Students, newest first, named by display name or "Alumno"."""
        return [_listed(profile, "Alumno")
                for profile in self._list_by_roles(("student",), limit)]

    def deactivate_teacher(self, user_id: str) -> None:
        """Mark a teacher as deleted. The profile is kept for author names."""
        updated = self.store.execute(
            "UPDATE users SET status = 'deleted' WHERE id = ?", (user_id,)
        )
        if updated:
            logger.info(f"Deactivated teacher {user_id}")


class EngagementService:
    """Comments and likes for feed classes."""

    def __init__(self, store: ClassroomStore, users: Optional[UserDirectory] = None):
        self.store = store
        self.users = users or UserDirectory(store)

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    def get_comments(self, class_id: str, viewer_id: Optional[str] = None,
                     viewer_name: str = "") -> list[Comment]:
        """
        Get a class's comments, newest first.

        Placeholder author names are replaced by the author's profile name;
        the viewer's own comments fall back to viewer_name.
        """
        rows = self.store.fetch_all(
            "SELECT * FROM comments WHERE class_id = ? ORDER BY created_at DESC",
            (class_id,)
        )
        return [
            Comment(
                id=row["id"],
                class_id=row["class_id"],
                author=self._author_name(row["author_name"], row["author_id"],
                                         viewer_id, viewer_name),
                author_id=row["author_id"] or "",
                text=row["text"] or "",
                created_at=parse_timestamp(row["created_at"]),
                parent_id=row["parent_id"],
                role=row["role"] if row["role"] in ("professor", "student") else None,
            )
            for row in rows
        ]

    def _author_name(self, stored: Optional[str], author_id: Optional[str],
                     viewer_id: Optional[str], viewer_name: str) -> str:
        name = (stored or "").strip()
        if name.lower() not in PLACEHOLDER_NAMES:
            return name

        resolved = self.users.get_display_name(author_id) if author_id else ""
        if resolved:
            return resolved
        if viewer_id and author_id == viewer_id and viewer_name.strip():
            return viewer_name.strip()
        if name.lower() == "profesor":
            return "Profesor"
        return DEFAULT_STUDENT_NAME

    def add_comment(self, class_id: str, text: str, author_id: str,
                    author_name: str, parent_id: Optional[str] = None) -> str:
        comment_id = new_id()
        self.store.execute(
            """INSERT INTO comments (id, class_id, text, author_id, author_name,
                                     parent_id, role, created_at)
               VALUES (?, ?, ?, ?, ?, ?, 'student', ?)""",
            (comment_id, class_id, text.strip(), author_id, author_name, parent_id, now())
        )
        return comment_id

    @staticmethod
    def comment_tree(comments: list[Comment]) -> list[tuple[Comment, list[Comment]]]:
        """
        Group comments into threads.

        Returns:
            (root comment, replies oldest first) pairs, roots in input order.
            Replies whose parent is missing are shown as roots.
        """
        ids = {comment.id for comment in comments}
        children: dict[str, list[Comment]] = {}
        roots = []
        for comment in comments:
            if comment.parent_id and comment.parent_id in ids:
                children.setdefault(comment.parent_id, []).append(comment)
            else:
                roots.append(comment)
        return [
            (root, sorted(children.get(root.id, []), key=lambda c: c.created_at))
            for root in roots
        ]

    # -------------------------------------------------------------------------
    # Likes
    # -------------------------------------------------------------------------

    def toggle_like(self, class_id: str, user_id: str) -> tuple[bool, int]:
        """
        Like or unlike a class in one transaction.

        Returns:
            (liked after the toggle, new likes_count)
        """
        with self.store.transaction() as conn:
            existing = conn.execute(
                "SELECT 1 FROM likes WHERE class_id = ? AND user_id = ?",
                (class_id, user_id)
            ).fetchone()
            row = conn.execute(
                "SELECT likes_count FROM classes WHERE id = ?", (class_id,)
            ).fetchone()
            count = row["likes_count"] if row else 0

            if existing:
                conn.execute(
                    "DELETE FROM likes WHERE class_id = ? AND user_id = ?",
                    (class_id, user_id)
                )
                liked, count = False, max(0, count - 1)
            else:
                conn.execute(
                    "INSERT INTO likes (class_id, user_id, liked_at) VALUES (?, ?, ?)",
                    (class_id, user_id, now())
                )
                liked, count = True, max(0, count + 1)

            conn.execute(
                "UPDATE classes SET likes_count = ? WHERE id = ?", (count, class_id)
            )
        return liked, count

    def has_liked(self, class_id: str, user_id: str) -> bool:
        row = self.store.fetch_one(
            "SELECT 1 FROM likes WHERE class_id = ? AND user_id = ?", (class_id, user_id)
        )
        return row is not None

    def get_liked_class_ids(self, user_id: str) -> set[str]:
        rows = self.store.fetch_all("SELECT class_id FROM likes WHERE user_id = ?", (user_id,))
        return {row["class_id"] for row in rows}
