"""
Tests for ForumService and the forum field normalizers.
"""

from datetime import datetime

import pytest

from aulafeed.classroom import ForumGradedError
from aulafeed.classroom.forums import (
    normalize_date,
    normalize_format,
    normalize_number,
    normalize_optional_string,
    normalize_role,
    normalize_text,
)


class TestNormalizers:
    """Test normalization of stored forum fields."""

    def test_date(self):
        assert normalize_date("2026-03-01T10:00:00") == datetime(2026, 3, 1, 10, 0)
        assert normalize_date(1_700_000_000_000) == normalize_date(1_700_000_000)
        assert isinstance(normalize_date("not a date"), datetime)
        assert isinstance(normalize_date(None), datetime)

    def test_text(self):
        assert normalize_text("hi") == "hi"
        assert normalize_text(3) == "3"
        assert normalize_text({"displayName": "Ana"}) == "Ana"
        assert normalize_text(None, "User") == "User"

    def test_enums(self):
        assert normalize_format("video") == "video"
        assert normalize_format("pdf") == "text"
        assert normalize_role("mentor") == "mentor"
        assert normalize_role("admin") is None

    def test_number(self):
        assert normalize_number("8.5") == 8.5
        assert normalize_number(True) is None
        assert normalize_number("x") is None

    def test_optional_string(self):
        assert normalize_optional_string("  ") is None
        assert normalize_optional_string("url") == "url"


class TestPosts:
    """Test root posts (one per student per class)."""

    def test_create_post(self, forums):
        post = forums.create_or_update_forum_post("k1", "s1", "  My idea  ", "Luis")
        assert post.id == "s1"
        assert post.text == "My idea"
        assert post.format == "text"
        assert post.replies_count == 0

    def test_update_keeps_replies_count(self, forums):
        forums.create_or_update_forum_post("k1", "s1", "First", "Luis")
        forums.add_forum_reply("k1", "s1", "Nice", "s2", "María")
        post = forums.create_or_update_forum_post("k1", "s1", "Second", "Luis", "audio", "a.mp3")
        assert post.text == "Second"
        assert post.format == "audio"
        assert post.media_url == "a.mp3"
        assert post.replies_count == 1
        assert len(forums.get_forum_posts("k1")) == 1

    def test_graded_post_is_locked(self, forums):
        forums.create_or_update_forum_post("k1", "s1", "First", "Luis")
        forums.grade_forum_post("k1", "s1", 10, "Great")
        with pytest.raises(ForumGradedError):
            forums.create_or_update_forum_post("k1", "s1", "Edited", "Luis")
        with pytest.raises(ForumGradedError):
            forums.delete_student_forum_post_if_not_evaluated("k1", "s1")
        post = forums.get_student_forum_post("k1", "s1")
        assert post.is_graded and post.grade == 10

    def test_has_student_posted(self, forums):
        assert not forums.has_student_posted("k1", "s1")
        forums.create_or_update_forum_post("k1", "s1", "Hello", "Luis", "text")
        assert forums.has_student_posted("k1", "s1")
        assert forums.has_student_posted("k1", "s1", "text")
        assert not forums.has_student_posted("k1", "s1", "video")

    def test_delete_cascades_replies(self, forums):
        forums.create_or_update_forum_post("k1", "s1", "Hello", "Luis")
        forums.add_forum_reply("k1", "s1", "Reply", "s2", "María")
        assert forums.delete_student_forum_post_if_not_evaluated("k1", "s1")
        assert forums.get_student_forum_post("k1", "s1") is None
        assert forums.get_forum_replies("k1", "s1") == []
        assert not forums.delete_student_forum_post_if_not_evaluated("k1", "s1")


class TestReplies:
    """Test replies and the replies counter."""

    def test_replies_oldest_first(self, store, forums):
        forums.create_or_update_forum_post("k1", "s1", "Hello", "Luis")
        for stamp, text in (("2026-01-02T00:00:00", "second"), ("2026-01-01T00:00:00", "first")):
            store.execute(
                """INSERT INTO forum_replies (id, class_id, post_id, text, author_id,
                                              author_name, role, created_at)
                   VALUES (?, 'k1', 's1', ?, 's2', 'María', 'student', ?)""",
                (text, text, stamp)
            )
        assert [r.text for r in forums.get_forum_replies("k1", "s1")] == ["first", "second"]

    def test_reply_role(self, forums):
        forums.create_or_update_forum_post("k1", "s1", "Hello", "Luis")
        forums.add_forum_reply("k1", "s1", "Good", "t1", "Ana", role="professor")
        forums.add_forum_reply("k1", "s1", "Ok", "s2", "María", role="admin")
        roles = sorted(r.role for r in forums.get_forum_replies("k1", "s1"))
        assert roles == ["professor", "student"]

    def test_delete_reply_decrements(self, forums):
        forums.create_or_update_forum_post("k1", "s1", "Hello", "Luis")
        reply_id = forums.add_forum_reply("k1", "s1", "Good", "s2", "María")
        assert forums.get_forum_post_replies_count("k1", "s1") == 1
        forums.delete_forum_reply("k1", "s1", reply_id)
        forums.delete_forum_reply("k1", "s1", reply_id)
        assert forums.get_forum_post_replies_count("k1", "s1") == 0
