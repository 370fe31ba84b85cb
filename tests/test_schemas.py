"""
Schema validation tests for AulaFeed.

Tests the Pydantic models and their helpers.
"""

import pytest
from datetime import datetime

from pydantic import ValidationError

from aulafeed.schemas import (
    # Course
    ClassItem,
    Course,
    CourseEnrollment,
    EnrollmentStatus,
    QuizOption,
    QuizQuestion,
    # Group
    Group,
    GroupStatus,
    enrollment_id_for,
    # Submission
    NewSubmission,
    Submission,
    SubmissionStatus,
    # Forum
    ForumPost,
    UserProfile,
    # Progress
    FeedClass,
    ProgressSnapshot,
)


class TestCourse:
    """Test course and class models."""

    def test_defaults(self):
        course = Course(id="c1")
        assert course.title == "Untitled course"
        assert course.is_published is False
        assert course.lessons_count == 0

    def test_cover_prefers_gallery(self):
        course = Course(id="c1", thumbnail="thumb.png", image_urls=["", "cover.png"])
        assert course.cover_url == "cover.png"

    def test_cover_falls_back_to_thumbnail(self):
        assert Course(id="c1", thumbnail="thumb.png").cover_url == "thumb.png"

    def test_class_forum_format_is_validated(self):
        with pytest.raises(ValidationError):
            ClassItem(id="k", course_id="c", lesson_id="l", forum_required_format="pdf")

    def test_class_likes_not_negative(self):
        with pytest.raises(ValidationError):
            ClassItem(id="k", course_id="c", lesson_id="l", likes_count=-1)

    def test_enrollment_counters_not_shared(self):
        first = CourseEnrollment(user_id="u1", course_id="c1")
        second = CourseEnrollment(user_id="u2", course_id="c1")
        first.progress.classes_completed = 3
        assert second.progress.classes_completed == 0
        assert first.status == EnrollmentStatus.ACTIVE


class TestQuizQuestion:
    """Test quiz question helpers."""

    def _question(self):
        return QuizQuestion(id="q1", prompt="2 + 2?", options=[
            QuizOption(id="a", text="3", is_correct=False),
            QuizOption(id="b", text="4", is_correct=True),
        ])

    def test_option_lookup(self):
        question = self._question()
        assert question.option("b").text == "4"
        assert question.option("z") is None

    def test_correct_option(self):
        assert self._question().correct_option().id == "b"

    def test_has_correctness(self):
        assert self._question().has_correctness
        ungraded = QuizQuestion(id="q2", options=[QuizOption(id="a", text="maybe")])
        assert not ungraded.has_correctness

    def test_invalid_type(self):
        with pytest.raises(ValidationError):
            QuizQuestion(id="q", type="essay")


class TestGroup:
    """Test group models."""

    def test_defaults(self):
        group = Group(id="g1")
        assert group.status == GroupStatus.ACTIVE
        assert group.courses == []

    def test_enrollment_id(self):
        assert enrollment_id_for("g1", "s1") == "g1_s1"


class TestSubmission:
    """Test submission models."""

    def test_default_status(self):
        submission = Submission(id="x", class_id="k")
        assert submission.status == SubmissionStatus.PENDING
        assert submission.answers == []

    def test_new_submission_requires_names(self):
        with pytest.raises(ValidationError):
            NewSubmission(class_id="k", class_type="text", student_id="s1")


class TestForum:
    """Test forum models."""

    def test_graded_by_status(self):
        post = ForumPost(id="s1", created_at=datetime.now(), status="graded")
        assert post.is_graded

    def test_graded_by_grade(self):
        post = ForumPost(id="s1", created_at=datetime.now(), grade=8)
        assert post.is_graded

    def test_not_graded(self):
        assert not ForumPost(id="s1", created_at=datetime.now()).is_graded

    def test_invalid_format(self):
        with pytest.raises(ValidationError):
            ForumPost(id="s1", created_at=datetime.now(), format="pdf")

    def test_user_profile_flag_unknown_by_default(self):
        assert UserProfile(id="u1").must_change_password is None


class TestProgress:
    """Test progress models."""

    def test_feed_class_minimal(self):
        item = FeedClass(id="c_k", class_doc_id="k", title="T", type="video",
                         course_id="c", lesson_id="l")
        assert item.images == []
        assert item.forum_required_format is None

    def test_merge_keeps_highest_progress(self):
        local = ProgressSnapshot(progress={"a": 60.0, "b": 10.0})
        remote = ProgressSnapshot(progress={"a": 40.0, "c": 5.0})
        merged = local.merged_with(remote)
        assert merged.progress == {"a": 60.0, "b": 10.0, "c": 5.0}

    def test_merge_never_clears_flags(self):
        local = ProgressSnapshot(completed={"a": True}, seen={"a": True})
        remote = ProgressSnapshot(completed={"a": False, "b": True}, seen={"a": False})
        merged = local.merged_with(remote)
        assert merged.completed == {"a": True, "b": True}
        assert merged.seen == {"a": True}
