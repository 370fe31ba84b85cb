"""
Tests for FeedLoader: the student feed and the teacher course preview.
"""

import pytest

from aulafeed.classroom import FeedError, FeedLoader, feed_id, normalize_class_type


class TestClassType:
    """Test authored class type normalization."""

    def test_empty_is_video(self):
        assert normalize_class_type(None) == "video"
        assert normalize_class_type("  ") == "video"

    def test_aliases(self):
        assert normalize_class_type("Texto") == "text"
        assert normalize_class_type("podcast") == "audio"
        assert normalize_class_type("Gallery") == "image"
        assert normalize_class_type("examen") == "quiz"

    def test_unknown_kept_lowercase(self):
        assert normalize_class_type("Slides") == "slides"


class TestStudentFeed:
    """Test building the feed of a group member."""

    def test_order_and_ids(self, seeded, store):
        feed = FeedLoader(store).load_student_feed("s1")
        assert [item.title for item in feed.items] == [
            "Intro video", "Reading", "Gallery", "Quiz", "Discussion", "Atoms video",
        ]
        first = feed.items[0]
        assert first.id == feed_id(seeded.bio, seeded.video)
        assert first.class_doc_id == seeded.video
        assert first.enrollment_id == f"{seeded.group_id}_s1"
        assert first.group_id == seeded.group_id
        assert first.lesson_title == "Cells"
        assert feed.course_titles == {seeded.bio: "Biology", seeded.chem: "Chemistry"}

    def test_media_fields_trimmed(self, seeded, store):
        feed = FeedLoader(store).load_student_feed("s1")
        by_title = {item.title: item for item in feed.items}
        assert by_title["Intro video"].video_url == "https://youtu.be/abcdefghijk"
        assert by_title["Gallery"].images == ["a.png", "b.png"]
        assert by_title["Discussion"].forum_required_format == "text"
        assert by_title["Reading"].has_assignment

    def test_index_of(self, seeded, store):
        feed = FeedLoader(store).load_student_feed("s1")
        assert feed.index_of(feed_id(seeded.chem, seeded.chem_video)) == 5
        assert feed.index_of("missing") == -1

    def test_no_enrollment(self, seeded, store):
        with pytest.raises(FeedError, match="No courses have been assigned"):
            FeedLoader(store).load_student_feed("stranger")

    def test_missing_group(self, seeded, store):
        store.execute("DELETE FROM groups WHERE id = ?", (seeded.group_id,))
        with pytest.raises(FeedError, match="no longer exists"):
            FeedLoader(store).load_student_feed("s1")

    def test_archived_courses_skipped(self, seeded, store, courses):
        courses.archive_course(seeded.chem)
        feed = FeedLoader(store).load_student_feed("s1")
        assert {item.course_id for item in feed.items} == {seeded.bio}

        courses.archive_course(seeded.bio)
        with pytest.raises(FeedError, match="archived or have no classes"):
            FeedLoader(store).load_student_feed("s1")

    def test_enrollment_rebuilt_from_membership(self, seeded, store, groups):
        store.execute("DELETE FROM student_enrollments WHERE student_id = 's2'")
        feed = FeedLoader(store).load_student_feed("s2")
        assert feed.enrollment.id == f"{seeded.group_id}_s2"
        assert len(groups.get_student_enrollments("s2")) == 1


class TestPreviewFeed:
    """Test the single-course teacher preview."""

    def test_preview(self, seeded, store):
        feed = FeedLoader(store).load_preview_feed(seeded.bio)
        assert feed.preview
        assert feed.enrollment is None
        assert len(feed.items) == 5
        assert all(item.group_id is None for item in feed.items)

    def test_unknown_course(self, store):
        with pytest.raises(FeedError, match="Course not found"):
            FeedLoader(store).load_preview_feed("missing")

    def test_empty_course(self, store, courses):
        course_id = courses.create_course("t1", "Empty")
        with pytest.raises(FeedError, match="no classes yet"):
            FeedLoader(store).load_preview_feed(course_id)
