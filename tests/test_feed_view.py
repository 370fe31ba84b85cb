"""
Tests for feed HTML: class header, gate notice, course tree and comments.
"""

from datetime import datetime

from aulafeed.classroom import (
    ClassAvailability,
    FeedLoader,
    ForumGate,
    GateDecision,
    LocalProgressCache,
    Navigator,
    ProgressTracker,
)
from aulafeed.schemas import Comment, FeedClass
from aulafeed.viewer import (
    STATUS_LABELS,
    render_class_header,
    render_comment,
    render_course_tree,
    render_gate_notice,
)


class TestClassHeader:
    """Test the class header card."""

    def test_header(self):
        item = FeedClass(id="c_1", class_doc_id="1", title="Cells & you", type="text",
                         course_id="c", lesson_id="l", course_title="Biology",
                         lesson_title="Cells")
        html = render_class_header(item, 42.4, 0, 3)
        assert "Biology · Cells · 1/3" in html
        assert "Cells &amp; you" in html
        assert "Reading" in html
        assert "width: 42%" in html

    def test_progress_clamped(self):
        item = FeedClass(id="c_1", class_doc_id="1", title="x", type="video",
                         course_id="c", lesson_id="l")
        assert "width: 100%" in render_class_header(item, 150.0, 0, 1)


class TestGateNotice:
    """Test the blocked-navigation notice."""

    def test_allowed_is_empty(self):
        assert render_gate_notice(GateDecision(allowed=True)) == ""

    def test_reason_escaped(self):
        html = render_gate_notice(GateDecision(allowed=False, reason='Finish "<b>"'))
        assert "&lt;b&gt;" in html


class TestCourseTree:
    """Test the course outline."""

    def test_outline(self, seeded, store, forums, cache_dir):
        feed = FeedLoader(store).load_student_feed("s1")
        tracker = ProgressTracker(store, "s1", feed.enrollment.id,
                                  cache=LocalProgressCache("s1", cache_dir))
        tracker.load()
        nav = Navigator(feed, tracker, ForumGate(forums, "s1"))
        html = render_course_tree(nav.get_navigation_tree(feed.items[0].id))

        assert "Biology (0/5)" in html
        assert "▾ Cells (0/3)" in html
        assert "▸ Review (0/2)" in html
        assert "Intro video" in html
        assert "Quiz" not in html
        assert 'class="feed-tree-item active"' in html

    def test_status_labels_cover_availability(self):
        assert set(STATUS_LABELS) == set(ClassAvailability)


class TestComments:
    """Test comment rendering."""

    def test_comment(self):
        comment = Comment(id="1", class_id="c", author="<Ana>", text="Hi",
                          created_at=datetime(2026, 3, 1, 9, 30))
        html = render_comment(comment)
        assert "&lt;Ana&gt;" in html
        assert "2026-03-01 09:30" in html
        assert 'class="feed-comment"' in html
        assert 'class="feed-comment reply"' in render_comment(comment, reply=True)
