"""
Tests for Navigator: gating, stepping and the sidebar tree.
"""

import pytest

from aulafeed.classroom import (
    ClassAvailability,
    FeedLoader,
    ForumGate,
    LocalProgressCache,
    Navigator,
    ProgressTracker,
)


@pytest.fixture
def wrap_up(seeded, courses):
    """A class after the forum class, so the forum can gate something."""
    return courses.create_class(seeded.bio, seeded.review, "Wrap-up", type="video")


@pytest.fixture
def feed(seeded, wrap_up, store):
    # Intro video, Reading, Gallery, Quiz, Discussion, Wrap-up, Atoms video
    return FeedLoader(store).load_student_feed("s1")


@pytest.fixture
def nav(feed, store, forums, cache_dir):
    tracker = ProgressTracker(store, "s1", feed.enrollment.id,
                              cache=LocalProgressCache("s1", cache_dir))
    tracker.load()
    gate = ForumGate(forums, "s1")
    gate.load_all(feed.items)
    return Navigator(feed, tracker, gate)


def _complete(nav, *indexes):
    for idx in indexes:
        nav.progress.record(nav.items[idx], 100.0, forum_ok=nav.forum.is_satisfied(nav.items[idx]))


class TestGate:
    """Test the previous-class gate."""

    def test_first_class_is_open(self, nav):
        assert nav.check_gate(0).allowed

    def test_incomplete_previous_blocks(self, nav):
        nav.progress.record(nav.items[0], 40.0)
        decision = nav.check_gate(1)
        assert not decision.allowed
        assert decision.blocking.id == nav.items[0].id
        assert decision.reason == "Complete the previous class (progress 40%)."
        assert decision.pct == 40.0

    def test_completed_previous_opens(self, nav):
        _complete(nav, 0)
        assert nav.check_gate(1).allowed

    def test_first_class_of_second_course_is_open(self, nav):
        assert nav.previous_same_course(6) is None
        assert nav.check_gate(6).allowed

    def test_forum_reason(self, nav):
        _complete(nav, 0, 1, 2, 3)
        nav.progress.record(nav.items[4], 100.0, forum_ok=False)
        decision = nav.check_gate(5)
        assert not decision.allowed
        assert decision.reason == 'Participate in the required forum of "Discussion" to continue.'

    def test_forum_post_unlocks(self, nav, forums):
        _complete(nav, 0, 1, 2, 3)
        discussion = nav.items[4]
        nav.progress.record(discussion, 100.0, forum_ok=False)
        forums.create_or_update_forum_post(discussion.class_doc_id, "s1", "Hi", "Luis")
        nav.forum.refresh(discussion)
        assert nav.check_gate(5).allowed


class TestMoves:
    """Test jumps, steps and auto-advance."""

    def test_jump_back_always_allowed(self, nav):
        assert nav.jump_to(0, current=3).allowed

    def test_jump_forward_is_gated(self, nav):
        assert not nav.jump_to(3, current=0).allowed
        assert not nav.jump_to(99).allowed

    def test_step_blocked_keeps_position(self, nav):
        index, decision = nav.step(0, 1)
        assert index == 0
        assert not decision.allowed

    def test_step_forward_and_back(self, nav):
        _complete(nav, 0)
        index, decision = nav.step(0, 1)
        assert index == 1 and decision.allowed
        index, decision = nav.step(1, -1)
        assert index == 0 and decision.allowed

    def test_step_clamped_at_ends(self, nav):
        assert nav.step(0, -1)[0] == 0
        last = len(nav.items) - 1
        assert nav.step(last, 1)[0] == last

    def test_auto_advance_after_text(self, nav):
        _complete(nav, 0)
        assert nav.next_after_text_end(1) is None
        _complete(nav, 1)
        assert nav.next_after_text_end(1) == 2
        assert nav.next_after_text_end(len(nav.items) - 1) is None


class TestCompletion:
    """Test completion and the pending position."""

    def test_pending_position(self, nav):
        assert nav.pending_position() == 0
        _complete(nav, 0, 1)
        assert nav.pending_position() == 2

    def test_all_done_points_to_last(self, nav):
        _complete(nav, *range(len(nav.items)))
        nav.forum.mark_done(nav.items[4])
        assert nav.pending_position() == len(nav.items) - 1

    def test_availability(self, nav):
        nav.progress.record(nav.items[0], 10.0)
        assert nav.get_availability(0) == ClassAvailability.IN_PROGRESS
        assert nav.get_availability(1) == ClassAvailability.LOCKED
        assert nav.get_availability(6) == ClassAvailability.AVAILABLE
        _complete(nav, 0)
        assert nav.get_availability(0) == ClassAvailability.COMPLETED


class TestTree:
    """Test the sidebar tree and summary."""

    def test_collapsed_lessons(self, nav):
        tree = nav.get_navigation_tree(nav.items[0].id)
        assert [course.title for course in tree] == ["Biology", "Chemistry"]
        cells, review = tree[0].lessons
        assert not cells.collapsed
        assert review.collapsed
        assert tree[1].lessons[0].collapsed

    def test_pending_lesson_stays_open(self, nav):
        _complete(nav, 0, 1, 2)
        tree = nav.get_navigation_tree(nav.items[0].id)
        cells, review = tree[0].lessons
        assert not cells.collapsed
        assert not review.collapsed

    def test_counts(self, nav):
        _complete(nav, 0)
        tree = nav.get_navigation_tree()
        assert tree[0].lessons[0].completed_count == 1
        assert tree[0].lessons[0].total_count == 3
        assert tree[0].completed_count == 1
        assert tree[0].total_count == 6

    def test_status_indicators(self, nav):
        _complete(nav, 0)
        active = nav.items[1].id
        assert nav.get_status_indicator(nav.items[0].id, active) == "✓"
        assert nav.get_status_indicator(active, active) == "→"
        assert nav.get_status_indicator(nav.items[2].id, active) == "◌"
        assert nav.get_status_indicator(nav.items[6].id, active) == "○"
        assert nav.get_status_indicator("missing") == "◌"

    def test_summary(self, nav):
        _complete(nav, 0)
        summary = nav.get_progress_summary()
        assert summary["total_classes"] == 7
        assert summary["completed_classes"] == 1
        assert summary["completion_percent"] == round(1 / 7 * 100, 1)
        assert summary["pending_index"] == 1
        assert summary["courses"][1]["title"] == "Chemistry"


class TestPreviewNavigation:
    """Test navigation in the teacher preview."""

    def test_everything_open(self, seeded, store, forums, cache_dir):
        feed = FeedLoader(store).load_preview_feed(seeded.bio)
        tracker = ProgressTracker(store, "t1", cache=LocalProgressCache("t1", cache_dir),
                                  preview=True)
        nav = Navigator(feed, tracker, ForumGate(forums, "t1", preview=True))
        assert nav.jump_to(len(feed.items) - 1, current=0).allowed
        assert all(nav.is_class_complete(item) for item in feed.items)

    def test_preview_starts_at_first_class(self, seeded, store, forums, cache_dir):
        feed = FeedLoader(store).load_preview_feed(seeded.bio)
        tracker = ProgressTracker(store, "t1", cache=LocalProgressCache("t1", cache_dir),
                                  preview=True)
        nav = Navigator(feed, tracker, ForumGate(forums, "t1", preview=True))
        assert nav.pending_position() == 0
