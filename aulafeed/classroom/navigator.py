"""
Navigator - Feed sequencing and progress gating.

Provides:
- Class completion (required % plus forum participation)
- Gate checks against the previous class of the same course
- One-class-per-gesture stepping and auto-advance after text classes
- Course/lesson tree with availability and collapsed lessons
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from aulafeed.schemas import FeedClass

from .feed import StudentFeed
from .progress import ForumGate, ProgressTracker, required_pct


class ClassAvailability(str, Enum):
    """Class availability status for UI display."""
    LOCKED = "locked"           # Previous class not finished
    AVAILABLE = "available"     # Can start
    IN_PROGRESS = "in_progress" # Started but not completed
    COMPLETED = "completed"     # Finished


@dataclass
class GateDecision:
    """Result of trying to move to a class."""
    allowed: bool
    blocking: Optional[FeedClass] = None
    reason: str = ""
    pct: float = 0.0


@dataclass
class NavigationItem:
    """Feed class with navigation metadata."""
    item: FeedClass
    index: int
    pct: float
    availability: ClassAvailability
    is_active: bool


@dataclass
class NavigationLesson:
    lesson_id: str
    title: str
    items: list[NavigationItem]
    collapsed: bool
    completed_count: int
    total_count: int


@dataclass
class NavigationCourse:
    course_id: str
    title: str
    cover_url: str
    lessons: list[NavigationLesson] = field(default_factory=list)

    @property
    def completed_count(self) -> int:
        return sum(lesson.completed_count for lesson in self.lessons)

    @property
    def total_count(self) -> int:
        return sum(lesson.total_count for lesson in self.lessons)


class Navigator:
    """
    Navigate the student feed with gating.

    Combines the loaded feed with ProgressTracker (percentages) and
    ForumGate (forum participation).
    """

    def __init__(self, feed: StudentFeed, progress: ProgressTracker, forum: ForumGate):
        """
        Initialize navigator.

        Args:
            feed: Loaded student feed (or course preview)
            progress: Progress maps for the same student
            forum: Forum participation for the same student
        """
        self.feed = feed
        self.progress = progress
        self.forum = forum

    @property
    def items(self) -> list[FeedClass]:
        return self.feed.items

    @property
    def preview(self) -> bool:
        return self.feed.preview or self.progress.preview

    # -------------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------------

    def previous_same_course(self, index: int) -> Optional[int]:
        """Index of the closest earlier class of the same course, if any."""
        if index <= 0 or index >= len(self.items):
            return None
        course_id = self.items[index].course_id
        for idx in range(index - 1, -1, -1):
            if self.items[idx].course_id == course_id:
                return idx
        return None

    def base_complete(self, item: FeedClass) -> bool:
        """Required percentage reached, ignoring the forum."""
        return self.progress.effective_pct(item.id) >= required_pct(item.type)

    def is_class_complete(self, item: FeedClass) -> bool:
        if self.preview:
            return True
        return self.base_complete(item) and self.forum.is_satisfied(item)

    def pending_position(self) -> int:
        """Index of the first incomplete class, or the last class when all are done."""
        if self.preview:
            return 0
        for idx, item in enumerate(self.items):
            if not self.is_class_complete(item):
                return idx
        return max(0, len(self.items) - 1)

    # -------------------------------------------------------------------------
    # Gating
    # -------------------------------------------------------------------------

    def check_gate(self, index: int) -> GateDecision:
        """
        Check whether the class at index may be opened.

        Only the previous class of the same course is checked; the first
        class of every course is always open.
        """
        previous = self.previous_same_course(index)
        if previous is None or self.preview:
            return GateDecision(allowed=True)

        blocking = self.items[previous]
        if self.is_class_complete(blocking):
            return GateDecision(allowed=True)

        pct = self.progress.effective_pct(blocking.id)
        if self.base_complete(blocking):
            reason = f'Participate in the required forum of "{blocking.title}" to continue.'
        else:
            reason = f"Complete the previous class (progress {int(round(pct))}%)."
        return GateDecision(allowed=False, blocking=blocking, reason=reason, pct=pct)

    def jump_to(self, index: int, current: Optional[int] = None) -> GateDecision:
        """Gate a direct jump; moving back to an earlier class is always allowed."""
        if index < 0 or index >= len(self.items):
            return GateDecision(allowed=False, reason="No such class.")
        if current is not None and index <= current:
            return GateDecision(allowed=True)
        return self.check_gate(index)

    def step(self, active: int, direction: int) -> tuple[int, GateDecision]:
        """
        Move one class up or down (one class per gesture).

        Returns:
            Tuple of (new active index, gate decision). A blocked move keeps
            the active index.
        """
        if not self.items:
            return 0, GateDecision(allowed=False)
        delta = 1 if direction > 0 else -1
        target = min(max(active + delta, 0), len(self.items) - 1)
        if target <= active:
            return target, GateDecision(allowed=True)
        decision = self.check_gate(target)
        return (target if decision.allowed else active), decision

    def next_after_text_end(self, index: int) -> Optional[int]:
        """Index to auto-advance to after a text class was read to the end."""
        target = index + 1
        if target >= len(self.items):
            return None
        return target if self.check_gate(target).allowed else None

    # -------------------------------------------------------------------------
    # Tree
    # -------------------------------------------------------------------------

    def get_availability(self, index: int) -> ClassAvailability:
        item = self.items[index]
        if self.is_class_complete(item):
            return ClassAvailability.COMPLETED
        if not self.check_gate(index).allowed:
            return ClassAvailability.LOCKED
        if self.progress.effective_pct(item.id) > 0:
            return ClassAvailability.IN_PROGRESS
        return ClassAvailability.AVAILABLE

    def get_navigation_tree(self, active_id: Optional[str] = None) -> list[NavigationCourse]:
        """
        Get the course/lesson/class tree for the sidebar.

        Lessons are collapsed except the one holding the active class and the
        one holding the first pending class.
        """
        open_lessons = set()
        active_idx = self.feed.index_of(active_id) if active_id else -1
        if active_idx >= 0:
            active = self.items[active_idx]
            open_lessons.add((active.course_id, active.lesson_id))
        if self.items:
            pending = self.items[self.pending_position()]
            open_lessons.add((pending.course_id, pending.lesson_id))

        courses: dict[str, NavigationCourse] = {}
        lessons: dict[tuple[str, str], NavigationLesson] = {}
        for idx, item in enumerate(self.items):
            course = courses.get(item.course_id)
            if course is None:
                course = NavigationCourse(
                    course_id=item.course_id,
                    title=self.feed.course_titles.get(item.course_id, item.course_title),
                    cover_url=self.feed.course_covers.get(item.course_id, ""),
                )
                courses[item.course_id] = course

            key = (item.course_id, item.lesson_id)
            lesson = lessons.get(key)
            if lesson is None:
                lesson = NavigationLesson(
                    lesson_id=item.lesson_id,
                    title=item.lesson_title,
                    items=[],
                    collapsed=key not in open_lessons,
                    completed_count=0,
                    total_count=0,
                )
                lessons[key] = lesson
                course.lessons.append(lesson)

            availability = self.get_availability(idx)
            lesson.items.append(NavigationItem(
                item=item,
                index=idx,
                pct=min(100.0, self.progress.effective_pct(item.id)),
                availability=availability,
                is_active=item.id == active_id,
            ))
            lesson.total_count += 1
            if availability == ClassAvailability.COMPLETED:
                lesson.completed_count += 1

        return list(courses.values())

    def get_status_indicator(self, item_id: str, active_id: Optional[str] = None) -> str:
        """
        Get status indicator for sidebar display.

        Returns:
            ✓ for completed
            → for active
            ○ for available
            ◌ for locked
        """
        idx = self.feed.index_of(item_id)
        if idx < 0:
            return "◌"
        availability = self.get_availability(idx)

        if availability == ClassAvailability.COMPLETED:
            return "✓"
        elif item_id == active_id:
            return "→"
        elif availability == ClassAvailability.LOCKED:
            return "◌"
        else:
            return "○"

    # -------------------------------------------------------------------------
    # Progress Summary
    # -------------------------------------------------------------------------

    def get_progress_summary(self) -> dict:
        """Get progress summary for display."""
        tree = self.get_navigation_tree()
        completed = sum(course.completed_count for course in tree)
        total = len(self.items)

        return {
            "total_classes": total,
            "completed_classes": completed,
            "completion_percent": round(completed / total * 100, 1) if total else 0.0,
            "courses": [
                {
                    "id": course.course_id,
                    "title": course.title,
                    "completed": course.completed_count,
                    "total": course.total_count,
                }
                for course in tree
            ],
            "pending_index": self.pending_position() if total else None,
        }
