"""
FeedLoader - Build the ordered class feed for a student or a course preview.

Provides:
- normalize_class_type: map authored type labels onto ClassType values
- FeedLoader.resolve_enrollment: newest enrollment, rebuilt from group membership if missing
- FeedLoader.load_student_feed / load_preview_feed
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from aulafeed.schemas import ClassType, Course, FeedClass, Group, StudentEnrollment

from .courses import CourseService
from .errors import FeedError
from .groups import GroupService
from .store import ClassroomStore

logger = logging.getLogger(__name__)


_TYPE_ALIASES = {
    ClassType.TEXT.value: ("text", "texto", "article", "document", "doc"),
    ClassType.IMAGE.value: ("image", "imagen", "photo", "foto", "picture", "gallery"),
    ClassType.AUDIO.value: ("audio", "podcast", "sonido"),
    ClassType.QUIZ.value: ("quiz", "test", "assessment", "examen"),
}


def normalize_class_type(raw: Optional[str]) -> str:
    """
    Normalize an authored class type.

    Empty means video; known aliases map to their ClassType; anything else
    is returned lower-cased.
    """
    value = (raw or "").strip().lower()
    if not value:
        return ClassType.VIDEO.value
    for class_type, aliases in _TYPE_ALIASES.items():
        if value in aliases:
            return class_type
    return value


def feed_id(course_id: str, class_id: str) -> str:
    return f"{course_id}_{class_id}"


@dataclass
class StudentFeed:
    """Everything the feed page needs after loading."""
    items: list[FeedClass]
    enrollment: Optional[StudentEnrollment] = None
    group: Optional[Group] = None
    course_titles: dict[str, str] = field(default_factory=dict)
    course_covers: dict[str, str] = field(default_factory=dict)
    preview: bool = False

    def index_of(self, item_id: str) -> int:
        for idx, item in enumerate(self.items):
            if item.id == item_id:
                return idx
        return -1


class FeedLoader:
    """Read courses and group membership into a StudentFeed."""

    def __init__(self, store: ClassroomStore):
        self.store = store
        self.courses = CourseService(store)
        self.groups = GroupService(store)

    def resolve_enrollment(self, student_id: str) -> Optional[StudentEnrollment]:
        """
        Get the student's newest enrollment.

        If the student has none but is a member of a group, the enrollment
        is created from that membership and read back.
        """
        enrollments = self.groups.get_student_enrollments(student_id)
        if enrollments:
            return enrollments[0]

        for group_id, member in self.groups.find_memberships(student_id):
            group = self.groups.get_group(group_id)
            if not group:
                continue
            enrollment_id = self.groups.create_enrollment(group, member)
            logger.info(f"Rebuilt enrollment {enrollment_id} from group membership")
            enrollments = self.groups.get_student_enrollments(student_id)
            return enrollments[0] if enrollments else None
        return None

    def load_student_feed(self, student_id: str) -> StudentFeed:
        """
        Build the feed of the student's current group.

        Raises:
            FeedError: No enrollment, missing group, or nothing to show
        """
        enrollment = self.resolve_enrollment(student_id)
        if not enrollment:
            raise FeedError("No courses have been assigned to you yet.")

        group = self.groups.get_group(enrollment.group_id)
        if not group:
            raise FeedError("Your group no longer exists. Contact your teacher.")

        course_ids = group.course_ids or ([group.course_id] if group.course_id else [])
        feed = StudentFeed(items=[], enrollment=enrollment, group=group)
        for course_id in course_ids:
            course = self.courses.get_course(course_id)
            if not course or course.is_archived:
                continue
            self._append_course(feed, course, enrollment.id, group.id)

        if not feed.items:
            raise FeedError("Your courses are archived or have no classes yet.")
        logger.info(
            f"Loaded feed for {student_id}: {len(feed.items)} classes "
            f"in {len(feed.course_titles)} course(s)"
        )
        return feed

    def load_preview_feed(self, course_id: str) -> StudentFeed:
        """
        Build the feed of a single course without an enrollment.

        Raises:
            FeedError: Unknown course or course without classes
        """
        course = self.courses.get_course(course_id)
        if not course:
            raise FeedError("Course not found.")
        feed = StudentFeed(items=[], preview=True)
        self._append_course(feed, course, None, None)
        if not feed.items:
            raise FeedError("This course has no classes yet.")
        return feed

    def _append_course(self, feed: StudentFeed, course: Course,
                       enrollment_id: Optional[str], group_id: Optional[str]):
        feed.course_titles[course.id] = course.title
        cover = course.cover_url
        if cover:
            feed.course_covers[course.id] = cover

        for lesson in self.courses.get_lessons(course.id):
            for item in self.courses.get_classes(lesson.id):
                feed.items.append(FeedClass(
                    id=feed_id(course.id, item.id),
                    class_doc_id=item.id,
                    title=item.title,
                    type=normalize_class_type(item.type),
                    course_id=course.id,
                    course_title=course.title,
                    lesson_id=lesson.id,
                    lesson_title=lesson.title,
                    enrollment_id=enrollment_id,
                    group_id=group_id,
                    video_url=item.video_url.strip(),
                    audio_url=item.audio_url.strip(),
                    content=item.content,
                    images=[url.strip() for url in item.image_urls if url and url.strip()],
                    has_assignment=item.has_assignment,
                    assignment_template_url=item.assignment_template_url,
                    likes_count=item.likes_count,
                    forum_enabled=item.forum_enabled,
                    forum_required_format=item.forum_required_format,
                ))
