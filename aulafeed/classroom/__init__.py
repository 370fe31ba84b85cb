"""
AulaFeed Classroom - Storage, services and the student feed state machine.

This module provides:
- ClassroomStore: SQLite document store
- Course, program, group, submission, forum and engagement services
- FeedLoader: Build the student feed
- ProgressTracker / ForumGate: Per-class progress and forum participation
- Navigator: Gating and sequencing
"""

from .errors import (
    ClassroomError,
    NotFoundError,
    GroupNotFoundError,
    SubmissionsClosedError,
    ForumGradedError,
    FeedError,
)

from .store import ClassroomStore

from .courses import CourseService
from .groups import GroupService
from .submissions import SubmissionService
from .forums import ForumService
from .engagement import EngagementService, UserDirectory
from .programs import ProgramService
from .assignments import AssignmentService

from .feed import (
    FeedLoader,
    StudentFeed,
    feed_id,
    normalize_class_type,
)

from .progress import (
    ProgressTracker,
    ProgressUpdate,
    LocalProgressCache,
    ForumGate,
    required_pct,
    DEFAULT_CACHE_DIR,
)

from .navigator import (
    Navigator,
    ClassAvailability,
    GateDecision,
    NavigationItem,
    NavigationLesson,
    NavigationCourse,
)

__all__ = [
    # Errors
    "ClassroomError",
    "NotFoundError",
    "GroupNotFoundError",
    "SubmissionsClosedError",
    "ForumGradedError",
    "FeedError",
    # Store and services
    "ClassroomStore",
    "CourseService",
    "GroupService",
    "SubmissionService",
    "ForumService",
    "EngagementService",
    "UserDirectory",
    "ProgramService",
    "AssignmentService",
    # Feed
    "FeedLoader",
    "StudentFeed",
    "feed_id",
    "normalize_class_type",
    # Progress
    "ProgressTracker",
    "ProgressUpdate",
    "LocalProgressCache",
    "ForumGate",
    "required_pct",
    "DEFAULT_CACHE_DIR",
    # Navigator
    "Navigator",
    "ClassAvailability",
    "GateDecision",
    "NavigationItem",
    "NavigationLesson",
    "NavigationCourse",
]
