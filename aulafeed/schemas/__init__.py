"""
AulaFeed Schemas - Pydantic models for the learning platform.

This module exports all schema classes for:
- Course: courses, lessons, classes, quiz questions, course enrollments, programs
- Group: groups, members, student enrollments
- Submission: assignment and quiz submissions
- Forum: forum posts and replies, comments, user profiles
- Progress: feed entries and progress records
"""

# Course schemas
from .course import (
    ClassType,
    Course,
    Lesson,
    ClassItem,
    QuizOption,
    QuizQuestion,
    EnrollmentStatus,
    EnrollmentCounters,
    CourseEnrollment,
    ProgramStatus,
    Program,
)

# Group schemas
from .group import (
    GroupStatus,
    CourseRef,
    AssistantTeacher,
    Group,
    NewStudent,
    GroupStudent,
    StudentEnrollment,
    enrollment_id_for,
)

# Submission schemas
from .submission import (
    SubmissionStatus,
    QuizAnswer,
    Submission,
    NewSubmission,
)

# Forum and engagement schemas
from .forum import (
    ForumFormat,
    ReplyRole,
    ForumPost,
    ForumReply,
    Comment,
    UserProfile,
)

# Progress schemas
from .progress import (
    FeedClass,
    ClassProgress,
    SeenClass,
    ProgressSnapshot,
)

__all__ = [
    # Course
    'ClassType',
    'Course',
    'Lesson',
    'ClassItem',
    'QuizOption',
    'QuizQuestion',
    'EnrollmentStatus',
    'EnrollmentCounters',
    'CourseEnrollment',
    'ProgramStatus',
    'Program',
    # Group
    'GroupStatus',
    'CourseRef',
    'AssistantTeacher',
    'Group',
    'NewStudent',
    'GroupStudent',
    'StudentEnrollment',
    'enrollment_id_for',
    # Submission
    'SubmissionStatus',
    'QuizAnswer',
    'Submission',
    'NewSubmission',
    # Forum
    'ForumFormat',
    'ReplyRole',
    'ForumPost',
    'ForumReply',
    'Comment',
    'UserProfile',
    # Progress
    'FeedClass',
    'ClassProgress',
    'SeenClass',
    'ProgressSnapshot',
]
