"""
Course content schemas for AulaFeed.

Defines Pydantic models for authored content:
- Courses and their lessons
- Classes (the single learning units shown in the feed)
- Quiz questions attached to quiz classes
- Per-course enrollment progress counters
- Programs grouping courses under a shared name
"""

from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime
from enum import Enum


class ClassType(str, Enum):
    VIDEO = "video"
    TEXT = "text"
    AUDIO = "audio"
    QUIZ = "quiz"
    IMAGE = "image"


class Course(BaseModel):
    id: str
    title: str = "Untitled course"
    description: str = ""
    thumbnail: str = ""
    image_urls: list[str] = []
    is_published: bool = False
    is_archived: bool = False
    lessons_count: int = 0
    students_count: int = 0
    intro_video_url: str = ""
    category: str = ""
    program: str = ""
    teacher_id: str = ""
    teacher_name: str = ""
    created_at: Optional[datetime] = None

    @property
    def cover_url(self) -> str:
        """First usable cover image (gallery, then thumbnail)."""
        for url in self.image_urls:
            if url:
                return url
        return self.thumbnail


class Lesson(BaseModel):
    id: str
    course_id: str
    lesson_number: int = 1
    title: str = "Untitled lesson"
    description: str = ""
    order: int = 0


class ClassItem(BaseModel):
    """A class as authored by the teacher (one row under a lesson)."""
    id: str
    course_id: str
    lesson_id: str
    title: str = "Untitled class"
    type: str = ClassType.VIDEO.value
    order: int = 0
    duration: Optional[float] = None
    video_url: str = ""
    content: str = ""
    audio_url: str = ""
    image_urls: list[str] = []
    has_assignment: bool = False
    assignment_template_url: str = ""
    forum_enabled: bool = False
    forum_required_format: Optional[Literal["text", "audio", "video"]] = None
    likes_count: int = Field(default=0, ge=0)


# -----------------------------------------------------------------------------
# Quiz questions
# -----------------------------------------------------------------------------

class QuizOption(BaseModel):
    id: str
    text: str = ""
    is_correct: Optional[bool] = None  # None = not auto-gradable
    feedback: Optional[str] = None
    correct_feedback: Optional[str] = None
    incorrect_feedback: Optional[str] = None


class QuizQuestion(BaseModel):
    id: str
    prompt: str = ""
    type: Literal["multiple", "truefalse", "open"] = "multiple"
    order: int = 0
    options: list[QuizOption] = []
    answer_text: Optional[str] = None
    explanation: str = ""

    @property
    def has_correctness(self) -> bool:
        return any(opt.is_correct is not None for opt in self.options)

    def option(self, option_id: str) -> Optional[QuizOption]:
        for opt in self.options:
            if opt.id == option_id:
                return opt
        return None

    def correct_option(self) -> Optional[QuizOption]:
        for opt in self.options:
            if opt.is_correct is True:
                return opt
        return None


# -----------------------------------------------------------------------------
# Course enrollment (per-course counters)
# -----------------------------------------------------------------------------

class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    DROPPED = "dropped"


class EnrollmentCounters(BaseModel):
    lessons_completed: int = 0
    classes_completed: int = 0
    quizzes_completed: int = 0
    score_avg: Optional[float] = 0


class CourseEnrollment(BaseModel):
    user_id: str
    course_id: str
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE
    assigned_by: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    progress: EnrollmentCounters = Field(default_factory=EnrollmentCounters)


# -----------------------------------------------------------------------------
# Programs
# -----------------------------------------------------------------------------

class ProgramStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class Program(BaseModel):
    """A named bundle of courses. Courses join it through their program name."""
    id: str
    name: str = "Programa"
    description: str = ""
    cover_url: str = ""
    course_ids: list[str] = []
    status: ProgramStatus = ProgramStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
