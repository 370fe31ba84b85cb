"""
Submission schemas for AulaFeed.

Assignments and quizzes both land as submissions inside the student's group.
"""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    GRADED = "graded"
    LATE = "late"
    SUBMITTED = "submitted"


class QuizAnswer(BaseModel):
    question_id: str
    question: str = ""
    selected_option_id: str = ""
    selected_option_text: str = ""


class Submission(BaseModel):
    id: str
    group_id: str = ""
    class_id: str
    class_doc_id: Optional[str] = None
    course_id: Optional[str] = None
    course_title: Optional[str] = None
    class_name: str = ""
    class_type: str = ""
    student_id: str = ""
    student_name: str = ""
    enrollment_id: Optional[str] = None
    submitted_at: Optional[datetime] = None
    file_url: str = ""
    attachment_url: str = ""
    content: str = ""
    answers: list[QuizAnswer] = []
    status: SubmissionStatus = SubmissionStatus.PENDING
    grade: Optional[float] = None
    feedback: str = ""
    graded_at: Optional[datetime] = None


class NewSubmission(BaseModel):
    """Payload accepted by create_submission."""
    class_id: str
    class_doc_id: Optional[str] = None
    course_id: Optional[str] = None
    course_title: Optional[str] = None
    class_name: str
    class_type: str
    student_id: str
    student_name: str
    enrollment_id: Optional[str] = None
    submitted_at: Optional[datetime] = None
    file_url: str = ""
    attachment_url: str = ""
    content: str = ""
    answers: list[QuizAnswer] = []
    status: Optional[SubmissionStatus] = None
    grade: Optional[float] = None
