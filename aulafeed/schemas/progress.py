"""
Progress tracking schemas for AulaFeed.

Defines Pydantic models for the student feed state:
- FeedClass: one entry of the student's feed
- ClassProgress: server record per enrollment and class
- SeenClass: per-user "already seen" marker
- ProgressSnapshot: the three progress maps cached locally
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class FeedClass(BaseModel):
    id: str                    # "{course_id}_{class_doc_id}"
    class_doc_id: str
    title: str
    type: str
    course_id: str
    course_title: str = ""
    lesson_id: str
    lesson_title: str = ""
    enrollment_id: Optional[str] = None
    group_id: Optional[str] = None
    video_url: str = ""
    audio_url: str = ""
    content: str = ""
    images: list[str] = []
    has_assignment: bool = False
    assignment_template_url: str = ""
    likes_count: int = 0
    forum_enabled: bool = False
    forum_required_format: Optional[str] = None


class ClassProgress(BaseModel):
    enrollment_id: str
    class_id: str
    progress: float = Field(default=0.0, ge=0)
    completed: bool = False
    seen: bool = False
    last_updated: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    quiz_completed: bool = False
    quiz_answers: dict[str, str] = {}
    grade: Optional[float] = None
    status: Optional[str] = None


class SeenClass(BaseModel):
    user_id: str
    class_id: str
    seen: bool = False
    progress: float = 0.0
    updated_at: Optional[datetime] = None


class ProgressSnapshot(BaseModel):
    progress: dict[str, float] = {}
    completed: dict[str, bool] = {}
    seen: dict[str, bool] = {}

    def merged_with(self, other: "ProgressSnapshot") -> "ProgressSnapshot":
        """
        Combine two snapshots without losing progress.

        Percentages keep the higher value; completed/seen flags stay set once set.
        """
        progress = dict(self.progress)
        for class_id, pct in other.progress.items():
            progress[class_id] = max(pct, progress.get(class_id, 0.0))
        completed = dict(self.completed)
        for class_id, flag in other.completed.items():
            completed[class_id] = flag or completed.get(class_id, False)
        seen = dict(self.seen)
        for class_id, flag in other.seen.items():
            seen[class_id] = flag or seen.get(class_id, False)
        return ProgressSnapshot(progress=progress, completed=completed, seen=seen)
