"""
Forum and engagement schemas for AulaFeed.

Defines Pydantic models for:
- Forum posts (one root contribution per student per class) and replies
- Class comments (threaded through parent_id)
- User profiles used to resolve author names
"""

from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime


ForumFormat = Literal["text", "audio", "video"]
ReplyRole = Literal["professor", "student", "mentor"]


class ForumPost(BaseModel):
    id: str                    # same as the author id
    class_id: str = ""
    text: str = ""
    author_id: str = ""
    author_name: str = "User"
    format: ForumFormat = "text"
    media_url: Optional[str] = None
    created_at: datetime
    replies_count: int = 0
    status: Optional[Literal["pending", "graded"]] = None
    grade: Optional[float] = None
    feedback: str = ""
    graded_at: Optional[datetime] = None

    @property
    def is_graded(self) -> bool:
        return self.status == "graded" or self.grade is not None or self.graded_at is not None


class ForumReply(BaseModel):
    id: str
    post_id: str
    text: str = ""
    author_id: str = ""
    author_name: str = "User"
    role: Optional[ReplyRole] = None
    created_at: datetime


class Comment(BaseModel):
    id: str
    class_id: str
    author: str
    author_id: str = ""
    text: str = ""
    created_at: datetime
    parent_id: Optional[str] = None
    role: Optional[Literal["professor", "student"]] = None


class UserProfile(BaseModel):
    id: str
    name: str = ""
    display_name: str = ""
    email: str = ""
    role: str = "student"
    must_change_password: Optional[bool] = None
    phone: str = ""
    status: str = "active"
    created_at: Optional[datetime] = None
