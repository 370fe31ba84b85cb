"""
Group schemas for AulaFeed.

A group is a cohort of students taught by one teacher (plus assistants)
and linked to one or more courses. Each member gets a StudentEnrollment,
which is what the student feed is built from.
"""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum


class GroupStatus(str, Enum):
    ACTIVE = "active"
    FINISHED = "finished"
    ARCHIVED = "archived"


class CourseRef(BaseModel):
    course_id: str
    course_name: str = ""


class AssistantTeacher(BaseModel):
    id: str
    name: str
    email: Optional[str] = None


class Group(BaseModel):
    id: str
    course_id: str = ""       # primary course (legacy single-course field)
    course_name: str = ""
    courses: list[CourseRef] = []
    course_ids: list[str] = []
    group_name: str = ""
    program: str = ""
    teacher_id: str = ""
    teacher_name: str = ""
    assistant_teacher_ids: list[str] = []
    assistant_teachers: list[AssistantTeacher] = []
    semester: str = ""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: GroupStatus = GroupStatus.ACTIVE
    students_count: int = 0
    max_students: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NewStudent(BaseModel):
    """Student row handed to add_students_to_group."""
    id: str
    name: str = ""
    email: str = ""


class GroupStudent(BaseModel):
    id: str
    student_name: str = ""
    student_email: str = ""
    status: str = "active"
    enrolled_at: Optional[datetime] = None


class StudentEnrollment(BaseModel):
    id: str                    # "{group_id}_{student_id}"
    student_id: str
    student_name: str = ""
    student_email: str = ""
    group_id: str
    group_name: str = ""
    course_id: str = ""
    course_name: str = ""
    teacher_name: str = ""
    status: str = "active"
    enrolled_at: Optional[datetime] = None
    final_grade: Optional[float] = None


def enrollment_id_for(group_id: str, student_id: str) -> str:
    return f"{group_id}_{student_id}"
