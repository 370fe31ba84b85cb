"""
Shared fixtures: a fresh SQLite store per test, seeded with two courses,
one group and two students.
"""

from types import SimpleNamespace

import pytest

from aulafeed.classroom import (
    ClassroomStore,
    CourseService,
    EngagementService,
    ForumService,
    GroupService,
    ProgramService,
    SubmissionService,
    UserDirectory,
)
from aulafeed.schemas import CourseRef, NewStudent, QuizOption


@pytest.fixture
def store(tmp_path):
    return ClassroomStore(tmp_path / "aula.db")


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def courses(store):
    return CourseService(store)


@pytest.fixture
def groups(store):
    return GroupService(store)


@pytest.fixture
def submissions(store):
    return SubmissionService(store)


@pytest.fixture
def forums(store):
    return ForumService(store)


@pytest.fixture
def users(store):
    return UserDirectory(store)


@pytest.fixture
def engagement(store, users):
    return EngagementService(store, users)


@pytest.fixture
def programs(store):
    return ProgramService(store)


@pytest.fixture
def seeded(store, courses, groups):
    """
    Biology
      Cells:  video, text (assignment), image gallery
      Review: quiz, audio with required text forum
    Chemistry
      Atoms:  video
    Group A links both courses; students s1 and s2.
    """
    bio = courses.create_course("t1", "Biology", teacher_name="Ana")
    cells = courses.create_lesson(bio, "Cells")
    video = courses.create_class(bio, cells, "Intro video", type="video",
                                 video_url=" https://youtu.be/abcdefghijk ")
    text = courses.create_class(bio, cells, "Reading", type="text",
                                content="Cells are small.", has_assignment=True)
    gallery = courses.create_class(bio, cells, "Gallery", type="image",
                                   image_urls=["a.png", " ", "b.png"])

    review = courses.create_lesson(bio, "Review")
    quiz = courses.create_class(bio, review, "Quiz", type="quiz")
    courses.create_quiz_question(quiz, "2 + 2?", [
        QuizOption(id="a", text="3", is_correct=False),
        QuizOption(id="b", text="4", is_correct=True),
    ])
    forum = courses.create_class(bio, review, "Discussion", type="audio",
                                 audio_url="talk.mp3", forum_enabled=True,
                                 forum_required_format="text")

    chem = courses.create_course("t1", "Chemistry", teacher_name="Ana")
    atoms = courses.create_lesson(chem, "Atoms")
    chem_video = courses.create_class(chem, atoms, "Atoms video", type="video")

    group_id = groups.create_group(
        bio, "Biology", "Group A", "t1", "Ana",
        courses=[CourseRef(course_id=bio, course_name="Biology"),
                 CourseRef(course_id=chem, course_name="Chemistry")],
    )
    groups.add_students_to_group(group_id, [
        NewStudent(id="s1", name="Luis", email="luis@example.com"),
        NewStudent(id="s2", name="María"),
    ])

    return SimpleNamespace(
        bio=bio, chem=chem,
        cells=cells, review=review, atoms=atoms,
        video=video, text=text, gallery=gallery, quiz=quiz, forum=forum,
        chem_video=chem_video,
        group_id=group_id,
    )
