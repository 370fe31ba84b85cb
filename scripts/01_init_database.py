#!/usr/bin/env python3
"""
01_init_database.py - Create the AulaFeed database.

Creates all tables and indexes, and optionally seeds a demo teacher,
course, program, group and students to try the feed with.

Usage:
  python scripts/01_init_database.py
  python scripts/01_init_database.py --db data/aula.db --demo
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from aulafeed import config
from aulafeed.classroom import (
    ClassroomStore,
    CourseService,
    GroupService,
    ProgramService,
    UserDirectory,
)
from aulafeed.schemas import NewStudent, QuizOption, UserProfile

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


DEMO_TEACHER = UserProfile(id="teacher-demo", name="Ana Torres", role="teacher",
                           must_change_password=False)
DEMO_STUDENTS = [
    NewStudent(id="student-1", name="Luis Pérez", email="luis@example.com"),
    NewStudent(id="student-2", name="María Gómez", email="maria@example.com"),
]


# -----------------------------------------------------------------------------
# Demo content
# -----------------------------------------------------------------------------

def seed_demo(store: ClassroomStore) -> dict:
    """Create a demo course with one class of every type and a group."""
    users = UserDirectory(store)
    courses = CourseService(store)
    groups = GroupService(store)
    programs = ProgramService(store)

    users.upsert_user(DEMO_TEACHER)
    for student in DEMO_STUDENTS:
        users.upsert_user(UserProfile(id=student.id, name=student.name,
                                      email=student.email, must_change_password=True))

    course_id = courses.create_course(
        DEMO_TEACHER.id, "Introduction to Biology",
        description="Cells, tissues and the basics of life.",
        teacher_name=DEMO_TEACHER.name, category="Science",
    )
    cells = courses.create_lesson(course_id, "Cells")
    courses.create_class(course_id, cells, "What is a cell?", type="video",
                         video_url="https://www.youtube.com/watch?v=URUJD5NEXC8")
    courses.create_class(
        course_id, cells, "Reading: organelles", type="text",
        content="<h3>Organelles</h3><p>Organelles are specialised structures inside "
                "the cell. The nucleus stores DNA; mitochondria produce energy.</p>",
        has_assignment=True,
    )
    courses.create_class(course_id, cells, "Cell gallery", type="image",
                         image_urls=["https://picsum.photos/id/1/800/500",
                                     "https://picsum.photos/id/2/800/500"])

    review = courses.create_lesson(course_id, "Review")
    quiz_id = courses.create_class(course_id, review, "Check your understanding", type="quiz")
    courses.create_quiz_question(quiz_id, "Which organelle produces energy?", [
        QuizOption(id="a", text="Nucleus", is_correct=False),
        QuizOption(id="b", text="Mitochondria", is_correct=True,
                   correct_feedback="Right, the powerhouse of the cell."),
        QuizOption(id="c", text="Ribosome", is_correct=False),
    ])
    courses.create_class(course_id, review, "Discussion: why cells?", type="audio",
                         audio_url="https://www.soundhelix.com/examples/mp3/SoundHelix-Song-1.mp3",
                         forum_enabled=True, forum_required_format="text")
    courses.publish_course(course_id)
    programs.create_program("Science", "Introductory science courses.")
    programs.sync_programs_from_courses()

    group_id = groups.create_group(course_id, "Introduction to Biology", "Group A",
                                   DEMO_TEACHER.id, DEMO_TEACHER.name,
                                   semester="2026-1", program="Licenciatura")
    added = groups.add_students_to_group(group_id, DEMO_STUDENTS)

    return {"course_id": course_id, "group_id": group_id, "students": added}


# -----------------------------------------------------------------------------
# Main
# -----------------------------------------------------------------------------

def main():
    parser = argparse.ArgumentParser(
        description="Create the AulaFeed database",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=config.DB_PATH,
        help="Database path"
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Seed a demo teacher, course, group and students"
    )

    args = parser.parse_args()

    logger.info(f"Creating database at {args.db}...")
    store = ClassroomStore(args.db)

    if args.demo:
        logger.info("Seeding demo content...")
        result = seed_demo(store)
        logger.info(f"  Course: {result['course_id']}")
        logger.info(f"  Group:  {result['group_id']} ({result['students']} students)")
        logger.info(f"  Sign in as {DEMO_TEACHER.id} (teacher) or "
                    f"{', '.join(s.id for s in DEMO_STUDENTS)} (students)")

    logger.info("Done.")


if __name__ == "__main__":
    main()
