"""
Spreadsheet import - Bulk creation of courses and groups from .xlsx/.csv files.

Provides:
- read_sheet: load a sheet into a DataFrame of strings
- parse_course_rows / import_courses: one row per class
- parse_group_rows / import_groups: one row per group
- template_frame: sample sheets with the expected headers

Headers are matched case- and accent-insensitively against Spanish and
English aliases.
"""

import logging
import re
import sqlite3
import unicodedata
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Optional, Union

import pandas as pd

from aulafeed.classroom import ClassroomError, CourseService, GroupService
from aulafeed.schemas import ClassType, CourseRef

logger = logging.getLogger(__name__)


COURSE_FIELD_ALIASES = {
    "course_title": ["Curso", "Course", "TítuloCurso", "TituloCurso", "CourseTitle"],
    "course_description": ["DescripciónCurso", "DescripcionCurso", "CourseDescription",
                           "Descripción"],
    "intro_video_url": ["IntroVideoUrl", "VideoIntro", "Intro Video", "Intro"],
    "category": ["Categoría", "Categoria", "Category"],
    "lesson_title": ["Lección", "Leccion", "Lesson", "LessonTitle"],
    "class_title": ["TítuloClase", "TituloClase", "ClassTitle", "Clase"],
    "class_type": ["Tipo", "ClassType", "Type"],
    "content": ["Contenido", "Content", "URL", "Link"],
    "duration": ["Duración", "Duracion", "Duration"],
    "order": ["Orden", "Order"],
    "image_urls": ["ImageUrls", "Imagenes", "Imágenes", "Images"],
    "has_assignment": ["HasAssignment", "Asignacion", "Asignación", "TieneTarea"],
    "assignment_template_url": ["AssignmentTemplateUrl", "Template", "Plantilla"],
}

GROUP_FIELD_ALIASES = {
    "group_name": ["Nombre", "name", "Nombre del grupo", "Group Name"],
    "program": ["Programa", "program"],
    "courses": ["Cursos", "courses", "Course IDs"],
    "semester": ["Semestre", "semester"],
}

DEFAULT_PROGRAM = "Licenciatura"

_TRUE_VALUES = {"si", "sí", "yes", "true", "1", "x"}
_LIST_SPLIT_RE = re.compile(r"[|;,\n]")
_COURSE_ID_SPLIT_RE = re.compile(r"[,;|]")

_TYPE_ALIASES = {
    "video": ClassType.VIDEO.value,
    "texto": ClassType.TEXT.value,
    "text": ClassType.TEXT.value,
    "audio": ClassType.AUDIO.value,
    "quiz": ClassType.QUIZ.value,
    "cuestionario": ClassType.QUIZ.value,
    "image": ClassType.IMAGE.value,
    "imagen": ClassType.IMAGE.value,
    "imagenes": ClassType.IMAGE.value,
    "imágenes": ClassType.IMAGE.value,
}


@dataclass
class ImportResult:
    """Outcome of importing one sheet row."""
    row: int
    status: str                # "ok" or "error"
    message: str = ""
    course_id: Optional[str] = None
    created_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


@dataclass
class CourseRow:
    row: int
    course_title: str
    lesson_title: str
    class_title: str
    class_type: str = ClassType.TEXT.value
    course_description: str = ""
    intro_video_url: str = ""
    category: str = ""
    content: str = ""
    duration: Optional[float] = None
    order: Optional[int] = None
    image_urls: list[str] = field(default_factory=list)
    has_assignment: bool = False
    assignment_template_url: str = ""


@dataclass
class GroupRow:
    row: int
    group_name: str
    program: str = DEFAULT_PROGRAM
    course_ids: list[str] = field(default_factory=list)
    semester: str = ""


# -----------------------------------------------------------------------------
# Cell parsing
# -----------------------------------------------------------------------------

def _normalize_header(name: str) -> str:
    stripped = unicodedata.normalize("NFKD", str(name)).encode("ascii", "ignore").decode()
    return re.sub(r"[\s_]+", "", stripped).lower()


def cell_text(value) -> str:
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    return str(value).strip()


def parse_bool(value) -> bool:
    return cell_text(value).lower() in _TRUE_VALUES


def parse_number(value) -> Optional[float]:
    text = cell_text(value).replace(",", ".")
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def parse_list(value) -> list[str]:
    return [part.strip() for part in _LIST_SPLIT_RE.split(cell_text(value)) if part.strip()]


def normalize_import_type(value) -> str:
    """Class type from a sheet cell; unknown or empty values become text."""
    return _TYPE_ALIASES.get(cell_text(value).lower(), ClassType.TEXT.value)


def resolve_columns(df: pd.DataFrame, aliases: dict[str, list[str]]) -> dict[str, str]:
    """Map field names to the DataFrame's actual column names."""
    by_key = {_normalize_header(column): column for column in df.columns}
    resolved = {}
    for field_name, names in aliases.items():
        for name in names:
            column = by_key.get(_normalize_header(name))
            if column is not None:
                resolved[field_name] = column
                break
    return resolved


# -----------------------------------------------------------------------------
# Reading
# -----------------------------------------------------------------------------

def read_sheet(source: Union[str, Path, IO], filename: Optional[str] = None) -> pd.DataFrame:
    """
    Load a spreadsheet as strings.

    Args:
        source: Path or file-like object (e.g. a Streamlit upload)
        filename: Name used to pick the reader when source is file-like

    Raises:
        ValueError: Unsupported file extension
    """
    name = filename or getattr(source, "name", None) or str(source)
    suffix = Path(name).suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(source, dtype=str, keep_default_na=False)
    if suffix in (".xlsx", ".xls"):
        return pd.read_excel(source, dtype=str, keep_default_na=False)
    raise ValueError(f"Unsupported spreadsheet type: {suffix or name}")


# -----------------------------------------------------------------------------
# Courses
# -----------------------------------------------------------------------------

def parse_course_rows(df: pd.DataFrame) -> list[CourseRow]:
    """
    Parse class rows; rows without course, lesson or class title are skipped.

    Row numbers follow the sheet (header is row 1).
    """
    columns = resolve_columns(df, COURSE_FIELD_ALIASES)

    def get(record: dict, field_name: str):
        column = columns.get(field_name)
        return record.get(column) if column is not None else None

    rows = []
    for idx, record in enumerate(df.to_dict(orient="records")):
        course_title = cell_text(get(record, "course_title"))
        lesson_title = cell_text(get(record, "lesson_title"))
        class_title = cell_text(get(record, "class_title"))
        if not (course_title and lesson_title and class_title):
            continue
        order = parse_number(get(record, "order"))
        rows.append(CourseRow(
            row=idx + 2,
            course_title=course_title,
            lesson_title=lesson_title,
            class_title=class_title,
            class_type=normalize_import_type(get(record, "class_type")),
            course_description=cell_text(get(record, "course_description")),
            intro_video_url=cell_text(get(record, "intro_video_url")),
            category=cell_text(get(record, "category")),
            content=cell_text(get(record, "content")),
            duration=parse_number(get(record, "duration")),
            order=int(order) if order is not None else None,
            image_urls=parse_list(get(record, "image_urls")),
            has_assignment=parse_bool(get(record, "has_assignment")),
            assignment_template_url=cell_text(get(record, "assignment_template_url")),
        ))
    return rows


def _class_fields(row: CourseRow) -> dict:
    """Route the content cell to the field of the class type."""
    fields = {
        "duration": row.duration,
        "has_assignment": row.has_assignment,
        "assignment_template_url": row.assignment_template_url,
    }
    if row.class_type == ClassType.VIDEO.value:
        fields["video_url"] = row.content
    elif row.class_type == ClassType.AUDIO.value:
        fields["audio_url"] = row.content
    elif row.class_type == ClassType.IMAGE.value:
        fields["image_urls"] = row.image_urls or parse_list(row.content)
    else:
        fields["content"] = row.content
    return fields


def import_courses(rows: list[CourseRow], courses: CourseService,
                   teacher_id: str, teacher_name: str = "") -> list[ImportResult]:
    """
    Create courses, lessons and classes from parsed rows.

    Each course and lesson is created once; lessons are numbered per course
    in order of first appearance. Failures are reported per row.
    """
    course_ids: dict[str, str] = {}
    lesson_ids: dict[tuple[str, str], str] = {}
    lesson_counts: dict[str, int] = {}
    class_counts: dict[str, int] = {}
    results = []

    for row in rows:
        try:
            course_id = course_ids.get(row.course_title)
            if course_id is None:
                course_id = courses.create_course(
                    teacher_id=teacher_id,
                    title=row.course_title,
                    description=row.course_description,
                    teacher_name=teacher_name,
                    intro_video_url=row.intro_video_url,
                    category=row.category,
                )
                course_ids[row.course_title] = course_id

            lesson_key = (course_id, row.lesson_title)
            lesson_id = lesson_ids.get(lesson_key)
            if lesson_id is None:
                position = lesson_counts.get(course_id, 0)
                lesson_id = courses.create_lesson(course_id, row.lesson_title,
                                                  order=position, lesson_number=position + 1)
                lesson_ids[lesson_key] = lesson_id
                lesson_counts[course_id] = position + 1

            sequential = class_counts.get(lesson_id, 0)
            class_counts[lesson_id] = sequential + 1
            class_id = courses.create_class(
                course_id, lesson_id, row.class_title,
                type=row.class_type,
                order=row.order if row.order is not None else sequential,
                **_class_fields(row),
            )
            results.append(ImportResult(row=row.row, status="ok",
                                        course_id=course_id, created_id=class_id))
        except (ClassroomError, sqlite3.Error, ValueError) as exc:
            logger.warning(f"Row {row.row}: {exc}")
            results.append(ImportResult(row=row.row, status="error", message=str(exc)))

    ok = sum(1 for result in results if result.ok)
    logger.info(f"Imported {ok}/{len(results)} class rows into {len(course_ids)} course(s)")
    return results


# -----------------------------------------------------------------------------
# Groups
# -----------------------------------------------------------------------------

def parse_group_rows(df: pd.DataFrame) -> list[GroupRow]:
    columns = resolve_columns(df, GROUP_FIELD_ALIASES)

    def get(record: dict, field_name: str):
        column = columns.get(field_name)
        return record.get(column) if column is not None else None

    rows = []
    for idx, record in enumerate(df.to_dict(orient="records")):
        name = cell_text(get(record, "group_name"))
        if not name:
            continue
        rows.append(GroupRow(
            row=idx + 2,
            group_name=name,
            program=cell_text(get(record, "program")) or DEFAULT_PROGRAM,
            course_ids=[
                part.strip()
                for part in _COURSE_ID_SPLIT_RE.split(cell_text(get(record, "courses")))
                if part.strip()
            ],
            semester=cell_text(get(record, "semester")),
        ))
    return rows


def import_groups(rows: list[GroupRow], groups: GroupService, courses: CourseService,
                  teacher_id: str, teacher_name: str = "") -> list[ImportResult]:
    """
    Create groups from parsed rows.

    Course ids that do not exist are dropped; a row left without courses
    is reported as an error.
    """
    results = []
    for row in rows:
        refs = []
        for course_id in row.course_ids:
            course = courses.get_course(course_id)
            if course is None:
                logger.info(f"Row {row.row}: dropping unknown course id {course_id}")
                continue
            if all(ref.course_id != course.id for ref in refs):
                refs.append(CourseRef(course_id=course.id, course_name=course.title))

        if not refs:
            results.append(ImportResult(row=row.row, status="error",
                                        message="No known course ids"))
            continue

        try:
            group_id = groups.create_group(
                course_id=refs[0].course_id,
                course_name=refs[0].course_name,
                group_name=row.group_name,
                teacher_id=teacher_id,
                teacher_name=teacher_name,
                semester=row.semester,
                program=row.program,
                courses=refs,
                max_students=0,
            )
            results.append(ImportResult(row=row.row, status="ok",
                                        course_id=refs[0].course_id, created_id=group_id))
        except (ClassroomError, sqlite3.Error) as exc:
            logger.warning(f"Row {row.row}: {exc}")
            results.append(ImportResult(row=row.row, status="error", message=str(exc)))
    return results


# -----------------------------------------------------------------------------
# Templates
# -----------------------------------------------------------------------------

def template_frame(kind: str = "courses") -> pd.DataFrame:
    """
    Sample sheet with the expected headers.

    Args:
        kind: "courses" or "groups"
    """
    if kind == "groups":
        return pd.DataFrame([
            {"Group Name": "Group A", "Programa": DEFAULT_PROGRAM,
             "Cursos": "<course-id-1>, <course-id-2>", "Semestre": "2026-1"},
        ])
    if kind != "courses":
        raise ValueError(f"Unknown template kind: {kind}")
    return pd.DataFrame([
        {"Course": "Intro to Biology", "CourseDescription": "Cells and life",
         "Category": "Science", "Lesson": "Cells", "ClassTitle": "What is a cell?",
         "Tipo": "video", "Content": "https://youtu.be/dQw4w9WgXcQ", "Duration": "6",
         "Order": "1", "ImageUrls": "", "HasAssignment": "no", "Template": ""},
        {"Course": "Intro to Biology", "CourseDescription": "", "Category": "",
         "Lesson": "Cells", "ClassTitle": "Reading: organelles", "Tipo": "texto",
         "Content": "Organelles are specialised structures...", "Duration": "",
         "Order": "2", "ImageUrls": "", "HasAssignment": "sí", "Template": ""},
        {"Course": "Intro to Biology", "CourseDescription": "", "Category": "",
         "Lesson": "Cells", "ClassTitle": "Cell gallery", "Tipo": "imagen",
         "Content": "", "Duration": "", "Order": "3",
         "ImageUrls": "https://example.org/a.png | https://example.org/b.png",
         "HasAssignment": "", "Template": ""},
    ])


def write_template(path: Union[str, Path], kind: str = "courses") -> Path:
    path = Path(path)
    frame = template_frame(kind)
    if path.suffix.lower() == ".csv":
        frame.to_csv(path, index=False)
    else:
        frame.to_excel(path, index=False)
    return path
