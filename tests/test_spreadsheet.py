"""
Tests for spreadsheet import of courses and groups.
"""

import pandas as pd
import pytest

from aulafeed.utils import (
    import_courses,
    import_groups,
    parse_course_rows,
    parse_group_rows,
    read_sheet,
    template_frame,
    write_template,
)
from aulafeed.utils.spreadsheet import normalize_import_type, parse_list


@pytest.fixture
def spanish_sheet():
    return pd.DataFrame([
        {"Curso": "Historia", "Lección": "Roma", "Título Clase": "Fundación",
         "Tipo": "Texto", "Contenido": "Rómulo y Remo", "Orden": "", "Asignación": "sí"},
        {"Curso": "Historia", "Lección": "Roma", "Título Clase": "Mapa",
         "Tipo": "imagen", "Contenido": "a.png; b.png", "Orden": "5", "Asignación": ""},
        {"Curso": "Historia", "Lección": "Grecia", "Título Clase": "Atenas",
         "Tipo": "video", "Contenido": "https://youtu.be/abcdefghijk", "Orden": "",
         "Asignación": "no"},
        {"Curso": "Historia", "Lección": "", "Título Clase": "Sin lección",
         "Tipo": "video", "Contenido": "", "Orden": "", "Asignación": ""},
    ])


class TestParsing:
    """Test cell and row parsing."""

    def test_type_aliases(self):
        assert normalize_import_type("Cuestionario") == "quiz"
        assert normalize_import_type(" IMAGEN ") == "image"
        assert normalize_import_type("podcast") == "text"
        assert normalize_import_type(None) == "text"

    def test_parse_list(self):
        assert parse_list("a.png | b.png;c.png,\n d.png") == ["a.png", "b.png", "c.png", "d.png"]
        assert parse_list(float("nan")) == []

    def test_spanish_headers(self, spanish_sheet):
        rows = parse_course_rows(spanish_sheet)
        assert [row.row for row in rows] == [2, 3, 4]
        first, second, third = rows
        assert first.course_title == "Historia"
        assert first.class_type == "text"
        assert first.has_assignment
        assert first.order is None
        assert second.class_type == "image"
        assert second.order == 5
        assert third.class_type == "video"
        assert not third.has_assignment


class TestImportCourses:
    """Test creating courses from rows."""

    def test_creates_one_course_and_lessons(self, spanish_sheet, courses):
        results = import_courses(parse_course_rows(spanish_sheet), courses, "t1", "Ana")
        assert all(result.ok for result in results)
        assert len({result.course_id for result in results}) == 1

        course_id = results[0].course_id
        assert courses.get_course(course_id).teacher_name == "Ana"
        lessons = courses.get_lessons(course_id)
        assert [lesson.title for lesson in lessons] == ["Roma", "Grecia"]
        assert [lesson.lesson_number for lesson in lessons] == [1, 2]

    def test_content_routed_by_type(self, spanish_sheet, courses):
        results = import_courses(parse_course_rows(spanish_sheet), courses, "t1")
        reading, gallery, video = (courses.get_class(result.created_id) for result in results)
        assert reading.content == "Rómulo y Remo"
        assert reading.has_assignment
        assert gallery.image_urls == ["a.png", "b.png"]
        assert gallery.order == 5
        assert video.video_url == "https://youtu.be/abcdefghijk"
        assert video.order == 0


class TestImportGroups:
    """Test creating groups from rows."""

    def test_unknown_course_ids_dropped(self, seeded, groups, courses):
        sheet = pd.DataFrame([
            {"Nombre del grupo": "Group B", "Cursos": f"{seeded.bio}; nope, {seeded.bio}",
             "Semestre": "2026-1"},
        ])
        rows = parse_group_rows(sheet)
        assert rows[0].program == "Licenciatura"

        result, = import_groups(rows, groups, courses, "t1", "Ana")
        assert result.ok
        group = groups.get_group(result.created_id)
        assert group.group_name == "Group B"
        assert [ref.course_id for ref in group.courses] == [seeded.bio]
        assert group.semester == "2026-1"

    def test_no_known_course_is_error(self, seeded, groups, courses):
        sheet = pd.DataFrame([{"Group Name": "Group C", "Cursos": "nope"},
                              {"Group Name": "", "Cursos": seeded.bio}])
        results = import_groups(parse_group_rows(sheet), groups, courses, "t1")
        assert len(results) == 1
        assert not results[0].ok
        assert results[0].message == "No known course ids"


class TestFiles:
    """Test reading sheets and templates."""

    def test_read_csv(self, tmp_path):
        path = tmp_path / "courses.csv"
        path.write_text("Course,Lesson,ClassTitle,Type\nBio,Cells,Intro,video\n",
                        encoding="utf-8")
        rows = parse_course_rows(read_sheet(path))
        assert len(rows) == 1
        assert rows[0].class_type == "video"

    def test_unsupported_extension(self, tmp_path):
        with pytest.raises(ValueError):
            read_sheet(tmp_path / "courses.txt")

    def test_templates(self, tmp_path):
        assert len(parse_course_rows(template_frame("courses"))) == 3
        assert len(parse_group_rows(template_frame("groups"))) == 1
        with pytest.raises(ValueError):
            template_frame("lessons")

    def test_write_template_roundtrip(self, tmp_path):
        path = write_template(tmp_path / "courses.csv")
        rows = parse_course_rows(read_sheet(path))
        assert [row.class_type for row in rows] == ["video", "text", "image"]
        assert rows[1].has_assignment
        assert rows[2].image_urls == ["https://example.org/a.png", "https://example.org/b.png"]
