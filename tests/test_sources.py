import json
import logging

import pytest
from pydantic import ValidationError

from lab_scheduler.school import Day
from lab_scheduler.sources import (
    SchoolDocument,
    build_school,
    load_html_school,
    load_school,
    parse_timetable_html,
    split_cell,
)


class TestCells:
    @pytest.mark.parametrize("cell, expected", [
        ("6A/Chemistry", ("6A", "Chemistry")),
        ("6A / Chemistry", ("6A", "Chemistry")),
        ("", None),
        ("Chemistry", None),
        ("6A/Chemistry/Lab", ("6A", "Chemistry")),
        ("6A/", None),
    ])
    def test_split_cell(self, cell, expected):
        assert split_cell(cell) == expected


class TestBuildSchool:
    def test_example_document(self, example_request):
        school = build_school(SchoolDocument.model_validate(example_request["school"]))
        assert [t.name for t in school.teachers.values()] == ["Ana", "Bruno", "Carla"]
        assert [l.name for l in school.laboratories.values()] == ["Lab 1", "Lab 2", "Computer Room"]
        assert len(school.classes) == 5
        assert len(school.slots) == 6
        # 6B Physics meets twice a week, on two different periods
        physics = school.class_id(school.teacher_id("Bruno"), school.grade_id("6B"),
                                  school.subject_id("Physics"))
        assert [str(school.slots[s]) for s in school.slots_of(physics)] == ["Monday 07:30", "Monday 08:20"]

    def test_unreadable_cells_are_skipped(self):
        document = SchoolDocument.model_validate({
            "teachers": [{"name": "Ana Lima", "lessons": [
                {"time": "07:30", "monday": "6A/Chemistry", "tuesday": "staff meeting"},
            ]}],
            "laboratories": ["Lab 1", "Lab 1"],
        })
        school = build_school(document)
        assert len(school.slotted_classes) == 1
        assert school.teacher_id("Ana Lima") == 0
        assert len(school.laboratories) == 1
        assert school.slots[0].day == Day.MONDAY

    def test_bad_time_is_rejected(self):
        with pytest.raises(ValidationError):
            SchoolDocument.model_validate({"teachers": [{"name": "Ana", "lessons": [{"time": "25:00"}]}]})

    def test_load_from_file(self, tmp_path, example_request):
        path = tmp_path / "school.json"
        path.write_text(json.dumps(example_request["school"]), encoding="utf-8")
        school = load_school(path)
        assert len(school.slotted_classes) == 8

    def test_unreadable_cell_is_logged(self, caplog):
        document = SchoolDocument.model_validate({
            "teachers": [{"name": "Ana", "lessons": [{"time": "07:30", "monday": "Chemistry"}]}],
        })
        with caplog.at_level(logging.WARNING, logger="lab_scheduler.sources"):
            school = build_school(document)
        assert len(school.slotted_classes) == 0
        assert "Skipping unreadable cell 'Chemistry' (Ana, Monday 07:30)" in caplog.text

    def test_extra_cell_parts_keep_the_lesson(self):
        document = SchoolDocument.model_validate({
            "teachers": [{"name": "Ana", "lessons": [{"time": "07:30", "monday": "6A/Chemistry/Lab 1"}]}],
        })
        school = build_school(document)
        assert str(school.class_view(0)) == "Ana - 6A/Chemistry"

    def test_portuguese_keys(self):
        document = SchoolDocument.model_validate({
            "professores": [{"nome": "Ana", "aulas": [
                {"horario": "07:30", "segunda": "6A/Química", "terca": "", "quarta": "6A/Química",
                 "quinta": "", "sexta": "7B/Física"},
            ]}],
            "laboratorios": ["Lab 1"],
        })
        school = build_school(document)
        assert [str(s) for s in school.slots.values()] == ["Monday 07:30", "Wednesday 07:30", "Friday 07:30"]
        assert school.subject_id("Química") == 0
        assert school.laboratory_id("Lab 1") == 0


HEADER_ROW = ("<tr><td>Horário</td><td>Segunda</td><td>Terça</td><td>Quarta</td>"
              "<td>Quinta</td><td>Sexta</td></tr>")

TIMETABLE_HTML = f"""<html><body>
<p>Turma 6A</p>
<table>
{HEADER_ROW}
<tr><td>07:30</td><td>Química<br>Ana&nbsp;Lima</td><td></td><td>Física<br>Bruno</td><td></td><td></td></tr>
<tr><td>08:20</td><td>Química<br>Ana&nbsp;Lima</td><td></td><td></td><td>Reunião</td><td></td></tr>
</table>
<p>Turma 7B</p>
<table>
{HEADER_ROW}
<tr><td>07:30</td><td>Física<br>Bruno</td><td></td><td></td><td></td><td></td></tr>
</table>
</body></html>
"""


@pytest.fixture
def html_files(tmp_path):
    timetable = tmp_path / "horario.html"
    timetable.write_bytes(TIMETABLE_HTML.encode("cp1252"))
    labs = tmp_path / "labs.json"
    labs.write_text(json.dumps(["Lab 1", "Lab 2"]), encoding="utf-8")
    return timetable, labs


class TestHtmlSchool:
    def test_grades_come_from_headings(self):
        tables = parse_timetable_html(TIMETABLE_HTML)
        assert [t.grade for t in tables] == ["6A", "7B"]
        assert tables[0].rows[1][1] == ["Química", "Ana\u00a0Lima"]

    def test_heading_without_prefix_is_kept(self):
        tables = parse_timetable_html("<p>8C</p><table><tr><td>x</td></tr></table>")
        assert [t.grade for t in tables] == ["8C"]

    def test_load_windows_1252_export(self, html_files):
        school = load_html_school(*html_files)
        assert [t.name for t in school.teachers.values()] == ["Ana Lima", "Bruno"]
        assert [g.name for g in school.grades.values()] == ["6A", "7B"]
        assert [l.name for l in school.laboratories.values()] == ["Lab 1", "Lab 2"]
        assert len(school.classes) == 3
        assert len(school.slotted_classes) == 4
        chemistry = school.class_id(school.teacher_id("Ana Lima"), school.grade_id("6A"),
                                    school.subject_id("Química"))
        assert [str(school.slots[s]) for s in school.slots_of(chemistry)] == ["Monday 07:30", "Monday 08:20"]
        # the same Física teacher meets two grades, which are two classes
        physics = school.subject_id("Física")
        assert [c.grade for c in school.classes.values() if c.subject == physics] == [0, 1]

    def test_undecodable_bytes_are_logged(self, html_files, caplog):
        timetable, labs = html_files
        timetable.write_bytes(timetable.read_bytes().replace(b"<body>", b"<body>\x81"))
        with caplog.at_level(logging.WARNING, logger="lab_scheduler.sources"):
            school = load_html_school(timetable, labs)
        assert "could not be decoded" in caplog.text
        assert len(school.classes) == 3

    def test_labs_file_must_be_a_list_of_names(self, html_files):
        timetable, labs = html_files
        labs.write_text(json.dumps({"labs": ["Lab 1"]}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_html_school(timetable, labs)
