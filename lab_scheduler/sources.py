import json
import logging
from html.parser import HTMLParser
from pathlib import Path
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .school import DAYS, Day, School, Slot, Time

logger = logging.getLogger(__name__)


# Both the English keys and the Portuguese ones of the original exports
# (professores/nome/aulas/horario/segunda..sexta/laboratorios) are accepted.
class SourceModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# One row of a teacher's weekly grid: the period start time and, per weekday,
# either "" (free) or "<grade>/<subject>".
class LessonRow(SourceModel):
    time: Time = Field(alias="horario")
    monday: str = Field(default="", alias="segunda")
    tuesday: str = Field(default="", alias="terca")
    wednesday: str = Field(default="", alias="quarta")
    thursday: str = Field(default="", alias="quinta")
    friday: str = Field(default="", alias="sexta")

    def cells(self) -> List[Tuple[Day, str]]:
        return list(zip(DAYS, [self.monday, self.tuesday, self.wednesday, self.thursday, self.friday]))


class TeacherTimetable(SourceModel):
    name: str = Field(alias="nome")
    lessons: List[LessonRow] = Field(default_factory=list, alias="aulas")


class SchoolDocument(SourceModel):
    teachers: List[TeacherTimetable] = Field(default_factory=list, alias="professores")
    laboratories: List[str] = Field(default_factory=list, alias="laboratorios")


def clean_name(text: str) -> str:
    # exported timetables pad names with non-breaking spaces
    return text.replace("\u00a0", " ").strip()


def split_cell(cell: str) -> Optional[Tuple[str, str]]:
    """Split "6A/Chemistry" into ("6A", "Chemistry"); text after a second "/" is ignored."""
    parts = cell.split("/", 2)
    if len(parts) < 2:
        return None
    grade, subject = clean_name(parts[0]), clean_name(parts[1])
    if not grade or not subject:
        return None
    return grade, subject


def build_school(document: SchoolDocument) -> School:
    school = School()
    for teacher in document.teachers:
        teacher_name = clean_name(teacher.name)
        for row in teacher.lessons:
            for day, cell in row.cells():
                parsed = split_cell(cell)
                if parsed is None:
                    if cell.strip():
                        logger.warning("Skipping unreadable cell %r (%s, %s %s)",
                                       cell, teacher_name, day.value, row.time)
                    continue
                grade, subject = parsed
                school.add_lesson(teacher_name, grade, subject, Slot(day=day, time=row.time))
    for lab in document.laboratories:
        school.add_laboratory(clean_name(lab))
    return school


def load_school(path: Union[str, Path]) -> School:
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        document = SchoolDocument.model_validate_json(f.read())
    return build_school(document)


# ---------- HTML timetable export (one table per grade) ----------

class GradeTable(BaseModel):
    grade: str
    # rows -> cells -> text lines of the cell, header row included
    rows: List[List[List[str]]] = Field(default_factory=list)


class TimetableParser(HTMLParser):
    """Collects every <p> heading and every <table> as rows of cells of text lines.

    A cell's lines are its separate text runs, so "Chemistry<br>Ana" gives
    ["Chemistry", "Ana"].
    """

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.headings: List[str] = []
        self.tables: List[List[List[List[str]]]] = []
        self._heading: Optional[List[str]] = None
        self._row: Optional[List[List[str]]] = None
        self._cell: Optional[List[str]] = None

    def handle_starttag(self, tag, attrs):
        if tag == "p":
            self._heading = []
        elif tag == "table":
            self.tables.append([])
        elif tag == "tr" and self.tables:
            self._row = []
            self.tables[-1].append(self._row)
        elif tag == "td" and self._row is not None:
            self._cell = []
            self._row.append(self._cell)

    def handle_endtag(self, tag):
        if tag == "p" and self._heading is not None:
            self.headings.append("".join(self._heading))
            self._heading = None
        elif tag == "td":
            self._cell = None
        elif tag == "tr":
            self._row = None
            self._cell = None

    def handle_data(self, data):
        if self._heading is not None:
            self._heading.append(data)
        if self._cell is not None and data.strip():
            self._cell.append(data)


def parse_timetable_html(markup: str) -> List[GradeTable]:
    parser = TimetableParser()
    parser.feed(markup)
    parser.close()
    grades: List[GradeTable] = []
    # the n-th heading names the n-th table
    for heading, rows in zip(parser.headings, parser.tables):
        name = heading.strip()
        if name.startswith("Turma "):
            name = name[len("Turma "):]
        grades.append(GradeTable(grade=clean_name(name), rows=rows))
    return grades


def build_school_from_tables(tables: List[GradeTable], laboratories: List[str]) -> School:
    school = School()
    for table in tables:
        grade = table.grade
        for row in table.rows[1:]:  # first row is the weekday header
            if not row or not row[0]:
                continue
            time = Time.model_validate(clean_name(row[0][0]))
            for cell, day in zip(row[1:], DAYS):
                if len(cell) < 2:
                    continue  # free period
                subject, teacher = clean_name(cell[0]), clean_name(cell[1])
                school.add_lesson(teacher, grade, subject, Slot(day=day, time=time))
    for lab in laboratories:
        school.add_laboratory(clean_name(lab))
    return school


def load_html_school(timetable_path: Union[str, Path], labs_path: Union[str, Path]) -> School:
    """Build a School from an HTML timetable export plus a JSON list of lab names.

    The export is Windows-1252 encoded; undecodable bytes are replaced and logged.
    """
    raw = Path(timetable_path).read_bytes()
    markup = raw.decode("cp1252", errors="replace")
    if "\ufffd" in markup:
        logger.warning("Some characters of %s could not be decoded", timetable_path)
    with Path(labs_path).open("r", encoding="utf-8") as f:
        laboratories = json.load(f)
    if not isinstance(laboratories, list) or not all(isinstance(n, str) for n in laboratories):
        raise ValueError(f"{labs_path}: expected a JSON list of laboratory names")
    return build_school_from_tables(parse_timetable_html(markup), laboratories)
