import csv
from html import escape
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Tuple, Union

from .school import DAYS, School, Slot, Time
from .solution import Missing, NoLabs, Solution

PLACEMENT_FIELDS = ["lab", "day", "time", "teacher", "grade", "subject", "preferred"]


def period_times(school: School) -> List[Time]:
    """Distinct period start times of the base timetable, earliest first."""
    return sorted({slot.time for slot in school.slots.values()}, key=lambda t: (t.hour, t.minute))


def lab_timetables(school: School, solution: Solution) -> Dict[str, Dict[str, List[str]]]:
    """lab name -> day name -> one cell per period ("-" when the lab is free).

    e.g. {"Lab 1": {"Monday": ["6A/Chemistry:Ana", "-", ...], ...}}
    """
    times = period_times(school)
    timetables: Dict[str, Dict[str, List[str]]] = {}
    for lab_id, lab in school.laboratories:
        grid = {day.value: ["-"] * len(times) for day in DAYS}
        for placed in solution.slotted:
            if placed.lab != lab_id:
                continue
            slot = school.slots[placed.slot]
            view = school.class_view(placed.class_id)
            grid[slot.day.value][times.index(slot.time)] = f"{view.grade}/{view.subject}:{view.teacher}"
        timetables[lab.name] = grid
    return timetables


def placement_rows(school: School, solution: Solution) -> List[Dict[str, Union[str, bool]]]:
    downgraded = {w.class_id for w in solution.warnings}
    rows: List[Dict[str, Union[str, bool]]] = []
    for placed in solution.slotted:
        slot = school.slots[placed.slot]
        view = school.class_view(placed.class_id)
        rows.append({
            "lab": school.laboratories[placed.lab].name,
            "day": slot.day.value,
            "time": str(slot.time),
            "teacher": view.teacher.name,
            "grade": view.grade.name,
            "subject": view.subject.name,
            "preferred": placed.class_id not in downgraded,
        })
    return rows


def write_csv(path: Union[str, Path], school: School, solution: Solution) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=PLACEMENT_FIELDS)
        writer.writeheader()
        for row in placement_rows(school, solution):
            writer.writerow(row)


def describe(school: School, solution: Solution) -> List[str]:
    """Readable lines for every error, then every warning."""
    lines: List[str] = []
    for error in solution.errors:
        view = school.class_view(error.class_id)
        if isinstance(error, NoLabs):
            lines.append(f"Error: {view} has no laboratory preference")
        elif isinstance(error, Missing):
            lines.append(f"Error: {view} could not be given a laboratory session")
    for warning in solution.warnings:
        view = school.class_view(warning.class_id)
        was = school.laboratories[warning.was]
        got = school.laboratories[warning.got]
        lines.append(f"Warning: {view} wanted {was} but got {got}")
    return lines


# ---------- printable page: one table per lab, one row per teacher ----------

class TeacherRow(NamedTuple):
    teacher: str
    grades: List[Optional[str]]  # one entry per slot of ordered_slots(), None when free


def ordered_slots(school: School) -> List[Tuple[int, Slot]]:
    """Every slot of the base timetable, by day then time."""
    return sorted(school.slots, key=lambda item: (DAYS.index(item[1].day), item[1].time.hour,
                                                  item[1].time.minute))


def lab_schedules(school: School, solution: Solution) -> Dict[str, List[TeacherRow]]:
    """lab name -> rows for the teachers holding a session there, teacher id order."""
    columns = [slot_id for slot_id, _ in ordered_slots(school)]
    schedules: Dict[str, List[TeacherRow]] = {}
    for lab_id, lab in school.laboratories:
        by_teacher: Dict[int, List[Optional[str]]] = {}
        for placed in solution.slotted:
            if placed.lab != lab_id:
                continue
            cls = school.classes[placed.class_id]
            row = by_teacher.setdefault(cls.teacher, [None] * len(columns))
            row[columns.index(placed.slot)] = school.grades[cls.grade].name
        schedules[lab.name] = [
            TeacherRow(school.teachers[teacher_id].name, by_teacher[teacher_id])
            for teacher_id in sorted(by_teacher)
        ]
    return schedules


def render_html(school: School, solution: Solution) -> str:
    slots = [slot for _, slot in ordered_slots(school)]
    day_spans = [(day, sum(1 for slot in slots if slot.day == day)) for day in DAYS]
    day_spans = [(day, span) for day, span in day_spans if span]

    html_content = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Laboratory timetables</title>
<style>
    table { border-collapse: collapse; margin-bottom: 24px; font-family: Arial, sans-serif; font-size: 13px; }
    th, td { border: 1px solid #999; padding: 4px 8px; text-align: center; }
    th { background-color: #eee; }
</style>
</head>
<body>
"""
    for lab_name, rows in lab_schedules(school, solution).items():
        html_content += f"<h2>Timetable {escape(lab_name)}</h2>\n<table>\n"
        html_content += "<tr><th rowspan='2'>Teacher</th>"
        html_content += "".join(f"<th colspan='{span}'>{escape(day.value)}</th>" for day, span in day_spans)
        html_content += "</tr>\n<tr>"
        html_content += "".join(f"<th>{escape(str(slot.time))}</th>" for slot in slots)
        html_content += "</tr>\n"
        for row in rows:
            html_content += f"<tr><td>{escape(row.teacher)}</td>"
            html_content += "".join(f"<td>{escape(grade or '')}</td>" for grade in row.grades)
            html_content += "</tr>\n"
        if not rows:
            html_content += f"<tr><td colspan='{len(slots) + 1}'>No sessions in this laboratory.</td></tr>\n"
        html_content += "</table>\n"
    html_content += "</body>\n</html>\n"
    return html_content


def write_html(path: Union[str, Path], school: School, solution: Solution) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_html(school, solution), encoding="utf-8")
