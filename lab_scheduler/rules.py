import logging
from enum import Enum
from pathlib import Path
from typing import Iterator, List, NamedTuple, Optional, Tuple, Union

from pydantic import BaseModel, Field

from .school import School, Time

logger = logging.getLogger(__name__)


# ---------- the authored rules document ----------
# subject -> teachers -> grades -> ordered lab preferences (most wanted first)

class GradeRules(BaseModel):
    name: str
    labs: List[str] = Field(default_factory=list)
    forbidden_times: List[Time] = Field(default_factory=list)


class TeacherRules(BaseModel):
    name: str
    grades: List[GradeRules] = Field(default_factory=list)


class ClassRules(BaseModel):
    subject: str
    teachers: List[TeacherRules] = Field(default_factory=list)


class Rules(BaseModel):
    classes: List[ClassRules] = Field(default_factory=list)

    def leaves(self) -> Iterator[Tuple[ClassRules, TeacherRules, GradeRules]]:
        for class_rules in self.classes:
            for teacher in class_rules.teachers:
                for grade in teacher.grades:
                    yield class_rules, teacher, grade

    def flatten(self) -> Iterator[Tuple[str, str, str]]:
        """(teacher, grade, subject) name triples in document order."""
        for class_rules, teacher, grade in self.leaves():
            yield teacher.name, grade.name, class_rules.subject


def load_rules(path: Union[str, Path]) -> Rules:
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        return Rules.model_validate_json(f.read())


def save_rules(rules: Rules, path: Union[str, Path]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(rules.model_dump_json(indent=2), encoding="utf-8")


# ---------- resolution against a school ----------

class DiagnosticReason(str, Enum):
    UNKNOWN_TEACHER = "unknown_teacher"
    UNKNOWN_GRADE = "unknown_grade"
    UNKNOWN_SUBJECT = "unknown_subject"
    UNKNOWN_CLASS = "unknown_class"
    UNKNOWN_LAB = "unknown_lab"
    DUPLICATE_CLASS = "duplicate_class"


class RuleDiagnostic(BaseModel):
    reason: DiagnosticReason
    teacher: str
    grade: str
    subject: str
    name: Optional[str] = None  # the offending name, when it is not the triple itself

    def __str__(self) -> str:
        where = f"{self.teacher} - {self.grade}/{self.subject}"
        if self.name is not None:
            return f"{self.reason.value} {self.name!r} in rule {where}"
        return f"{self.reason.value} in rule {where}"


class ResolvedRule(NamedTuple):
    class_id: int
    labs: Tuple[int, ...]  # preference order, most wanted first
    forbidden_times: Tuple[Time, ...] = ()


def resolve_rules(rules: Rules, school: School) -> Tuple[List[ResolvedRule], List[RuleDiagnostic]]:
    """Turn rule leaves into (class id, ordered lab ids), skipping what does not resolve.

    Nothing here raises for stale or misspelled names: the leaf (or the single
    lab name) is dropped and a diagnostic explains why. Output order follows the
    document, which the solver uses as its visiting and drop order.
    """
    resolved: List[ResolvedRule] = []
    diagnostics: List[RuleDiagnostic] = []
    seen: set = set()

    def report(reason: DiagnosticReason, teacher: str, grade: str, subject: str,
               name: Optional[str] = None) -> None:
        diagnostic = RuleDiagnostic(reason=reason, teacher=teacher, grade=grade,
                                    subject=subject, name=name)
        logger.warning("Skipping %s", diagnostic)
        diagnostics.append(diagnostic)

    for class_rules, teacher_rules, grade_rules in rules.leaves():
        names = (teacher_rules.name, grade_rules.name, class_rules.subject)

        subject_id = school.subject_id(class_rules.subject)
        teacher_id = school.teacher_id(teacher_rules.name)
        grade_id = school.grade_id(grade_rules.name)
        if subject_id is None:
            report(DiagnosticReason.UNKNOWN_SUBJECT, *names, name=class_rules.subject)
            continue
        if teacher_id is None:
            report(DiagnosticReason.UNKNOWN_TEACHER, *names, name=teacher_rules.name)
            continue
        if grade_id is None:
            report(DiagnosticReason.UNKNOWN_GRADE, *names, name=grade_rules.name)
            continue

        class_id = school.class_id(teacher_id, grade_id, subject_id)
        if class_id is None:
            report(DiagnosticReason.UNKNOWN_CLASS, *names)
            continue
        # a class gets at most one lab session, so only its first leaf counts
        if class_id in seen:
            report(DiagnosticReason.DUPLICATE_CLASS, *names)
            continue
        seen.add(class_id)

        labs: List[int] = []
        for lab_name in grade_rules.labs:
            lab_id = school.laboratory_id(lab_name)
            if lab_id is None:
                report(DiagnosticReason.UNKNOWN_LAB, *names, name=lab_name)
                continue
            if lab_id not in labs:
                labs.append(lab_id)

        resolved.append(ResolvedRule(class_id, tuple(labs), tuple(grade_rules.forbidden_times)))

    return resolved, diagnostics
