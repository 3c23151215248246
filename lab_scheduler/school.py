from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, NamedTuple, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator

from .store import Table


class Day(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"


DAYS: List[Day] = [Day.MONDAY, Day.TUESDAY, Day.WEDNESDAY, Day.THURSDAY, Day.FRIDAY]


class Entity(BaseModel):
    # frozen => hashable and compared by value, which insert_unique relies on
    model_config = ConfigDict(frozen=True)


class Time(Entity):
    hour: int = Field(ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)

    @model_validator(mode="before")
    @classmethod
    def parse_text(cls, data: Any) -> Any:
        #"07:30" -> {"hour": 7, "minute": 30}
        if isinstance(data, str):
            parts = data.strip().split(":")
            if len(parts) != 2 or not all(p.isdigit() for p in parts):
                raise ValueError(f"Bad time format: {data!r} (expected HH:MM)")
            return {"hour": int(parts[0]), "minute": int(parts[1])}
        return data

    @model_serializer
    def as_text(self) -> str:
        return str(self)

    def __str__(self) -> str:
        return f"{self.hour:02}:{self.minute:02}"


class Slot(Entity):
    day: Day
    time: Time

    def __str__(self) -> str:
        return f"{self.day.value} {self.time}"


class Teacher(Entity):
    name: str

    def __str__(self) -> str:
        return self.name


class Grade(Entity):
    name: str

    def __str__(self) -> str:
        return self.name


class Subject(Entity):
    name: str

    def __str__(self) -> str:
        return self.name


class Laboratory(Entity):
    name: str

    def __str__(self) -> str:
        return self.name


class Class(Entity):
    teacher: int
    grade: int
    subject: int


class SlottedClass(Entity):
    slot: int
    class_id: int


class LabSlottedClass(Entity):
    """One entry of a solution: this class meets in `lab` at `slot`."""
    lab: int
    slot: int
    class_id: int


class ClassView(NamedTuple):
    teacher: Teacher
    grade: Grade
    subject: Subject

    def __str__(self) -> str:
        return f"{self.teacher} - {self.grade}/{self.subject}"


class SlottedClassView(NamedTuple):
    slot: Slot
    class_: ClassView

    def __str__(self) -> str:
        return f"{self.slot} - {self.class_}"


class School:
    """The base timetable as a set of tables that reference each other by id.

    Views (`class_view`, `slotted_class_view`) resolve ids back to the stored
    entities without copying them.
    """

    def __init__(self) -> None:
        self.teachers: Table[Teacher] = Table()
        self.grades: Table[Grade] = Table()
        self.subjects: Table[Subject] = Table()
        self.slots: Table[Slot] = Table()
        self.classes: Table[Class] = Table()
        self.slotted_classes: Table[SlottedClass] = Table()
        self.laboratories: Table[Laboratory] = Table()

    # ---------- building ----------

    def add_lesson(self, teacher: str, grade: str, subject: str, slot: Slot) -> int:
        """Record that (teacher, grade, subject) meets at `slot`; return the class id."""
        slot_id = self.slots.insert_unique(slot)
        class_id = self.classes.insert_unique(Class(
            teacher=self.teachers.insert_unique(Teacher(name=teacher)),
            grade=self.grades.insert_unique(Grade(name=grade)),
            subject=self.subjects.insert_unique(Subject(name=subject)),
        ))
        self.slotted_classes.insert_unique(SlottedClass(slot=slot_id, class_id=class_id))
        return class_id

    def add_laboratory(self, name: str) -> int:
        return self.laboratories.insert_unique(Laboratory(name=name))

    # ---------- views ----------

    def class_view(self, class_id: int) -> ClassView:
        cls = self.classes[class_id]
        return ClassView(
            teacher=self.teachers[cls.teacher],
            grade=self.grades[cls.grade],
            subject=self.subjects[cls.subject],
        )

    def slotted_class_view(self, slotted_id: int) -> SlottedClassView:
        edge = self.slotted_classes[slotted_id]
        return SlottedClassView(slot=self.slots[edge.slot], class_=self.class_view(edge.class_id))

    def iter_classes(self) -> Iterator[Tuple[int, ClassView]]:
        for class_id, _ in self.classes:
            yield class_id, self.class_view(class_id)

    def iter_slotted_classes(self) -> Iterator[Tuple[int, SlottedClassView]]:
        for slotted_id, _ in self.slotted_classes:
            yield slotted_id, self.slotted_class_view(slotted_id)

    def slots_of(self, class_id: int) -> List[int]:
        """Slot ids where the class already meets, ascending."""
        return sorted({edge.slot for _, edge in self.slotted_classes if edge.class_id == class_id})

    # ---------- lookups by name ----------

    def teacher_id(self, name: str) -> Optional[int]:
        return self.teachers.find(Teacher(name=name))

    def grade_id(self, name: str) -> Optional[int]:
        return self.grades.find(Grade(name=name))

    def subject_id(self, name: str) -> Optional[int]:
        return self.subjects.find(Subject(name=name))

    def laboratory_id(self, name: str) -> Optional[int]:
        return self.laboratories.find(Laboratory(name=name))

    def class_id(self, teacher: int, grade: int, subject: int) -> Optional[int]:
        return self.classes.find(Class(teacher=teacher, grade=grade, subject=subject))

    # ---------- cascading removal ----------

    def retain_classes(self, predicate: Callable[[ClassView], bool]) -> List[int]:
        views: Dict[int, ClassView] = dict(self.iter_classes())
        removed = self.classes.retain(lambda class_id, _: predicate(views[class_id]))
        gone = set(removed)
        self.slotted_classes.retain(lambda _, edge: edge.class_id not in gone)
        return removed

    def retain_slots(self, predicate: Callable[[Slot], bool]) -> List[int]:
        removed = self.slots.retain(lambda _, slot: predicate(slot))
        gone = set(removed)
        self.slotted_classes.retain(lambda _, edge: edge.slot not in gone)
        return removed
