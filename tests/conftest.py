import json
from pathlib import Path

import pytest

from lab_scheduler.school import Day, School, Slot

EXAMPLE_PATH = Path(__file__).resolve().parents[1] / "lab_scheduler" / "example.json"


def at(day: Day, time: str) -> Slot:
    return Slot(day=day, time=time)


@pytest.fixture
def example_request():
    with EXAMPLE_PATH.open("r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def shared_slot_school():
    """C1 and C2 both meet on Monday 08:00; two labs exist."""
    school = School()
    c1 = school.add_lesson("Ana", "6A", "Chemistry", at(Day.MONDAY, "08:00"))
    c2 = school.add_lesson("Bruno", "6B", "Physics", at(Day.MONDAY, "08:00"))
    l1 = school.add_laboratory("L1")
    l2 = school.add_laboratory("L2")
    return school, (c1, c2), (l1, l2)
