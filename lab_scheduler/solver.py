import logging
import sys
from contextlib import contextmanager
from typing import Dict, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from . import backtrack
from .rules import ResolvedRule
from .school import LabSlottedClass, School
from .solution import Missing, NoLabs, Solution, SolveError, UndesiredLab

logger = logging.getLogger(__name__)

# frames kept free for the caller on top of one frame per searched class
RECURSION_MARGIN = 1000

# (lab id, slot id): one room at one weekly period
Option = Tuple[int, int]


class SearchContext(NamedTuple):
    # class id -> allowed (lab, slot) pairs, in the order they are tried
    options: Mapping[int, Sequence[Option]]


class Assignment:
    """Partial placement: used (lab, slot) -> class id, plus the classes still to place.

    Successors get a fresh dict; the parent's is never touched.
    """

    __slots__ = ("placed", "remaining")

    def __init__(self, placed: Mapping[Option, int], remaining: Tuple[int, ...]) -> None:
        self.placed = placed
        self.remaining = remaining

    def successors(self, ctx: SearchContext) -> Iterator["Assignment"]:
        if not self.remaining:
            return
        head, rest = self.remaining[0], self.remaining[1:]
        for option in ctx.options[head]:
            if option in self.placed:
                continue  # room already taken at that period
            placed = dict(self.placed)
            placed[option] = head
            yield Assignment(placed, rest)

    def is_goal(self, ctx: SearchContext) -> bool:
        return not self.remaining


def candidates(school: School, rule: ResolvedRule, relax: int, *,
               respect_forbidden_times: bool = False) -> List[Option]:
    """(lab, slot) pairs the class may use when `relax` preferences are allowed.

    Lab-major: every slot of the first lab comes before any slot of the second,
    so the search reaches for better-ranked rooms first. Raising `relax` only
    appends pairs, it never removes one.
    """
    slot_ids = school.slots_of(rule.class_id)
    if respect_forbidden_times and rule.forbidden_times:
        forbidden = set(rule.forbidden_times)
        slot_ids = [s for s in slot_ids if school.slots[s].time not in forbidden]
    return [(lab, slot) for lab in rule.labs[:relax] for slot in slot_ids]


@contextmanager
def recursion_headroom(depth: int) -> Iterator[None]:
    """Raise the interpreter recursion limit for a search `depth` classes deep."""
    previous = sys.getrecursionlimit()
    needed = 2 * depth + RECURSION_MARGIN
    if needed > previous:
        sys.setrecursionlimit(needed)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


def place(options: Mapping[int, Sequence[Option]], order: Sequence[int]) -> Optional[Dict[Option, int]]:
    """One search: every class in `order` gets a distinct (lab, slot) from its options."""
    # the search recurses once per placed class
    with recursion_headroom(len(order)):
        found = backtrack.solve(SearchContext(options), Assignment({}, tuple(order)))
    if found is None:
        return None
    return dict(found.placed)


def solve_labs(
    school: School,
    rules: Sequence[ResolvedRule],
    *,
    respect_forbidden_times: bool = False,  # drop slots whose time the rule forbids
) -> Solution:
    """Pick one weekly occurrence of every ruled class to be held in a laboratory.

    Hard constraints (must hold):
      • A class is placed at most once, at a slot where it already meets.
      • A (laboratory, slot) pair hosts at most one class.
      • The lab comes from the first `relax` entries of the class's preferences.

    Relaxation:
      • `relax` starts at 1 and grows by one for every class at once until a
        complete placement exists or it reaches the longest preference list.
      • Past that, the first remaining class (rule order) is dropped as
        Missing and the loop starts over from relax = 1.

    Returns:
    - A Solution with placements in rule order, hard errors and soft warnings.
      Nothing is raised for unplaceable classes.
    """
    errors: List[SolveError] = []
    warnings: List[UndesiredLab] = []

    active: List[ResolvedRule] = []
    for rule in rules:
        if not rule.labs:
            logger.warning("Class %s (%s) has no usable laboratory", rule.class_id,
                           school.class_view(rule.class_id))
            errors.append(NoLabs(class_id=rule.class_id))
        else:
            active.append(rule)

    placed: Optional[Dict[Option, int]] = None
    while active and placed is None:
        max_relax = max(len(rule.labs) for rule in active)
        relax = 1
        while True:
            options = {
                rule.class_id: candidates(school, rule, relax,
                                          respect_forbidden_times=respect_forbidden_times)
                for rule in active
            }
            # classes without candidates sit this round out but stay in `active`
            order = [rule.class_id for rule in active if options[rule.class_id]]
            logger.debug("Searching %d classes at relax=%d/%d", len(order), relax, max_relax)
            placed = place(options, order)
            if placed is not None:
                logger.info("Placed %d classes at relax=%d", len(placed), relax)
                break
            if relax >= max_relax:
                break
            relax += 1

        if placed is None:
            dropped = active.pop(0)
            logger.warning("Dropping class %s (%s): no placement at full relaxation",
                           dropped.class_id, school.class_view(dropped.class_id))
            errors.append(Missing(class_id=dropped.class_id))

    placed = placed or {}
    first_choice = {rule.class_id: rule.labs[0] for rule in active}
    slotted: List[LabSlottedClass] = []
    # dict insertion order == search order == rule order
    for (lab, slot), class_id in placed.items():
        slotted.append(LabSlottedClass(lab=lab, slot=slot, class_id=class_id))
        if lab != first_choice[class_id]:
            warnings.append(UndesiredLab(class_id=class_id, was=first_choice[class_id], got=lab))

    # survivors that never had a usable slot were skipped by every round
    placed_classes = set(placed.values())
    for rule in active:
        if rule.class_id not in placed_classes:
            logger.warning("Class %s (%s) has no usable slot", rule.class_id,
                           school.class_view(rule.class_id))
            errors.append(Missing(class_id=rule.class_id))

    return Solution(slotted=slotted, errors=errors, warnings=warnings)
