"""
Constraint interface shared by the hard and soft scheduling rules.

A constraint is exactly one of two kinds. Hard constraints decide validity:
the solver refuses any tentative assignment for which one of them reports a
violation. Soft constraints only price an assignment; their weighted cost is
used to rank solutions and to break ties between candidate slots.
"""
from abc import ABC, abstractmethod
from collections import defaultdict
from types import MappingProxyType
from typing import (
    Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Set, Tuple
)

from models.data_models import CSPAssignment, CourseSession, HardViolation, TimeSlot


HARD = "hard"
SOFT = "soft"

HARD_CONSTRAINT_WEIGHT = 1000

SessionLookup = Mapping[str, CourseSession]

# (session, slot) pairs of one day, sorted by start time
DailySchedule = List[Tuple[CourseSession, TimeSlot]]


def build_session_lookup(sessions: Iterable[CourseSession]) -> SessionLookup:
    """Read-only session-id index built once per generation run"""
    return MappingProxyType({s.id: s for s in sessions})


def slots_overlap(a: TimeSlot, b: TimeSlot) -> bool:
    """True when both slots fall on the same day and their time ranges intersect"""
    if a.day != b.day:
        return False
    return a.start_min < b.end_min and b.start_min < a.end_min


def group_daily_schedules(assignment: CSPAssignment, sessions: SessionLookup,
                          key: Callable[[CourseSession], Optional[Hashable]]
                          ) -> Dict[Hashable, Dict[str, DailySchedule]]:
    """Group assigned sessions by key and day; each day list is ordered by start"""
    grouped: Dict[Hashable, Dict[str, DailySchedule]] = defaultdict(lambda: defaultdict(list))
    for session_id, slot in assignment.items():
        session = sessions.get(session_id)
        if session is None:
            continue
        k = key(session)
        if k is None:
            continue
        grouped[k][slot.day].append((session, slot))

    for days in grouped.values():
        for entries in days.values():
            entries.sort(key=lambda entry: (entry[1].start_min, entry[0].id))
    return grouped


class Constraint(ABC):
    name = ""
    kind = ""

    def __init__(self, weight: float):
        self.weight = weight

    @property
    def is_hard(self) -> bool:
        return self.kind == HARD

    @abstractmethod
    def is_violated(self, assignment: CSPAssignment, session: Optional[CourseSession] = None,
                    slot: Optional[TimeSlot] = None) -> bool:
        ...

    @abstractmethod
    def violation_cost(self, assignment: CSPAssignment) -> float:
        ...

    def affected_sessions(self, session: CourseSession) -> Set[str]:
        """Sessions whose placement this constraint ties to the given one"""
        return set()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(weight={self.weight})"


class HardConstraint(Constraint):
    kind = HARD

    def __init__(self, weight: float = HARD_CONSTRAINT_WEIGHT):
        super().__init__(weight)

    @abstractmethod
    def find_violations(self, assignment: CSPAssignment) -> List[HardViolation]:
        """Every violation present in a (partial or complete) assignment"""

    def violation_cost(self, assignment: CSPAssignment) -> float:
        return self.weight if self.find_violations(assignment) else 0


class SoftConstraint(Constraint):
    kind = SOFT
    description = ""

    def is_violated(self, assignment: CSPAssignment, session: Optional[CourseSession] = None,
                    slot: Optional[TimeSlot] = None) -> bool:
        return False

    def describe(self, cost: float) -> str:
        return f"{self.description} (penalty {cost:.1f})"


def split_constraints(constraints: Iterable[Constraint]) -> Tuple[List[HardConstraint], List[SoftConstraint]]:
    """Partition constraints into their two kinds"""
    hard: List[HardConstraint] = []
    soft: List[SoftConstraint] = []
    for constraint in constraints:
        if isinstance(constraint, HardConstraint):
            hard.append(constraint)
        elif isinstance(constraint, SoftConstraint):
            soft.append(constraint)
        else:
            raise TypeError(f"{constraint!r} is neither a hard nor a soft constraint")
    return hard, soft
