"""
Hard constraints: rules a valid timetable must never break
"""
from abc import abstractmethod
from collections import defaultdict
from typing import Dict, FrozenSet, Hashable, List, Optional, Sequence, Set, Tuple

from models.data_models import LAB, CSPAssignment, CourseSession, HardViolation, TimeSlot, time_to_minutes
from models.generation_input import HardConstraintPreferences, TimeConfiguration

from .base import HARD_CONSTRAINT_WEIGHT, HardConstraint, SessionLookup, slots_overlap


class SessionClashConstraint(HardConstraint):
    """Sessions sharing a clash key must not overlap in time.

    Members of each clash group are indexed once from the session lookup, so a
    check only visits the sessions that can actually clash with the one being
    placed.
    """
    clash_label = ""

    def __init__(self, sessions: SessionLookup, weight: float = HARD_CONSTRAINT_WEIGHT):
        super().__init__(weight)
        self.sessions = sessions
        members: Dict[Hashable, Set[str]] = defaultdict(set)
        for session in sessions.values():
            key = self.clash_key(session)
            if key is not None:
                members[key].add(session.id)
        self._groups: Dict[Hashable, FrozenSet[str]] = {k: frozenset(v) for k, v in members.items()}

    @abstractmethod
    def clash_key(self, session: CourseSession) -> Optional[Hashable]:
        """Sessions with equal non-None keys may not share time"""

    def _group_of(self, session: CourseSession) -> FrozenSet[str]:
        key = self.clash_key(session)
        if key is None:
            return frozenset()
        return self._groups.get(key, frozenset())

    def is_violated(self, assignment: CSPAssignment, session: Optional[CourseSession] = None,
                    slot: Optional[TimeSlot] = None) -> bool:
        if session is None or slot is None:
            return False
        for other_id in self._group_of(session):
            if other_id == session.id:
                continue
            other_slot = assignment.get(other_id)
            if other_slot is not None and slots_overlap(other_slot, slot):
                return True
        return False

    def find_violations(self, assignment: CSPAssignment) -> List[HardViolation]:
        violations = []
        for key, members in self._groups.items():
            placed = sorted(m for m in members if m in assignment)
            for i, first in enumerate(placed):
                for second in placed[i + 1:]:
                    a, b = assignment[first], assignment[second]
                    if slots_overlap(a, b):
                        violations.append(HardViolation(
                            constraint=self.name,
                            affected_sessions=[first, second],
                            description=(f"{self.clash_label} {key}: {first} and {second} "
                                         f"overlap on {a.day} ({a.start_time}-{a.end_time} / "
                                         f"{b.start_time}-{b.end_time})"),
                        ))
        return violations

    def affected_sessions(self, session: CourseSession) -> Set[str]:
        return set(self._group_of(session)) - {session.id}


class NoTeacherClashConstraint(SessionClashConstraint):
    name = "NoTeacherClash"
    clash_label = "Teacher"

    def clash_key(self, session: CourseSession) -> Optional[Hashable]:
        return session.teacher_id


class NoSectionClashConstraint(SessionClashConstraint):
    name = "NoSectionClash"
    clash_label = "Section"

    def clash_key(self, session: CourseSession) -> Optional[Hashable]:
        return session.section


class NoRoomClashConstraint(SessionClashConstraint):
    """Two labs may not run at once; stands in for lab-room allocation"""
    name = "NoRoomClash"
    clash_label = "Lab room for"

    def clash_key(self, session: CourseSession) -> Optional[Hashable]:
        return LAB if session.session_type == LAB else None


class _SlotRuleConstraint(HardConstraint):
    """A rule about a slot on its own, independent of other sessions"""

    @abstractmethod
    def slot_allowed(self, slot: TimeSlot) -> bool:
        ...

    @abstractmethod
    def explain(self, slot: TimeSlot) -> str:
        ...

    def is_violated(self, assignment: CSPAssignment, session: Optional[CourseSession] = None,
                    slot: Optional[TimeSlot] = None) -> bool:
        if slot is None:
            return False
        return not self.slot_allowed(slot)

    def find_violations(self, assignment: CSPAssignment) -> List[HardViolation]:
        return [
            HardViolation(constraint=self.name, affected_sessions=[session_id],
                          description=f"{session_id}: {self.explain(slot)}")
            for session_id, slot in sorted(assignment.items())
            if not self.slot_allowed(slot)
        ]


class RespectWorkingHoursConstraint(_SlotRuleConstraint):
    name = "RespectWorkingHours"

    def __init__(self, start_time: str = "08:00", end_time: str = "17:00",
                 working_days: Sequence[str] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday"),
                 weight: float = HARD_CONSTRAINT_WEIGHT):
        super().__init__(weight)
        self.start_time = start_time
        self.end_time = end_time
        self.start_min = time_to_minutes(start_time)
        self.end_min = time_to_minutes(end_time)
        self.working_days = frozenset(working_days)

    def slot_allowed(self, slot: TimeSlot) -> bool:
        if slot.start_min < self.start_min or slot.end_min > self.end_min:
            return False
        return slot.day in self.working_days

    def explain(self, slot: TimeSlot) -> str:
        if slot.day not in self.working_days:
            return f"{slot.day} is not a working day"
        return (f"{slot.start_time}-{slot.end_time} falls outside working hours "
                f"{self.start_time}-{self.end_time}")


class RespectLunchBreakConstraint(_SlotRuleConstraint):
    name = "RespectLunchBreak"

    def __init__(self, lunch_interval: Optional[Tuple[int, int]] = (12 * 60, 13 * 60),
                 weight: float = HARD_CONSTRAINT_WEIGHT):
        super().__init__(weight)
        self.lunch_interval = lunch_interval

    def slot_allowed(self, slot: TimeSlot) -> bool:
        if self.lunch_interval is None:
            return True
        lunch_start, lunch_end = self.lunch_interval
        return not (slot.start_min < lunch_end and slot.end_min > lunch_start)

    def explain(self, slot: TimeSlot) -> str:
        return f"{slot.day} {slot.start_time}-{slot.end_time} overlaps the lunch break"


class MaxClassesPerDayConstraint(HardConstraint):
    """A section may hold at most `limit` sessions on any one day"""
    name = "MaxClassesPerDay"

    def __init__(self, sessions: SessionLookup, limit: int, weight: float = HARD_CONSTRAINT_WEIGHT):
        super().__init__(weight)
        self.sessions = sessions
        self.limit = limit
        members: Dict[str, Set[str]] = defaultdict(set)
        for session in sessions.values():
            members[session.section].add(session.id)
        self._sections = {k: frozenset(v) for k, v in members.items()}

    def is_violated(self, assignment: CSPAssignment, session: Optional[CourseSession] = None,
                    slot: Optional[TimeSlot] = None) -> bool:
        if session is None or slot is None:
            return False
        same_day = 0
        for other_id in self._sections.get(session.section, ()):
            if other_id == session.id:
                continue
            other_slot = assignment.get(other_id)
            if other_slot is not None and other_slot.day == slot.day:
                same_day += 1
        return same_day + 1 > self.limit

    def find_violations(self, assignment: CSPAssignment) -> List[HardViolation]:
        violations = []
        for section, members in sorted(self._sections.items()):
            per_day: Dict[str, List[str]] = defaultdict(list)
            for session_id in sorted(members):
                if session_id in assignment:
                    per_day[assignment[session_id].day].append(session_id)
            for day, ids in per_day.items():
                if len(ids) > self.limit:
                    violations.append(HardViolation(
                        constraint=self.name,
                        affected_sessions=ids,
                        description=(f"Section {section} has {len(ids)} classes on {day}; "
                                     f"the limit is {self.limit}"),
                    ))
        return violations

    def affected_sessions(self, session: CourseSession) -> Set[str]:
        return set(self._sections.get(session.section, ())) - {session.id}


# ---------- Factories ----------

def create_standard_hard_constraints(sessions: SessionLookup, time_config: TimeConfiguration,
                                     max_classes_per_day: Optional[int] = None) -> List[HardConstraint]:
    constraints: List[HardConstraint] = [
        NoTeacherClashConstraint(sessions),
        NoSectionClashConstraint(sessions),
        RespectWorkingHoursConstraint(time_config.start_time, time_config.end_time,
                                      time_config.working_days),
        RespectLunchBreakConstraint(time_config.lunch_interval),
        NoRoomClashConstraint(sessions),
    ]
    if max_classes_per_day:
        constraints.append(MaxClassesPerDayConstraint(sessions, max_classes_per_day))
    return constraints


def create_custom_hard_constraints(sessions: SessionLookup, time_config: TimeConfiguration,
                                   preferences: HardConstraintPreferences) -> List[HardConstraint]:
    """Only the hard constraints the preferences switch on"""
    constraints: List[HardConstraint] = []

    if preferences.no_teacher_clash:
        constraints.append(NoTeacherClashConstraint(sessions))
    if preferences.no_section_clash:
        constraints.append(NoSectionClashConstraint(sessions))
    if preferences.respect_working_hours:
        constraints.append(RespectWorkingHoursConstraint(
            time_config.start_time, time_config.end_time, time_config.working_days))
    if preferences.respect_lunch_break:
        constraints.append(RespectLunchBreakConstraint(time_config.lunch_interval))
    if preferences.no_room_clash:
        constraints.append(NoRoomClashConstraint(sessions))
    if preferences.max_classes_per_day:
        constraints.append(MaxClassesPerDayConstraint(sessions, preferences.max_classes_per_day))

    return constraints
