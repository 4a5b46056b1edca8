"""
Soft constraints: weighted preferences used to rank timetables
"""
import math
from collections import defaultdict
from typing import Dict, List, Optional, Set

from models.data_models import LAB, THEORY, CSPAssignment, CourseSession, time_to_minutes
from models.generation_input import SoftConstraintPreferences

from .base import DailySchedule, SessionLookup, SoftConstraint, group_daily_schedules


BACK_TO_BACK_GAP_MINUTES = 15
BUSY_WEEK_DAYS = 5
THIN_WEEK_DAYS = 3
THIN_WEEK_HOURS = 6


def day_gaps(entries: DailySchedule) -> List[int]:
    """Idle minutes between consecutive sessions of one day"""
    gaps = []
    for (_, current), (_, following) in zip(entries, entries[1:]):
        gap = following.start_min - current.end_min
        if gap > 0:
            gaps.append(gap)
    return gaps


def back_to_back_lab_pairs(assignment: CSPAssignment, sessions: SessionLookup) -> int:
    """Consecutive lab pairs a teacher runs with at most a short break between"""
    pairs = 0
    by_teacher = group_daily_schedules(assignment, sessions, lambda s: s.teacher_id)
    for days in by_teacher.values():
        for entries in days.values():
            labs = [entry for entry in entries if entry[0].session_type == LAB]
            for (_, current), (_, following) in zip(labs, labs[1:]):
                if following.start_min - current.end_min <= BACK_TO_BACK_GAP_MINUTES:
                    pairs += 1
    return pairs


def theory_lab_sandwiches(assignment: CSPAssignment, sessions: SessionLookup) -> int:
    """theory -> lab -> theory runs in section day schedules"""
    count = 0
    by_section = group_daily_schedules(assignment, sessions, lambda s: s.section)
    for days in by_section.values():
        for entries in days.values():
            types = [session.session_type for session, _ in entries]
            for first, middle, last in zip(types, types[1:], types[2:]):
                if first == THEORY and middle == LAB and last == THEORY:
                    count += 1
    return count


class _SessionScopedSoftConstraint(SoftConstraint):
    def __init__(self, sessions: SessionLookup, weight: float):
        super().__init__(weight)
        self.sessions = sessions

    def _peers(self, session: CourseSession, same) -> Set[str]:
        return {s.id for s in self.sessions.values() if same(s) and s.id != session.id}


class MinimizeStudentGapsConstraint(_SessionScopedSoftConstraint):
    name = "MinimizeStudentGaps"
    description = "Sections have idle gaps between classes"

    def __init__(self, sessions: SessionLookup, weight: float = 30):
        super().__init__(sessions, weight)

    def violation_cost(self, assignment: CSPAssignment) -> float:
        cost = 0.0
        by_section = group_daily_schedules(assignment, self.sessions, lambda s: s.section)
        for days in by_section.values():
            for entries in days.values():
                for gap in day_gaps(entries):
                    cost += math.pow(gap / 60, 1.5) * self.weight
        return cost

    def affected_sessions(self, session: CourseSession) -> Set[str]:
        return self._peers(session, lambda s: s.section == session.section)


class BalanceTeacherWorkloadConstraint(_SessionScopedSoftConstraint):
    name = "BalanceTeacherWorkload"
    description = "Teaching hours are unevenly spread across teachers or days"

    def __init__(self, sessions: SessionLookup, weight: float = 20):
        super().__init__(sessions, weight)

    def violation_cost(self, assignment: CSPAssignment) -> float:
        total_hours: Dict[object, float] = defaultdict(float)
        active_days: Dict[object, Set[str]] = defaultdict(set)
        for session_id, slot in assignment.items():
            session = self.sessions.get(session_id)
            if session is None:
                continue
            total_hours[session.teacher_id] += session.duration_minutes / 60
            active_days[session.teacher_id].add(slot.day)

        if not total_hours:
            return 0.0

        average = sum(total_hours.values()) / len(total_hours)
        variance = sum((hours - average) ** 2 for hours in total_hours.values()) / len(total_hours)

        penalty = 0.0
        for teacher_id, hours in total_hours.items():
            days = len(active_days[teacher_id])
            if days > BUSY_WEEK_DAYS:
                penalty += (days - BUSY_WEEK_DAYS) * 10
            if days < THIN_WEEK_DAYS and hours > THIN_WEEK_HOURS:
                penalty += (THIN_WEEK_DAYS - days) * 5

        return (math.sqrt(variance) + penalty) * self.weight

    def affected_sessions(self, session: CourseSession) -> Set[str]:
        return self._peers(session, lambda s: s.teacher_id == session.teacher_id)


class PreferMorningTheoryConstraint(_SessionScopedSoftConstraint):
    name = "PreferMorningTheory"
    description = "Theory classes are scheduled after the morning"

    def __init__(self, sessions: SessionLookup, weight: float = 15, morning_end_time: str = "12:00"):
        super().__init__(sessions, weight)
        self.morning_end_time = morning_end_time
        self.morning_end = time_to_minutes(morning_end_time)

    def violation_cost(self, assignment: CSPAssignment) -> float:
        cost = 0.0
        for session_id, slot in assignment.items():
            session = self.sessions.get(session_id)
            if session is None or session.session_type != THEORY:
                continue
            if slot.start_min >= self.morning_end:
                hours_after_morning = (slot.start_min - self.morning_end) / 60
                cost += math.pow(hours_after_morning, 1.2) * self.weight
        return cost

    def affected_sessions(self, session: CourseSession) -> Set[str]:
        return {session.id} if session.session_type == THEORY else set()


class AvoidBackToBackLabsConstraint(_SessionScopedSoftConstraint):
    name = "AvoidBackToBackLabs"
    description = "Teachers run labs back to back"

    def __init__(self, sessions: SessionLookup, weight: float = 25):
        super().__init__(sessions, weight)

    def violation_cost(self, assignment: CSPAssignment) -> float:
        return back_to_back_lab_pairs(assignment, self.sessions) * self.weight

    def affected_sessions(self, session: CourseSession) -> Set[str]:
        return {session.id} if session.session_type == LAB else set()


class MinimizeDailyTransitionsConstraint(_SessionScopedSoftConstraint):
    name = "MinimizeDailyTransitions"
    description = "Sections switch course or session type often within a day"

    def __init__(self, sessions: SessionLookup, weight: float = 10):
        super().__init__(sessions, weight)

    def violation_cost(self, assignment: CSPAssignment) -> float:
        cost = 0.0
        by_section = group_daily_schedules(assignment, self.sessions, lambda s: s.section)
        for days in by_section.values():
            for entries in days.values():
                day_sessions = [session for session, _ in entries]
                for i, (current, following) in enumerate(zip(day_sessions, day_sessions[1:])):
                    if current.course_id != following.course_id:
                        cost += self.weight * 0.5
                    if current.session_type != following.session_type:
                        cost += self.weight * 0.3
                    if i + 2 < len(day_sessions):
                        after = day_sessions[i + 2]
                        if (current.session_type == THEORY and following.session_type == LAB
                                and after.session_type == THEORY):
                            cost += self.weight * 2
        return cost

    def affected_sessions(self, session: CourseSession) -> Set[str]:
        return {session.id}


class SpreadCourseSessionsConstraint(_SessionScopedSoftConstraint):
    """Meetings of one course for one section should land on different days"""
    name = "SpreadCourseSessions"
    description = "A course meets a section more than once on the same day"

    def __init__(self, sessions: SessionLookup, weight: float = 20):
        super().__init__(sessions, weight)

    def violation_cost(self, assignment: CSPAssignment) -> float:
        by_course = group_daily_schedules(assignment, self.sessions,
                                          lambda s: (s.section, s.course_id))
        cost = 0.0
        for days in by_course.values():
            for entries in days.values():
                if len(entries) > 1:
                    cost += (len(entries) - 1) * self.weight
        return cost

    def affected_sessions(self, session: CourseSession) -> Set[str]:
        return self._peers(session, lambda s: s.section == session.section
                           and s.course_id == session.course_id)


# ---------- Factories ----------

def create_standard_soft_constraints(sessions: SessionLookup) -> List[SoftConstraint]:
    return [
        MinimizeStudentGapsConstraint(sessions, 30),
        BalanceTeacherWorkloadConstraint(sessions, 20),
        PreferMorningTheoryConstraint(sessions, 15),
        AvoidBackToBackLabsConstraint(sessions, 25),
        MinimizeDailyTransitionsConstraint(sessions, 10),
        SpreadCourseSessionsConstraint(sessions, 20),
    ]


def create_custom_soft_constraints(sessions: SessionLookup,
                                   preferences: Optional[SoftConstraintPreferences] = None
                                   ) -> List[SoftConstraint]:
    """Soft constraints switched on by the preferences, at their requested weights"""
    if preferences is None:
        return create_standard_soft_constraints(sessions)

    constraints: List[SoftConstraint] = []

    if preferences.minimize_student_gaps.enabled:
        constraints.append(MinimizeStudentGapsConstraint(
            sessions, preferences.minimize_student_gaps.weight))
    if preferences.balance_teacher_workload.enabled:
        constraints.append(BalanceTeacherWorkloadConstraint(
            sessions, preferences.balance_teacher_workload.weight))
    if preferences.prefer_morning_theory.enabled:
        constraints.append(PreferMorningTheoryConstraint(
            sessions, preferences.prefer_morning_theory.weight,
            preferences.prefer_morning_theory.morning_end_time))
    if preferences.avoid_back_to_back_labs.enabled:
        constraints.append(AvoidBackToBackLabsConstraint(
            sessions, preferences.avoid_back_to_back_labs.weight))
    if preferences.minimize_daily_transitions.enabled:
        constraints.append(MinimizeDailyTransitionsConstraint(
            sessions, preferences.minimize_daily_transitions.weight))
    if preferences.spread_course_sessions.enabled:
        constraints.append(SpreadCourseSessionsConstraint(
            sessions, preferences.spread_course_sessions.weight))

    return constraints
