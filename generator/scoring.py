"""
Solution scoring: quality metrics, statistics, issues and recommendations
"""
import statistics
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from constraints.base import HardConstraint, SessionLookup, SoftConstraint, group_daily_schedules
from constraints.soft import back_to_back_lab_pairs, day_gaps, theory_lab_sandwiches
from models.data_models import (
    CSPAssignment, HardViolation, QualityScores, Recommendation, ScheduleWarning,
    SectionSchedule, SoftViolation, SolutionIssues, SolutionStatistics, TeacherWorkload,
    TimetableSolution
)


FEASIBILITY_PENALTY_PER_VIOLATION = 10
SOFT_COST_SCALE = 10

OVERLOAD_TEACHER_DAILY_HOURS = 6
OVERLOAD_SECTION_DAILY_HOURS = 7
COMPRESSED_TEACHER_HOURS = 6
LONG_GAP_MINUTES = 120

# overall = feasibility, optimization, teacher satisfaction, student convenience
OVERALL_WEIGHTS = (0.4, 0.3, 0.15, 0.15)


def _clamp(score: float) -> float:
    return round(max(0.0, min(100.0, score)), 2)


def collect_hard_violations(assignment: CSPAssignment,
                            hard_constraints: Sequence[HardConstraint]) -> List[HardViolation]:
    """Every hard violation in the assignment, across all hard constraints"""
    violations: List[HardViolation] = []
    for constraint in hard_constraints:
        violations.extend(constraint.find_violations(assignment))
    return violations


def soft_costs(assignment: CSPAssignment, soft_constraints: Sequence[SoftConstraint]) -> Dict[str, float]:
    costs: Dict[str, float] = defaultdict(float)
    for constraint in soft_constraints:
        costs[constraint.name] += constraint.violation_cost(assignment)
    return dict(costs)


def feasibility_score(hard_violation_count: int) -> float:
    return float(max(0, 100 - FEASIBILITY_PENALTY_PER_VIOLATION * hard_violation_count))


def optimization_score(total_soft_cost: float) -> float:
    return _clamp(100 - total_soft_cost / SOFT_COST_SCALE)


def overall_score(feasibility: float, optimization: float, teacher: float, student: float) -> float:
    wf, wo, wt, ws = OVERALL_WEIGHTS
    return round(feasibility * wf + optimization * wo + teacher * wt + student * ws, 2)


# ---------- Statistics ----------

def teacher_workloads(assignment: CSPAssignment, sessions: SessionLookup) -> List[TeacherWorkload]:
    by_teacher = group_daily_schedules(assignment, sessions, lambda s: s.teacher_id)
    workloads = []
    for teacher_id, days in by_teacher.items():
        daily_hours = {
            day: sum(session.duration_minutes for session, _ in entries) / 60
            for day, entries in days.items()
        }
        first_session = next(iter(days.values()))[0][0]
        workloads.append(TeacherWorkload(
            teacher_id=teacher_id,
            teacher_name=first_session.teacher_name,
            total_hours=round(sum(daily_hours.values()), 2),
            days_active=len(days),
            max_daily_hours=round(max(daily_hours.values()), 2),
            gaps_minutes=sum(sum(day_gaps(entries)) for entries in days.values()),
        ))
    workloads.sort(key=lambda w: str(w.teacher_id))
    return workloads


def section_schedules(assignment: CSPAssignment, sessions: SessionLookup,
                      working_days: Sequence[str]) -> List[SectionSchedule]:
    by_section = group_daily_schedules(assignment, sessions, lambda s: s.section)
    schedules = []
    for section in sorted(by_section):
        days = by_section[section]
        daily_minutes = {day: sum(session.duration_minutes for session, _ in entries)
                         for day, entries in days.items()}
        gaps = [gap for entries in days.values() for gap in day_gaps(entries)]
        schedules.append(SectionSchedule(
            section=section,
            total_hours=round(sum(daily_minutes.values()) / 60, 2),
            daily_hours=[round(daily_minutes.get(day, 0) / 60, 2) for day in working_days],
            total_gaps_minutes=sum(gaps),
            longest_gap_minutes=max(gaps, default=0),
        ))
    return schedules


# ---------- Sub-scores ----------

def daily_load_spread(assignment: CSPAssignment, sessions: SessionLookup) -> float:
    """Mean, over teachers, of the deviation of their hours across the days they teach.

    Weekly hours are fixed by the request; only how they are spread over the
    week depends on the schedule.
    """
    by_teacher = group_daily_schedules(assignment, sessions, lambda s: s.teacher_id)
    spreads = []
    for days in by_teacher.values():
        daily_hours = [sum(session.duration_minutes for session, _ in entries) / 60
                       for entries in days.values()]
        spreads.append(statistics.pstdev(daily_hours) if len(daily_hours) > 1 else 0.0)
    return statistics.mean(spreads) if spreads else 0.0


def teacher_satisfaction(assignment: CSPAssignment, sessions: SessionLookup,
                         workloads: Sequence[TeacherWorkload]) -> float:
    if not workloads:
        return 100.0
    spread = daily_load_spread(assignment, sessions)
    idle_hours = sum(w.gaps_minutes for w in workloads) / 60
    overload = sum(max(0.0, w.max_daily_hours - OVERLOAD_TEACHER_DAILY_HOURS) for w in workloads)
    labs = back_to_back_lab_pairs(assignment, sessions)
    return _clamp(100 - 10 * spread - 5 * labs - 2 * idle_hours - 5 * overload)


def student_convenience(assignment: CSPAssignment, sessions: SessionLookup,
                        schedules: Sequence[SectionSchedule]) -> float:
    if not schedules:
        return 100.0
    mean_gap_hours = statistics.mean(s.total_gaps_minutes / 60 for s in schedules)
    overload = sum(max(0.0, max(s.daily_hours, default=0) - OVERLOAD_SECTION_DAILY_HOURS)
                   for s in schedules)
    sandwiches = theory_lab_sandwiches(assignment, sessions)
    return _clamp(100 - 5 * mean_gap_hours - 3 * overload - 4 * sandwiches)


def resource_utilization(assignment: CSPAssignment, working_days: Sequence[str]) -> float:
    if not working_days or not assignment:
        return 0.0
    per_day = {day: 0 for day in working_days}
    for slot in assignment.values():
        if slot.day in per_day:
            per_day[slot.day] += 1
    counts = list(per_day.values())
    used = sum(1 for c in counts if c) / len(counts)
    mean = statistics.mean(counts)
    variation = statistics.pstdev(counts) / mean if mean else 1.0
    return _clamp(50 * used + 50 * (1 - min(variation, 1.0)))


def calculate_quality_metrics(assignment: CSPAssignment, hard_violations: Sequence[HardViolation],
                              soft_constraints: Sequence[SoftConstraint], sessions: SessionLookup,
                              workloads: Sequence[TeacherWorkload],
                              schedules: Sequence[SectionSchedule],
                              working_days: Sequence[str]) -> QualityScores:
    feasibility = feasibility_score(len(hard_violations))
    optimization = optimization_score(sum(soft_costs(assignment, soft_constraints).values()))
    teacher = teacher_satisfaction(assignment, sessions, workloads)
    student = student_convenience(assignment, sessions, schedules)
    return QualityScores(
        feasibility_score=feasibility,
        optimization_score=optimization,
        teacher_satisfaction=teacher,
        student_convenience=student,
        resource_utilization=resource_utilization(assignment, working_days),
        overall_score=overall_score(feasibility, optimization, teacher, student),
    )


def generate_statistics(assignment: CSPAssignment, total_sessions: int,
                        hard_violations: Sequence[HardViolation],
                        soft_constraints: Sequence[SoftConstraint],
                        workloads: List[TeacherWorkload],
                        schedules: List[SectionSchedule]) -> SolutionStatistics:
    costs = soft_costs(assignment, soft_constraints)
    return SolutionStatistics(
        total_sessions=total_sessions,
        sessions_scheduled=len(assignment),
        hard_violations=len(hard_violations),
        soft_violations=sum(1 for cost in costs.values() if cost > 0),
        teacher_workload=workloads,
        student_schedule=schedules,
    )


def identify_issues(assignment: CSPAssignment, hard_violations: Sequence[HardViolation],
                    soft_constraints: Sequence[SoftConstraint],
                    workloads: Sequence[TeacherWorkload], schedules: Sequence[SectionSchedule],
                    extra_warnings: Optional[Sequence[ScheduleWarning]] = None) -> SolutionIssues:
    soft_violations = []
    for constraint in soft_constraints:
        cost = constraint.violation_cost(assignment)
        if cost > 0:
            soft_violations.append(SoftViolation(
                constraint=constraint.name,
                impact_score=round(cost, 2),
                description=constraint.describe(cost),
            ))

    warnings: List[ScheduleWarning] = []
    for w in workloads:
        label = w.teacher_name or str(w.teacher_id)
        if w.max_daily_hours > OVERLOAD_TEACHER_DAILY_HOURS:
            warnings.append(ScheduleWarning(
                type="overload",
                message=f"{label} teaches {w.max_daily_hours:g} hours on one day",
                affected_entities=[str(w.teacher_id)],
            ))
        if w.days_active == 1 and w.total_hours >= COMPRESSED_TEACHER_HOURS:
            warnings.append(ScheduleWarning(
                type="underutilization",
                message=f"{label} teaches all {w.total_hours:g} weekly hours on a single day",
                affected_entities=[str(w.teacher_id)],
            ))
    for s in schedules:
        busiest = max(s.daily_hours, default=0)
        if busiest > OVERLOAD_SECTION_DAILY_HOURS:
            warnings.append(ScheduleWarning(
                type="overload",
                message=f"Section {s.section} has {busiest:g} hours of classes on one day",
                affected_entities=[s.section],
            ))
        if s.longest_gap_minutes >= LONG_GAP_MINUTES:
            warnings.append(ScheduleWarning(
                type="gap",
                message=f"Section {s.section} waits {s.longest_gap_minutes} minutes between classes",
                affected_entities=[s.section],
            ))
    warnings.extend(extra_warnings or [])

    return SolutionIssues(
        hard_violations=list(hard_violations),
        soft_violations=soft_violations,
        warnings=warnings,
    )


# ---------- Ranking ----------

def rank_solutions(solutions: Sequence[TimetableSolution], limit: int = 3) -> List[TimetableSolution]:
    ranked = sorted(solutions, key=lambda s: s.quality.overall_score, reverse=True)
    return ranked[:limit]


def _best(solutions: Sequence[TimetableSolution], metric: str) -> TimetableSolution:
    best = solutions[0]
    for candidate in solutions[1:]:
        if getattr(candidate.quality, metric) > getattr(best.quality, metric):
            best = candidate
    return best


def recommend(solutions: Sequence[TimetableSolution], failure_reason: str = "No solutions generated") -> Recommendation:
    if not solutions:
        return Recommendation(best_overall="", best_for_teachers="", best_for_students="",
                              reasoning=failure_reason)

    overall = _best(solutions, "overall_score")
    teachers = _best(solutions, "teacher_satisfaction")
    students = _best(solutions, "student_convenience")
    return Recommendation(
        best_overall=overall.id,
        best_for_teachers=teachers.id,
        best_for_students=students.id,
        reasoning=(f"Analyzed {len(solutions)} solutions. Best overall score: "
                   f"{overall.quality.overall_score:.1f} ({overall.name}); best for teachers: "
                   f"{teachers.name} ({teachers.quality.teacher_satisfaction:.1f}); best for "
                   f"students: {students.name} ({students.quality.student_convenience:.1f})"),
    )
