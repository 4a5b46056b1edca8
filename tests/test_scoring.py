from datetime import datetime, timezone

import pytest

from constraints.base import build_session_lookup
from constraints.hard import NoTeacherClashConstraint
from constraints.soft import MinimizeStudentGapsConstraint
from generator import scoring
from models.data_models import (
    GenerationInfo, HardViolation, QualityScores, ScheduleWarning, SectionSchedule,
    SolutionIssues, SolutionStatistics, TeacherWorkload, TimetableSolution
)

from .conftest import WEEKDAYS, make_session, make_slot


def make_solution(solution_id, overall, teacher=50.0, student=50.0):
    return TimetableSolution(
        id=solution_id,
        name=solution_id.title(),
        description="",
        schedule=[],
        quality=QualityScores(feasibility_score=100.0, optimization_score=50.0,
                              teacher_satisfaction=teacher, student_convenience=student,
                              resource_utilization=50.0, overall_score=overall),
        statistics=SolutionStatistics(total_sessions=0, sessions_scheduled=0,
                                      hard_violations=0, soft_violations=0),
        issues=SolutionIssues(),
        generation_info=GenerationInfo(algorithm="CSP_Backtracking", generation_time_ms=1.0,
                                       iterations=1, optimization_goal="balanced",
                                       timestamp=datetime(2025, 1, 1, tzinfo=timezone.utc)),
    )


@pytest.mark.parametrize("violations, expected", [(0, 100.0), (1, 90.0), (3, 70.0), (10, 0.0), (12, 0.0)])
def test_feasibility_drops_ten_per_hard_violation(violations, expected):
    assert scoring.feasibility_score(violations) == expected


def test_each_extra_violation_costs_exactly_ten():
    for count in range(9):
        assert scoring.feasibility_score(count) - scoring.feasibility_score(count + 1) == 10


def test_optimization_score():
    assert scoring.optimization_score(0) == 100
    assert scoring.optimization_score(250) == 75
    assert scoring.optimization_score(5000) == 0


def test_overall_score_blend():
    assert scoring.overall_score(100, 100, 100, 100) == 100
    assert scoring.overall_score(100, 50, 80, 60) == pytest.approx(76)


def test_teacher_workloads_and_section_schedules(lookup):
    assignment = {
        "S1": make_slot("Monday", "09:00"),
        "S3": make_slot("Monday", "11:00"),
        "S2": make_slot("Tuesday", "09:00"),
    }

    workloads = scoring.teacher_workloads(assignment, lookup)
    assert [(w.teacher_id, w.total_hours, w.days_active, w.max_daily_hours, w.gaps_minutes)
            for w in workloads] == [(1, 2.0, 1, 2.0, 60), (2, 1.0, 1, 1.0, 0)]
    assert workloads[0].teacher_name == "Teacher 1"

    schedules = scoring.section_schedules(assignment, lookup, WEEKDAYS)
    assert [s.section for s in schedules] == ["A", "B"]
    assert schedules[0].daily_hours == [1.0, 1.0, 0.0, 0.0, 0.0]
    assert schedules[0].total_gaps_minutes == 0
    assert schedules[1].total_hours == 1.0


def test_resource_utilization():
    one_per_day = {f"S{i}": make_slot(day, "09:00") for i, day in enumerate(WEEKDAYS)}
    assert scoring.resource_utilization(one_per_day, WEEKDAYS) == 100
    assert scoring.resource_utilization({}, WEEKDAYS) == 0

    all_monday = {f"S{i}": make_slot("Monday", f"{9 + i:02d}:00") for i in range(3)}
    assert scoring.resource_utilization(all_monday, WEEKDAYS) == 10


def test_sub_scores_without_penalties(lookup):
    assignment = {"S1": make_slot("Monday", "09:00"), "S2": make_slot("Monday", "10:00")}
    workloads = scoring.teacher_workloads(assignment, lookup)
    schedules = scoring.section_schedules(assignment, lookup, WEEKDAYS)

    assert scoring.teacher_satisfaction(assignment, lookup, workloads) == 100
    assert scoring.student_convenience(assignment, lookup, schedules) == 100


def test_quality_metrics_reflect_hard_violations(lookup):
    nine = make_slot("Monday", "09:00")
    assignment = {"S1": nine, "S3": nine}
    violations = scoring.collect_hard_violations(assignment, [NoTeacherClashConstraint(lookup)])
    workloads = scoring.teacher_workloads(assignment, lookup)
    schedules = scoring.section_schedules(assignment, lookup, WEEKDAYS)

    quality = scoring.calculate_quality_metrics(assignment, violations, [], lookup,
                                                workloads, schedules, WEEKDAYS)

    assert len(violations) == 1
    assert quality.feasibility_score == 90
    assert quality.optimization_score == 100


def test_statistics_count_costly_soft_constraints(lookup):
    assignment = {"S1": make_slot("Monday", "09:00"), "S2": make_slot("Monday", "12:00")}
    soft = [MinimizeStudentGapsConstraint(lookup, 30)]

    stats = scoring.generate_statistics(assignment, 3, [], soft, [], [])

    assert (stats.total_sessions, stats.sessions_scheduled) == (3, 2)
    assert stats.hard_violations == 0
    assert stats.soft_violations == 1


def test_issues_and_warnings(lookup):
    assignment = {"S1": make_slot("Monday", "09:00"), "S2": make_slot("Monday", "12:00")}
    workloads = [TeacherWorkload(teacher_id=1, teacher_name="Dr. Smith", total_hours=7,
                                 days_active=1, max_daily_hours=7, gaps_minutes=0)]
    schedules = [SectionSchedule(section="A", total_hours=8, daily_hours=[8, 0, 0, 0, 0],
                                 total_gaps_minutes=120, longest_gap_minutes=120)]
    extra = [ScheduleWarning(type="other", message="note")]

    issues = scoring.identify_issues(assignment, [], [MinimizeStudentGapsConstraint(lookup, 30)],
                                     workloads, schedules, extra)

    assert [v.constraint for v in issues.soft_violations] == ["MinimizeStudentGaps"]
    assert issues.soft_violations[0].impact_score == pytest.approx(30 * 2 ** 1.5, abs=0.01)
    assert [w.type for w in issues.warnings] == ["overload", "underutilization", "overload", "gap", "other"]
    assert issues.hard_violations == []


def test_rank_keeps_best_three():
    solutions = [make_solution(f"s{i}", overall=score) for i, score in enumerate([60, 90, 70, 80])]
    assert [s.id for s in scoring.rank_solutions(solutions)] == ["s1", "s3", "s2"]


def test_recommendation_picks_each_audience_independently():
    solutions = [
        make_solution("overall", overall=90, teacher=60, student=60),
        make_solution("teachers", overall=80, teacher=95, student=50),
        make_solution("students", overall=70, teacher=40, student=99),
    ]
    recommendation = scoring.recommend(solutions)

    assert recommendation.best_overall == "overall"
    assert recommendation.best_for_teachers == "teachers"
    assert recommendation.best_for_students == "students"
    assert recommendation.reasoning.startswith("Analyzed 3 solutions")


def test_recommendation_without_solutions():
    recommendation = scoring.recommend([], "nothing fit")
    assert recommendation.best_overall == ""
    assert recommendation.reasoning == "nothing fit"


def test_solution_serializes_to_plain_data():
    data = make_solution("s1", overall=80).to_dict()
    assert data["quality"]["overall_score"] == 80
    assert data["generation_info"]["timestamp"] == "2025-01-01T00:00:00+00:00"
    assert isinstance(HardViolation("X", ["a"], "d").to_dict()["affected_sessions"], list)


def test_teacher_satisfaction_ignores_uneven_weekly_loads():
    sessions = build_session_lookup(
        [make_session(f"T1_{i}", section=f"S{i}", teacher_id=1) for i in range(4)]
        + [make_session("T2_0", section="S9", teacher_id=2)]
    )
    assignment = {f"T1_{i}": make_slot(day, "09:00") for i, day in enumerate(WEEKDAYS[:4])}
    assignment["T2_0"] = make_slot("Monday", "09:00")
    workloads = scoring.teacher_workloads(assignment, sessions)

    assert [w.total_hours for w in workloads] == [4.0, 1.0]
    assert scoring.teacher_satisfaction(assignment, sessions, workloads) == 100


def test_teacher_satisfaction_penalises_lopsided_days():
    sessions = build_session_lookup([make_session(f"T{i}", section=f"S{i}", teacher_id=1) for i in range(3)])
    assignment = {"T0": make_slot("Monday", "09:00"), "T1": make_slot("Monday", "10:00"),
                  "T2": make_slot("Tuesday", "09:00")}
    workloads = scoring.teacher_workloads(assignment, sessions)

    assert scoring.daily_load_spread(assignment, sessions) == pytest.approx(0.5)
    assert scoring.teacher_satisfaction(assignment, sessions, workloads) == 95
