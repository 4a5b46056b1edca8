import pytest

from constraints.base import (
    Constraint, HardConstraint, SoftConstraint, build_session_lookup, slots_overlap, split_constraints
)
from constraints.hard import (
    MaxClassesPerDayConstraint, NoRoomClashConstraint, NoSectionClashConstraint,
    NoTeacherClashConstraint, RespectLunchBreakConstraint, RespectWorkingHoursConstraint,
    create_custom_hard_constraints, create_standard_hard_constraints
)
from constraints.soft import (
    AvoidBackToBackLabsConstraint, BalanceTeacherWorkloadConstraint,
    MinimizeDailyTransitionsConstraint, MinimizeStudentGapsConstraint,
    PreferMorningTheoryConstraint, SpreadCourseSessionsConstraint,
    create_custom_soft_constraints, create_standard_soft_constraints
)
from models.data_models import LAB, THEORY
from models.generation_input import HardConstraintPreferences, SoftConstraintPreferences

from .conftest import make_session, make_slot


def test_slots_overlap():
    nine = make_slot("Monday", "09:00")
    assert slots_overlap(nine, make_slot("Monday", "09:30"))
    assert not slots_overlap(nine, make_slot("Monday", "10:00"))
    assert not slots_overlap(nine, make_slot("Tuesday", "09:00"))


def test_session_lookup_is_read_only(lookup):
    assert lookup["S1"].teacher_id == 1
    with pytest.raises(TypeError):
        lookup["S4"] = lookup["S1"]


def test_split_constraints_rejects_unknown_kinds(lookup):
    class Other(Constraint):
        def is_violated(self, assignment, session=None, slot=None):
            return False

        def violation_cost(self, assignment):
            return 0

    teacher = NoTeacherClashConstraint(lookup)
    gaps = MinimizeStudentGapsConstraint(lookup)
    assert split_constraints([gaps, teacher]) == ([teacher], [gaps])
    with pytest.raises(TypeError):
        split_constraints([Other(1)])


# ---------- Hard constraints ----------

def test_teacher_clash(lookup):
    constraint = NoTeacherClashConstraint(lookup)
    monday = make_slot("Monday", "09:00")
    assignment = {"S1": monday}

    assert constraint.is_violated(assignment, lookup["S3"], monday)
    assert not constraint.is_violated(assignment, lookup["S2"], monday)
    assert not constraint.is_violated(assignment, lookup["S3"], make_slot("Monday", "10:00"))
    assert constraint.affected_sessions(lookup["S1"]) == {"S3"}


def test_section_clash(lookup):
    constraint = NoSectionClashConstraint(lookup)
    monday = make_slot("Monday", "09:00")

    assert constraint.is_violated({"S1": monday}, lookup["S2"], monday)
    assert not constraint.is_violated({"S1": monday}, lookup["S3"], monday)


def test_room_clash_only_concerns_labs():
    sessions = build_session_lookup([
        make_session("L1", section="A", teacher_id=1, session_type=LAB),
        make_session("L2", section="B", teacher_id=2, session_type=LAB),
        make_session("T1", section="C", teacher_id=3, session_type=THEORY),
    ])
    constraint = NoRoomClashConstraint(sessions)
    monday = make_slot("Monday", "09:00")

    assert constraint.is_violated({"L1": monday}, sessions["L2"], monday)
    assert not constraint.is_violated({"L1": monday}, sessions["T1"], monday)
    assert constraint.affected_sessions(sessions["T1"]) == set()


def test_clash_violations_are_reported_pairwise(lookup):
    constraint = NoTeacherClashConstraint(lookup)
    monday = make_slot("Monday", "09:00")

    violations = constraint.find_violations({"S1": monday, "S3": monday})
    assert len(violations) == 1
    assert violations[0].constraint == "NoTeacherClash"
    assert violations[0].affected_sessions == ["S1", "S3"]
    assert constraint.violation_cost({"S1": monday, "S3": monday}) == 1000
    assert constraint.violation_cost({"S1": monday}) == 0


def test_working_hours():
    constraint = RespectWorkingHoursConstraint("09:00", "13:00", ["Monday", "Tuesday"])

    assert not constraint.is_violated({}, None, make_slot("Monday", "12:00"))
    assert constraint.is_violated({}, None, make_slot("Monday", "12:30"))
    assert constraint.is_violated({}, None, make_slot("Monday", "08:00"))
    assert constraint.is_violated({}, None, make_slot("Saturday", "09:00"))

    violations = constraint.find_violations({"S1": make_slot("Saturday", "09:00")})
    assert violations[0].description == "S1: Saturday is not a working day"


def test_lunch_break():
    constraint = RespectLunchBreakConstraint((12 * 60, 13 * 60))
    assert constraint.is_violated({}, None, make_slot("Monday", "12:30"))
    assert not constraint.is_violated({}, None, make_slot("Monday", "13:00"))
    assert not RespectLunchBreakConstraint(None).is_violated({}, None, make_slot("Monday", "12:00"))


def test_max_classes_per_day(lookup):
    constraint = MaxClassesPerDayConstraint(lookup, limit=1)
    nine, ten = make_slot("Monday", "09:00"), make_slot("Monday", "10:00")

    assert constraint.is_violated({"S1": nine}, lookup["S2"], ten)
    assert not constraint.is_violated({"S1": nine}, lookup["S2"], make_slot("Tuesday", "10:00"))
    assert not constraint.is_violated({"S1": nine}, lookup["S3"], ten)
    assert len(constraint.find_violations({"S1": nine, "S2": ten})) == 1


def test_standard_hard_constraints(lookup, morning_config):
    names = [c.name for c in create_standard_hard_constraints(lookup, morning_config)]
    assert names == ["NoTeacherClash", "NoSectionClash", "RespectWorkingHours",
                     "RespectLunchBreak", "NoRoomClash"]

    with_limit = create_standard_hard_constraints(lookup, morning_config, max_classes_per_day=4)
    assert with_limit[-1].name == "MaxClassesPerDay"
    assert all(isinstance(c, HardConstraint) and c.is_hard for c in with_limit)


def test_custom_hard_constraints_follow_flags(lookup, morning_config):
    preferences = HardConstraintPreferences(no_room_clash=False, respect_lunch_break=False,
                                            max_classes_per_day=3)
    names = [c.name for c in create_custom_hard_constraints(lookup, morning_config, preferences)]
    assert names == ["NoTeacherClash", "NoSectionClash", "RespectWorkingHours", "MaxClassesPerDay"]


# ---------- Soft constraints ----------

def test_soft_constraints_never_report_violation(lookup):
    for constraint in create_standard_soft_constraints(lookup):
        assert isinstance(constraint, SoftConstraint)
        assert not constraint.is_hard
        assert not constraint.is_violated({"S1": make_slot()}, lookup["S1"], make_slot())


def test_student_gap_cost_grows_faster_than_gap(lookup):
    constraint = MinimizeStudentGapsConstraint(lookup, weight=30)
    nine = make_slot("Monday", "09:00")

    assert constraint.violation_cost({"S1": nine, "S2": make_slot("Monday", "10:00")}) == 0
    one_hour = constraint.violation_cost({"S1": nine, "S2": make_slot("Monday", "11:00")})
    four_hours = constraint.violation_cost({"S1": nine, "S2": make_slot("Monday", "14:00")})
    assert one_hour == pytest.approx(30)
    assert four_hours == pytest.approx(8 * 30)


def test_teacher_workload_balance(lookup):
    constraint = BalanceTeacherWorkloadConstraint(lookup, weight=20)
    nine = make_slot("Monday", "09:00")

    # teacher 1 has two hours, teacher 2 one hour: standard deviation 0.5
    cost = constraint.violation_cost({"S1": nine, "S2": nine, "S3": make_slot("Monday", "10:00")})
    assert cost == pytest.approx(10)
    assert constraint.violation_cost({"S1": nine, "S2": nine}) == 0


def test_morning_theory_penalises_afternoon_slots(lookup):
    constraint = PreferMorningTheoryConstraint(lookup, weight=15)
    assert constraint.violation_cost({"S1": make_slot("Monday", "11:00")}) == 0
    assert constraint.violation_cost({"S1": make_slot("Monday", "12:00")}) == 0
    assert constraint.violation_cost({"S1": make_slot("Monday", "13:00")}) == pytest.approx(15)

    early = PreferMorningTheoryConstraint(lookup, weight=15, morning_end_time="10:00")
    assert early.violation_cost({"S1": make_slot("Monday", "11:00")}) == pytest.approx(15)


def test_back_to_back_labs():
    sessions = build_session_lookup([
        make_session("L1", section="A", session_type=LAB),
        make_session("L2", section="B", session_type=LAB),
    ])
    constraint = AvoidBackToBackLabsConstraint(sessions, weight=25)

    adjacent = {"L1": make_slot("Monday", "09:00"), "L2": make_slot("Monday", "10:00")}
    apart = {"L1": make_slot("Monday", "09:00"), "L2": make_slot("Monday", "11:00")}
    assert constraint.violation_cost(adjacent) == 25
    assert constraint.violation_cost(apart) == 0


def test_daily_transitions_price_course_type_and_sandwich():
    sessions = build_session_lookup([
        make_session("T1", course_id="CS101", session_type=THEORY),
        make_session("L1", course_id="CS101", session_type=LAB, number=2),
        make_session("T2", course_id="CS102", session_type=THEORY),
    ])
    constraint = MinimizeDailyTransitionsConstraint(sessions, weight=10)
    assignment = {"T1": make_slot("Monday", "09:00"), "L1": make_slot("Monday", "10:00"),
                  "T2": make_slot("Monday", "11:00")}

    # two type changes, one course change, one theory-lab-theory run
    assert constraint.violation_cost(assignment) == pytest.approx(2 * 3 + 5 + 20)


def test_spread_course_sessions():
    sessions = build_session_lookup([
        make_session("A1", number=1), make_session("A2", number=2), make_session("A3", number=3),
    ])
    constraint = SpreadCourseSessionsConstraint(sessions, weight=20)
    same_day = {sid: make_slot("Monday", start)
                for sid, start in (("A1", "09:00"), ("A2", "10:00"), ("A3", "11:00"))}
    spread = {sid: make_slot(day, "09:00")
              for sid, day in (("A1", "Monday"), ("A2", "Tuesday"), ("A3", "Wednesday"))}

    assert constraint.violation_cost(same_day) == 40
    assert constraint.violation_cost(spread) == 0
    assert constraint.affected_sessions(sessions["A1"]) == {"A2", "A3"}


def test_custom_soft_constraints_follow_preferences(lookup):
    preferences = SoftConstraintPreferences.model_validate({
        "minimize_student_gaps": {"enabled": False, "weight": 30},
        "prefer_morning_theory": {"weight": 5, "morning_end_time": "11:00"},
    })
    constraints = {c.name: c for c in create_custom_soft_constraints(lookup, preferences)}

    assert "MinimizeStudentGaps" not in constraints
    assert constraints["PreferMorningTheory"].weight == 5
    assert constraints["PreferMorningTheory"].morning_end_time == "11:00"
    assert constraints["SpreadCourseSessions"].weight == 20
    assert len(create_custom_soft_constraints(lookup)) == 6
