import pytest

from constraints.base import build_session_lookup
from models.data_models import THEORY, CourseSession, TimeSlot, minutes_to_time
from models.generation_input import TimeConfiguration, TimetableGenerationInput
from solver.csp_solver import SolverConfig, SolverLimits

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


def make_course(code="CS101", sections=("A",), theory=2, lab=0, tutorial=0,
                teacher_id=1, lab_teacher_id=None, duration=60):
    return {
        "course_id": code,
        "course_code": code,
        "course_name": f"{code} Course",
        "department_id": 1,
        "semester": 1,
        "sections": list(sections),
        "sessions": {
            "theory": {"teacher_id": teacher_id, "teacher_name": f"Teacher {teacher_id}",
                       "classes_per_week": theory, "duration_minutes": duration},
            "lab": {"teacher_id": lab_teacher_id or teacher_id,
                    "teacher_name": f"Teacher {lab_teacher_id or teacher_id}",
                    "classes_per_week": lab, "duration_minutes": duration},
            "tutorial": {"teacher_id": teacher_id, "teacher_name": f"Teacher {teacher_id}",
                         "classes_per_week": tutorial, "duration_minutes": duration},
        },
    }


def make_request(courses=None, start="09:00", end="13:00", lunch=None, days=None, **preferences):
    request = {
        "courseAssignments": courses if courses is not None else [make_course()],
        "timeConfiguration": {
            "start_time": start,
            "end_time": end,
            "class_duration": 60,
            "lunch_break": lunch,
            "working_days": list(WEEKDAYS if days is None else days),
        },
        "metadata": {"department_name": "Computer Science", "semester": 1,
                     "academic_year": "2025-2026", "created_by": "registrar"},
    }
    if preferences:
        request["preferences"] = preferences
    return request


def make_slot(day="Monday", start="09:00", duration=60):
    hours, minutes = start.split(":")
    start_min = int(hours) * 60 + int(minutes)
    return TimeSlot(
        id=f"{day[:3].upper()}_{start}",
        day=day,
        start_time=start,
        end_time=minutes_to_time(start_min + duration),
        start_min=start_min,
        end_min=start_min + duration,
        duration_minutes=duration,
    )


def make_session(session_id, section="A", teacher_id=1, session_type=THEORY,
                 course_id="CS101", duration=60, number=1):
    return CourseSession(
        id=session_id,
        course_id=course_id,
        course_code=str(course_id),
        course_name=f"{course_id} Course",
        session_type=session_type,
        section=section,
        teacher_id=teacher_id,
        teacher_name=f"Teacher {teacher_id}",
        department_id=1,
        semester=1,
        duration_minutes=duration,
        classes_per_week=1,
        session_number=number,
    )


@pytest.fixture
def morning_config():
    """Monday to Friday, 09:00-13:00, no lunch: 20 one-hour slots"""
    return TimeConfiguration(start_time="09:00", end_time="13:00", class_duration=60,
                             working_days=WEEKDAYS)


@pytest.fixture
def basic_request():
    return make_request()


@pytest.fixture
def basic_input(basic_request):
    return TimetableGenerationInput.model_validate(basic_request)


@pytest.fixture
def lookup():
    return build_session_lookup([
        make_session("S1", section="A", teacher_id=1),
        make_session("S2", section="A", teacher_id=2),
        make_session("S3", section="B", teacher_id=1),
    ])


@pytest.fixture
def fast_config():
    return SolverConfig(limits=SolverLimits(max_time_seconds=10, max_backtracks=1000,
                                            max_iterations=10000), random_seed=7)
