"""
Request contract for timetable generation
"""
import re
from typing import Iterator, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .data_models import LAB, THEORY, TUTORIAL, time_to_minutes


_CLOCK = re.compile(r"^(\d{1,2}):(\d{2})$")

Identifier = Union[int, str]


def _check_clock(value: str) -> str:
    match = _CLOCK.match(value.strip())
    if not match:
        raise ValueError(f"expected HH:MM, got {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"{value!r} is not a valid time of day")
    return f"{hours:02d}:{minutes:02d}"


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SessionTypeAssignment(_Model):
    """Teacher and weekly load for one session type of a course"""
    teacher_id: Optional[Identifier] = None
    teacher_name: str = ""
    classes_per_week: int = Field(0, ge=0)
    duration_minutes: int = Field(60, gt=0)

    @property
    def has_teacher(self) -> bool:
        return self.teacher_id not in (None, 0, "")


class CourseSessions(_Model):
    theory: SessionTypeAssignment = Field(default_factory=SessionTypeAssignment)
    lab: SessionTypeAssignment = Field(default_factory=SessionTypeAssignment)
    tutorial: SessionTypeAssignment = Field(default_factory=SessionTypeAssignment)

    def items(self) -> Iterator[Tuple[str, SessionTypeAssignment]]:
        yield THEORY, self.theory
        yield LAB, self.lab
        yield TUTORIAL, self.tutorial


class CourseAssignment(_Model):
    course_id: Identifier
    course_code: str
    course_name: str = ""
    department_id: Optional[int] = None
    semester: Optional[int] = None
    sections: List[str] = Field(default_factory=list)
    sessions: CourseSessions = Field(default_factory=CourseSessions)


class LunchBreak(_Model):
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def check_clock(cls, value: str) -> str:
        return _check_clock(value)

    @model_validator(mode="after")
    def check_order(self) -> "LunchBreak":
        if time_to_minutes(self.end) < time_to_minutes(self.start):
            raise ValueError("lunch break ends before it starts")
        return self


class TimeConfiguration(_Model):
    start_time: str
    end_time: str
    class_duration: int = Field(60, gt=0)
    lunch_break: Optional[LunchBreak] = None
    working_days: List[str] = Field(default_factory=list)

    @field_validator("start_time", "end_time")
    @classmethod
    def check_clock(cls, value: str) -> str:
        return _check_clock(value)

    @model_validator(mode="after")
    def check_order(self) -> "TimeConfiguration":
        if time_to_minutes(self.end_time) <= time_to_minutes(self.start_time):
            raise ValueError("end_time must be later than start_time")
        return self

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    @property
    def lunch_interval(self) -> Optional[Tuple[int, int]]:
        """Lunch break in minutes, or None when there is none to honour"""
        if self.lunch_break is None:
            return None
        start = time_to_minutes(self.lunch_break.start)
        end = time_to_minutes(self.lunch_break.end)
        if start == end:
            return None
        return start, end


class HardConstraintPreferences(_Model):
    no_teacher_clash: bool = True
    no_section_clash: bool = True
    respect_working_hours: bool = True
    respect_lunch_break: bool = True
    no_room_clash: bool = True
    max_classes_per_day: Optional[int] = Field(None, gt=0)


class SoftConstraintPreference(_Model):
    enabled: bool = True
    weight: float = Field(ge=0)


class MorningTheoryPreference(SoftConstraintPreference):
    morning_end_time: str = "12:00"

    @field_validator("morning_end_time")
    @classmethod
    def check_clock(cls, value: str) -> str:
        return _check_clock(value)


class SoftConstraintPreferences(_Model):
    minimize_student_gaps: SoftConstraintPreference = Field(
        default_factory=lambda: SoftConstraintPreference(weight=30))
    balance_teacher_workload: SoftConstraintPreference = Field(
        default_factory=lambda: SoftConstraintPreference(weight=20))
    prefer_morning_theory: MorningTheoryPreference = Field(
        default_factory=lambda: MorningTheoryPreference(weight=15))
    avoid_back_to_back_labs: SoftConstraintPreference = Field(
        default_factory=lambda: SoftConstraintPreference(weight=25))
    minimize_daily_transitions: SoftConstraintPreference = Field(
        default_factory=lambda: SoftConstraintPreference(weight=10))
    spread_course_sessions: SoftConstraintPreference = Field(
        default_factory=lambda: SoftConstraintPreference(weight=20))


class GenerationPreferences(_Model):
    hard_constraints: HardConstraintPreferences = Field(default_factory=HardConstraintPreferences)
    soft_constraints: SoftConstraintPreferences = Field(default_factory=SoftConstraintPreferences)


class RequestMetadata(_Model):
    """Bookkeeping carried through generation untouched"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    request_id: Optional[Identifier] = None
    department_name: str = ""
    semester: Optional[int] = None
    academic_year: str = ""
    created_by: str = ""


class TimetableGenerationInput(_Model):
    course_assignments: List[CourseAssignment] = Field(default_factory=list, alias="courseAssignments")
    time_configuration: TimeConfiguration = Field(alias="timeConfiguration")
    preferences: GenerationPreferences = Field(default_factory=GenerationPreferences)
    metadata: RequestMetadata = Field(default_factory=RequestMetadata)

    def validation_errors(self) -> List[str]:
        """Problems that make the request unusable before any search starts"""
        errors = []
        if not self.course_assignments:
            errors.append("At least one course assignment is required")
        if not self.time_configuration.working_days:
            errors.append("At least one working day is required")

        for course in self.course_assignments:
            if not course.sections:
                errors.append(f"No sections listed for course {course.course_code}")
            for session_type, assignment in course.sessions.items():
                if assignment.classes_per_week > 0 and not assignment.has_teacher:
                    errors.append(
                        f"{session_type.capitalize()} teacher not assigned for course {course.course_code}"
                    )
        return errors
