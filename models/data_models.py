"""
Data models for the timetable generation engine
"""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


THEORY = "theory"
LAB = "lab"
TUTORIAL = "tutorial"
SESSION_TYPES = (THEORY, LAB, TUTORIAL)


def time_to_minutes(value: str) -> int:
    """Convert an HH:MM string to minutes since midnight"""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(mins: int) -> str:
    """Convert minutes since midnight to an HH:MM string"""
    return f"{mins // 60:02d}:{mins % 60:02d}"


def min_to_12_hour(mins: int) -> str:
    """Convert minutes to 12-hour format"""
    h = mins // 60
    m = mins % 60
    pm = h >= 12
    hh = 12 if h % 12 == 0 else h % 12
    return f"{hh:02d}:{m:02d}{'PM' if pm else 'AM'}"


def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class _Serializable:
    def to_dict(self) -> Dict[str, Any]:
        return _plain(asdict(self))


@dataclass(frozen=True)
class TimeSlot(_Serializable):
    id: str
    day: str
    start_time: str
    end_time: str
    start_min: int
    end_min: int
    duration_minutes: int
    is_lunch_break: bool = False


@dataclass(frozen=True)
class CourseSession(_Serializable):
    id: str
    course_id: Any
    course_code: str
    course_name: str
    session_type: str
    section: str
    teacher_id: Any
    teacher_name: str
    department_id: Optional[int]
    semester: Optional[int]
    duration_minutes: int
    classes_per_week: int
    session_number: int


@dataclass
class CSPVariable:
    """A session paired with the time slots it may still take"""
    id: str
    session: CourseSession
    domain: List[TimeSlot]

    def clone(self, domain: Optional[List[TimeSlot]] = None) -> "CSPVariable":
        return CSPVariable(
            id=self.id,
            session=self.session,
            domain=list(self.domain if domain is None else domain),
        )


# session id -> assigned slot
CSPAssignment = Dict[str, TimeSlot]


# ---------- Solver trace ----------

@dataclass
class SolutionStep(_Serializable):
    step: int
    action: str
    session_id: Optional[str]
    time_slot_id: Optional[str]
    reason: str
    assigned_count: int
    domain_size: int


@dataclass
class SolutionTrace(_Serializable):
    steps: List[SolutionStep]
    final_assignment: Dict[str, str]
    total_backtracks: int
    total_propagations: int
    iterations: int
    solution_time_ms: float
    termination: str


# ---------- Solution output ----------

@dataclass
class TimetableAssignment(_Serializable):
    session_id: str
    time_slot_id: str


@dataclass
class QualityScores(_Serializable):
    feasibility_score: float
    optimization_score: float
    teacher_satisfaction: float
    student_convenience: float
    resource_utilization: float
    overall_score: float


@dataclass
class TeacherWorkload(_Serializable):
    teacher_id: Any
    teacher_name: str
    total_hours: float
    days_active: int
    max_daily_hours: float
    gaps_minutes: int


@dataclass
class SectionSchedule(_Serializable):
    section: str
    total_hours: float
    daily_hours: List[float]
    total_gaps_minutes: int
    longest_gap_minutes: int


@dataclass
class SolutionStatistics(_Serializable):
    total_sessions: int
    sessions_scheduled: int
    hard_violations: int
    soft_violations: int
    teacher_workload: List[TeacherWorkload] = field(default_factory=list)
    student_schedule: List[SectionSchedule] = field(default_factory=list)


@dataclass
class HardViolation(_Serializable):
    constraint: str
    affected_sessions: List[str]
    description: str


@dataclass
class SoftViolation(_Serializable):
    constraint: str
    impact_score: float
    description: str


@dataclass
class ScheduleWarning(_Serializable):
    type: str  # overload | underutilization | gap | other
    message: str
    affected_entities: List[str] = field(default_factory=list)


@dataclass
class SolutionIssues(_Serializable):
    hard_violations: List[HardViolation] = field(default_factory=list)
    soft_violations: List[SoftViolation] = field(default_factory=list)
    warnings: List[ScheduleWarning] = field(default_factory=list)


@dataclass
class GenerationInfo(_Serializable):
    algorithm: str
    generation_time_ms: float
    iterations: int
    optimization_goal: str
    timestamp: datetime
    termination: str = "solved"


@dataclass(frozen=True)
class TimetableSolution(_Serializable):
    id: str
    name: str
    description: str
    schedule: List[TimetableAssignment]
    quality: QualityScores
    statistics: SolutionStatistics
    issues: SolutionIssues
    generation_info: GenerationInfo


@dataclass
class InputSummary(_Serializable):
    total_courses: int
    total_sessions: int
    total_teachers: int
    total_sections: int
    available_time_slots: int


@dataclass
class GenerationSummary(_Serializable):
    total_solutions_attempted: int
    successful_solutions: int
    total_generation_time_ms: float
    input_summary: InputSummary


@dataclass
class Recommendation(_Serializable):
    best_overall: str
    best_for_teachers: str
    best_for_students: str
    reasoning: str


@dataclass
class MultiSolutionResult(_Serializable):
    success: bool
    solutions: List[TimetableSolution]
    generation_summary: GenerationSummary
    recommendations: Recommendation
