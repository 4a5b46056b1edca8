"""
Session generation: expands course assignments into schedulable sessions
"""
import logging
import math
from collections import Counter
from typing import List, Optional, Sequence

from models.data_models import CourseSession, CSPVariable, TimeSlot
from models.generation_input import CourseAssignment, TimeConfiguration

from .errors import OverconstrainedProblemError

logger = logging.getLogger(__name__)


def session_id(course_code: str, session_type: str, section: str, number: int) -> str:
    return f"{course_code}_{session_type.capitalize()}_{section}_{number}"


def generate_sessions(course_assignments: Sequence[CourseAssignment],
                      target_sections: Optional[Sequence[str]] = None) -> List[CourseSession]:
    """One session per weekly meeting, per section, per session type.

    Session types with no weekly classes or no teacher are skipped. When
    target_sections is given it replaces each course's own section list.
    """
    sessions: List[CourseSession] = []

    for course in course_assignments:
        sections = target_sections if target_sections is not None else course.sections
        for section in sections:
            for session_type, assignment in course.sessions.items():
                if assignment.classes_per_week <= 0 or not assignment.has_teacher:
                    continue
                for number in range(1, assignment.classes_per_week + 1):
                    sessions.append(CourseSession(
                        id=session_id(course.course_code, session_type, section, number),
                        course_id=course.course_id,
                        course_code=course.course_code,
                        course_name=course.course_name,
                        session_type=session_type,
                        section=section,
                        teacher_id=assignment.teacher_id,
                        teacher_name=assignment.teacher_name,
                        department_id=course.department_id,
                        semester=course.semester,
                        duration_minutes=assignment.duration_minutes,
                        classes_per_week=assignment.classes_per_week,
                        session_number=number,
                    ))

    logger.info("Generated %d sessions", len(sessions))
    return sessions


def duplicate_session_ids(sessions: Sequence[CourseSession]) -> List[str]:
    """Ids produced by more than one session, e.g. two courses sharing a code and section"""
    counts = Counter(s.id for s in sessions)
    return sorted(sid for sid, count in counts.items() if count > 1)


def required_slots_per_section(sessions: Sequence[CourseSession]) -> int:
    unique_sections = len({s.section for s in sessions})
    if unique_sections == 0:
        return 0
    return math.ceil(len(sessions) / unique_sections)


def check_problem_size(sessions: Sequence[CourseSession], time_slots: Sequence[TimeSlot],
                       time_config: TimeConfiguration) -> int:
    """Fail fast when sections need more slots than the week offers.

    Returns the required slots per section.
    """
    required = required_slots_per_section(sessions)
    available = len(time_slots)

    logger.info("Problem size: %d sessions, %d sections, %d required slots per section, "
                "%d available slots", len(sessions), len({s.section for s in sessions}),
                required, available)

    if required > available:
        logger.error("Overconstrained problem: need %d slots per section, only %d available",
                     required, available)
        raise OverconstrainedProblemError(required, available,
                                          time_config.start_time, time_config.end_time)
    return required


def create_csp_variables(sessions: Sequence[CourseSession], time_slots: Sequence[TimeSlot]) -> List[CSPVariable]:
    """One variable per session, each starting with every slot"""
    return [CSPVariable(id=s.id, session=s, domain=list(time_slots)) for s in sessions]
