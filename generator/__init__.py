"""Timetable generation package"""
from .errors import (
    TimetableGenerationError, ConfigurationError, InvalidGenerationInputError,
    OverconstrainedProblemError
)
from .optimization import (
    OptimizationGoal, TEACHER_WORKLOAD, STUDENT_CONVENIENCE, BALANCED, MORNING_THEORY,
    MINIMIZE_TRANSITIONS, DEFAULT_GOALS, get_goal, apply_goal_weights, build_goal_soft_constraints
)
from .orchestrator import AITimetableGenerator, GenerationProblem
from .sessions import check_problem_size, create_csp_variables, generate_sessions
from .time_slots import generate_time_slots

__all__ = [
    'TimetableGenerationError', 'ConfigurationError', 'InvalidGenerationInputError',
    'OverconstrainedProblemError', 'OptimizationGoal', 'TEACHER_WORKLOAD',
    'STUDENT_CONVENIENCE', 'BALANCED', 'MORNING_THEORY', 'MINIMIZE_TRANSITIONS',
    'DEFAULT_GOALS', 'get_goal', 'apply_goal_weights', 'build_goal_soft_constraints',
    'AITimetableGenerator', 'GenerationProblem', 'check_problem_size',
    'create_csp_variables', 'generate_sessions', 'generate_time_slots'
]
