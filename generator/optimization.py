"""
Optimization goals: named soft-constraint weight profiles
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from constraints.base import SessionLookup, SoftConstraint
from constraints.soft import create_custom_soft_constraints
from models.generation_input import SoftConstraintPreferences


@dataclass(frozen=True)
class OptimizationGoal:
    key: str
    name: str
    description: str
    # constraint name -> weight multiplier
    emphasis: Dict[str, float] = field(default_factory=dict)


TEACHER_WORKLOAD = OptimizationGoal(
    key="teacher_workload",
    name="Teacher-Optimized",
    description="Balanced teacher workload, concentrated schedules",
    emphasis={"BalanceTeacherWorkload": 2.0, "AvoidBackToBackLabs": 1.5},
)

STUDENT_CONVENIENCE = OptimizationGoal(
    key="student_convenience",
    name="Student-Optimized",
    description="Minimal gaps for students, convenient daily schedules",
    emphasis={"MinimizeStudentGaps": 2.0, "MinimizeDailyTransitions": 1.5},
)

BALANCED = OptimizationGoal(
    key="balanced",
    name="Balanced Schedule",
    description="Good compromise between teacher and student preferences",
)

MORNING_THEORY = OptimizationGoal(
    key="morning_theory",
    name="Morning-Focused",
    description="Theory classes in morning, labs in afternoon",
    emphasis={"PreferMorningTheory": 3.0},
)

MINIMIZE_TRANSITIONS = OptimizationGoal(
    key="minimize_transitions",
    name="Compact Schedule",
    description="Minimal daily transitions, efficient resource use",
    emphasis={"MinimizeDailyTransitions": 2.0},
)

DEFAULT_GOALS = (TEACHER_WORKLOAD, STUDENT_CONVENIENCE, BALANCED, MORNING_THEORY, MINIMIZE_TRANSITIONS)

GOALS_BY_KEY = {goal.key: goal for goal in DEFAULT_GOALS}


def get_goal(key: str) -> OptimizationGoal:
    try:
        return GOALS_BY_KEY[key]
    except KeyError:
        raise ValueError(f"Unknown optimization goal {key!r}; "
                         f"expected one of {', '.join(GOALS_BY_KEY)}") from None


def apply_goal_weights(constraints: Sequence[SoftConstraint], goal: OptimizationGoal) -> List[SoftConstraint]:
    for constraint in constraints:
        constraint.weight *= goal.emphasis.get(constraint.name, 1.0)
    return list(constraints)


def build_goal_soft_constraints(sessions: SessionLookup, goal: OptimizationGoal,
                                preferences: Optional[SoftConstraintPreferences] = None
                                ) -> List[SoftConstraint]:
    """Fresh soft constraints at the requested weights, re-weighted for one goal"""
    return apply_goal_weights(create_custom_soft_constraints(sessions, preferences), goal)
