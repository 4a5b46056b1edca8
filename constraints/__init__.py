"""Scheduling constraints package"""
from .base import (
    HARD, SOFT, HARD_CONSTRAINT_WEIGHT, Constraint, HardConstraint, SoftConstraint,
    SessionLookup, build_session_lookup, slots_overlap, split_constraints
)
from .hard import (
    NoTeacherClashConstraint, NoSectionClashConstraint, RespectWorkingHoursConstraint,
    RespectLunchBreakConstraint, NoRoomClashConstraint, MaxClassesPerDayConstraint,
    create_standard_hard_constraints, create_custom_hard_constraints
)
from .soft import (
    MinimizeStudentGapsConstraint, BalanceTeacherWorkloadConstraint,
    PreferMorningTheoryConstraint, AvoidBackToBackLabsConstraint,
    MinimizeDailyTransitionsConstraint, SpreadCourseSessionsConstraint,
    create_standard_soft_constraints, create_custom_soft_constraints
)

__all__ = [
    'HARD', 'SOFT', 'HARD_CONSTRAINT_WEIGHT', 'Constraint', 'HardConstraint', 'SoftConstraint',
    'SessionLookup', 'build_session_lookup', 'slots_overlap', 'split_constraints',
    'NoTeacherClashConstraint', 'NoSectionClashConstraint', 'RespectWorkingHoursConstraint',
    'RespectLunchBreakConstraint', 'NoRoomClashConstraint', 'MaxClassesPerDayConstraint',
    'create_standard_hard_constraints', 'create_custom_hard_constraints',
    'MinimizeStudentGapsConstraint', 'BalanceTeacherWorkloadConstraint',
    'PreferMorningTheoryConstraint', 'AvoidBackToBackLabsConstraint',
    'MinimizeDailyTransitionsConstraint', 'SpreadCourseSessionsConstraint',
    'create_standard_soft_constraints', 'create_custom_soft_constraints'
]
