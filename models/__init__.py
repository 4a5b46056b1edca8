"""Data models package"""
from .data_models import (
    THEORY, LAB, TUTORIAL, SESSION_TYPES,
    TimeSlot, CourseSession, CSPVariable, CSPAssignment,
    SolutionStep, SolutionTrace, TimetableAssignment, QualityScores,
    TeacherWorkload, SectionSchedule, SolutionStatistics, HardViolation,
    SoftViolation, ScheduleWarning, SolutionIssues, GenerationInfo,
    TimetableSolution, InputSummary, GenerationSummary, Recommendation,
    MultiSolutionResult, time_to_minutes, minutes_to_time, min_to_12_hour
)
from .generation_input import (
    SessionTypeAssignment, CourseSessions, CourseAssignment, LunchBreak,
    TimeConfiguration, HardConstraintPreferences, SoftConstraintPreference,
    MorningTheoryPreference, SoftConstraintPreferences, GenerationPreferences,
    RequestMetadata, TimetableGenerationInput
)

__all__ = [
    'THEORY', 'LAB', 'TUTORIAL', 'SESSION_TYPES',
    'TimeSlot', 'CourseSession', 'CSPVariable', 'CSPAssignment',
    'SolutionStep', 'SolutionTrace', 'TimetableAssignment', 'QualityScores',
    'TeacherWorkload', 'SectionSchedule', 'SolutionStatistics', 'HardViolation',
    'SoftViolation', 'ScheduleWarning', 'SolutionIssues', 'GenerationInfo',
    'TimetableSolution', 'InputSummary', 'GenerationSummary', 'Recommendation',
    'MultiSolutionResult', 'time_to_minutes', 'minutes_to_time', 'min_to_12_hour',
    'SessionTypeAssignment', 'CourseSessions', 'CourseAssignment', 'LunchBreak',
    'TimeConfiguration', 'HardConstraintPreferences', 'SoftConstraintPreference',
    'MorningTheoryPreference', 'SoftConstraintPreferences', 'GenerationPreferences',
    'RequestMetadata', 'TimetableGenerationInput'
]
