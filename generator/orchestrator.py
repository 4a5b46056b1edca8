"""
Multi-solution timetable generation.

The pipeline (slots, sessions, variables, hard constraints) is built once per
request. Each optimization goal then gets its own solver run on fresh
variable domains with its own re-weighted soft constraints, and the solved
timetables are scored, ranked and trimmed to a small portfolio.
"""
import logging
import time
import uuid
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence, Union

from constraints.base import HardConstraint, SessionLookup, build_session_lookup
from constraints.hard import create_standard_hard_constraints
from models.data_models import (
    CourseSession, CSPVariable, GenerationInfo, GenerationSummary, InputSummary,
    MultiSolutionResult, ScheduleWarning, TimeSlot, TimetableAssignment, TimetableSolution
)
from models.generation_input import TimetableGenerationInput
from solver.csp_solver import CSPSolver, SolverConfig

from . import scoring
from .errors import InvalidGenerationInputError
from .optimization import DEFAULT_GOALS, OptimizationGoal, build_goal_soft_constraints
from .sessions import check_problem_size, create_csp_variables, duplicate_session_ids, generate_sessions
from .time_slots import generate_time_slots

logger = logging.getLogger(__name__)


ALGORITHM_NAME = "CSP_Backtracking"
MAX_SOLUTIONS = 3

_HARD_FLAGS = (
    ("no_teacher_clash", "NoTeacherClash"),
    ("no_section_clash", "NoSectionClash"),
    ("respect_working_hours", "RespectWorkingHours"),
    ("respect_lunch_break", "RespectLunchBreak"),
    ("no_room_clash", "NoRoomClash"),
)


@dataclass
class GenerationProblem:
    time_slots: List[TimeSlot]
    sessions: List[CourseSession]
    session_lookup: SessionLookup
    variables: List[CSPVariable]
    hard_constraints: List[HardConstraint]


class AITimetableGenerator:
    def __init__(self, solver_config: Optional[SolverConfig] = None,
                 goals: Sequence[OptimizationGoal] = DEFAULT_GOALS,
                 max_solutions: int = MAX_SOLUTIONS):
        self.solver_config = solver_config or SolverConfig.from_env()
        self.goals = list(goals)
        self.max_solutions = max_solutions
        self.problem: Optional[GenerationProblem] = None

    # ---------- Main generation method ----------

    def generate_timetables(self, generation_input: Union[TimetableGenerationInput, Mapping[str, Any]]
                            ) -> MultiSolutionResult:
        """Generate, score and rank timetables for every optimization goal.

        Configuration errors (invalid input, overconstrained problem) are
        raised before any search. Past that point every outcome, including
        total failure, comes back as a MultiSolutionResult.
        """
        start = time.monotonic()
        if not isinstance(generation_input, TimetableGenerationInput):
            generation_input = TimetableGenerationInput.model_validate(generation_input)

        logger.info("Starting timetable generation for %d courses (%s, semester %s)",
                    len(generation_input.course_assignments),
                    generation_input.metadata.department_name or "no department",
                    generation_input.metadata.semester)

        problem = self.prepare_problem(generation_input)
        input_summary = self._input_summary(generation_input, problem)
        ignored_flags = self._ignored_hard_flags(generation_input)

        solutions: List[TimetableSolution] = []
        terminations = []
        for index, goal in enumerate(self.goals, start=1):
            logger.info("Generating solution %d: %s", index, goal.name)
            try:
                solution, termination = self._generate_single_solution(
                    problem, generation_input, goal, ignored_flags)
            except Exception:
                logger.exception("Error generating %s", goal.name)
                terminations.append("error")
                continue

            terminations.append(termination)
            if solution is None:
                logger.info("Failed to generate %s (%s)", goal.name, termination)
                continue
            solutions.append(solution)
            logger.info("Generated %s - quality %.1f", goal.name, solution.quality.overall_score)

        ranked = scoring.rank_solutions(solutions, self.max_solutions)
        recommendations = scoring.recommend(ranked, self._failure_reason(terminations))

        result = MultiSolutionResult(
            success=bool(ranked),
            solutions=ranked,
            generation_summary=GenerationSummary(
                total_solutions_attempted=len(self.goals),
                successful_solutions=len(solutions),
                total_generation_time_ms=round((time.monotonic() - start) * 1000, 2),
                input_summary=input_summary,
            ),
            recommendations=recommendations,
        )
        logger.info("Generation finished: %d of %d goals solved",
                    len(solutions), len(self.goals))
        return result

    # ---------- Data preparation ----------

    def prepare_problem(self, generation_input: TimetableGenerationInput) -> GenerationProblem:
        errors = generation_input.validation_errors()
        if errors:
            raise InvalidGenerationInputError(errors)

        time_config = generation_input.time_configuration
        time_slots = generate_time_slots(time_config)
        sessions = generate_sessions(generation_input.course_assignments)
        if not sessions:
            raise InvalidGenerationInputError(["No sessions to schedule: every course has zero weekly classes"])

        duplicates = duplicate_session_ids(sessions)
        if duplicates:
            raise InvalidGenerationInputError(
                [f"Duplicate session ids (course code listed twice for one section): {', '.join(duplicates)}"])

        check_problem_size(sessions, time_slots, time_config)

        lookup = build_session_lookup(sessions)
        hard_constraints = create_standard_hard_constraints(
            lookup, time_config, generation_input.preferences.hard_constraints.max_classes_per_day)

        self.problem = GenerationProblem(
            time_slots=time_slots,
            sessions=sessions,
            session_lookup=lookup,
            variables=create_csp_variables(sessions, time_slots),
            hard_constraints=hard_constraints,
        )
        logger.info("CSP data prepared: %d variables, %d time slots",
                    len(self.problem.variables), len(time_slots))
        return self.problem

    # ---------- Single solution ----------

    def _generate_single_solution(self, problem: GenerationProblem,
                                  generation_input: TimetableGenerationInput,
                                  goal: OptimizationGoal,
                                  extra_warnings: Sequence[ScheduleWarning]):
        soft_constraints = build_goal_soft_constraints(
            problem.session_lookup, goal, generation_input.preferences.soft_constraints)

        # every attempt starts from full, unpruned domains
        variables = [v.clone(problem.time_slots) for v in problem.variables]
        solver = CSPSolver(variables, [*problem.hard_constraints, *soft_constraints], self.solver_config)
        outcome = solver.solve()

        if not outcome.assignment:
            return None, outcome.trace.termination

        assignment = outcome.assignment
        working_days = list(dict.fromkeys(generation_input.time_configuration.working_days))
        hard_violations = scoring.collect_hard_violations(assignment, problem.hard_constraints)
        workloads = scoring.teacher_workloads(assignment, problem.session_lookup)
        schedules = scoring.section_schedules(assignment, problem.session_lookup, working_days)

        solution = TimetableSolution(
            id=f"solution_{goal.key}_{uuid.uuid4().hex[:8]}",
            name=goal.name,
            description=goal.description,
            schedule=[TimetableAssignment(session_id=sid, time_slot_id=slot.id)
                      for sid, slot in assignment.items()],
            quality=scoring.calculate_quality_metrics(
                assignment, hard_violations, soft_constraints, problem.session_lookup,
                workloads, schedules, working_days),
            statistics=scoring.generate_statistics(
                assignment, len(problem.sessions), hard_violations, soft_constraints,
                workloads, schedules),
            issues=scoring.identify_issues(
                assignment, hard_violations, soft_constraints, workloads, schedules, extra_warnings),
            generation_info=GenerationInfo(
                algorithm=ALGORITHM_NAME,
                generation_time_ms=round(outcome.trace.solution_time_ms, 2),
                iterations=outcome.trace.iterations,
                optimization_goal=goal.key,
                timestamp=datetime.now(timezone.utc),
                termination=outcome.trace.termination,
            ),
        )
        return solution, outcome.trace.termination

    # ---------- Utility methods ----------

    @staticmethod
    def _ignored_hard_flags(generation_input: TimetableGenerationInput) -> List[ScheduleWarning]:
        """Hard constraints are always enforced; flag requests that tried to switch one off"""
        preferences = generation_input.preferences.hard_constraints
        warnings = []
        for flag, constraint_name in _HARD_FLAGS:
            if not getattr(preferences, flag):
                logger.warning("Ignoring request to disable hard constraint %s", constraint_name)
                warnings.append(ScheduleWarning(
                    type="other",
                    message=f"Hard constraint {constraint_name} cannot be disabled and was enforced",
                    affected_entities=[constraint_name],
                ))
        return warnings

    @staticmethod
    def _input_summary(generation_input: TimetableGenerationInput,
                       problem: GenerationProblem) -> InputSummary:
        return InputSummary(
            total_courses=len(generation_input.course_assignments),
            total_sessions=len(problem.sessions),
            total_teachers=len({s.teacher_id for s in problem.sessions}),
            total_sections=len({s.section for s in problem.sessions}),
            available_time_slots=len(problem.time_slots),
        )

    @staticmethod
    def _failure_reason(terminations: Sequence[str]) -> str:
        if not terminations:
            return "No optimization goals were attempted"
        counts = Counter(terminations)
        detail = ", ".join(f"{reason}: {count}" for reason, count in sorted(counts.items()))
        return (f"No solutions generated: every optimization goal failed ({detail}). "
                f"Try relaxing the schedule or raising the solver time and backtrack limits.")
