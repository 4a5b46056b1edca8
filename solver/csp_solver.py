"""
CSP Solver for timetable generation
"""
import logging
import random
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Set

import config
from constraints.base import Constraint, split_constraints
from models.data_models import CSPAssignment, CSPVariable, SolutionStep, SolutionTrace, TimeSlot

logger = logging.getLogger(__name__)


MOST_CONSTRAINED_FIRST = "most_constrained_first"
LEAST_CONSTRAINING_VARIABLE = "least_constraining_variable"
LEAST_CONSTRAINING_VALUE = "least_constraining_value"
MOST_CONSTRAINING_VALUE = "most_constraining_value"
RANDOM = "random"

VARIABLE_ORDERINGS = (MOST_CONSTRAINED_FIRST, LEAST_CONSTRAINING_VARIABLE, RANDOM)
VALUE_ORDERINGS = (LEAST_CONSTRAINING_VALUE, MOST_CONSTRAINING_VALUE, RANDOM)
ALGORITHMS = ("backtracking", "forward_checking", "arc_consistency")

# trace actions
ASSIGN = "assign"
UNASSIGN = "unassign"
PROPAGATE = "propagate"
BACKTRACK = "backtrack"

# how a search ended
SOLVED = "solved"
TIMEOUT = "timeout"
BACKTRACK_LIMIT = "backtrack_limit"
ITERATION_LIMIT = "iteration_limit"
DOMAIN_WIPEOUT = "domain_wipeout"
EXHAUSTED = "exhausted"

_LIMIT_TERMINATIONS = (TIMEOUT, BACKTRACK_LIMIT, ITERATION_LIMIT)

_MISSING = object()


@dataclass
class SolverHeuristics:
    variable_ordering: str = MOST_CONSTRAINED_FIRST
    value_ordering: str = LEAST_CONSTRAINING_VALUE
    constraint_propagation: bool = True


@dataclass
class SolverLimits:
    max_time_seconds: float = 60.0
    max_backtracks: int = 5000
    max_iterations: int = 50000


@dataclass
class SolverOptimization:
    # order equally constraining slots by weighted soft cost
    enable_optimization: bool = True


@dataclass
class SolverConfig:
    algorithm: str = "backtracking"
    heuristics: SolverHeuristics = field(default_factory=SolverHeuristics)
    limits: SolverLimits = field(default_factory=SolverLimits)
    optimization: SolverOptimization = field(default_factory=SolverOptimization)
    random_seed: Optional[int] = None
    record_trace: bool = True

    def __post_init__(self):
        if self.algorithm not in ALGORITHMS:
            raise ValueError(f"Unknown algorithm {self.algorithm!r}")
        if self.heuristics.variable_ordering not in VARIABLE_ORDERINGS:
            raise ValueError(f"Unknown variable ordering {self.heuristics.variable_ordering!r}")
        if self.heuristics.value_ordering not in VALUE_ORDERINGS:
            raise ValueError(f"Unknown value ordering {self.heuristics.value_ordering!r}")

    @classmethod
    def from_env(cls, **overrides) -> "SolverConfig":
        """Solver configuration with limits taken from the environment"""
        limits = SolverLimits(
            max_time_seconds=config.MAX_TIME_SECONDS,
            max_backtracks=config.MAX_BACKTRACKS,
            max_iterations=config.MAX_ITERATIONS,
        )
        options = {"limits": limits, "random_seed": config.RANDOM_SEED}
        options.update(overrides)
        return cls(**options)


@dataclass
class SolverResult:
    assignment: Optional[CSPAssignment]
    trace: SolutionTrace

    @property
    def success(self) -> bool:
        return self.assignment is not None


class CSPSolver:
    """Backtracking search with forward propagation over session -> slot variables.

    Variable domains are the only state mutated during search. Each tentative
    assignment runs inside a domain savepoint that restores every unassigned
    variable's domain on the way out, whether the branch succeeded, failed, or
    raised.
    """

    def __init__(self, variables: List[CSPVariable], constraints: Sequence[Constraint],
                 solver_config: Optional[SolverConfig] = None):
        self.variables = variables
        self.constraints = list(constraints)
        self.hard_constraints, self.soft_constraints = split_constraints(self.constraints)
        self.config = solver_config or SolverConfig()

        self._by_id: Dict[str, CSPVariable] = {v.id: v for v in variables}
        self._rng = random.Random(self.config.random_seed)

        # Variables a placement can prune, and how many hard rules tie each variable to others
        self._neighbors: Dict[str, Set[str]] = {}
        self._constraint_degree: Dict[str, int] = {}
        for v in variables:
            linked: Set[str] = set()
            degree = 0
            for constraint in self.hard_constraints:
                affected = constraint.affected_sessions(v.session)
                if affected:
                    degree += 1
                    linked |= affected
            linked.discard(v.id)
            self._neighbors[v.id] = {other for other in linked if other in self._by_id}
            self._constraint_degree[v.id] = degree

        self._steps: List[SolutionStep] = []
        self.backtrack_count = 0
        self.propagation_count = 0
        self.iterations = 0
        self._start_time = 0.0
        self._termination = EXHAUSTED

    # ---------- Main solve method ----------

    def solve(self) -> SolverResult:
        """Search for a complete, hard-consistent assignment"""
        self._start_time = time.monotonic()
        self._steps = []
        self.backtrack_count = 0
        self.propagation_count = 0
        self.iterations = 0
        self._termination = EXHAUSTED

        logger.info("Starting CSP solver with %d variables and %d constraints",
                    len(self.variables), len(self.constraints))

        # Each level of the search takes a few frames
        previous_limit = sys.getrecursionlimit()
        sys.setrecursionlimit(max(previous_limit, 4 * len(self.variables) + 1000))
        try:
            assignment: CSPAssignment = {}
            result = None
            if self.config.heuristics.constraint_propagation and not self._propagate(assignment):
                self._termination = DOMAIN_WIPEOUT
            else:
                result = self._backtrack(assignment)
        finally:
            sys.setrecursionlimit(previous_limit)

        elapsed_ms = (time.monotonic() - self._start_time) * 1000
        if result is not None:
            logger.info("CSP solver found a complete assignment in %.0f ms", elapsed_ms)
        elif self._termination in _LIMIT_TERMINATIONS:
            logger.warning("CSP solver stopped (%s) after %.0f ms and %d backtracks",
                           self._termination, elapsed_ms, self.backtrack_count)
        else:
            logger.info("CSP solver found no solution (%s) after %.0f ms",
                        self._termination, elapsed_ms)

        trace = SolutionTrace(
            steps=self._steps,
            final_assignment={sid: slot.id for sid, slot in (result or {}).items()},
            total_backtracks=self.backtrack_count,
            total_propagations=self.propagation_count,
            iterations=self.iterations,
            solution_time_ms=elapsed_ms,
            termination=self._termination,
        )
        return SolverResult(assignment=result, trace=trace)

    # ---------- Backtracking algorithm ----------

    def _limit_reached(self) -> Optional[str]:
        limits = self.config.limits
        if time.monotonic() - self._start_time >= limits.max_time_seconds:
            return TIMEOUT
        if self.backtrack_count >= limits.max_backtracks:
            return BACKTRACK_LIMIT
        if self.iterations > limits.max_iterations:
            return ITERATION_LIMIT
        return None

    def _backtrack(self, assignment: CSPAssignment) -> Optional[CSPAssignment]:
        self.iterations += 1
        limit = self._limit_reached()
        if limit is not None:
            self._termination = limit
            return None

        if len(assignment) == len(self.variables):
            self._termination = SOLVED
            return dict(assignment)

        variable = self._select_unassigned_variable(assignment)
        self._add_trace_step(ASSIGN, variable.id, None, "Selected variable for assignment", assignment)

        for value in self._order_domain_values(variable, assignment):
            if not self._is_consistent(variable, value, assignment):
                continue

            assignment[variable.id] = value
            self._add_trace_step(ASSIGN, variable.id, value.id, "Assigned value to variable", assignment)

            result = self._descend(assignment)
            if result is not None:
                return result

            del assignment[variable.id]
            if self._termination in _LIMIT_TERMINATIONS:
                self._add_trace_step(UNASSIGN, variable.id, value.id,
                                     f"Search stopped: {self._termination}", assignment)
                return None

            self.backtrack_count += 1
            self._add_trace_step(BACKTRACK, variable.id, value.id, "Backtracked assignment", assignment)

        return None

    def _descend(self, assignment: CSPAssignment) -> Optional[CSPAssignment]:
        if not self.config.heuristics.constraint_propagation:
            return self._backtrack(assignment)

        with self._domain_savepoint(assignment):
            if not self._propagate(assignment):
                return None
            return self._backtrack(assignment)

    # ---------- Variable selection heuristics ----------

    def _select_unassigned_variable(self, assignment: CSPAssignment) -> CSPVariable:
        unassigned = [v for v in self.variables if v.id not in assignment]
        ordering = self.config.heuristics.variable_ordering

        if ordering == MOST_CONSTRAINED_FIRST:
            return min(unassigned, key=lambda v: len(v.domain))
        if ordering == LEAST_CONSTRAINING_VARIABLE:
            return min(unassigned, key=lambda v: len(v.domain) * self._constraint_degree[v.id])
        return self._rng.choice(unassigned)

    # ---------- Value ordering heuristics ----------

    def _order_domain_values(self, variable: CSPVariable, assignment: CSPAssignment) -> List[TimeSlot]:
        ordering = self.config.heuristics.value_ordering
        if ordering == RANDOM:
            values = list(variable.domain)
            self._rng.shuffle(values)
            return values

        sign = 1 if ordering == LEAST_CONSTRAINING_VALUE else -1
        use_soft_cost = self.config.optimization.enable_optimization and bool(self.soft_constraints)

        def sort_key(value: TimeSlot):
            eliminated = self._count_eliminated_values(variable, value, assignment)
            cost = self._soft_cost_with(variable, value, assignment) if use_soft_cost else 0.0
            return sign * eliminated, cost

        return sorted(variable.domain, key=sort_key)

    def _count_eliminated_values(self, variable: CSPVariable, value: TimeSlot,
                                 assignment: CSPAssignment) -> int:
        """Values of other unassigned variables ruled out if variable takes value"""
        count = 0
        with self._tentatively(assignment, variable.id, value):
            for other_id in self._neighbors[variable.id]:
                if other_id in assignment:
                    continue
                other = self._by_id[other_id]
                for other_value in other.domain:
                    if not self._is_consistent(other, other_value, assignment):
                        count += 1
        return count

    def _soft_cost_with(self, variable: CSPVariable, value: TimeSlot, assignment: CSPAssignment) -> float:
        with self._tentatively(assignment, variable.id, value):
            return sum(c.violation_cost(assignment) for c in self.soft_constraints)

    # ---------- Constraint checking ----------

    @contextmanager
    def _tentatively(self, assignment: CSPAssignment, variable_id: str, value: TimeSlot) -> Iterator[None]:
        previous = assignment.get(variable_id, _MISSING)
        assignment[variable_id] = value
        try:
            yield
        finally:
            if previous is _MISSING:
                del assignment[variable_id]
            else:
                assignment[variable_id] = previous

    def _is_consistent(self, variable: CSPVariable, value: TimeSlot, assignment: CSPAssignment) -> bool:
        with self._tentatively(assignment, variable.id, value):
            for constraint in self.hard_constraints:
                if constraint.is_violated(assignment, variable.session, value):
                    return False
        return True

    # ---------- Constraint propagation ----------

    def _propagate(self, assignment: CSPAssignment) -> bool:
        """Filter unassigned domains to values consistent with the assignment, to a fixed point"""
        self.propagation_count += 1
        reduced = 0
        changed = True

        while changed:
            changed = False
            for variable in self.variables:
                if variable.id in assignment:
                    continue

                before = len(variable.domain)
                variable.domain = [value for value in variable.domain
                                   if self._is_consistent(variable, value, assignment)]

                if not variable.domain:
                    self._add_trace_step(PROPAGATE, variable.id, None,
                                         f"Domain wipeout after removing {before} values", assignment)
                    return False
                if len(variable.domain) < before:
                    reduced += before - len(variable.domain)
                    changed = True

        self._add_trace_step(PROPAGATE, None, None,
                             f"Constraint propagation reduced {reduced} domain values", assignment)
        return True

    def save_domains(self, assignment: CSPAssignment) -> Dict[str, List[TimeSlot]]:
        return {v.id: list(v.domain) for v in self.variables if v.id not in assignment}

    def restore_domains(self, saved: Dict[str, List[TimeSlot]]):
        for variable_id, domain in saved.items():
            self._by_id[variable_id].domain = list(domain)

    @contextmanager
    def _domain_savepoint(self, assignment: CSPAssignment) -> Iterator[None]:
        saved = self.save_domains(assignment)
        try:
            yield
        finally:
            self.restore_domains(saved)

    # ---------- Utility methods ----------

    def _add_trace_step(self, action: str, session_id: Optional[str], time_slot_id: Optional[str],
                        reason: str, assignment: CSPAssignment):
        if not self.config.record_trace:
            return
        self._steps.append(SolutionStep(
            step=len(self._steps) + 1,
            action=action,
            session_id=session_id,
            time_slot_id=time_slot_id,
            reason=reason,
            assigned_count=len(assignment),
            domain_size=self.get_total_domain_size(),
        ))

    def get_total_domain_size(self) -> int:
        return sum(len(v.domain) for v in self.variables)

    def get_statistics(self) -> Dict[str, int]:
        return {
            "variables": len(self.variables),
            "constraints": len(self.constraints),
            "backtrack_count": self.backtrack_count,
            "propagation_count": self.propagation_count,
            "iterations": self.iterations,
            "trace_steps": len(self._steps),
            "total_domain_size": self.get_total_domain_size(),
        }

    def get_variables(self) -> List[CSPVariable]:
        """Get the list of variables"""
        return self.variables
