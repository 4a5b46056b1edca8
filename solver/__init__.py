"""CSP solver package"""
from .csp_solver import (
    CSPSolver, SolverConfig, SolverHeuristics, SolverLimits, SolverOptimization, SolverResult
)

__all__ = [
    'CSPSolver', 'SolverConfig', 'SolverHeuristics', 'SolverLimits', 'SolverOptimization',
    'SolverResult'
]
