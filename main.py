"""
Main entry point for the timetable generator
"""
import argparse
import json
import logging
import sys

import pydantic

import config
from generator import AITimetableGenerator, ConfigurationError
from models.data_models import MultiSolutionResult, min_to_12_hour
from solver.csp_solver import SolverConfig

logger = logging.getLogger(__name__)


def print_result(generator: AITimetableGenerator, result: MultiSolutionResult):
    """Print the result"""
    if not result.success:
        print(f"\nNo solution found. {result.recommendations.reasoning}")
        return

    sessions = generator.problem.session_lookup
    slots = {ts.id: ts for ts in generator.problem.time_slots}

    for solution in result.solutions:
        quality = solution.quality
        print("\n" + "=" * 50)
        print(f"{solution.name} | overall {quality.overall_score:.1f} "
              f"(feasibility {quality.feasibility_score:.0f}, optimization {quality.optimization_score:.1f})")
        print("=" * 50)

        for entry in solution.schedule:
            session = sessions[entry.session_id]
            ts = slots[entry.time_slot_id]

            # Header line
            print(f"{session.course_code} | {session.course_name} | "
                  f"{session.session_type.capitalize()} {session.session_number} | Section {session.section}")
            print(f"    {ts.day} {min_to_12_hour(ts.start_min)} - {min_to_12_hour(ts.end_min)} "
                  f"| {session.teacher_name or session.teacher_id}")

        for warning in solution.issues.warnings:
            print(f"  ! {warning.message}")

    print(f"\n{result.recommendations.reasoning}")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate ranked timetables from a JSON request")
    parser.add_argument("request", help="path to the generation request (JSON)")
    parser.add_argument("--json", action="store_true", help="print the full result as JSON")
    parser.add_argument("--seed", type=int, default=config.RANDOM_SEED,
                        help="random seed for the search heuristics")
    parser.add_argument("--max-time", type=float, default=None,
                        help="per-solution time limit in seconds")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=config.LOG_LEVEL,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        with open(args.request, encoding="utf-8") as f:
            request = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Cannot read generation request %s: %s", args.request, e)
        return 2

    solver_config = SolverConfig.from_env(random_seed=args.seed)
    if args.max_time is not None:
        solver_config.limits.max_time_seconds = args.max_time

    generator = AITimetableGenerator(solver_config)
    try:
        result = generator.generate_timetables(request)
    except pydantic.ValidationError as e:
        logger.error("Malformed generation request: %s", e)
        return 2
    except ConfigurationError as e:
        logger.error("%s", e)
        return 2

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_result(generator, result)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
