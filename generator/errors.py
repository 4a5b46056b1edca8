"""
Errors raised before any search starts
"""
from typing import List


class TimetableGenerationError(Exception):
    pass


class ConfigurationError(TimetableGenerationError):
    """The request cannot be satisfied however the search is tuned"""


class InvalidGenerationInputError(ConfigurationError):
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Invalid generation input: " + "; ".join(self.errors))


class OverconstrainedProblemError(ConfigurationError):
    def __init__(self, required_slots: int, available_slots: int, start_time: str, end_time: str):
        self.required_slots = required_slots
        self.available_slots = available_slots
        self.start_time = start_time
        self.end_time = end_time
        super().__init__(
            f"Problem is overconstrained: Need {required_slots} slots but only "
            f"{available_slots} available. Please increase working hours "
            f"(current: {start_time}-{end_time}), add more working days, "
            f"or reduce classes per week."
        )
