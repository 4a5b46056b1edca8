"""
Time slot generation from the working-hours configuration
"""
import logging
from typing import List

from models.data_models import TimeSlot, minutes_to_time
from models.generation_input import TimeConfiguration

logger = logging.getLogger(__name__)


def slot_id(day: str, start_min: int) -> str:
    return f"{day[:3].upper()}_{minutes_to_time(start_min)}"


def generate_time_slots(time_config: TimeConfiguration) -> List[TimeSlot]:
    """Walk each working day in class-duration steps, skipping the lunch break.

    Slots come out day-major, time-minor. A trailing step that would run past
    the end of the day is dropped.
    """
    slots: List[TimeSlot] = []
    start = time_config.start_minutes
    end = time_config.end_minutes
    duration = time_config.class_duration
    lunch = time_config.lunch_interval

    for day in dict.fromkeys(time_config.working_days):
        current = start
        while current + duration <= end:
            slot_end = current + duration
            overlaps_lunch = lunch is not None and current < lunch[1] and slot_end > lunch[0]
            if not overlaps_lunch:
                slots.append(TimeSlot(
                    id=slot_id(day, current),
                    day=day,
                    start_time=minutes_to_time(current),
                    end_time=minutes_to_time(slot_end),
                    start_min=current,
                    end_min=slot_end,
                    duration_minutes=duration,
                    is_lunch_break=False,
                ))
            current += duration

    logger.info("Generated %d time slots", len(slots))
    return slots
