import os
import dotenv
dotenv.load_dotenv()


def _optional_int(name):
    value = os.environ.get(name)
    if value is None or value.strip() == '':
        return None
    return int(value)


# Solver limits
MAX_TIME_SECONDS = float(os.environ.get('TIMETABLE_MAX_TIME_SECONDS', 60))
MAX_BACKTRACKS = int(os.environ.get('TIMETABLE_MAX_BACKTRACKS', 5000))
MAX_ITERATIONS = int(os.environ.get('TIMETABLE_MAX_ITERATIONS', 50000))

# Fixes the random heuristics so runs can be reproduced
RANDOM_SEED = _optional_int('TIMETABLE_RANDOM_SEED')

LOG_LEVEL = os.environ.get('TIMETABLE_LOG_LEVEL', 'INFO').upper()
