import math

MAX_POINTS = 1000
SPEED_WEIGHT = 0.5
DEFAULT_TIME_LIMIT_MS = 75000


def score(multiplier: float, elapsed_ms: float, time_limit_ms: float = DEFAULT_TIME_LIMIT_MS) -> int:
    """Points for one answer.

    Correctness gates the award: ``multiplier`` scales the 1000 point base.
    Speed decays linearly from full credit at 0 ms to half credit at the time
    limit and stays at half credit for late answers. Rounds half up.
    """
    if multiplier <= 0:
        return 0
    if not time_limit_ms or time_limit_ms <= 0:
        time_limit_ms = DEFAULT_TIME_LIMIT_MS
    ratio = min(max(elapsed_ms / time_limit_ms, 0.0), 1.0)
    raw = MAX_POINTS * min(multiplier, 1.0) * (1.0 - ratio * SPEED_WEIGHT)
    return int(math.floor(raw + 0.5))
