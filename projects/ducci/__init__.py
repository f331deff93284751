from .circle import (
    MIN_SIZE, MAX_SIZE, VALUE_LIMIT, RANK_PREFIX, Circle,
    validate_size, from_values, create_random, advance, rank_key,
    trajectory, render,
)
from .ducci import (
    SizeResult, PeriodHeuristic,
    make_detector, run_detection, detect_size,
    sample_periods, check_agreement, period_sum, disagreements,
)
