"""
Timeout schedule generation.
"""

import math


def _round_half_up(value: float) -> float:
    if math.isinf(value):
        return value
    return math.floor(value + 0.5)


def _grow(base: float, factor: float, exponent: int) -> float:
    try:
        return base * float(factor) ** exponent
    except OverflowError:
        return math.inf


def generate_timeouts(
    retries: int = 5,
    min_timeout: float = 10,
    max_timeout: float = math.inf,
    factor: float = 6,
) -> list[float]:
    """
    Generate retry delays in milliseconds, one per retry.

    Args:
        retries: Number of delays to generate (default: 5)
        min_timeout: First delay; values below 1 are treated as 1 (default: 10)
        max_timeout: Cap applied to every delay (default: unbounded)
        factor: Exponential growth factor (default: 6)

    Returns:
        Non-decreasing delays, ``len(result) == retries``
    """
    base = max(min_timeout, 1)
    return [
        min(_round_half_up(_grow(base, factor, i)), max_timeout)
        for i in range(retries)
    ]
