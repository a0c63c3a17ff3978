import math


def round_half_up(value: float) -> int:
    """Halves go up: 1996.5 -> 1997, 2.5 -> 3 (round() gives 1996 and 2)."""
    return math.floor(value + 0.5)
