import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values.

    Python's round() uses banker's rounding (12.5 -> 12); intervals and
    interleave positions need 12.5 -> 13.
    """
    return int(math.floor(value + 0.5))
