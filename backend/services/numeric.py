"""Small numeric helpers shared by the geometry and color services."""
import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going towards +infinity.

    Matches browser `Math.round`, which the preview uses, rather than
    Python's banker's rounding.
    """
    return int(math.floor(value + 0.5))
