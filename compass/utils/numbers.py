"""Numeric helpers shared by the planners."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounding up.

    Python's ``round`` uses banker's rounding (``round(2.5) == 2``); cost and
    travel estimates round ``.5`` up instead.
    """
    return math.floor(value + 0.5)
