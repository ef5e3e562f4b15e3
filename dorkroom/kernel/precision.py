import math
from dorkroom.kernel.system.config import CALCULATION_CONSTANTS

_PRECISION = CALCULATION_CONSTANTS.precision


def round_half_up(value: float) -> int:
    """
    Rounds to the nearest integer with .5 going toward +infinity.
    Python's round() uses banker's rounding, which would make 0.125 -> 0.12.
    """
    return math.floor(value + 0.5)


def round_to_precision(value: float, places: int = _PRECISION.decimal_places) -> float:
    """
    Rounds a number to a given number of decimal places.

    >>> round_to_precision(3.14159, 2)
    3.14
    >>> round_to_precision(2.5, 0)
    3.0
    """
    multiplier = 10**places
    return round_half_up(value * multiplier) / multiplier


def round_to_standard_precision(value: float) -> float:
    """Rounds using the application-wide rounding multiplier (two decimals)."""
    multiplier = _PRECISION.rounding_multiplier
    return round_half_up(value * multiplier) / multiplier


def create_memo_key(*values: float | bool | str) -> str:
    """
    Builds a cache key from rounded numbers, so functionally equivalent
    inputs (1.2345 and 1.2349) hit the same entry.
    """
    parts = []
    for val in values:
        if isinstance(val, bool):
            parts.append("true" if val else "false")
        elif isinstance(val, (int, float)):
            parts.append(str(round_half_up(val * _PRECISION.rounding_multiplier)))
        else:
            parts.append(str(val))
    return ":".join(parts)


def format_for_display(value: float) -> str:
    """
    Three decimals, trailing zeros dropped: 3.14159 -> "3.142", 2.5 -> "2.5", 1.00001 -> "1".
    """
    rounded = round_half_up(value * 1000) / 1000
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:.3f}".rstrip("0").rstrip(".")
