import math
from typing import Optional
from dorkroom.kernel.precision import format_for_display, round_half_up, round_to_standard_precision
from dorkroom.kernel.system.validation import validate_positive_float

# How close a value must be to a third of a stop to snap onto it
THIRD_STOP_TOLERANCE = 0.01


def calculate_new_exposure_time(original_time: float, stop_change: float) -> float:
    """
    Each stop doubles (or halves) the light: new = original * 2^stops.
    """
    return original_time * 2**stop_change


def round_stops_to_thirds(value: float) -> float:
    """
    Snaps to the nearest 1/3 stop when already within tolerance of it,
    otherwise returns the value untouched.
    """
    rounded = round_half_up(value * 3) / 3
    if abs(rounded - value) <= THIRD_STOP_TOLERANCE:
        return rounded
    return value


def format_exposure_time(seconds: float) -> str:
    """
    "15.5s" below a minute, "2m 5s" or "2m" above.
    """
    if seconds >= 60:
        minutes = math.floor(seconds / 60)
        remaining = seconds % 60
        if remaining > 0:
            return f"{minutes}m {format_for_display(round_to_standard_precision(remaining))}s"
        return f"{minutes}m"
    return f"{format_for_display(round_to_standard_precision(seconds))}s"


def parse_exposure_time(text: str) -> Optional[float]:
    if not text or not text.strip():
        return None
    return validate_positive_float(text.strip())


def calculate_percentage_increase(original_time: float, new_time: float) -> float:
    if original_time <= 0:
        return 0.0
    return (new_time - original_time) / original_time * 100
