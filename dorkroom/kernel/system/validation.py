import math
from typing import Any


def validate_float(val: Any, default: float = 0.0) -> float:
    """Ensures a value is a finite float, providing a default if None or unparsable."""
    if val is None:
        return default
    try:
        res = float(val)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(res):
        return default
    return res


def validate_int(val: Any, default: int = 0) -> int:
    """Ensures a value is a whole number, providing a default if None or unparsable."""
    res = validate_float(val, default=math.nan)
    if math.isnan(res) or res != int(res):
        return default
    return int(res)


def validate_bool(val: Any, default: bool = False) -> bool:
    """Ensures a value is a bool. Accepts the usual JSON/CLI spellings for strings."""
    if val is None:
        return default
    if isinstance(val, str):
        lowered = val.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off", ""):
            return False
        return default
    return bool(val)


def validate_positive_float(val: Any) -> float | None:
    """
    Parses a strictly positive number. Returns None for anything else,
    so live-edited fields can keep their last valid value.
    """
    res = validate_float(val, default=math.nan)
    if math.isnan(res) or res <= 0:
        return None
    return res
