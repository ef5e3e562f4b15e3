import math
from typing import List, Sequence
from dorkroom.features.camera.models import (
    DEFAULT_APERTURE,
    DEFAULT_ISO,
    DEFAULT_SHUTTER_SPEED,
    EV_PRESETS,
    STANDARD_APERTURES,
    STANDARD_ISOS,
    STANDARD_SHUTTER_SPEEDS,
    EquivalentExposure,
    ExposureComparison,
    ExposureValueResult,
    StandardValue,
)
from dorkroom.kernel.precision import format_for_display, round_to_precision
from dorkroom.kernel.system.logging import get_logger

logger = get_logger(__name__)

# Practical shutter range of camera bodies
MIN_SHUTTER_SPEED = 1 / 8000
MAX_SHUTTER_SPEED = 30.0

# In stops. Half of a 1/3-stop click: snaps to standard values without matching neighbours.
STANDARD_VALUE_TOLERANCE = 0.17
EXACT_MATCH_TOLERANCE = 0.01

# Multiplicative margin around the shutter range for the equivalents table
SHUTTER_RANGE_TOLERANCE = 0.3


def calculate_ev(aperture: float, shutter_speed: float, iso: float) -> float:
    """
    EV at ISO 100: log2(N^2 * 100 / (t * S)). NaN for non-positive input.
    """
    if aperture <= 0 or shutter_speed <= 0 or iso <= 0:
        return math.nan
    return math.log2(aperture * aperture * 100 / (shutter_speed * iso))


def solve_for_shutter_speed(ev: float, aperture: float, iso: float) -> float:
    if aperture <= 0 or iso <= 0:
        return math.nan
    return aperture * aperture * 100 / (iso * 2**ev)


def solve_for_aperture(ev: float, shutter_speed: float, iso: float) -> float:
    if shutter_speed <= 0 or iso <= 0:
        return math.nan
    n_squared = shutter_speed * iso * 2**ev / 100
    if n_squared <= 0:
        return math.nan
    return math.sqrt(n_squared)


def solve_for_iso(ev: float, aperture: float, shutter_speed: float) -> float:
    if aperture <= 0 or shutter_speed <= 0:
        return math.nan
    return aperture * aperture * 100 / (shutter_speed * 2**ev)


def _stops_between(a: float, b: float) -> float:
    return abs(math.log2(a / b))


def find_nearest_standard(target: float, standards: Sequence[StandardValue]) -> StandardValue:
    """Nearest standard value measured in stops, not linear distance."""
    return min(standards, key=lambda s: _stops_between(target, s.value))


def get_ev_description(ev: float) -> str:
    rounded = math.floor(ev + 0.5)
    for preset in EV_PRESETS:
        if preset.ev == rounded:
            return preset.description
    if rounded > 16:
        return "Extremely bright"
    if rounded < -2:
        return "Very dark"
    return ""


def calculate_exposure_value(aperture: float, shutter_speed: float, iso: float) -> ExposureValueResult:
    if aperture <= 0 or shutter_speed <= 0 or iso <= 0:
        return ExposureValueResult(ev=0.0, description="", is_valid=False)

    ev = calculate_ev(aperture, shutter_speed, iso)
    return ExposureValueResult(
        ev=round_to_precision(ev, 1),
        description=get_ev_description(ev),
        is_valid=True,
    )


def format_shutter_speed(seconds: float) -> str:
    """
    1/125 for fractions, 2" for whole seconds and longer.
    """
    if seconds <= 0:
        return "—"
    if seconds >= 1:
        return f'{format_for_display(round_to_precision(seconds, 1))}"'
    return f"1/{format_for_display(round_to_precision(1 / seconds, 0))}"


def format_aperture(f_number: float) -> str:
    if f_number <= 0:
        return "—"
    return f"f/{format_for_display(round_to_precision(f_number, 1))}"


def _is_near_standard_shutter_speed(seconds: float) -> bool:
    return any(
        _stops_between(seconds, s.value) < STANDARD_VALUE_TOLERANCE
        for s in STANDARD_SHUTTER_SPEEDS
    )


def get_equivalent_exposures(
    ev: float,
    iso: float,
    current_aperture: float,
    current_shutter_speed: float,
) -> List[EquivalentExposure]:
    """
    For each standard aperture, the shutter speed that keeps the same EV.
    Pairs outside the practical shutter range (with a 30% margin) are dropped.
    """
    if iso <= 0:
        return []

    low = MIN_SHUTTER_SPEED * (1 - SHUTTER_RANGE_TOLERANCE)
    high = MAX_SHUTTER_SPEED * (1 + SHUTTER_RANGE_TOLERANCE)
    can_compare = current_aperture > 0 and current_shutter_speed > 0

    equivalents = []
    for entry in STANDARD_APERTURES:
        shutter = solve_for_shutter_speed(ev, entry.value, iso)
        if shutter < low or shutter > high:
            continue

        is_current = (
            can_compare
            and _stops_between(entry.value, current_aperture) < STANDARD_VALUE_TOLERANCE
            and _stops_between(shutter, current_shutter_speed) < STANDARD_VALUE_TOLERANCE
        )
        equivalents.append(
            EquivalentExposure(
                aperture=entry.value,
                shutter_speed=shutter,
                aperture_label=entry.label,
                shutter_speed_label=format_shutter_speed(shutter),
                is_standard_shutter_speed=_is_near_standard_shutter_speed(shutter),
                is_current_setting=is_current,
            )
        )
    return equivalents


def compare_exposures(
    aperture_a: float,
    shutter_speed_a: float,
    iso_a: float,
    aperture_b: float,
    shutter_speed_b: float,
    iso_b: float,
) -> ExposureComparison:
    valid_a = aperture_a > 0 and shutter_speed_a > 0 and iso_a > 0
    valid_b = aperture_b > 0 and shutter_speed_b > 0 and iso_b > 0
    if not valid_a or not valid_b:
        return ExposureComparison(0.0, 0.0, 0.0, "", "", False)

    ev_a = calculate_ev(aperture_a, shutter_speed_a, iso_a)
    ev_b = calculate_ev(aperture_b, shutter_speed_b, iso_b)
    return ExposureComparison(
        ev_a=round_to_precision(ev_a, 1),
        ev_b=round_to_precision(ev_b, 1),
        stops_difference=round_to_precision(ev_a - ev_b, 2),
        description_a=get_ev_description(ev_a),
        description_b=get_ev_description(ev_b),
        is_valid=True,
    )


def shutter_speed_to_key(seconds: float) -> str:
    if seconds <= 0:
        return format_shutter_speed(seconds)
    nearest = find_nearest_standard(seconds, STANDARD_SHUTTER_SPEEDS)
    if _stops_between(seconds, nearest.value) < EXACT_MATCH_TOLERANCE:
        return nearest.label
    return format_shutter_speed(seconds)


def key_to_shutter_speed(key: str) -> float:
    for s in STANDARD_SHUTTER_SPEEDS:
        if s.label == key:
            return s.value

    if key.startswith("1/"):
        try:
            denom = float(key[2:])
        except ValueError:
            denom = math.nan
        if math.isfinite(denom) and denom > 0:
            return 1 / denom

    try:
        parsed = float(key.replace('"', ""))
    except ValueError:
        parsed = math.nan
    if math.isfinite(parsed) and parsed > 0:
        return parsed

    logger.warning(f"Unrecognised shutter speed '{key}', using 1/125")
    return DEFAULT_SHUTTER_SPEED


def aperture_to_key(f_number: float) -> str:
    if f_number <= 0:
        return format_aperture(f_number)
    nearest = find_nearest_standard(f_number, STANDARD_APERTURES)
    if _stops_between(f_number, nearest.value) < EXACT_MATCH_TOLERANCE:
        return nearest.label
    return format_aperture(f_number)


def key_to_aperture(key: str) -> float:
    for a in STANDARD_APERTURES:
        if a.label == key:
            return a.value

    try:
        parsed = float(key.replace("f/", "", 1))
    except ValueError:
        parsed = math.nan
    if math.isfinite(parsed) and parsed > 0:
        return parsed

    logger.warning(f"Unrecognised aperture '{key}', using f/8")
    return DEFAULT_APERTURE


def iso_to_key(iso: float) -> str:
    return f"ISO {format_for_display(iso)}"


def key_to_iso(key: str) -> float:
    for s in STANDARD_ISOS:
        if s.label == key:
            return s.value

    try:
        parsed = float(key.replace("ISO ", "", 1))
    except ValueError:
        parsed = math.nan
    if math.isfinite(parsed) and parsed > 0:
        return parsed

    logger.warning(f"Unrecognised ISO '{key}', using ISO 100")
    return DEFAULT_ISO
