import math
from typing import Optional
from dorkroom.features.lens.models import SENSOR_FORMAT_MAP, LensCalculation, SensorFormat
from dorkroom.kernel.precision import round_half_up, round_to_standard_precision
from dorkroom.kernel.system.logging import get_logger

logger = get_logger(__name__)

# Within this of a whole millimetre the decimals are dropped
WHOLE_MM_TOLERANCE = 0.05


def crop_factor_ratio(source: SensorFormat, target: SensorFormat) -> float:
    return source.crop_factor / target.crop_factor


def calculate_equivalent_focal_length(
    focal_length: float, source: SensorFormat, target: SensorFormat
) -> float:
    """
    Focal length on the target format giving the same field of view as
    focal_length on the source format. 50mm on APS-C ~ 77mm on full frame.
    """
    return focal_length * crop_factor_ratio(source, target)


def calculate_field_of_view(focal_length: float, fmt: SensorFormat) -> float:
    """Diagonal angle of view in degrees."""
    return math.degrees(2 * math.atan(fmt.diagonal / (2 * focal_length)))


def format_focal_length(focal_length: float) -> str:
    rounded = round_to_standard_precision(focal_length)
    whole = round_half_up(rounded)
    if abs(rounded - whole) < WHOLE_MM_TOLERANCE:
        return f"{whole}mm"
    return f"{rounded:.1f}mm"


def calculate_lens(
    focal_length: float, source_id: str, target_id: str
) -> Optional[LensCalculation]:
    if not math.isfinite(focal_length) or focal_length <= 0:
        return None

    source = SENSOR_FORMAT_MAP.get(source_id)
    target = SENSOR_FORMAT_MAP.get(target_id)
    if source is None or target is None:
        logger.warning(f"Unknown sensor format: {source_id if source is None else target_id}")
        return None

    return LensCalculation(
        source_focal_length=focal_length,
        equivalent_focal_length=round_to_standard_precision(
            calculate_equivalent_focal_length(focal_length, source, target)
        ),
        source_format=source,
        target_format=target,
        crop_factor_ratio=round_to_standard_precision(crop_factor_ratio(source, target)),
        field_of_view=round_to_standard_precision(calculate_field_of_view(focal_length, source)),
    )
