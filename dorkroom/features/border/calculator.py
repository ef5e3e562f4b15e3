import math
from dataclasses import dataclass
from typing import Optional, Tuple
from dorkroom.features.border.logic import (
    blade_readings,
    borders_from_gaps,
    calculate_blade_thickness,
    clamp_offsets,
    compute_print_size,
    find_centering_offsets,
)
from dorkroom.features.border.models import (
    ASPECT_RATIO_MAP,
    EASEL_SIZE_MAP,
    MAX_EASEL_DIMENSION,
    PAPER_SIZE_MAP,
    BladeReadings,
    BorderCalculation,
    BorderSettings,
    EaselFit,
    EaselFitCache,
)
from dorkroom.kernel.precision import format_for_display
from dorkroom.kernel.system.logging import get_logger
from dorkroom.kernel.system.performance import time_function

logger = get_logger(__name__)

# Below this many inches most easel scales carry no markings
MIN_MARKED_BLADE_READING = 3.0

NEGATIVE_BLADE_WARNING = "Negative blade reading – use opposite side of scale."
UNMARKED_BLADE_WARNING = "Many easels have no markings below about 3 in."


@dataclass(frozen=True)
class PaperEntry:
    w: float
    h: float
    custom: bool


@dataclass(frozen=True)
class MinBorderData:
    min_border: float
    warning: Optional[str]
    last_valid: float


def resolve_paper(settings: BorderSettings) -> PaperEntry:
    if settings.paper_size == "custom":
        return PaperEntry(settings.custom_paper_width, settings.custom_paper_height, True)

    entry = PAPER_SIZE_MAP.get(settings.paper_size)
    if entry is None:
        logger.warning(f"Unknown paper size '{settings.paper_size}', falling back to 8x10")
        return PaperEntry(8.0, 10.0, False)
    return PaperEntry(entry.width, entry.height, False)


def paper_size_warning(paper: PaperEntry) -> Optional[str]:
    if not paper.custom:
        return None
    if paper.w > MAX_EASEL_DIMENSION or paper.h > MAX_EASEL_DIMENSION:
        return (
            f"Custom paper ({format_for_display(paper.w)}×{format_for_display(paper.h)}) "
            f'exceeds largest standard easel (20×24").'
        )
    return None


def resolve_ratio(settings: BorderSettings, paper: PaperEntry) -> Tuple[float, float]:
    if settings.aspect_ratio == "even-borders":
        return (paper.w if paper.w > 0 else 1.0, paper.h if paper.h > 0 else 1.0)

    if settings.aspect_ratio == "custom":
        return (settings.custom_aspect_width, settings.custom_aspect_height)

    entry = ASPECT_RATIO_MAP.get(settings.aspect_ratio)
    if entry is None:
        logger.warning(f"Unknown aspect ratio '{settings.aspect_ratio}', falling back to 3:2")
        return (3.0, 2.0)
    return (entry.width or 1.0, entry.height or 1.0)


def orient(
    settings: BorderSettings, paper: PaperEntry, ratio: Tuple[float, float]
) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """
    Applies landscape and ratio flipping. Returns ((paper_w, paper_h), (ratio_w, ratio_h)).
    """
    oriented_paper = (paper.h, paper.w) if settings.is_landscape else (paper.w, paper.h)

    if settings.aspect_ratio == "even-borders":
        oriented_ratio = oriented_paper
    elif settings.is_ratio_flipped:
        oriented_ratio = (ratio[1], ratio[0])
    else:
        oriented_ratio = ratio

    return oriented_paper, oriented_ratio


def validate_min_border(
    min_border: float, last_valid: float, paper_w: float, paper_h: float
) -> MinBorderData:
    """
    Rejects non-numeric and negative borders and borders that leave no room for a print,
    falling back to the last accepted value.
    """
    max_border = min(paper_w, paper_h) / 2

    if not math.isfinite(min_border):
        return MinBorderData(
            last_valid,
            f"Border must be a number; using {format_for_display(last_valid)}.",
            last_valid,
        )

    if min_border < 0:
        return MinBorderData(
            last_valid,
            f"Border cannot be negative; using {format_for_display(last_valid)}.",
            last_valid,
        )

    if min_border >= max_border and max_border > 0:
        return MinBorderData(
            last_valid,
            f"Minimum border too large; using {format_for_display(last_valid)}.",
            last_valid,
        )

    return MinBorderData(min_border, None, min_border)


def blade_warning(blades: BladeReadings) -> Optional[str]:
    messages = []
    values = blades.values()
    if any(v < 0 for v in values):
        messages.append(NEGATIVE_BLADE_WARNING)
    if any(abs(v) < MIN_MARKED_BLADE_READING and v != 0 for v in values):
        messages.append(UNMARKED_BLADE_WARNING)
    return "\n".join(messages) if messages else None


def easel_label(fit: EaselFit) -> str:
    key = f"{format_for_display(fit.easel_size.width)}x{format_for_display(fit.easel_size.height)}"
    entry = EASEL_SIZE_MAP.get(key)
    return entry.label if entry is not None else key


@time_function
def calculate_border_layout(
    settings: BorderSettings, cache: Optional[EaselFitCache] = None
) -> BorderCalculation:
    """
    Runs the full border-calculator pipeline for one set of inputs.

    Paper and ratio are resolved from the catalogues, oriented, the minimum
    border is validated, then print size, clamped offsets, borders, easel fit
    and blade readings are derived. Invalid inputs degrade to warnings and
    fallback values; nothing here raises for bad numbers.
    """
    paper = resolve_paper(settings)
    size_warning = paper_size_warning(paper)
    ratio = resolve_ratio(settings, paper)
    (paper_w, paper_h), (ratio_w, ratio_h) = orient(settings, paper, ratio)

    border_data = validate_min_border(
        settings.min_border, settings.last_valid_min_border, paper_w, paper_h
    )
    min_border = border_data.min_border

    print_size = compute_print_size(paper_w, paper_h, ratio_w, ratio_h, min_border)

    offsets = clamp_offsets(
        paper_w,
        paper_h,
        print_size.print_w,
        print_size.print_h,
        min_border,
        settings.horizontal_offset if settings.enable_offset else 0.0,
        settings.vertical_offset if settings.enable_offset else 0.0,
        settings.policy,
    )
    borders = borders_from_gaps(offsets.half_w, offsets.half_h, offsets.h, offsets.v)

    fit = find_centering_offsets(paper.w, paper.h, settings.is_landscape, cache)

    # Non-standard paper sits off-centre in its easel slot
    shift_x = (paper_w - fit.effective_slot.width) / 2 if fit.is_non_standard_paper_size else 0.0
    shift_y = (paper_h - fit.effective_slot.height) / 2 if fit.is_non_standard_paper_size else 0.0

    blades = blade_readings(
        print_size.print_w, print_size.print_h, shift_x + offsets.h, shift_y + offsets.v
    )

    inv_w = 100 / paper_w if paper_w else 0.0
    inv_h = 100 / paper_h if paper_h else 0.0

    return BorderCalculation(
        left_border=borders.left,
        right_border=borders.right,
        top_border=borders.top,
        bottom_border=borders.bottom,
        print_width=print_size.print_w,
        print_height=print_size.print_h,
        paper_width=paper_w,
        paper_height=paper_h,
        print_width_percent=print_size.print_w * inv_w,
        print_height_percent=print_size.print_h * inv_h,
        left_border_percent=borders.left * inv_w,
        right_border_percent=borders.right * inv_w,
        top_border_percent=borders.top * inv_h,
        bottom_border_percent=borders.bottom * inv_h,
        left_blade_reading=blades.left,
        right_blade_reading=blades.right,
        top_blade_reading=blades.top,
        bottom_blade_reading=blades.bottom,
        blade_thickness=calculate_blade_thickness(paper_w, paper_h),
        is_non_standard_paper_size=fit.is_non_standard_paper_size and not size_warning,
        easel_size=fit.easel_size,
        easel_size_label=easel_label(fit),
        offset_warning=offsets.warning,
        blade_warning=blade_warning(blades),
        min_border_warning=border_data.warning,
        paper_size_warning=size_warning,
        last_valid_min_border=border_data.last_valid,
        clamped_horizontal_offset=offsets.h,
        clamped_vertical_offset=offsets.v,
    )
