import math
import numpy as np
from typing import Optional, Set, Tuple
from dorkroom.features.border.models import (
    EASEL_SIZES,
    BladeReadings,
    BorderPolicy,
    BorderSet,
    EaselFit,
    EaselFitCache,
    EaselSize,
    OffsetClamp,
    PrintSize,
)
from dorkroom.kernel.precision import create_memo_key, round_half_up, round_to_standard_precision
from dorkroom.kernel.system.config import CALCULATION_CONSTANTS
from dorkroom.kernel.system.logging import get_logger
from dorkroom.kernel.system.performance import time_function

logger = get_logger(__name__)

_OPT = CALCULATION_CONSTANTS.border_optimization
_PAPER = CALCULATION_CONSTANTS.paper

# Single tolerance for every geometry comparison
EPSILON = _OPT.epsilon

OFFSET_WARNING_PAPER = "Offset adjusted to keep print on paper."
OFFSET_WARNING_MIN_BORDER = "Offset adjusted to honour min-border."

_SORTED_EASELS = sorted(EASEL_SIZES, key=lambda e: e.width * e.height)

_EXACT_MATCHES: Set[Tuple[float, float]] = {
    pair for e in EASEL_SIZES for pair in ((e.width, e.height), (e.height, e.width))
}


def _compute_fit(paper_w: float, paper_h: float, landscape: bool) -> EaselFit:
    oriented = EaselSize(paper_h, paper_w) if landscape else EaselSize(paper_w, paper_h)

    if (paper_w, paper_h) in _EXACT_MATCHES:
        for easel in EASEL_SIZES:
            if (easel.width, easel.height) in (
                (oriented.width, oriented.height),
                (oriented.height, oriented.width),
            ):
                size = EaselSize(easel.width, easel.height)
                return EaselFit(size, size, False)

    best_easel = None
    best_slot = None
    min_waste = float("inf")

    for easel in _SORTED_EASELS:
        fits = easel.width >= oriented.width and easel.height >= oriented.height
        fits_rotated = easel.height >= oriented.width and easel.width >= oriented.height
        if not fits and not fits_rotated:
            continue

        waste = easel.width * easel.height - oriented.width * oriented.height
        if waste < min_waste:
            min_waste = waste
            best_easel = EaselSize(easel.width, easel.height)
            best_slot = (
                EaselSize(easel.width, easel.height)
                if fits
                else EaselSize(easel.height, easel.width)
            )
            if waste == 0:
                break

    if best_easel is None or best_slot is None:
        # Larger than every easel: the paper is its own "easel"
        return EaselFit(oriented, oriented, True)

    return EaselFit(best_easel, best_slot, True)


def find_centering_offsets(
    paper_w: float,
    paper_h: float,
    landscape: bool,
    cache: Optional[EaselFitCache] = None,
) -> EaselFit:
    """
    Finds the smallest catalogued easel that holds the paper.

    Exact catalogue sizes come back as-is and flagged standard. Anything else
    gets the least-waste easel that holds it in either orientation, or the
    paper itself when nothing is big enough, flagged non-standard.
    When a cache is given, identical rounded inputs of the same exactness
    return the identical object.
    """
    if cache is None:
        return _compute_fit(paper_w, paper_h, landscape)

    # Exact catalogue sizes resolve differently from near misses that round to the same key
    key = create_memo_key(paper_w, paper_h, landscape, (paper_w, paper_h) in _EXACT_MATCHES)
    cached = cache.get(key)
    if cached is None:
        cached = _compute_fit(paper_w, paper_h, landscape)
        cache.put(key, cached)
    return cached


def calculate_blade_thickness(paper_w: float, paper_h: float) -> int:
    """
    Preview blade thickness, thicker on small paper so blades stay visible when scaled up.
    """
    if not (paper_w > 0 and paper_h > 0):
        return _PAPER.blade_thickness

    area = paper_w * paper_h
    scale = min(_PAPER.base_paper_area / max(area, EPSILON), _PAPER.max_scale_factor)
    return int(round_half_up(_PAPER.blade_thickness * scale))


def compute_print_size(
    paper_w: float,
    paper_h: float,
    ratio_w: float,
    ratio_h: float,
    min_border: float,
) -> PrintSize:
    """
    Largest print of ratio ``ratio_w:ratio_h`` inside the paper less ``min_border`` per edge.
    Returns a zero print for any degenerate input.
    """
    if ratio_h <= 0 or paper_w <= 0 or paper_h <= 0 or min_border < 0:
        return PrintSize(0.0, 0.0)

    available_w = paper_w - 2 * min_border
    available_h = paper_h - 2 * min_border
    if available_w <= 0 or available_h <= 0:
        return PrintSize(0.0, 0.0)

    target_ratio = ratio_w / ratio_h
    # Both branches agree when the ratios are equal, so no tolerance is needed here
    if available_w / available_h > target_ratio:
        return PrintSize(available_h * target_ratio, available_h)
    return PrintSize(available_w, available_w / target_ratio)


def clamp_offsets(
    paper_w: float,
    paper_h: float,
    print_w: float,
    print_h: float,
    min_border: float,
    horizontal_offset: float,
    vertical_offset: float,
    policy: BorderPolicy = BorderPolicy.STRICT,
) -> OffsetClamp:
    half_w = (paper_w - print_w) / 2
    half_h = (paper_h - print_h) / 2

    if policy is BorderPolicy.IGNORE:
        max_h, max_v = half_w, half_h
    else:
        max_h = min(half_w - min_border, half_w)
        max_v = min(half_h - min_border, half_h)

    h = max(-max_h, min(max_h, horizontal_offset))
    v = max(-max_v, min(max_v, vertical_offset))

    warning = None
    if abs(h - horizontal_offset) > EPSILON or abs(v - vertical_offset) > EPSILON:
        warning = (
            OFFSET_WARNING_PAPER if policy is BorderPolicy.IGNORE else OFFSET_WARNING_MIN_BORDER
        )
        logger.debug(
            f"Offsets ({horizontal_offset}, {vertical_offset}) clamped to ({h}, {v}) [{policy.value}]"
        )

    return OffsetClamp(half_w=half_w, half_h=half_h, h=h, v=v, warning=warning)


def borders_from_gaps(half_w: float, half_h: float, offset_h: float, offset_v: float) -> BorderSet:
    # No validation: callers pass offsets already clamped
    return BorderSet(
        left=half_w - offset_h,
        right=half_w + offset_h,
        top=half_h + offset_v,
        bottom=half_h - offset_v,
    )


def blade_readings(print_w: float, print_h: float, shift_x: float, shift_y: float) -> BladeReadings:
    return BladeReadings(
        left=print_w - 2 * shift_x,
        right=print_w + 2 * shift_x,
        top=print_h - 2 * shift_y,
        bottom=print_h + 2 * shift_y,
    )


def validate_print_fits(
    paper_w: float,
    paper_h: float,
    print_w: float,
    print_h: float,
    offset_h: float,
    offset_v: float,
) -> bool:
    """True when every border produced by the offsets is non-negative."""
    borders = borders_from_gaps((paper_w - print_w) / 2, (paper_h - print_h) / 2, offset_h, offset_v)
    return all(b >= -EPSILON for b in (borders.left, borders.right, borders.top, borders.bottom))


def _snap_scores(paper_w: float, paper_h: float, ratio: float, candidates: np.ndarray) -> np.ndarray:
    """
    Summed distance to the nearest snap increment over the four borders
    for every candidate minimum border. Infeasible candidates score +inf.
    """
    available_w = paper_w - 2 * candidates
    available_h = paper_h - 2 * candidates
    feasible = (available_w > 0) & (available_h > 0)

    safe_h = np.where(feasible, available_h, 1.0)
    width_limited = available_w / safe_h <= ratio
    with np.errstate(divide="ignore", invalid="ignore"):
        print_w = np.where(width_limited, available_w, available_h * ratio)
        print_h = np.where(width_limited, available_w / ratio, available_h)

    border_w = (paper_w - print_w) / 2
    border_h = (paper_h - print_h) / 2

    snap = _OPT.snap
    rem_w = np.mod(border_w, snap)
    rem_h = np.mod(border_h, snap)
    score = 2 * np.minimum(rem_w, snap - rem_w) + 2 * np.minimum(rem_h, snap - rem_h)
    return np.where(feasible, score, np.inf)


@time_function
def calculate_optimal_min_border(
    paper_w: float,
    paper_h: float,
    ratio_w: float,
    ratio_h: float,
    start: float,
) -> float:
    """
    Searches a window of +/- SEARCH_SPAN around ``start`` for the minimum border
    whose resulting borders sit closest to quarter-inch marks.

    The earliest candidate wins ties; the scan stops at the first near-perfect snap.
    """
    if ratio_h <= 0 or not math.isfinite(start):
        return start

    ratio = ratio_w / ratio_h
    lower = max(_OPT.min_candidate, start - _OPT.search_span)
    upper = start + _OPT.search_span
    step = max(_OPT.step, (upper - lower) / _OPT.adaptive_step_divisor)

    count = int(np.floor((upper - lower) / step + EPSILON)) + 1
    candidates = lower + step * np.arange(count, dtype=np.float64)
    scores = _snap_scores(paper_w, paper_h, ratio, candidates)

    best = start
    best_score = float("inf")
    for candidate, score in zip(candidates, scores):
        if score < best_score - EPSILON:
            best_score = float(score)
            best = float(candidate)
            if best_score < EPSILON:
                break

    logger.debug(f"Optimal min border for {paper_w}x{paper_h} @ {ratio:.4f}: {best} (score {best_score})")
    return round_to_standard_precision(best)
