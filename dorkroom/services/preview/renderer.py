import math
import os
from typing import Tuple
import numpy as np
from PIL import Image
from dorkroom.features.border.models import BorderCalculation
from dorkroom.kernel.precision import round_half_up
from dorkroom.kernel.system.config import APP_CONFIG
from dorkroom.kernel.system.logging import get_logger

logger = get_logger(__name__)

BACKGROUND_RGB = (14, 17, 23)
PAPER_RGB = (245, 245, 240)
PRINT_RGB = (120, 120, 120)
BLADE_RGB = (40, 40, 40)


def _to_px(inches: float, ppi: int) -> int:
    if not math.isfinite(inches):
        return 0
    return round_half_up(inches * ppi)


def _fill(img: np.ndarray, top: int, left: int, bottom: int, right: int, rgb: Tuple[int, int, int]) -> None:
    h, w = img.shape[:2]
    top, bottom = max(0, top), min(h, bottom)
    left, right = max(0, left), min(w, right)
    if bottom > top and right > left:
        img[top:bottom, left:right] = rgb


def render_layout_preview(
    calc: BorderCalculation,
    pixels_per_inch: int = APP_CONFIG.default_preview_ppi,
    show_blades: bool = True,
) -> np.ndarray:
    """
    Rasterises a border layout to an RGB uint8 array of shape (H, W, 3).

    The paper sits on a dark background with a margin of one blade
    thickness so the outer edge of each blade stays visible. The print
    area is placed at (left_border, top_border). Blades are bars of
    blade_thickness pixels lying on the border just outside each print edge.
    """
    if pixels_per_inch <= 0:
        raise ValueError(f"pixels_per_inch must be positive, got {pixels_per_inch}")

    margin = max(int(calc.blade_thickness), 0)
    paper_w = max(_to_px(calc.paper_width, pixels_per_inch), 0)
    paper_h = max(_to_px(calc.paper_height, pixels_per_inch), 0)

    img = np.empty((paper_h + 2 * margin, paper_w + 2 * margin, 3), dtype=np.uint8)
    img[:] = BACKGROUND_RGB
    _fill(img, margin, margin, margin + paper_h, margin + paper_w, PAPER_RGB)

    print_w = _to_px(calc.print_width, pixels_per_inch)
    print_h = _to_px(calc.print_height, pixels_per_inch)
    if print_w <= 0 or print_h <= 0 or paper_w == 0 or paper_h == 0:
        logger.debug("Empty print area, rendering bare paper")
        return img

    x0 = margin + _to_px(calc.left_border, pixels_per_inch)
    y0 = margin + _to_px(calc.top_border, pixels_per_inch)
    x1 = x0 + print_w
    y1 = y0 + print_h
    _fill(img, y0, x0, y1, x1, PRINT_RGB)

    if show_blades and margin > 0:
        _fill(img, y0 - margin, x0 - margin, y1 + margin, x0, BLADE_RGB)
        _fill(img, y0 - margin, x1, y1 + margin, x1 + margin, BLADE_RGB)
        _fill(img, y0 - margin, x0 - margin, y0, x1 + margin, BLADE_RGB)
        _fill(img, y1, x0 - margin, y1 + margin, x1 + margin, BLADE_RGB)

    return img


def save_preview(img: np.ndarray, path: str) -> None:
    """
    Writes the preview with Pillow; the format follows the file extension.
    """
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    Image.fromarray(img).save(path)
    logger.info(f"Preview written to {path}")
