import base64
import binascii
import re
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import quote, unquote
from dorkroom.features.border.models import (
    ASPECT_RATIOS,
    PAPER_SIZES,
    BorderPolicy,
    BorderSettings,
)
from dorkroom.kernel.precision import round_half_up
from dorkroom.kernel.system.logging import get_logger

logger = get_logger(__name__)

# Signed offsets are stored with this bias so the "-" separator stays unambiguous
OFFSET_BIAS = 10000

_BASE64_URL_RE = re.compile(r"^[A-Za-z0-9_-]+$")

_FLAG_BITS: Dict[str, int] = {
    "enable_offset": 1,
    "ignore_min_border": 2,
    "show_blades": 4,
    "is_landscape": 8,
    "is_ratio_flipped": 16,
    "show_blade_readings": 32,
}


@dataclass(frozen=True)
class SharedPreset:
    name: str
    settings: BorderSettings


def _index_of(options: List, value: str) -> int:
    for i, option in enumerate(options):
        if option.value == value:
            return i
    return -1


def _to_hundredths(value: float) -> int:
    return int(round_half_up(value * 100))


def boolean_bitmask(settings: BorderSettings) -> int:
    flags = {
        "enable_offset": settings.enable_offset,
        "ignore_min_border": settings.policy is BorderPolicy.IGNORE,
        "show_blades": settings.show_blades,
        "is_landscape": settings.is_landscape,
        "is_ratio_flipped": settings.is_ratio_flipped,
        "show_blade_readings": settings.show_blade_readings,
    }
    mask = 0
    for name, bit in _FLAG_BITS.items():
        if flags[name]:
            mask |= bit
    return mask


def flags_from_bitmask(mask: int) -> Dict[str, bool]:
    return {name: bool(mask & bit) for name, bit in _FLAG_BITS.items()}


def encode_preset(name: str, settings: BorderSettings) -> str:
    """
    Packs a preset into a short URL-safe token. Returns "" when the
    ratio or paper key is not in the catalogue.
    """
    ratio_index = _index_of(ASPECT_RATIOS, settings.aspect_ratio)
    paper_index = _index_of(PAPER_SIZES, settings.paper_size)
    if ratio_index == -1 or paper_index == -1:
        logger.warning(
            f"Cannot share preset '{name}': unknown ratio '{settings.aspect_ratio}' "
            f"or paper '{settings.paper_size}'"
        )
        return ""

    parts = [
        # "-" is the field separator; quote() never escapes it
        quote(name, safe="_.!~*'()").replace("-", "%2D"),
        ratio_index,
        paper_index,
        _to_hundredths(settings.min_border),
        _to_hundredths(settings.horizontal_offset) + OFFSET_BIAS,
        _to_hundredths(settings.vertical_offset) + OFFSET_BIAS,
        boolean_bitmask(settings),
    ]
    if settings.aspect_ratio == "custom":
        parts += [_to_hundredths(settings.custom_aspect_width), _to_hundredths(settings.custom_aspect_height)]
    if settings.paper_size == "custom":
        parts += [_to_hundredths(settings.custom_paper_width), _to_hundredths(settings.custom_paper_height)]

    raw = "-".join(str(p) for p in parts)
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def decode_preset(encoded: str) -> Optional[SharedPreset]:
    """
    Reverses encode_preset. Returns None for anything malformed.
    """
    try:
        padded = encoded + "=" * (-len(encoded) % 4)
        raw = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")

        name_part, *number_parts = raw.split("-")
        name = unquote(name_part)
        numbers = [int(p) for p in number_parts]

        ratio_index, paper_index, min_border, horizontal, vertical, mask = numbers[:6]
        extra = numbers[6:]

        if not 0 <= ratio_index < len(ASPECT_RATIOS):
            raise ValueError(f"Invalid aspect ratio index {ratio_index}")
        if not 0 <= paper_index < len(PAPER_SIZES):
            raise ValueError(f"Invalid paper size index {paper_index}")

        aspect_ratio = ASPECT_RATIOS[ratio_index].value
        paper_size = PAPER_SIZES[paper_index].value
        flags = flags_from_bitmask(mask)

        custom: Dict[str, float] = {}
        if aspect_ratio == "custom":
            custom["custom_aspect_width"] = extra.pop(0) / 100
            custom["custom_aspect_height"] = extra.pop(0) / 100
        if paper_size == "custom":
            custom["custom_paper_width"] = extra.pop(0) / 100
            custom["custom_paper_height"] = extra.pop(0) / 100

        settings = BorderSettings(
            aspect_ratio=aspect_ratio,
            paper_size=paper_size,
            min_border=min_border / 100,
            horizontal_offset=(horizontal - OFFSET_BIAS) / 100,
            vertical_offset=(vertical - OFFSET_BIAS) / 100,
            enable_offset=flags["enable_offset"],
            policy=BorderPolicy.IGNORE if flags["ignore_min_border"] else BorderPolicy.STRICT,
            show_blades=flags["show_blades"],
            show_blade_readings=flags["show_blade_readings"],
            is_landscape=flags["is_landscape"],
            is_ratio_flipped=flags["is_ratio_flipped"],
            last_valid_min_border=min_border / 100,
            **custom,
        )
        return SharedPreset(name=name, settings=settings)
    except (ValueError, IndexError, UnicodeError, binascii.Error) as e:
        logger.warning(f"Failed to decode preset: {e}")
        return None


def is_valid_encoded_preset(encoded: str) -> bool:
    if not encoded or not isinstance(encoded, str):
        return False
    if not _BASE64_URL_RE.match(encoded):
        return False
    return decode_preset(encoded) is not None
