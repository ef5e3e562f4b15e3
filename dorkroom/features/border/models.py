from dataclasses import dataclass, asdict, fields
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from dorkroom.kernel.caching.logic import BoundedCache
from dorkroom.kernel.system.config import CALCULATION_CONSTANTS
from dorkroom.kernel.system.validation import validate_bool, validate_float


class BorderPolicy(Enum):
    """
    Whether offsets may eat into the minimum border.
    STRICT keeps the minimum border on every edge; IGNORE only keeps the print on the paper.
    """

    STRICT = "strict"
    IGNORE = "ignore"


@dataclass(frozen=True)
class EaselSize:
    width: float
    height: float


@dataclass(frozen=True)
class EaselFit:
    """
    Result of matching a paper against the easel catalogue.
    ``effective_slot`` is the easel opening in the orientation actually used.
    """

    easel_size: EaselSize
    effective_slot: EaselSize
    is_non_standard_paper_size: bool


@dataclass(frozen=True)
class PrintSize:
    print_w: float
    print_h: float


@dataclass(frozen=True)
class OffsetClamp:
    half_w: float
    half_h: float
    h: float
    v: float
    warning: Optional[str] = None


@dataclass(frozen=True)
class BorderSet:
    left: float
    right: float
    top: float
    bottom: float


@dataclass(frozen=True)
class BladeReadings:
    left: float
    right: float
    top: float
    bottom: float

    def values(self) -> Tuple[float, float, float, float]:
        return (self.left, self.right, self.top, self.bottom)


class EaselFitCache(BoundedCache[EaselFit]):
    """Memo for easel lookups, keyed by rounded paper size and orientation."""

    def __init__(self, max_size: int = CALCULATION_CONSTANTS.cache.max_memo_size) -> None:
        super().__init__(max_size)


@dataclass(frozen=True)
class CatalogEntry:
    label: str
    value: str
    width: float
    height: float


# Easel openings, long side first
EASEL_SIZES: List[CatalogEntry] = [
    CatalogEntry("5x7", "7x5", 7, 5),
    CatalogEntry("8x10", "10x8", 10, 8),
    CatalogEntry("11x14", "14x11", 14, 11),
    CatalogEntry("16x20", "20x16", 20, 16),
    CatalogEntry("20x24", "24x20", 24, 20),
]

PAPER_SIZES: List[CatalogEntry] = [
    CatalogEntry("5x7", "5x7", 5, 7),
    CatalogEntry("3⅞x5⅞ (postcard)", "3.875x5.875", 3.875, 5.875),
    CatalogEntry("8x10", "8x10", 8, 10),
    CatalogEntry("11x14", "11x14", 11, 14),
    CatalogEntry("16x20", "16x20", 16, 20),
    CatalogEntry("20x24", "20x24", 20, 24),
    CatalogEntry("Custom Paper Size", "custom", 0, 0),
]

# Width/height of 0 marks entries resolved at calculation time
ASPECT_RATIOS: List[CatalogEntry] = [
    CatalogEntry("35mm standard frame, 6x9 (3:2)", "3:2", 3, 2),
    CatalogEntry("Even borders (match paper)", "even-borders", 0, 0),
    CatalogEntry("XPan Pano (65:24)", "65:24", 65, 24),
    CatalogEntry("6x4.5/6x8/35mm Half Frame (4:3)", "4:3", 4, 3),
    CatalogEntry("6x6/Square (1:1)", "1:1", 1, 1),
    CatalogEntry("6x7", "7:6", 7, 6),
    CatalogEntry("4x5", "5:4", 5, 4),
    CatalogEntry("5x7", "7:5", 7, 5),
    CatalogEntry("HDTV (16:9)", "16:9", 16, 9),
    CatalogEntry("Academy Ratio (1.37:1)", "1.37:1", 1.37, 1),
    CatalogEntry("Widescreen (1.85:1)", "1.85:1", 1.85, 1),
    CatalogEntry("Univisium (2:1)", "2:1", 2, 1),
    CatalogEntry("CinemaScope (2.39:1)", "2.39:1", 2.39, 1),
    CatalogEntry("Ultra Panavision (2.76:1)", "2.76:1", 2.76, 1),
    CatalogEntry("Custom Ratio", "custom", 0, 0),
]

PAPER_SIZE_MAP: Dict[str, CatalogEntry] = {p.value: p for p in PAPER_SIZES}
ASPECT_RATIO_MAP: Dict[str, CatalogEntry] = {r.value: r for r in ASPECT_RATIOS}
EASEL_SIZE_MAP: Dict[str, CatalogEntry] = {e.value: e for e in EASEL_SIZES}

MAX_EASEL_DIMENSION: float = max(max(e.width, e.height) for e in EASEL_SIZES)


@dataclass(frozen=True)
class BorderSettings:
    """
    Everything a user can dial into the border calculator. Dimensions are inches.
    """

    aspect_ratio: str = "3:2"
    paper_size: str = "8x10"
    custom_aspect_width: float = 0.0
    custom_aspect_height: float = 0.0
    custom_paper_width: float = 0.0
    custom_paper_height: float = 0.0
    min_border: float = 0.5
    enable_offset: bool = False
    policy: BorderPolicy = BorderPolicy.STRICT
    horizontal_offset: float = 0.0
    vertical_offset: float = 0.0
    show_blades: bool = False
    show_blade_readings: bool = False
    is_landscape: bool = True
    is_ratio_flipped: bool = False
    last_valid_min_border: float = 0.5

    def to_dict(self) -> Dict[str, Any]:
        res = asdict(self)
        res["policy"] = self.policy.value
        return res

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BorderSettings":
        """
        From JSON. Unknown keys and None values are ignored. Numbers and flags
        are coerced, falling back to the field default when unparsable.
        """
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            val = data.get(f.name)
            if val is None:
                continue
            if isinstance(f.default, BorderPolicy):
                kwargs[f.name] = val if isinstance(val, BorderPolicy) else BorderPolicy(val)
            elif isinstance(f.default, bool):
                kwargs[f.name] = validate_bool(val, f.default)
            elif isinstance(f.default, float):
                kwargs[f.name] = validate_float(val, f.default)
            else:
                kwargs[f.name] = str(val)
        # Older preset files store the policy as a flag
        if data.get("ignore_min_border") is not None and "policy" not in kwargs:
            kwargs["policy"] = (
                BorderPolicy.IGNORE if validate_bool(data["ignore_min_border"]) else BorderPolicy.STRICT
            )
        return cls(**kwargs)


@dataclass(frozen=True)
class BorderPreset:
    id: str
    name: str
    settings: BorderSettings


DEFAULT_BORDER_PRESETS: List[BorderPreset] = [
    BorderPreset(
        id="default-8x10",
        name="35mm on 8x10, 6x9in",
        settings=BorderSettings(
            aspect_ratio="3:2",
            paper_size="8x10",
            min_border=0.5,
            is_landscape=True,
        ),
    ),
]


@dataclass(frozen=True)
class BorderCalculation:
    """
    Complete result of one border-calculator evaluation.
    Percentages are relative to the oriented paper.
    """

    left_border: float
    right_border: float
    top_border: float
    bottom_border: float

    print_width: float
    print_height: float
    paper_width: float
    paper_height: float

    print_width_percent: float
    print_height_percent: float
    left_border_percent: float
    right_border_percent: float
    top_border_percent: float
    bottom_border_percent: float

    left_blade_reading: float
    right_blade_reading: float
    top_blade_reading: float
    bottom_blade_reading: float
    blade_thickness: int

    is_non_standard_paper_size: bool
    easel_size: EaselSize
    easel_size_label: str

    offset_warning: Optional[str]
    blade_warning: Optional[str]
    min_border_warning: Optional[str]
    paper_size_warning: Optional[str]
    last_valid_min_border: float
    clamped_horizontal_offset: float
    clamped_vertical_offset: float

    @property
    def warnings(self) -> List[str]:
        return [
            w
            for w in (
                self.paper_size_warning,
                self.min_border_warning,
                self.offset_warning,
                self.blade_warning,
            )
            if w
        ]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
