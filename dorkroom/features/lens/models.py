import math
from dataclasses import dataclass
from enum import StrEnum
from typing import Dict, List


class FormatCategory(StrEnum):
    DIGITAL = "digital"
    FILM_MEDIUM = "film-medium"


@dataclass(frozen=True)
class SensorFormat:
    """
    Capture format in millimetres. Crop factor is relative to the 36x24 diagonal.
    """

    id: str
    name: str
    short_name: str
    category: FormatCategory
    width: float
    height: float

    @property
    def diagonal(self) -> float:
        return math.hypot(self.width, self.height)

    @property
    def crop_factor(self) -> float:
        return FULL_FRAME_DIAGONAL / self.diagonal


@dataclass(frozen=True)
class FocalLengthPreset:
    label: str
    value: float
    description: str


@dataclass(frozen=True)
class LensCalculation:
    source_focal_length: float
    equivalent_focal_length: float
    source_format: SensorFormat
    target_format: SensorFormat
    crop_factor_ratio: float
    field_of_view: float


FULL_FRAME_DIAGONAL = math.hypot(36, 24)

SENSOR_FORMATS: List[SensorFormat] = [
    SensorFormat("full-frame", "Full Frame (35mm)", "Full Frame", FormatCategory.DIGITAL, 36, 24),
    SensorFormat("aps-c-canon", "APS-C (Canon)", "APS-C", FormatCategory.DIGITAL, 22.3, 14.9),
    SensorFormat("aps-c-nikon", "APS-C (Nikon/Sony)", "APS-C", FormatCategory.DIGITAL, 23.5, 15.6),
    SensorFormat("micro-four-thirds", "Micro Four Thirds", "MFT", FormatCategory.DIGITAL, 17.3, 13),
    SensorFormat(
        "medium-format-digital",
        "Medium Format Digital (Fuji/Hasselblad) (43.8×32.9mm)",
        "MF Digital (Fuji/Hasselblad)",
        FormatCategory.DIGITAL,
        43.8,
        32.9,
    ),
    SensorFormat(
        "medium-format-phaseone",
        "Medium Format Digital (Phase One) (53.4×40mm)",
        "MF Digital (Phase One)",
        FormatCategory.DIGITAL,
        53.4,
        40,
    ),
    # Medium format film, landscape
    SensorFormat("film-645", "6×4.5 (645)", "645", FormatCategory.FILM_MEDIUM, 56, 41.5),
    SensorFormat("film-6x6", "6×6 (Square)", "6×6", FormatCategory.FILM_MEDIUM, 56, 56),
    SensorFormat("film-6x7", "6×7", "6×7", FormatCategory.FILM_MEDIUM, 70, 56),
    SensorFormat("film-6x9", "6×9", "6×9", FormatCategory.FILM_MEDIUM, 84, 56),
]

SENSOR_FORMAT_MAP: Dict[str, SensorFormat] = {f.id: f for f in SENSOR_FORMATS}

FOCAL_LENGTH_PRESETS: List[FocalLengthPreset] = [
    FocalLengthPreset("24mm", 24, "Wide angle"),
    FocalLengthPreset("35mm", 35, "Wide/standard"),
    FocalLengthPreset("50mm", 50, "Standard"),
    FocalLengthPreset("85mm", 85, "Portrait"),
    FocalLengthPreset("100mm", 100, "Macro/Portrait"),
    FocalLengthPreset("135mm", 135, "Portrait"),
    FocalLengthPreset("200mm", 200, "Telephoto"),
]

DEFAULT_FOCAL_LENGTH = 50.0
DEFAULT_SOURCE_FORMAT = "full-frame"
DEFAULT_TARGET_FORMAT = "aps-c-nikon"
