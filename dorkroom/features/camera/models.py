from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class StandardValue:
    value: float
    label: str


@dataclass(frozen=True)
class EVPreset:
    ev: int
    label: str
    description: str


@dataclass(frozen=True)
class ExposureValueResult:
    ev: float
    description: str
    is_valid: bool


@dataclass(frozen=True)
class EquivalentExposure:
    aperture: float
    shutter_speed: float
    aperture_label: str
    shutter_speed_label: str
    is_standard_shutter_speed: bool
    is_current_setting: bool


@dataclass(frozen=True)
class ExposureComparison:
    ev_a: float
    ev_b: float
    stops_difference: float
    description_a: str
    description_b: str
    is_valid: bool


STANDARD_APERTURES: List[StandardValue] = [
    StandardValue(v, f"f/{v:g}")
    for v in (1, 1.4, 2, 2.8, 4, 5.6, 8, 11, 16, 22, 32, 45, 64)
]

STANDARD_SHUTTER_SPEEDS: List[StandardValue] = [
    *(StandardValue(s, f'{s}"') for s in (30, 15, 8, 4, 2, 1)),
    *(StandardValue(1 / d, f"1/{d}") for d in (2, 4, 8, 15, 30, 60, 125, 250, 500, 1000, 2000, 4000, 8000)),
]

STANDARD_ISOS: List[StandardValue] = [
    StandardValue(iso, f"ISO {iso}")
    for iso in (25, 50, 100, 200, 400, 800, 1600, 3200, 6400, 12800)
]

EV_PRESETS: List[EVPreset] = [
    EVPreset(16, "Snow / Sand", "Bright sun on snow or sand"),
    EVPreset(15, "Sunny 16", "Bright sun, distinct shadows"),
    EVPreset(14, "Hazy Sun", "Hazy sunlight, soft shadows"),
    EVPreset(13, "Slight Overcast", "Barely visible shadows"),
    EVPreset(12, "Overcast", "No shadows visible"),
    EVPreset(11, "Heavy Overcast", "Dense cloud cover"),
    EVPreset(10, "Open Shade", "Shade on a sunny day"),
    EVPreset(9, "Bright Indoor", "Well-lit interior space"),
    EVPreset(8, "Indoor", "Normal room lighting"),
    EVPreset(7, "Dim Indoor", "Dim interior, lamps"),
    EVPreset(5, "Night Street", "Well-lit night street"),
    EVPreset(3, "Dim Night", "Dimly lit street or building"),
    EVPreset(0, "Deep Twilight", "Just after sunset"),
    EVPreset(-2, "Night Sky", "Stars, moonlit landscape"),
]

DEFAULT_APERTURE = 8.0
DEFAULT_SHUTTER_SPEED = 1 / 125
DEFAULT_ISO = 100.0
