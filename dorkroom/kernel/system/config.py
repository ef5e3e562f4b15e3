import os
from dataclasses import dataclass, field
from dorkroom.kernel.system.validation import validate_int


@dataclass(frozen=True)
class BorderOptimizationConstants:
    search_span: float = 0.5  # Inches either side of the starting guess
    step: float = 0.01  # Smallest candidate step
    snap: float = 0.25  # Quarter-inch trimming increment
    epsilon: float = 1e-9
    adaptive_step_divisor: int = 100
    min_candidate: float = 0.01


@dataclass(frozen=True)
class CacheConstants:
    max_memo_size: int = 50


@dataclass(frozen=True)
class PaperConstants:
    blade_thickness: int = 15  # Preview blade thickness at the base paper area
    base_paper_area: float = 20.0 * 24.0  # in², largest standard easel
    max_scale_factor: float = 2.0


@dataclass(frozen=True)
class PrecisionConstants:
    decimal_places: int = 2
    rounding_multiplier: int = 100


@dataclass(frozen=True)
class CalculationConstants:
    border_optimization: BorderOptimizationConstants = field(
        default_factory=BorderOptimizationConstants
    )
    cache: CacheConstants = field(default_factory=CacheConstants)
    paper: PaperConstants = field(default_factory=PaperConstants)
    precision: PrecisionConstants = field(default_factory=PrecisionConstants)


@dataclass(frozen=True)
class AppConfig:
    user_dir: str
    config_file: str
    presets_dir: str
    default_preview_ppi: int


CALCULATION_CONSTANTS = CalculationConstants()
DEFAULT_PREVIEW_PPI = 40


def build_app_config(user_dir: str | None = None) -> AppConfig:
    """
    Resolves the per-user directories. DORKROOM_USER_DIR overrides ~/.dorkroom
    and DORKROOM_PREVIEW_PPI the preview resolution.
    """
    base = user_dir or os.getenv("DORKROOM_USER_DIR") or os.path.expanduser("~/.dorkroom")
    base = os.path.abspath(base)
    ppi = validate_int(os.getenv("DORKROOM_PREVIEW_PPI"), DEFAULT_PREVIEW_PPI)
    return AppConfig(
        user_dir=base,
        config_file=os.path.join(base, "config.json"),
        presets_dir=os.path.join(base, "presets"),
        default_preview_ppi=ppi if ppi > 0 else DEFAULT_PREVIEW_PPI,
    )


APP_CONFIG = build_app_config()
