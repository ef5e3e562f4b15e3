"""Dorkroom command line.

Border layouts, print exposure stops, camera EV and lens equivalency
without a GUI.
"""

import argparse
import dataclasses
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from dorkroom.features.border.calculator import calculate_border_layout, orient, resolve_paper, resolve_ratio
from dorkroom.features.border.logic import calculate_optimal_min_border
from dorkroom.features.border.models import (
    ASPECT_RATIO_MAP,
    DEFAULT_BORDER_PRESETS,
    PAPER_SIZE_MAP,
    BorderCalculation,
    BorderPolicy,
    BorderSettings,
)
from dorkroom.features.camera.logic import (
    calculate_ev,
    calculate_exposure_value,
    format_aperture,
    format_shutter_speed,
    get_equivalent_exposures,
    key_to_shutter_speed,
    shutter_speed_to_key,
)
from dorkroom.features.camera.models import DEFAULT_APERTURE, DEFAULT_ISO, DEFAULT_SHUTTER_SPEED
from dorkroom.features.exposure.logic import (
    calculate_new_exposure_time,
    calculate_percentage_increase,
    format_exposure_time,
    round_stops_to_thirds,
)
from dorkroom.features.lens.logic import calculate_lens, format_focal_length
from dorkroom.features.lens.models import (
    DEFAULT_FOCAL_LENGTH,
    DEFAULT_SOURCE_FORMAT,
    DEFAULT_TARGET_FORMAT,
    FOCAL_LENGTH_PRESETS,
    SENSOR_FORMAT_MAP,
)
from dorkroom.features.sharing.logic import decode_preset, encode_preset
from dorkroom.kernel.precision import format_for_display
from dorkroom.kernel.system.config import APP_CONFIG
from dorkroom.kernel.system.logging import get_logger, setup_logging
from dorkroom.kernel.system.validation import validate_bool
from dorkroom.services.preview.renderer import render_layout_preview, save_preview

logger = get_logger(__name__)

CONFIG_FILE = APP_CONFIG.config_file
PRESETS_DIR = APP_CONFIG.presets_dir

PAPER_CHOICES = tuple(PAPER_SIZE_MAP.keys())
RATIO_CHOICES = tuple(ASPECT_RATIO_MAP.keys())
FORMAT_CHOICES = tuple(SENSOR_FORMAT_MAP.keys())


def load_user_config() -> dict:
    """Loads config.json from the user dir if it exists. Returns {"border": {}}."""
    if not os.path.isfile(CONFIG_FILE):
        return {"border": {}}
    with open(CONFIG_FILE, "r") as f:
        data = json.load(f)
    return {"border": data.get("border", {})}


def generate_default_config() -> int:
    """Creates config.json with the default border settings. Returns 0 on success, 1 if exists."""
    if os.path.isfile(CONFIG_FILE):
        print(f"Config already exists: {CONFIG_FILE}", file=sys.stderr)
        return 1
    os.makedirs(os.path.dirname(CONFIG_FILE), exist_ok=True)
    os.makedirs(PRESETS_DIR, exist_ok=True)
    default = {"border": BorderSettings().to_dict()}
    with open(CONFIG_FILE, "w") as f:
        json.dump(default, f, indent=4)
    print(f"Config created: {CONFIG_FILE}", file=sys.stderr)
    print(f"Presets directory: {PRESETS_DIR}", file=sys.stderr)
    return 0


def list_available_presets() -> int:
    """Prints built-in presets and the user's preset files."""
    print("Built-in presets:")
    for preset in DEFAULT_BORDER_PRESETS:
        print(f"  {preset.id}  ({preset.name})")

    if not os.path.isdir(PRESETS_DIR):
        print("No presets directory found. Run 'dorkroom --init-config' to create it.", file=sys.stderr)
        return 0
    presets = sorted(f[:-5] for f in os.listdir(PRESETS_DIR) if f.endswith(".json"))
    if not presets:
        print(f"No user presets found. Place .json files in {PRESETS_DIR}", file=sys.stderr)
    else:
        print("User presets:")
        for name in presets:
            print(f"  {name}")
    return 0


def load_user_preset(name: str) -> Dict[str, Any]:
    """
    Resolves a preset name: a file in the presets dir wins over a built-in id.
    Raises FileNotFoundError when neither exists.
    """
    preset_path = os.path.join(PRESETS_DIR, f"{name}.json")
    if os.path.isfile(preset_path):
        with open(preset_path, "r") as f:
            return json.load(f)
    for preset in DEFAULT_BORDER_PRESETS:
        if preset.id == name:
            return preset.settings.to_dict()
    raise FileNotFoundError(f"Preset not found: {name}")


def _add_border_parser(subparsers: Any) -> None:
    p = subparsers.add_parser("border", help="Compute a border layout and easel blade positions")
    p.add_argument("--paper", choices=PAPER_CHOICES, default=None, help="Paper size key (default: 8x10)")
    p.add_argument("--ratio", choices=RATIO_CHOICES, default=None, help="Image aspect ratio key (default: 3:2)")
    p.add_argument(
        "--custom-paper", type=float, nargs=2, default=None, metavar=("W", "H"), help="Custom paper size in inches"
    )
    p.add_argument(
        "--custom-ratio", type=float, nargs=2, default=None, metavar=("W", "H"), help="Custom aspect ratio"
    )
    p.add_argument("--min-border", type=float, default=None, metavar="IN", help="Minimum border (default: 0.5)")
    p.add_argument("--h-offset", type=float, default=None, metavar="IN", help="Horizontal print offset")
    p.add_argument("--v-offset", type=float, default=None, metavar="IN", help="Vertical print offset")
    p.add_argument(
        "--ignore-min-border",
        action="store_true",
        default=False,
        help="Let offsets eat into the minimum border, only keeping the print on paper",
    )
    p.add_argument("--portrait", action="store_true", default=False, help="Portrait paper orientation")
    p.add_argument("--flip-ratio", action="store_true", default=False, help="Swap the aspect ratio")
    p.add_argument(
        "--optimize",
        action="store_true",
        default=False,
        help="Nudge the minimum border so borders land on quarter-inch marks",
    )
    p.add_argument("--preset", default=None, metavar="NAME", help="Start from a user or built-in preset")
    p.add_argument("--share", action="store_true", default=False, help="Print a share code for the settings")
    p.add_argument("--name", default="Shared preset", help="Preset name used with --share")
    p.add_argument("--preview", default=None, metavar="PATH", help="Write a PNG/JPEG preview of the layout")
    p.add_argument(
        "--ppi", type=int, default=APP_CONFIG.default_preview_ppi, metavar="INT", help="Preview pixels per inch"
    )
    p.add_argument("--no-blades", action="store_true", default=False, help="Omit easel blades in the preview")
    p.add_argument("--json", action="store_true", default=False, help="Print the full result as JSON")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dorkroom",
        description="Dorkroom -- darkroom printing calculators",
        epilog="Example: dorkroom border --paper 8x10 --ratio 3:2 --min-border 0.5 --optimize",
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="Debug logging")
    parser.add_argument(
        "--init-config",
        action="store_true",
        default=False,
        help="Generate default config in the user directory and exit",
    )

    subparsers = parser.add_subparsers(dest="command")

    _add_border_parser(subparsers)

    exp = subparsers.add_parser("exposure", help="Adjust a print exposure time by stops")
    exp.add_argument("--time", type=float, required=True, metavar="SECONDS", help="Original exposure time")
    exp.add_argument("--stops", type=float, required=True, help="Stop change, e.g. 1/3 stop = 0.33")

    cam = subparsers.add_parser("camera", help="Exposure value and equivalent exposures")
    default_shutter = shutter_speed_to_key(DEFAULT_SHUTTER_SPEED)
    cam.add_argument(
        "--aperture", type=float, default=DEFAULT_APERTURE, metavar="F", help=f"f-number (default: {DEFAULT_APERTURE:g})"
    )
    cam.add_argument(
        "--shutter", default=default_shutter, metavar="KEY", help=f'Shutter speed, e.g. 1/125 or 2" (default: {default_shutter})'
    )
    cam.add_argument("--iso", type=float, default=DEFAULT_ISO, help=f"ISO (default: {DEFAULT_ISO:g})")
    cam.add_argument("--equivalents", action="store_true", default=False, help="List equivalent exposures")

    lens = subparsers.add_parser("lens", help="Equivalent focal length across formats")
    lens.add_argument(
        "focal_length",
        type=float,
        nargs="?",
        default=DEFAULT_FOCAL_LENGTH,
        metavar="MM",
        help=f"Focal length in mm (default: {DEFAULT_FOCAL_LENGTH:g})",
    )
    lens.add_argument(
        "--presets", action="store_true", default=False, help="Also list equivalents for common focal lengths"
    )
    lens.add_argument("--from", dest="source", choices=FORMAT_CHOICES, default=DEFAULT_SOURCE_FORMAT)
    lens.add_argument("--to", dest="target", choices=FORMAT_CHOICES, default=DEFAULT_TARGET_FORMAT)

    preset = subparsers.add_parser("preset", help="Inspect shared and saved presets")
    preset_sub = preset.add_subparsers(dest="preset_command", required=True)
    decode = preset_sub.add_parser("decode", help="Decode a share code")
    decode.add_argument("code")
    preset_sub.add_parser("list", help="List built-in and user presets")

    return parser


def _merge_layer(base_dict: Dict[str, Any], layer: Dict[str, Any]) -> None:
    base_dict.update(layer)
    # Older preset files carry the flag instead of a policy
    if "ignore_min_border" in layer and "policy" not in layer:
        ignore = validate_bool(layer["ignore_min_border"])
        base_dict["policy"] = (BorderPolicy.IGNORE if ignore else BorderPolicy.STRICT).value


def build_border_settings(args: argparse.Namespace, user_config: dict) -> BorderSettings:
    """Builds BorderSettings with loading priority:
    DEFAULT -> user config -> preset -> CLI flags
    """
    base_dict = BorderSettings().to_dict()

    border = user_config.get("border", {})
    if border:
        _merge_layer(base_dict, border)

    if args.preset:
        _merge_layer(base_dict, load_user_preset(args.preset))

    settings = BorderSettings.from_dict(base_dict)

    overrides: Dict[str, Any] = {}
    if args.paper is not None:
        overrides["paper_size"] = args.paper
    if args.custom_paper is not None:
        overrides["paper_size"] = "custom"
        overrides["custom_paper_width"], overrides["custom_paper_height"] = args.custom_paper
    if args.ratio is not None:
        overrides["aspect_ratio"] = args.ratio
    if args.custom_ratio is not None:
        overrides["aspect_ratio"] = "custom"
        overrides["custom_aspect_width"], overrides["custom_aspect_height"] = args.custom_ratio
    if args.min_border is not None:
        overrides["min_border"] = args.min_border
    if args.h_offset is not None or args.v_offset is not None:
        overrides["enable_offset"] = True
        overrides["horizontal_offset"] = args.h_offset or 0.0
        overrides["vertical_offset"] = args.v_offset or 0.0
    if args.ignore_min_border:
        overrides["policy"] = BorderPolicy.IGNORE
    if args.portrait:
        overrides["is_landscape"] = False
    if args.flip_ratio:
        overrides["is_ratio_flipped"] = True

    return dataclasses.replace(settings, **overrides) if overrides else settings


def optimize_settings(settings: BorderSettings) -> BorderSettings:
    paper = resolve_paper(settings)
    ratio = resolve_ratio(settings, paper)
    (paper_w, paper_h), (ratio_w, ratio_h) = orient(settings, paper, ratio)
    best = calculate_optimal_min_border(paper_w, paper_h, ratio_w, ratio_h, settings.min_border)
    logger.info(f"Optimised minimum border: {settings.min_border} -> {best}")
    return dataclasses.replace(settings, min_border=best)


def _fmt(value: float) -> str:
    return format_for_display(value)


def print_border_summary(settings: BorderSettings, calc: BorderCalculation) -> None:
    print(f"Paper:  {_fmt(calc.paper_width)} x {_fmt(calc.paper_height)} in  (easel {calc.easel_size_label})")
    print(f"Print:  {_fmt(calc.print_width)} x {_fmt(calc.print_height)} in  (min border {_fmt(calc.last_valid_min_border)})")
    print(
        f"Borders: left {_fmt(calc.left_border)}  right {_fmt(calc.right_border)}  "
        f"top {_fmt(calc.top_border)}  bottom {_fmt(calc.bottom_border)}"
    )
    print(
        f"Blades:  left {_fmt(calc.left_blade_reading)}  right {_fmt(calc.right_blade_reading)}  "
        f"top {_fmt(calc.top_blade_reading)}  bottom {_fmt(calc.bottom_blade_reading)}"
    )
    for warning in calc.warnings:
        print(f"Warning: {warning}", file=sys.stderr)


def run_border(args: argparse.Namespace) -> int:
    if args.preview and args.ppi <= 0:
        print("Error: --ppi must be positive", file=sys.stderr)
        return 1

    user_config = load_user_config()
    try:
        settings = build_border_settings(args, user_config)
    except (json.JSONDecodeError, FileNotFoundError, ValueError, TypeError) as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    if args.optimize:
        settings = optimize_settings(settings)

    calc = calculate_border_layout(settings)

    if args.json:
        payload = {"settings": settings.to_dict(), "result": calc.to_dict(), "warnings": calc.warnings}
        print(json.dumps(payload, indent=2))
    else:
        print_border_summary(settings, calc)

    if args.share:
        code = encode_preset(args.name, settings)
        if not code:
            print("Error: settings cannot be shared", file=sys.stderr)
            return 1
        print(f"Share code: {code}")

    if args.preview:
        img = render_layout_preview(calc, pixels_per_inch=args.ppi, show_blades=not args.no_blades)
        save_preview(img, args.preview)

    return 0


def run_exposure(args: argparse.Namespace) -> int:
    if args.time <= 0:
        print("Error: exposure time must be positive", file=sys.stderr)
        return 1
    stops = round_stops_to_thirds(args.stops)
    new_time = calculate_new_exposure_time(args.time, stops)
    change = calculate_percentage_increase(args.time, new_time)
    print(f"New time: {format_exposure_time(new_time)}  ({change:+.1f}%)")
    return 0


def run_camera(args: argparse.Namespace) -> int:
    shutter = key_to_shutter_speed(args.shutter)
    result = calculate_exposure_value(args.aperture, shutter, args.iso)
    if not result.is_valid:
        print("Error: aperture, shutter speed and ISO must be positive", file=sys.stderr)
        return 1

    settings = f"{format_aperture(args.aperture)} {format_shutter_speed(shutter)} ISO {_fmt(args.iso)}"
    print(f"EV {result.ev:g} at {settings}" + (f"  ({result.description})" if result.description else ""))

    if args.equivalents:
        ev = calculate_ev(args.aperture, shutter, args.iso)
        for eq in get_equivalent_exposures(ev, args.iso, args.aperture, shutter):
            marker = " *" if eq.is_current_setting else ""
            print(f"  {eq.aperture_label:>6}  {eq.shutter_speed_label}{marker}")
    return 0


def run_lens(args: argparse.Namespace) -> int:
    calc = calculate_lens(args.focal_length, args.source, args.target)
    if calc is None:
        print("Error: focal length must be positive", file=sys.stderr)
        return 1
    print(
        f"{format_focal_length(calc.source_focal_length)} on {calc.source_format.short_name} ~ "
        f"{format_focal_length(calc.equivalent_focal_length)} on {calc.target_format.short_name}"
    )
    print(f"Crop ratio {calc.crop_factor_ratio:g}, field of view {calc.field_of_view:g} deg")

    if args.presets:
        for preset in FOCAL_LENGTH_PRESETS:
            eq = calculate_lens(preset.value, args.source, args.target)
            if eq is not None:
                print(
                    f"  {preset.label:>6} ~ {format_focal_length(eq.equivalent_focal_length):>7}  {preset.description}"
                )
    return 0


def run_preset(args: argparse.Namespace) -> int:
    if args.preset_command == "list":
        return list_available_presets()

    shared = decode_preset(args.code)
    if shared is None:
        print("Error: invalid share code", file=sys.stderr)
        return 1
    print(json.dumps({"name": shared.name, "settings": shared.settings.to_dict()}, indent=2))
    return 0


COMMANDS = {
    "border": run_border,
    "exposure": run_exposure,
    "camera": run_camera,
    "lens": run_lens,
    "preset": run_preset,
}


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns 0 on success, 1 on failure."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # stdout carries results
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, stream=sys.stderr)

    if args.init_config:
        return generate_default_config()
    if args.command is None:
        parser.print_help(sys.stderr)
        return 1

    return COMMANDS[args.command](args)


def cli_entry() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    sys.exit(main())
