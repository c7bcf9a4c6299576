"""Command-line interface wiring for the raster studio engine."""
from __future__ import annotations

import argparse
import logging
import uuid
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from .beautify import EFFECT_INFO, BeautifyEffect
from .collage import TEMPLATE_CATALOG, templates_for_count
from .editor import (
    apply_adjustments,
    apply_beautify,
    apply_lut_filter,
    compose_collage_by_id,
    crop,
    flip,
    rotate,
)
from .errors import SettingsError
from .geometry import CROP_PRESETS, FlipAxis, aspect_crop_rect
from .io_utils import load_raster, save_raster
from .lut import LUT_GRADES, generate_lut_atlas, save_lut_atlas
from .lut_registry import LUT_FILTERS, LutRegistry
from .raster import RasterBuffer, parse_hex_color
from .settings import EngineSettings, load_settings

LOGGER = logging.getLogger("raster_studio")


def _hex_color(value: str) -> int:
    try:
        return parse_hex_color(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def _add_io_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("input", type=Path, help="Source image")
    parser.add_argument("output", type=Path, help="Destination (.jpg/.jpeg for JPEG, anything else for PNG)")


def _positive_int(value: str) -> int:
    """argparse type for counts that must be at least one."""
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="raster-studio",
        description="Apply photo edits, LUT grades and collages from the command line.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional settings file (JSON by default, YAML when 'pyyaml' is installed)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    adjust = commands.add_parser("adjust", help="Brightness, contrast and saturation")
    _add_io_arguments(adjust)
    adjust.add_argument("--brightness", type=int, default=0, help="Brightness offset (-100 to 100)")
    adjust.add_argument("--contrast", type=float, default=1.0, help="Contrast factor (0.5 to 2.0)")
    adjust.add_argument("--saturation", type=float, default=1.0, help="Saturation factor (0 to 2.0)")

    lut = commands.add_parser("lut", help="Colour grade with a LUT filter")
    _add_io_arguments(lut)
    lut.add_argument("--filter", dest="lut_id", required=True, choices=[entry.lut_id for entry in LUT_FILTERS])
    lut.add_argument(
        "--intensity", type=float, default=None, help="Strength 0-1 (defaults to the filter's suggestion)"
    )

    beautify = commands.add_parser("beautify", help="Auto enhance, sharpen or vignette")
    _add_io_arguments(beautify)
    beautify.add_argument("--effect", required=True, choices=[effect.value for effect in BeautifyEffect])
    beautify.add_argument(
        "--intensity", type=float, default=None, help="Strength 0-1 (defaults to the effect's suggestion)"
    )

    rotate_cmd = commands.add_parser("rotate", help="Rotate clockwise by quarter turns")
    _add_io_arguments(rotate_cmd)
    rotate_cmd.add_argument("--degrees", type=int, default=90, choices=[90, 180, 270])

    flip_cmd = commands.add_parser("flip", help="Mirror the image")
    _add_io_arguments(flip_cmd)
    flip_cmd.add_argument("--axis", default=FlipAxis.HORIZONTAL.value, choices=[axis.value for axis in FlipAxis])

    crop_cmd = commands.add_parser("crop", help="Crop to a rectangle or a centred aspect ratio")
    _add_io_arguments(crop_cmd)
    crop_cmd.add_argument("--x", type=int, default=0)
    crop_cmd.add_argument("--y", type=int, default=0)
    crop_cmd.add_argument("--width", type=int, default=None)
    crop_cmd.add_argument("--height", type=int, default=None)
    crop_cmd.add_argument(
        "--aspect", default=None, choices=list(CROP_PRESETS), help="Centred crop preset; overrides the rectangle"
    )

    collage = commands.add_parser("collage", help="Compose several images into one canvas")
    collage.add_argument("output", type=Path, help="Destination image")
    collage.add_argument("inputs", type=Path, nargs="+", help="Source images in frame order")
    collage.add_argument("--template", default=None, help="Template id (defaults to the first for the image count)")
    collage.add_argument("--width", type=int, default=1080)
    collage.add_argument("--height", type=int, default=1080)
    collage.add_argument("--spacing", type=int, default=None, help="Gap between frames in pixels")
    collage.add_argument("--background", type=_hex_color, default=None, help="Canvas colour as RRGGBB or AARRGGBB")

    generate = commands.add_parser("generate-luts", help="Write the stock LUT atlases as PNG files")
    generate.add_argument("output", type=Path, help="Folder for <style>.png atlases")
    generate.add_argument("--style", action="append", choices=sorted(LUT_GRADES), help="Limit to these styles")

    templates = commands.add_parser("templates", help="List collage templates")
    templates.add_argument("--count", type=_positive_int, default=None, help="Only layouts for this many images")

    return parser


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        args.settings = load_settings(args.config)
    except SettingsError as exc:
        parser.error(str(exc))
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s: %(message)s")
    return args


def _write(args: argparse.Namespace, buffer: RasterBuffer) -> Path:
    settings: EngineSettings = args.settings
    destination = save_raster(args.output, buffer, quality=settings.jpeg_quality)
    LOGGER.info("Wrote %s (%sx%s)", destination, buffer.width, buffer.height)
    return destination


def _run_adjust(args: argparse.Namespace) -> List[Path]:
    buffer = apply_adjustments(load_raster(args.input), args.brightness, args.contrast, args.saturation)
    return [_write(args, buffer)]


def _run_lut(args: argparse.Namespace) -> List[Path]:
    registry = LutRegistry(args.settings.lut_dir)
    intensity = args.intensity
    if intensity is None:
        intensity = registry.get(args.lut_id).default_strength
    buffer = apply_lut_filter(load_raster(args.input), args.lut_id, intensity, registry)
    return [_write(args, buffer)]


def _run_beautify(args: argparse.Namespace) -> List[Path]:
    effect = BeautifyEffect.parse(args.effect)
    intensity = args.intensity if args.intensity is not None else EFFECT_INFO[effect].default_intensity
    return [_write(args, apply_beautify(load_raster(args.input), effect, intensity))]


def _run_rotate(args: argparse.Namespace) -> List[Path]:
    return [_write(args, rotate(load_raster(args.input), args.degrees))]


def _run_flip(args: argparse.Namespace) -> List[Path]:
    return [_write(args, flip(load_raster(args.input), args.axis))]


def _run_crop(args: argparse.Namespace) -> List[Path]:
    source = load_raster(args.input)
    if args.aspect is not None:
        x, y, width, height = aspect_crop_rect(source.width, source.height, args.aspect)
    else:
        x, y = args.x, args.y
        width = args.width if args.width is not None else source.width - x
        height = args.height if args.height is not None else source.height - y
    return [_write(args, crop(source, x, y, width, height))]


def _run_collage(args: argparse.Namespace) -> List[Path]:
    settings: EngineSettings = args.settings
    images = [load_raster(path) for path in args.inputs]
    template_id = args.template or templates_for_count(len(images))[0].template_id
    buffer = compose_collage_by_id(
        images,
        template_id,
        args.width,
        args.height,
        spacing=args.spacing if args.spacing is not None else settings.collage_spacing,
        background_color=args.background if args.background is not None else settings.collage_background,
    )
    return [_write(args, buffer)]


def _run_generate_luts(args: argparse.Namespace) -> List[Path]:
    written = []
    for style in args.style or sorted(LUT_GRADES):
        path = save_lut_atlas(generate_lut_atlas(style), args.output / f"{style}.png")
        LOGGER.info("Generated %s", path)
        written.append(path)
    return written


def _run_templates(args: argparse.Namespace) -> List[Path]:
    counts = [args.count] if args.count is not None else sorted(TEMPLATE_CATALOG)
    for count in counts:
        for template in templates_for_count(count):
            print(f"{template.template_id}\t{template.image_count}\t{template.name}")
    return []


COMMANDS: Dict[str, Callable[[argparse.Namespace], List[Path]]] = {
    "adjust": _run_adjust,
    "lut": _run_lut,
    "beautify": _run_beautify,
    "rotate": _run_rotate,
    "flip": _run_flip,
    "crop": _run_crop,
    "collage": _run_collage,
    "generate-luts": _run_generate_luts,
    "templates": _run_templates,
}


def run(args: argparse.Namespace) -> List[Path]:
    """Execute the parsed subcommand and return the files it wrote."""

    run_id = uuid.uuid4().hex
    LOGGER.debug("Starting '%s' run %s", args.command, run_id)
    written = COMMANDS[args.command](args)
    LOGGER.debug("Finished '%s' run %s; wrote %s file(s)", args.command, run_id, len(written))
    return written


def main(argv: Optional[Iterable[str]] = None) -> None:
    args = parse_args(argv)
    run(args)


__all__ = ["COMMANDS", "build_parser", "main", "parse_args", "run"]
